"""
TenantSettings -- tenant-scoped key/value settings over the ``settings`` table.

Responsibility:
    ``find`` / ``get`` / ``set`` / ``save`` keyed by (key, group) pairs for
    one tenant.  ``set`` buffers values; ``save`` writes them.  ``lock_row``
    gives the lot sequencer and the running flag a row-locked read-modify-
    write path.

Architecture position:
    Kernel > Services.  Used by LotNumberSequencer and CostComputeRunningFlag.

Invariants enforced:
    - Tenant isolation: every query filters on tenant_id.
    - (tenant_id, group, key) uniqueness: a concurrent first insert of the
      same key is detected by IntegrityError inside a SAVEPOINT and resolved
      by re-reading the winner's row under lock.

Failure modes:
    - Storage errors from flush() propagate unchanged.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.setting import Setting

logger = get_logger("services.settings")


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class TenantSettings:
    """
    Settings for one tenant.

    Contract:
        - ``find(key, group)`` returns the Setting row or None.
        - ``get(key, group, default)`` returns the stored text or default.
        - ``set(key, value, group)`` buffers a value until ``save()``.
        - ``save()`` upserts buffered values and flushes.

    Non-goals:
        - Does NOT commit -- caller controls transaction boundaries.
        - Does NOT cache reads across calls; the table is the source of truth.
    """

    def __init__(self, session: Session, tenant_id: int):
        self._session = session
        self._tenant_id = tenant_id
        self._pending: dict[tuple[str, str], str | None] = {}

    @property
    def tenant_id(self) -> int:
        return self._tenant_id

    def find(self, key: str, group: str = "") -> Setting | None:
        """Return the stored row for (key, group), or None.  Ignores buffered values."""
        return self._select(key, group)

    def get(self, key: str, group: str = "", default: str | None = None) -> str | None:
        """Return the value for (key, group); buffered values win over stored ones."""
        if (group, key) in self._pending:
            return self._pending[(group, key)]
        row = self._select(key, group)
        if row is None or row.value is None:
            return default
        return row.value

    def set(self, key: str, value: Any, group: str = "") -> None:
        """Buffer a value for (key, group).  Written by ``save()``."""
        self._pending[(group, key)] = _to_text(value)

    def save(self) -> None:
        """Upsert all buffered values and flush."""
        for (group, key), value in self._pending.items():
            row = self._select(key, group)
            if row is None:
                self._session.add(
                    Setting(tenant_id=self._tenant_id, group=group, key=key, value=value)
                )
            else:
                row.value = value
        self._session.flush()

        if self._pending:
            logger.debug(
                "settings_saved",
                extra={
                    "tenant_id": self._tenant_id,
                    "keys": sorted(f"{g}.{k}" if g else k for g, k in self._pending),
                },
            )
        self._pending.clear()

    def lock_row(self, key: str, group: str = "") -> Setting:
        """
        Return the (key, group) row locked with ``SELECT ... FOR UPDATE``.

        A missing row is created (value NULL) inside a SAVEPOINT.  If another
        transaction created it first, the savepoint is rolled back and the
        winner's row is locked instead.
        """
        row = self._select(key, group, for_update=True)
        if row is not None:
            return row

        savepoint = self._session.begin_nested()
        try:
            row = Setting(tenant_id=self._tenant_id, group=group, key=key, value=None)
            self._session.add(row)
            self._session.flush()
            savepoint.commit()
            return row
        except IntegrityError:
            logger.debug(
                "settings_row_create_race_retry",
                extra={"tenant_id": self._tenant_id, "group": group, "key": key},
            )
            savepoint.rollback()
            self._session.expire_all()
            row = self._select(key, group, for_update=True)
            if row is None:
                raise
            return row

    def _select(self, key: str, group: str, for_update: bool = False) -> Setting | None:
        stmt = select(Setting).where(
            Setting.tenant_id == self._tenant_id,
            Setting.group == group,
            Setting.key == key,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(stmt).scalar_one_or_none()

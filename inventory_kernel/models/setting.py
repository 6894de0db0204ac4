"""
Module: inventory_kernel.models.setting
Responsibility: Tenant-scoped key/value settings rows.  Backs the lot-number
    counter and the cost-compute running flag.

Invariants enforced:
    - (tenant_id, group, key) is UNIQUE.  The lot sequencer relies on this to
      detect a concurrent first insert of its counter row.
"""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TenantScopedBase


class Setting(TenantScopedBase):
    """One settings value, stored as text."""

    __tablename__ = "settings"

    __table_args__ = (
        UniqueConstraint("tenant_id", "group", "key", name="uq_settings_tenant_group_key"),
    )

    group: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    key: Mapped[str] = mapped_column(String(100), nullable=False)

    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Setting tenant={self.tenant_id} {self.group}.{self.key}={self.value!r}>"

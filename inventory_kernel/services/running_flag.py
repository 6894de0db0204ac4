"""
CostComputeRunningFlag -- tenant flag marking an in-flight cost computation.

Responsibility:
    Persists ``cost_compute_running`` in the ``inventory`` settings group.
    ``set_running`` / ``is_running`` are the plain advisory flag.  ``hold``
    turns it into a lease: it refuses to start while an unexpired lease is
    held, stamps an expiry, and clears the flag on every exit path.

Architecture position:
    Kernel > Services.  Used by the cost compute worker around each job.

Invariants enforced:
    - Absent flag reads as not running.
    - ``hold`` clears the flag in ``finally`` so a failed compute pass never
      leaves the tenant stuck in the running state.
    - A lease older than its TTL is treated as abandoned (crashed worker)
      and may be taken over.

Failure modes:
    - CostComputeAlreadyRunningError from ``hold`` if another pass holds an
      unexpired lease.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import CostComputeAlreadyRunningError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.settings_store import TenantSettings

logger = get_logger("services.running_flag")

SETTINGS_GROUP = "inventory"
RUNNING_KEY = "cost_compute_running"
LEASE_EXPIRES_KEY = "cost_compute_lease_expires_at"


class CostComputeRunningFlag:
    """Per-tenant running flag for item cost computation."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        lease_seconds: int = 3600,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._lease = timedelta(seconds=lease_seconds)

    def set_running(self, tenant_id: int, is_running: bool = True) -> None:
        """Persist the flag for the tenant.  Any lease expiry is cleared."""
        settings = TenantSettings(self._session, tenant_id)
        settings.set(RUNNING_KEY, is_running, group=SETTINGS_GROUP)
        settings.set(LEASE_EXPIRES_KEY, None, group=SETTINGS_GROUP)
        settings.save()

        logger.info(
            "cost_compute_running_set",
            extra={"tenant_id": tenant_id, "is_running": is_running},
        )

    def is_running(self, tenant_id: int) -> bool:
        """Read the flag.  An absent key reads as not running."""
        settings = TenantSettings(self._session, tenant_id)
        if settings.get(RUNNING_KEY, group=SETTINGS_GROUP) != "true":
            return False

        expires_at = settings.get(LEASE_EXPIRES_KEY, group=SETTINGS_GROUP)
        if expires_at is None:
            return True
        return datetime.fromisoformat(expires_at) > self._clock.now()

    def acquire(self, tenant_id: int) -> datetime:
        """
        Take the lease and return its expiry.

        The running row is locked while checking and setting, so two workers
        cannot both observe "not running" on PostgreSQL.  The lease becomes
        visible to other sessions once the caller commits.

        Raises:
            CostComputeAlreadyRunningError: If an unexpired lease is held.
        """
        settings = TenantSettings(self._session, tenant_id)
        settings.lock_row(RUNNING_KEY, group=SETTINGS_GROUP)

        if self.is_running(tenant_id):
            logger.warning(
                "cost_compute_lease_refused",
                extra={"tenant_id": tenant_id},
            )
            raise CostComputeAlreadyRunningError(tenant_id)

        expires_at = self._clock.now() + self._lease
        settings.set(RUNNING_KEY, True, group=SETTINGS_GROUP)
        settings.set(LEASE_EXPIRES_KEY, expires_at.isoformat(), group=SETTINGS_GROUP)
        settings.save()

        logger.info(
            "cost_compute_lease_acquired",
            extra={"tenant_id": tenant_id, "expires_at": expires_at},
        )
        return expires_at

    def release(self, tenant_id: int) -> None:
        """Clear the flag and its lease."""
        self.set_running(tenant_id, False)

    @contextmanager
    def hold(self, tenant_id: int) -> Iterator[None]:
        """
        Hold the running flag for the duration of the block.

        The flag is cleared on every exit path, including failure.

        Raises:
            CostComputeAlreadyRunningError: If an unexpired lease is held.
        """
        self.acquire(tenant_id)
        try:
            yield
        finally:
            self.release(tenant_id)

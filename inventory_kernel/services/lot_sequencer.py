"""
LotNumberSequencer -- per-tenant monotonic inventory lot numbers.

Responsibility:
    Issues and persists lot numbers for inventory transactions.  The counter
    lives in the tenant's settings under ``lot_number_increment`` and holds
    the next lot number to issue.

Architecture position:
    Kernel > Services.  Called by InventoryTransactionRecorder before and
    after recording a document's transactions.

Invariants enforced:
    - Monotonicity: the stored counter never decreases.  Every write goes
      through a row locked with ``SELECT ... FOR UPDATE`` so concurrent
      allocations for one tenant serialize on PostgreSQL instead of reading
      the same value.
    - Lot numbers need not be gap-free: a failed recording leaves its peeked
      number unused.

Failure modes:
    - IntegrityError on a concurrent first insert of the counter row is
      absorbed by TenantSettings.lock_row (savepoint + re-read).
    - ValueError if the stored value is not an integer.
"""

from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.settings_store import TenantSettings

logger = get_logger("services.lot_sequencer")

LOT_NUMBER_KEY = "lot_number_increment"


class LotNumberSequencer:
    """
    Lot number allocation for inventory transactions.

    Contract:
        - ``peek_next`` reads without writing (default 1).
        - ``increment_and_get`` writes stored + 1 (or 1 when unset) and
          returns it.
        - ``advance_past`` moves the counter past a lot number that has just
          been used.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session):
        self._session = session

    def peek_next(self, tenant_id: int) -> int:
        """Return the next lot number without mutating the counter."""
        stored = TenantSettings(self._session, tenant_id).get(LOT_NUMBER_KEY)
        return int(stored) if stored else 1

    def increment_and_get(self, tenant_id: int) -> int:
        """
        Increment the counter and return its new value.

        An unset counter becomes 1, so N calls from unset yield 1..N.
        """
        row = TenantSettings(self._session, tenant_id).lock_row(LOT_NUMBER_KEY)

        lot_number = int(row.value) + 1 if row.value else 1
        row.value = str(lot_number)
        self._session.flush()

        logger.debug(
            "lot_number_incremented",
            extra={"tenant_id": tenant_id, "lot_number": lot_number},
        )
        return lot_number

    def advance_past(self, tenant_id: int, lot_number: int) -> int:
        """
        Move the counter past ``lot_number`` and return the new next value.

        The stored value becomes ``max(stored, lot_number) + 1``, so the lot
        returned by ``peek_next`` on an unset counter (1) is not handed out
        again.
        """
        row = TenantSettings(self._session, tenant_id).lock_row(LOT_NUMBER_KEY)

        current = int(row.value) if row.value else 1
        next_lot = max(current, lot_number) + 1
        row.value = str(next_lot)
        self._session.flush()

        logger.debug(
            "lot_number_advanced",
            extra={
                "tenant_id": tenant_id,
                "used_lot_number": lot_number,
                "next_lot_number": next_lot,
            },
        )
        return next_lot

"""
inventory_kernel.domain.types -- Pure frozen dataclasses for inventory costing.

ZERO I/O.  Enums with ``str`` values and frozen dataclasses, converted to and
from ORM rows by ``to_dto()`` / ``from_dto()`` on the models.

Invariants enforced:
    - InventoryTransaction identity is (transaction_id, transaction_type,
      entry_id); rows are never updated, only deleted and re-inserted.
    - All quantities and rates are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class TransactionDirection(str, Enum):
    """Direction of an inventory movement."""

    IN = "IN"
    OUT = "OUT"


class ItemType(str, Enum):
    """Item classification.  Only INVENTORY items carry a cost."""

    INVENTORY = "inventory"
    SERVICE = "service"
    NON_INVENTORY = "non-inventory"


class CostMethod(str, Enum):
    """Cost valuation methods."""

    FIFO = "FIFO"  # First-in, first-out
    LIFO = "LIFO"  # Last-in, first-out
    AVG = "AVG"    # Weighted moving average


# =============================================================================
# DTOs
# =============================================================================


@dataclass(frozen=True)
class ItemEntry:
    """A business-document line item (bill, invoice, adjustment line).

    Fields are optional because entries arrive from outside the kernel;
    the transformer rejects entries lacking item_id, quantity or rate.
    """

    id: UUID | None
    item_id: UUID | None
    quantity: Decimal | None
    rate: Decimal | None
    reference_type: str
    reference_id: int


@dataclass(frozen=True)
class InventoryTransaction:
    """One inventory movement of one item, stamped with a lot number.

    ``id`` is None until the transaction has been stored.
    """

    item_id: UUID
    quantity: Decimal
    rate: Decimal
    lot_number: int
    transaction_type: str
    transaction_id: int
    direction: TransactionDirection
    date: date
    entry_id: UUID | None = None
    id: UUID | None = None

    @property
    def document_key(self) -> tuple[int, str]:
        """(transaction_id, transaction_type) of the source document."""
        return (self.transaction_id, self.transaction_type)


@dataclass(frozen=True)
class InventoryLotCost:
    """Cost-tracking record of one lot production or consumption event.

    For IN rows ``remaining`` is the lot's open quantity at creation; for OUT
    rows it is the open quantity left in the consumed lot afterwards.
    """

    item_id: UUID
    lot_number: int
    direction: TransactionDirection
    date: date
    quantity: Decimal
    rate: Decimal
    cost: Decimal
    remaining: Decimal
    transaction_type: str
    transaction_id: int
    cost_method: CostMethod
    entry_id: UUID | None = None
    id: UUID | None = None


@dataclass(frozen=True)
class DeletedTransactions:
    """Result of deleting a document's inventory transactions."""

    transaction_id: int
    transaction_type: str
    deleted: tuple[InventoryTransaction, ...] = ()

    @property
    def count(self) -> int:
        return len(self.deleted)


@dataclass(frozen=True)
class CostComputationResult:
    """Outcome of one cost computation pass for one item."""

    item_id: UUID
    cost_method: CostMethod
    from_date: date
    lot_costs: tuple[InventoryLotCost, ...] = field(default_factory=tuple)
    closing_quantity: Decimal = Decimal("0")
    closing_cost_rate: Decimal = Decimal("0")

    @property
    def total_out_cost(self) -> Decimal:
        """Cost of goods issued during the pass."""
        return sum(
            (lc.cost for lc in self.lot_costs
             if lc.direction is TransactionDirection.OUT),
            Decimal("0"),
        )

"""
inventory_kernel.domain -- Pure types, the entry transformer and the clock.

ZERO I/O.
"""

from inventory_kernel.domain.transformer import transform_item_entries_to_inventory
from inventory_kernel.domain.types import (
    CostComputationResult,
    CostMethod,
    DeletedTransactions,
    InventoryLotCost,
    InventoryTransaction,
    ItemEntry,
    ItemType,
    TransactionDirection,
)

__all__ = [
    "CostComputationResult",
    "CostMethod",
    "DeletedTransactions",
    "InventoryLotCost",
    "InventoryTransaction",
    "ItemEntry",
    "ItemType",
    "TransactionDirection",
    "transform_item_entries_to_inventory",
]

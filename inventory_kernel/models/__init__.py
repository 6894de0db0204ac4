"""Domain models for the inventory kernel."""

from inventory_kernel.models.inventory import (
    InventoryLotCostModel,
    InventoryTransactionModel,
)
from inventory_kernel.models.item import Item, ItemEntry
from inventory_kernel.models.setting import Setting

__all__ = [
    "InventoryLotCostModel",
    "InventoryTransactionModel",
    "Item",
    "ItemEntry",
    "Setting",
]

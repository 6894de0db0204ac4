"""Kernel services: settings, lot numbers, running flag, entries, recording, events."""

from inventory_kernel.services.events import EventDispatcher, InventoryEvents
from inventory_kernel.services.item_entries import (
    InventoryEntriesSource,
    ItemEntriesService,
)
from inventory_kernel.services.lot_sequencer import LotNumberSequencer
from inventory_kernel.services.running_flag import CostComputeRunningFlag
from inventory_kernel.services.settings_store import TenantSettings
from inventory_kernel.services.transaction_recorder import InventoryTransactionRecorder

__all__ = [
    "CostComputeRunningFlag",
    "EventDispatcher",
    "InventoryEntriesSource",
    "InventoryEvents",
    "InventoryTransactionRecorder",
    "ItemEntriesService",
    "LotNumberSequencer",
    "TenantSettings",
]

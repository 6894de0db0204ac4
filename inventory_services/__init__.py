"""
Module: inventory_services
Responsibility:
    Stateful cost-method strategies over the pure engines, and the
    dispatcher that selects one per item.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    May import inventory_kernel and inventory_engines.
    MUST NOT import inventory_batch.
"""

from inventory_services.average_cost import InventoryAverageCost
from inventory_services.cost_dispatcher import CostComputeDispatcher, StrategyFactory
from inventory_services.cost_strategy import ItemCostStrategy
from inventory_services.lot_tracker import InventoryCostLotTracker

__all__ = [
    "CostComputeDispatcher",
    "InventoryAverageCost",
    "InventoryCostLotTracker",
    "ItemCostStrategy",
    "StrategyFactory",
]

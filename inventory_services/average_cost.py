"""
inventory_services.average_cost -- Weighted moving average cost strategy.

Responsibility:
    Rebuilds the opening position (quantity and average) from transactions
    before ``from_date``, replays the item's transactions from ``from_date``
    forward, writes one lot-cost row per transaction, and stores the
    closing average and quantity on the item.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Pure math lives in inventory_engines.average_cost.
"""

from __future__ import annotations

from inventory_engines.average_cost import replay_average
from inventory_kernel.domain.types import CostComputationResult, CostMethod
from inventory_services.cost_strategy import ItemCostStrategy


class InventoryAverageCost(ItemCostStrategy):
    """Weighted average strategy for AVG items."""

    def compute_item_cost(self) -> CostComputationResult:
        item = self._load_item()

        opening = replay_average(self._transactions_before()).closing

        deleted = self._delete_lot_costs_from()
        replay = replay_average(self._transactions_from(), opening=opening)
        stored = self._persist(replay.lot_costs)

        item.cost_rate = replay.closing.average_rate
        item.quantity_on_hand = replay.closing.quantity
        self._session.flush()

        result = CostComputationResult(
            item_id=self._item_id,
            cost_method=CostMethod.AVG,
            from_date=self._from_date,
            lot_costs=stored,
            closing_quantity=replay.closing.quantity,
            closing_cost_rate=replay.closing.average_rate,
        )
        self._log_completed(result, deleted)
        return result

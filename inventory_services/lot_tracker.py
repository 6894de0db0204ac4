"""
inventory_services.lot_tracker -- FIFO/LIFO cost strategy.

Responsibility:
    Rebuilds the lots open on ``from_date`` from earlier transactions, then
    replays the item's transactions from ``from_date`` forward, matching
    each OUT against open lots first-in or last-in first, and writes one
    InventoryLotCost row per lot produced or consumed.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Pure matching lives in inventory_engines.lot_tracking.

Failure modes:
    - InsufficientInventoryError if an OUT exceeds the open quantity.  Rows
      already deleted or written in the pass remain only in the caller's
      transaction, which is expected to roll back.
"""

from __future__ import annotations

from inventory_engines.lot_tracking import LOT_METHODS, replay_lots
from inventory_kernel.domain.types import CostComputationResult
from inventory_services.cost_strategy import ItemCostStrategy


class InventoryCostLotTracker(ItemCostStrategy):
    """Lot-tracking strategy for FIFO and LIFO items."""

    def compute_item_cost(self) -> CostComputationResult:
        if self._cost_method not in LOT_METHODS:
            raise ValueError(
                f"InventoryCostLotTracker handles FIFO and LIFO, got {self._cost_method}"
            )

        opening = replay_lots(
            self._transactions_before(), cost_method=self._cost_method,
        )

        deleted = self._delete_lot_costs_from()
        replay = replay_lots(
            self._transactions_from(),
            cost_method=self._cost_method,
            opening_lots=opening.open_lots,
        )
        stored = self._persist(replay.lot_costs)

        result = CostComputationResult(
            item_id=self._item_id,
            cost_method=self._cost_method,
            from_date=self._from_date,
            lot_costs=stored,
            closing_quantity=replay.on_hand,
            closing_cost_rate=replay.average_rate,
        )
        self._log_completed(result, deleted)
        return result

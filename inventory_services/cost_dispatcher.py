"""
inventory_services.cost_dispatcher -- Cost-method strategy selection.

Responsibility:
    ``compute_item_cost`` validates the item, reads its configured cost
    method and delegates to the strategy registered for that method.  The
    dispatcher holds no cost math.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Invoked by the compute cost worker (inventory_batch) and directly by
    callers that recompute synchronously.

Invariants enforced:
    - Only items of type ``inventory`` are costed.  Any other type fails
      before a strategy is constructed, so no lot-cost row is written.
    - Open/closed dispatch: a new cost method is added by registering a
      strategy factory; no existing code path changes.

Failure modes:
    - ItemNotFoundError if the item does not exist for the tenant.
    - NotInventoryItemError if the item is not an inventory item.
    - UnknownCostMethodError if no strategy is registered for the item's
      cost method.
    - Strategy errors (InsufficientInventoryError, storage errors)
      propagate unchanged.

Usage:
    dispatcher = CostComputeDispatcher(session)
    result = dispatcher.compute_item_cost(tenant_id, date(2024, 3, 1), item_id)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.types import CostComputationResult, CostMethod, ItemType
from inventory_kernel.exceptions import (
    ItemNotFoundError,
    NotInventoryItemError,
    UnknownCostMethodError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.item import Item
from inventory_kernel.services.transaction_recorder import InventoryTransactionRecorder
from inventory_services.average_cost import InventoryAverageCost
from inventory_services.cost_strategy import ItemCostStrategy
from inventory_services.lot_tracker import InventoryCostLotTracker

logger = get_logger("services.cost_dispatcher")

StrategyFactory = Callable[..., ItemCostStrategy]


class CostComputeDispatcher:
    """
    Selects and runs the cost strategy of an item.

    Contract:
        ``compute_item_cost(tenant_id, from_date, item_id)`` returns the
        strategy's CostComputationResult.

    Guarantees:
        - FIFO and LIFO resolve to InventoryCostLotTracker, AVG to
          InventoryAverageCost, unless overridden with ``register``.

    Non-goals:
        - Does NOT commit.
        - Does NOT check the tenant running flag; the worker does.
    """

    def __init__(
        self,
        session: Session,
        recorder: InventoryTransactionRecorder | None = None,
    ) -> None:
        self._session = session
        self._recorder = recorder or InventoryTransactionRecorder(session)
        self._registry: dict[CostMethod, StrategyFactory] = {
            CostMethod.FIFO: InventoryCostLotTracker,
            CostMethod.LIFO: InventoryCostLotTracker,
            CostMethod.AVG: InventoryAverageCost,
        }

    def register(self, cost_method: CostMethod, factory: StrategyFactory) -> None:
        """Register (or replace) the strategy factory for ``cost_method``."""
        self._registry[CostMethod(cost_method)] = factory

    @property
    def registered_methods(self) -> list[str]:
        return sorted(method.value for method in self._registry)

    def strategy_for(
        self,
        tenant_id: int,
        from_date: date,
        item: Item,
    ) -> ItemCostStrategy:
        """Construct the strategy for ``item``'s cost method."""
        try:
            cost_method = CostMethod(item.cost_method)
        except ValueError:
            raise UnknownCostMethodError(item.cost_method, self.registered_methods) from None

        factory = self._registry.get(cost_method)
        if factory is None:
            raise UnknownCostMethodError(cost_method.value, self.registered_methods)

        return factory(
            self._session,
            tenant_id,
            from_date,
            item.id,
            cost_method=cost_method,
            recorder=self._recorder,
        )

    def compute_item_cost(
        self,
        tenant_id: int,
        from_date: date,
        item_id: UUID,
    ) -> CostComputationResult:
        """
        Recompute ``item_id``'s cost from ``from_date`` forward.

        Raises:
            ItemNotFoundError: If the item does not exist.
            NotInventoryItemError: If the item is not an inventory item.
            UnknownCostMethodError: If the cost method has no strategy.
        """
        with LogContext.bind(tenant_id=tenant_id, item_id=item_id):
            item = self._session.execute(
                select(Item).where(Item.tenant_id == tenant_id, Item.id == item_id)
            ).scalar_one_or_none()
            if item is None:
                raise ItemNotFoundError(tenant_id, str(item_id))

            if item.type != ItemType.INVENTORY.value:
                logger.warning(
                    "cost_compute_rejected_not_inventory",
                    extra={"item_type": item.type},
                )
                raise NotInventoryItemError(str(item_id), item.type)

            strategy = self.strategy_for(tenant_id, from_date, item)

            logger.info(
                "cost_compute_started",
                extra={
                    "cost_method": strategy.cost_method.value,
                    "strategy": type(strategy).__name__,
                    "from_date": from_date.isoformat(),
                },
            )
            t0 = time.monotonic()
            result = strategy.compute_item_cost()
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            logger.info(
                "cost_compute_completed",
                extra={
                    "cost_method": result.cost_method.value,
                    "lot_costs": len(result.lot_costs),
                    "duration_ms": duration_ms,
                },
            )
            return result

"""
inventory_services.cost_strategy -- Shared shell of the item cost strategies.

Responsibility:
    Loading the item and its inventory transactions, deleting the lot-cost
    rows a compute pass rewrites, and persisting the new rows through the
    transaction recorder.  Subclasses supply the cost math by calling into
    inventory_engines.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

Invariants enforced:
    - A compute pass owns the item's lot-cost rows dated on or after its
      ``from_date``: they are deleted and rewritten, never patched.
    - Rows dated before ``from_date`` are never touched.
    - Transactions replay by date, receipts before issues on the same date,
      then by (lot_number, created_at).

Non-goals:
    - Does NOT call ``session.commit()`` -- the worker or caller owns the
      transaction, so a failed pass leaves no partial rows behind it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import case, delete, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.types import (
    CostComputationResult,
    CostMethod,
    InventoryLotCost,
    InventoryTransaction,
    TransactionDirection,
)
from inventory_kernel.exceptions import ItemNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory import (
    InventoryLotCostModel,
    InventoryTransactionModel,
)
from inventory_kernel.models.item import Item
from inventory_kernel.services.transaction_recorder import InventoryTransactionRecorder

logger = get_logger("services.cost_strategy")


class ItemCostStrategy(ABC):
    """
    One cost computation pass for one item from one date.

    Contract:
        Constructed with (session, tenant_id, from_date, item_id, ...) and
        run once through ``compute_item_cost()``.
    """

    def __init__(
        self,
        session: Session,
        tenant_id: int,
        from_date: date,
        item_id: UUID,
        cost_method: CostMethod,
        recorder: InventoryTransactionRecorder | None = None,
    ):
        self._session = session
        self._tenant_id = tenant_id
        self._from_date = from_date
        self._item_id = item_id
        self._cost_method = cost_method
        self._recorder = recorder or InventoryTransactionRecorder(session)

    @property
    def cost_method(self) -> CostMethod:
        return self._cost_method

    @abstractmethod
    def compute_item_cost(self) -> CostComputationResult:
        """Recompute the item's cost from ``from_date`` forward."""
        ...

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _load_item(self) -> Item:
        item = self._session.execute(
            select(Item).where(
                Item.tenant_id == self._tenant_id,
                Item.id == self._item_id,
            )
        ).scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(self._tenant_id, str(self._item_id))
        return item

    def _transactions_before(self) -> list[InventoryTransaction]:
        """Transactions dated before ``from_date``, in replay order."""
        return self._select_transactions(
            InventoryTransactionModel.date < self._from_date,
        )

    def _transactions_from(self) -> list[InventoryTransaction]:
        """Transactions dated on or after ``from_date``, in replay order."""
        return self._select_transactions(
            InventoryTransactionModel.date >= self._from_date,
        )

    def _select_transactions(self, date_clause) -> list[InventoryTransaction]:
        rows = self._session.execute(
            select(InventoryTransactionModel)
            .where(
                InventoryTransactionModel.tenant_id == self._tenant_id,
                InventoryTransactionModel.item_id == self._item_id,
                date_clause,
            )
            .order_by(
                InventoryTransactionModel.date,
                case(
                    (InventoryTransactionModel.direction == TransactionDirection.IN.value, 0),
                    else_=1,
                ),
                InventoryTransactionModel.lot_number,
                InventoryTransactionModel.created_at,
            )
        ).scalars().all()
        return [row.to_dto() for row in rows]

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def _delete_lot_costs_from(self) -> int:
        """Delete the item's lot-cost rows dated on or after ``from_date``."""
        result = self._session.execute(
            delete(InventoryLotCostModel).where(
                InventoryLotCostModel.tenant_id == self._tenant_id,
                InventoryLotCostModel.item_id == self._item_id,
                InventoryLotCostModel.date >= self._from_date,
            )
        )
        return result.rowcount

    def _persist(self, lot_costs: Iterable[InventoryLotCost]) -> tuple[InventoryLotCost, ...]:
        return tuple(
            self._recorder.record_lot_cost(self._tenant_id, lot_cost)
            for lot_cost in lot_costs
        )

    def _log_completed(self, result: CostComputationResult, deleted: int) -> None:
        logger.info(
            "item_cost_computed",
            extra={
                "tenant_id": self._tenant_id,
                "item_id": str(self._item_id),
                "cost_method": self._cost_method.value,
                "from_date": self._from_date.isoformat(),
                "lot_costs_deleted": deleted,
                "lot_costs_written": len(result.lot_costs),
                "closing_quantity": str(result.closing_quantity),
                "closing_cost_rate": str(result.closing_cost_rate),
            },
        )

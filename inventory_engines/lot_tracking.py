"""
inventory_engines.lot_tracking -- FIFO/LIFO lot matching over a transaction stream.

Responsibility:
    Replay an item's inventory transactions against its open lots.  Each IN
    opens a lot; each OUT consumes open lots oldest-first (FIFO) or
    newest-first (LIFO).  Every lot production and every lot touched by a
    consumption yields one InventoryLotCost row.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel domain types, exceptions and logging.
    The stateful InventoryCostLotTracker lives in inventory_services/.

Invariants enforced:
    - Replay safety: value objects are frozen; functions return new tuples
      and never mutate their inputs.
    - Sufficient inventory: an OUT larger than the open quantity raises
      InsufficientInventoryError before any lot is touched.
    - Conservation: quantity consumed from lots equals the OUT quantity.

Failure modes:
    - InsufficientInventoryError from ``consume_lots`` / ``replay_lots``.
    - ValueError from ``replay_lots`` for a cost method other than FIFO/LIFO.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.types import (
    CostMethod,
    InventoryLotCost,
    InventoryTransaction,
    TransactionDirection,
)
from inventory_kernel.exceptions import InsufficientInventoryError
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.lot_tracking")

LOT_METHODS = frozenset({CostMethod.FIFO, CostMethod.LIFO})


@dataclass(frozen=True, slots=True)
class OpenLot:
    """
    A lot with quantity left to consume.

    ``sequence`` is the arrival position within the replay and breaks ties
    between lots sharing a date and lot number.
    """

    lot_number: int
    lot_date: date
    rate: Decimal
    remaining: Decimal
    transaction_type: str
    transaction_id: int
    sequence: int

    @property
    def value(self) -> Decimal:
        return self.remaining * self.rate

    @property
    def is_depleted(self) -> bool:
        return self.remaining <= 0


@dataclass(frozen=True, slots=True)
class LotReplay:
    """Result of replaying a transaction stream."""

    lot_costs: tuple[InventoryLotCost, ...]
    open_lots: tuple[OpenLot, ...]

    @property
    def on_hand(self) -> Decimal:
        return sum((lot.remaining for lot in self.open_lots), Decimal("0"))

    @property
    def average_rate(self) -> Decimal:
        """Value-weighted rate of the open lots; zero when nothing is on hand."""
        on_hand = self.on_hand
        if on_hand == 0:
            return Decimal("0")
        value = sum((lot.value for lot in self.open_lots), Decimal("0"))
        return value / on_hand


def consumption_order(
    lots: Iterable[OpenLot],
    cost_method: CostMethod,
) -> list[OpenLot]:
    """Open lots in the order an OUT consumes them."""
    # FIFO: oldest first; LIFO: newest first
    return sorted(
        lots,
        key=lambda lot: (lot.lot_date, lot.lot_number, lot.sequence),
        reverse=cost_method == CostMethod.LIFO,
    )


def receive_lot(
    open_lots: Sequence[OpenLot],
    transaction: InventoryTransaction,
    cost_method: CostMethod,
    sequence: int,
) -> tuple[tuple[OpenLot, ...], InventoryLotCost]:
    """Open a lot for an IN transaction and return the new open lots and its row."""
    lot = OpenLot(
        lot_number=transaction.lot_number,
        lot_date=transaction.date,
        rate=transaction.rate,
        remaining=transaction.quantity,
        transaction_type=transaction.transaction_type,
        transaction_id=transaction.transaction_id,
        sequence=sequence,
    )
    lot_cost = InventoryLotCost(
        item_id=transaction.item_id,
        lot_number=transaction.lot_number,
        direction=TransactionDirection.IN,
        date=transaction.date,
        quantity=transaction.quantity,
        rate=transaction.rate,
        cost=transaction.quantity * transaction.rate,
        remaining=transaction.quantity,
        transaction_type=transaction.transaction_type,
        transaction_id=transaction.transaction_id,
        cost_method=cost_method,
        entry_id=transaction.entry_id,
    )
    if lot.is_depleted:
        return tuple(open_lots), lot_cost
    return (*open_lots, lot), lot_cost


def consume_lots(
    open_lots: Sequence[OpenLot],
    transaction: InventoryTransaction,
    cost_method: CostMethod,
) -> tuple[tuple[OpenLot, ...], tuple[InventoryLotCost, ...]]:
    """
    Consume open lots for an OUT transaction.

    Returns the open lots left afterwards (depleted lots dropped) and one
    OUT lot-cost row per lot touched.

    Raises:
        InsufficientInventoryError: If the OUT exceeds the open quantity.
    """
    available = sum((lot.remaining for lot in open_lots), Decimal("0"))
    if available < transaction.quantity:
        logger.warning("lot_consumption_insufficient_inventory", extra={
            "item_id": str(transaction.item_id),
            "requested_quantity": format(transaction.quantity.normalize(), "f"),
            "available_quantity": format(available.normalize(), "f"),
            "date": transaction.date.isoformat(),
        })
        raise InsufficientInventoryError(
            item_id=str(transaction.item_id),
            requested=transaction.quantity,
            available=available,
            on_date=transaction.date,
        )

    consumed: dict[int, OpenLot] = {}
    lot_costs: list[InventoryLotCost] = []
    to_consume = transaction.quantity

    for lot in consumption_order(open_lots, cost_method):
        if to_consume <= 0:
            break

        quantity = min(to_consume, lot.remaining)
        if quantity <= 0:
            continue
        to_consume -= quantity

        after = replace(lot, remaining=lot.remaining - quantity)
        consumed[lot.sequence] = after
        lot_costs.append(InventoryLotCost(
            item_id=transaction.item_id,
            lot_number=lot.lot_number,
            direction=TransactionDirection.OUT,
            date=transaction.date,
            quantity=quantity,
            rate=lot.rate,
            cost=quantity * lot.rate,
            remaining=after.remaining,
            transaction_type=transaction.transaction_type,
            transaction_id=transaction.transaction_id,
            cost_method=cost_method,
            entry_id=transaction.entry_id,
        ))

    remaining_lots = tuple(
        consumed.get(lot.sequence, lot)
        for lot in open_lots
        if not consumed.get(lot.sequence, lot).is_depleted
    )
    return remaining_lots, tuple(lot_costs)


@traced_engine("lot_tracking", "1.0", fingerprint_fields=("cost_method",))
def replay_lots(
    transactions: Iterable[InventoryTransaction],
    cost_method: CostMethod,
    opening_lots: Sequence[OpenLot] = (),
) -> LotReplay:
    """
    Replay transactions (already in date order) against ``opening_lots``.

    Preconditions:
        cost_method is FIFO or LIFO.

    Raises:
        ValueError: If cost_method is not a lot-tracking method.
        InsufficientInventoryError: If any OUT exceeds the open quantity.
    """
    if cost_method not in LOT_METHODS:
        raise ValueError(f"Lot tracking supports FIFO and LIFO, got {cost_method}")

    open_lots = tuple(opening_lots)
    sequence = max((lot.sequence for lot in open_lots), default=-1) + 1
    lot_costs: list[InventoryLotCost] = []

    for transaction in transactions:
        if transaction.direction == TransactionDirection.IN:
            open_lots, lot_cost = receive_lot(open_lots, transaction, cost_method, sequence)
            sequence += 1
            lot_costs.append(lot_cost)
        else:
            open_lots, out_costs = consume_lots(open_lots, transaction, cost_method)
            lot_costs.extend(out_costs)

    return LotReplay(lot_costs=tuple(lot_costs), open_lots=open_lots)


"""
inventory_engines.average_cost -- Weighted moving average cost.

Responsibility:
    Replay an item's inventory transactions into a single moving average
    cost rate.  IN transactions blend their rate into the average; OUT
    transactions are costed at the current average and leave it unchanged.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The stateful InventoryAverageCost lives in inventory_services/.

Invariants enforced:
    - Negative stock is permitted.  When the quantity on hand before an IN
      is zero or negative, the average restarts at the IN's rate.
    - Averages are quantized to 9 decimal places (the Numeric(38, 9) scale
      of the stored columns).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.types import (
    CostMethod,
    InventoryLotCost,
    InventoryTransaction,
    TransactionDirection,
)

RATE_QUANTUM = Decimal("0.000000001")


@dataclass(frozen=True, slots=True)
class AveragePosition:
    """Quantity on hand and its moving average rate."""

    quantity: Decimal = Decimal("0")
    average_rate: Decimal = Decimal("0")

    @property
    def value(self) -> Decimal:
        return self.quantity * self.average_rate


@dataclass(frozen=True, slots=True)
class AverageReplay:
    lot_costs: tuple[InventoryLotCost, ...]
    closing: AveragePosition


def blend(position: AveragePosition, quantity: Decimal, rate: Decimal) -> AveragePosition:
    """Position after receiving ``quantity`` at ``rate``."""
    new_quantity = position.quantity + quantity
    if position.quantity <= 0 or new_quantity <= 0:
        return AveragePosition(quantity=new_quantity, average_rate=rate)

    average = (position.value + quantity * rate) / new_quantity
    return AveragePosition(
        quantity=new_quantity,
        average_rate=average.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP),
    )


def issue(position: AveragePosition, quantity: Decimal) -> AveragePosition:
    """Position after issuing ``quantity``; the average is unchanged."""
    return AveragePosition(
        quantity=position.quantity - quantity,
        average_rate=position.average_rate,
    )


@traced_engine("average_cost", "1.0", fingerprint_fields=("opening",))
def replay_average(
    transactions: Iterable[InventoryTransaction],
    opening: AveragePosition = AveragePosition(),
) -> AverageReplay:
    """
    Replay transactions (already in date order) from ``opening``.

    One lot-cost row is produced per transaction.  Its ``remaining`` is the
    item's quantity on hand after the transaction.
    """
    position = opening
    lot_costs: list[InventoryLotCost] = []

    for transaction in transactions:
        if transaction.direction == TransactionDirection.IN:
            position = blend(position, transaction.quantity, transaction.rate)
            rate = transaction.rate
        else:
            rate = position.average_rate
            position = issue(position, transaction.quantity)

        lot_costs.append(InventoryLotCost(
            item_id=transaction.item_id,
            lot_number=transaction.lot_number,
            direction=TransactionDirection(transaction.direction),
            date=transaction.date,
            quantity=transaction.quantity,
            rate=rate,
            cost=transaction.quantity * rate,
            remaining=position.quantity,
            transaction_type=transaction.transaction_type,
            transaction_id=transaction.transaction_id,
            cost_method=CostMethod.AVG,
            entry_id=transaction.entry_id,
        ))

    return AverageReplay(lot_costs=tuple(lot_costs), closing=position)

"""
Tests for the FIFO/LIFO lot-tracking engine (inventory_engines.lot_tracking).

Tests cover:
- Lot creation on IN
- FIFO and LIFO consumption order
- Partial consumption across several lots
- Insufficient inventory errors
- Replay from opening lots
- Quantity conservation (property)
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from inventory_engines.lot_tracking import (
    OpenLot,
    consume_lots,
    consumption_order,
    replay_lots,
)
from inventory_kernel.domain.types import (
    CostMethod,
    InventoryTransaction,
    TransactionDirection,
)
from inventory_kernel.exceptions import InsufficientInventoryError

ITEM_ID = uuid4()

IN = TransactionDirection.IN
OUT = TransactionDirection.OUT


def tx(direction, quantity, rate="0", on=date(2024, 1, 1), lot_number=1, transaction_id=1):
    return InventoryTransaction(
        item_id=ITEM_ID,
        quantity=Decimal(quantity),
        rate=Decimal(rate),
        lot_number=lot_number,
        transaction_type="Bill" if direction == IN else "SaleInvoice",
        transaction_id=transaction_id,
        direction=direction,
        date=on,
    )


def purchases():
    return [
        tx(IN, "10", "5", date(2024, 1, 1), lot_number=1, transaction_id=1),
        tx(IN, "10", "7", date(2024, 1, 5), lot_number=2, transaction_id=2),
    ]


class TestReceive:
    def test_in_opens_lot_and_writes_row(self):
        replay = replay_lots([tx(IN, "10", "5")], CostMethod.FIFO)

        assert len(replay.lot_costs) == 1
        row = replay.lot_costs[0]
        assert row.direction == IN
        assert row.cost == Decimal("50")
        assert row.remaining == Decimal("10")
        assert replay.on_hand == Decimal("10")

    def test_zero_quantity_in_opens_no_lot(self):
        replay = replay_lots([tx(IN, "0", "5")], CostMethod.FIFO)

        assert len(replay.lot_costs) == 1
        assert replay.open_lots == ()


class TestConsumptionOrder:
    def test_fifo_consumes_oldest_lot(self):
        replay = replay_lots(
            [*purchases(), tx(OUT, "4", on=date(2024, 1, 10), transaction_id=3)],
            CostMethod.FIFO,
        )

        out = [row for row in replay.lot_costs if row.direction == OUT]
        assert [(row.lot_number, row.quantity, row.rate) for row in out] == [
            (1, Decimal("4"), Decimal("5")),
        ]
        assert out[0].remaining == Decimal("6")

    def test_lifo_consumes_newest_lot(self):
        replay = replay_lots(
            [*purchases(), tx(OUT, "4", on=date(2024, 1, 10), transaction_id=3)],
            CostMethod.LIFO,
        )

        out = [row for row in replay.lot_costs if row.direction == OUT]
        assert [(row.lot_number, row.rate) for row in out] == [(2, Decimal("7"))]
        assert out[0].cost == Decimal("28")

    def test_out_spanning_lots_writes_one_row_per_lot(self):
        replay = replay_lots(
            [*purchases(), tx(OUT, "15", on=date(2024, 1, 10), transaction_id=3)],
            CostMethod.FIFO,
        )

        out = [row for row in replay.lot_costs if row.direction == OUT]
        assert [(row.lot_number, row.quantity) for row in out] == [
            (1, Decimal("10")),
            (2, Decimal("5")),
        ]
        assert sum(row.cost for row in out) == Decimal("85")
        assert [lot.lot_number for lot in replay.open_lots] == [2]
        assert replay.on_hand == Decimal("5")

    def test_same_day_lots_ordered_by_lot_number(self):
        lots = [
            OpenLot(2, date(2024, 1, 1), Decimal("7"), Decimal("1"), "Bill", 2, 0),
            OpenLot(1, date(2024, 1, 1), Decimal("5"), Decimal("1"), "Bill", 1, 1),
        ]

        assert [lot.lot_number for lot in consumption_order(lots, CostMethod.FIFO)] == [1, 2]
        assert [lot.lot_number for lot in consumption_order(lots, CostMethod.LIFO)] == [2, 1]


class TestInsufficientInventory:
    def test_out_exceeding_open_lots_raises(self):
        with pytest.raises(InsufficientInventoryError) as exc_info:
            replay_lots(
                [tx(IN, "3", "5"), tx(OUT, "4", on=date(2024, 1, 2))],
                CostMethod.FIFO,
            )

        assert exc_info.value.requested == Decimal("4")
        assert exc_info.value.available == Decimal("3")
        assert exc_info.value.on_date == date(2024, 1, 2)

    def test_consume_does_not_mutate_input(self):
        lots = (OpenLot(1, date(2024, 1, 1), Decimal("5"), Decimal("10"), "Bill", 1, 0),)

        remaining, _ = consume_lots(lots, tx(OUT, "4"), CostMethod.FIFO)

        assert lots[0].remaining == Decimal("10")
        assert remaining[0].remaining == Decimal("6")

    def test_average_method_rejected(self):
        with pytest.raises(ValueError):
            replay_lots([tx(IN, "1", "1")], CostMethod.AVG)


class TestOpeningLots:
    def test_replay_continues_from_opening_lots(self):
        before = replay_lots(purchases(), CostMethod.FIFO)

        after = replay_lots(
            [tx(OUT, "12", on=date(2024, 2, 1), transaction_id=3)],
            CostMethod.FIFO,
            opening_lots=before.open_lots,
        )

        assert [(row.lot_number, row.quantity) for row in after.lot_costs] == [
            (1, Decimal("10")),
            (2, Decimal("2")),
        ]
        assert after.average_rate == Decimal("7")

    def test_average_rate_of_empty_replay_is_zero(self):
        assert replay_lots([], CostMethod.LIFO).average_rate == Decimal("0")


quantities = st.integers(min_value=1, max_value=50)


class TestConservation:
    @settings(max_examples=50, deadline=None)
    @given(
        ins=st.lists(quantities, min_size=1, max_size=8),
        fraction=st.floats(min_value=0, max_value=1),
        method=st.sampled_from([CostMethod.FIFO, CostMethod.LIFO]),
    )
    def test_consumed_plus_on_hand_equals_received(self, ins, fraction, method):
        received = sum(ins)
        issued = int(received * fraction)
        transactions = [
            tx(IN, str(q), str(n + 1), date(2024, 1, 1 + n), lot_number=n + 1, transaction_id=n + 1)
            for n, q in enumerate(ins)
        ]
        if issued:
            transactions.append(tx(OUT, str(issued), on=date(2024, 2, 1), transaction_id=99))

        replay = replay_lots(transactions, method)

        consumed = sum(
            (row.quantity for row in replay.lot_costs if row.direction == OUT),
            Decimal("0"),
        )
        assert consumed == Decimal(issued)
        assert replay.on_hand == Decimal(received - issued)

"""Tests for inventory_kernel.domain.transformer."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, strategies as st

from inventory_kernel.domain.transformer import transform_item_entries_to_inventory
from inventory_kernel.domain.types import ItemEntry, TransactionDirection
from inventory_kernel.exceptions import MalformedItemEntryError, ValidationError


def _entry(quantity="10", rate="2.5", reference_id=42, reference_type="Bill", **overrides):
    fields = {
        "id": uuid4(),
        "item_id": uuid4(),
        "quantity": Decimal(quantity) if quantity is not None else None,
        "rate": Decimal(rate) if rate is not None else None,
        "reference_type": reference_type,
        "reference_id": reference_id,
    }
    fields.update(overrides)
    return ItemEntry(**fields)


entry_strategy = st.builds(
    ItemEntry,
    id=st.uuids(),
    item_id=st.uuids(),
    quantity=st.decimals(min_value=0, max_value=10_000, places=3),
    rate=st.decimals(min_value=0, max_value=10_000, places=4),
    reference_type=st.sampled_from(["Bill", "SaleInvoice", "InventoryAdjustment"]),
    reference_id=st.integers(min_value=1, max_value=10**6),
)


class TestTransform:
    def test_copies_entry_fields(self):
        entry = _entry()

        [tx] = transform_item_entries_to_inventory(
            [entry], TransactionDirection.IN, date(2024, 3, 1), 7,
        )

        assert tx.item_id == entry.item_id
        assert tx.quantity == Decimal("10")
        assert tx.rate == Decimal("2.5")
        assert tx.transaction_type == "Bill"
        assert tx.transaction_id == 42
        assert tx.entry_id == entry.id
        assert tx.id is None

    def test_stamps_call_arguments(self):
        [tx] = transform_item_entries_to_inventory(
            [_entry()], TransactionDirection.OUT, date(2024, 5, 17), 99,
        )

        assert tx.direction is TransactionDirection.OUT
        assert tx.date == date(2024, 5, 17)
        assert tx.lot_number == 99

    def test_preserves_order(self):
        entries = [_entry(quantity=str(q)) for q in (1, 2, 3)]

        result = transform_item_entries_to_inventory(
            entries, TransactionDirection.IN, date(2024, 1, 1), 1,
        )

        assert [tx.entry_id for tx in result] == [e.id for e in entries]

    def test_empty_input(self):
        assert transform_item_entries_to_inventory(
            [], TransactionDirection.IN, date(2024, 1, 1), 1,
        ) == []

    def test_accepts_direction_value(self):
        [tx] = transform_item_entries_to_inventory(
            [_entry()], "IN", date(2024, 1, 1), 1,
        )
        assert tx.direction is TransactionDirection.IN

    @given(
        entries=st.lists(entry_strategy, max_size=20),
        direction=st.sampled_from(list(TransactionDirection)),
        on=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 1, 1)),
        lot_number=st.integers(min_value=1, max_value=10**9),
    )
    def test_length_and_stamps_hold_for_any_entries(self, entries, direction, on, lot_number):
        result = transform_item_entries_to_inventory(entries, direction, on, lot_number)

        assert len(result) == len(entries)
        for tx in result:
            assert tx.direction is direction
            assert tx.date == on
            assert tx.lot_number == lot_number


class TestMalformedEntries:
    @pytest.mark.parametrize("missing", ["item_id", "quantity", "rate"])
    def test_missing_field_raises(self, missing):
        entry = _entry(**{missing: None})

        with pytest.raises(MalformedItemEntryError) as exc_info:
            transform_item_entries_to_inventory(
                [entry], TransactionDirection.IN, date(2024, 1, 1), 1,
            )

        assert exc_info.value.missing_fields == (missing,)
        assert exc_info.value.entry_id == str(entry.id)

    def test_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            transform_item_entries_to_inventory(
                [_entry(quantity=None, rate=None)],
                TransactionDirection.IN, date(2024, 1, 1), 1,
            )

    def test_reports_all_missing_fields(self):
        with pytest.raises(MalformedItemEntryError) as exc_info:
            transform_item_entries_to_inventory(
                [_entry(item_id=None, quantity=None, rate=None)],
                TransactionDirection.IN, date(2024, 1, 1), 1,
            )

        assert exc_info.value.missing_fields == ("item_id", "quantity", "rate")
        assert exc_info.value.code == "MALFORMED_ITEM_ENTRY"

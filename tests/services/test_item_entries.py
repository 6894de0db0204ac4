"""Tests for ItemEntriesService (inventory_kernel.services.item_entries)."""

from decimal import Decimal

from inventory_kernel.services.item_entries import InventoryEntriesSource, ItemEntriesService


def test_only_inventory_items_returned(db_session, make_item, make_entry):
    widget = make_item("Widget")
    consulting = make_item("Consulting", item_type="service")
    make_entry(widget, index=0)
    make_entry(consulting, index=1)

    entries = ItemEntriesService(db_session).get_inventory_entries(1, "Bill", 42)

    assert [entry.item_id for entry in entries] == [widget.id]


def test_entries_in_line_order(db_session, make_item, make_entry):
    item = make_item()
    make_entry(item, quantity="3", index=2)
    make_entry(item, quantity="1", index=0)
    make_entry(item, quantity="2", index=1)

    entries = ItemEntriesService(db_session).get_inventory_entries(1, "Bill", 42)

    assert [entry.quantity for entry in entries] == [Decimal("1"), Decimal("2"), Decimal("3")]


def test_scoped_to_document_and_tenant(db_session, make_item, make_entry):
    item = make_item()
    make_entry(item, reference_id=42)
    make_entry(item, reference_id=43)
    make_entry(item, reference_type="SaleInvoice", reference_id=42)
    other = make_item("Other tenant widget", tenant_id=2)
    make_entry(other, reference_id=42, tenant_id=2)

    entries = ItemEntriesService(db_session).get_inventory_entries(1, "Bill", 42)

    assert len(entries) == 1
    assert entries[0].reference_type == "Bill"
    assert entries[0].reference_id == 42


def test_document_without_entries(db_session):
    assert ItemEntriesService(db_session).get_inventory_entries(1, "Bill", 999) == []


def test_satisfies_entries_source_port(db_session):
    assert isinstance(ItemEntriesService(db_session), InventoryEntriesSource)

"""
Pytest fixtures for the inventory costing test suite.

Every test gets a fresh in-memory SQLite database with all kernel and batch
tables.  Timestamps come from a DeterministicClock with naive datetimes
(SQLite strips tzinfo).
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import inventory_batch.models  # noqa: F401
import inventory_kernel.models  # noqa: F401
from inventory_kernel.db.base import Base
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.types import (
    CostMethod,
    InventoryTransaction,
    ItemType,
    TransactionDirection,
)
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.models.item import Item, ItemEntry
from inventory_kernel.services.events import EventDispatcher, InventoryEvents

TENANT_ID = 1
OTHER_TENANT_ID = 2


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, recorder):
            recorder.delete_by_document(1, 42, "Bill")
            logs = captured_logs()
            assert any(r["message"] == "inventory_transactions_deleted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    # Use naive datetimes for SQLite compatibility (SQLite strips tzinfo)
    return DeterministicClock(
        fixed_time=datetime(2024, 3, 1, 12, 0, 0),
    )


# =============================================================================
# Event capture
# =============================================================================


class RecordingHandler:
    """Collects every payload delivered for one event name."""

    def __init__(self):
        self.payloads: list = []

    def __call__(self, payload) -> None:
        self.payloads.append(payload)


@pytest.fixture
def events():
    return EventDispatcher()


@pytest.fixture
def recorded_events(events):
    """Map of event name -> RecordingHandler subscribed on ``events``."""
    handlers = {}
    for name in InventoryEvents.ALL:
        handlers[name] = RecordingHandler()
        events.subscribe(name, handlers[name])
    return handlers


# =============================================================================
# Data helpers
# =============================================================================


@pytest.fixture
def make_item(db_session):
    """Factory fixture creating an item and flushing it."""

    def _make(
        name: str = "Widget",
        item_type: str = ItemType.INVENTORY.value,
        cost_method: str = CostMethod.AVG.value,
        tenant_id: int = TENANT_ID,
    ) -> Item:
        item = Item(
            tenant_id=tenant_id,
            name=name,
            type=item_type,
            cost_method=cost_method,
        )
        db_session.add(item)
        db_session.flush()
        return item

    return _make


@pytest.fixture
def make_entry(db_session):
    """Factory fixture creating a document line for an item."""

    def _make(
        item: Item,
        reference_id: int = 42,
        reference_type: str = "Bill",
        quantity: str = "10",
        rate: str = "5",
        index: int = 0,
        tenant_id: int = TENANT_ID,
    ) -> ItemEntry:
        entry = ItemEntry(
            tenant_id=tenant_id,
            reference_type=reference_type,
            reference_id=reference_id,
            item_id=item.id,
            quantity=Decimal(quantity),
            rate=Decimal(rate),
            index=index,
        )
        db_session.add(entry)
        db_session.flush()
        return entry

    return _make


def _build_transaction(
    item_id: UUID,
    quantity: str,
    rate: str,
    direction: TransactionDirection = TransactionDirection.IN,
    on: date = date(2024, 1, 10),
    lot_number: int = 1,
    transaction_type: str = "Bill",
    transaction_id: int = 42,
    entry_id: UUID | None = None,
) -> InventoryTransaction:
    """Build an unsaved InventoryTransaction DTO."""
    return InventoryTransaction(
        item_id=item_id,
        quantity=Decimal(quantity),
        rate=Decimal(rate),
        lot_number=lot_number,
        transaction_type=transaction_type,
        transaction_id=transaction_id,
        direction=direction,
        date=on,
        entry_id=entry_id or uuid4(),
    )


@pytest.fixture
def make_transaction():
    """Builder for unsaved InventoryTransaction DTOs."""
    return _build_transaction

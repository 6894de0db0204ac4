"""
EventDispatcher -- in-process notification bus for inventory lifecycle events.

Responsibility:
    Fire-and-observe dispatch of named events to registered handlers.
    The recorder emits ``transactions_created`` / ``transactions_deleted``;
    the compute scheduler emits ``compute_item_cost_job_scheduled``.

Architecture position:
    Kernel > Services.  Nothing here touches the database.

Invariants enforced:
    - Handlers run in registration order.
    - Handler isolation: an exception in one handler is logged and does not
      prevent the remaining handlers from running, nor does it propagate to
      the emitter (whose own writes have already succeeded).

Failure modes:
    - ValueError from ``subscribe`` for an unknown event name.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from inventory_kernel.domain.types import InventoryTransaction
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.events")


class InventoryEvents:
    """Names of the events emitted by the kernel and the batch layer."""

    COMPUTE_ITEM_COST_JOB_SCHEDULED = "inventory.compute_item_cost_job_scheduled"
    TRANSACTIONS_CREATED = "inventory.transactions_created"
    TRANSACTIONS_DELETED = "inventory.transactions_deleted"

    ALL = frozenset({
        COMPUTE_ITEM_COST_JOB_SCHEDULED,
        TRANSACTIONS_CREATED,
        TRANSACTIONS_DELETED,
    })


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComputeItemCostJobScheduled:
    tenant_id: int
    item_id: UUID
    starting_date: date


@dataclass(frozen=True)
class TransactionsCreated:
    tenant_id: int
    inventory_transactions: tuple[InventoryTransaction, ...]


@dataclass(frozen=True)
class TransactionsDeleted:
    tenant_id: int
    transaction_id: int
    transaction_type: str
    old_inventory_transactions: tuple[InventoryTransaction, ...]


Handler = Callable[[Any], None]


class EventDispatcher:
    """
    Named-event dispatcher.

    Usage:
        dispatcher = EventDispatcher()
        dispatcher.subscribe(InventoryEvents.TRANSACTIONS_CREATED, on_created)
        dispatcher.dispatch(InventoryEvents.TRANSACTIONS_CREATED, payload)
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def subscribe(self, event_name: str, handler: Handler) -> None:
        """Register ``handler`` for ``event_name``."""
        if event_name not in InventoryEvents.ALL:
            raise ValueError(f"Unknown inventory event '{event_name}'")
        self._handlers.setdefault(event_name, []).append(handler)

    def handlers(self, event_name: str) -> tuple[Handler, ...]:
        return tuple(self._handlers.get(event_name, ()))

    def dispatch(self, event_name: str, payload: Any) -> int:
        """
        Deliver ``payload`` to every handler of ``event_name``.

        Returns the number of handlers that completed without raising.
        """
        handlers = self._handlers.get(event_name, [])
        delivered = 0

        for handler in handlers:
            try:
                handler(payload)
                delivered += 1
            except Exception:
                logger.exception(
                    "event_handler_failed",
                    extra={
                        "event_name": event_name,
                        "handler": getattr(handler, "__qualname__", repr(handler)),
                    },
                )

        logger.info(
            "event_dispatched",
            extra={
                "event_name": event_name,
                "handler_count": len(handlers),
                "delivered": delivered,
            },
        )
        return delivered

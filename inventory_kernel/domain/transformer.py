"""
inventory_kernel.domain.transformer -- Item entries to inventory transactions.

Pure function, zero I/O.  Maps business-document line entries into the
inventory-transaction shape recorded by ``InventoryTransactionRecorder``.

Invariants enforced:
    - len(output) == len(entries), order preserved.
    - direction, date and lot_number on every output equal the arguments.

Failure modes:
    - MalformedItemEntryError if an entry lacks item_id, quantity or rate.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from inventory_kernel.domain.types import (
    InventoryTransaction,
    ItemEntry,
    TransactionDirection,
)
from inventory_kernel.exceptions import MalformedItemEntryError

_REQUIRED_FIELDS = ("item_id", "quantity", "rate")


def transform_item_entries_to_inventory(
    entries: Sequence[ItemEntry],
    direction: TransactionDirection,
    transaction_date: date,
    lot_number: int,
) -> list[InventoryTransaction]:
    """Transform item entries into inventory transactions.

    Each entry's reference type/id become the transaction type/id and its
    own id becomes ``entry_id``.

    Raises:
        MalformedItemEntryError: If any entry is missing a required field.
    """
    transactions: list[InventoryTransaction] = []

    for entry in entries:
        missing = tuple(
            name for name in _REQUIRED_FIELDS if getattr(entry, name) is None
        )
        if missing:
            raise MalformedItemEntryError(
                str(entry.id) if entry.id is not None else None, missing,
            )

        transactions.append(
            InventoryTransaction(
                item_id=entry.item_id,
                quantity=entry.quantity,
                rate=entry.rate,
                lot_number=lot_number,
                transaction_type=entry.reference_type,
                transaction_id=entry.reference_id,
                direction=TransactionDirection(direction),
                date=transaction_date,
                entry_id=entry.id,
            )
        )

    return transactions

"""
ItemEntriesService -- reads a document's inventory-typed line entries.

Responsibility:
    Supplies the recorder with the item entries of one business document
    (bill, invoice, adjustment), keeping only entries whose item is
    classified ``inventory``.

Architecture position:
    Kernel > Services (read side).  ``InventoryEntriesSource`` is the port
    the recorder depends on; this class is its SQLAlchemy implementation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.types import ItemEntry as ItemEntryDTO, ItemType
from inventory_kernel.models.item import Item, ItemEntry


@runtime_checkable
class InventoryEntriesSource(Protocol):
    """Port: inventory entries of a document."""

    def get_inventory_entries(
        self,
        tenant_id: int,
        transaction_type: str,
        transaction_id: int,
    ) -> list[ItemEntryDTO]:
        ...


class ItemEntriesService:
    """Entries of a document whose items are inventory items, in line order."""

    def __init__(self, session: Session):
        self._session = session

    def get_inventory_entries(
        self,
        tenant_id: int,
        transaction_type: str,
        transaction_id: int,
    ) -> list[ItemEntryDTO]:
        rows = self._session.execute(
            select(ItemEntry)
            .join(Item, Item.id == ItemEntry.item_id)
            .where(
                ItemEntry.tenant_id == tenant_id,
                ItemEntry.reference_type == transaction_type,
                ItemEntry.reference_id == transaction_id,
                Item.tenant_id == tenant_id,
                Item.type == ItemType.INVENTORY.value,
            )
            .order_by(ItemEntry.index)
        ).scalars().all()

        return [row.to_dto() for row in rows]

"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for items and business-document item entries.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/types.py only.

Invariants enforced:
    - Item.type classifies the item; only ``inventory`` items are costed.
    - Item.cost_method selects the cost strategy (FIFO, LIFO or AVG).
    - ItemEntry rows are addressed by (tenant_id, reference_type, reference_id).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TenantScopedBase, UUIDString
from inventory_kernel.domain.types import CostMethod, ItemEntry as ItemEntryDTO


class Item(TenantScopedBase):
    """
    A catalogue item.

    ``cost_rate`` and ``quantity_on_hand`` are written by the weighted
    average strategy at the end of a compute pass.
    """

    __tablename__ = "items"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    type: Mapped[str] = mapped_column(String(30), nullable=False)

    cost_method: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=CostMethod.AVG.value,
    )

    cost_rate: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    quantity_on_hand: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    entries: Mapped[list["ItemEntry"]] = relationship(
        "ItemEntry",
        back_populates="item",
    )

    def __repr__(self) -> str:
        return f"<Item {self.id}: {self.name} type={self.type} method={self.cost_method}>"


class ItemEntry(TenantScopedBase):
    """A line of a business document (bill, invoice, adjustment)."""

    __tablename__ = "item_entries"

    __table_args__ = (
        Index("ix_item_entries_reference", "tenant_id", "reference_type", "reference_id"),
    )

    reference_type: Mapped[str] = mapped_column(String(50), nullable=False)

    reference_id: Mapped[int] = mapped_column(nullable=False)

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id"),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    rate: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    item: Mapped["Item"] = relationship("Item", back_populates="entries")

    def to_dto(self) -> ItemEntryDTO:
        return ItemEntryDTO(
            id=self.id,
            item_id=self.item_id,
            quantity=self.quantity,
            rate=self.rate,
            reference_type=self.reference_type,
            reference_id=self.reference_id,
        )

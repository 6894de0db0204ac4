"""
Module: inventory_kernel.models.inventory
Responsibility: ORM persistence for inventory transactions and inventory
    lot-cost records.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/types.py only.

Invariants enforced:
    - Transaction identity is (transaction_id, transaction_type, entry_id).
      Rows are immutable; edits delete the document's rows and re-insert.
    - (tenant_id, item_id, date) indexes support the date-ordered replay of
      the cost strategies.
    - Lot-cost rows are owned by the cost strategies: a compute pass deletes
      the item's rows dated on or after its from_date and rewrites them.
"""

from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TenantScopedBase, UUIDString
from inventory_kernel.domain.types import (
    CostMethod,
    InventoryLotCost,
    InventoryTransaction,
    TransactionDirection,
)


class InventoryTransactionModel(TenantScopedBase):
    """Persistent inventory transaction."""

    __tablename__ = "inventory_transactions"

    __table_args__ = (
        Index(
            "ix_inventory_transactions_document",
            "tenant_id", "transaction_type", "transaction_id",
        ),
        Index("ix_inventory_transactions_item_date", "tenant_id", "item_id", "date"),
    )

    item_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    rate: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    lot_number: Mapped[int] = mapped_column(nullable=False)

    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)

    transaction_id: Mapped[int] = mapped_column(nullable=False)

    direction: Mapped[str] = mapped_column(String(3), nullable=False)

    date: Mapped[date_type] = mapped_column(Date, nullable=False)

    entry_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def to_dto(self) -> InventoryTransaction:
        return InventoryTransaction(
            id=self.id,
            item_id=self.item_id,
            quantity=self.quantity,
            rate=self.rate,
            lot_number=self.lot_number,
            transaction_type=self.transaction_type,
            transaction_id=self.transaction_id,
            direction=TransactionDirection(self.direction),
            date=self.date,
            entry_id=self.entry_id,
        )

    @classmethod
    def from_dto(
        cls, dto: InventoryTransaction, tenant_id: int,
    ) -> InventoryTransactionModel:
        return cls(
            tenant_id=tenant_id,
            item_id=dto.item_id,
            quantity=dto.quantity,
            rate=dto.rate,
            lot_number=dto.lot_number,
            transaction_type=dto.transaction_type,
            transaction_id=dto.transaction_id,
            direction=TransactionDirection(dto.direction).value,
            date=dto.date,
            entry_id=dto.entry_id,
        )

    def __repr__(self) -> str:
        return (
            f"<InventoryTransaction {self.id}: {self.direction} "
            f"item={self.item_id} qty={self.quantity} @ {self.rate} lot={self.lot_number}>"
        )


class InventoryLotCostModel(TenantScopedBase):
    """Persistent lot production / consumption record."""

    __tablename__ = "inventory_lot_costs"

    __table_args__ = (
        Index("ix_inventory_lot_costs_item_date", "tenant_id", "item_id", "date"),
        Index("ix_inventory_lot_costs_lot", "tenant_id", "item_id", "lot_number"),
    )

    item_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    lot_number: Mapped[int] = mapped_column(nullable=False)

    direction: Mapped[str] = mapped_column(String(3), nullable=False)

    date: Mapped[date_type] = mapped_column(Date, nullable=False)

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    rate: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    cost: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    remaining: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)

    transaction_id: Mapped[int] = mapped_column(nullable=False)

    entry_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    cost_method: Mapped[str] = mapped_column(String(10), nullable=False)

    def to_dto(self) -> InventoryLotCost:
        return InventoryLotCost(
            id=self.id,
            item_id=self.item_id,
            lot_number=self.lot_number,
            direction=TransactionDirection(self.direction),
            date=self.date,
            quantity=self.quantity,
            rate=self.rate,
            cost=self.cost,
            remaining=self.remaining,
            transaction_type=self.transaction_type,
            transaction_id=self.transaction_id,
            cost_method=CostMethod(self.cost_method),
            entry_id=self.entry_id,
        )

    @classmethod
    def from_dto(cls, dto: InventoryLotCost, tenant_id: int) -> InventoryLotCostModel:
        return cls(
            tenant_id=tenant_id,
            item_id=dto.item_id,
            lot_number=dto.lot_number,
            direction=TransactionDirection(dto.direction).value,
            date=dto.date,
            quantity=dto.quantity,
            rate=dto.rate,
            cost=dto.cost,
            remaining=dto.remaining,
            transaction_type=dto.transaction_type,
            transaction_id=dto.transaction_id,
            entry_id=dto.entry_id,
            cost_method=CostMethod(dto.cost_method).value,
        )

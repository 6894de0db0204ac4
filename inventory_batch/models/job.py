"""
ORM model for the delayed job queue.

Contract:
    ComputeJobModel persists one delayed job: its name, JSON payload, the
    filterable fields lifted from the payload, and its run bookkeeping.
    ``to_dto()`` returns the frozen ComputeJob.

Architecture: inventory_batch/models.  Imports from inventory_kernel.db.base
    and inventory_batch.domain only.

Invariants enforced:
    - ``next_run_at`` is NULL for every job that is no longer pending.
    - (name, tenant_id, item_id, status) index backs the scheduler's
      cancel and covering-job queries.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Date, DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from inventory_batch.domain.types import ComputeJob, ComputeJobStatus
from inventory_kernel.db.base import Base, UUIDString


class ComputeJobModel(Base):
    """Persistent delayed job."""

    __tablename__ = "compute_jobs"

    __table_args__ = (
        Index("ix_compute_jobs_lookup", "name", "tenant_id", "item_id", "status"),
        Index("ix_compute_jobs_due", "status", "next_run_at"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    tenant_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    item_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    starting_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    next_run_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    last_run_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    failed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    fail_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def to_dto(self) -> ComputeJob:
        return ComputeJob(
            id=self.id,
            name=self.name,
            status=ComputeJobStatus(self.status),
            payload=dict(self.payload or {}),
            tenant_id=self.tenant_id,
            item_id=self.item_id,
            starting_date=self.starting_date,
            next_run_at=self.next_run_at,
            last_run_at=self.last_run_at,
            failed_at=self.failed_at,
            fail_reason=self.fail_reason,
        )

    def __repr__(self) -> str:
        return (
            f"<ComputeJob {self.id}: {self.name} {self.status} "
            f"tenant={self.tenant_id} item={self.item_id} from={self.starting_date}>"
        )

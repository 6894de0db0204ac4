"""
inventory_batch.domain.types -- Pure frozen dataclasses for the job queue.

ZERO I/O.  Frozen dataclasses with enum status fields, in the manner of the
kernel domain types.

Invariants enforced:
    - A job is pending iff ``status`` is PENDING and ``next_run_at`` is set.
      Every transition out of PENDING clears ``next_run_at``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class ComputeJobStatus(str, Enum):
    """Delayed job lifecycle status."""

    PENDING = "pending"  # Waiting for next_run_at
    RUNNING = "running"  # Picked up by a worker
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # Superseded before it ran


@dataclass(frozen=True)
class ComputeJob:
    """Immutable snapshot of a delayed job.

    ``tenant_id``, ``item_id`` and ``starting_date`` are lifted from the
    payload so jobs can be filtered on them.
    """

    id: UUID
    name: str
    status: ComputeJobStatus
    payload: dict[str, Any] = field(default_factory=dict)
    tenant_id: int | None = None
    item_id: UUID | None = None
    starting_date: date | None = None
    next_run_at: datetime | None = None
    last_run_at: datetime | None = None
    failed_at: datetime | None = None
    fail_reason: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is ComputeJobStatus.PENDING and self.next_run_at is not None


@dataclass(frozen=True)
class JobFilter:
    """Declarative filter over queued jobs.

    ``None`` fields do not constrain.  ``pending_only`` keeps jobs that are
    still waiting to run.
    """

    name: str | None = None
    tenant_id: int | None = None
    item_id: UUID | None = None
    starting_date_gt: date | None = None
    starting_date_lte: date | None = None
    pending_only: bool = True

"""
ComputeItemCostScheduler -- Coalescing scheduler for item cost recompute jobs.

Contract:
    ``schedule_compute_item_cost(tenant_id, item_id, starting_date)``
    leaves exactly one pending frontier job for (tenant, item): the one
    with the earliest starting date.  A recompute from that date runs
    forward and covers every later request.

Architecture: inventory_batch/services.  Uses JobQueue for persistence and
    the kernel EventDispatcher for the ``job scheduled`` notification.

Invariants enforced:
    - Superseded jobs (pending, later starting date) are cancelled.
    - No job is enqueued while a pending job with an equal or earlier
      starting date exists.
    - Cancel, check and enqueue run after the item row is locked with
      ``SELECT ... FOR UPDATE``, so concurrent calls for one (tenant, item)
      serialize on PostgreSQL.  SQLite ignores FOR UPDATE; there two
      concurrent callers can still both enqueue.

Non-goals:
    - Does NOT commit -- the caller's transaction must commit for the
      lock to be released and the job to become visible to workers.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_batch.domain.types import ComputeJob, JobFilter
from inventory_batch.services.job_queue import JobQueue
from inventory_kernel.domain.clock import Clock
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.item import Item
from inventory_kernel.services.events import (
    ComputeItemCostJobScheduled,
    EventDispatcher,
    InventoryEvents,
)

if TYPE_CHECKING:
    from inventory_config.schema import CostingConfig

logger = get_logger("batch.compute_scheduler")

DEFAULT_JOB_NAME = "compute-item-cost"
DEFAULT_DELAY = "30 seconds"


class ComputeItemCostScheduler:
    """Schedules ``compute-item-cost`` jobs with temporal coalescing.

    Usage:
        scheduler = ComputeItemCostScheduler(session, dispatcher, clock)
        job = scheduler.schedule_compute_item_cost(1, item_id, date(2024, 3, 1))
        session.commit()
    """

    def __init__(
        self,
        session: Session,
        event_dispatcher: EventDispatcher | None = None,
        clock: Clock | None = None,
        delay: str = DEFAULT_DELAY,
        job_name: str = DEFAULT_JOB_NAME,
        job_queue: JobQueue | None = None,
    ):
        self._session = session
        self._events = event_dispatcher or EventDispatcher()
        self._queue = job_queue or JobQueue(session, clock)
        self._delay = delay
        self._job_name = job_name

    @classmethod
    def from_config(
        cls,
        session: Session,
        config: CostingConfig,
        event_dispatcher: EventDispatcher | None = None,
        clock: Clock | None = None,
    ) -> ComputeItemCostScheduler:
        return cls(
            session,
            event_dispatcher=event_dispatcher,
            clock=clock,
            delay=config.schedule_compute_item_cost,
            job_name=config.compute_job_name,
        )

    @property
    def job_name(self) -> str:
        return self._job_name

    def schedule_compute_item_cost(
        self,
        tenant_id: int,
        item_id: UUID,
        starting_date: date,
    ) -> ComputeJob | None:
        """Request a recompute of ``item_id`` from ``starting_date``.

        Returns the enqueued job, or None when a pending job with an equal
        or earlier starting date already covers the request.
        """
        with LogContext.bind(tenant_id=tenant_id, item_id=item_id):
            self._lock_item(tenant_id, item_id)

            cancelled = self._queue.cancel(JobFilter(
                name=self._job_name,
                tenant_id=tenant_id,
                item_id=item_id,
                starting_date_gt=starting_date,
            ))

            covering = self._queue.jobs(JobFilter(
                name=self._job_name,
                tenant_id=tenant_id,
                item_id=item_id,
                starting_date_lte=starting_date,
            ))
            if covering:
                logger.info(
                    "compute_job_covered",
                    extra={
                        "starting_date": starting_date.isoformat(),
                        "covering_job_id": str(covering[0].id),
                        "covering_starting_date": covering[0].starting_date,
                        "cancelled": cancelled,
                    },
                )
                return None

            job = self._queue.schedule(
                self._delay,
                self._job_name,
                {
                    "tenant_id": tenant_id,
                    "item_id": item_id,
                    "starting_date": starting_date,
                },
            )

            logger.info(
                "compute_job_scheduled",
                extra={
                    "job_id": str(job.id),
                    "starting_date": starting_date.isoformat(),
                    "next_run_at": job.next_run_at,
                    "cancelled": cancelled,
                },
            )

            self._events.dispatch(
                InventoryEvents.COMPUTE_ITEM_COST_JOB_SCHEDULED,
                ComputeItemCostJobScheduled(
                    tenant_id=tenant_id,
                    item_id=item_id,
                    starting_date=starting_date,
                ),
            )
            return job

    def _lock_item(self, tenant_id: int, item_id: UUID) -> None:
        # A missing item is not an error here; the worker reports it.
        self._session.execute(
            select(Item.id)
            .where(Item.tenant_id == tenant_id, Item.id == item_id)
            .with_for_update()
        ).first()

"""
JobQueue -- Delayed job queue over the ``compute_jobs`` table.

Contract:
    ``schedule(delay, name, payload)`` enqueues a job to run after a delay.
    ``cancel(filter)`` cancels matching pending jobs, ``jobs(filter)`` lists
    matching jobs, ``due_jobs(now)`` returns pending jobs whose run time has
    come.  ``mark_*`` record the run lifecycle.

Architecture: inventory_batch/services.  Uses inventory_batch.domain for
    pure delay parsing and inventory_batch.models for persistence.

Invariants enforced:
    - All timestamps come from the injected Clock.
    - Only PENDING jobs can be cancelled or started; leaving PENDING always
      clears ``next_run_at``.
    - Payloads are stored as JSON: UUID, date, datetime and Decimal values
      are stored as strings.

Non-goals:
    - Does NOT commit -- the scheduler's caller or the worker owns the
      transaction.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_batch.domain.schedule import parse_delay
from inventory_batch.domain.types import ComputeJob, ComputeJobStatus, JobFilter
from inventory_batch.models.job import ComputeJobModel
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import JobNotFoundError
from inventory_kernel.logging_config import get_logger

logger = get_logger("batch.job_queue")


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _as_uuid(value: Any) -> UUID | None:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _as_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class JobQueue:
    """Delayed job queue.

    Contract:
        - ``schedule`` returns the new pending job.
        - ``cancel`` returns the number of jobs cancelled.
        - ``jobs`` and ``due_jobs`` return frozen ComputeJob snapshots.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Enqueue / cancel / query
    # -------------------------------------------------------------------------

    def schedule(
        self,
        delay: str | int,
        name: str,
        payload: dict[str, Any],
    ) -> ComputeJob:
        """Enqueue ``name`` with ``payload`` to run after ``delay``.

        Raises:
            InvalidScheduleDelayError: If ``delay`` cannot be parsed.
        """
        next_run_at = self._clock.now() + parse_delay(delay)

        model = ComputeJobModel(
            name=name,
            status=ComputeJobStatus.PENDING.value,
            payload=_json_safe(payload),
            tenant_id=payload.get("tenant_id"),
            item_id=_as_uuid(payload.get("item_id")),
            starting_date=_as_date(payload.get("starting_date")),
            next_run_at=next_run_at,
        )
        self._session.add(model)
        self._session.flush()

        logger.info(
            "job_scheduled",
            extra={
                "job_id": str(model.id),
                "job_name": name,
                "next_run_at": next_run_at,
            },
        )
        return model.to_dto()

    def cancel(self, job_filter: JobFilter) -> int:
        """Cancel the pending jobs matching ``job_filter``.

        Jobs that are no longer pending are never cancelled, whatever
        ``job_filter.pending_only`` says.
        """
        models = self._select(job_filter, pending_only=True)
        for model in models:
            model.status = ComputeJobStatus.CANCELLED.value
            model.next_run_at = None
        self._session.flush()

        if models:
            logger.info(
                "jobs_cancelled",
                extra={
                    "job_name": job_filter.name,
                    "tenant_id": job_filter.tenant_id,
                    "item_id": str(job_filter.item_id) if job_filter.item_id else None,
                    "count": len(models),
                },
            )
        return len(models)

    def jobs(self, job_filter: JobFilter) -> list[ComputeJob]:
        """Jobs matching ``job_filter``, oldest starting date first."""
        return [
            model.to_dto()
            for model in self._select(job_filter, pending_only=job_filter.pending_only)
        ]

    def get(self, job_id: UUID) -> ComputeJob:
        return self._get_model(job_id).to_dto()

    def due_jobs(
        self,
        now: datetime | None = None,
        name: str | None = None,
        limit: int | None = None,
    ) -> list[ComputeJob]:
        """Pending jobs with ``next_run_at <= now``, earliest first."""
        now = now or self._clock.now()

        stmt = (
            select(ComputeJobModel)
            .where(
                ComputeJobModel.status == ComputeJobStatus.PENDING.value,
                ComputeJobModel.next_run_at.is_not(None),
                ComputeJobModel.next_run_at <= now,
            )
            .order_by(ComputeJobModel.next_run_at, ComputeJobModel.created_at)
        )
        if name is not None:
            stmt = stmt.where(ComputeJobModel.name == name)
        if limit is not None:
            stmt = stmt.limit(limit)

        return [model.to_dto() for model in self._session.execute(stmt).scalars().all()]

    # -------------------------------------------------------------------------
    # Run lifecycle
    # -------------------------------------------------------------------------

    def mark_running(self, job_id: UUID) -> bool:
        """Move a pending job to RUNNING.

        Returns False (and changes nothing) if the job is no longer pending,
        e.g. it was cancelled after the worker listed it.
        """
        model = self._get_model(job_id, for_update=True)
        if model.status != ComputeJobStatus.PENDING.value:
            logger.info(
                "job_not_pending",
                extra={"job_id": str(job_id), "status": model.status},
            )
            return False

        model.status = ComputeJobStatus.RUNNING.value
        model.next_run_at = None
        model.last_run_at = self._clock.now()
        self._session.flush()
        return True

    def mark_completed(self, job_id: UUID) -> None:
        model = self._get_model(job_id)
        model.status = ComputeJobStatus.COMPLETED.value
        model.next_run_at = None
        self._session.flush()

    def mark_failed(self, job_id: UUID, reason: str) -> None:
        model = self._get_model(job_id)
        model.status = ComputeJobStatus.FAILED.value
        model.next_run_at = None
        model.failed_at = self._clock.now()
        model.fail_reason = reason
        self._session.flush()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _get_model(self, job_id: UUID, for_update: bool = False) -> ComputeJobModel:
        stmt = select(ComputeJobModel).where(ComputeJobModel.id == job_id)
        if for_update:
            stmt = stmt.with_for_update()
        model = self._session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise JobNotFoundError(str(job_id))
        return model

    def _select(self, job_filter: JobFilter, pending_only: bool) -> list[ComputeJobModel]:
        stmt = select(ComputeJobModel)

        if job_filter.name is not None:
            stmt = stmt.where(ComputeJobModel.name == job_filter.name)
        if job_filter.tenant_id is not None:
            stmt = stmt.where(ComputeJobModel.tenant_id == job_filter.tenant_id)
        if job_filter.item_id is not None:
            stmt = stmt.where(ComputeJobModel.item_id == job_filter.item_id)
        if job_filter.starting_date_gt is not None:
            stmt = stmt.where(ComputeJobModel.starting_date > job_filter.starting_date_gt)
        if job_filter.starting_date_lte is not None:
            stmt = stmt.where(ComputeJobModel.starting_date <= job_filter.starting_date_lte)
        if pending_only:
            stmt = stmt.where(
                ComputeJobModel.status == ComputeJobStatus.PENDING.value,
                ComputeJobModel.next_run_at.is_not(None),
            )

        stmt = stmt.order_by(ComputeJobModel.starting_date, ComputeJobModel.created_at)
        return list(self._session.execute(stmt).scalars().all())

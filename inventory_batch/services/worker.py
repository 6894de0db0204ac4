"""
ComputeCostWorker -- In-process polling worker for compute-item-cost jobs.

Contract:
    Polls the job queue for due ``compute-item-cost`` jobs and runs each one
    through ``CostComputeDispatcher.compute_item_cost`` while holding the
    tenant's running-flag lease.

Architecture: inventory_batch/services.  Composes JobQueue,
    CostComputeRunningFlag (kernel) and CostComputeDispatcher (services).

Invariants enforced:
    - All timestamps from the injected Clock.
    - One transaction per job: the computation and the COMPLETED mark
      commit together; on failure both roll back and the job is marked
      FAILED in a fresh transaction.
    - The lease is taken and released in transactions of its own, so other
      workers see it while the computation runs, and it is released on
      every exit path.
    - A job whose tenant already holds an unexpired lease stays pending and
      is retried on a later tick.
    - Graceful shutdown: the stop signal is checked between jobs.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from inventory_batch.domain.types import ComputeJob
from inventory_batch.services.compute_scheduler import DEFAULT_JOB_NAME
from inventory_batch.services.job_queue import JobQueue
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import CostComputeAlreadyRunningError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.running_flag import CostComputeRunningFlag
from inventory_services.cost_dispatcher import CostComputeDispatcher

if TYPE_CHECKING:
    from inventory_config.schema import CostingConfig

logger = get_logger("batch.worker")


class ComputeCostWorker:
    """Polling worker for item cost recompute jobs.

    Contract:
        - ``tick()`` runs every due job once and returns how many completed.
        - ``start()`` / ``stop()`` for background thread operation.

    Non-goals:
        - NOT a distributed queue runtime; several workers may poll the same
          table, relying on row locks and the tenant lease.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        dispatcher_factory: Callable[[Session], CostComputeDispatcher] | None = None,
        clock: Clock | None = None,
        job_name: str = DEFAULT_JOB_NAME,
        tick_interval_seconds: int = 30,
        lease_seconds: int = 3600,
        batch_size: int | None = None,
    ):
        self._session_factory = session_factory
        self._dispatcher_factory = dispatcher_factory or CostComputeDispatcher
        self._clock = clock or SystemClock()
        self._job_name = job_name
        self._tick_interval = tick_interval_seconds
        self._lease_seconds = lease_seconds
        self._batch_size = batch_size
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_config(
        cls,
        session_factory: Callable[[], Session],
        config: CostingConfig,
        clock: Clock | None = None,
    ) -> ComputeCostWorker:
        return cls(
            session_factory,
            clock=clock,
            job_name=config.compute_job_name,
            tick_interval_seconds=config.worker_tick_seconds,
            lease_seconds=config.running_lease_seconds,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> int:
        """Run due jobs (public for testing).

        Returns the number of jobs that completed.
        """
        try:
            jobs = self._due_jobs()
        except Exception:
            logger.exception("worker_tick_failed")
            return 0

        completed = 0
        for job in jobs:
            if self._stop_event.is_set():
                break
            if self.run_job(job):
                completed += 1
        return completed

    def run_job(self, job: ComputeJob) -> bool:
        """Run one job.  Returns True if it completed."""
        with LogContext.bind(job_id=job.id, tenant_id=job.tenant_id, item_id=job.item_id):
            if not self._acquire_lease(job):
                return False
            try:
                return self._execute(job)
            finally:
                self._release_lease(job)

    def start(self) -> None:
        """Start the worker in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="compute-cost-worker",
            daemon=True,
        )
        self._thread.start()
        logger.info("worker_started", extra={"tick_interval": self._tick_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the current job to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("worker_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("worker_tick_exception")
            self._stop_event.wait(timeout=self._tick_interval)

    def _due_jobs(self) -> list[ComputeJob]:
        session = self._session_factory()
        try:
            return JobQueue(session, self._clock).due_jobs(
                name=self._job_name, limit=self._batch_size,
            )
        finally:
            session.close()

    def _flag(self, session: Session) -> CostComputeRunningFlag:
        return CostComputeRunningFlag(session, self._clock, self._lease_seconds)

    def _acquire_lease(self, job: ComputeJob) -> bool:
        session = self._session_factory()
        try:
            self._flag(session).acquire(job.tenant_id)
            session.commit()
            return True
        except CostComputeAlreadyRunningError:
            session.rollback()
            logger.info("compute_job_deferred_tenant_busy")
            return False
        finally:
            session.close()

    def _release_lease(self, job: ComputeJob) -> None:
        session = self._session_factory()
        try:
            self._flag(session).release(job.tenant_id)
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("cost_compute_lease_release_failed")
            raise
        finally:
            session.close()

    def _execute(self, job: ComputeJob) -> bool:
        session = self._session_factory()
        try:
            queue = JobQueue(session, self._clock)
            if not queue.mark_running(job.id):
                session.commit()
                return False

            result = self._dispatcher_factory(session).compute_item_cost(
                job.tenant_id, job.starting_date, job.item_id,
            )
            queue.mark_completed(job.id)
            session.commit()

            logger.info(
                "compute_job_completed",
                extra={
                    "cost_method": result.cost_method.value,
                    "lot_costs": len(result.lot_costs),
                },
            )
            return True

        except Exception as exc:
            session.rollback()
            reason = f"{getattr(exc, 'code', type(exc).__name__)}: {exc}"
            logger.exception("compute_job_failed", extra={"fail_reason": reason})

            JobQueue(session, self._clock).mark_failed(job.id, reason)
            session.commit()
            return False

        finally:
            session.close()

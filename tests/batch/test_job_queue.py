"""Tests for JobQueue (inventory_batch.services.job_queue)."""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest

from inventory_batch.domain.types import ComputeJobStatus, JobFilter
from inventory_batch.services.job_queue import JobQueue
from inventory_kernel.exceptions import InvalidScheduleDelayError, JobNotFoundError

JOB_NAME = "compute-item-cost"
TENANT_ID = 1


@pytest.fixture
def queue(db_session, clock):
    return JobQueue(db_session, clock)


def _payload(item_id, starting_date, tenant_id=TENANT_ID):
    return {"tenant_id": tenant_id, "item_id": item_id, "starting_date": starting_date}


class TestSchedule:
    def test_schedules_pending_job_after_delay(self, queue, clock):
        item_id = uuid4()

        job = queue.schedule("30 seconds", JOB_NAME, _payload(item_id, date(2024, 3, 1)))

        assert job.status == ComputeJobStatus.PENDING
        assert job.is_pending
        assert job.next_run_at == clock.now() + timedelta(seconds=30)
        assert job.tenant_id == TENANT_ID
        assert job.item_id == item_id
        assert job.starting_date == date(2024, 3, 1)

    def test_payload_stored_as_json(self, queue):
        item_id = uuid4()

        job = queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 3, 1)))

        assert queue.get(job.id).payload == {
            "tenant_id": TENANT_ID,
            "item_id": str(item_id),
            "starting_date": "2024-03-01",
        }

    def test_invalid_delay(self, queue):
        with pytest.raises(InvalidScheduleDelayError):
            queue.schedule("eventually", JOB_NAME, {})


class TestCancelAndQuery:
    def test_cancel_matching_pending_jobs(self, queue):
        item_id = uuid4()
        early = queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 1, 1)))
        late = queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 2, 1)))

        cancelled = queue.cancel(JobFilter(
            name=JOB_NAME, item_id=item_id, starting_date_gt=date(2024, 1, 15),
        ))

        assert cancelled == 1
        assert queue.get(late.id).status == ComputeJobStatus.CANCELLED
        assert queue.get(late.id).next_run_at is None
        assert queue.get(early.id).is_pending

    def test_cancel_never_touches_running_jobs(self, queue):
        item_id = uuid4()
        job = queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 2, 1)))
        queue.mark_running(job.id)

        assert queue.cancel(JobFilter(item_id=item_id, pending_only=False)) == 0
        assert queue.get(job.id).status == ComputeJobStatus.RUNNING

    def test_jobs_ordered_by_starting_date(self, queue):
        item_id = uuid4()
        queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 3, 1)))
        queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 1, 1)))
        queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 2, 1)))

        jobs = queue.jobs(JobFilter(name=JOB_NAME, item_id=item_id))

        assert [job.starting_date for job in jobs] == [date(2024, 1, 1), date(2024, 3, 1)]

    def test_jobs_filter_by_tenant_and_date(self, queue):
        item_id = uuid4()
        queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 1, 1)))
        queue.schedule("now", JOB_NAME, _payload(item_id, date(2024, 1, 1), tenant_id=2))

        jobs = queue.jobs(JobFilter(
            tenant_id=TENANT_ID, item_id=item_id, starting_date_lte=date(2024, 1, 1),
        ))

        assert [job.tenant_id for job in jobs] == [TENANT_ID]

    def test_get_unknown_job(self, queue):
        with pytest.raises(JobNotFoundError):
            queue.get(uuid4())


class TestDueJobs:
    def test_only_due_pending_jobs(self, queue, clock):
        due = queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))
        queue.schedule("5 minutes", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))
        cancelled = queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))
        queue.cancel(JobFilter(item_id=cancelled.item_id))

        assert [job.id for job in queue.due_jobs()] == [due.id]

        clock.advance(300)
        assert len(queue.due_jobs()) == 2

    def test_filters_by_name_and_limit(self, queue):
        queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))
        queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))
        queue.schedule("now", "other-job", {})

        assert len(queue.due_jobs(name=JOB_NAME)) == 2
        assert len(queue.due_jobs(name=JOB_NAME, limit=1)) == 1

    def test_explicit_now(self, queue):
        queue.schedule("1 hour", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))

        assert queue.due_jobs(now=datetime(2024, 3, 1, 14, 0, 0)) != []


class TestLifecycle:
    def test_mark_running_then_completed(self, queue, clock):
        job = queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))

        assert queue.mark_running(job.id) is True
        running = queue.get(job.id)
        assert running.status == ComputeJobStatus.RUNNING
        assert running.last_run_at == clock.now()
        assert running.next_run_at is None

        queue.mark_completed(job.id)
        assert queue.get(job.id).status == ComputeJobStatus.COMPLETED

    def test_mark_running_refuses_cancelled_job(self, queue):
        job = queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))
        queue.cancel(JobFilter(item_id=job.item_id))

        assert queue.mark_running(job.id) is False
        assert queue.get(job.id).status == ComputeJobStatus.CANCELLED

    def test_mark_failed_records_reason(self, queue, clock):
        job = queue.schedule("now", JOB_NAME, _payload(uuid4(), date(2024, 1, 1)))
        queue.mark_running(job.id)

        queue.mark_failed(job.id, "INSUFFICIENT_INVENTORY: not enough stock")

        failed = queue.get(job.id)
        assert failed.status == ComputeJobStatus.FAILED
        assert failed.failed_at == clock.now()
        assert failed.fail_reason == "INSUFFICIENT_INVENTORY: not enough stock"

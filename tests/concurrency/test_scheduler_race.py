"""
Concurrency tests for compute job scheduling and lot number allocation.

The SQLite test documents the interleaving that row locks are there to
prevent: SQLite ignores ``SELECT ... FOR UPDATE``, so two schedulers that
interleave can both enqueue a frontier job.  The PostgreSQL tests run real
threads against INVENTORY_TEST_DATABASE_URL and are skipped without it.
"""

import os
import threading
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import inventory_batch.models  # noqa: F401
import inventory_kernel.models  # noqa: F401
from inventory_batch.domain.types import JobFilter
from inventory_batch.services.compute_scheduler import ComputeItemCostScheduler
from inventory_batch.services.job_queue import JobQueue
from inventory_kernel.db.base import Base
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.models.item import Item
from inventory_kernel.services.lot_sequencer import LotNumberSequencer

TENANT_ID = 1
POSTGRES_URL = os.environ.get("INVENTORY_TEST_DATABASE_URL")


def _create_item(factory) -> Item:
    session = factory()
    try:
        item = Item(tenant_id=TENANT_ID, name="Widget", type="inventory")
        session.add(item)
        session.commit()
        return item
    finally:
        session.close()


def _pending_jobs(factory, clock, item_id):
    session = factory()
    try:
        return JobQueue(session, clock).jobs(JobFilter(tenant_id=TENANT_ID, item_id=item_id))
    finally:
        session.close()


@pytest.fixture
def file_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


def test_sqlite_interleaving_can_enqueue_two_frontier_jobs(file_factory, clock):
    item = _create_item(file_factory)
    session_a = file_factory()
    session_b = file_factory()
    try:
        scheduler_a = ComputeItemCostScheduler(session_a, clock=clock)
        scheduler_b = ComputeItemCostScheduler(session_b, clock=clock)
        enqueue = scheduler_a._queue.schedule

        def interleaved(*args, **kwargs):
            # B completes between A's covering check and A's insert
            scheduler_b.schedule_compute_item_cost(TENANT_ID, item.id, date(2024, 3, 1))
            session_b.commit()
            return enqueue(*args, **kwargs)

        scheduler_a._queue.schedule = interleaved
        scheduler_a.schedule_compute_item_cost(TENANT_ID, item.id, date(2024, 3, 10))
        session_a.commit()
    finally:
        session_a.close()
        session_b.close()

    pending = _pending_jobs(file_factory, clock, item.id)
    assert sorted(job.starting_date for job in pending) == [date(2024, 3, 1), date(2024, 3, 10)]


# =============================================================================
# PostgreSQL
# =============================================================================


@pytest.fixture
def pg_factory():
    if not POSTGRES_URL:
        pytest.skip("INVENTORY_TEST_DATABASE_URL not set")
    engine = create_engine(POSTGRES_URL, isolation_level="READ COMMITTED")
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    Base.metadata.drop_all(engine)
    engine.dispose()


def _run_threads(count, target):
    barrier = threading.Barrier(count)
    errors = []

    def runner(n):
        try:
            barrier.wait()
            target(n)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=runner, args=(n,)) for n in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    assert errors == []


@pytest.mark.postgres
def test_concurrent_scheduling_leaves_one_frontier_job(pg_factory):
    clock = DeterministicClock(datetime(2024, 3, 1, 12, 0, 0))
    item = _create_item(pg_factory)

    def schedule(n):
        session = pg_factory()
        try:
            ComputeItemCostScheduler(session, clock=clock).schedule_compute_item_cost(
                TENANT_ID, item.id, date(2024, 3, 1 + n),
            )
            session.commit()
        finally:
            session.close()

    _run_threads(8, schedule)

    pending = _pending_jobs(pg_factory, clock, item.id)
    assert [job.starting_date for job in pending] == [date(2024, 3, 1)]


@pytest.mark.postgres
def test_concurrent_lot_numbers_are_unique(pg_factory):
    issued = []
    lock = threading.Lock()

    def allocate(n):
        session = pg_factory()
        try:
            lot_number = LotNumberSequencer(session).increment_and_get(TENANT_ID)
            session.commit()
            with lock:
                issued.append(lot_number)
        finally:
            session.close()

    _run_threads(10, allocate)

    assert sorted(issued) == list(range(1, 11))

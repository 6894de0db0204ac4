"""
inventory_batch.domain -- Pure types and delay parsing for the job queue.

ZERO I/O.
"""

from inventory_batch.domain.schedule import parse_delay
from inventory_batch.domain.types import ComputeJob, ComputeJobStatus, JobFilter

__all__ = [
    "ComputeJob",
    "ComputeJobStatus",
    "JobFilter",
    "parse_delay",
]

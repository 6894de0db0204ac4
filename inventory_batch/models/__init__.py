"""
inventory_batch.models -- ORM models for the delayed job queue.

Architecture: inventory_batch/models.  Imports from inventory_kernel.db.base only.
"""

from inventory_batch.models.job import ComputeJobModel

__all__ = [
    "ComputeJobModel",
]

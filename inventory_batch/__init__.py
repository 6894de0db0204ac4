"""
inventory_batch -- Delayed compute jobs for item cost recomputation.

Provides a delayed job queue over the ``compute_jobs`` table, the compute
scheduler that cancels superseded jobs and coalesces dependent ones by
starting date, and a polling worker that runs due jobs under the tenant
running-flag lease.

Architecture:
    inventory_batch/ is a top-level package.  Nothing in inventory_kernel,
    inventory_engines or inventory_services imports from inventory_batch.

Invariants:
    - Clock injection (no datetime.now() calls)
    - At most one pending frontier job per (tenant, item)
    - One transaction per job; the lease lives in its own transaction
    - Graceful shutdown
"""

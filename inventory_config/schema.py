"""
Configuration schema (``inventory_config.schema``).

Responsibility
--------------
Frozen dataclass holding the settings of the costing kernel: database
URL, compute job name and scheduling delay, worker polling interval,
running-flag lease, and log level.

Invariants enforced
-------------------
* Every instance is validated in ``__post_init__``; an invalid value
  raises ``ConfigurationError`` naming the key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from inventory_batch.domain.schedule import parse_delay
from inventory_kernel.exceptions import ConfigurationError, InvalidScheduleDelayError

DEFAULT_DATABASE_URL = "sqlite:///inventory.db"
DEFAULT_COMPUTE_JOB_NAME = "compute-item-cost"
DEFAULT_SCHEDULE_DELAY = "30 seconds"


@dataclass(frozen=True)
class CostingConfig:
    """Runtime configuration of the costing kernel."""

    database_url: str = DEFAULT_DATABASE_URL
    schedule_compute_item_cost: str = DEFAULT_SCHEDULE_DELAY
    compute_job_name: str = DEFAULT_COMPUTE_JOB_NAME
    worker_tick_seconds: int = 30
    running_lease_seconds: int = 3600
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ConfigurationError("database_url", "must not be empty")
        if not self.compute_job_name:
            raise ConfigurationError("compute_job_name", "must not be empty")
        try:
            parse_delay(self.schedule_compute_item_cost)
        except InvalidScheduleDelayError as exc:
            raise ConfigurationError("schedule_compute_item_cost", str(exc)) from exc
        if self.worker_tick_seconds <= 0:
            raise ConfigurationError("worker_tick_seconds", "must be positive")
        if self.running_lease_seconds <= 0:
            raise ConfigurationError("running_lease_seconds", "must be positive")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigurationError("log_level", f"unknown level '{self.log_level}'")

"""
inventory_config -- single public entrypoint for costing configuration.

Responsibility:
    ``load_config()`` returns the validated ``CostingConfig``.  Sources, in
    increasing precedence: dataclass defaults, the YAML file (explicit
    ``path`` or the ``INVENTORY_CONFIG`` environment variable), and the
    ``INVENTORY_DATABASE_URL`` environment override.

Architecture position:
    Configuration.  Sits above ``inventory_kernel``; the kernel MUST NEVER
    import from ``inventory_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configured YAML file does not exist.
    - ``yaml.YAMLError`` -- the YAML file is malformed.
    - ``ConfigurationError`` -- an unknown key or invalid value.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from inventory_config.loader import (
    CONFIG_PATH_ENV,
    DATABASE_URL_ENV,
    apply_env_overrides,
    config_section,
    load_yaml_file,
    parse_costing_config,
)
from inventory_config.schema import CostingConfig
from inventory_kernel.logging_config import get_logger

logger = get_logger("config")


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> CostingConfig:
    """Load the costing configuration."""
    environ = os.environ if environ is None else environ
    if path is None:
        path = environ.get(CONFIG_PATH_ENV) or None

    data = load_yaml_file(Path(path)) if path is not None else {}
    config = parse_costing_config(apply_env_overrides(config_section(data), environ))

    logger.info(
        "config_loaded",
        extra={
            "source": str(path) if path is not None else "defaults",
            "compute_job_name": config.compute_job_name,
            "schedule_compute_item_cost": config.schedule_compute_item_cost,
            "worker_tick_seconds": config.worker_tick_seconds,
        },
    )
    return config


__all__ = [
    "CONFIG_PATH_ENV",
    "DATABASE_URL_ENV",
    "CostingConfig",
    "load_config",
]

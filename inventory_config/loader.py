"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Reads a YAML file and environment overrides and builds a validated
``CostingConfig``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or wrongly typed value  -> ``ConfigurationError``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import CostingConfig
from inventory_kernel.exceptions import ConfigurationError

CONFIG_PATH_ENV = "INVENTORY_CONFIG"
DATABASE_URL_ENV = "INVENTORY_DATABASE_URL"

_INT_KEYS = ("worker_tick_seconds", "running_lease_seconds")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top-level YAML value must be a mapping")
    return data


def parse_costing_config(data: Mapping[str, Any]) -> CostingConfig:
    """Build a CostingConfig from a mapping; absent keys keep their defaults."""
    known = {f.name for f in dataclasses.fields(CostingConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(unknown[0], "unknown configuration key")

    values = dict(data)
    for key in _INT_KEYS:
        if key in values:
            try:
                values[key] = int(values[key])
            except (TypeError, ValueError):
                raise ConfigurationError(key, "must be an integer") from None
    for key in known - set(_INT_KEYS):
        if key in values and not isinstance(values[key], str):
            values[key] = str(values[key])

    return CostingConfig(**values)


def config_section(data: Mapping[str, Any]) -> Mapping[str, Any]:
    """The ``inventory`` section of a document, or the document itself."""
    section = data.get("inventory")
    if isinstance(section, Mapping):
        return section
    return data


def apply_env_overrides(
    data: Mapping[str, Any],
    environ: Mapping[str, str],
) -> dict[str, Any]:
    """Return a copy of ``data`` with environment overrides applied."""
    merged = dict(data)
    if environ.get(DATABASE_URL_ENV):
        merged["database_url"] = environ[DATABASE_URL_ENV]
    return merged

"""
Configuration Loader (``retail_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``retail_config.schema`` dataclasses. The public entry point for runtime
config is ``retail_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or bad values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from retail_config.schema import (
    AllocationConfig,
    ConcurrencyConfig,
    DisplayConfig,
    EngineConfig,
    LoggingConfig,
)
from retail_engines.allocation import RemainderPolicy

_SECTIONS = ("allocation", "concurrency", "display", "logging")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _section(data: dict[str, Any], name: str, allowed: tuple[str, ...]) -> dict[str, Any]:
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Section '{name}' must be a mapping")
    unknown = set(raw) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown keys in '{name}': {sorted(unknown)}")
    return raw


def parse_config(data: dict[str, Any]) -> EngineConfig:
    """
    Parse an ``EngineConfig`` from a dict; absent keys take defaults.

    Raises:
        ValueError: on unknown sections/keys or invalid values.
    """
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    allocation = _section(data, "allocation", ("decimal_places", "remainder_policy"))
    concurrency = _section(data, "concurrency", ("max_retries",))
    display = _section(data, "display", ("unknown_placeholder", "transfer_reference_prefix"))
    logging_ = _section(data, "logging", ("level",))

    defaults = EngineConfig()
    return EngineConfig(
        allocation=AllocationConfig(
            decimal_places=int(allocation.get(
                "decimal_places", defaults.allocation.decimal_places)),
            remainder_policy=RemainderPolicy(allocation.get(
                "remainder_policy", defaults.allocation.remainder_policy.value)),
        ),
        concurrency=ConcurrencyConfig(
            max_retries=int(concurrency.get(
                "max_retries", defaults.concurrency.max_retries)),
        ),
        display=DisplayConfig(
            unknown_placeholder=str(display.get(
                "unknown_placeholder", defaults.display.unknown_placeholder)),
            transfer_reference_prefix=str(display.get(
                "transfer_reference_prefix", defaults.display.transfer_reference_prefix)),
        ),
        logging=LoggingConfig(
            level=str(logging_.get("level", defaults.logging.level)),
        ),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

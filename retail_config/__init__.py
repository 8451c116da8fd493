"""
retail_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``. Services never read configuration files or
    environment variables themselves; they receive an ``EngineConfig``.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``RETAIL_CONFIG_TRACE`` log entry carrying the source path and the
    SHA-256 checksum of the parsed content.
"""

from __future__ import annotations

import logging
from pathlib import Path

from retail_config.loader import load_yaml_file, parse_config
from retail_config.schema import (
    AllocationConfig,
    ConcurrencyConfig,
    DisplayConfig,
    EngineConfig,
    LoggingConfig,
)

_logger = logging.getLogger("retail_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """
    Load and validate the engine configuration.

    Args:
        path: Override path to a YAML file. Defaults to
            retail_config/sets/default.yaml.

    Returns:
        EngineConfig -- frozen, validated.
    """
    source = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(source))

    _logger.info(
        "RETAIL_CONFIG_TRACE",
        extra={
            "trace_type": "RETAIL_CONFIG_TRACE",
            "config_path": str(source),
            "checksum": config.checksum,
            "remainder_policy": config.allocation.remainder_policy.value,
            "decimal_places": config.allocation.decimal_places,
        },
    )
    return config


__all__ = [
    "AllocationConfig",
    "ConcurrencyConfig",
    "DisplayConfig",
    "EngineConfig",
    "LoggingConfig",
    "get_active_config",
]

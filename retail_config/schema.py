"""
EngineConfig schema.

Frozen dataclasses for the runtime configuration of the ledger and the
payment allocator. YAML files are parsed into these types by the loader;
services receive an ``EngineConfig`` by constructor injection.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from retail_engines.allocation import RemainderPolicy


@dataclass(frozen=True)
class AllocationConfig:
    """Payment allocation settings."""

    decimal_places: int = 2
    remainder_policy: RemainderPolicy = RemainderPolicy.DROP

    def __post_init__(self) -> None:
        if not 0 <= self.decimal_places <= 8:
            raise ValueError(f"decimal_places must be in [0, 8], got {self.decimal_places}")


@dataclass(frozen=True)
class ConcurrencyConfig:
    """Bounded retry of optimistic version conflicts."""

    max_retries: int = 3

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")


@dataclass(frozen=True)
class DisplayConfig:
    """Presentation-edge settings."""

    unknown_placeholder: str = "Unknown"
    transfer_reference_prefix: str = "TRF"


@dataclass(frozen=True)
class LoggingConfig:
    """Log level for the retail_kernel logger hierarchy."""

    level: str = "INFO"

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", self.level.upper())
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {self.level}")


@dataclass(frozen=True)
class EngineConfig:
    """Complete runtime configuration."""

    allocation: AllocationConfig = field(default_factory=AllocationConfig)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""

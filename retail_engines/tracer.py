"""
retail_engines.tracer -- Engine invocation tracer emitting RETAIL_ENGINE_TRACE.

Responsibility:
    ``@traced_engine`` wraps a pure engine call and emits one structured
    log record naming the engine, its version, a fingerprint of the
    selected inputs, and the call duration. Two calls with equal inputs
    have equal fingerprints, so a reconciliation or allocation can be
    matched to a later replay from the logs alone.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; never alters arguments or results.

Failure modes:
    - A fingerprint field the call did not bind is recorded as "null".

Usage:
    @traced_engine("allocation", "1.0", fingerprint_fields=("amount", "targets"))
    def allocate(self, amount, targets):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from retail_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable text form of an engine input."""
    match value:
        case None:
            return "null"
        case Enum():
            return str(value.value)
        case bool() | int() | str():
            return str(value)
        case Decimal():
            return format(value.normalize(), "f")
        case date():
            return value.isoformat()
        case Mapping():
            pairs = sorted((str(k), _canonicalize(v)) for k, v in value.items())
            return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
        case list() | tuple():
            return "[" + ",".join(_canonicalize(v) for v in value) + "]"
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return _canonicalize({
                f.name: getattr(value, f.name) for f in dataclasses.fields(value)
            })
        case _:
            return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Deterministic 16-hex-char SHA-256 prefix over the selected arguments."""
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorator that emits RETAIL_ENGINE_TRACE for pure engine invocations.

    Fingerprint fields are resolved by parameter name, whether the caller
    passed them positionally or by keyword.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.monotonic() - started) * 1000, 2)

            _logger.info("RETAIL_ENGINE_TRACE", extra={
                "trace_type": "RETAIL_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
                "function": func.__qualname__,
            })
            return result

        return wrapper

    return decorator

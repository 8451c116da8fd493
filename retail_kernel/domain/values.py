"""
Values -- Coercion helpers for amounts, quantities and calendar dates.

Responsibility:
    Normalize caller-supplied primitives at the domain boundary: monetary
    amounts become ``Decimal`` (never float), calendar dates become
    ``date``, stock quantities must be plain ``int``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - ValueError on unparseable amounts, dates, or non-integer quantities.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def to_decimal(value: Any) -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion.

    Raises:
        ValueError: If the value is a bool, not finite, or not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def quantize(amount: Decimal, decimal_places: int) -> Decimal:
    """
    Round to a fixed number of decimal places (ROUND_HALF_UP).

    Raises:
        ValueError: If the amount has too many digits to hold at that scale.
    """
    try:
        return amount.quantize(Decimal(10) ** -decimal_places, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Amount out of range: {amount!r}") from e


def parse_iso_date(value: Any) -> date:
    """
    Parse a calendar date (``date`` or ISO ``YYYY-MM-DD`` string).

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not _ISO_DATE.fullmatch(text):
            raise ValueError(f"Date must be YYYY-MM-DD, got {value!r}")
        return date.fromisoformat(text)
    raise ValueError(f"Cannot parse date from {value!r}")


def require_int(value: Any, field_name: str) -> int:
    """Reject anything that is not a plain integer (bool included)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer, got {value!r}")
    return value

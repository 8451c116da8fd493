"""
Clock -- Injectable source of "now".

Responsibility:
    The ledger stamps ``StockMovement.recorded_at`` and the payment
    allocator defaults a payment's date from a Clock it is handed, so
    nothing below the composition root reads the wall clock itself.

Architecture position:
    Kernel > Domain. ``SystemClock`` is the only implementation that
    touches real time.

Audit relevance:
    Replays and tests pin time with ``DeterministicClock``; recorded
    timestamps are then reproducible run to run.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

_DEFAULT_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """
    Contract:
        ``now()`` is timezone-aware UTC; ``today()`` is its calendar date.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` is stable between calls; ``advance`` and ``tick`` move it
    forward, ``set_time`` jumps to an absolute instant.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or _DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def set_time(self, instant: datetime) -> None:
        self._current = instant

    def advance(self, seconds: int = 0, days: int = 0) -> None:
        self._current += timedelta(days=days, seconds=seconds)

    def tick(self) -> datetime:
        """Move one second forward and return the new instant."""
        self.advance(seconds=1)
        return self._current

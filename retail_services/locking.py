"""
retail_services.locking -- Per-key exclusive sections and conflict retry.

Responsibility:
    Serialize read-modify-write cycles per entity key (inventory key or
    invoice id) without a global lock, and retry optimistic version
    conflicts a bounded number of times.

Invariants enforced:
    - Multi-key holders acquire locks in one global order (sorted by
      ``repr``), so two transfers touching the same pair of stores in
      opposite directions cannot deadlock.

Failure modes:
    - ConcurrentModificationError surfaces after ``max_retries`` retries.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from retail_kernel.exceptions import ConcurrentModificationError
from retail_kernel.logging_config import get_logger

logger = get_logger("services.locking")

T = TypeVar("T")


class KeyedLocks:
    """
    Registry of one ``threading.Lock`` per key, created on first use.

    Locks are never evicted; the key space (store x product, invoice ids)
    is bounded by master data.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        """Hold the locks of every distinct key for the duration of the block."""
        ordered = sorted(set(keys), key=repr)
        acquired: list[threading.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


def retry_on_conflict(
    operation: Callable[[], T],
    max_retries: int,
    operation_name: str,
) -> T:
    """
    Run ``operation``, re-running it on ConcurrentModificationError.

    The operation must re-read its inputs on every attempt.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except ConcurrentModificationError as exc:
            if attempt >= max_retries:
                logger.error("concurrent_modification_exhausted", extra={
                    "operation": operation_name,
                    "attempts": attempt + 1,
                    "entity_type": exc.entity_type,
                    "entity_key": exc.entity_key,
                })
                raise
            attempt += 1
            logger.warning("concurrent_modification_retry", extra={
                "operation": operation_name,
                "attempt": attempt,
                "entity_type": exc.entity_type,
                "entity_key": exc.entity_key,
            })

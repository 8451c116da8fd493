"""
retail_services.movement_ledger -- Append-only stock movement ledger.

Responsibility:
    Record stock movements: apply the sign policy, assign identity, append
    the immutable record to the log, and update the inventory projection
    in the same logical transaction.

Architecture position:
    Services -- composes ``retail_engines.sign_policy`` and
    ``retail_engines.projection`` with the entity store.

Invariants enforced:
    - APPEND_ONLY: the log only grows; readers receive tuple snapshots.
    - REPLAY_CONSISTENCY: a movement is appended if and only if its fold
      was written to the projection. The append and the item write happen
      under one commit lock, so ``snapshot()`` never sees one without the
      other.
    - Per-key serialization: every record holds the inventory key's lock
      around read-fold-write.

Failure modes:
    - ValueError from ``MovementInput`` on malformed input.
    - ConcurrentModificationError after bounded retries if a writer outside
      the ledger keeps replacing the same item.
    - No rejection of zero-quantity, duplicate, or stock-negative
      movements: the ledger records whatever is submitted.

Usage:
    ledger = MovementLedger(entity_store, clock=SystemClock())
    movement = ledger.record_movement({
        "date": "2024-03-01", "type": "Sale", "storeId": "S1",
        "productId": "P1", "variant": "M", "quantity": 5, "reference": "POS-1",
    })
    movement.quantity  # -5
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from typing import Any
from uuid import uuid4

from retail_config.schema import EngineConfig
from retail_engines.projection import ReplayedBalance, fold, replay
from retail_engines.sign_policy import normalize_quantity
from retail_kernel.domain.clock import Clock, SystemClock
from retail_kernel.domain.movements import (
    InventoryItem,
    InventoryKey,
    MovementInput,
    StockMovement,
)
from retail_kernel.logging_config import get_logger
from retail_services.entity_store import EntityStore
from retail_services.inventory_projection import InventoryProjection
from retail_services.locking import KeyedLocks, retry_on_conflict

logger = get_logger("services.movement_ledger")


class MovementLedger:
    """
    The stock ledger.

    Contract:
        ``record`` and ``record_batch`` are safe to call from many threads.
        Readers never block writers for longer than a tuple copy.
    Non-goals:
        - No durable storage.
        - Not idempotent: submitting the same input twice records twice.
    """

    def __init__(
        self,
        entity_store: EntityStore,
        projection: InventoryProjection | None = None,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._store = entity_store
        self._projection = projection or InventoryProjection(entity_store)
        self._clock = clock or SystemClock()
        self._config = config or EngineConfig()
        self._locks = locks or KeyedLocks()
        self._commit_lock = threading.RLock()
        self._log: list[StockMovement] = []

    @property
    def projection(self) -> InventoryProjection:
        return self._projection

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def record(self, movement: MovementInput) -> StockMovement:
        """Record one movement and update its inventory item."""
        with self._locks.hold(movement.key):
            return retry_on_conflict(
                lambda: self._record_locked(movement),
                self._config.concurrency.max_retries,
                "record_movement",
            )

    def record_movement(self, data: Mapping[str, Any]) -> StockMovement:
        """External boundary: record from a field mapping (camelCase or snake_case)."""
        return self.record(MovementInput.from_mapping(data))

    def record_batch(self, inputs: Sequence[MovementInput]) -> list[StockMovement]:
        """
        Record several movements as one unit.

        Every key lock is held, every fold is staged before anything is
        written, and the item writes are one compare-and-set batch. Either
        all movements become visible or none do.
        """
        if not inputs:
            return []
        with self._locks.hold(*(i.key for i in inputs)):
            return retry_on_conflict(
                lambda: self._record_batch_locked(inputs),
                self._config.concurrency.max_retries,
                "record_batch",
            )

    def _build(self, movement: MovementInput) -> StockMovement:
        return StockMovement(
            id=f"mov-{uuid4().hex}",
            date=movement.date,
            type=movement.type,
            store_id=movement.store_id,
            product_id=movement.product_id,
            variant=movement.variant,
            quantity=normalize_quantity(movement.type, movement.quantity),
            reference=movement.reference,
            recorded_at=self._clock.now(),
        )

    def _record_locked(self, movement_input: MovementInput) -> StockMovement:
        movement = self._build(movement_input)
        with self._commit_lock:
            item = self._projection.apply(movement)
            self._log.append(movement)
        self._log_recorded(movement, item)
        return movement

    def _record_batch_locked(self, inputs: Sequence[MovementInput]) -> list[StockMovement]:
        movements: list[StockMovement] = []
        staged: dict[InventoryKey, tuple[InventoryItem, int]] = {}

        for movement_input in inputs:
            movement = self._build(movement_input)
            if movement.key in staged:
                current, base_version = staged[movement.key]
            else:
                current = self._projection.upsert(movement.store_id, movement.product_id)
                base_version = current.version
            staged[movement.key] = (fold(current, movement), base_version)
            movements.append(movement)

        with self._commit_lock:
            self._store.put_inventory_items(list(staged.values()))
            self._log.extend(movements)

        for movement in movements:
            self._log_recorded(movement, staged[movement.key][0])
        return movements

    def _log_recorded(self, movement: StockMovement, item: InventoryItem) -> None:
        logger.info("movement_recorded", extra={
            "movement_id": movement.id,
            "movement_type": movement.type.value,
            "store_id": movement.store_id,
            "product_id": movement.product_id,
            "variant": movement.variant,
            "quantity": movement.quantity,
            "movement_reference": movement.reference,
            "balance": item.quantity,
        })

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def movements(self) -> tuple[StockMovement, ...]:
        """Every movement in recording order."""
        with self._commit_lock:
            return tuple(self._log)

    def movements_for(self, store_id: str, product_id: str) -> tuple[StockMovement, ...]:
        return tuple(
            m for m in self.movements()
            if m.store_id == store_id and m.product_id == product_id
        )

    def movements_by_reference(self, reference: str) -> tuple[StockMovement, ...]:
        return tuple(m for m in self.movements() if m.reference == reference)

    def snapshot(self) -> tuple[tuple[StockMovement, ...], tuple[InventoryItem, ...]]:
        """Consistent (movements, items) pair for reconciliation."""
        with self._commit_lock:
            return tuple(self._log), self._store.inventory_items()

    def inventory(self, store_id: str, product_id: str) -> InventoryItem | None:
        return self._projection.inventory(store_id, product_id)

    def replay(self, store_id: str, product_id: str) -> ReplayedBalance:
        """Recompute one key's balance from the full log."""
        return replay(self.movements(), store_id, product_id)

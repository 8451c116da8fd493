"""
retail_services.inventory_projection -- Stateful inventory projection.

Responsibility:
    Keep one ``InventoryItem`` per (store, product) in the entity store,
    folding each recorded movement into it.

Architecture position:
    Services -- wraps the pure ``retail_engines.projection`` fold with
    entity-store reads and versioned writes.

Invariants enforced:
    - REPLAY_CONSISTENCY: every write is ``fold`` of the previous snapshot,
      so the item always equals ``replay`` of its movements.
    - Items are created lazily by ``upsert`` and never deleted.

Failure modes:
    - ConcurrentModificationError if another writer replaced the item
      between read and write (the ledger retries).
"""

from __future__ import annotations

from retail_engines.projection import DisplayFields, empty_item, fold
from retail_kernel.domain.movements import InventoryItem, StockMovement
from retail_kernel.logging_config import get_logger
from retail_services.entity_store import EntityStore

logger = get_logger("services.inventory_projection")


class InventoryProjection:
    """
    Incremental inventory projection.

    Contract:
        ``apply`` is not serialized by itself; callers hold the key's lock
        (``MovementLedger`` does).
    """

    def __init__(self, entity_store: EntityStore):
        self._store = entity_store

    def resolve_display(self, store_id: str, product_id: str) -> DisplayFields:
        """Best-effort display snapshot; misses stay None."""
        store = self._store.find_store(store_id)
        product = self._store.find_product(product_id)
        if store is None or product is None:
            logger.info("projection_display_lookup_missed", extra={
                "store_id": store_id,
                "product_id": product_id,
                "store_found": store is not None,
                "product_found": product is not None,
            })
        return DisplayFields(
            store_name=store.name if store else None,
            product_name=product.name if product else None,
            sku=product.sku if product else None,
            brand=product.brand if product else None,
        )

    def upsert(self, store_id: str, product_id: str) -> InventoryItem:
        """
        Find-or-create without writing.

        Returns the stored item, or the ``empty_item`` default (quantity 0,
        no variants, version 0, display fields resolved now) for a key that
        has never seen a movement.
        """
        existing = self._store.inventory_item(store_id, product_id)
        if existing is not None:
            return existing
        return empty_item(store_id, product_id, self.resolve_display(store_id, product_id))

    def apply(self, movement: StockMovement) -> InventoryItem:
        """Fold one movement into its item and write it. Returns the new item."""
        current = self.upsert(movement.store_id, movement.product_id)
        updated = fold(current, movement)
        self._store.put_inventory_item(updated, current.version)
        logger.debug("projection_applied", extra={
            "movement_id": movement.id,
            "store_id": movement.store_id,
            "product_id": movement.product_id,
            "quantity": updated.quantity,
            "version": updated.version,
        })
        return updated

    def inventory(self, store_id: str, product_id: str) -> InventoryItem | None:
        return self._store.inventory_item(store_id, product_id)

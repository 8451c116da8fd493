"""
retail_services.entity_store -- In-memory authoritative collections.

Responsibility:
    Hold stores, products, invoices and inventory items, and expose keyed
    upsert and lookup operations. Passed by reference to the ledger, the
    projection and the allocator; there is no module-level instance.

Architecture position:
    Services -- the one stateful collaborator the other services share.

Invariants enforced:
    - Inventory items and invoices are replaced, never mutated in place.
      ``put_*`` writes are compare-and-set on ``version``.
    - Batch writes (``put_inventory_items``, ``put_invoices``) check every
      version before writing anything, so they are all-or-nothing.
    - Nothing is ever deleted.

Failure modes:
    - ConcurrentModificationError on a version mismatch.
    - InvoiceNotFoundError / StoreNotFoundError / ProductNotFoundError from
      the strict ``get_*`` lookups. ``find_*`` lookups return None.
    - ValueError when registering an invoice id that already exists.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from retail_kernel.domain.master_data import Product, Store
from retail_kernel.domain.movements import InventoryItem, InventoryKey
from retail_kernel.domain.receivables import Invoice
from retail_kernel.exceptions import (
    ConcurrentModificationError,
    InvoiceNotFoundError,
    ProductNotFoundError,
    StoreNotFoundError,
)
from retail_kernel.logging_config import get_logger

logger = get_logger("services.entity_store")


class EntityStore:
    """
    Keyed in-memory store.

    Contract:
        Every public method is atomic with respect to every other one.
        Collection readers return tuples (snapshots), never live views.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._stores: dict[str, Store] = {}
        self._products: dict[str, Product] = {}
        self._invoices: dict[str, Invoice] = {}
        self._inventory: dict[InventoryKey, InventoryItem] = {}

    # ------------------------------------------------------------------
    # Master data
    # ------------------------------------------------------------------

    def upsert_store(self, store: Store) -> Store:
        with self._lock:
            self._stores[store.id] = store
        return store

    def upsert_product(self, product: Product) -> Product:
        with self._lock:
            self._products[product.id] = product
        return product

    def find_store(self, store_id: str) -> Store | None:
        with self._lock:
            return self._stores.get(store_id)

    def find_product(self, product_id: str) -> Product | None:
        with self._lock:
            return self._products.get(product_id)

    def get_store(self, store_id: str) -> Store:
        store = self.find_store(store_id)
        if store is None:
            raise StoreNotFoundError(store_id)
        return store

    def get_product(self, product_id: str) -> Product:
        product = self.find_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def stores(self) -> tuple[Store, ...]:
        with self._lock:
            return tuple(self._stores.values())

    def products(self) -> tuple[Product, ...]:
        with self._lock:
            return tuple(self._products.values())

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def add_invoice(self, invoice: Invoice) -> Invoice:
        """Register an invoice created by the invoicing flow."""
        with self._lock:
            if invoice.id in self._invoices:
                raise ValueError(f"Invoice already exists: {invoice.id}")
            self._invoices[invoice.id] = invoice
        return invoice

    def find_invoice(self, invoice_id: str) -> Invoice | None:
        with self._lock:
            return self._invoices.get(invoice_id)

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self.find_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def invoices(self) -> tuple[Invoice, ...]:
        with self._lock:
            return tuple(self._invoices.values())

    def put_invoices(self, updates: Sequence[tuple[Invoice, int]]) -> None:
        """
        Replace invoices, each guarded by the version it was read at.

        Raises:
            InvoiceNotFoundError: if an invoice was never registered.
            ConcurrentModificationError: if any version moved.
        """
        with self._lock:
            for invoice, expected_version in updates:
                current = self._invoices.get(invoice.id)
                if current is None:
                    raise InvoiceNotFoundError(invoice.id)
                if current.version != expected_version:
                    raise ConcurrentModificationError(
                        "invoice", invoice.id, expected_version, current.version,
                    )
            for invoice, _ in updates:
                self._invoices[invoice.id] = invoice

    def put_invoice(self, invoice: Invoice, expected_version: int) -> None:
        self.put_invoices([(invoice, expected_version)])

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def inventory_item(self, store_id: str, product_id: str) -> InventoryItem | None:
        with self._lock:
            return self._inventory.get(InventoryKey(store_id, product_id))

    def inventory_items(self) -> tuple[InventoryItem, ...]:
        with self._lock:
            return tuple(self._inventory.values())

    def put_inventory_items(self, updates: Sequence[tuple[InventoryItem, int]]) -> None:
        """
        Insert or replace items, each guarded by the version it was read at.

        An absent item counts as version 0.

        Raises:
            ConcurrentModificationError: if any version moved.
        """
        with self._lock:
            for item, expected_version in updates:
                current = self._inventory.get(item.key)
                actual = current.version if current is not None else 0
                if actual != expected_version:
                    raise ConcurrentModificationError(
                        "inventory_item",
                        f"{item.store_id}/{item.product_id}",
                        expected_version,
                        actual,
                    )
            for item, _ in updates:
                self._inventory[item.key] = item

    def put_inventory_item(self, item: InventoryItem, expected_version: int) -> None:
        self.put_inventory_items([(item, expected_version)])

    # ------------------------------------------------------------------
    # Bulk load
    # ------------------------------------------------------------------

    def load(
        self,
        stores: Iterable[Store] = (),
        products: Iterable[Product] = (),
        invoices: Iterable[Invoice] = (),
    ) -> None:
        """Bulk path for import collaborators feeding pre-validated records."""
        with self._lock:
            store_count = product_count = invoice_count = 0
            for store in stores:
                self.upsert_store(store)
                store_count += 1
            for product in products:
                self.upsert_product(product)
                product_count += 1
            for invoice in invoices:
                self.add_invoice(invoice)
                invoice_count += 1
        logger.info("entity_store_loaded", extra={
            "stores": store_count,
            "products": product_count,
            "invoices": invoice_count,
        })

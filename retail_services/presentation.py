"""
retail_services.presentation -- Display edge for inventory rows.

The core keeps unknown names as None. The "Unknown" placeholder is
applied here, at the presentation edge, never in the data model.
"""

from __future__ import annotations

from dataclasses import dataclass

from retail_kernel.domain.movements import InventoryItem
from retail_services.entity_store import EntityStore

DEFAULT_PLACEHOLDER = "Unknown"


def display_value(value: str | None, placeholder: str = DEFAULT_PLACEHOLDER) -> str:
    return value if value else placeholder


@dataclass(frozen=True)
class InventoryLine:
    """One inventory row ready for display."""

    store_id: str
    product_id: str
    store_name: str
    product_name: str
    sku: str
    brand: str
    quantity: int
    variant_quantities: dict[str, int]


def describe_inventory(
    item: InventoryItem,
    entity_store: EntityStore | None = None,
    placeholder: str = DEFAULT_PLACEHOLDER,
    fresh: bool = False,
) -> InventoryLine:
    """
    Render an item for display.

    By default the names captured when the item was created are used
    (they may be stale after a rename). With ``fresh=True`` and an entity
    store, names are resolved now.
    """
    store_name, product_name, sku, brand = item.store_name, item.product_name, item.sku, item.brand
    if fresh and entity_store is not None:
        store = entity_store.find_store(item.store_id)
        product = entity_store.find_product(item.product_id)
        store_name = store.name if store else None
        product_name = product.name if product else None
        sku = product.sku if product else None
        brand = product.brand if product else None

    return InventoryLine(
        store_id=item.store_id,
        product_id=item.product_id,
        store_name=display_value(store_name, placeholder),
        product_name=display_value(product_name, placeholder),
        sku=display_value(sku, placeholder),
        brand=display_value(brand, placeholder),
        quantity=item.quantity,
        variant_quantities=dict(item.variant_quantities),
    )

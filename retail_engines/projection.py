"""
retail_engines.projection -- Inventory projection over the stock ledger.

Responsibility:
    Derive ``InventoryItem`` balances from ``StockMovement`` records, both
    incrementally (``fold``, one movement at a time) and by full replay
    from empty state (``replay``).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - REPLAY_CONSISTENCY: folding a key's movements one by one onto
      ``empty_item`` yields the same quantity and variant map as
      ``replay`` over the same movements. ``replay`` is written
      independently of ``fold`` so the two can check each other.
    - VARIANT_SUM: every item produced passes InventoryItem's own check.

Failure modes:
    - InvariantViolationError if ``fold`` is handed a movement for a
      different (store, product) key than the item.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from retail_kernel.domain.movements import InventoryItem, StockMovement
from retail_kernel.exceptions import InvariantViolationError
from retail_kernel.invariants import LedgerInvariant
from retail_kernel.logging_config import get_logger

logger = get_logger("engines.projection")


@dataclass(frozen=True)
class DisplayFields:
    """Denormalized names captured when an item is created. None = unknown."""

    store_name: str | None = None
    product_name: str | None = None
    sku: str | None = None
    brand: str | None = None


@dataclass(frozen=True)
class ReplayedBalance:
    """Quantity and per-variant quantities recomputed from the ledger."""

    quantity: int = 0
    variant_quantities: Mapping[str, int] = field(default_factory=dict)
    movement_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "variant_quantities", MappingProxyType(dict(self.variant_quantities))
        )


def empty_item(
    store_id: str,
    product_id: str,
    display: DisplayFields | None = None,
) -> InventoryItem:
    """
    Default state of a never-seen (store, product) key.

    Quantity 0, no variant entries, version 0, display fields from the
    supplied snapshot.
    """
    display = display or DisplayFields()
    return InventoryItem(
        store_id=store_id,
        product_id=product_id,
        quantity=0,
        variant_quantities={},
        store_name=display.store_name,
        product_name=display.product_name,
        sku=display.sku,
        brand=display.brand,
        version=0,
    )


def fold(item: InventoryItem, movement: StockMovement) -> InventoryItem:
    """
    Apply one movement to an item, returning the next snapshot.

    The variant entry is created at 0 before adding when absent.
    """
    if movement.key != item.key:
        raise InvariantViolationError(
            LedgerInvariant.REPLAY_CONSISTENCY.value,
            f"movement {movement.id} for {movement.store_id}/{movement.product_id} "
            f"folded onto {item.store_id}/{item.product_id}",
        )
    variants = dict(item.variant_quantities)
    variants[movement.variant] = variants.get(movement.variant, 0) + movement.quantity
    return replace(
        item,
        quantity=item.quantity + movement.quantity,
        variant_quantities=variants,
        version=item.version + 1,
    )


def replay(
    movements: Iterable[StockMovement],
    store_id: str,
    product_id: str,
) -> ReplayedBalance:
    """Recompute one key's balance from the full movement sequence."""
    variants: dict[str, int] = {}
    count = 0
    for movement in movements:
        if movement.store_id != store_id or movement.product_id != product_id:
            continue
        count += 1
        variants.setdefault(movement.variant, 0)
        variants[movement.variant] += movement.quantity

    balance = ReplayedBalance(
        quantity=sum(variants.values()),
        variant_quantities=variants,
        movement_count=count,
    )
    logger.debug("projection_replayed", extra={
        "store_id": store_id,
        "product_id": product_id,
        "movement_count": count,
        "quantity": balance.quantity,
    })
    return balance

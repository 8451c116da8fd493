"""
Movements -- Stock movement records and the inventory projection shape.

Responsibility:
    Define the immutable ``StockMovement`` (the atomic unit of the stock
    ledger), the request shapes callers submit (``MovementInput``,
    ``TransferRequest``), and the ``InventoryItem`` snapshot that the
    projection derives from the ledger.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - VARIANT_SUM: ``InventoryItem.quantity == sum(variant_quantities)``,
      checked on every construction; a mismatch raises
      ``InvariantViolationError``.
    - APPEND_ONLY: ``StockMovement`` is frozen; corrections are new
      movements.

Failure modes:
    - ValueError from the request shapes on malformed input (bad date,
      non-integer quantity, unknown movement type, non-positive transfer).
    - InvariantViolationError from ``InventoryItem`` on a broken variant sum.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from enum import Enum
from typing import Any, NamedTuple

from retail_kernel.exceptions import InvariantViolationError
from retail_kernel.invariants import LedgerInvariant
from retail_kernel.domain.values import parse_iso_date, require_int

DEFAULT_VARIANT = "Standard"


class MovementType(str, Enum):
    """Category of a stock movement."""

    SALE = "Sale"
    PURCHASE = "Purchase"  # Inbound / restock
    TRANSFER_OUT = "Transfer Out"
    TRANSFER_IN = "Transfer In"
    ADJUSTMENT = "Adjustment"
    RETURN = "Return"

    @classmethod
    def parse(cls, value: MovementType | str) -> MovementType:
        """Resolve a label, accepting legacy aliases and any letter case."""
        if isinstance(value, MovementType):
            return value
        label = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == label or member.name.lower() == label:
                return member
        if label in _ALIASES:
            return _ALIASES[label]
        raise ValueError(f"Unknown movement type: {value!r}")


_ALIASES: dict[str, MovementType] = {
    "restock": MovementType.PURCHASE,
    "inbound": MovementType.PURCHASE,
    "purchase/inbound": MovementType.PURCHASE,
}


class InventoryKey(NamedTuple):
    """Identity of an inventory item."""

    store_id: str
    product_id: str


def _pick(data: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return default


@dataclass(frozen=True)
class MovementInput:
    """
    A caller's request to record one movement.

    ``quantity`` may be an unsigned magnitude for outbound types; the
    ledger applies the sign policy. ``date`` accepts a ``date`` or an ISO
    ``YYYY-MM-DD`` string.
    """

    date: date
    type: MovementType
    store_id: str
    product_id: str
    quantity: int
    variant: str = DEFAULT_VARIANT
    reference: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", parse_iso_date(self.date))
        object.__setattr__(self, "type", MovementType.parse(self.type))
        require_int(self.quantity, "quantity")
        if not self.store_id or not self.product_id:
            raise ValueError("store_id and product_id are required")

    @property
    def key(self) -> InventoryKey:
        return InventoryKey(self.store_id, self.product_id)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MovementInput:
        """Build from the external field names (camelCase or snake_case)."""
        return cls(
            date=_pick(data, "date"),
            type=_pick(data, "type"),
            store_id=_pick(data, "storeId", "store_id"),
            product_id=_pick(data, "productId", "product_id"),
            quantity=_pick(data, "quantity"),
            variant=_pick(data, "variant", default=DEFAULT_VARIANT) or DEFAULT_VARIANT,
            reference=_pick(data, "reference", default="") or "",
        )


@dataclass(frozen=True)
class TransferRequest:
    """A logical stock move of ``quantity`` units between two stores."""

    date: date
    from_store_id: str
    to_store_id: str
    product_id: str
    quantity: int
    variant: str = DEFAULT_VARIANT
    reference: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", parse_iso_date(self.date))
        require_int(self.quantity, "quantity")
        if self.quantity <= 0:
            raise ValueError(f"Transfer quantity must be positive, got {self.quantity}")
        if not self.from_store_id or not self.to_store_id or not self.product_id:
            raise ValueError("from_store_id, to_store_id and product_id are required")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransferRequest:
        """Build from the external field names (camelCase or snake_case)."""
        return cls(
            date=_pick(data, "date"),
            from_store_id=_pick(data, "fromStoreId", "from_store_id"),
            to_store_id=_pick(data, "toStoreId", "to_store_id"),
            product_id=_pick(data, "productId", "product_id"),
            quantity=_pick(data, "quantity"),
            variant=_pick(data, "variant", default=DEFAULT_VARIANT) or DEFAULT_VARIANT,
            reference=_pick(data, "reference", default="") or "",
        )


@dataclass(frozen=True)
class StockMovement:
    """
    One immutable, signed quantity change against a store/product/variant.

    Positive ``quantity`` increases stock, negative decreases it.
    ``reference`` is a free-text correlation id, shared by both legs of a
    transfer.
    """

    id: str
    date: date
    type: MovementType
    store_id: str
    product_id: str
    variant: str
    quantity: int
    reference: str = ""
    recorded_at: datetime | None = None

    @property
    def key(self) -> InventoryKey:
        return InventoryKey(self.store_id, self.product_id)


@dataclass(frozen=True)
class InventoryItem:
    """
    Current stock of one product at one store.

    Contract:
        Snapshot value; the projection replaces it on every movement and
        bumps ``version``. Zero and negative balances are valid states.
    Guarantees:
        - ``quantity == sum(variant_quantities.values())`` (VARIANT_SUM).
    Non-goals:
        - Display fields (store_name, product_name, sku, brand) are captured
          once when the item is created and are not kept in sync with later
          master-data renames. ``None`` means the lookup missed.
    """

    store_id: str
    product_id: str
    quantity: int = 0
    variant_quantities: Mapping[str, int] = field(default_factory=dict)
    store_name: str | None = None
    product_name: str | None = None
    sku: str | None = None
    brand: str | None = None
    version: int = 0

    def __post_init__(self) -> None:
        # Readers share the stored snapshot, so the variant map is read-only.
        object.__setattr__(
            self, "variant_quantities", MappingProxyType(dict(self.variant_quantities))
        )
        # INVARIANT: VARIANT_SUM
        variant_total = sum(self.variant_quantities.values())
        if variant_total != self.quantity:
            raise InvariantViolationError(
                LedgerInvariant.VARIANT_SUM.value,
                f"{self.store_id}/{self.product_id}: variants sum to "
                f"{variant_total}, quantity is {self.quantity}",
            )

    @property
    def key(self) -> InventoryKey:
        return InventoryKey(self.store_id, self.product_id)

"""
Master data -- Store and Product reference records.

Both are immutable reference data owned by external master-data
management. The ledger and the allocator look them up; they never
mutate them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from retail_kernel.domain.values import to_decimal


class RiskStatus(str, Enum):
    """Credit risk rating of a store."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class Store:
    """
    A retail store (counter) that holds stock and owes invoices.

    ``credit_term_days`` is the payment term used by invoicing flows to
    derive a due date.
    """

    id: str
    name: str
    group: str = ""
    risk_status: RiskStatus = RiskStatus.LOW
    credit_term_days: int = 30

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Store id is required")
        if isinstance(self.risk_status, str) and not isinstance(self.risk_status, RiskStatus):
            object.__setattr__(self, "risk_status", RiskStatus(self.risk_status))


@dataclass(frozen=True)
class Product:
    """A sellable product; ``variants`` lists known labels (e.g. sizes)."""

    id: str
    sku: str
    name: str
    brand: str = ""
    cost: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    variants: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Product id is required")
        object.__setattr__(self, "cost", to_decimal(self.cost))
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "variants", tuple(self.variants))

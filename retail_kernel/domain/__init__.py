"""
Pure domain layer.

This module contains pure data objects and domain rules with NO
dependencies on:
- Persistence
- Time/clock (other than the injectable Clock interface)
- I/O

All domain objects are immutable snapshots.
"""

from retail_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from retail_kernel.domain.master_data import Product, RiskStatus, Store
from retail_kernel.domain.movements import (
    DEFAULT_VARIANT,
    InventoryItem,
    InventoryKey,
    MovementInput,
    MovementType,
    StockMovement,
    TransferRequest,
)
from retail_kernel.domain.receivables import (
    Invoice,
    InvoiceStatus,
    Payment,
    derive_invoice_status,
)

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
    # Master data
    "Store",
    "Product",
    "RiskStatus",
    # Stock ledger
    "DEFAULT_VARIANT",
    "MovementType",
    "MovementInput",
    "TransferRequest",
    "StockMovement",
    "InventoryItem",
    "InventoryKey",
    # Receivables
    "Invoice",
    "InvoiceStatus",
    "Payment",
    "derive_invoice_status",
]

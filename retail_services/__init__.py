"""
retail_services -- Package init and public API.

Responsibility:
    Stateful orchestration services that compose pure calculation engines
    (retail_engines/) with the in-memory entity store. This is the only
    layer that holds state, takes locks, or reads the clock.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction (enforced by tests/architecture/test_kernel_boundary.py):
        retail_services/ -> retail_engines/  (allowed)
        retail_services/ -> retail_kernel/   (allowed)
        retail_engines/  -> retail_services/ (FORBIDDEN)
        retail_kernel/   -> retail_services/ (FORBIDDEN)
"""

from retail_services.core import RetailCore, bootstrap
from retail_services.entity_store import EntityStore
from retail_services.inventory_projection import InventoryProjection
from retail_services.locking import KeyedLocks, retry_on_conflict
from retail_services.movement_ledger import MovementLedger
from retail_services.payment_allocator import PaymentAllocator
from retail_services.presentation import InventoryLine, describe_inventory, display_value
from retail_services.receivables import ReceivablesService
from retail_services.reconciliation_service import ReconciliationService
from retail_services.transfer_coordinator import TransferCoordinator

__all__ = [
    "EntityStore",
    "InventoryLine",
    "InventoryProjection",
    "KeyedLocks",
    "MovementLedger",
    "PaymentAllocator",
    "ReceivablesService",
    "ReconciliationService",
    "RetailCore",
    "TransferCoordinator",
    "bootstrap",
    "describe_inventory",
    "display_value",
    "retry_on_conflict",
]

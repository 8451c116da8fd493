"""
retail_services.core -- Composition root and external function boundary.

Responsibility:
    Wire the entity store, ledger, transfer coordinator, payment allocator
    and read-side services around one config and one clock, and expose
    the function-call contracts UI/API callers use:

        record_movement(input)          -> StockMovement
        transfer(input)                 -> (StockMovement, StockMovement)
        allocate_payment(ids, amount, method, reference) -> list[Invoice]
        find_store(id) / find_product(id) -> optional lookups

Invariants enforced:
    - DI transparency: services never construct their collaborators when
      built through ``RetailCore.build``; everything shares one store.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from retail_config import get_active_config
from retail_config.schema import EngineConfig
from retail_kernel.domain.clock import Clock, SystemClock
from retail_kernel.domain.master_data import Product, Store
from retail_kernel.domain.movements import InventoryItem, StockMovement
from retail_kernel.domain.receivables import Invoice
from retail_kernel.logging_config import configure_logging
from retail_services.entity_store import EntityStore
from retail_services.inventory_projection import InventoryProjection
from retail_services.movement_ledger import MovementLedger
from retail_services.payment_allocator import PaymentAllocator
from retail_services.presentation import InventoryLine, describe_inventory
from retail_services.receivables import ReceivablesService
from retail_services.reconciliation_service import ReconciliationService
from retail_services.transfer_coordinator import TransferCoordinator


@dataclass(frozen=True)
class RetailCore:
    """Handle to one fully wired core instance."""

    config: EngineConfig
    clock: Clock
    entity_store: EntityStore
    ledger: MovementLedger
    transfers: TransferCoordinator
    allocator: PaymentAllocator
    receivables: ReceivablesService
    reconciliation: ReconciliationService

    @classmethod
    def build(
        cls,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        entity_store: EntityStore | None = None,
    ) -> RetailCore:
        config = config or EngineConfig()
        clock = clock or SystemClock()
        entity_store = entity_store or EntityStore()
        ledger = MovementLedger(
            entity_store,
            projection=InventoryProjection(entity_store),
            clock=clock,
            config=config,
        )
        return cls(
            config=config,
            clock=clock,
            entity_store=entity_store,
            ledger=ledger,
            transfers=TransferCoordinator(ledger, config=config),
            allocator=PaymentAllocator(entity_store, clock=clock, config=config),
            receivables=ReceivablesService(entity_store, clock=clock),
            reconciliation=ReconciliationService(ledger),
        )

    # External function boundary

    def record_movement(self, data: Mapping[str, Any]) -> StockMovement:
        return self.ledger.record_movement(data)

    def transfer(self, data: Mapping[str, Any]) -> tuple[StockMovement, StockMovement]:
        return self.transfers.transfer_from_mapping(data)

    def allocate_payment(
        self,
        invoice_ids: Sequence[str],
        amount: Decimal | int | float | str,
        method: str,
        reference: str = "",
        payment_date: date | str | None = None,
    ) -> list[Invoice]:
        return self.allocator.allocate(invoice_ids, amount, method, reference, payment_date)

    def find_store(self, store_id: str) -> Store | None:
        return self.entity_store.find_store(store_id)

    def find_product(self, product_id: str) -> Product | None:
        return self.entity_store.find_product(product_id)

    def describe(self, item: InventoryItem, fresh: bool = False) -> InventoryLine:
        return describe_inventory(
            item,
            self.entity_store,
            placeholder=self.config.display.unknown_placeholder,
            fresh=fresh,
        )


def bootstrap(config_path: Path | str | None = None, clock: Clock | None = None) -> RetailCore:
    """Load config, configure logging at the configured level, build the core."""
    config = get_active_config(config_path)
    configure_logging(level=config.logging.level)
    return RetailCore.build(config=config, clock=clock)

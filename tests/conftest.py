"""
Pytest fixtures for the retail ledger test suite.

Provides:
- A deterministic clock and default engine config
- An entity store seeded with two stores, two products and three invoices
- A wired ledger, transfer coordinator and payment allocator over that store
- Log capture as parsed JSON records
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from retail_config.schema import AllocationConfig, EngineConfig
from retail_engines.allocation import RemainderPolicy
from retail_kernel.domain.clock import DeterministicClock
from retail_kernel.domain.master_data import Product, Store
from retail_kernel.domain.receivables import Invoice
from retail_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from retail_services.entity_store import EntityStore
from retail_services.movement_ledger import MovementLedger
from retail_services.payment_allocator import PaymentAllocator
from retail_services.transfer_coordinator import TransferCoordinator


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def log_stream():
    """Configure JSON logging into a buffer; returns a callable yielding parsed records."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(level=logging.DEBUG, handler=handler)

    def records() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return records


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def reject_config():
    return EngineConfig(allocation=AllocationConfig(remainder_policy=RemainderPolicy.REJECT))


@pytest.fixture
def entity_store():
    store = EntityStore()
    store.load(
        stores=[
            Store(id="S1", name="Downtown Counter", group="North"),
            Store(id="S2", name="Mall Counter", group="South", risk_status="High"),
        ],
        products=[
            Product(id="P1", sku="SKU-001", name="Linen Shirt", brand="Acme",
                    cost=Decimal("12.50"), price=Decimal("29.90"), variants=("S", "M", "L")),
            Product(id="P2", sku="SKU-002", name="Canvas Tote", brand="Acme"),
        ],
        invoices=[
            Invoice(id="X", store_id="S1", amount=Decimal("30"),
                    issue_date=date(2024, 1, 5), due_date=date(2024, 2, 4)),
            Invoice(id="Y", store_id="S1", amount=Decimal("50"),
                    issue_date=date(2024, 1, 20), due_date=date(2024, 2, 19)),
            Invoice(id="Z", store_id="S2", amount=Decimal("100"),
                    issue_date=date(2024, 2, 1), due_date=date(2024, 3, 2)),
        ],
    )
    return store


@pytest.fixture
def ledger(entity_store, clock, config):
    return MovementLedger(entity_store, clock=clock, config=config)


@pytest.fixture
def coordinator(ledger, config):
    return TransferCoordinator(ledger, config=config)


@pytest.fixture
def allocator(entity_store, clock, config):
    return PaymentAllocator(entity_store, clock=clock, config=config)

"""
retail_services.receivables -- Read-side views over invoices.

Responsibility:
    Caller-side helpers around the payment allocator: oldest-first
    ordering, outstanding totals per store, and aging as of a date.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from retail_engines.aging import AgingCalculator, AgingReport
from retail_kernel.domain.clock import Clock, SystemClock
from retail_kernel.domain.receivables import Invoice, InvoiceStatus
from retail_kernel.domain.values import ZERO
from retail_services.entity_store import EntityStore


class ReceivablesService:
    """Receivables queries over the entity store."""

    def __init__(
        self,
        entity_store: EntityStore,
        clock: Clock | None = None,
        calculator: AgingCalculator | None = None,
    ):
        self._store = entity_store
        self._clock = clock or SystemClock()
        self._calculator = calculator or AgingCalculator()

    def oldest_first(self, invoice_ids: Sequence[str]) -> list[str]:
        """
        Order ids by issue date (then id). Unknown ids keep their relative
        order at the end; the allocator skips them.
        """
        known: list[Invoice] = []
        unknown: list[str] = []
        for invoice_id in dict.fromkeys(invoice_ids):
            invoice = self._store.find_invoice(invoice_id)
            if invoice is None:
                unknown.append(invoice_id)
            else:
                known.append(invoice)
        known.sort(key=lambda inv: (inv.issue_date or date.max, inv.id))
        return [inv.id for inv in known] + unknown

    def open_invoices(self, store_id: str | None = None) -> tuple[Invoice, ...]:
        """Unpaid and partially paid invoices, optionally for one store."""
        return tuple(
            inv for inv in self._store.invoices()
            if inv.status is not InvoiceStatus.PAID
            and (store_id is None or inv.store_id == store_id)
        )

    def outstanding_by_store(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for invoice in self.open_invoices():
            totals[invoice.store_id] = totals.get(invoice.store_id, ZERO) + invoice.due
        return totals

    def aging_report(self, as_of: date | None = None) -> AgingReport:
        return self._calculator.age_invoices(
            self._store.invoices(),
            as_of_date=as_of or self._clock.today(),
        )

"""
retail_engines.aging -- Receivables aging by due date.

Responsibility:
    Classify the outstanding due of open invoices into standard aging
    buckets as of a date, and total them by bucket and by store.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access
    (``as_of_date`` is always passed in).

Invariants enforced:
    - Only the unpaid remainder (``Invoice.due``) of Unpaid/Partial
      invoices is aged; Paid invoices never appear.
    - Every aged item falls in exactly one of the standard buckets.

Usage:
    report = AgingCalculator().age_invoices(invoices, as_of_date=date(2024, 3, 1))
    report.total_by_bucket()  # {"Current": ..., "1-30": ..., ...}
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from retail_engines.tracer import traced_engine
from retail_kernel.domain.receivables import Invoice, InvoiceStatus
from retail_kernel.domain.values import ZERO
from retail_kernel.logging_config import get_logger

logger = get_logger("engines.aging")


@dataclass(frozen=True)
class AgeBucket:
    """
    Definition of an aging bucket.

    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded (e.g., 90+)

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        return self.min_days <= age_days and (self.max_days is None or age_days <= self.max_days)


STANDARD_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("Current", 0, 0),
    AgeBucket("1-30", 1, 30),
    AgeBucket("31-60", 31, 60),
    AgeBucket("61-90", 61, 90),
    AgeBucket("Over 90", 91, None),
)


@dataclass(frozen=True)
class AgedInvoice:
    """An open invoice with its computed age (days past due)."""

    invoice_id: str
    store_id: str
    due_date: date | None
    outstanding: Decimal
    age_days: int
    bucket: AgeBucket

    @property
    def is_overdue(self) -> bool:
        return self.age_days > 0


@dataclass(frozen=True)
class AgingReport:
    """Snapshot aging of open receivables."""

    as_of_date: date
    buckets: tuple[AgeBucket, ...]
    items: tuple[AgedInvoice, ...]

    def total_outstanding(self) -> Decimal:
        return sum((i.outstanding for i in self.items), ZERO)

    def total_by_bucket(self) -> dict[str, Decimal]:
        """Outstanding per bucket; every bucket is present."""
        result = {b.name: ZERO for b in self.buckets}
        for item in self.items:
            result[item.bucket.name] += item.outstanding
        return result

    def total_by_store(self) -> dict[str, dict[str, Decimal]]:
        """Outstanding per store, then per bucket."""
        result: dict[str, dict[str, Decimal]] = {}
        for item in self.items:
            per_store = result.setdefault(item.store_id, {b.name: ZERO for b in self.buckets})
            per_store[item.bucket.name] += item.outstanding
        return result

    def overdue_items(self) -> tuple[AgedInvoice, ...]:
        return tuple(i for i in self.items if i.is_overdue)


class AgingCalculator:
    """
    Age open invoices.

    Contract:
        Pure functions -- no I/O, no clock.
    Non-goals:
        - Invoices with no due date are treated as current (age 0).
    """

    DEFAULT_BUCKETS = STANDARD_BUCKETS

    def calculate_age(self, due_date: date | None, as_of_date: date) -> int:
        """Days past due; negative if not yet due, 0 without a due date."""
        if due_date is None:
            return 0
        return (as_of_date - due_date).days

    def classify(
        self,
        age_days: int,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgeBucket:
        """Find the bucket for an age; not-yet-due ages map to the first bucket."""
        buckets = buckets or self.DEFAULT_BUCKETS
        if age_days < 0:
            return buckets[0]
        return next((b for b in buckets if b.contains(age_days)), buckets[-1])

    @traced_engine("aging", "1.0", fingerprint_fields=("as_of_date",))
    def age_invoices(
        self,
        invoices: Iterable[Invoice],
        as_of_date: date,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgingReport:
        """Build an aging report over the open invoices."""
        buckets = tuple(buckets or self.DEFAULT_BUCKETS)
        items: list[AgedInvoice] = []
        for invoice in invoices:
            if invoice.status is InvoiceStatus.PAID:
                continue
            age = self.calculate_age(invoice.due_date, as_of_date)
            items.append(AgedInvoice(
                invoice_id=invoice.id,
                store_id=invoice.store_id,
                due_date=invoice.due_date,
                outstanding=invoice.due,
                age_days=age,
                bucket=self.classify(age, buckets),
            ))

        logger.info("aging_report_built", extra={
            "as_of_date": as_of_date.isoformat(),
            "open_invoices": len(items),
        })
        return AgingReport(as_of_date=as_of_date, buckets=buckets, items=tuple(items))

"""
Receivables -- Invoices and the payments applied to them.

Responsibility:
    Define the ``Invoice`` snapshot, its append-only ``Payment`` history,
    and the single status-derivation rule.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - PAYMENT_SUM: ``paid_amount == sum(p.amount for p in payments)``.
    - PAYMENT_BOUNDS: ``0 <= paid_amount <= amount``.
    - STATUS_DERIVATION: ``status`` is computed from (paid_amount, amount)
      by ``derive_invoice_status`` and is never stored.

Failure modes:
    - ValueError on malformed construction input (negative invoice amount,
      non-positive payment amount).
    - InvariantViolationError when the payment history and paid amount
      disagree or the paid amount leaves its bounds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from retail_kernel.exceptions import InvariantViolationError
from retail_kernel.invariants import LedgerInvariant
from retail_kernel.domain.values import ZERO, parse_iso_date, to_decimal


class InvoiceStatus(str, Enum):
    """Settlement state of an invoice. Derived, never set directly."""

    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


def derive_invoice_status(paid_amount: Decimal, amount: Decimal) -> InvoiceStatus:
    """
    Status as a pure function of paid and total amounts.

    ``Paid`` wins for a zero-amount invoice: nothing is owed.
    """
    if paid_amount >= amount:
        return InvoiceStatus.PAID
    if paid_amount > ZERO:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


@dataclass(frozen=True)
class Payment:
    """The portion of a submitted payment applied to one invoice."""

    id: str
    date: date
    amount: Decimal
    method: str
    reference: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", parse_iso_date(self.date))
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if self.amount <= ZERO:
            raise ValueError(f"Payment amount must be positive, got {self.amount}")


@dataclass(frozen=True)
class Invoice:
    """
    An amount owed by a store.

    Contract:
        Snapshot value; the payment allocator replaces it on every applied
        payment and bumps ``version``.
    Guarantees:
        - PAYMENT_SUM and PAYMENT_BOUNDS hold for every instance.
        - ``status`` always agrees with ``derive_invoice_status``.
    """

    id: str
    store_id: str
    amount: Decimal
    paid_amount: Decimal = ZERO
    payments: tuple[Payment, ...] = field(default=())
    store_name: str | None = None
    brand: str = ""
    issue_date: date | None = None
    due_date: date | None = None
    version: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "paid_amount", to_decimal(self.paid_amount))
        object.__setattr__(self, "payments", tuple(self.payments))
        if self.issue_date is not None:
            object.__setattr__(self, "issue_date", parse_iso_date(self.issue_date))
        if self.due_date is not None:
            object.__setattr__(self, "due_date", parse_iso_date(self.due_date))

        if self.amount < ZERO:
            raise ValueError(f"Invoice {self.id} amount cannot be negative")

        # INVARIANT: PAYMENT_SUM
        applied = sum((p.amount for p in self.payments), ZERO)
        if applied != self.paid_amount:
            raise InvariantViolationError(
                LedgerInvariant.PAYMENT_SUM.value,
                f"invoice {self.id}: payments sum to {applied}, "
                f"paid_amount is {self.paid_amount}",
            )
        # INVARIANT: PAYMENT_BOUNDS
        if self.paid_amount < ZERO or self.paid_amount > self.amount:
            raise InvariantViolationError(
                LedgerInvariant.PAYMENT_BOUNDS.value,
                f"invoice {self.id}: paid_amount {self.paid_amount} "
                f"outside [0, {self.amount}]",
            )

    @property
    def status(self) -> InvoiceStatus:
        return derive_invoice_status(self.paid_amount, self.amount)

    @property
    def due(self) -> Decimal:
        """Unpaid remainder."""
        return self.amount - self.paid_amount

    def is_overdue(self, as_of: date) -> bool:
        """True if past its due date and not fully paid."""
        if self.due_date is None or self.status is InvoiceStatus.PAID:
            return False
        return as_of > self.due_date

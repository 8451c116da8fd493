"""
Tests for invoices, payments and status derivation.

Status is a pure function of (paid_amount, amount); invoices refuse to
exist with a payment history that disagrees with their paid amount.
"""

from datetime import date
from decimal import Decimal

import pytest

from retail_kernel.domain.master_data import Product, RiskStatus, Store
from retail_kernel.domain.receivables import (
    Invoice,
    InvoiceStatus,
    Payment,
    derive_invoice_status,
)
from retail_kernel.exceptions import InvariantViolationError
from retail_kernel.invariants import LedgerInvariant


def _payment(amount: str, pid: str = "pay-1") -> Payment:
    return Payment(id=pid, date=date(2024, 3, 1), amount=Decimal(amount), method="Cash")


class TestStatusDerivation:
    """derive_invoice_status over the three regions."""

    @pytest.mark.parametrize("paid,amount,expected", [
        ("0", "100", InvoiceStatus.UNPAID),
        ("0.01", "100", InvoiceStatus.PARTIAL),
        ("99.99", "100", InvoiceStatus.PARTIAL),
        ("100", "100", InvoiceStatus.PAID),
    ])
    def test_regions(self, paid, amount, expected):
        assert derive_invoice_status(Decimal(paid), Decimal(amount)) is expected

    def test_zero_amount_invoice_is_paid(self):
        invoice = Invoice(id="I0", store_id="S1", amount=Decimal("0"))
        assert invoice.status is InvoiceStatus.PAID
        assert invoice.due == Decimal("0")


class TestInvoice:
    """Construction and derived values."""

    def test_status_and_due_follow_payments(self):
        invoice = Invoice(
            id="I1", store_id="S1", amount=Decimal("100"),
            paid_amount=Decimal("60"), payments=(_payment("60"),),
        )
        assert invoice.status is InvoiceStatus.PARTIAL
        assert invoice.due == Decimal("40")

    def test_amount_coerced_to_decimal(self):
        invoice = Invoice(id="I1", store_id="S1", amount="125.50", issue_date="2024-01-05")
        assert invoice.amount == Decimal("125.50")
        assert invoice.issue_date == date(2024, 1, 5)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            Invoice(id="I1", store_id="S1", amount=Decimal("-1"))

    def test_payment_sum_mismatch_raises(self):
        with pytest.raises(InvariantViolationError) as exc_info:
            Invoice(
                id="I1", store_id="S1", amount=Decimal("100"),
                paid_amount=Decimal("50"), payments=(_payment("40"),),
            )
        assert exc_info.value.invariant == LedgerInvariant.PAYMENT_SUM.value

    def test_overpaid_invoice_raises(self):
        with pytest.raises(InvariantViolationError) as exc_info:
            Invoice(
                id="I1", store_id="S1", amount=Decimal("100"),
                paid_amount=Decimal("120"), payments=(_payment("120"),),
            )
        assert exc_info.value.invariant == LedgerInvariant.PAYMENT_BOUNDS.value

    def test_is_overdue(self):
        invoice = Invoice(id="I1", store_id="S1", amount=Decimal("100"),
                          due_date=date(2024, 2, 1))
        assert invoice.is_overdue(date(2024, 2, 2))
        assert not invoice.is_overdue(date(2024, 2, 1))

    def test_paid_invoice_is_never_overdue(self):
        invoice = Invoice(
            id="I1", store_id="S1", amount=Decimal("10"), paid_amount=Decimal("10"),
            payments=(_payment("10"),), due_date=date(2024, 2, 1),
        )
        assert not invoice.is_overdue(date(2025, 1, 1))


class TestPayment:

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValueError, match="positive"):
            _payment(amount)


class TestMasterData:

    def test_store_risk_status_coerced(self):
        store = Store(id="S1", name="Downtown", risk_status="High")
        assert store.risk_status is RiskStatus.HIGH
        assert store.credit_term_days == 30

    def test_store_requires_id(self):
        with pytest.raises(ValueError):
            Store(id="", name="Nameless")

    def test_product_prices_coerced(self):
        product = Product(id="P1", sku="SKU-1", name="Shirt", cost=12.5, price="29.90",
                          variants=["S", "M"])
        assert product.cost == Decimal("12.5")
        assert product.price == Decimal("29.90")
        assert product.variants == ("S", "M")

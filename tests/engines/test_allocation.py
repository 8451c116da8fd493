"""
Tests for the Payment Allocation Engine.

Covers:
- Sequential allocation in caller order
- Exhaustion and leftover
- Remainder policy (drop / reject)
- Edge cases and error handling
"""

from decimal import Decimal

import pytest

from retail_engines.allocation import (
    AllocationLine,
    AllocationResult,
    AllocationTarget,
    PaymentAllocationEngine,
    RemainderPolicy,
    apply_remainder_policy,
)
from retail_kernel.exceptions import UnappliedPaymentError


def _targets(*dues: tuple[str, str]) -> list[AllocationTarget]:
    return [AllocationTarget(target_id=tid, due=Decimal(due)) for tid, due in dues]


class TestSequentialAllocation:
    """Allocates in the given order until the amount is exhausted."""

    def setup_method(self):
        self.engine = PaymentAllocationEngine()

    def test_spills_to_second_target(self):
        """70 over dues 30, 50: first settled, second gets 40."""
        result = self.engine.allocate(
            amount=Decimal("70"),
            targets=_targets(("X", "30"), ("Y", "50")),
        )

        assert [line.allocated for line in result.lines] == [Decimal("30"), Decimal("40")]
        assert result.lines[0].is_fully_allocated
        assert result.lines[1].remaining == Decimal("10")
        assert result.total_allocated == Decimal("70")
        assert result.unallocated == Decimal("0")
        assert result.is_fully_allocated

    def test_order_is_respected(self):
        """The caller's order decides who is paid first."""
        result = self.engine.allocate(
            amount=Decimal("30"),
            targets=_targets(("Y", "50"), ("X", "30")),
        )
        assert result.lines[0].target_id == "Y"
        assert result.lines[0].allocated == Decimal("30")
        assert result.lines[1].allocated == Decimal("0")
        assert [line.target_id for line in result.funded_lines] == ["Y"]

    def test_overpayment_leaves_unallocated(self):
        result = self.engine.allocate(
            amount=Decimal("1000"),
            targets=_targets(("Z", "100")),
        )
        assert result.total_allocated == Decimal("100")
        assert result.unallocated == Decimal("900")
        assert not result.is_fully_allocated

    def test_no_targets(self):
        result = self.engine.allocate(amount=Decimal("25"), targets=[])
        assert result.lines == ()
        assert result.unallocated == Decimal("25")

    def test_zero_due_target_receives_nothing(self):
        result = self.engine.allocate(
            amount=Decimal("10"),
            targets=_targets(("A", "0"), ("B", "10")),
        )
        assert result.lines[0].allocated == Decimal("0")
        assert result.lines[1].allocated == Decimal("10")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1")])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValueError, match="positive"):
            self.engine.allocate(amount=amount, targets=_targets(("X", "30")))

    def test_negative_due_rejected(self):
        with pytest.raises(ValueError):
            AllocationTarget(target_id="X", due=Decimal("-1"))


class TestRemainderPolicy:
    """apply_remainder_policy resolves leftovers."""

    def _result(self, unallocated: str) -> AllocationResult:
        allocated = Decimal("100")
        return AllocationResult(
            source_amount=allocated + Decimal(unallocated),
            lines=(AllocationLine("Z", allocated, Decimal("0")),),
            total_allocated=allocated,
            unallocated=Decimal(unallocated),
        )

    def test_fully_allocated_returns_zero_under_any_policy(self):
        for policy in RemainderPolicy:
            assert apply_remainder_policy(self._result("0"), policy) == Decimal("0")

    def test_drop_returns_dropped_amount(self, log_stream):
        dropped = apply_remainder_policy(self._result("900"), RemainderPolicy.DROP, "RCPT-1")

        assert dropped == Decimal("900")
        warnings = [r for r in log_stream() if r["message"] == "payment_remainder_dropped"]
        assert warnings[0]["unallocated"] == "900"
        assert warnings[0]["reference"] == "RCPT-1"

    def test_reject_raises(self):
        with pytest.raises(UnappliedPaymentError) as exc_info:
            apply_remainder_policy(self._result("900"), RemainderPolicy.REJECT, "RCPT-1")
        assert exc_info.value.unapplied == Decimal("900")
        assert exc_info.value.amount == Decimal("1000")
        assert exc_info.value.code == "UNAPPLIED_PAYMENT"

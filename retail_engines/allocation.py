"""
Module: retail_engines.allocation
Responsibility:
    Allocate a single payment amount across an ordered sequence of
    invoice dues, sequentially, in exactly the order given, and decide
    what happens to any amount left over.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import retail_kernel.

Invariants enforced:
    - Conservation: total_allocated + unallocated == source_amount.
    - Bound: no line is allocated more than its due;
      total_allocated == min(source_amount, sum of dues).
    - Purity: no clock access, no I/O.

Failure modes:
    - ValueError on a non-positive source amount or a negative due.
    - UnappliedPaymentError from ``apply_remainder_policy`` under the
      "reject" policy when something is left over.

Usage:
    from retail_engines.allocation import PaymentAllocationEngine, AllocationTarget

    engine = PaymentAllocationEngine()
    result = engine.allocate(
        amount=Decimal("70"),
        targets=[
            AllocationTarget(target_id="X", due=Decimal("30")),
            AllocationTarget(target_id="Y", due=Decimal("50")),
        ],
    )
    # X gets 30, Y gets 40, unallocated 0
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from retail_engines.tracer import traced_engine
from retail_kernel.domain.values import ZERO
from retail_kernel.exceptions import UnappliedPaymentError
from retail_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


class RemainderPolicy(str, Enum):
    """What to do with payment left over after every listed due is settled."""

    DROP = "drop"  # Discard silently (logged)
    REJECT = "reject"  # Refuse the whole payment before any mutation


@dataclass(frozen=True)
class AllocationTarget:
    """An invoice eligible to receive part of a payment."""

    target_id: str
    due: Decimal

    def __post_init__(self) -> None:
        if self.due < ZERO:
            raise ValueError(f"Target {self.target_id} due cannot be negative")


@dataclass(frozen=True)
class AllocationLine:
    """
    Result of allocation to a single target.

    Guarantees:
        - ``allocated + remaining == due``.
    """

    target_id: str
    allocated: Decimal
    remaining: Decimal

    @property
    def is_fully_allocated(self) -> bool:
        return self.remaining == ZERO


@dataclass(frozen=True)
class AllocationResult:
    """
    Complete allocation result.

    Guarantees:
        - ``total_allocated + unallocated == source_amount``.
    Non-goals:
        - Does not mutate invoices; the payment allocator service commits.
    """

    source_amount: Decimal
    lines: tuple[AllocationLine, ...]
    total_allocated: Decimal
    unallocated: Decimal

    @property
    def is_fully_allocated(self) -> bool:
        """True if the entire source amount found a target."""
        return self.unallocated == ZERO

    @property
    def funded_lines(self) -> tuple[AllocationLine, ...]:
        """Lines that received a non-zero portion."""
        return tuple(line for line in self.lines if line.allocated > ZERO)


class PaymentAllocationEngine:
    """
    Sequential, caller-ordered payment allocation.

    Contract:
        Pure function of (amount, targets). No I/O.
    Guarantees:
        - Targets are visited in the given order; none is reordered.
        - Each target receives ``min(due, remaining)``.
    Non-goals:
        - Does not decide priority (oldest-first etc. is a caller policy).
        - Does not skip paid or unknown invoices; callers pass only
          eligible targets.
    """

    @traced_engine("allocation", "1.0", fingerprint_fields=("amount", "targets"))
    def allocate(
        self,
        amount: Decimal,
        targets: Sequence[AllocationTarget],
    ) -> AllocationResult:
        """
        Allocate amount to targets sequentially until exhausted.

        Args:
            amount: Positive payment amount
            targets: Ordered targets with their current dues

        Returns:
            AllocationResult with one line per target
        """
        if amount <= ZERO:
            raise ValueError(f"Payment amount must be positive, got {amount}")

        remaining_to_allocate = amount
        lines: list[AllocationLine] = []

        for target in targets:
            to_allocate = min(target.due, remaining_to_allocate)
            remaining_to_allocate -= to_allocate
            lines.append(
                AllocationLine(
                    target_id=target.target_id,
                    allocated=to_allocate,
                    remaining=target.due - to_allocate,
                )
            )

        total_allocated = amount - remaining_to_allocate

        assert total_allocated + remaining_to_allocate == amount, (
            f"Allocation conservation violated: "
            f"{total_allocated} + {remaining_to_allocate} != {amount}"
        )

        logger.info("allocation_sequential_completed", extra={
            "source_amount": str(amount),
            "total_allocated": str(total_allocated),
            "unallocated": str(remaining_to_allocate),
            "targets_funded": sum(1 for line in lines if line.allocated > ZERO),
            "line_count": len(lines),
        })

        return AllocationResult(
            source_amount=amount,
            lines=tuple(lines),
            total_allocated=total_allocated,
            unallocated=remaining_to_allocate,
        )


def apply_remainder_policy(
    result: AllocationResult,
    policy: RemainderPolicy,
    reference: str = "",
) -> Decimal:
    """
    Resolve the unallocated part of a payment.

    Returns the amount dropped (zero when fully allocated). Under REJECT a
    leftover raises ``UnappliedPaymentError`` so the caller can abort
    before touching any invoice.
    """
    if result.is_fully_allocated:
        return ZERO

    if policy is RemainderPolicy.REJECT:
        logger.warning("payment_remainder_rejected", extra={
            "reference": reference,
            "source_amount": str(result.source_amount),
            "unallocated": str(result.unallocated),
        })
        raise UnappliedPaymentError(result.source_amount, result.unallocated, reference)

    logger.warning("payment_remainder_dropped", extra={
        "reference": reference,
        "source_amount": str(result.source_amount),
        "unallocated": str(result.unallocated),
    })
    return result.unallocated

"""
retail_services.reconciliation_service -- Ledger reconciliation runs.

Responsibility:
    Take a consistent snapshot of the movement log and the inventory
    projection, run the pure reconciliation engine over it, and either
    report or fail fast.

Failure modes:
    - InvariantViolationError from ``assert_clean`` when any discrepancy
      is found. The projection is never repaired in place.
"""

from __future__ import annotations

from retail_engines.reconciliation import (
    DiscrepancyKind,
    ReconciliationEngine,
    ReconciliationReport,
)
from retail_kernel.exceptions import InvariantViolationError
from retail_kernel.invariants import LedgerInvariant
from retail_kernel.logging_config import get_logger
from retail_services.movement_ledger import MovementLedger

logger = get_logger("services.reconciliation")

_TRANSFER_KINDS = frozenset({
    DiscrepancyKind.UNPAIRED_TRANSFER,
    DiscrepancyKind.UNBALANCED_TRANSFER,
})


class ReconciliationService:
    """Runs reconciliation over a ledger and its projection."""

    def __init__(self, ledger: MovementLedger, engine: ReconciliationEngine | None = None):
        self._ledger = ledger
        self._engine = engine or ReconciliationEngine()

    def run(self) -> ReconciliationReport:
        movements, items = self._ledger.snapshot()
        report = self._engine.reconcile(items=items, movements=movements)
        for discrepancy in report.discrepancies:
            logger.warning("reconciliation_discrepancy", extra={
                "kind": discrepancy.kind.value,
                "subject": discrepancy.subject,
                "detail": discrepancy.detail,
                "expected": discrepancy.expected,
                "actual": discrepancy.actual,
            })
        return report

    def assert_clean(self) -> ReconciliationReport:
        """Run and raise InvariantViolationError on the first discrepancy."""
        report = self.run()
        if report.is_clean:
            return report
        first = report.discrepancies[0]
        invariant = (
            LedgerInvariant.TRANSFER_BALANCE
            if first.kind in _TRANSFER_KINDS
            else LedgerInvariant.REPLAY_CONSISTENCY
        )
        raise InvariantViolationError(
            invariant.value,
            f"{len(report.discrepancies)} discrepancies; first: "
            f"{first.kind.value} {first.subject}: {first.detail}",
        )

"""
Retail Engines - Pure calculation layer.

Engines take snapshots and return results. They never read the clock,
never touch the entity store, and never mutate their inputs.

Engines:
    sign_policy     -- movement sign normalization
    projection      -- inventory fold and full replay
    allocation      -- sequential payment allocation + remainder policy
    reconciliation  -- projection vs ledger replay, transfer pairing
    aging           -- receivables aging buckets
"""

from retail_engines.aging import AgeBucket, AgingCalculator, AgingReport, STANDARD_BUCKETS
from retail_engines.allocation import (
    AllocationLine,
    AllocationResult,
    AllocationTarget,
    PaymentAllocationEngine,
    RemainderPolicy,
    apply_remainder_policy,
)
from retail_engines.projection import DisplayFields, ReplayedBalance, empty_item, fold, replay
from retail_engines.reconciliation import (
    Discrepancy,
    DiscrepancyKind,
    ReconciliationEngine,
    ReconciliationReport,
    check_transfer_pairs,
    reconcile_inventory,
)
from retail_engines.sign_policy import OUTBOUND_TYPES, normalize_quantity

__all__ = [
    "AgeBucket",
    "AgingCalculator",
    "AgingReport",
    "STANDARD_BUCKETS",
    "AllocationLine",
    "AllocationResult",
    "AllocationTarget",
    "PaymentAllocationEngine",
    "RemainderPolicy",
    "apply_remainder_policy",
    "DisplayFields",
    "ReplayedBalance",
    "empty_item",
    "fold",
    "replay",
    "Discrepancy",
    "DiscrepancyKind",
    "ReconciliationEngine",
    "ReconciliationReport",
    "check_transfer_pairs",
    "reconcile_inventory",
    "OUTBOUND_TYPES",
    "normalize_quantity",
]

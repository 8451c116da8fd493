"""
Ledger Invariants Contract.

These invariants are structural law for the stock ledger and the
receivables book. No configuration value or remainder policy may relax
them; a violation is a programmer error and fails fast with
``InvariantViolationError``.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across the domain types (``__post_init__``
checks), the projection engine, the transfer coordinator, and the
reconciliation engine.
"""

from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    VARIANT_SUM = "variant_sum"
    """InventoryItem.quantity equals the sum of its variant quantities.
    Enforced by InventoryItem.__post_init__."""

    REPLAY_CONSISTENCY = "replay_consistency"
    """InventoryItem.quantity equals the sum of all movement quantities
    for its (store, product) key. Verified by reconcile_inventory."""

    APPEND_ONLY = "append_only"
    """Stock movements and payments are never edited or removed.
    Corrections are new movements."""

    TRANSFER_BALANCE = "transfer_balance"
    """The two legs of a transfer share a reference, have equal magnitude
    and opposite sign. Enforced by TransferCoordinator and verified by
    check_transfer_pairs."""

    PAYMENT_SUM = "payment_sum"
    """Invoice.paid_amount equals the sum of its payment amounts.
    Enforced by Invoice.__post_init__."""

    PAYMENT_BOUNDS = "payment_bounds"
    """0 <= Invoice.paid_amount <= Invoice.amount.
    Enforced by Invoice.__post_init__."""

    STATUS_DERIVATION = "status_derivation"
    """Invoice status is a pure function of (paid_amount, amount).
    Enforced by derive_invoice_status; status is never stored."""


# All invariants as a frozenset for programmatic checks.
ALL_LEDGER_INVARIANTS: frozenset[LedgerInvariant] = frozenset(LedgerInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "retail_engines",
    "retail_services",
    "retail_config",
)

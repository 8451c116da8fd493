"""
retail_engines.sign_policy -- Movement sign normalization.

Outbound types (Sale, Transfer Out) may be submitted as an unsigned
magnitude; a positive value is negated before storage. An already
negative outbound value is stored unchanged (never double-negated).
Every other type is stored exactly as supplied, including negative
inbound values.
"""

from __future__ import annotations

from retail_kernel.domain.movements import MovementType

OUTBOUND_TYPES: frozenset[MovementType] = frozenset({
    MovementType.SALE,
    MovementType.TRANSFER_OUT,
})


def normalize_quantity(movement_type: MovementType, quantity: int) -> int:
    """Return the canonical signed quantity for a movement."""
    if movement_type in OUTBOUND_TYPES and quantity > 0:
        return -quantity
    return quantity

"""
retail_engines.reconciliation -- Ledger versus projection reconciliation.

Responsibility:
    Check the incrementally maintained inventory projection against a
    full replay of the movement ledger, and check that every transfer is
    recorded as a balanced pair of legs.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants verified:
    - REPLAY_CONSISTENCY: projected quantity and variant map per key equal
      the replayed ones; every key with movements has an item and every
      item has movements.
    - TRANSFER_BALANCE: within each reference, every Transfer Out leg is
      mirrored by a positive Transfer In leg for the same product and
      variant, so the legs sum to zero. A reference may cover several
      transfers.

Failure modes:
    - None. Discrepancies are reported, not raised; the reconciliation
      service decides whether to fail.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from retail_engines.projection import replay
from retail_engines.tracer import traced_engine
from retail_kernel.domain.movements import (
    InventoryItem,
    InventoryKey,
    MovementType,
    StockMovement,
)
from retail_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation")

TRANSFER_TYPES = frozenset({MovementType.TRANSFER_OUT, MovementType.TRANSFER_IN})


class DiscrepancyKind(str, Enum):
    """Category of reconciliation finding."""

    QUANTITY_MISMATCH = "quantity_mismatch"
    VARIANT_MISMATCH = "variant_mismatch"
    MISSING_ITEM = "missing_item"  # Ledger has movements, projection has no item
    ORPHAN_ITEM = "orphan_item"  # Projection item with no movements
    UNPAIRED_TRANSFER = "unpaired_transfer"
    UNBALANCED_TRANSFER = "unbalanced_transfer"


@dataclass(frozen=True)
class Discrepancy:
    """One reconciliation finding."""

    kind: DiscrepancyKind
    subject: str  # "store/product" key or transfer reference
    detail: str
    expected: int | None = None
    actual: int | None = None


@dataclass(frozen=True)
class ReconciliationReport:
    """
    Result of a reconciliation run.

    Guarantees:
        - ``is_clean`` iff there are no discrepancies of any kind.
    """

    discrepancies: tuple[Discrepancy, ...]
    items_checked: int
    transfers_checked: int

    @property
    def is_clean(self) -> bool:
        return not self.discrepancies

    def of_kind(self, kind: DiscrepancyKind) -> tuple[Discrepancy, ...]:
        return tuple(d for d in self.discrepancies if d.kind is kind)


def _subject(key: InventoryKey) -> str:
    return f"{key.store_id}/{key.product_id}"


def reconcile_inventory(
    items: Iterable[InventoryItem],
    movements: Sequence[StockMovement],
) -> tuple[tuple[Discrepancy, ...], int]:
    """
    Compare each projected item with the replay of its movements.

    Returns:
        (discrepancies, number of keys checked)
    """
    by_key: dict[InventoryKey, list[StockMovement]] = defaultdict(list)
    for movement in movements:
        by_key[movement.key].append(movement)

    projected = {item.key: item for item in items}
    found: list[Discrepancy] = []

    for key in sorted(set(by_key) | set(projected)):
        subject = _subject(key)
        item = projected.get(key)
        if key not in by_key:
            found.append(Discrepancy(
                DiscrepancyKind.ORPHAN_ITEM, subject,
                "projected item has no movements in the ledger",
                expected=0, actual=item.quantity,
            ))
            continue

        balance = replay(by_key[key], key.store_id, key.product_id)
        if item is None:
            found.append(Discrepancy(
                DiscrepancyKind.MISSING_ITEM, subject,
                f"{balance.movement_count} movements but no projected item",
                expected=balance.quantity, actual=None,
            ))
            continue

        if item.quantity != balance.quantity:
            found.append(Discrepancy(
                DiscrepancyKind.QUANTITY_MISMATCH, subject,
                "projected quantity differs from ledger replay",
                expected=balance.quantity, actual=item.quantity,
            ))
        for variant in sorted(set(balance.variant_quantities) | set(item.variant_quantities)):
            expected = balance.variant_quantities.get(variant)
            actual = item.variant_quantities.get(variant)
            if expected != actual:
                found.append(Discrepancy(
                    DiscrepancyKind.VARIANT_MISMATCH, subject,
                    f"variant {variant!r} differs from ledger replay",
                    expected=expected, actual=actual,
                ))

    return tuple(found), len(set(by_key) | set(projected))


def check_transfer_pairs(
    movements: Iterable[StockMovement],
) -> tuple[tuple[Discrepancy, ...], int]:
    """
    Verify every transfer leg has a mirroring leg under the same reference.

    A reference may cover several transfers (one order shipped in lots).
    Within a reference, each Out leg is matched to an In leg for the same
    product and variant with the opposite quantity. Legs left over are
    reported: on one side only as unpaired, on both sides as unbalanced.

    Returns:
        (discrepancies, number of transfer references checked)
    """
    legs: dict[str, list[StockMovement]] = defaultdict(list)
    for movement in movements:
        if movement.type in TRANSFER_TYPES:
            legs[movement.reference].append(movement)

    found: list[Discrepancy] = []
    for reference in sorted(legs):
        group = legs[reference]
        label = reference or "<no reference>"

        waiting: dict[tuple[str, str, int], list[StockMovement]] = defaultdict(list)
        for leg in group:
            if leg.type is MovementType.TRANSFER_IN and leg.quantity > 0:
                waiting[(leg.product_id, leg.variant, leg.quantity)].append(leg)

        unmatched_outs: list[StockMovement] = []
        for leg in group:
            if leg.type is not MovementType.TRANSFER_OUT:
                continue
            candidates = waiting.get((leg.product_id, leg.variant, -leg.quantity))
            if candidates:
                candidates.pop(0)
            else:
                unmatched_outs.append(leg)

        still_waiting = {id(leg) for pending in waiting.values() for leg in pending}
        unmatched_ins = [
            leg for leg in group
            if leg.type is MovementType.TRANSFER_IN
            and (leg.quantity <= 0 or id(leg) in still_waiting)
        ]

        if not unmatched_outs and not unmatched_ins:
            continue

        leftover = unmatched_outs + unmatched_ins
        leg_ids = ", ".join(f"{m.id} ({m.quantity})" for m in leftover)
        if unmatched_outs and unmatched_ins:
            found.append(Discrepancy(
                DiscrepancyKind.UNBALANCED_TRANSFER, label,
                f"legs {leg_ids} do not mirror each other",
                expected=0, actual=sum(m.quantity for m in leftover),
            ))
        else:
            found.append(Discrepancy(
                DiscrepancyKind.UNPAIRED_TRANSFER, label,
                f"no mirroring leg for {leg_ids}",
            ))

    return tuple(found), len(legs)


class ReconciliationEngine:
    """
    Full reconciliation over a snapshot of items and movements.

    Contract:
        Pure function of its inputs; callers take the snapshots.
    """

    @traced_engine("reconciliation", "1.0")
    def reconcile(
        self,
        items: Sequence[InventoryItem],
        movements: Sequence[StockMovement],
    ) -> ReconciliationReport:
        inventory_findings, items_checked = reconcile_inventory(items, movements)
        transfer_findings, transfers_checked = check_transfer_pairs(movements)

        report = ReconciliationReport(
            discrepancies=inventory_findings + transfer_findings,
            items_checked=items_checked,
            transfers_checked=transfers_checked,
        )
        logger.info("reconciliation_completed", extra={
            "items_checked": items_checked,
            "transfers_checked": transfers_checked,
            "discrepancy_count": len(report.discrepancies),
            "is_clean": report.is_clean,
        })
        return report

"""
retail_services.payment_allocator -- Apply a payment across invoices.

Responsibility:
    Distribute one payment amount over an ordered list of invoices,
    updating each invoice's paid amount and appending a Payment record
    for the portion actually applied to it.

Architecture position:
    Services -- composes ``PaymentAllocationEngine`` (pure) with the
    entity store. Plan first, resolve the remainder, then commit.

Invariants enforced:
    - PAYMENT_SUM / PAYMENT_BOUNDS: each invoice receives at most its due;
      the Payment record carries that portion, never the submitted total.
    - Total applied == min(amount, sum of dues of the listed open invoices).
    - Per-invoice serialization: the locks of every listed id are held
      from read to write.

Failure modes:
    - ValueError for a non-positive or non-numeric amount.
    - UnappliedPaymentError under the "reject" remainder policy; no
      invoice is modified in that case.
    - Unknown invoice ids and already-Paid invoices are skipped, not errors.

Contract gap:
    ``allocate`` is NOT idempotent. Calling it twice with the same
    arguments applies the payment twice. Callers must guarantee
    at-most-once submission (e.g. an idempotency key on the request).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

from retail_config.schema import EngineConfig
from retail_engines.allocation import (
    AllocationTarget,
    PaymentAllocationEngine,
    apply_remainder_policy,
)
from retail_kernel.domain.clock import Clock, SystemClock
from retail_kernel.domain.receivables import Invoice, InvoiceStatus, Payment
from retail_kernel.domain.values import ZERO, parse_iso_date, quantize, to_decimal
from retail_kernel.logging_config import LogContext, get_logger
from retail_services.entity_store import EntityStore
from retail_services.locking import KeyedLocks, retry_on_conflict

logger = get_logger("services.payment_allocator")


class PaymentAllocator:
    """
    Allocates payments to invoices in caller-given order.

    Contract:
        Invoices are visited in the order given; duplicates count once
        (first occurrence). Oldest-first or any other priority is decided
        by the caller (see ``ReceivablesService.oldest_first``).
    """

    def __init__(
        self,
        entity_store: EntityStore,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
        engine: PaymentAllocationEngine | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._store = entity_store
        self._clock = clock or SystemClock()
        self._config = config or EngineConfig()
        self._engine = engine or PaymentAllocationEngine()
        self._locks = locks or KeyedLocks()

    def allocate(
        self,
        invoice_ids: Sequence[str],
        amount: Decimal | int | float | str,
        method: str,
        reference: str = "",
        payment_date: date | str | None = None,
    ) -> list[Invoice]:
        """
        Apply ``amount`` to ``invoice_ids`` in order.

        Returns:
            The updated invoices that received a portion, in processing order.
        """
        value = quantize(to_decimal(amount), self._config.allocation.decimal_places)
        if value <= ZERO:
            raise ValueError(f"Payment amount must be positive, got {amount}")
        paid_on = parse_iso_date(payment_date) if payment_date is not None else self._clock.today()
        ordered_ids = list(dict.fromkeys(invoice_ids))

        with LogContext.bind(reference=reference or None):
            with self._locks.hold(*ordered_ids):
                return retry_on_conflict(
                    lambda: self._allocate_locked(ordered_ids, value, method, reference, paid_on),
                    self._config.concurrency.max_retries,
                    "allocate_payment",
                )

    allocate_payment = allocate

    def _allocate_locked(
        self,
        invoice_ids: list[str],
        amount: Decimal,
        method: str,
        reference: str,
        paid_on: date,
    ) -> list[Invoice]:
        snapshots: dict[str, Invoice] = {}
        targets: list[AllocationTarget] = []
        for invoice_id in invoice_ids:
            invoice = self._store.find_invoice(invoice_id)
            if invoice is None:
                logger.warning("payment_invoice_not_found", extra={"invoice_id": invoice_id})
                continue
            if invoice.status is InvoiceStatus.PAID:
                logger.info("payment_invoice_already_paid", extra={"invoice_id": invoice_id})
                continue
            snapshots[invoice_id] = invoice
            targets.append(AllocationTarget(target_id=invoice_id, due=invoice.due))

        result = self._engine.allocate(amount=amount, targets=targets)
        apply_remainder_policy(result, self._config.allocation.remainder_policy, reference)

        staged: list[tuple[Invoice, int]] = []
        for line in result.funded_lines:
            invoice = snapshots[line.target_id]
            payment = Payment(
                id=f"pay-{uuid4().hex}",
                date=paid_on,
                amount=line.allocated,
                method=method,
                reference=reference,
            )
            updated = replace(
                invoice,
                paid_amount=invoice.paid_amount + line.allocated,
                payments=invoice.payments + (payment,),
                version=invoice.version + 1,
            )
            staged.append((updated, invoice.version))

        self._store.put_invoices(staged)

        for updated, _ in staged:
            logger.info("payment_applied", extra={
                "invoice_id": updated.id,
                "applied": str(updated.payments[-1].amount),
                "paid_amount": str(updated.paid_amount),
                "status": updated.status.value,
                "method": method,
            })
        return [updated for updated, _ in staged]

"""
Typed Exception Hierarchy for the Retail Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger and the payment allocator need to react to errors
by type, not by parsing messages. Every exception here:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (survives logging/serialization)

Example - RIGHT way:
    try:
        allocator.allocate(invoice_ids, amount, "Cash", "RCPT-1")
    except UnappliedPaymentError as e:
        api_response(code=e.code, unapplied=str(e.unapplied))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RetailKernelError (base)
    |
    +-- NotFoundError
    |   +-- StoreNotFoundError
    |   +-- ProductNotFoundError
    |   +-- InvoiceNotFoundError
    |
    +-- InvariantViolationError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |
    +-- PaymentError
        +-- UnappliedPaymentError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Lookup          | STORE_NOT_FOUND             | Store ID doesn't exist (strict lookups)
                | PRODUCT_NOT_FOUND           | Product ID doesn't exist (strict lookups)
                | INVOICE_NOT_FOUND           | Invoice ID doesn't exist (strict lookups)
----------------|-----------------------------|-----------------------------------------
Invariant       | INVARIANT_VIOLATION         | A structural invariant broke (bug)
----------------|-----------------------------|-----------------------------------------
Concurrency     | CONCURRENT_MODIFICATION     | Version check failed on write
----------------|-----------------------------|-----------------------------------------
Payment         | UNAPPLIED_PAYMENT           | Remainder policy is "reject" and the
                |                             | payment exceeds the listed dues

===============================================================================
HANDLING PATTERNS
===============================================================================

1. Lookups degrade, they do not raise. ``EntityStore.find_*`` returns
   None; the allocator skips unknown invoice ids. The NotFoundError
   family is for strict callers (``EntityStore.get_invoice``).

2. InvariantViolationError is never caught inside the core. It means a
   component contract was broken and the operation must stop.

3. ConcurrentModificationError is retried by the services a bounded
   number of times (``concurrency.max_retries``) before it surfaces.

4. Business conditions (overpayment, negative stock, over-transfer) do
   NOT raise. The only exception is the opt-in "reject" remainder policy.
"""

from __future__ import annotations

from decimal import Decimal


class RetailKernelError(Exception):
    """
    Base exception for all retail kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RETAIL_KERNEL_ERROR"


# Lookup exceptions


class NotFoundError(RetailKernelError):
    """Referenced entity does not exist in the entity store."""

    code: str = "NOT_FOUND"
    entity_type: str = "entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type.capitalize()} not found: {entity_id}")


class StoreNotFoundError(NotFoundError):
    """Store with given ID was not found."""

    code: str = "STORE_NOT_FOUND"
    entity_type: str = "store"


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"
    entity_type: str = "product"


class InvoiceNotFoundError(NotFoundError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"
    entity_type: str = "invoice"


# Invariant exceptions


class InvariantViolationError(RetailKernelError):
    """
    A structural invariant was broken.

    Should never surface when component contracts are honored. Treated as
    a programmer error: fail fast, never self-heal.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"Invariant {invariant} violated: {detail}")


# Concurrency exceptions


class ConcurrencyError(RetailKernelError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """
    Optimistic version check failed.

    Another writer replaced the entity between read and write.
    """

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(
        self,
        entity_type: str,
        entity_key: str,
        expected_version: int,
        actual_version: int,
    ):
        self.entity_type = entity_type
        self.entity_key = entity_key
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Concurrent modification of {entity_type} {entity_key}: "
            f"expected version {expected_version}, found {actual_version}"
        )


# Payment exceptions


class PaymentError(RetailKernelError):
    """Base exception for payment allocation errors."""

    code: str = "PAYMENT_ERROR"


class UnappliedPaymentError(PaymentError):
    """
    Payment exceeds the dues of the listed invoices.

    Raised only under the "reject" remainder policy, before any invoice
    is modified.
    """

    code: str = "UNAPPLIED_PAYMENT"

    def __init__(self, amount: Decimal, unapplied: Decimal, reference: str):
        self.amount = amount
        self.unapplied = unapplied
        self.reference = reference
        super().__init__(
            f"Payment {reference} of {amount} leaves {unapplied} unapplied"
        )

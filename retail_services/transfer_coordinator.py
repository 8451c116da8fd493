"""
retail_services.transfer_coordinator -- Store-to-store stock transfers.

Responsibility:
    Turn one logical transfer into two linked ledger movements: a
    Transfer Out leg at the source store and a Transfer In leg at the
    destination, sharing one reference.

Invariants enforced:
    - TRANSFER_BALANCE: legs have equal magnitude and opposite sign and
      share ``reference``; their quantities sum to zero.
    - Atomicity: both legs go through ``MovementLedger.record_batch``, so
      either both are visible or neither is.

Failure modes:
    - ValueError from ``TransferRequest`` for a non-positive or non-integer
      quantity.
    - InvariantViolationError if the recorded legs do not mirror each other.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any
from uuid import uuid4

from retail_config.schema import EngineConfig
from retail_kernel.domain.movements import (
    DEFAULT_VARIANT,
    MovementInput,
    MovementType,
    StockMovement,
    TransferRequest,
)
from retail_kernel.exceptions import InvariantViolationError
from retail_kernel.invariants import LedgerInvariant
from retail_kernel.logging_config import LogContext, get_logger
from retail_services.movement_ledger import MovementLedger

logger = get_logger("services.transfer_coordinator")


class TransferCoordinator:
    """Records transfers through the movement ledger."""

    def __init__(self, ledger: MovementLedger, config: EngineConfig | None = None):
        self._ledger = ledger
        self._config = config or EngineConfig()

    def _new_reference(self) -> str:
        prefix = self._config.display.transfer_reference_prefix
        return f"{prefix}-{uuid4().hex[:12].upper()}"

    def transfer(self, request: TransferRequest) -> tuple[StockMovement, StockMovement]:
        """
        Move ``request.quantity`` units between stores.

        An empty reference is replaced by a generated one so the legs stay
        linked. Returns (out_leg, in_leg).
        """
        reference = request.reference or self._new_reference()
        out_leg = MovementInput(
            date=request.date,
            type=MovementType.TRANSFER_OUT,
            store_id=request.from_store_id,
            product_id=request.product_id,
            variant=request.variant,
            quantity=-request.quantity,
            reference=reference,
        )
        in_leg = MovementInput(
            date=request.date,
            type=MovementType.TRANSFER_IN,
            store_id=request.to_store_id,
            product_id=request.product_id,
            variant=request.variant,
            quantity=request.quantity,
            reference=reference,
        )

        with LogContext.bind(reference=reference):
            out_movement, in_movement = self._ledger.record_batch([out_leg, in_leg])

            # INVARIANT: TRANSFER_BALANCE
            if (
                out_movement.quantity + in_movement.quantity != 0
                or out_movement.reference != in_movement.reference
            ):
                raise InvariantViolationError(
                    LedgerInvariant.TRANSFER_BALANCE.value,
                    f"legs {out_movement.id} ({out_movement.quantity}) and "
                    f"{in_movement.id} ({in_movement.quantity}) do not balance",
                )

            logger.info("transfer_recorded", extra={
                "from_store_id": request.from_store_id,
                "to_store_id": request.to_store_id,
                "product_id": request.product_id,
                "variant": request.variant,
                "quantity": request.quantity,
                "out_movement_id": out_movement.id,
                "in_movement_id": in_movement.id,
            })
        return out_movement, in_movement

    def move_stock(
        self,
        date: date | str,
        from_store_id: str,
        to_store_id: str,
        product_id: str,
        quantity: int,
        variant: str = DEFAULT_VARIANT,
        reference: str = "",
    ) -> tuple[StockMovement, StockMovement]:
        """Positional form of ``transfer``."""
        return self.transfer(TransferRequest(
            date=date,
            from_store_id=from_store_id,
            to_store_id=to_store_id,
            product_id=product_id,
            quantity=quantity,
            variant=variant,
            reference=reference,
        ))

    def transfer_from_mapping(self, data: Mapping[str, Any]) -> tuple[StockMovement, StockMovement]:
        """External boundary: transfer from a field mapping."""
        return self.transfer(TransferRequest.from_mapping(data))

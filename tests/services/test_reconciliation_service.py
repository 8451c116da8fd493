"""Tests for reconciliation runs over a live ledger."""

from dataclasses import replace

import pytest

from retail_engines.reconciliation import DiscrepancyKind
from retail_kernel.exceptions import InvariantViolationError
from retail_kernel.invariants import LedgerInvariant
from retail_services.reconciliation_service import ReconciliationService


def _purchase(ledger, store_id, quantity, variant="M"):
    ledger.record_movement({
        "date": "2024-02-01", "type": "Purchase", "storeId": store_id,
        "productId": "P1", "variant": variant, "quantity": quantity,
    })


class TestReconciliationService:

    def test_clean_after_normal_activity(self, ledger, coordinator):
        _purchase(ledger, "S1", 20)
        ledger.record_movement({
            "date": "2024-03-01", "type": "Sale", "storeId": "S1",
            "productId": "P1", "variant": "M", "quantity": 3,
        })
        coordinator.move_stock("2024-03-02", "S1", "S2", "P1", 5, variant="M")

        report = ReconciliationService(ledger).assert_clean()

        assert report.is_clean
        assert report.items_checked == 2
        assert report.transfers_checked == 1

    def test_transfers_sharing_a_reference_are_clean(self, ledger, coordinator):
        _purchase(ledger, "S1", 10)
        coordinator.move_stock("2024-03-02", "S1", "S2", "P1", 3, variant="M", reference="PO-7")
        coordinator.move_stock("2024-03-03", "S1", "S2", "P1", 2, variant="M", reference="PO-7")

        report = ReconciliationService(ledger).assert_clean()

        assert report.transfers_checked == 1
        assert ledger.inventory("S2", "P1").quantity == 5

    def test_drift_is_reported_and_logged(self, ledger, entity_store, log_stream):
        _purchase(ledger, "S1", 10)
        item = entity_store.inventory_item("S1", "P1")
        entity_store.put_inventory_item(
            replace(item, quantity=12, variant_quantities={"M": 12}, version=item.version + 1),
            item.version,
        )

        report = ReconciliationService(ledger).run()

        assert report.of_kind(DiscrepancyKind.QUANTITY_MISMATCH)
        warnings = [r for r in log_stream() if r["message"] == "reconciliation_discrepancy"]
        assert warnings[0]["kind"] == "quantity_mismatch"
        assert warnings[0]["expected"] == 10
        assert warnings[0]["actual"] == 12

    def test_assert_clean_raises_on_drift(self, ledger, entity_store):
        _purchase(ledger, "S1", 10)
        item = entity_store.inventory_item("S1", "P1")
        entity_store.put_inventory_item(
            replace(item, quantity=9, variant_quantities={"M": 9}, version=item.version + 1),
            item.version,
        )

        with pytest.raises(InvariantViolationError) as exc_info:
            ReconciliationService(ledger).assert_clean()
        assert exc_info.value.invariant == LedgerInvariant.REPLAY_CONSISTENCY.value

    def test_unpaired_transfer_maps_to_transfer_balance(self, ledger):
        ledger.record_movement({
            "date": "2024-03-01", "type": "Transfer Out", "storeId": "S1",
            "productId": "P1", "variant": "M", "quantity": 4, "reference": "TRF-HALF",
        })

        with pytest.raises(InvariantViolationError) as exc_info:
            ReconciliationService(ledger).assert_clean()
        assert exc_info.value.invariant == LedgerInvariant.TRANSFER_BALANCE.value
        assert "TRF-HALF" in exc_info.value.detail

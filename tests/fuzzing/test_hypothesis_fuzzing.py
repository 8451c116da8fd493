"""
Hypothesis-based property tests.

Properties fuzzed here:
- Replay equivalence: incremental fold == full replay for any sequence
- Variant sum: every projected item satisfies quantity == sum(variants)
- Transfer conservation: legs sum to zero, balances move by exactly q
- Allocation bound and conservation for any amount and dues
- Payment history: paid_amount == sum(payments) <= amount after any
  sequence of payments
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from retail_engines.allocation import AllocationTarget, PaymentAllocationEngine
from retail_engines.projection import empty_item, fold, replay
from retail_engines.reconciliation import reconcile_inventory
from retail_kernel.domain.movements import MovementInput, MovementType
from retail_kernel.domain.receivables import Invoice, InvoiceStatus
from retail_services.entity_store import EntityStore
from retail_services.movement_ledger import MovementLedger
from retail_services.payment_allocator import PaymentAllocator
from retail_services.transfer_coordinator import TransferCoordinator

movement_types = st.sampled_from(list(MovementType))
variants = st.sampled_from(["S", "M", "L", "Standard"])
quantities = st.integers(min_value=-500, max_value=500)
stores = st.sampled_from(["S1", "S2", "S3"])

movement_inputs = st.builds(
    MovementInput,
    date=st.just("2024-03-01"),
    type=movement_types,
    store_id=stores,
    product_id=st.sampled_from(["P1", "P2"]),
    quantity=quantities,
    variant=variants,
)

money = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("100000"), places=2,
    allow_nan=False, allow_infinity=False,
)
dues = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100000"), places=2,
    allow_nan=False, allow_infinity=False,
)

FUZZ = settings(max_examples=75, deadline=None,
                suppress_health_check=[HealthCheck.function_scoped_fixture])


class TestLedgerProperties:

    @FUZZ
    @given(inputs=st.lists(movement_inputs, max_size=40))
    def test_fold_equals_replay(self, inputs):
        ledger = MovementLedger(EntityStore())
        for movement_input in inputs:
            ledger.record(movement_input)

        movements = ledger.movements()
        for item in ledger.snapshot()[1]:
            rebuilt = empty_item(item.store_id, item.product_id)
            for movement in movements:
                if movement.key == item.key:
                    rebuilt = fold(rebuilt, movement)
            balance = replay(movements, item.store_id, item.product_id)

            assert item.quantity == rebuilt.quantity == balance.quantity
            assert item.variant_quantities == balance.variant_quantities
            assert item.quantity == sum(item.variant_quantities.values())

        findings, _ = reconcile_inventory(ledger.snapshot()[1], movements)
        assert findings == ()

    @FUZZ
    @given(
        inputs=st.lists(movement_inputs, max_size=15),
        source=stores,
        dest=stores,
        quantity=st.integers(min_value=1, max_value=1000),
    )
    def test_transfer_conserves_stock(self, inputs, source, dest, quantity):
        ledger = MovementLedger(EntityStore())
        for movement_input in inputs:
            ledger.record(movement_input)

        def balance(store_id):
            item = ledger.inventory(store_id, "P1")
            return item.quantity if item else 0

        before_source, before_dest = balance(source), balance(dest)
        out_leg, in_leg = TransferCoordinator(ledger).move_stock(
            "2024-03-02", source, dest, "P1", quantity, variant="M",
        )

        assert out_leg.quantity + in_leg.quantity == 0
        if source != dest:
            assert balance(source) == before_source - quantity
            assert balance(dest) == before_dest + quantity
        else:
            assert balance(source) == before_source


class TestAllocationProperties:

    @FUZZ
    @given(amount=money, due_list=st.lists(dues, max_size=10))
    def test_bound_and_conservation(self, amount, due_list):
        targets = [AllocationTarget(target_id=f"T{i}", due=d) for i, d in enumerate(due_list)]
        result = PaymentAllocationEngine().allocate(amount=amount, targets=targets)

        assert result.total_allocated + result.unallocated == amount
        assert result.total_allocated == min(amount, sum(due_list, Decimal("0")))
        for line, target in zip(result.lines, targets):
            assert Decimal("0") <= line.allocated <= target.due
            assert line.allocated + line.remaining == target.due

    @FUZZ
    @given(
        invoice_amount=money,
        payments=st.lists(money, min_size=1, max_size=8),
    )
    def test_payments_never_exceed_invoice(self, invoice_amount, payments):
        store = EntityStore()
        store.add_invoice(Invoice(id="I1", store_id="S1", amount=invoice_amount))
        allocator = PaymentAllocator(store)

        for amount in payments:
            allocator.allocate(["I1"], amount, "Cash")

        invoice = store.get_invoice("I1")
        assert invoice.paid_amount == min(invoice_amount, sum(payments, Decimal("0")))
        assert sum((p.amount for p in invoice.payments), Decimal("0")) == invoice.paid_amount
        assert all(p.amount > 0 for p in invoice.payments)
        if invoice.paid_amount == invoice_amount:
            assert invoice.status is InvoiceStatus.PAID

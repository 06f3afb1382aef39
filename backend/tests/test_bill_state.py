"""
Tests for the bill state machine.

1. State derived from amount_paid / is_paid
2. PAID is terminal
3. Transitions out of GENERATED
4. State after applying a payment
"""
from waterworks.models.records import Bill, BillState
from waterworks.services.billing.bill_state import BillStateMachine, bill_state

from conftest import CUSTOMER, PREMISES


def make_bill(**kwargs):
    return Bill("BILL-1", CUSTOMER, PREMISES, total_amount_due=100.0, **kwargs)


# =============================================================================
# TEST: BILL STATE MACHINE
# =============================================================================

class TestBillStateMachine:
    """GENERATED -> PARTIALLY_PAID -> PAID."""

    def test_derived_state(self):
        assert bill_state(make_bill()) == BillState.GENERATED
        assert bill_state(make_bill(amount_paid=10.0)) == BillState.PARTIALLY_PAID
        assert bill_state(make_bill(amount_paid=100.0, is_paid=True)) == BillState.PAID

    def test_paid_is_terminal(self):
        machine = BillStateMachine()
        assert machine.is_terminal_state(BillState.PAID)
        allowed, reason = machine.can_transition(BillState.PAID, BillState.PARTIALLY_PAID)
        assert allowed is False
        assert "PAID" in reason

    def test_generated_can_reach_both_states(self):
        machine = BillStateMachine()
        assert machine.get_next_states(BillState.GENERATED) == [BillState.PARTIALLY_PAID, BillState.PAID]
        assert machine.can_transition(BillState.GENERATED, BillState.PAID)[0]

    def test_state_after_payment(self):
        bill = make_bill(amount_paid=40.0)
        assert BillStateMachine.state_after_payment(bill, 59.99) == BillState.PARTIALLY_PAID
        assert BillStateMachine.state_after_payment(bill, 60.0) == BillState.PAID

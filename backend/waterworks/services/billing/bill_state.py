"""
Bill State Machine

GENERATED -> PARTIALLY_PAID -> PAID

State is derived from the bill's amount_paid / is_paid fields rather
than stored. PAID is terminal: no transition leaves it.
"""
from typing import Any, Dict, List, Tuple

from ...models.records import Bill, BillState


STATE_CONFIG = {
    BillState.GENERATED: {
        "description": "Bill issued, nothing paid yet",
        "allowed_transitions": [BillState.PARTIALLY_PAID, BillState.PAID],
    },
    BillState.PARTIALLY_PAID: {
        "description": "Some payment received, balance outstanding",
        "allowed_transitions": [BillState.PARTIALLY_PAID, BillState.PAID],
    },
    BillState.PAID: {
        "description": "Amount paid covers total amount due",
        "allowed_transitions": [],  # Terminal state
    },
}


def bill_state(bill: Bill) -> BillState:
    if bill.is_paid:
        return BillState.PAID
    if bill.amount_paid > 0:
        return BillState.PARTIALLY_PAID
    return BillState.GENERATED


class BillStateMachine:
    """Transition rules for bill settlement."""

    def get_state_config(self, state: BillState) -> Dict[str, Any]:
        return STATE_CONFIG.get(state, {})

    def can_transition(self, from_state: BillState, to_state: BillState) -> Tuple[bool, str]:
        """Returns (allowed, reason)"""
        if to_state in self.get_state_config(from_state).get("allowed_transitions", []):
            return True, "Transition allowed"
        return False, f"Cannot transition from {from_state.value} to {to_state.value}"

    def is_terminal_state(self, state: BillState) -> bool:
        return len(self.get_state_config(state).get("allowed_transitions", [])) == 0

    def get_next_states(self, state: BillState) -> List[BillState]:
        return self.get_state_config(state).get("allowed_transitions", [])

    @staticmethod
    def state_after_payment(bill: Bill, amount: float) -> BillState:
        """State the bill reaches once amount is added to amount_paid."""
        if bill.amount_paid + amount >= bill.total_amount_due:
            return BillState.PAID
        return BillState.PARTIALLY_PAID

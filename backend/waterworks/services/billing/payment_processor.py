"""
Payment Processor

Applies a customer payment to their most recent unpaid bill.

Selection: among the customer's unpaid bills, the one with the highest
month_number; on a tie the first one in storage order wins.

Settlement: amount_paid += amount. Once amount_paid >= total_amount_due
the bill is PAID (terminal). Any surplus is reported on the receipt as a
credit; it is informational and not persisted.

Write order: payment append -> bill rewrite (temp-then-swap, all other
bills copied through untouched) -> activity log. A StorageFailure in a
later step undoes the earlier ones before it propagates.
"""
import dataclasses
import logging
import math
from datetime import date
from typing import Callable, Optional, Union

from ...models.records import Bill, BillState, Payment, PaymentCard, generate_id
from ...models.results import Receipt, Rejection
from ..storage.record_store import RecordStore, StorageFailure
from ..storage.repositories import CustomerRepository
from .activity_log import ActivityLog
from .bill_state import BillStateMachine, bill_state

logger = logging.getLogger(__name__)


class PaymentProcessor:

    def __init__(
        self,
        customers: CustomerRepository,
        cards: RecordStore[PaymentCard],
        bills: RecordStore[Bill],
        payments: RecordStore[Payment],
        activity_log: ActivityLog,
        today: Callable[[], date] = date.today,
    ):
        self.customers = customers
        self.cards = cards
        self.bills = bills
        self.payments = payments
        self.activity_log = activity_log
        self.today = today
        self.state_machine = BillStateMachine()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def has_active_card(self, customer_number: str) -> bool:
        customer = self.customers.get(customer_number)
        if customer is None or not customer.has_payment_card:
            return False
        card = self.cards.find_first(lambda c: c.customer_number == customer_number and c.is_active)
        return card is not None

    def latest_unpaid_bill(self, customer_number: str) -> Optional[Bill]:
        latest = None
        for bill in self.bills.scan():
            if bill.customer_number != customer_number or bill.is_paid:
                continue
            if latest is None or bill.month_number > latest.month_number:
                latest = bill
        return latest

    def payments_for(self, customer_number: str):
        return self.payments.filter(lambda p: p.customer_number == customer_number)

    # =========================================================================
    # PAYMENT
    # =========================================================================

    def pay_bill(self, customer_number: str, amount: float) -> Union[Receipt, Rejection]:
        """
        Pay amount towards the customer's latest unpaid bill.

        Returns a Receipt, or a Rejection with no state changed.
        """
        if self.customers.get(customer_number) is None:
            return self._reject(Rejection.validation(
                "customer_not_found", f"Customer {customer_number} not found",
            ))

        if not self.has_active_card(customer_number):
            return self._reject(Rejection.business_rule(
                "no_payment_card",
                f"Customer {customer_number} must register a payment card before making payments",
            ))

        bill = self.latest_unpaid_bill(customer_number)
        if bill is None:
            return self._reject(Rejection.validation(
                "no_unpaid_bill", f"No unpaid bills found for customer {customer_number}",
            ))

        if amount <= 0 or not math.isfinite(amount):
            return self._reject(Rejection.validation(
                "invalid_amount", "Payment amount must be a finite number greater than zero",
            ))

        current_state = bill_state(bill)
        next_state = self.state_machine.state_after_payment(bill, amount)
        allowed, reason = self.state_machine.can_transition(current_state, next_state)
        if not allowed:
            return self._reject(Rejection.business_rule("bill_closed", reason))

        amount_paid = bill.amount_paid + amount
        updated = dataclasses.replace(
            bill,
            amount_paid=amount_paid,
            is_paid=next_state == BillState.PAID,
        )
        payment = Payment(
            payment_id=generate_id("PMT"),
            bill_id=bill.bill_id,
            customer_number=customer_number,
            premises_number=bill.premises_number,
            amount=amount,
            payment_date=self.today().isoformat(),
        )

        self._persist(payment, bill, updated)

        credit = amount_paid - updated.total_amount_due if updated.is_paid else 0.0
        if credit > 0:
            logger.info(f"Overpayment of {credit:.2f} on bill {bill.bill_id} reported as credit")

        logger.info(
            f"Applied payment {payment.payment_id} of {amount:.2f} to bill {bill.bill_id}: "
            f"{current_state.value} -> {next_state.value}"
        )
        return Receipt(
            payment=payment,
            bill=updated,
            state=next_state,
            remaining_balance=max(updated.balance, 0.0),
            credit=max(credit, 0.0),
        )

    def _persist(self, payment: Payment, original: Bill, updated: Bill) -> None:
        bill_id = original.bill_id
        self.payments.append(payment)

        try:
            self.bills.replace_where(lambda b: b.bill_id == bill_id, lambda _: updated)
        except StorageFailure as e:
            logger.error(f"Bill rewrite failed for {bill_id}; removing payment {payment.payment_id}: {e}")
            self.payments.remove_where(lambda p: p.payment_id == payment.payment_id)
            raise

        try:
            self.activity_log.record_payment(payment.customer_number, payment.amount)
        except StorageFailure as e:
            logger.error(
                f"Activity log failed for payment {payment.payment_id}; restoring bill {bill_id}: {e}"
            )
            self.bills.replace_where(lambda b: b.bill_id == bill_id, lambda _: original)
            self.payments.remove_where(lambda p: p.payment_id == payment.payment_id)
            raise

    @staticmethod
    def _reject(rejection: Rejection) -> Rejection:
        logger.warning(f"Payment rejected ({rejection.code}): {rejection.message}")
        return rejection

"""
Billing Reports

Read-only aggregate views over the Bill store and the customer working
set. Nothing here mutates state.
"""
from typing import Dict, List, Optional

from ...models.records import Bill
from ...models.results import ArchivedCustomerRow, OwingBillRow, PaidBillRow
from ..storage.record_store import RecordStore
from ..storage.repositories import CustomerRepository, PremisesRepository


class BillingReports:

    def __init__(
        self,
        customers: CustomerRepository,
        premises: PremisesRepository,
        bills: RecordStore[Bill],
    ):
        self.customers = customers
        self.premises = premises
        self.bills = bills

    def _name(self, customer_number: str) -> str:
        customer = self.customers.get(customer_number)
        return customer.full_name if customer else ""

    def get_latest_bill(self, customer_number: str) -> Optional[Bill]:
        """Highest month_number for the customer; first one wins a tie."""
        latest = None
        for bill in self.bills.scan():
            if bill.customer_number != customer_number:
                continue
            if latest is None or bill.month_number > latest.month_number:
                latest = bill
        return latest

    def list_paid_bills(self) -> List[PaidBillRow]:
        return [
            PaidBillRow(
                customer_number=bill.customer_number,
                premises_number=bill.premises_number,
                name=self._name(bill.customer_number),
                month_number=bill.month_number,
                amount_paid=bill.amount_paid,
            )
            for bill in self.bills.scan()
            if bill.is_paid
        ]

    def list_owing_bills(self) -> List[OwingBillRow]:
        return [
            OwingBillRow(
                customer_number=bill.customer_number,
                premises_number=bill.premises_number,
                name=self._name(bill.customer_number),
                month_number=bill.month_number,
                amount_owing=bill.balance,
            )
            for bill in self.bills.scan()
            if not bill.is_paid
        ]

    def outstanding_balances(self) -> Dict[str, float]:
        """Unpaid balance per customer across all their bills."""
        balances: Dict[str, float] = {}
        for bill in self.bills.scan():
            if not bill.is_paid:
                balances[bill.customer_number] = balances.get(bill.customer_number, 0.0) + bill.balance
        return balances

    def list_archived_customers_with_balance(self) -> List[ArchivedCustomerRow]:
        balances = self.outstanding_balances()
        return [
            ArchivedCustomerRow(
                customer_number=customer.customer_number,
                premises_numbers=[p.premises_number for p in self.premises.for_customer(customer.customer_number)],
                name=customer.full_name,
                outstanding_balance=balances.get(customer.customer_number, 0.0),
            )
            for customer in self.customers.archived()
        ]

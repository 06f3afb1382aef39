"""
Ledger Context

Builds every store, repository and service for one data directory and
exposes the core operations to the presentation shell. Constructed once
at startup and passed to callers explicitly; there is no module-level
mutable state.
"""
import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Union

from ..models.records import ActivityLogEntry, Bill, Customer, Payment, PaymentCard, Premises
from .accounts.account_service import AccountService
from .billing.activity_log import ActivityLog
from .billing.bill_engine import BillEngine
from .billing.meter_ledger import MeterLedger
from .billing.payment_processor import PaymentProcessor
from .billing.randomness import RandomSource, SystemRandomSource
from .billing.reports import BillingReports
from .storage.record_store import RecordStore
from .storage.repositories import CustomerRepository, PremisesRepository

logger = logging.getLogger(__name__)


STORE_FILES = {
    "customers": "customers.jsonl",
    "premises": "premises.jsonl",
    "bills": "bills.jsonl",
    "payments": "payments.jsonl",
    "payment_cards": "payment_cards.jsonl",
    "system_logs": "system_logs.jsonl",
}


class LedgerContext:
    """
    The billing core for one data directory.

    Core operations:
    - generate_bill(customer_number, premises_number)
    - pay_bill(customer_number, amount)
    - surrender_meter(customer_number, premises_number)
    - get_latest_bill(customer_number)
    - list_paid_bills() / list_owing_bills() / list_archived_customers_with_balance()
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        operating_year: int,
        rng: Optional[RandomSource] = None,
        today: Callable[[], date] = date.today,
    ):
        self.data_dir = Path(data_dir)
        self.rng = rng or SystemRandomSource()

        # Stores
        self.customer_store = RecordStore(self._path("customers"), Customer)
        self.premises_store = RecordStore(self._path("premises"), Premises)
        self.bills = RecordStore(self._path("bills"), Bill)
        self.payments = RecordStore(self._path("payments"), Payment)
        self.cards = RecordStore(self._path("payment_cards"), PaymentCard)
        self.logs = RecordStore(self._path("system_logs"), ActivityLogEntry)

        # Working set
        self.customers = CustomerRepository(self.customer_store)
        self.premises = PremisesRepository(self.premises_store)

        # Services
        self.activity_log = ActivityLog(self.logs, today=today)
        self.meter_ledger = MeterLedger(self.rng)
        self.bill_engine = BillEngine(
            self.customers,
            self.premises,
            self.bills,
            self.meter_ledger,
            self.rng,
            operating_year=operating_year,
            today=today,
        )
        self.payment_processor = PaymentProcessor(
            self.customers, self.cards, self.bills, self.payments, self.activity_log, today=today,
        )
        self.accounts = AccountService(
            self.customers, self.premises, self.cards, self.bills, self.activity_log, self.rng,
        )
        self.reports = BillingReports(self.customers, self.premises, self.bills)

        logger.info(
            f"Ledger loaded from {self.data_dir}: {len(self.customers)} customers, "
            f"{len(self.premises)} premises"
        )

    def _path(self, store: str) -> Path:
        return self.data_dir / STORE_FILES[store]

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------

    def generate_bill(self, customer_number: str, premises_number: str):
        return self.bill_engine.generate_bill(customer_number, premises_number)

    def pay_bill(self, customer_number: str, amount: float):
        return self.payment_processor.pay_bill(customer_number, amount)

    def surrender_meter(self, customer_number: str, premises_number: str):
        return self.accounts.surrender_meter(customer_number, premises_number)

    def get_latest_bill(self, customer_number: str):
        return self.reports.get_latest_bill(customer_number)

    def list_paid_bills(self):
        return self.reports.list_paid_bills()

    def list_owing_bills(self):
        return self.reports.list_owing_bills()

    def list_archived_customers_with_balance(self):
        return self.reports.list_archived_customers_with_balance()

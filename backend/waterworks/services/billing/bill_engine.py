"""
Bill Engine

Orchestrates bill creation for one customer + premises.

Preconditions (checked in order, each a distinct rejection):
1. Customer exists and is active.
2. Premises exists, is active and belongs to the customer.
3. Fewer than UNPAID_BILL_LIMIT unpaid bills for that customer + premises.

Generation:
- Simulate cycle consumption and advance the premises readings.
- Month number = highest prior month + 1, wrapping 12 -> 1.
- Tariff charges, then PAM / X-Factor / K-Factor adjustments.
- Early-payment eligibility by coin flip, amount in [50, 250].
- Overdue = sum of unpaid balances of prior bills for the premises.
- total_amount_due = total_current_charges - early_payment_amount + overdue_amount

Persistence is staged: the bill is appended first, then the premises
store is rewritten. If the premises rewrite fails the bill is removed
again, so a StorageFailure never leaves a bill without its reading
advance (or the reverse).
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, List, Union

from ...models.records import Bill, MeterSize, generate_id
from ...models.results import Rejection
from ..storage.record_store import RecordStore, StorageFailure
from ..storage.repositories import CustomerRepository, PremisesRepository
from .meter_ledger import MeterLedger
from .randomness import RandomSource
from .tariff import TariffCalculator

logger = logging.getLogger(__name__)


# =============================================================================
# BILLING CONFIGURATION
# =============================================================================

UNPAID_BILL_LIMIT = 2
DUE_DATE_OFFSET_DAYS = 30
MONTHS_PER_YEAR = 12

PAM_RATE = 0.0121        # Price Adjustment Mechanism surcharge
X_FACTOR_RATE = -0.05    # efficiency rebate
K_FACTOR_RATE = 0.20     # capital investment recovery

EARLY_PAYMENT_MIN = 50
EARLY_PAYMENT_MAX = 250


@dataclass
class ChargeBreakdown:
    water: float
    sewerage: float
    service: float
    pam: float
    x_factor: float
    k_factor: float
    total_current_charges: float


def compute_charges(consumption: int, meter_size: Union[MeterSize, str]) -> ChargeBreakdown:
    """Tariff charges plus regulatory adjustments for one cycle."""
    water = TariffCalculator.water_charge(consumption)
    sewerage = TariffCalculator.sewerage_charge(consumption)
    service = TariffCalculator.service_charge(meter_size)

    base = water + sewerage + service
    pam = PAM_RATE * base
    x_factor = X_FACTOR_RATE * base
    k_factor = K_FACTOR_RATE * (base + pam) - x_factor

    return ChargeBreakdown(
        water=water,
        sewerage=sewerage,
        service=service,
        pam=pam,
        x_factor=x_factor,
        k_factor=k_factor,
        total_current_charges=water + sewerage + service - x_factor + k_factor,
    )


def next_month(last_month: int) -> int:
    """1 when there is no prior bill; 12 wraps to 1."""
    return 1 if last_month >= MONTHS_PER_YEAR else last_month + 1


def due_date_for(bill_date: date) -> date:
    return bill_date + timedelta(days=DUE_DATE_OFFSET_DAYS)


# =============================================================================
# BILL ENGINE
# =============================================================================

class BillEngine:
    """
    Creates bills and answers per-premises bill questions.

    Bills are never cached: every question re-scans the bill store.
    """

    def __init__(
        self,
        customers: CustomerRepository,
        premises: PremisesRepository,
        bills: RecordStore[Bill],
        meter_ledger: MeterLedger,
        rng: RandomSource,
        operating_year: int,
        today: Callable[[], date] = date.today,
    ):
        self.customers = customers
        self.premises = premises
        self.bills = bills
        self.meter_ledger = meter_ledger
        self.rng = rng
        self.operating_year = operating_year
        self.today = today

    # =========================================================================
    # QUERIES
    # =========================================================================

    def bills_for_premises(self, customer_number: str, premises_number: str) -> List[Bill]:
        return self.bills.filter(
            lambda b: b.customer_number == customer_number and b.premises_number == premises_number
        )

    def unpaid_bills(self, customer_number: str, premises_number: str) -> List[Bill]:
        return [b for b in self.bills_for_premises(customer_number, premises_number) if not b.is_paid]

    def next_month_number(self, customer_number: str, premises_number: str) -> int:
        months = [b.month_number for b in self.bills_for_premises(customer_number, premises_number)]
        return next_month(max(months, default=0))

    # =========================================================================
    # GENERATION
    # =========================================================================

    def generate_bill(self, customer_number: str, premises_number: str) -> Union[Bill, Rejection]:
        """
        Generate the next bill for a customer's premises.

        Returns the persisted Bill, or a Rejection with no state changed.
        Raises StorageFailure if the medium fails (after undoing any
        partially persisted step).
        """
        customer = self.customers.get_active(customer_number)
        if customer is None:
            return self._reject(Rejection.validation(
                "customer_not_found", f"Customer {customer_number} not found or is archived",
            ))

        premises = self.premises.get_owned_active(premises_number, customer_number)
        if premises is None:
            return self._reject(Rejection.validation(
                "premises_not_found",
                f"Premises {premises_number} not found, not associated with customer "
                f"{customer_number}, or is inactive",
            ))

        prior_bills = self.bills_for_premises(customer_number, premises_number)
        unpaid = [b for b in prior_bills if not b.is_paid]
        if len(unpaid) >= UNPAID_BILL_LIMIT:
            return self._reject(Rejection.business_rule(
                "unpaid_bill_limit",
                f"Cannot generate bill: customer {customer_number} has {len(unpaid)} unpaid bills "
                f"for premises {premises_number}",
            ))

        # 1. Consumption and reading advance (staged, not yet persisted)
        consumption = self.meter_ledger.simulate_consumption(customer.income_class)
        advanced = self.meter_ledger.advance(premises, consumption)

        # 2. Month number
        month_number = next_month(max((b.month_number for b in prior_bills), default=0))

        # 3-5. Charges
        charges = compute_charges(consumption, premises.meter_size)

        # 6. Early payment
        eligible = self.rng.randint(0, 1) == 1
        early_payment_amount = float(self.rng.randint(EARLY_PAYMENT_MIN, EARLY_PAYMENT_MAX)) if eligible else 0.0

        # 7. Overdue
        overdue_amount = 0.0
        for prior in unpaid:
            overdue_amount += prior.total_amount_due - prior.amount_paid

        bill_date = self.today()
        bill = Bill(
            bill_id=generate_id("BILL"),
            customer_number=customer_number,
            premises_number=premises_number,
            month_number=month_number,
            year=self.operating_year,
            previous_reading=advanced.previous_reading,
            current_reading=advanced.current_reading,
            consumption=consumption,
            water_charge=charges.water,
            sewerage_charge=charges.sewerage,
            service_charge=charges.service,
            pam=charges.pam,
            x_factor=charges.x_factor,
            k_factor=charges.k_factor,
            total_current_charges=charges.total_current_charges,
            early_payment_amount=early_payment_amount,
            overdue_amount=overdue_amount,
            # 8. Total
            total_amount_due=charges.total_current_charges - early_payment_amount + overdue_amount,
            # 9. Settlement starts empty
            amount_paid=0.0,
            is_early_payment_eligible=eligible,
            is_paid=False,
            bill_date=bill_date.isoformat(),
            due_date=due_date_for(bill_date).isoformat(),
        )

        # 10. Persist
        self._persist(bill, advanced)

        logger.info(
            f"Generated bill {bill.bill_id} for customer {customer_number} premises {premises_number}: "
            f"month={month_number} consumption={consumption}L total_due={bill.total_amount_due:.2f}"
        )
        return bill

    def _persist(self, bill: Bill, advanced_premises) -> None:
        self.bills.append(bill)
        try:
            self.premises.update(advanced_premises)
        except StorageFailure as e:
            logger.error(
                f"Premises rewrite failed after appending bill {bill.bill_id}; removing the bill: {e}"
            )
            self.bills.remove_where(lambda b: b.bill_id == bill.bill_id)
            raise

    @staticmethod
    def _reject(rejection: Rejection) -> Rejection:
        logger.warning(f"Bill generation rejected ({rejection.code}): {rejection.message}")
        return rejection

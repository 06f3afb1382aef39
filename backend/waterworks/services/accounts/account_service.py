"""
Account Service

Customer and premises lifecycle around the billing core:
agent intake, self-registration, edits, archival (soft delete),
payment-card registration and meter surrender.

Identifiers arrive already format-checked (7 digits) from the shell;
this layer checks existence and business rules only. Every method that
writes more than one store undoes its earlier writes when a later one
raises StorageFailure.
"""
import dataclasses
import logging
from typing import Optional, Tuple, Union

from ...models.records import (
    Bill, Customer, IncomeClass, MeterSize, PaymentCard, Premises,
)
from ...models.results import CustomerDetails, Rejection, SurrenderAck
from ..billing.activity_log import ActivityLog
from ..billing.randomness import RandomSource
from ..storage.record_store import RecordStore, StorageFailure
from ..storage.repositories import CustomerRepository, PremisesRepository

logger = logging.getLogger(__name__)


CUSTOMER_NUMBER_MIN = 1000000
CUSTOMER_NUMBER_MAX = 9999999
MAX_NUMBER_ATTEMPTS = 1000


class AccountService:

    def __init__(
        self,
        customers: CustomerRepository,
        premises: PremisesRepository,
        cards: RecordStore[PaymentCard],
        bills: RecordStore[Bill],
        activity_log: ActivityLog,
        rng: RandomSource,
    ):
        self.customers = customers
        self.premises = premises
        self.cards = cards
        self.bills = bills
        self.activity_log = activity_log
        self.rng = rng

    # =========================================================================
    # CUSTOMER INTAKE
    # =========================================================================

    def add_customer(
        self,
        customer_number: str,
        premises_number: str,
        first_name: str,
        last_name: str,
        meter_size: MeterSize,
        first_reading: int,
        income_class: IncomeClass,
    ) -> Union[Tuple[Customer, Premises], Rejection]:
        """Agent intake: a new customer together with their first premises."""
        if self.customers.exists(customer_number):
            return self._reject(Rejection.validation(
                "customer_exists", f"Customer number {customer_number} already exists",
            ))
        if self.premises.number_in_use(premises_number):
            return self._reject(Rejection.validation(
                "premises_exists", f"Premises number {premises_number} already exists",
            ))
        if first_reading < 0:
            return self._reject(Rejection.validation(
                "invalid_reading", "First reading cannot be negative",
            ))

        customer = Customer(
            customer_number=customer_number,
            first_name=first_name,
            last_name=last_name,
            income_class=IncomeClass(income_class),
        )
        premises = self._new_premises(premises_number, customer_number, meter_size, first_reading)

        self.customers.add(customer)
        try:
            self.premises.add(premises)
        except StorageFailure as e:
            logger.error(f"Premises append failed for new customer {customer_number}; removing customer: {e}")
            self.customers.discard_last(customer)
            raise

        logger.info(f"Added customer {customer_number} with premises {premises_number}")
        return customer, premises

    def register_customer(self, first_name: str, last_name: str, user_id: int = 0) -> Customer:
        """Self-registration: random unused number and random income class."""
        customer = Customer(
            customer_number=self._unused_customer_number(),
            first_name=first_name,
            last_name=last_name,
            income_class=list(IncomeClass)[self.rng.randint(0, len(IncomeClass) - 1)],
            user_id=user_id,
        )
        self.customers.add(customer)
        logger.info(f"Registered customer {customer.customer_number}")
        return customer

    def _unused_customer_number(self) -> str:
        for _ in range(MAX_NUMBER_ATTEMPTS):
            number = f"{self.rng.randint(CUSTOMER_NUMBER_MIN, CUSTOMER_NUMBER_MAX):07d}"
            if not self.customers.exists(number):
                return number
        raise RuntimeError("Could not allocate an unused customer number")

    def add_premises(
        self,
        customer_number: str,
        premises_number: str,
        meter_size: MeterSize,
        first_reading: int,
    ) -> Union[Premises, Rejection]:
        if self.customers.get_active(customer_number) is None:
            return self._reject(Rejection.validation(
                "customer_not_found", f"Customer {customer_number} not found or is archived",
            ))
        if self.premises.number_in_use(premises_number):
            return self._reject(Rejection.validation(
                "premises_exists", f"Premises number {premises_number} already exists",
            ))
        if first_reading < 0:
            return self._reject(Rejection.validation(
                "invalid_reading", "First reading cannot be negative",
            ))

        premises = self.premises.add(
            self._new_premises(premises_number, customer_number, meter_size, first_reading)
        )
        logger.info(f"Added premises {premises_number} for customer {customer_number}")
        return premises

    @staticmethod
    def _new_premises(premises_number: str, customer_number: str, meter_size, first_reading: int) -> Premises:
        return Premises(
            premises_number=premises_number,
            customer_number=customer_number,
            meter_size=MeterSize(meter_size),
            initial_reading=first_reading,
            previous_reading=first_reading,
            current_reading=first_reading,
        )

    # =========================================================================
    # EDIT / ARCHIVE
    # =========================================================================

    def edit_customer(
        self,
        customer_number: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        income_class: Optional[IncomeClass] = None,
    ) -> Union[Customer, Rejection]:
        customer = self.customers.get_active(customer_number)
        if customer is None:
            return self._reject(Rejection.validation(
                "customer_not_found", f"Customer {customer_number} not found or is archived",
            ))

        changes = {}
        if first_name is not None:
            changes["first_name"] = first_name
        if last_name is not None:
            changes["last_name"] = last_name
        if income_class is not None:
            changes["income_class"] = IncomeClass(income_class)
        if not changes:
            return self._reject(Rejection.validation("nothing_to_update", "No fields to update"))

        updated = self.customers.update(dataclasses.replace(customer, **changes))
        logger.info(f"Updated customer {customer_number}: {sorted(changes)}")
        return updated

    def archive_customer(self, customer_number: str) -> Union[Customer, Rejection]:
        """Soft delete the customer and every active premises they own."""
        customer = self.customers.get_active(customer_number)
        if customer is None:
            return self._reject(Rejection.validation(
                "customer_not_found", f"Customer {customer_number} not found or already archived",
            ))

        archived = self.customers.update(dataclasses.replace(customer, is_active=False))

        closing = [
            dataclasses.replace(p, is_active=False)
            for p in self.premises.for_customer(customer_number)
            if p.is_active
        ]
        if closing:
            try:
                self.premises.update_many(closing)
            except StorageFailure as e:
                logger.error(f"Premises archive failed for {customer_number}; restoring customer: {e}")
                self.customers.update(customer)
                raise

        logger.info(f"Archived customer {customer_number} and {len(closing)} premises")
        return archived

    # =========================================================================
    # PAYMENT CARD
    # =========================================================================

    def register_payment_card(self, customer_number: str, card_identifier: str) -> Union[PaymentCard, Rejection]:
        customer = self.customers.get_active(customer_number)
        if customer is None:
            return self._reject(Rejection.validation(
                "customer_not_found", f"Customer {customer_number} not found or is archived",
            ))
        if customer.has_payment_card:
            return self._reject(Rejection.business_rule(
                "card_already_registered", f"Customer {customer_number} already has a registered payment card",
            ))

        card = PaymentCard(customer_number=customer_number, card_identifier=card_identifier)
        self.cards.append(card)
        try:
            self.customers.update(dataclasses.replace(customer, has_payment_card=True))
        except StorageFailure as e:
            logger.error(f"Customer rewrite failed after card registration for {customer_number}: {e}")
            self.cards.remove_where(lambda c: c == card)
            raise

        logger.info(f"Registered payment card for customer {customer_number}")
        return card

    # =========================================================================
    # METER SURRENDER
    # =========================================================================

    def surrender_meter(self, customer_number: str, premises_number: str) -> Union[SurrenderAck, Rejection]:
        premises = self.premises.get_owned_active(premises_number, customer_number)
        if premises is None:
            return self._reject(Rejection.validation(
                "premises_not_found",
                f"Premises {premises_number} not found, not associated with customer "
                f"{customer_number}, or already inactive",
            ))

        unpaid = self.bills.find_first(
            lambda b: b.customer_number == customer_number
            and b.premises_number == premises_number
            and not b.is_paid
        )
        if unpaid is not None:
            return self._reject(Rejection.business_rule(
                "unpaid_bills",
                f"Cannot surrender meter at premises {premises_number}: unpaid bills exist",
            ))

        self.premises.update(dataclasses.replace(premises, is_active=False))
        try:
            entry = self.activity_log.record_surrender(customer_number)
        except StorageFailure as e:
            logger.error(f"Activity log failed for surrender of {premises_number}; reactivating premises: {e}")
            self.premises.update(premises)
            raise

        logger.info(f"Customer {customer_number} surrendered meter at premises {premises_number}")
        return SurrenderAck(
            customer_number=customer_number,
            premises_number=premises_number,
            meters_surrendered=entry.meters_surrendered,
        )

    # =========================================================================
    # DETAILS
    # =========================================================================

    def get_customer_details(self, customer_number: str) -> Optional[CustomerDetails]:
        customer = self.customers.get(customer_number)
        if customer is None:
            return None

        bills = self.bills.filter(lambda b: b.customer_number == customer_number)
        return CustomerDetails(
            customer=customer,
            premises=self.premises.for_customer(customer_number),
            bills=bills,
            outstanding_balance=sum(b.balance for b in bills if not b.is_paid),
        )

    @staticmethod
    def _reject(rejection: Rejection) -> Rejection:
        logger.warning(f"Account operation rejected ({rejection.code}): {rejection.message}")
        return rejection

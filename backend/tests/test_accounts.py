"""
Tests for the AccountService.

1. Agent intake and self-registration
2. Edit / archive (soft delete)
3. Payment-card registration
4. Meter surrender guard and counters
5. Customer details view
"""
from unittest.mock import patch

import pytest

from waterworks.models.records import Customer, IncomeClass, MeterSize, Premises
from waterworks.models.results import Rejection, RejectionKind, SurrenderAck
from waterworks.services.storage.record_store import StorageFailure

from conftest import CUSTOMER, PREMISES


# =============================================================================
# TEST: INTAKE
# =============================================================================

class TestIntake:
    """Agent intake and self-registration."""

    def test_add_customer_creates_both_records(self, ledger):
        result = ledger.accounts.add_customer(
            CUSTOMER, PREMISES, "Amina", "Otieno", MeterSize.METER_30MM, 250, IncomeClass.LOW,
        )

        customer, premises = result
        assert isinstance(customer, Customer)
        assert isinstance(premises, Premises)
        assert customer.is_active is True
        assert customer.has_payment_card is False
        assert premises.initial_reading == premises.previous_reading == premises.current_reading == 250
        assert ledger.customer_store.count() == 1
        assert ledger.premises_store.count() == 1

    def test_duplicate_customer_number(self, ledger, customer):
        result = ledger.accounts.add_customer(
            CUSTOMER, "1111111", "X", "Y", MeterSize.METER_15MM, 0, IncomeClass.LOW,
        )
        assert result.code == "customer_exists"
        assert ledger.premises_store.count() == 1

    def test_archived_customer_number_is_still_taken(self, ledger, customer):
        ledger.accounts.archive_customer(CUSTOMER)
        result = ledger.accounts.add_customer(
            CUSTOMER, "1111111", "X", "Y", MeterSize.METER_15MM, 0, IncomeClass.LOW,
        )
        assert result.code == "customer_exists"

    def test_premises_number_in_use(self, ledger, customer):
        result = ledger.accounts.add_customer(
            "2345678", PREMISES, "X", "Y", MeterSize.METER_15MM, 0, IncomeClass.LOW,
        )
        assert result.code == "premises_exists"
        assert ledger.customer_store.count() == 1

    def test_negative_reading(self, ledger):
        result = ledger.accounts.add_customer(
            CUSTOMER, PREMISES, "X", "Y", MeterSize.METER_15MM, -1, IncomeClass.LOW,
        )
        assert result.code == "invalid_reading"

    def test_premises_failure_removes_customer(self, ledger):
        failure = StorageFailure("premises.jsonl", "append")
        with patch.object(ledger.premises_store, "append", side_effect=failure):
            with pytest.raises(StorageFailure):
                ledger.accounts.add_customer(
                    CUSTOMER, PREMISES, "Amina", "Otieno", MeterSize.METER_15MM, 0, IncomeClass.LOW,
                )

        assert not ledger.customers.exists(CUSTOMER)
        assert ledger.customer_store.count() == 0

    def test_register_customer_assigns_number_and_class(self, ledger, rng):
        rng.feed(2345678, 4)

        customer = ledger.accounts.register_customer("Brian", "Kamau", user_id=12)

        assert customer.customer_number == "2345678"
        assert customer.income_class == IncomeClass.HIGH
        assert customer.user_id == 12
        assert ledger.customers.get("2345678") == customer

    def test_register_customer_skips_taken_numbers(self, ledger, rng, customer):
        rng.feed(int(CUSTOMER), 3456789, 0)

        registered = ledger.accounts.register_customer("Brian", "Kamau")

        assert registered.customer_number == "3456789"
        assert registered.income_class == IncomeClass.LOW

    def test_add_premises(self, ledger, customer):
        premises = ledger.accounts.add_premises(CUSTOMER, "2222222", MeterSize.METER_150MM, 5)

        assert premises.customer_number == CUSTOMER
        assert [p.premises_number for p in ledger.premises.for_customer(CUSTOMER)] == [PREMISES, "2222222"]

    def test_add_premises_unknown_customer(self, ledger):
        assert ledger.accounts.add_premises("9999999", "2222222", MeterSize.METER_15MM, 0).code == "customer_not_found"


# =============================================================================
# TEST: EDIT / ARCHIVE
# =============================================================================

class TestEditArchive:
    """Customer edits and soft delete."""

    def test_edit_customer(self, ledger, customer):
        updated = ledger.accounts.edit_customer(CUSTOMER, last_name="Wanjiru", income_class="HIGH")

        assert updated.last_name == "Wanjiru"
        assert updated.first_name == "Amina"
        assert updated.income_class == IncomeClass.HIGH
        assert ledger.customer_store.find_first(lambda c: True).last_name == "Wanjiru"

    def test_edit_with_nothing_to_change(self, ledger, customer):
        assert ledger.accounts.edit_customer(CUSTOMER).code == "nothing_to_update"

    def test_archive_deactivates_customer_and_premises(self, ledger, customer):
        ledger.accounts.add_premises(CUSTOMER, "2222222", MeterSize.METER_15MM, 0)

        archived = ledger.accounts.archive_customer(CUSTOMER)

        assert archived.is_active is False
        assert ledger.customers.get_active(CUSTOMER) is None
        assert all(not p.is_active for p in ledger.premises.for_customer(CUSTOMER))
        # Tombstoned, not removed
        assert ledger.customer_store.count() == 1
        assert ledger.premises_store.count() == 2

    def test_archive_twice(self, ledger, customer):
        ledger.accounts.archive_customer(CUSTOMER)
        assert ledger.accounts.archive_customer(CUSTOMER).code == "customer_not_found"

    def test_archive_premises_failure_restores_customer(self, ledger, customer):
        failure = StorageFailure("premises.jsonl", "rewrite")
        with patch.object(ledger.premises_store, "rewrite_all", side_effect=failure):
            with pytest.raises(StorageFailure):
                ledger.accounts.archive_customer(CUSTOMER)

        assert ledger.customers.get_active(CUSTOMER) is not None


# =============================================================================
# TEST: PAYMENT CARD
# =============================================================================

class TestPaymentCard:
    """One active card per customer."""

    def test_register_card(self, ledger, customer):
        card = ledger.accounts.register_payment_card(CUSTOMER, "CARD-4111")

        assert card.is_active is True
        assert ledger.customers.get(CUSTOMER).has_payment_card is True
        assert ledger.payment_processor.has_active_card(CUSTOMER)

    def test_second_card_rejected(self, ledger, customer, card):
        result = ledger.accounts.register_payment_card(CUSTOMER, "CARD-5500")

        assert result.kind == RejectionKind.BUSINESS_RULE
        assert result.code == "card_already_registered"
        assert ledger.cards.count() == 1

    def test_card_for_unknown_customer(self, ledger):
        assert ledger.accounts.register_payment_card("9999999", "CARD-1").code == "customer_not_found"

    def test_customer_rewrite_failure_removes_card(self, ledger, customer):
        failure = StorageFailure("customers.jsonl", "rewrite")
        with patch.object(ledger.customer_store, "rewrite_all", side_effect=failure):
            with pytest.raises(StorageFailure):
                ledger.accounts.register_payment_card(CUSTOMER, "CARD-4111")

        assert ledger.cards.count() == 0
        assert ledger.customers.get(CUSTOMER).has_payment_card is False


# =============================================================================
# TEST: METER SURRENDER
# =============================================================================

class TestSurrender:
    """Surrender is refused while any bill for the premises is unpaid."""

    def test_surrender_with_unpaid_bill(self, ledger, customer):
        ledger.generate_bill(CUSTOMER, PREMISES)

        result = ledger.surrender_meter(CUSTOMER, PREMISES)

        assert isinstance(result, Rejection)
        assert result.kind == RejectionKind.BUSINESS_RULE
        assert result.code == "unpaid_bills"
        assert ledger.premises.get_active(PREMISES) is not None

    def test_surrender_after_settling(self, ledger, customer, card):
        bill = ledger.generate_bill(CUSTOMER, PREMISES)
        ledger.pay_bill(CUSTOMER, bill.total_amount_due)

        ack = ledger.surrender_meter(CUSTOMER, PREMISES)

        assert isinstance(ack, SurrenderAck)
        assert ack.meters_surrendered == 1
        assert ledger.premises.get_active(PREMISES) is None
        entry = ledger.activity_log.latest_for(CUSTOMER)
        assert entry.payments_count == 1
        assert entry.meters_surrendered == 1

    def test_surrender_counts_accumulate(self, ledger, customer):
        ledger.accounts.add_premises(CUSTOMER, "2222222", MeterSize.METER_15MM, 0)
        ledger.surrender_meter(CUSTOMER, PREMISES)

        assert ledger.surrender_meter(CUSTOMER, "2222222").meters_surrendered == 2

    def test_surrender_foreign_or_inactive_premises(self, ledger, customer):
        assert ledger.surrender_meter("2345678", PREMISES).code == "premises_not_found"
        ledger.surrender_meter(CUSTOMER, PREMISES)
        assert ledger.surrender_meter(CUSTOMER, PREMISES).code == "premises_not_found"

    def test_log_failure_reactivates_premises(self, ledger, customer):
        failure = StorageFailure("system_logs.jsonl", "append")
        with patch.object(ledger.logs, "append", side_effect=failure):
            with pytest.raises(StorageFailure):
                ledger.surrender_meter(CUSTOMER, PREMISES)

        assert ledger.premises.get_active(PREMISES) is not None


# =============================================================================
# TEST: DETAILS
# =============================================================================

class TestCustomerDetails:
    """Customer, premises and billing history."""

    def test_details(self, ledger, customer):
        first = ledger.generate_bill(CUSTOMER, PREMISES)
        second = ledger.generate_bill(CUSTOMER, PREMISES)

        details = ledger.accounts.get_customer_details(CUSTOMER)

        assert details.customer.customer_number == CUSTOMER
        assert [p.premises_number for p in details.premises] == [PREMISES]
        assert [b.bill_id for b in details.bills] == [first.bill_id, second.bill_id]
        assert details.outstanding_balance == pytest.approx(first.total_amount_due + second.total_amount_due)

    def test_unknown_customer(self, ledger):
        assert ledger.accounts.get_customer_details("9999999") is None

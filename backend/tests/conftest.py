"""
Shared fixtures for the Waterworks Ledger tests.

Every ledger is built over a fresh tmp_path data directory with a
scripted random source and a pinned clock.
"""
from datetime import date

import pytest

from waterworks.models.records import IncomeClass, MeterSize
from waterworks.services.billing.randomness import RandomSource
from waterworks.services.ledger import LedgerContext


TODAY = date(2025, 3, 1)
CUSTOMER = "1234567"
PREMISES = "7654321"


class ScriptedRandom(RandomSource):
    """Returns scripted values in order, then `default` clamped to the range."""

    def __init__(self, script=(), default: int = 0):
        self.script = list(script)
        self.default = default

    def feed(self, *values: int) -> None:
        self.script.extend(values)

    def randint(self, low: int, high: int) -> int:
        if self.script:
            return self.script.pop(0)
        return min(max(self.default, low), high)


def cycle(daily: int, early: int = 0, days: int = 30):
    """Draws for one bill: `days` daily usages, the coin flip, the early amount."""
    draws = [daily] * days
    if early:
        return draws + [1, early]
    return draws + [0]


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def ledger(tmp_path, rng):
    return LedgerContext(tmp_path, operating_year=2025, rng=rng, today=lambda: TODAY)


@pytest.fixture
def customer(ledger):
    """Active MEDIUM customer with one 15mm premises at reading 1000."""
    customer, _premises = ledger.accounts.add_customer(
        customer_number=CUSTOMER,
        premises_number=PREMISES,
        first_name="Amina",
        last_name="Otieno",
        meter_size=MeterSize.METER_15MM,
        first_reading=1000,
        income_class=IncomeClass.MEDIUM,
    )
    return customer


@pytest.fixture
def card(ledger, customer):
    return ledger.accounts.register_payment_card(CUSTOMER, "CARD-4111")

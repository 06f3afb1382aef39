"""
Tests for the MeterLedger: consumption simulation and reading advance.
"""
import random

import pytest

from waterworks.models.records import IncomeClass, MeterSize, Premises
from waterworks.services.billing.meter_ledger import (
    DEFAULT_DAILY_USAGE_LIMIT, MeterLedger, daily_usage_limit,
)
from waterworks.services.billing.randomness import RandomSource, SystemRandomSource

from conftest import ScriptedRandom


# =============================================================================
# TEST: CONSUMPTION SIMULATION
# =============================================================================

class TestConsumption:
    """Simulated cycle consumption."""

    @pytest.mark.parametrize("income_class,limit", [
        (IncomeClass.LOW, 125),
        (IncomeClass.LOW_MEDIUM, 175),
        (IncomeClass.MEDIUM, 220),
        (IncomeClass.MEDIUM_HIGH, 250),
        (IncomeClass.HIGH, 300),
    ])
    def test_daily_limits(self, income_class, limit):
        assert daily_usage_limit(income_class) == limit

    def test_unknown_class_uses_default(self):
        assert daily_usage_limit("UNKNOWN") == DEFAULT_DAILY_USAGE_LIMIT

    def test_sums_one_draw_per_day(self):
        ledger = MeterLedger(ScriptedRandom(range(30)))
        assert ledger.simulate_consumption(IncomeClass.MEDIUM) == sum(range(30))

    def test_medium_consumption_in_range(self):
        ledger = MeterLedger(SystemRandomSource(seed=7))
        for _ in range(50):
            assert 0 <= ledger.simulate_consumption(IncomeClass.MEDIUM) <= 30 * 220

    def test_stdlib_random_is_a_source(self):
        assert isinstance(random.Random(1), RandomSource)
        assert MeterLedger(random.Random(1)).simulate_consumption(IncomeClass.LOW) <= 30 * 125


# =============================================================================
# TEST: READING ADVANCE
# =============================================================================

class TestAdvance:
    """previous := current; current := previous + consumption."""

    def test_advance_returns_copy(self):
        premises = Premises("7654321", "1234567", MeterSize.METER_15MM, 100, 100, 400)

        advanced = MeterLedger.advance(premises, 250)

        assert advanced.previous_reading == 400
        assert advanced.current_reading == 650
        assert premises.current_reading == 400

    def test_negative_consumption_rejected(self):
        premises = Premises("7654321", "1234567", MeterSize.METER_15MM, 0, 0, 0)
        with pytest.raises(ValueError):
            MeterLedger.advance(premises, -1)

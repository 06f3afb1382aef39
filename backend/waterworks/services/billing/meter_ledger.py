"""
Meter Ledger

Owns the reading state of a premises across billing cycles.

Consumption is simulated: one uniform draw per day over
[0, daily usage limit], summed across a 30-day cycle. The limit depends
on the customer's income class. This stands in for real metering.
"""
import dataclasses
import logging
from typing import Union

from ...models.records import IncomeClass, Premises
from .randomness import RandomSource

logger = logging.getLogger(__name__)


BILLING_CYCLE_DAYS = 30

# Litres per day
DAILY_USAGE_LIMITS = {
    IncomeClass.LOW: 125,
    IncomeClass.LOW_MEDIUM: 175,
    IncomeClass.MEDIUM: 220,
    IncomeClass.MEDIUM_HIGH: 250,
    IncomeClass.HIGH: 300,
}
DEFAULT_DAILY_USAGE_LIMIT = 150


def daily_usage_limit(income_class: Union[IncomeClass, str]) -> int:
    limit = DAILY_USAGE_LIMITS.get(income_class)
    if limit is None:
        logger.warning(
            f"Unknown income class '{income_class}', daily usage limit defaults to {DEFAULT_DAILY_USAGE_LIMIT}"
        )
        return DEFAULT_DAILY_USAGE_LIMIT
    return limit


class MeterLedger:
    """Simulates cycle consumption and advances premises readings."""

    def __init__(self, rng: RandomSource, cycle_days: int = BILLING_CYCLE_DAYS):
        self.rng = rng
        self.cycle_days = cycle_days

    def simulate_consumption(self, income_class: Union[IncomeClass, str]) -> int:
        """Total litres for one cycle, in [0, cycle_days * limit]."""
        limit = daily_usage_limit(income_class)
        return sum(self.rng.randint(0, limit) for _ in range(self.cycle_days))

    @staticmethod
    def advance(premises: Premises, consumption: int) -> Premises:
        """
        Return a copy of the premises with its reading pair advanced.

        previous := current, then current := previous + consumption.
        The input record is left untouched so the caller can persist first.
        """
        if consumption < 0:
            raise ValueError(f"Consumption cannot be negative: {consumption}")
        return dataclasses.replace(
            premises,
            previous_reading=premises.current_reading,
            current_reading=premises.current_reading + consumption,
        )

"""
Tariff Calculator

Pure charge functions for the domestic metered tariff.

Water and sewerage share one four-bracket progressive schedule over
cumulative litres. Each bracket is charged only on the litres falling
inside it, at a per-cubic-metre rate (litres / 1000).
"""
import logging
from typing import List, Optional, Tuple, Union

from ...models.records import MeterSize

logger = logging.getLogger(__name__)


# =============================================================================
# TARIFF CONFIGURATION
# =============================================================================

# (upper bound in litres, inclusive; None = open-ended, rate per m3)
WATER_BRACKETS: List[Tuple[Optional[int], float]] = [
    (14000, 149.55),
    (27000, 266.15),
    (41000, 290.10),
    (None, 494.87),
]

SEWERAGE_BRACKETS: List[Tuple[Optional[int], float]] = [
    (14000, 172.72),
    (27000, 307.42),
    (41000, 335.06),
    (None, 571.56),
]

SERVICE_CHARGES = {
    MeterSize.METER_15MM: 1155.92,
    MeterSize.METER_30MM: 6217.03,
    MeterSize.METER_150MM: 39354.59,
}

LITRES_PER_CUBIC_METRE = 1000


def bracket_charge(consumption: int, brackets: List[Tuple[Optional[int], float]]) -> float:
    """Sum each bracket's rate over the litres that fall inside it."""
    charge = 0.0
    lower = 0
    for upper, rate in brackets:
        if consumption <= lower:
            break
        top = consumption if upper is None else min(consumption, upper)
        charge += (top - lower) * rate / LITRES_PER_CUBIC_METRE
        if upper is None:
            break
        lower = upper
    return charge


class TariffCalculator:
    """Water, sewerage and service charges. Stateless."""

    @staticmethod
    def water_charge(consumption: int) -> float:
        return bracket_charge(consumption, WATER_BRACKETS)

    @staticmethod
    def sewerage_charge(consumption: int) -> float:
        return bracket_charge(consumption, SEWERAGE_BRACKETS)

    @staticmethod
    def service_charge(meter_size: Union[MeterSize, str]) -> float:
        """Fixed charge by meter size. Unknown sizes charge 0.0."""
        charge = SERVICE_CHARGES.get(meter_size)
        if charge is None:
            logger.warning(f"Unknown meter size '{meter_size}', service charge defaults to 0.0")
            return 0.0
        return charge

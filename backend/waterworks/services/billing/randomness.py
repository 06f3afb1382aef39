"""
Randomness capability.

Consumption simulation, early-payment eligibility and self-registration
draw from a RandomSource handed in by the caller, never from the ambient
module-level generator. random.Random satisfies the interface as-is.
"""
import random
from abc import ABC, abstractmethod
from typing import Optional


class RandomSource(ABC):
    @abstractmethod
    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both inclusive."""


RandomSource.register(random.Random)


class SystemRandomSource(RandomSource):
    """Production source. Unseeded unless a seed is given."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def randint(self, low: int, high: int) -> int:
        return self._rng.randint(low, high)

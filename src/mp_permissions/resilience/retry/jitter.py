"""Resilience – jitter strategies."""
from __future__ import annotations

import abc
import random


class JitterStrategy(abc.ABC):
    """Apply randomness to a backoff delay to spread thundering-herd."""

    @abc.abstractmethod
    def apply(self, delay: float) -> float: ...


class NoJitter(JitterStrategy):
    def apply(self, delay: float) -> float:
        return delay


class AdditiveJitter(JitterStrategy):
    """Adds a uniform random offset in [0, spread] on top of the delay.

    With ``spread`` equal to the backoff base, relays that failed against the
    same outage come back at staggered times instead of re-claiming together.
    """

    def __init__(self, spread: float, rng: random.Random | None = None) -> None:
        self._spread = spread
        self._rng = rng or random.Random()

    def apply(self, delay: float) -> float:
        return delay + self._rng.uniform(0, self._spread)


__all__ = ["AdditiveJitter", "JitterStrategy", "NoJitter"]

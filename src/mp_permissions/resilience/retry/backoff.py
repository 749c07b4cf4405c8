"""Resilience – backoff strategies."""
from __future__ import annotations

import abc


class BackoffStrategy(abc.ABC):
    """Compute wait duration (seconds) after the *attempt*-th failure."""

    @abc.abstractmethod
    def compute(self, attempt: int) -> float: ...


class ExponentialBackoff(BackoffStrategy):
    """Delay doubles per failure: ``base_delay * 2^(attempt - 1)``, capped at ``max_delay``.

    ``attempt`` is 1-based, so the first failure waits ``base_delay``.
    """

    def __init__(self, base_delay: float = 1.0, max_delay: float = 60.0) -> None:
        if base_delay < 0 or max_delay < 0:
            raise ValueError("backoff delays must be non-negative")
        self._base = base_delay
        self._max = max_delay

    @property
    def base_delay(self) -> float:
        return self._base

    def compute(self, attempt: int) -> float:
        exponent = max(attempt - 1, 0)
        # 2 ** exponent overflows float math long before it matters; stop early.
        if exponent >= 64:
            return self._max
        return min(self._base * (2 ** exponent), self._max)


__all__ = ["BackoffStrategy", "ExponentialBackoff"]

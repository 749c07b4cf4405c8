"""Outbox relay – retry and dead-letter policy."""
from __future__ import annotations

from enum import Enum

from mp_permissions.kernel.errors import PermanentSinkError, SerializationError
from mp_permissions.resilience.retry import AdditiveJitter, ExponentialBackoff, JitterStrategy


class FailureKind(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class RetryPolicy:
    """Decides whether a failed delivery is retried, and when.

    The delay after the *n*-th failure is ``min(base * 2**(n-1), max_delay)``
    plus a uniform jitter in ``[0, base]``. A message is dead-lettered on a
    permanent failure, or once its failure count exceeds ``max_retries``.
    """

    def __init__(
        self,
        max_retries: int = 5,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        jitter: JitterStrategy | None = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self._max_retries = max_retries
        self._backoff = ExponentialBackoff(base_delay=base_delay, max_delay=max_delay)
        self._jitter = jitter if jitter is not None else AdditiveJitter(base_delay)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def classify(self, exc: BaseException) -> FailureKind:
        # Unknown errors are treated as transient and bounded by max_retries.
        if isinstance(exc, (PermanentSinkError, SerializationError)):
            return FailureKind.PERMANENT
        return FailureKind.TRANSIENT

    def next_delay(self, attempt: int) -> float:
        """Seconds to wait after the *attempt*-th failure (1-based)."""
        return self._jitter.apply(self._backoff.compute(attempt))

    def should_dead_letter(self, attempt: int, kind: FailureKind) -> bool:
        return kind is FailureKind.PERMANENT or attempt > self._max_retries


__all__ = ["FailureKind", "RetryPolicy"]

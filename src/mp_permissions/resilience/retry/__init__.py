"""Resilience – backoff and jitter strategies used by the outbox relay."""
from mp_permissions.resilience.retry.backoff import BackoffStrategy, ExponentialBackoff
from mp_permissions.resilience.retry.jitter import AdditiveJitter, JitterStrategy, NoJitter

__all__ = [
    "AdditiveJitter", "BackoffStrategy", "ExponentialBackoff",
    "JitterStrategy", "NoJitter",
]

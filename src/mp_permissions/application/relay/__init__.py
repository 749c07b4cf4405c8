"""Application – outbox relay and its retry policy."""
from mp_permissions.application.relay.policy import FailureKind, RetryPolicy
from mp_permissions.application.relay.relay import OutboxRelay, RelayReport

__all__ = ["FailureKind", "OutboxRelay", "RelayReport", "RetryPolicy"]

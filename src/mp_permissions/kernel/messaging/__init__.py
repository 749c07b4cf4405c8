"""Kernel messaging – outbox records, event envelope, serializer port."""
from mp_permissions.kernel.messaging.message import (
    IDEMPOTENCY_NAMESPACE,
    MessageSerializer,
    PermissionEvent,
    idempotency_key_for,
)
from mp_permissions.kernel.messaging.outbox import (
    Destination,
    Operation,
    OutboxMessage,
    OutboxStatus,
    OutboxStore,
)

__all__ = [
    "Destination",
    "IDEMPOTENCY_NAMESPACE",
    "MessageSerializer",
    "Operation",
    "OutboxMessage",
    "OutboxStatus",
    "OutboxStore",
    "PermissionEvent",
    "idempotency_key_for",
]

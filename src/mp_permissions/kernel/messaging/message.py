"""Kernel messaging – event envelope published to the event stream."""
from __future__ import annotations

import abc
import dataclasses
import json
import uuid
from datetime import datetime
from typing import Any, Generic, TypeVar

from mp_permissions.kernel.errors import SerializationError
from mp_permissions.kernel.messaging.outbox import Operation, OutboxMessage

T = TypeVar("T")

# Fixed namespace so the same outbox message always yields the same key.
IDEMPOTENCY_NAMESPACE = uuid.UUID("5b1f7c4e-2d0a-4e8e-9a57-3f0c6a1d9b21")


def idempotency_key_for(message_id: int) -> str:
    """Derive the stable idempotency key of an outbox message."""
    return str(uuid.uuid5(IDEMPOTENCY_NAMESPACE, f"outbox-message:{message_id}"))


class MessageSerializer(abc.ABC, Generic[T]):
    """Port: serialize / deserialize message payloads."""

    @abc.abstractmethod
    def serialize(self, payload: T) -> bytes: ...

    @abc.abstractmethod
    def deserialize(self, data: bytes, target_type: type[T]) -> T: ...


@dataclasses.dataclass(frozen=True)
class PermissionEvent:
    """Flat record published to the event stream."""

    idempotency_key: str
    operation: Operation
    aggregate_id: int
    occurred_at: datetime
    payload: dict[str, Any]

    @classmethod
    def from_outbox(cls, message: OutboxMessage) -> "PermissionEvent":
        if message.id is None:
            raise SerializationError("Outbox message has no id yet", payload_type="OutboxMessage")
        try:
            payload = json.loads(message.payload)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Outbox message {message.id} carries an unreadable payload",
                payload_type="OutboxMessage",
                cause=exc,
            ) from exc
        return cls(
            idempotency_key=idempotency_key_for(message.id),
            operation=message.operation,
            aggregate_id=message.aggregate_id,
            occurred_at=message.created_at,
            payload=payload,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "idempotencyKey": self.idempotency_key,
            "operation": self.operation.value,
            "aggregateId": self.aggregate_id,
            "occurredAt": self.occurred_at.isoformat(),
            "payload": self.payload,
        }


__all__ = [
    "IDEMPOTENCY_NAMESPACE",
    "MessageSerializer",
    "PermissionEvent",
    "idempotency_key_for",
]

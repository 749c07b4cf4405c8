"""Kafka adapter – KafkaMessageSerializer."""
from __future__ import annotations

import json
from typing import Any

from mp_permissions.kernel.errors import SerializationError
from mp_permissions.kernel.messaging import MessageSerializer


class KafkaMessageSerializer(MessageSerializer[Any]):
    """JSON serialiser/deserialiser for Kafka messages."""

    def serialize(self, payload: Any) -> bytes:
        if isinstance(payload, bytes):
            return payload
        try:
            return json.dumps(payload, separators=(",", ":"), allow_nan=False).encode()
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode {type(payload).__name__} as JSON",
                payload_type=type(payload).__name__,
                cause=exc,
            ) from exc

    def deserialize(self, data: bytes, target_type: type[Any]) -> Any:
        try:
            parsed = json.loads(data)
        except ValueError as exc:
            raise SerializationError("Kafka record is not valid JSON", payload_type=target_type.__name__, cause=exc) from exc
        if hasattr(target_type, "from_dict"):
            return target_type.from_dict(parsed)
        return parsed


__all__ = ["KafkaMessageSerializer"]

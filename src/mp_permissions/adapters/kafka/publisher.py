"""Kafka adapter – KafkaEventPublisher."""
from __future__ import annotations

from aiokafka.errors import KafkaError, MessageSizeTooLargeError  # type: ignore[import-untyped]

from mp_permissions.adapters.kafka.producer import KafkaProducer
from mp_permissions.kernel.errors import PermanentPublishError, SerializationError, TransientPublishError
from mp_permissions.kernel.messaging import PermissionEvent
from mp_permissions.observability.logging import get_logger

logger = get_logger(__name__)

SINK = "event-stream"
IDEMPOTENCY_HEADER = "idempotency-key"
OPERATION_HEADER = "operation"


class KafkaEventPublisher:
    """Publishes permission events keyed by aggregate id.

    Keying by aggregate id keeps every event of one permission on one
    partition, so consumers see them in the order they were accepted.
    """

    def __init__(self, producer: KafkaProducer, topic: str = "permissions-operations") -> None:
        self._producer = producer
        self._topic = topic

    @property
    def topic(self) -> str:
        return self._topic

    async def publish(self, event: PermissionEvent) -> None:
        try:
            await self._producer.send(
                self._topic,
                event.to_dict(),
                key=str(event.aggregate_id),
                headers={
                    IDEMPOTENCY_HEADER: event.idempotency_key,
                    OPERATION_HEADER: event.operation.value,
                },
            )
        except SerializationError as exc:
            raise PermanentPublishError(SINK, f"Event for permission {event.aggregate_id} is not encodable", cause=exc) from exc
        except MessageSizeTooLargeError as exc:
            raise PermanentPublishError(SINK, f"Event for permission {event.aggregate_id} exceeds the broker limit", cause=exc) from exc
        except KafkaError as exc:
            raise TransientPublishError(SINK, f"Kafka publish failed: {type(exc).__name__}: {exc}", cause=exc) from exc
        logger.info(
            "kafka.published",
            topic=self._topic,
            aggregate_id=event.aggregate_id,
            operation=event.operation.value,
            idempotency_key=event.idempotency_key,
        )


__all__ = ["IDEMPOTENCY_HEADER", "KafkaEventPublisher", "OPERATION_HEADER"]

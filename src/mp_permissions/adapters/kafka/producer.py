"""Kafka adapter – KafkaProducer."""
from __future__ import annotations

import asyncio
from typing import Any

from mp_permissions.adapters.kafka.serializer import KafkaMessageSerializer
from mp_permissions.kernel.messaging import MessageSerializer
from mp_permissions.observability.logging import get_logger

logger = get_logger(__name__)


def _require_aiokafka() -> Any:
    try:
        import aiokafka  # type: ignore[import-untyped]
        return aiokafka
    except ImportError as exc:
        raise ImportError("Install 'mp-permissions' with its runtime dependencies to use the Kafka adapter") from exc


class KafkaProducer:
    """aiokafka-backed producer.

    ``send`` waits for the broker acknowledgement, so a returned call means the
    record is durable under the configured ``acks``.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        serializer: MessageSerializer[Any] | None = None,
        **producer_kwargs: Any,
    ) -> None:
        aiokafka = _require_aiokafka()
        producer_kwargs.setdefault("acks", "all")
        producer_kwargs.setdefault("enable_idempotence", True)
        self._producer = aiokafka.AIOKafkaProducer(bootstrap_servers=bootstrap_servers, **producer_kwargs)
        self._serializer = serializer or KafkaMessageSerializer()
        self._started = False
        self._start_lock = asyncio.Lock()

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        async with self._start_lock:
            if self._started:
                return
            await self._producer.start()
            self._started = True

    async def stop(self) -> None:
        await self._producer.stop()
        self._started = False

    async def __aenter__(self) -> "KafkaProducer":
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.stop()

    async def send(
        self,
        topic: str,
        payload: Any,
        *,
        key: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        if not self._started:
            await self.start()
        value = self._serializer.serialize(payload)
        await self._producer.send_and_wait(
            topic,
            value=value,
            key=key.encode(),
            headers=[(k, v.encode()) for k, v in (headers or {}).items()],
        )
        logger.debug("kafka.sent", topic=topic, key=key)


__all__ = ["KafkaProducer"]

"""Unit tests for the Kafka adapter (aiokafka mocked)."""
from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError, MessageSizeTooLargeError

from mp_permissions.adapters.kafka import (
    IDEMPOTENCY_HEADER,
    KafkaEventPublisher,
    KafkaMessageSerializer,
    KafkaProducer,
)
from mp_permissions.kernel.errors import PermanentPublishError, SerializationError, TransientPublishError
from mp_permissions.kernel.messaging import Operation, PermissionEvent, idempotency_key_for

EVENT = PermissionEvent(
    idempotency_key=idempotency_key_for(42),
    operation=Operation.CREATED,
    aggregate_id=1,
    occurred_at=datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
    payload={"id": 1, "forename": "John"},
)


def _mock_aiokafka_producer():
    """Return (mock_module, mock_producer_instance)."""
    mock_prod = MagicMock()
    mock_prod.start = AsyncMock()
    mock_prod.stop = AsyncMock()
    mock_prod.send_and_wait = AsyncMock()
    mock_ak = MagicMock()
    mock_ak.AIOKafkaProducer.return_value = mock_prod
    return mock_ak, mock_prod


def _make_producer(bootstrap: str = "localhost:9092") -> tuple[KafkaProducer, MagicMock, MagicMock]:
    mock_ak, mock_prod = _mock_aiokafka_producer()
    with patch("mp_permissions.adapters.kafka.producer._require_aiokafka", return_value=mock_ak):
        producer = KafkaProducer(bootstrap)
    return producer, mock_prod, mock_ak


class TestKafkaMessageSerializer:
    def test_serialize_dict_returns_bytes(self) -> None:
        result = KafkaMessageSerializer().serialize({"key": "value"})
        assert isinstance(result, bytes)
        assert json.loads(result) == {"key": "value"}

    def test_serialize_bytes_passthrough(self) -> None:
        assert KafkaMessageSerializer().serialize(b"raw") == b"raw"

    def test_unencodable_payload(self) -> None:
        with pytest.raises(SerializationError):
            KafkaMessageSerializer().serialize({"when": object()})

    def test_nan_rejected(self) -> None:
        with pytest.raises(SerializationError):
            KafkaMessageSerializer().serialize({"value": float("nan")})

    def test_deserialize_invalid_json(self) -> None:
        with pytest.raises(SerializationError):
            KafkaMessageSerializer().deserialize(b"{nope", dict)


class TestKafkaProducer:
    def test_defaults_to_idempotent_acks_all(self) -> None:
        _, _, mock_ak = _make_producer("broker:9092")
        kwargs = mock_ak.AIOKafkaProducer.call_args.kwargs
        assert kwargs["bootstrap_servers"] == "broker:9092"
        assert kwargs["acks"] == "all"
        assert kwargs["enable_idempotence"] is True

    def test_send_starts_lazily_and_waits_for_ack(self) -> None:
        producer, mock_prod, _ = _make_producer()
        asyncio.run(producer.send("topic", {"a": 1}, key="7", headers={"h": "v"}))
        mock_prod.start.assert_awaited_once()
        mock_prod.send_and_wait.assert_awaited_once_with(
            "topic", value=b'{"a":1}', key=b"7", headers=[("h", b"v")]
        )

    def test_concurrent_sends_start_the_producer_once(self) -> None:
        producer, mock_prod, _ = _make_producer()

        async def slow_start() -> None:
            await asyncio.sleep(0.01)

        mock_prod.start.side_effect = slow_start

        async def run() -> None:
            await asyncio.gather(*(producer.send("topic", {"n": n}, key=str(n)) for n in range(8)))

        asyncio.run(run())
        mock_prod.start.assert_awaited_once()
        assert mock_prod.send_and_wait.await_count == 8
        assert producer.started

    def test_explicit_start_is_idempotent(self) -> None:
        producer, mock_prod, _ = _make_producer()

        async def run() -> None:
            await producer.start()
            await producer.start()
            await producer.send("topic", {}, key="1")

        asyncio.run(run())
        mock_prod.start.assert_awaited_once()

    def test_context_manager(self) -> None:
        producer, mock_prod, _ = _make_producer()

        async def run() -> None:
            async with producer:
                assert producer.started
            assert not producer.started

        asyncio.run(run())
        mock_prod.stop.assert_awaited_once()


class TestKafkaEventPublisher:
    def test_publish_keys_by_aggregate_with_idempotency_header(self) -> None:
        producer, mock_prod, _ = _make_producer()
        asyncio.run(KafkaEventPublisher(producer, "permissions-operations").publish(EVENT))
        args, kwargs = mock_prod.send_and_wait.call_args
        assert args == ("permissions-operations",)
        assert kwargs["key"] == b"1"
        assert (IDEMPOTENCY_HEADER, idempotency_key_for(42).encode()) in kwargs["headers"]
        assert json.loads(kwargs["value"]) == EVENT.to_dict()

    def test_redelivery_uses_same_key_and_idempotency_key(self) -> None:
        producer, mock_prod, _ = _make_producer()
        publisher = KafkaEventPublisher(producer)

        async def run() -> None:
            await publisher.publish(EVENT)
            await publisher.publish(EVENT)

        asyncio.run(run())
        first, second = mock_prod.send_and_wait.call_args_list
        assert first.kwargs == second.kwargs

    @pytest.mark.parametrize("error", [KafkaConnectionError(), KafkaTimeoutError()])
    def test_broker_errors_are_transient(self, error: Exception) -> None:
        producer, mock_prod, _ = _make_producer()
        mock_prod.send_and_wait.side_effect = error
        with pytest.raises(TransientPublishError) as info:
            asyncio.run(KafkaEventPublisher(producer).publish(EVENT))
        assert info.value.sink == "event-stream"

    def test_oversized_record_is_permanent(self) -> None:
        producer, mock_prod, _ = _make_producer()
        mock_prod.send_and_wait.side_effect = MessageSizeTooLargeError()
        with pytest.raises(PermanentPublishError):
            asyncio.run(KafkaEventPublisher(producer).publish(EVENT))

    def test_unencodable_event_is_permanent(self) -> None:
        producer, mock_prod, _ = _make_producer()
        bad = PermissionEvent(
            idempotency_key="k",
            operation=Operation.CREATED,
            aggregate_id=1,
            occurred_at=EVENT.occurred_at,
            payload={"value": object()},
        )
        with pytest.raises(PermanentPublishError):
            asyncio.run(KafkaEventPublisher(producer).publish(bad))
        mock_prod.send_and_wait.assert_not_awaited()

"""Unit tests for the in-memory sink doubles."""

from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime, timedelta

import pytest

from mp_permissions.domain import PermissionSnapshot
from mp_permissions.kernel.messaging import Operation, PermissionEvent
from mp_permissions.testing.fakes import (
    AlwaysFailingSink,
    FakeClock,
    InMemoryEventStream,
    InMemorySearchIndex,
)

SNAPSHOT = PermissionSnapshot(
    id=3,
    forename="Jane",
    surname="Roe",
    permission_type_id=2,
    permission_type_description="Sick Leave",
    permission_date=date(2024, 3, 1),
    created_at=datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
)


def _event(key: str, aggregate_id: int = 3) -> PermissionEvent:
    return PermissionEvent(
        idempotency_key=key,
        operation=Operation.CREATED,
        aggregate_id=aggregate_id,
        occurred_at=datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
        payload={"id": aggregate_id},
    )


class TestFakeClock:
    def test_defaults_to_fixed_instant(self) -> None:
        assert FakeClock().now() == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_advance(self) -> None:
        clock = FakeClock()
        clock.advance(seconds=90)
        assert clock.now() == datetime(2026, 1, 1, 12, 0, tzinfo=UTC) + timedelta(seconds=90)


class TestInMemorySearchIndex:
    def test_upsert_then_delete(self) -> None:
        index = InMemorySearchIndex()
        asyncio.run(index.upsert(SNAPSHOT))
        assert index.documents[3]["fullName"] == "Jane Roe"
        asyncio.run(index.delete(3))
        asyncio.run(index.delete(3))
        assert index.documents == {}
        assert index.calls == [("upsert", 3), ("delete", 3), ("delete", 3)]

    def test_fail_next_raises_in_order_then_recovers(self) -> None:
        index = InMemorySearchIndex()
        index.fail_next(RuntimeError("first"), ValueError("second"))
        with pytest.raises(RuntimeError):
            asyncio.run(index.upsert(SNAPSHOT))
        with pytest.raises(ValueError):
            asyncio.run(index.upsert(SNAPSHOT))
        asyncio.run(index.upsert(SNAPSHOT))
        assert 3 in index.documents
        assert len(index.calls) == 3


class TestInMemoryEventStream:
    def test_publish_records_stream_order(self) -> None:
        stream = InMemoryEventStream()

        async def run() -> None:
            await stream.publish(_event("1"))
            await stream.publish(_event("2", aggregate_id=4))
            await stream.publish(_event("3"))

        asyncio.run(run())
        assert [e.idempotency_key for e in stream.for_aggregate(3)] == ["1", "3"]
        assert stream.idempotency_keys == {"1", "2", "3"}

    def test_failed_publish_is_not_recorded(self) -> None:
        stream = InMemoryEventStream()
        stream.fail_next(RuntimeError("broker down"))
        with pytest.raises(RuntimeError):
            asyncio.run(stream.publish(_event("1")))
        assert stream.events == []


class TestAlwaysFailingSink:
    def test_counts_every_attempt(self) -> None:
        sink = AlwaysFailingSink(RuntimeError("nope"))

        async def run() -> None:
            for call in (sink.upsert(SNAPSHOT), sink.delete(3), sink.publish(_event("1"))):
                with pytest.raises(RuntimeError):
                    await call

        asyncio.run(run())
        assert sink.attempts == 3

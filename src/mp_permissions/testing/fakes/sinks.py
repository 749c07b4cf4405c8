"""Testing fakes – in-memory search index and event stream.

Both record every call in order, so tests can assert on delivery order and
duplicate deliveries as well as on the resulting state.
"""
from __future__ import annotations

import asyncio
from typing import Any

from mp_permissions.adapters.search.projector import build_document
from mp_permissions.domain import PermissionSnapshot
from mp_permissions.kernel.messaging import PermissionEvent


class InMemorySearchIndex:
    """Search projector double keyed by permission id."""

    def __init__(self) -> None:
        self.documents: dict[int, dict[str, Any]] = {}
        self.calls: list[tuple[str, int]] = []
        self._failures: list[BaseException] = []

    def fail_next(self, *errors: BaseException) -> None:
        """Raise each of *errors* on the next calls, in order."""
        self._failures.extend(errors)

    async def upsert(self, snapshot: PermissionSnapshot) -> None:
        self.calls.append(("upsert", snapshot.id))
        self._maybe_fail()
        self.documents[snapshot.id] = build_document(snapshot)

    async def delete(self, aggregate_id: int) -> None:
        self.calls.append(("delete", aggregate_id))
        self._maybe_fail()
        self.documents.pop(aggregate_id, None)

    def _maybe_fail(self) -> None:
        if self._failures:
            raise self._failures.pop(0)


class InMemoryEventStream:
    """Event publisher double; ``events`` is the stream as consumers would see it."""

    def __init__(self, delay: float = 0.0) -> None:
        self.events: list[PermissionEvent] = []
        self._failures: list[BaseException] = []
        self._delay = delay

    def fail_next(self, *errors: BaseException) -> None:
        self._failures.extend(errors)

    async def publish(self, event: PermissionEvent) -> None:
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._failures:
            raise self._failures.pop(0)
        self.events.append(event)

    def for_aggregate(self, aggregate_id: int) -> list[PermissionEvent]:
        return [e for e in self.events if e.aggregate_id == aggregate_id]

    @property
    def idempotency_keys(self) -> set[str]:
        return {e.idempotency_key for e in self.events}


class AlwaysFailingSink:
    """Fails every call with the given error; works as projector and publisher."""

    def __init__(self, error: BaseException) -> None:
        self.error = error
        self.attempts = 0

    async def upsert(self, snapshot: PermissionSnapshot) -> None:
        self.attempts += 1
        raise self.error

    async def delete(self, aggregate_id: int) -> None:
        self.attempts += 1
        raise self.error

    async def publish(self, event: PermissionEvent) -> None:
        self.attempts += 1
        raise self.error


__all__ = ["AlwaysFailingSink", "InMemoryEventStream", "InMemorySearchIndex"]

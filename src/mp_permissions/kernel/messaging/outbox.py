"""Kernel messaging – transactional outbox records and store port."""
from __future__ import annotations

import abc
import dataclasses
from datetime import UTC, datetime, timedelta
from enum import Enum


class OutboxStatus(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"
    FAILED = "failed"


class Destination(str, Enum):
    """Downstream sink an outbox message is addressed to."""

    SEARCH_INDEX = "search-index"
    EVENT_STREAM = "event-stream"


class Operation(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclasses.dataclass
class OutboxMessage:
    """Intent-to-propagate record written in the same transaction as the aggregate.

    ``id`` is assigned by the store on insert. ``lease_owner`` is set while a
    relay instance holds the message; the lease itself is expressed by pushing
    ``next_eligible_at`` into the future, so an expired lease needs no cleanup.
    """

    aggregate_id: int
    destination: Destination
    operation: Operation
    payload: str
    id: int | None = None
    status: OutboxStatus = OutboxStatus.PENDING
    attempt_count: int = 0
    next_eligible_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    lease_owner: str | None = None
    last_error: str | None = None
    created_at: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    dispatched_at: datetime | None = None

    @property
    def stream_key(self) -> tuple[int, Destination]:
        """Messages sharing this key must reach their sink in creation order."""
        return (self.aggregate_id, self.destination)


class OutboxStore(abc.ABC):
    """Port: persistence for outbox messages.

    ``append`` runs inside the command's transaction. Every other method is
    used by the relay and runs in a transaction of its own.
    """

    @abc.abstractmethod
    async def append(self, messages: list[OutboxMessage]) -> None: ...

    @abc.abstractmethod
    async def claim_batch(
        self,
        limit: int,
        now: datetime,
        lease: timedelta,
        owner: str,
    ) -> list[OutboxMessage]:
        """Claim up to *limit* eligible stream heads, oldest first."""

    @abc.abstractmethod
    async def mark_dispatched(self, message: OutboxMessage, now: datetime) -> bool: ...

    @abc.abstractmethod
    async def reschedule(self, message: OutboxMessage, error: str, next_eligible_at: datetime) -> bool: ...

    @abc.abstractmethod
    async def mark_failed(self, message: OutboxMessage, error: str) -> bool: ...

    @abc.abstractmethod
    async def release(self, message: OutboxMessage, now: datetime) -> bool:
        """Give up a claim without counting an attempt; the message is eligible at *now*."""

    @abc.abstractmethod
    async def requeue_failed(self, message_id: int, now: datetime) -> bool: ...

    @abc.abstractmethod
    async def purge_dispatched(self, before: datetime) -> int: ...

    @abc.abstractmethod
    async def get(self, message_id: int) -> OutboxMessage | None: ...

    @abc.abstractmethod
    async def list_for_aggregate(self, aggregate_id: int) -> list[OutboxMessage]: ...


__all__ = [
    "Destination",
    "Operation",
    "OutboxMessage",
    "OutboxStatus",
    "OutboxStore",
]

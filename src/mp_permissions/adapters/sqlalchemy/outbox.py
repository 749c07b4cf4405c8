"""SQLAlchemy adapter – SqlAlchemyOutboxStore.

Claiming is a conditional UPDATE: a message is claimed by whoever moves its
``next_eligible_at`` past ``now`` first. Under READ COMMITTED a competing
relay's UPDATE blocks on the row lock, re-checks the predicate after the
winner commits and matches nothing, so no message is handed out twice.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import and_, delete, exists, or_, select, update
from sqlalchemy.orm import aliased

from mp_permissions.adapters.sqlalchemy.models import OutboxMessageRow
from mp_permissions.kernel.messaging import Destination, Operation, OutboxMessage, OutboxStatus, OutboxStore
from mp_permissions.kernel.time import as_utc
from mp_permissions.observability.logging import get_logger

logger = get_logger(__name__)

_PENDING = OutboxStatus.PENDING.value
_FAILED = OutboxStatus.FAILED.value


def _stream_head_clause() -> Any:
    """True when no older undelivered message exists on the same (aggregate, destination) stream.

    A dead-lettered message still blocks its successors until it is replayed and
    delivered, so a stream never skips ahead of a snapshot it has not applied.
    """
    older = aliased(OutboxMessageRow)
    return ~exists().where(
        older.aggregate_id == OutboxMessageRow.aggregate_id,
        older.destination == OutboxMessageRow.destination,
        older.status.in_((_PENDING, _FAILED)),
        or_(
            older.created_at < OutboxMessageRow.created_at,
            and_(older.created_at == OutboxMessageRow.created_at, older.id < OutboxMessageRow.id),
        ),
    )


class SqlAlchemyOutboxStore(OutboxStore):
    """SQLAlchemy-backed outbox store bound to one session."""

    def __init__(self, session: Any) -> None:
        self._session = session

    async def append(self, messages: list[OutboxMessage]) -> None:
        rows = [self._message_to_row(m) for m in messages]
        self._session.add_all(rows)
        await self._session.flush()
        for message, row in zip(messages, rows, strict=True):
            message.id = row.id

    async def claim_batch(
        self,
        limit: int,
        now: datetime,
        lease: timedelta,
        owner: str,
    ) -> list[OutboxMessage]:
        candidates = await self._session.execute(
            select(OutboxMessageRow.id)
            .where(
                OutboxMessageRow.status == _PENDING,
                OutboxMessageRow.next_eligible_at <= now,
                _stream_head_clause(),
            )
            .order_by(OutboxMessageRow.created_at, OutboxMessageRow.id)
            .limit(limit)
        )
        ids = list(candidates.scalars().all())
        if not ids:
            return []

        lease_until = now + lease
        await self._session.execute(
            update(OutboxMessageRow)
            .where(
                OutboxMessageRow.id.in_(ids),
                OutboxMessageRow.status == _PENDING,
                OutboxMessageRow.next_eligible_at <= now,
            )
            .values(next_eligible_at=lease_until, lease_owner=owner)
            .execution_options(synchronize_session=False)
        )
        claimed = await self._session.execute(
            select(OutboxMessageRow)
            .where(OutboxMessageRow.id.in_(ids), OutboxMessageRow.lease_owner == owner)
            .order_by(OutboxMessageRow.created_at, OutboxMessageRow.id)
            .execution_options(populate_existing=True)
        )
        messages = [self._row_to_message(row) for row in claimed.scalars().all()]
        if len(messages) < len(ids):
            logger.debug("outbox.claim_contended", candidates=len(ids), claimed=len(messages), owner=owner)
        return messages

    async def mark_dispatched(self, message: OutboxMessage, now: datetime) -> bool:
        return await self._update_leased(
            message,
            status=OutboxStatus.DISPATCHED.value,
            attempt_count=message.attempt_count,
            dispatched_at=now,
            lease_owner=None,
            last_error=message.last_error,
        )

    async def reschedule(self, message: OutboxMessage, error: str, next_eligible_at: datetime) -> bool:
        return await self._update_leased(
            message,
            status=_PENDING,
            attempt_count=message.attempt_count,
            next_eligible_at=next_eligible_at,
            lease_owner=None,
            last_error=error,
        )

    async def mark_failed(self, message: OutboxMessage, error: str) -> bool:
        return await self._update_leased(
            message,
            status=_FAILED,
            attempt_count=message.attempt_count,
            lease_owner=None,
            last_error=error,
        )

    async def release(self, message: OutboxMessage, now: datetime) -> bool:
        return await self._update_leased(message, next_eligible_at=now, lease_owner=None)

    async def requeue_failed(self, message_id: int, now: datetime) -> bool:
        result = await self._session.execute(
            update(OutboxMessageRow)
            .where(OutboxMessageRow.id == message_id, OutboxMessageRow.status == _FAILED)
            .values(status=_PENDING, attempt_count=0, next_eligible_at=now, lease_owner=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def purge_dispatched(self, before: datetime) -> int:
        result = await self._session.execute(
            delete(OutboxMessageRow)
            .where(
                OutboxMessageRow.status == OutboxStatus.DISPATCHED.value,
                OutboxMessageRow.dispatched_at < before,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def get(self, message_id: int) -> OutboxMessage | None:
        result = await self._session.execute(
            select(OutboxMessageRow)
            .where(OutboxMessageRow.id == message_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._row_to_message(row) if row is not None else None

    async def list_for_aggregate(self, aggregate_id: int) -> list[OutboxMessage]:
        result = await self._session.execute(
            select(OutboxMessageRow)
            .where(OutboxMessageRow.aggregate_id == aggregate_id)
            .order_by(OutboxMessageRow.created_at, OutboxMessageRow.id)
            .execution_options(populate_existing=True)
        )
        return [self._row_to_message(row) for row in result.scalars().all()]

    async def _update_leased(self, message: OutboxMessage, **values: Any) -> bool:
        """Apply *values* only while the caller still holds the message's lease."""
        result = await self._session.execute(
            update(OutboxMessageRow)
            .where(
                OutboxMessageRow.id == message.id,
                OutboxMessageRow.status == _PENDING,
                OutboxMessageRow.lease_owner == message.lease_owner,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                "outbox.lease_lost",
                message_id=message.id,
                lease_owner=message.lease_owner,
                status=values.get("status"),
            )
            return False
        return True

    def _message_to_row(self, message: OutboxMessage) -> OutboxMessageRow:
        return OutboxMessageRow(
            aggregate_id=message.aggregate_id,
            destination=message.destination.value,
            operation=message.operation.value,
            payload=message.payload,
            status=message.status.value,
            attempt_count=message.attempt_count,
            next_eligible_at=message.next_eligible_at,
            lease_owner=message.lease_owner,
            last_error=message.last_error,
            created_at=message.created_at,
            dispatched_at=message.dispatched_at,
        )

    def _row_to_message(self, row: OutboxMessageRow) -> OutboxMessage:
        return OutboxMessage(
            id=row.id,
            aggregate_id=row.aggregate_id,
            destination=Destination(row.destination),
            operation=Operation(row.operation),
            payload=row.payload,
            status=OutboxStatus(row.status),
            attempt_count=row.attempt_count,
            next_eligible_at=as_utc(row.next_eligible_at),
            lease_owner=row.lease_owner,
            last_error=row.last_error,
            created_at=as_utc(row.created_at),
            dispatched_at=as_utc(row.dispatched_at) if row.dispatched_at is not None else None,
        )


__all__ = ["SqlAlchemyOutboxStore"]

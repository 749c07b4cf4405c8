"""Outbox relay – delivers committed outbox messages to the search index and event stream.

Each cycle claims a batch of stream heads in one short transaction, delivers
them concurrently, then records every outcome in a transaction of its own.
Delivery is at-least-once: a relay that dies after delivering but before
recording leaves the lease to expire, and the message is delivered again.
Both sinks tolerate that. A message is only handed to a sink while its whole
dispatch timeout still fits inside the lease; the rest of the batch is released
for the next cycle.
"""
from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import json
import socket
import time
import uuid
from datetime import timedelta
from enum import Enum

from mp_permissions.application.ports import EventPublisher, SearchProjector, UnitOfWorkFactory
from mp_permissions.application.relay.policy import RetryPolicy
from mp_permissions.domain import PermissionSnapshot
from mp_permissions.kernel.errors import BaseError, SerializationError
from mp_permissions.kernel.messaging import Destination, Operation, OutboxMessage, PermissionEvent
from mp_permissions.kernel.time import Clock, SystemClock
from mp_permissions.observability.logging import get_logger
from mp_permissions.observability.metrics import Metrics, NoopMetrics

logger = get_logger(__name__)

_MAX_ERROR_LENGTH = 2000


class _Outcome(str, Enum):
    DISPATCHED = "dispatched"
    RETRIED = "retried"
    DEAD_LETTERED = "dead_lettered"
    LEASE_LOST = "lease_lost"
    DEFERRED = "deferred"


@dataclasses.dataclass
class RelayReport:
    """Counts for one relay cycle."""

    claimed: int = 0
    dispatched: int = 0
    retried: int = 0
    dead_lettered: int = 0
    lease_lost: int = 0
    deferred: int = 0

    @property
    def idle(self) -> bool:
        return self.claimed == 0


def _describe(exc: BaseException) -> str:
    if isinstance(exc, BaseError):
        text = f"{type(exc).__name__}[{exc.code}]: {exc.message}"
    elif isinstance(exc, TimeoutError):
        text = "TimeoutError: dispatch deadline exceeded"
    else:
        text = f"{type(exc).__name__}: {exc}"
    return text[:_MAX_ERROR_LENGTH]


class OutboxRelay:
    """Polls the outbox and drives every message to ``dispatched`` or ``failed``."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        projector: SearchProjector,
        publisher: EventPublisher,
        policy: RetryPolicy | None = None,
        clock: Clock | None = None,
        *,
        batch_size: int = 50,
        lease: timedelta = timedelta(seconds=30),
        dispatch_timeout: float = 10.0,
        concurrency: int = 8,
        poll_interval: float = 1.0,
        metrics: Metrics | None = None,
        relay_id: str | None = None,
    ) -> None:
        if lease.total_seconds() <= dispatch_timeout:
            raise ValueError("lease must outlast dispatch_timeout")
        self._uow_factory = uow_factory
        self._projector = projector
        self._publisher = publisher
        self._policy = policy or RetryPolicy()
        self._clock = clock or SystemClock()
        self._batch_size = batch_size
        self._lease = lease
        self._dispatch_timeout = dispatch_timeout
        self._concurrency = concurrency
        self._poll_interval = poll_interval
        self._relay_id = relay_id or f"{socket.gethostname()}-{uuid.uuid4().hex[:8]}"
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

        metrics = metrics or NoopMetrics()
        self._dispatched = metrics.counter("outbox.dispatched", "Outbox messages delivered")
        self._retried = metrics.counter("outbox.retried", "Outbox deliveries rescheduled")
        self._dead_lettered = metrics.counter("outbox.dead_lettered", "Outbox messages moved to failed")
        self._latency = metrics.histogram("outbox.dispatch_latency", "Sink call duration", unit="ms")

    @property
    def relay_id(self) -> str:
        return self._relay_id

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_once(self) -> RelayReport:
        """Claim one batch, deliver it, record the outcomes."""
        owner = f"{self._relay_id}:{uuid.uuid4().hex[:12]}"
        # Taken before the claim, so it never runs later than the stored lease.
        lease_deadline = time.monotonic() + self._lease.total_seconds()
        async with self._uow_factory() as uow:
            messages = await uow.outbox.claim_batch(self._batch_size, self._clock.now(), self._lease, owner)
            await uow.commit()
        report = RelayReport(claimed=len(messages))
        if not messages:
            return report
        logger.debug("relay.claimed", relay_id=self._relay_id, count=len(messages), owner=owner)

        semaphore = asyncio.Semaphore(self._concurrency)
        results = await asyncio.gather(
            *(self._process(message, semaphore, lease_deadline) for message in messages),
            return_exceptions=True,
        )
        errors: list[BaseException] = []
        for result in results:
            if isinstance(result, BaseException):
                errors.append(result)
            elif result is _Outcome.DISPATCHED:
                report.dispatched += 1
            elif result is _Outcome.RETRIED:
                report.retried += 1
            elif result is _Outcome.DEAD_LETTERED:
                report.dead_lettered += 1
            elif result is _Outcome.DEFERRED:
                report.deferred += 1
            else:
                report.lease_lost += 1
        if errors:
            # Outcomes that could not be recorded stay leased and are retried after expiry.
            raise errors[0]
        return report

    async def run_forever(self, stop: asyncio.Event) -> None:
        """Run cycles until *stop* is set; sleeps ``poll_interval`` when idle."""
        logger.info("relay.started", relay_id=self._relay_id)
        while not stop.is_set():
            try:
                report = await self.run_once()
            except Exception:
                logger.exception("relay.cycle_failed", relay_id=self._relay_id)
                report = RelayReport()
            if report.idle:
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(stop.wait(), timeout=self._poll_interval)
        logger.info("relay.stopped", relay_id=self._relay_id)

    def start(self) -> asyncio.Task[None]:
        if self._task is not None and not self._task.done():
            raise RuntimeError("relay is already running")
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run_forever(self._stop_event), name=f"outbox-relay-{self._relay_id}")
        return self._task

    async def stop(self) -> None:
        if self._task is None or self._stop_event is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        self._stop_event = None

    async def replay(self, message_id: int) -> bool:
        """Send a dead-lettered message back to ``pending`` with its attempt count reset."""
        async with self._uow_factory() as uow:
            requeued = await uow.outbox.requeue_failed(message_id, self._clock.now())
            await uow.commit()
        logger.info("relay.replayed", relay_id=self._relay_id, message_id=message_id, requeued=requeued)
        return requeued

    # ------------------------------------------------------------------
    # Per message
    # ------------------------------------------------------------------

    async def _process(
        self, message: OutboxMessage, semaphore: asyncio.Semaphore, lease_deadline: float
    ) -> _Outcome:
        async with semaphore:
            # A dispatch must finish inside the lease, or another relay may claim the message mid-call.
            if time.monotonic() + self._dispatch_timeout >= lease_deadline:
                return await self._release(message)
            labels = {"destination": message.destination.value}
            started = time.perf_counter()
            try:
                await asyncio.wait_for(self._dispatch(message), timeout=self._dispatch_timeout)
            except Exception as exc:
                failure: Exception | None = exc
            else:
                failure = None
            finally:
                self._latency.record((time.perf_counter() - started) * 1000, labels)
            if failure is not None:
                return await self._record_failure(message, failure)
            return await self._record_success(message)

    async def _dispatch(self, message: OutboxMessage) -> None:
        if message.destination is Destination.SEARCH_INDEX:
            if message.operation is Operation.DELETED:
                await self._projector.delete(message.aggregate_id)
            else:
                await self._projector.upsert(self._snapshot(message))
        else:
            await self._publisher.publish(PermissionEvent.from_outbox(message))

    def _snapshot(self, message: OutboxMessage) -> PermissionSnapshot:
        try:
            data = json.loads(message.payload)
        except ValueError as exc:
            raise SerializationError(
                f"Outbox message {message.id} carries an unreadable payload",
                payload_type="PermissionSnapshot",
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise SerializationError(
                f"Outbox message {message.id} payload is not an object", payload_type="PermissionSnapshot"
            )
        return PermissionSnapshot.from_dict(data)

    async def _release(self, message: OutboxMessage) -> _Outcome:
        async with self._uow_factory() as uow:
            released = await uow.outbox.release(message, self._clock.now())
            await uow.commit()
        if not released:
            return _Outcome.LEASE_LOST
        logger.debug(
            "relay.deferred",
            message_id=message.id,
            aggregate_id=message.aggregate_id,
            destination=message.destination.value,
        )
        return _Outcome.DEFERRED

    async def _record_success(self, message: OutboxMessage) -> _Outcome:
        async with self._uow_factory() as uow:
            recorded = await uow.outbox.mark_dispatched(message, self._clock.now())
            await uow.commit()
        if not recorded:
            return _Outcome.LEASE_LOST
        self._dispatched.add(1, {"destination": message.destination.value})
        logger.info(
            "relay.dispatched",
            message_id=message.id,
            aggregate_id=message.aggregate_id,
            destination=message.destination.value,
            operation=message.operation.value,
            attempt=message.attempt_count + 1,
        )
        return _Outcome.DISPATCHED

    async def _record_failure(self, message: OutboxMessage, exc: Exception) -> _Outcome:
        kind = self._policy.classify(exc)
        error = _describe(exc)
        message.attempt_count += 1
        context = {
            "message_id": message.id,
            "aggregate_id": message.aggregate_id,
            "destination": message.destination.value,
            "attempt": message.attempt_count,
            "error": error,
        }
        if self._policy.should_dead_letter(message.attempt_count, kind):
            async with self._uow_factory() as uow:
                recorded = await uow.outbox.mark_failed(message, error)
                await uow.commit()
            if not recorded:
                return _Outcome.LEASE_LOST
            self._dead_lettered.add(1, {"destination": message.destination.value, "kind": kind.value})
            logger.warning("relay.dead_lettered", kind=kind.value, **context)
            return _Outcome.DEAD_LETTERED

        delay = self._policy.next_delay(message.attempt_count)
        async with self._uow_factory() as uow:
            recorded = await uow.outbox.reschedule(
                message, error, self._clock.now() + timedelta(seconds=delay)
            )
            await uow.commit()
        if not recorded:
            return _Outcome.LEASE_LOST
        self._retried.add(1, {"destination": message.destination.value})
        logger.info("relay.retry_scheduled", delay_seconds=round(delay, 3), **context)
        return _Outcome.RETRIED


__all__ = ["OutboxRelay", "RelayReport"]

"""Application – PermissionCommandOrchestrator.

Runs a single permission command inside one unit of work: the permission row
and one outbox message per downstream destination commit together or not at
all. Downstream sinks are never called here; the relay delivers the outbox.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from enum import Enum
from typing import Any

from mp_permissions.application.commands import (
    Command,
    ModifyPermission,
    RemovePermission,
    RequestPermission,
)
from mp_permissions.application.ports import UnitOfWork, UnitOfWorkFactory
from mp_permissions.domain import Permission, PermissionMutator, PermissionSnapshot, PermissionType
from mp_permissions.kernel.errors import (
    BaseError,
    PermissionNotFoundError,
    PermissionTypeNotFoundError,
    UnsupportedCommandError,
)
from mp_permissions.kernel.messaging import Destination, Operation, OutboxMessage
from mp_permissions.kernel.time import Clock, SystemClock
from mp_permissions.observability.logging import get_logger
from mp_permissions.observability.metrics import Metrics, NoopMetrics

logger = get_logger(__name__)


class CommandState(str, Enum):
    STARTED = "started"
    REFERENCES_VALIDATED = "references_validated"
    MUTATED = "mutated"
    PERSISTED = "persisted"
    COMMITTED = "committed"
    ABORTED = "aborted"


_TRANSITIONS: dict[CommandState, frozenset[CommandState]] = {
    CommandState.STARTED: frozenset({CommandState.REFERENCES_VALIDATED, CommandState.ABORTED}),
    CommandState.REFERENCES_VALIDATED: frozenset({CommandState.MUTATED, CommandState.ABORTED}),
    CommandState.MUTATED: frozenset({CommandState.PERSISTED, CommandState.ABORTED}),
    CommandState.PERSISTED: frozenset({CommandState.COMMITTED, CommandState.ABORTED}),
    CommandState.COMMITTED: frozenset(),
    CommandState.ABORTED: frozenset(),
}


class _CommandRun:
    """Tracks one command through its states and logs every transition."""

    def __init__(self, operation: Operation) -> None:
        self.operation = operation
        self.state = CommandState.STARTED
        self.aggregate_id: int | None = None

    def advance(self, target: CommandState, **context: Any) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal command transition {self.state.value} -> {target.value}")
        logger.debug(
            "command.transition",
            operation=self.operation.value,
            aggregate_id=self.aggregate_id,
            from_state=self.state.value,
            to_state=target.value,
            **context,
        )
        self.state = target

    @property
    def terminal(self) -> bool:
        return not _TRANSITIONS[self.state]


class PermissionCommandOrchestrator:
    """Executes permission commands atomically with their outbox messages."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        mutator: PermissionMutator | None = None,
        clock: Clock | None = None,
        metrics: Metrics | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock or SystemClock()
        self._mutator = mutator or PermissionMutator(self._clock)
        self._commands = (metrics or NoopMetrics()).counter(
            "permissions.commands", "Permission commands by terminal state"
        )

    async def execute(self, command: Command) -> PermissionSnapshot:
        """Run *command* and return the committed snapshot.

        Raises the domain error that rejected the command; nothing is written
        in that case.
        """
        if not isinstance(command, (RequestPermission, ModifyPermission, RemovePermission)):
            raise UnsupportedCommandError(f"No orchestration for {type(command).__name__}")
        run = _CommandRun(command.operation)
        try:
            async with self._uow_factory() as uow:
                snapshot = await self._stage(uow, command, run)
                await uow.outbox.append(self._outbox_messages(snapshot, command.operation))
                await self._commit(uow, run)
        except asyncio.CancelledError:
            self._abort(run, outcome="cancelled", error="cancelled")
            raise
        except BaseError as exc:
            self._abort(run, outcome="aborted", error=exc.code)
            raise
        except Exception as exc:
            self._abort(run, outcome="aborted", error=type(exc).__name__)
            raise
        run.advance(CommandState.COMMITTED)
        self._commands.add(1, {"operation": command.operation.value, "outcome": "committed"})
        logger.info("command.committed", operation=command.operation.value, aggregate_id=snapshot.id)
        return snapshot

    async def _stage(self, uow: UnitOfWork, command: Command, run: _CommandRun) -> PermissionSnapshot:
        if isinstance(command, RequestPermission):
            permission_type = await self._require_type(uow, command.permission_type_id)
            run.advance(CommandState.REFERENCES_VALIDATED)
            created = self._mutator.create(
                command.forename, command.surname, command.permission_type_id, command.permission_date
            )
            run.advance(CommandState.MUTATED)
            saved = await uow.permissions.add(created)
            run.aggregate_id = saved.id
            run.advance(CommandState.PERSISTED)
            return PermissionSnapshot.of(saved, permission_type)

        existing = await self._require_permission(uow, command.id)
        run.aggregate_id = existing.id

        if isinstance(command, ModifyPermission):
            permission_type = await self._require_type(uow, command.permission_type_id)
            run.advance(CommandState.REFERENCES_VALIDATED)
            changed = self._mutator.apply(
                existing,
                command.forename,
                command.surname,
                command.permission_type_id,
                command.permission_date,
            )
            run.advance(CommandState.MUTATED)
            saved = await uow.permissions.update(changed)
            run.advance(CommandState.PERSISTED)
            return PermissionSnapshot.of(saved, permission_type)

        # RemovePermission: the deleted event carries the last known state.
        permission_type = await self._require_type(uow, existing.permission_type_id)
        run.advance(CommandState.REFERENCES_VALIDATED)
        run.advance(CommandState.MUTATED)
        await uow.permissions.delete(existing)
        run.advance(CommandState.PERSISTED)
        return PermissionSnapshot.of(existing, permission_type)

    async def _commit(self, uow: UnitOfWork, run: _CommandRun) -> None:
        # Once issued, the commit runs to completion even if the caller is
        # cancelled; the cancellation is re-raised afterwards.
        commit = asyncio.ensure_future(uow.commit())
        try:
            await asyncio.shield(commit)
        except asyncio.CancelledError:
            # Repeated cancellations must not reach the commit either.
            while not commit.done():
                with contextlib.suppress(asyncio.CancelledError):
                    await asyncio.shield(commit)
            commit.result()
            logger.warning(
                "command.cancelled_after_commit",
                operation=run.operation.value,
                aggregate_id=run.aggregate_id,
            )
            run.advance(CommandState.COMMITTED)
            self._commands.add(1, {"operation": run.operation.value, "outcome": "committed"})
            raise

    async def _require_permission(self, uow: UnitOfWork, permission_id: int) -> Permission:
        existing = await uow.permissions.get(permission_id, for_update=True)
        if existing is None:
            raise PermissionNotFoundError(permission_id)
        return existing

    async def _require_type(self, uow: UnitOfWork, permission_type_id: int) -> PermissionType:
        permission_type = await uow.permissions.get_type(permission_type_id)
        if permission_type is None:
            raise PermissionTypeNotFoundError(permission_type_id)
        return permission_type

    def _outbox_messages(self, snapshot: PermissionSnapshot, operation: Operation) -> list[OutboxMessage]:
        now = self._clock.now()
        payload = json.dumps(snapshot.to_dict())
        return [
            OutboxMessage(
                aggregate_id=snapshot.id,
                destination=destination,
                operation=operation,
                payload=payload,
                next_eligible_at=now,
                created_at=now,
            )
            for destination in (Destination.SEARCH_INDEX, Destination.EVENT_STREAM)
        ]

    def _abort(self, run: _CommandRun, *, outcome: str, error: str) -> None:
        if run.terminal:
            return
        run.advance(CommandState.ABORTED, error=error)
        self._commands.add(1, {"operation": run.operation.value, "outcome": outcome})
        logger.info(
            "command.aborted",
            operation=run.operation.value,
            aggregate_id=run.aggregate_id,
            error=error,
        )


__all__ = ["CommandState", "PermissionCommandOrchestrator"]

"""Application ports – what the orchestrator, queries and relay need from adapters."""
from __future__ import annotations

from datetime import date
from typing import Any, Protocol

from mp_permissions.domain import Permission, PermissionSnapshot, PermissionType
from mp_permissions.kernel.messaging import OutboxStore, PermissionEvent


class PermissionGateway(Protocol):
    async def get(self, permission_id: int, *, for_update: bool = False) -> Permission | None: ...

    async def get_type(self, permission_type_id: int) -> PermissionType | None: ...

    async def list_types(self) -> list[PermissionType]: ...

    async def add(self, permission: Permission) -> Permission: ...

    async def update(self, permission: Permission) -> Permission: ...

    async def delete(self, permission: Permission) -> None: ...

    async def find(
        self,
        *,
        employee_name: str | None = None,
        permission_type_id: int | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[tuple[Permission, PermissionType]]: ...


class UnitOfWork(Protocol):
    """One transaction spanning the permission rows and the outbox."""

    permissions: PermissionGateway
    outbox: OutboxStore

    @property
    def commit_issued(self) -> bool: ...

    async def __aenter__(self) -> "UnitOfWork": ...

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    def __call__(self) -> UnitOfWork: ...


class SearchProjector(Protocol):
    async def upsert(self, snapshot: PermissionSnapshot) -> None: ...

    async def delete(self, aggregate_id: int) -> None: ...


class EventPublisher(Protocol):
    async def publish(self, event: PermissionEvent) -> None: ...


__all__ = [
    "EventPublisher",
    "PermissionGateway",
    "SearchProjector",
    "UnitOfWork",
    "UnitOfWorkFactory",
]

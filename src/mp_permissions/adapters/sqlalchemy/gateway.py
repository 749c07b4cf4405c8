"""SQLAlchemy adapter – Primary Store Gateway for permissions and permission types."""
from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import func, select

from mp_permissions.adapters.sqlalchemy.errors import conflicts_translated
from mp_permissions.adapters.sqlalchemy.models import PermissionRow, PermissionTypeRow
from mp_permissions.domain.permission import Permission, PermissionType
from mp_permissions.kernel.errors import ConflictError, PermissionNotFoundError
from mp_permissions.kernel.time import as_utc

DEFAULT_PERMISSION_TYPES: tuple[str, ...] = (
    "Vacation Leave",
    "Sick Leave",
    "Personal Leave",
    "Maternity/Paternity Leave",
    "Emergency Leave",
)


def _to_permission(row: PermissionRow) -> Permission:
    return Permission(
        id=row.id,
        forename=row.forename,
        surname=row.surname,
        permission_type_id=row.permission_type_id,
        permission_date=row.permission_date,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at) if row.updated_at is not None else None,
        version=row.version,
    )


def _to_type(row: PermissionTypeRow) -> PermissionType:
    return PermissionType(id=row.id, description=row.description)


class SqlAlchemyPermissionGateway:
    """Reads and writes permission rows inside the caller's session/transaction."""

    def __init__(self, session: Any) -> None:
        self._session = session

    async def get(self, permission_id: int, *, for_update: bool = False) -> Permission | None:
        stmt = select(PermissionRow).where(PermissionRow.id == permission_id)
        if for_update:
            # Row lock: concurrent modifications of the same permission serialize here.
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_permission(row) if row is not None else None

    async def get_type(self, permission_type_id: int) -> PermissionType | None:
        row = await self._session.get(PermissionTypeRow, permission_type_id)
        return _to_type(row) if row is not None else None

    async def list_types(self) -> list[PermissionType]:
        result = await self._session.execute(select(PermissionTypeRow).order_by(PermissionTypeRow.id))
        return [_to_type(row) for row in result.scalars().all()]

    async def add(self, permission: Permission) -> Permission:
        row = PermissionRow(
            forename=permission.forename,
            surname=permission.surname,
            permission_type_id=permission.permission_type_id,
            permission_date=permission.permission_date,
            created_at=permission.created_at,
            updated_at=permission.updated_at,
        )
        self._session.add(row)
        async with conflicts_translated("permission"):
            await self._session.flush()
        return _to_permission(row)

    async def update(self, permission: Permission) -> Permission:
        row = await self._load_current(permission)
        row.forename = permission.forename
        row.surname = permission.surname
        row.permission_type_id = permission.permission_type_id
        row.permission_date = permission.permission_date
        row.updated_at = permission.updated_at
        async with conflicts_translated(f"permission {permission.id}"):
            await self._session.flush()
        return _to_permission(row)

    async def delete(self, permission: Permission) -> None:
        row = await self._load_current(permission)
        await self._session.delete(row)
        async with conflicts_translated(f"permission {permission.id}"):
            await self._session.flush()

    async def find(
        self,
        *,
        employee_name: str | None = None,
        permission_type_id: int | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[tuple[Permission, PermissionType]]:
        stmt = select(PermissionRow, PermissionTypeRow).join(
            PermissionTypeRow, PermissionRow.permission_type_id == PermissionTypeRow.id
        )
        if employee_name:
            full_name = func.lower(PermissionRow.forename + " " + PermissionRow.surname)
            stmt = stmt.where(full_name.contains(employee_name.lower(), autoescape=True))
        if permission_type_id is not None:
            stmt = stmt.where(PermissionRow.permission_type_id == permission_type_id)
        if from_date is not None:
            stmt = stmt.where(PermissionRow.permission_date >= from_date)
        if to_date is not None:
            stmt = stmt.where(PermissionRow.permission_date <= to_date)
        result = await self._session.execute(stmt.order_by(PermissionRow.id))
        return [(_to_permission(p), _to_type(t)) for p, t in result.all()]

    async def seed_permission_types(self, descriptions: tuple[str, ...] = DEFAULT_PERMISSION_TYPES) -> int:
        """Insert any missing *descriptions*; returns how many were added."""
        result = await self._session.execute(select(PermissionTypeRow.description))
        existing = set(result.scalars().all())
        missing = [d for d in descriptions if d not in existing]
        self._session.add_all([PermissionTypeRow(description=d) for d in missing])
        await self._session.flush()
        return len(missing)

    async def _load_current(self, permission: Permission) -> PermissionRow:
        if permission.id is None:
            raise ValueError("Permission has not been persisted yet")
        row = await self._session.get(PermissionRow, permission.id)
        if row is None:
            raise PermissionNotFoundError(permission.id)
        if row.version != permission.version:
            raise ConflictError(
                f"Permission {permission.id} changed since it was read",
                detail={"expected_version": permission.version, "actual_version": row.version},
            )
        return row


__all__ = ["DEFAULT_PERMISSION_TYPES", "SqlAlchemyPermissionGateway"]

"""Application – PermissionQueries (read path, no side effects)."""
from __future__ import annotations

from datetime import date

from mp_permissions.application.ports import UnitOfWorkFactory
from mp_permissions.domain import PermissionSnapshot, PermissionType
from mp_permissions.kernel.errors import ValidationError


class PermissionQueries:
    """Reads permissions straight from the primary store."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    async def get_by_id(self, permission_id: int) -> PermissionSnapshot | None:
        async with self._uow_factory() as uow:
            permission = await uow.permissions.get(permission_id)
            if permission is None:
                return None
            permission_type = await uow.permissions.get_type(permission.permission_type_id)
        if permission_type is None:
            return None
        return PermissionSnapshot.of(permission, permission_type)

    async def list(
        self,
        employee_name: str | None = None,
        permission_type_id: int | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[PermissionSnapshot]:
        """Filter by full-name substring (case-insensitive), type and inclusive date range."""
        if from_date is not None and to_date is not None and from_date > to_date:
            raise ValidationError(
                "Invalid date range",
                errors=[{"field": "from_date", "message": "must not be after to_date"}],
            )
        async with self._uow_factory() as uow:
            rows = await uow.permissions.find(
                employee_name=employee_name.strip() if employee_name else None,
                permission_type_id=permission_type_id,
                from_date=from_date,
                to_date=to_date,
            )
        return [PermissionSnapshot.of(permission, permission_type) for permission, permission_type in rows]

    async def list_types(self) -> list[PermissionType]:
        async with self._uow_factory() as uow:
            return await uow.permissions.list_types()


__all__ = ["PermissionQueries"]

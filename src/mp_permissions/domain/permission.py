"""Permission aggregate, PermissionType reference entity and the snapshot view."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from typing import Any

from mp_permissions.kernel.errors import SerializationError

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 200


@dataclasses.dataclass(frozen=True)
class PermissionType:
    """Reference entity; referenced by permissions, never owned by them."""

    id: int
    description: str


@dataclasses.dataclass(frozen=True)
class Permission:
    """Aggregate root for an employee permission request.

    ``id`` is ``None`` until the store assigns one. ``version`` is maintained
    by the store and is used to detect concurrent modifications.
    """

    forename: str
    surname: str
    permission_type_id: int
    permission_date: date
    created_at: datetime
    updated_at: datetime | None = None
    id: int | None = None
    version: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.forename} {self.surname}"


@dataclasses.dataclass(frozen=True)
class PermissionSnapshot:
    """Permission joined with its type description.

    This is both the command result returned to callers and the payload the
    outbox carries to the search index and the event stream.
    """

    id: int
    forename: str
    surname: str
    permission_type_id: int
    permission_type_description: str
    permission_date: date
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def of(cls, permission: Permission, permission_type: PermissionType) -> "PermissionSnapshot":
        if permission.id is None:
            raise ValueError("Cannot snapshot a permission that has not been persisted")
        return cls(
            id=permission.id,
            forename=permission.forename,
            surname=permission.surname,
            permission_type_id=permission.permission_type_id,
            permission_type_description=permission_type.description,
            permission_date=permission.permission_date,
            created_at=permission.created_at,
            updated_at=permission.updated_at,
        )

    @property
    def full_name(self) -> str:
        return f"{self.forename} {self.surname}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "forename": self.forename,
            "surname": self.surname,
            "permissionTypeId": self.permission_type_id,
            "permissionTypeDescription": self.permission_type_description,
            "date": self.permission_date.isoformat(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PermissionSnapshot":
        try:
            updated_at = data.get("updatedAt")
            return cls(
                id=int(data["id"]),
                forename=data["forename"],
                surname=data["surname"],
                permission_type_id=int(data["permissionTypeId"]),
                permission_type_description=data["permissionTypeDescription"],
                permission_date=date.fromisoformat(data["date"]),
                created_at=datetime.fromisoformat(data["createdAt"]),
                updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise SerializationError(
                f"Malformed permission snapshot: {exc}",
                payload_type="PermissionSnapshot",
                cause=exc,
            ) from exc


__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "NAME_MAX_LENGTH",
    "Permission",
    "PermissionSnapshot",
    "PermissionType",
]

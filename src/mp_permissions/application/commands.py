"""Application – permission commands and the inbound wire mapping."""
from __future__ import annotations

import dataclasses
from datetime import date
from typing import Any

from mp_permissions.kernel.errors import UnsupportedCommandError, ValidationError
from mp_permissions.kernel.messaging import Operation


class Command:
    """Marker base for commands (intent to change state)."""

    operation: Operation


@dataclasses.dataclass(frozen=True)
class RequestPermission(Command):
    forename: str
    surname: str
    permission_type_id: int
    permission_date: date

    operation = Operation.CREATED


@dataclasses.dataclass(frozen=True)
class ModifyPermission(Command):
    """Total replacement of the four mutable fields of an existing permission."""

    id: int
    forename: str
    surname: str
    permission_type_id: int
    permission_date: date

    operation = Operation.MODIFIED


@dataclasses.dataclass(frozen=True)
class RemovePermission(Command):
    id: int

    operation = Operation.DELETED


def _required(payload: dict[str, Any], key: str, errors: list[dict[str, Any]]) -> Any:
    value = payload.get(key)
    if value is None:
        errors.append({"field": key, "message": "is required"})
    return value


def _as_int(value: Any, key: str, errors: list[dict[str, Any]]) -> int:
    if isinstance(value, bool):
        errors.append({"field": key, "message": "must be an integer"})
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append({"field": key, "message": "must be an integer"})
        return 0


def _as_date(value: Any, errors: list[dict[str, Any]]) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        errors.append({"field": "date", "message": "must be an ISO-8601 calendar date"})
        return date.min


def command_from_dict(payload: dict[str, Any]) -> Command:
    """Map ``{operation, id?, forename, surname, permissionTypeId, date}`` to a command."""
    operation = payload.get("operation")
    if operation not in ("create", "modify", "delete"):
        raise UnsupportedCommandError(
            f"Unsupported operation {operation!r}",
            detail={"supported": ["create", "modify", "delete"]},
        )

    errors: list[dict[str, Any]] = []
    permission_id = 0
    if operation in ("modify", "delete"):
        raw_id = _required(payload, "id", errors)
        if raw_id is not None:
            permission_id = _as_int(raw_id, "id", errors)
    if operation == "delete":
        if errors:
            raise ValidationError("Invalid command", errors=errors)
        return RemovePermission(id=permission_id)

    forename = _required(payload, "forename", errors)
    surname = _required(payload, "surname", errors)
    raw_type = _required(payload, "permissionTypeId", errors)
    type_id = _as_int(raw_type, "permissionTypeId", errors) if raw_type is not None else 0
    raw_date = _required(payload, "date", errors)
    permission_date = _as_date(raw_date, errors) if raw_date is not None else date.min
    if errors:
        raise ValidationError("Invalid command", errors=errors)

    if operation == "create":
        return RequestPermission(
            forename=forename,
            surname=surname,
            permission_type_id=type_id,
            permission_date=permission_date,
        )
    return ModifyPermission(
        id=permission_id,
        forename=forename,
        surname=surname,
        permission_type_id=type_id,
        permission_date=permission_date,
    )


__all__ = [
    "Command",
    "ModifyPermission",
    "RemovePermission",
    "RequestPermission",
    "command_from_dict",
]

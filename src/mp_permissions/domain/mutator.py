"""Aggregate Mutator – validation and state transitions for permissions, no I/O.

Whether the referenced permission type exists is a store lookup, so it is
checked by the orchestrator before the mutator runs.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from typing import Any

from mp_permissions.domain.permission import NAME_MAX_LENGTH, Permission
from mp_permissions.kernel.errors import ValidationError
from mp_permissions.kernel.time import Clock, SystemClock


class PermissionMutator:
    """Creates and replaces permission aggregates."""

    def __init__(self, clock: Clock | None = None, name_max_length: int = NAME_MAX_LENGTH) -> None:
        self._clock = clock or SystemClock()
        self._name_max_length = name_max_length

    def create(
        self,
        forename: str,
        surname: str,
        permission_type_id: int,
        permission_date: date,
    ) -> Permission:
        forename, surname = self._validate(forename, surname, permission_date)
        return Permission(
            forename=forename,
            surname=surname,
            permission_type_id=permission_type_id,
            permission_date=permission_date,
            created_at=self._clock.now(),
        )

    def apply(
        self,
        existing: Permission,
        forename: str,
        surname: str,
        permission_type_id: int,
        permission_date: date,
    ) -> Permission:
        """Return *existing* with all four mutable fields replaced."""
        forename, surname = self._validate(forename, surname, permission_date)
        # updated_at must never precede created_at, even with a skewed clock.
        updated_at = max(self._clock.now(), existing.created_at)
        return dataclasses.replace(
            existing,
            forename=forename,
            surname=surname,
            permission_type_id=permission_type_id,
            permission_date=permission_date,
            updated_at=updated_at,
        )

    def _validate(self, forename: str, surname: str, permission_date: date) -> tuple[str, str]:
        errors: list[dict[str, Any]] = []
        cleaned: dict[str, str] = {}
        for field, value in (("forename", forename), ("surname", surname)):
            text = value.strip() if isinstance(value, str) else ""
            if not text:
                errors.append({"field": field, "message": "must not be empty"})
            elif len(text) > self._name_max_length:
                errors.append(
                    {"field": field, "message": f"must be at most {self._name_max_length} characters"}
                )
            cleaned[field] = text
        if not isinstance(permission_date, date):
            errors.append({"field": "permission_date", "message": "must be a calendar date"})
        if errors:
            raise ValidationError("Invalid permission", errors=errors)
        return cleaned["forename"], cleaned["surname"]


__all__ = ["PermissionMutator"]

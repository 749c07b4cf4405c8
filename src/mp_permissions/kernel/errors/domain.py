"""Domain errors – rejections surfaced synchronously to the command caller."""

from __future__ import annotations

from typing import Any

from mp_permissions.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a domain rule / invariant is violated."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """Input data does not meet validation rules.

    ``errors`` is a list of field-level validation failures, each a dict with
    ``field`` and ``message`` keys.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        **kwargs: Any,
    ) -> None:
        msg = f"{resource} not found"
        if identifier is not None:
            msg = f"{resource} '{identifier}' not found"
        super().__init__(msg, **kwargs)
        self.resource = resource
        self.identifier = identifier


class PermissionNotFoundError(NotFoundError):
    """The permission addressed by a modify/remove command does not exist."""

    default_code = "permission_not_found"

    def __init__(self, permission_id: int, **kwargs: Any) -> None:
        super().__init__("Permission", permission_id, **kwargs)


class PermissionTypeNotFoundError(NotFoundError):
    """The referenced permission type does not exist."""

    default_code = "permission_type_not_found"

    def __init__(self, permission_type_id: int, **kwargs: Any) -> None:
        super().__init__("PermissionType", permission_type_id, **kwargs)


class ConflictError(DomainError):
    """A concurrent modification won the race; the caller may resubmit."""

    default_code = "conflict"


__all__ = [
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "PermissionNotFoundError",
    "PermissionTypeNotFoundError",
    "ValidationError",
]

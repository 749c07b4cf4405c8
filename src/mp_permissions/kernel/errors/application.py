"""Application-layer errors – cross-cutting concerns at use-case level."""

from __future__ import annotations

from mp_permissions.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class UnsupportedCommandError(ApplicationError):
    """No orchestration path exists for the given command."""

    default_code = "unsupported_command"


__all__ = ["ApplicationError", "UnsupportedCommandError"]

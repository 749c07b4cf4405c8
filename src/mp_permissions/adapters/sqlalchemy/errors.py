"""SQLAlchemy adapter – translate store-level concurrency failures."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm.exc import StaleDataError

from mp_permissions.kernel.errors import ConflictError

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_conflict(exc: BaseException) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, DBAPIError):
        if _sqlstate(exc) in _RETRYABLE_SQLSTATES:
            return True
        # SQLite reports writer contention this way.
        return "database is locked" in str(exc.orig)
    return False


@asynccontextmanager
async def conflicts_translated(resource: str) -> AsyncIterator[None]:
    """Re-raise lost-update and serialization failures as ``ConflictError``."""
    try:
        yield
    except (StaleDataError, DBAPIError) as exc:
        if not is_conflict(exc):
            raise
        raise ConflictError(
            f"Concurrent modification of {resource}",
            detail={"resource": resource},
            cause=exc,
        ) from exc


__all__ = ["conflicts_translated", "is_conflict"]

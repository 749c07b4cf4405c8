"""SQLAlchemy adapter – SqlAlchemyUnitOfWork."""
from __future__ import annotations

from typing import Any

from mp_permissions.adapters.sqlalchemy.errors import conflicts_translated
from mp_permissions.adapters.sqlalchemy.gateway import SqlAlchemyPermissionGateway
from mp_permissions.adapters.sqlalchemy.outbox import SqlAlchemyOutboxStore


class SqlAlchemyUnitOfWork:
    """One session, one transaction: permissions and outbox rows commit together.

    Exiting with an exception rolls back, unless ``commit()`` has already been
    issued. Once issued, the write is the database's to finish; the session is
    simply closed.
    """

    def __init__(self, session_factory: Any) -> None:
        self._factory = session_factory
        self.session: Any = None
        self.permissions: SqlAlchemyPermissionGateway
        self.outbox: SqlAlchemyOutboxStore
        self._commit_issued = False

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self._factory()
        self.permissions = SqlAlchemyPermissionGateway(self.session)
        self.outbox = SqlAlchemyOutboxStore(self.session)
        self._commit_issued = False
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        try:
            if exc_type is not None and not self._commit_issued:
                await self.rollback()
        finally:
            await self.session.close()

    @property
    def commit_issued(self) -> bool:
        return self._commit_issued

    async def commit(self) -> None:
        self._commit_issued = True
        async with conflicts_translated("transaction"):
            await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


__all__ = ["SqlAlchemyUnitOfWork"]

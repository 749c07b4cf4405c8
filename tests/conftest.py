"""Shared fixtures: a file-backed SQLite database per test and a frozen clock."""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest

from mp_permissions.adapters.sqlalchemy import SqlAlchemySessionFactory, SqlAlchemyUnitOfWork
from mp_permissions.kernel.time import FrozenClock
from mp_permissions.testing.fakes import FakeClock


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    # A file (not :memory:) so every session gets its own connection.
    return f"sqlite+aiosqlite:///{tmp_path / 'permissions.db'}"


@pytest.fixture
def clock() -> FrozenClock:
    return FakeClock()


@pytest.fixture
def make_store(database_url: str) -> Callable[[], Awaitable[SqlAlchemySessionFactory]]:
    """Return a coroutine factory creating the schema and seeding the default types.

    Call it inside the test's event loop; pooled aiosqlite connections are
    bound to the loop that opened them.
    """

    async def _make() -> SqlAlchemySessionFactory:
        factory = SqlAlchemySessionFactory(database_url)
        await factory.create_schema()
        async with SqlAlchemyUnitOfWork(factory) as uow:
            await uow.permissions.seed_permission_types()
            await uow.commit()
        return factory

    return _make

"""Unit tests for the composition root and the CLI."""
from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mp_permissions import __main__ as cli
from mp_permissions.adapters.sqlalchemy import SqlAlchemyUnitOfWork
from mp_permissions.bootstrap import Container
from mp_permissions.config import PermissionsSettings


def _mock_aiokafka():
    producer = MagicMock()
    producer.start = AsyncMock()
    producer.stop = AsyncMock()
    module = MagicMock()
    module.AIOKafkaProducer.return_value = producer
    return module, producer


class TestContainer:
    def test_from_settings_wires_relay_from_settings(self, database_url: str) -> None:
        module, _ = _mock_aiokafka()

        async def _run() -> Container:
            with patch("mp_permissions.adapters.kafka.producer._require_aiokafka", return_value=module):
                container = Container.from_settings(
                    PermissionsSettings(database_url=database_url, relay_batch_size=7, kafka_topic="perm-ops")
                )
            await container.aclose()
            return container

        container = asyncio.run(_run())
        assert container.publisher.topic == "perm-ops"
        assert container.relay.relay_id
        module.AIOKafkaProducer.assert_called_once()

    def test_init_db_creates_schema_and_seeds_types(self, database_url: str) -> None:
        module, producer = _mock_aiokafka()

        async def _run() -> tuple[int, int]:
            with patch("mp_permissions.adapters.kafka.producer._require_aiokafka", return_value=module):
                container = Container.from_settings(PermissionsSettings(database_url=database_url))
            try:
                first = await container.init_db()
                second = await container.init_db()
                types = await container.queries.list_types()
            finally:
                await container.aclose()
            assert len(types) == 5
            return first, second

        assert asyncio.run(_run()) == (5, 0)
        producer.stop.assert_not_awaited()


class TestCli:
    def test_init_db_command(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        db = tmp_path / "cli.db"
        monkeypatch.setenv("PERMISSIONS_DATABASE_URL", f"sqlite+aiosqlite:///{db}")
        monkeypatch.setenv("PERMISSIONS_LOG_JSON", "false")
        module, _ = _mock_aiokafka()
        with patch("mp_permissions.adapters.kafka.producer._require_aiokafka", return_value=module):
            cli.main(["--env-file", str(tmp_path / "missing.env"), "init-db"])
        assert db.exists()

        async def _count() -> int:
            from mp_permissions.adapters.sqlalchemy import SqlAlchemySessionFactory

            factory = SqlAlchemySessionFactory(f"sqlite+aiosqlite:///{db}")
            async with SqlAlchemyUnitOfWork(factory) as uow:
                count = len(await uow.permissions.list_types())
            await factory.dispose()
            return count

        assert asyncio.run(_count()) == 5

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            cli.main([])

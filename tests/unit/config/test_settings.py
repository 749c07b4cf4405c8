"""Unit tests for PermissionsSettings and its loaders."""
from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

import pytest

from mp_permissions.config import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    InvalidSettingValueError,
    MissingRequiredSettingError,
    PermissionsSettings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("PERMISSIONS_"):
            monkeypatch.delenv(key)


class TestEnvSettingsLoader:
    def test_database_url_is_required(self) -> None:
        with pytest.raises(MissingRequiredSettingError) as info:
            EnvSettingsLoader().load(PermissionsSettings)
        assert info.value.setting_name == "PERMISSIONS_DATABASE_URL"

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PERMISSIONS_DATABASE_URL", "sqlite+aiosqlite:///x.db")
        settings = EnvSettingsLoader().load(PermissionsSettings)
        assert settings.relay_batch_size == 50
        assert settings.relay_max_retries == 5
        assert settings.kafka_topic == "permissions-operations"
        assert settings.relay_lease == timedelta(seconds=30)
        assert settings.log_json is True

    def test_coerces_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PERMISSIONS_DATABASE_URL", "postgresql+asyncpg://db/permissions")
        monkeypatch.setenv("PERMISSIONS_RELAY_BATCH_SIZE", "10")
        monkeypatch.setenv("PERMISSIONS_RELAY_BACKOFF_BASE", "0.5")
        monkeypatch.setenv("PERMISSIONS_LOG_JSON", "false")
        settings = EnvSettingsLoader().load(PermissionsSettings)
        assert settings.relay_batch_size == 10
        assert settings.relay_backoff_base == 0.5
        assert settings.log_json is False

    def test_unparsable_number(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PERMISSIONS_DATABASE_URL", "sqlite+aiosqlite:///x.db")
        monkeypatch.setenv("PERMISSIONS_RELAY_CONCURRENCY", "many")
        with pytest.raises(InvalidSettingValueError):
            EnvSettingsLoader().load(PermissionsSettings)


class TestPermissionsSettingsValidation:
    def test_zero_batch_rejected(self) -> None:
        with pytest.raises(InvalidSettingValueError) as info:
            PermissionsSettings(database_url="sqlite://", relay_batch_size=0)
        assert info.value.setting_name == "relay_batch_size"

    def test_backoff_ceiling_below_base_rejected(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            PermissionsSettings(database_url="sqlite://", relay_backoff_base=5.0, relay_backoff_max=1.0)

    def test_lease_must_outlast_dispatch_timeout(self) -> None:
        with pytest.raises(InvalidSettingValueError) as info:
            PermissionsSettings(database_url="sqlite://", relay_lease_seconds=5.0, relay_dispatch_timeout=10.0)
        assert info.value.setting_name == "relay_lease_seconds"

    def test_zero_retries_allowed(self) -> None:
        assert PermissionsSettings(database_url="sqlite://", relay_max_retries=0).relay_max_retries == 0


class TestDotenvSettingsLoader:
    def test_reads_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("PERMISSIONS_DATABASE_URL=sqlite+aiosqlite:///from-dotenv.db\nPERMISSIONS_SEARCH_INDEX=perms\n")
        settings = DotenvSettingsLoader(str(env_file)).load(PermissionsSettings)
        assert settings.database_url == "sqlite+aiosqlite:///from-dotenv.db"
        assert settings.search_index == "perms"

    def test_environment_wins_without_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("PERMISSIONS_DATABASE_URL=sqlite+aiosqlite:///from-dotenv.db\n")
        monkeypatch.setenv("PERMISSIONS_DATABASE_URL", "sqlite+aiosqlite:///from-env.db")
        settings = DotenvSettingsLoader(str(env_file)).load(PermissionsSettings)
        assert settings.database_url == "sqlite+aiosqlite:///from-env.db"

"""Config settings – PermissionsSettings."""
from __future__ import annotations

import dataclasses
from datetime import timedelta
from typing import ClassVar

from mp_permissions.config.settings.base import Settings
from mp_permissions.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class PermissionsSettings(Settings):
    """Runtime configuration, read from ``PERMISSIONS_*`` environment variables."""

    _prefix: ClassVar[str] = "PERMISSIONS"

    database_url: str
    search_url: str = "http://localhost:9200"
    search_index: str = "permissions"
    search_timeout: float = 10.0
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_topic: str = "permissions-operations"
    relay_batch_size: int = 50
    relay_max_retries: int = 5
    relay_backoff_base: float = 1.0
    relay_backoff_max: float = 60.0
    relay_lease_seconds: float = 30.0
    relay_dispatch_timeout: float = 10.0
    relay_concurrency: int = 8
    relay_poll_interval: float = 1.0
    log_level: str = "INFO"
    log_json: bool = True

    def _validate(self) -> None:
        if not self.database_url:
            raise InvalidSettingValueError("database_url", self.database_url, "must not be empty")
        for name in ("relay_batch_size", "relay_concurrency"):
            if getattr(self, name) < 1:
                raise InvalidSettingValueError(name, getattr(self, name), "must be at least 1")
        if self.relay_max_retries < 0:
            raise InvalidSettingValueError("relay_max_retries", self.relay_max_retries, "must not be negative")
        if self.relay_backoff_base <= 0:
            raise InvalidSettingValueError("relay_backoff_base", self.relay_backoff_base, "must be positive")
        if self.relay_backoff_max < self.relay_backoff_base:
            raise InvalidSettingValueError(
                "relay_backoff_max", self.relay_backoff_max, "must not be below relay_backoff_base"
            )
        # A lease shorter than the dispatch timeout lets a second relay steal live work.
        if self.relay_lease_seconds <= self.relay_dispatch_timeout:
            raise InvalidSettingValueError(
                "relay_lease_seconds", self.relay_lease_seconds, "must exceed relay_dispatch_timeout"
            )

    @property
    def relay_lease(self) -> timedelta:
        return timedelta(seconds=self.relay_lease_seconds)


__all__ = ["PermissionsSettings"]

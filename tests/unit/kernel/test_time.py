"""Unit tests for kernel time helpers."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from mp_permissions.kernel.time import FrozenClock, SystemClock, as_utc


class TestClocks:
    def test_system_clock_is_utc(self) -> None:
        assert SystemClock().now().tzinfo is UTC

    def test_frozen_clock_advances(self) -> None:
        clock = FrozenClock(datetime(2026, 1, 1, tzinfo=UTC))
        clock.advance(seconds=90)
        assert clock.now() == datetime(2026, 1, 1, 0, 1, 30, tzinfo=UTC)
        assert clock.today().isoformat() == "2026-01-01"


class TestAsUtc:
    def test_naive_values_are_taken_as_utc(self) -> None:
        assert as_utc(datetime(2026, 1, 1, 12)) == datetime(2026, 1, 1, 12, tzinfo=UTC)

    def test_aware_values_are_converted(self) -> None:
        local = datetime(2026, 1, 1, 14, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(local) == datetime(2026, 1, 1, 12, tzinfo=UTC)
        assert as_utc(local).tzinfo is UTC

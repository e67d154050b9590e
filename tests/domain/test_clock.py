"""Tests for clocks."""

from __future__ import annotations

from datetime import UTC, datetime

from cqrskit.domain.clock import Clock, FixedClock, SystemClock


class TestClocks:
    def test_system_clock_is_aware_utc(self) -> None:
        now = SystemClock().now()
        assert now.tzinfo is UTC

    def test_fixed_clock(self) -> None:
        instant = datetime(2024, 1, 1, tzinfo=UTC)
        clock = FixedClock(instant)
        assert clock.now() == instant
        later = datetime(2024, 6, 1, tzinfo=UTC)
        clock.advance_to(later)
        assert clock.now() == later

    def test_protocol(self) -> None:
        assert isinstance(SystemClock(), Clock)
        assert isinstance(FixedClock(datetime(2024, 1, 1, tzinfo=UTC)), Clock)

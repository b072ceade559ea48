"""Tests for the injectable clocks."""

from datetime import datetime, timedelta, timezone

from planning_kernel.domain.clock import DeterministicClock, SystemClock

START = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


class TestDeterministicClock:

    def test_stable_until_advanced(self):
        clock = DeterministicClock(START)
        assert clock.now() == clock.now() == START

    def test_advance_and_tick(self):
        clock = DeterministicClock(START)
        clock.advance(59)
        assert clock.tick() == START + timedelta(seconds=60)

    def test_set_time_resets_offset(self):
        clock = DeterministicClock(START)
        clock.advance(3600)
        later = datetime(2024, 4, 1, tzinfo=timezone.utc)
        clock.set_time(later)
        assert clock.now() == later


def test_system_clock_is_utc():
    assert SystemClock().now().utcoffset() == timedelta(0)

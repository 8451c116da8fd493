"""Tests for the injectable clocks."""

from datetime import date, datetime, timedelta, timezone

from retail_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def setup_method(self):
        self.start = datetime(2024, 6, 15, 23, 59, 59, tzinfo=timezone.utc)
        self.clock = DeterministicClock(self.start)

    def test_stable_between_calls(self):
        assert self.clock.now() == self.clock.now() == self.start

    def test_tick_crosses_midnight(self):
        assert self.clock.tick() == self.start + timedelta(seconds=1)
        assert self.clock.today() == date(2024, 6, 16)

    def test_advance_by_days(self):
        self.clock.advance(days=2)
        assert self.clock.today() == date(2024, 6, 17)

    def test_set_time(self):
        later = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.clock.set_time(later)
        assert self.clock.now() == later

    def test_default_start(self):
        assert DeterministicClock().today() == date(2024, 1, 1)


class TestSystemClock:

    def test_now_is_utc_aware(self):
        assert SystemClock().now().tzinfo is timezone.utc

"""
Tests for core.time — Clock protocol and calendar window helpers.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from core.time.clock import (
    FixedClock,
    SystemClock,
    get_default_clock,
    set_default_clock,
    today,
)
from core.time.temporal import DateWindow, compact_date, days_between, iter_days


# ── Clock Tests ──────────────────────────────────────────────

class TestSystemClock:
    def test_returns_date(self):
        day = SystemClock().today()
        assert isinstance(day, date)
        assert not isinstance(day, datetime)

    def test_uses_given_timezone(self):
        tz = timezone(timedelta(hours=9))
        expected = datetime.now(tz).date()
        # Allow for the test straddling midnight.
        assert SystemClock(tz).today() in (expected, expected + timedelta(days=1))


class TestFixedClock:
    def test_returns_fixed_day(self):
        clock = FixedClock(date(2026, 3, 1))
        assert clock.today() == date(2026, 3, 1)
        assert clock.today() == date(2026, 3, 1)  # Same every time

    def test_rejects_datetime(self):
        with pytest.raises(ValueError, match="not a datetime"):
            FixedClock(datetime(2026, 3, 1, tzinfo=timezone.utc))

    def test_advance(self):
        clock = FixedClock(date(2026, 2, 27))
        clock.advance(2)
        assert clock.today() == date(2026, 3, 1)


class TestDefaultClock:
    def test_set_and_get_default(self):
        original = get_default_clock()
        set_default_clock(FixedClock(date(2026, 1, 1)))
        try:
            assert today() == date(2026, 1, 1)
        finally:
            set_default_clock(original)


# ── DateWindow Tests ─────────────────────────────────────────

class TestDateWindow:
    def test_around(self):
        window = DateWindow.around(date(2026, 3, 31), 30, 90)
        assert window.start == date(2026, 3, 1)
        assert window.end == date(2026, 6, 29)
        assert window.length == 121

    def test_contains_is_inclusive(self):
        window = DateWindow(date(2026, 1, 1), date(2026, 1, 31))
        assert window.contains(date(2026, 1, 1))
        assert window.contains(date(2026, 1, 31))
        assert not window.contains(date(2025, 12, 31))
        assert not window.contains(date(2026, 2, 1))

    def test_rejects_inverted(self):
        with pytest.raises(ValueError, match="must be <="):
            DateWindow(date(2026, 2, 1), date(2026, 1, 1))

    def test_rejects_negative_sizes(self):
        with pytest.raises(ValueError):
            DateWindow.around(date(2026, 1, 1), -1, 5)

    def test_single_day_window(self):
        window = DateWindow.around(date(2026, 1, 1), 0, 0)
        assert list(window.days()) == [date(2026, 1, 1)]


class TestTemporalFunctions:
    def test_iter_days_crosses_month_end(self):
        days = list(iter_days(date(2026, 2, 27), date(2026, 3, 2)))
        assert days == [
            date(2026, 2, 27),
            date(2026, 2, 28),
            date(2026, 3, 1),
            date(2026, 3, 2),
        ]

    def test_iter_days_empty_when_inverted(self):
        assert list(iter_days(date(2026, 1, 2), date(2026, 1, 1))) == []

    def test_days_between_is_signed(self):
        assert days_between(date(2026, 1, 1), date(2026, 1, 11)) == 10
        assert days_between(date(2026, 1, 11), date(2026, 1, 1)) == -10

    def test_compact_date(self):
        assert compact_date(date(2026, 3, 5)) == "20260305"

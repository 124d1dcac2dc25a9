"""
Stockline Core Time — Explicit Clock Protocol
===============================================
Doctrine: NO date.today() inside engine logic.
"Today" is passed explicitly into the reconstructor, or injected
via the Clock protocol into the service layer.

The projection window is anchored on a calendar day, so the clock
answers in dates. The timezone used to decide which day it is
belongs to the clock, not to the engine.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional, Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Injectable source of the current calendar day."""

    def today(self) -> date:
        """Return the current calendar day."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Production clock — real system time in the given timezone (UTC default)."""

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self._tz = tz or timezone.utc

    def today(self) -> date:
        return datetime.now(self._tz).date()


class FixedClock:
    """
    Test clock — returns a fixed calendar day.

    Usage:
        clock = FixedClock(date(2026, 3, 1))
        assert clock.today().month == 3
    """

    def __init__(self, fixed_day: date) -> None:
        if isinstance(fixed_day, datetime):
            raise ValueError("FixedClock requires a date, not a datetime.")
        self._fixed_day = fixed_day

    def today(self) -> date:
        return self._fixed_day

    def advance(self, days: int) -> None:
        """Advance the fixed day (useful for multi-step test scenarios)."""
        self._fixed_day = self._fixed_day + timedelta(days=days)


# ══════════════════════════════════════════════════════════════
# DEFAULT CLOCK (infrastructure use only)
# ══════════════════════════════════════════════════════════════

_default_clock: Clock = SystemClock()


def set_default_clock(clock: Clock) -> None:
    """Override the default clock (testing only)."""
    global _default_clock
    _default_clock = clock


def get_default_clock() -> Clock:
    """Get the current default clock."""
    return _default_clock


def today() -> date:
    """Convenience: get the current day from the default clock."""
    return _default_clock.today()

"""
Stockline Core Time — Calendar Window Helpers
===============================================
Pure functions for day-granular interval logic.
All functions take explicit date arguments — no hidden clock access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator


# ══════════════════════════════════════════════════════════════
# DATE WINDOW — Closed interval [start, end] of calendar days
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateWindow:
    """
    A closed interval of calendar days [start, end].

    Invariant: start <= end (enforced at construction).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"DateWindow start ({self.start}) must be <= end ({self.end})."
            )

    @classmethod
    def around(cls, anchor: date, days_before: int, days_after: int) -> DateWindow:
        """Window [anchor - days_before, anchor + days_after]."""
        if days_before < 0 or days_after < 0:
            raise ValueError("Window sizes cannot be negative.")
        return cls(
            start=anchor - timedelta(days=days_before),
            end=anchor + timedelta(days=days_after),
        )

    def contains(self, day: date) -> bool:
        """Check if a day falls within the window (inclusive)."""
        return self.start <= day <= self.end

    @property
    def length(self) -> int:
        """Number of calendar days in the window (inclusive)."""
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[date]:
        """Every day of the window, oldest first."""
        return iter_days(self.start, self.end)


# ══════════════════════════════════════════════════════════════
# PURE TEMPORAL FUNCTIONS
# ══════════════════════════════════════════════════════════════

def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end inclusive, ascending."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def days_between(earlier: date, later: date) -> int:
    """Signed number of days from `earlier` to `later`."""
    return (later - earlier).days


def compact_date(day: date) -> str:
    """YYYYMMDD form used inside composite record identifiers."""
    return day.strftime("%Y%m%d")

"""
Stockline Core Time — Public API
==================================
Explicit clock protocol and calendar window helpers.
Doctrine: NO date.today() in engine logic.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    get_default_clock,
    set_default_clock,
    today,
)
from core.time.temporal import (
    DateWindow,
    compact_date,
    days_between,
    iter_days,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_default_clock",
    "set_default_clock",
    "today",
    "DateWindow",
    "compact_date",
    "days_between",
    "iter_days",
]

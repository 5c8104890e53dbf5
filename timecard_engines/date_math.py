"""
Calendar Arithmetic (``timecard_engines.date_math``).

Responsibility
--------------
Pure Gregorian calendar helpers used by the holiday rules:

* Easter Sunday (Meeus/Jones/Butcher algorithm)
* nth weekday of a month (e.g. 2nd Monday of October)
* last weekday on or before a day (e.g. last Monday on/before May 24)
* weekend observed-date shift (Saturday -> Monday, Sunday -> Monday)

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.

Weekdays use ``date.weekday()`` numbering throughout: Monday = 0 ...
Sunday = 6.

Failure modes
-------------
* ``ValueError`` for impossible inputs (occurrence outside 1..5, a fifth
  weekday that does not exist in the month, invalid month/day).
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)


def easter_sunday(year: int) -> date:
    """Gregorian Easter Sunday for ``year``."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def nth_weekday(year: int, month: int, weekday: int, occurrence: int) -> date:
    """The ``occurrence``-th ``weekday`` of ``month`` (1-based)."""
    if not 1 <= occurrence <= 5:
        raise ValueError(f"occurrence must be 1..5, got {occurrence}")
    first = date(year, month, 1)
    first_match = first + timedelta(days=(weekday - first.weekday()) % 7)
    result = first_match + timedelta(weeks=occurrence - 1)
    if result.month != month:
        raise ValueError(
            f"{year}-{month:02d} has no occurrence {occurrence} of weekday {weekday}"
        )
    return result


def last_weekday_on_or_before(year: int, month: int, day: int, weekday: int) -> date:
    """Latest ``weekday`` falling on or before ``year-month-day``."""
    base = date(year, month, day)
    return base - timedelta(days=(base.weekday() - weekday) % 7)


def last_weekday_of_month(year: int, month: int, weekday: int) -> date:
    """Last ``weekday`` of ``month`` (e.g. Memorial Day)."""
    last_day = calendar.monthrange(year, month)[1]
    return last_weekday_on_or_before(year, month, last_day, weekday)


def observed_date(fixed_date: date) -> date | None:
    """Monday on which a weekend holiday is observed, or None on weekdays."""
    weekday = fixed_date.weekday()
    if weekday == SATURDAY:
        return fixed_date + timedelta(days=2)
    if weekday == SUNDAY:
        return fixed_date + timedelta(days=1)
    return None

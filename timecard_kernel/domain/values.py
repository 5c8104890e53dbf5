"""
Timecard Domain Values (``timecard_kernel.domain.values``).

Responsibility
--------------
Dataclass value objects shared by every layer: time entries, pay
categories, summary totals, statutory holidays, regions, inclusive date
ranges and pay periods.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Consumed by
``timecard_engines`` and ``timecard_services``.

Invariants enforced
-------------------
* Hours are ``Decimal`` and never negative.
* ``TimeEntry`` is the only mutable value; everything else is frozen or
  recomputed on demand.
* An entry flagged ``placeholder`` -- or carrying the legacy 600-hour
  marker -- is excluded from every aggregate.

Failure modes
-------------
* Negative hours raise ``InvalidEntryError``.
* A ``DateRange`` whose end precedes its start raises ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterator
from uuid import UUID, uuid4

from timecard_kernel.exceptions import InvalidEntryError

ZERO = Decimal("0")

# Older timecards used 600 hours as an "ignore this row" marker.
LEGACY_PLACEHOLDER_HOURS = Decimal("600")

HOLIDAY_CODES = frozenset({"H", "STAT"})


def _as_hours(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PayCategory(str, Enum):
    """Classification bucket for hours."""

    REGULAR = "regular"
    OT = "ot"
    DT = "dt"
    VACATION = "vacation"
    NIGHT = "night"
    STAT = "stat"
    ON_CALL = "on_call"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    PayCategory.REGULAR: "Regular Time",
    PayCategory.OT: "OT",
    PayCategory.DT: "DT",
    PayCategory.VACATION: "Vacation (VP)",
    PayCategory.NIGHT: "Night Shift (NS)",
    PayCategory.STAT: "STAT Holiday",
    PayCategory.ON_CALL: "On Call",
}


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@dataclass
class TimeEntry:
    """One user-entered (or holiday-synthesized) row of a timecard."""

    work_date: date
    job: str = ""
    labour_code: str = ""
    hours: Decimal = ZERO
    notes: str = ""
    is_overtime: bool = False
    is_night_shift: bool = False
    placeholder: bool = False
    entry_id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        self.hours = _as_hours(self.hours)
        if self.hours < ZERO:
            raise InvalidEntryError(
                str(self.entry_id), f"hours cannot be negative: {self.hours}"
            )

    @property
    def normalized_code(self) -> str:
        return self.labour_code.strip().upper()

    @property
    def has_blank_code(self) -> bool:
        return not self.labour_code.strip()

    @property
    def has_blank_job(self) -> bool:
        return not self.job.strip()

    @property
    def is_placeholder(self) -> bool:
        return self.placeholder or self.hours == LEGACY_PLACEHOLDER_HOURS

    @property
    def is_holiday_code(self) -> bool:
        return self.normalized_code in HOLIDAY_CODES


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


@dataclass
class SummaryTotals:
    """Hours per category for a range, plus the on-call stipend."""

    regular: Decimal = ZERO
    ot: Decimal = ZERO
    dt: Decimal = ZERO
    vacation: Decimal = ZERO
    night: Decimal = ZERO
    stat: Decimal = ZERO
    on_call: Decimal = ZERO
    on_call_bonus: Decimal = ZERO
    on_call_entries: int = 0

    @property
    def total_hours(self) -> Decimal:
        # on_call hours are already mirrored into ot
        return (
            self.regular + self.ot + self.dt
            + self.vacation + self.night + self.stat
        )


# ---------------------------------------------------------------------------
# Calendar values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatHoliday:
    """A statutory holiday; observed variants are separate instances."""

    name: str
    holiday_date: date
    is_observed: bool = False


@dataclass(frozen=True)
class Region:
    """Country (ISO 3166-1 alpha-2) plus province/state code."""

    country: str
    subdivision: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "country", self.country.strip().upper())
        object.__setattr__(self, "subdivision", self.subdivision.strip().upper())

    @property
    def code(self) -> str:
        return f"{self.country}-{self.subdivision}"

    @property
    def cache_prefix(self) -> str:
        return f"{self.code}-"

    def cache_key(self, year: int) -> str:
        return f"{self.cache_prefix}{year}"

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                f"DateRange end ({self.end}) cannot precede start ({self.start})"
            )

    @classmethod
    def single(cls, day: date) -> DateRange:
        return cls(day, day)

    @classmethod
    def week_containing(cls, day: date, week_start: int = 6) -> DateRange:
        """Seven-day range containing ``day``; ``week_start`` uses date.weekday()."""
        offset = (day.weekday() - week_start) % 7
        first = day - timedelta(days=offset)
        return cls(first, first + timedelta(days=6))

    def contains(self, value: object) -> bool:
        # Anything that is not a calendar day never matches.
        if isinstance(value, datetime):
            value = value.date()
        if not isinstance(value, date):
            return False
        return self.start <= value <= self.end

    def __contains__(self, value: object) -> bool:
        return self.contains(value)

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def years(self) -> range:
        return range(self.start.year, self.end.year + 1)

    def weeks(self) -> list[DateRange]:
        """Consecutive seven-day windows from ``start``; the last may be short."""
        windows: list[DateRange] = []
        first = self.start
        while first <= self.end:
            last = min(first + timedelta(days=6), self.end)
            windows.append(DateRange(first, last))
            first = last + timedelta(days=1)
        return windows

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class PayPeriod:
    """A payroll cycle with its sequential number."""

    number: int
    start: date
    end: date
    payday: date

    @property
    def range(self) -> DateRange:
        return DateRange(self.start, self.end)

    @property
    def label(self) -> str:
        """``"PP<number> <start>"``, e.g. ``"PP5 2025-02-27"``."""
        return f"PP{self.number} {self.start.isoformat()}"

    def weeks(self) -> list[DateRange]:
        return self.range.weeks()

"""
Statutory Holiday Calendar (``timecard_engines.holiday_calendar``).

Responsibility
--------------
Compute the statutory holidays of a region for a calendar year from a
declarative rule book, and answer "is this day a holiday?" questions near
year boundaries.  Also owns the pure merge of locally computed holidays
with a remote list.

Architecture position
---------------------
**Engines layer** -- pure functional core.  Rules are compiled from the
``holidays.yaml`` configuration fragment by ``timecard_config``; the
remote fetch and the cache live in ``timecard_services.holiday_service``.

Invariants enforced
-------------------
* ``stat_holidays`` is deterministic: identical inputs give identical,
  date-sorted output (ties keep rule-book order).
* Observed variants are separate ``StatHoliday`` instances named
  ``"<name> (Observed)"``; the actual-date holiday is never mutated.
* Rules outside their effective year range contribute nothing.
* Lookups by day consult ``year - 1 .. year + 1`` so an observed date that
  crosses into the next year is still recognized.

Failure modes
-------------
* ``ValueError`` from ``HolidayRule.__post_init__`` when a rule lacks the
  fields its kind needs.

Usage::

    from timecard_engines.holiday_calendar import HolidayCalendar

    calendar = HolidayCalendar(config.holiday_rules)
    calendar.stat_holidays(2025, Region("CA", "BC"))
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

from timecard_kernel.domain.values import Region, StatHoliday
from timecard_kernel.logging_config import get_logger
from timecard_engines.date_math import (
    easter_sunday,
    last_weekday_of_month,
    last_weekday_on_or_before,
    nth_weekday,
    observed_date,
)
from timecard_engines.tracer import traced_engine

logger = get_logger("engines.holiday_calendar")

OBSERVED_SUFFIX = " (Observed)"


class HolidayKind(str, Enum):
    """How a holiday's date is derived for a given year."""

    FIXED = "fixed"
    EASTER = "easter"
    NTH_WEEKDAY = "nth_weekday"
    LAST_WEEKDAY_ON_OR_BEFORE = "last_weekday_on_or_before"
    LAST_WEEKDAY_OF_MONTH = "last_weekday_of_month"


_REQUIRED_FIELDS: dict[HolidayKind, tuple[str, ...]] = {
    HolidayKind.FIXED: ("month", "day"),
    HolidayKind.EASTER: (),
    HolidayKind.NTH_WEEKDAY: ("month", "weekday", "occurrence"),
    HolidayKind.LAST_WEEKDAY_ON_OR_BEFORE: ("month", "day", "weekday"),
    HolidayKind.LAST_WEEKDAY_OF_MONTH: ("month", "weekday"),
}


@dataclass(frozen=True)
class HolidayRule:
    """
    One declarative holiday rule.

    Contract:
        ``kind`` decides which of ``month``/``day``/``weekday``/``occurrence``
        are required.  ``offset_days`` shifts the resolved date (Good Friday
        is ``easter`` with offset -2).  ``observed`` adds a Monday sibling
        when the resolved date falls on a weekend.
    Guarantees:
        - ``resolve`` is pure and deterministic.
        - ``from_year``/``until_year`` are inclusive bounds; None = open.
    """

    name: str
    kind: HolidayKind
    month: int | None = None
    day: int | None = None
    weekday: int | None = None
    occurrence: int | None = None
    offset_days: int = 0
    observed: bool = False
    from_year: int | None = None
    until_year: int | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Holiday rule name cannot be blank")
        missing = [
            name for name in _REQUIRED_FIELDS[self.kind]
            if getattr(self, name) is None
        ]
        if missing:
            raise ValueError(
                f"Holiday rule {self.name!r} ({self.kind.value}) is missing: "
                f"{', '.join(missing)}"
            )
        if self.weekday is not None and not 0 <= self.weekday <= 6:
            raise ValueError(f"Holiday rule {self.name!r}: weekday must be 0..6")
        if (
            self.from_year is not None
            and self.until_year is not None
            and self.until_year < self.from_year
        ):
            raise ValueError(
                f"Holiday rule {self.name!r}: until_year precedes from_year"
            )

    def applies_to(self, year: int) -> bool:
        if self.from_year is not None and year < self.from_year:
            return False
        if self.until_year is not None and year > self.until_year:
            return False
        return True

    def resolve(self, year: int) -> date:
        """Actual date of this holiday in ``year``."""
        if self.kind is HolidayKind.FIXED:
            base = date(year, self.month, self.day)
        elif self.kind is HolidayKind.EASTER:
            base = easter_sunday(year)
        elif self.kind is HolidayKind.NTH_WEEKDAY:
            base = nth_weekday(year, self.month, self.weekday, self.occurrence)
        elif self.kind is HolidayKind.LAST_WEEKDAY_ON_OR_BEFORE:
            base = last_weekday_on_or_before(year, self.month, self.day, self.weekday)
        else:
            base = last_weekday_of_month(year, self.month, self.weekday)
        return base + timedelta(days=self.offset_days)

    def holidays_for(self, year: int) -> list[StatHoliday]:
        """The holiday plus its observed sibling, if any."""
        if not self.applies_to(year):
            return []
        actual = self.resolve(year)
        result = [StatHoliday(self.name, actual)]
        if self.observed:
            shifted = observed_date(actual)
            if shifted is not None:
                result.append(
                    StatHoliday(self.name + OBSERVED_SUFFIX, shifted, is_observed=True)
                )
        return result


@dataclass(frozen=True)
class HolidayRuleBook:
    """
    Holiday rules grouped by country and by region.

    ``national`` is keyed by ISO country code (``"CA"``); ``regional`` is
    keyed by region code (``"CA-BC"``).  A region's holidays are the
    national rules followed by its regional additions.
    """

    national: Mapping[str, tuple[HolidayRule, ...]] = field(default_factory=dict)
    regional: Mapping[str, tuple[HolidayRule, ...]] = field(default_factory=dict)

    def rules_for(self, region: Region) -> tuple[HolidayRule, ...]:
        return (
            tuple(self.national.get(region.country, ()))
            + tuple(self.regional.get(region.code, ()))
        )

    def rule_count(self) -> int:
        return sum(len(r) for r in self.national.values()) + sum(
            len(r) for r in self.regional.values()
        )


def find_holiday(day: date, holidays: Iterable[StatHoliday]) -> StatHoliday | None:
    """First holiday falling on ``day``, or None."""
    for holiday in holidays:
        if holiday.holiday_date == day:
            return holiday
    return None


def merge_holidays(
    local: Iterable[StatHoliday],
    remote: Iterable[StatHoliday],
) -> list[StatHoliday]:
    """Merge two holiday lists by calendar day; the remote entry wins."""
    by_day: dict[date, StatHoliday] = {}
    for holiday in local:
        by_day[holiday.holiday_date] = holiday
    for holiday in remote:
        by_day[holiday.holiday_date] = holiday
    return sorted(by_day.values(), key=lambda h: h.holiday_date)


class HolidayCalendar:
    """
    Pure holiday computation over a ``HolidayRuleBook``.

    Contract:
        Holds no mutable state; the rule book is frozen.
    Non-goals:
        - Remote sources and caching (see ``HolidayService``).
    """

    def __init__(self, rule_book: HolidayRuleBook) -> None:
        self._rule_book = rule_book

    @property
    def rule_book(self) -> HolidayRuleBook:
        return self._rule_book

    @traced_engine("holiday_calendar", "1.0", fingerprint_fields=("year", "region"))
    def stat_holidays(self, year: int, region: Region) -> list[StatHoliday]:
        """All statutory holidays for ``region`` in ``year``, sorted by date."""
        holidays: list[StatHoliday] = []
        for rule in self._rule_book.rules_for(region):
            holidays.extend(rule.holidays_for(year))
        return sorted(holidays, key=lambda h: h.holiday_date)

    def holidays_around(self, day: date, region: Region) -> list[StatHoliday]:
        """Holidays for the year of ``day`` and its neighbours."""
        holidays: list[StatHoliday] = []
        for year in (day.year - 1, day.year, day.year + 1):
            holidays.extend(self.stat_holidays(year, region))
        return holidays

    def holidays_in(self, start: date, end: date, region: Region) -> list[StatHoliday]:
        """Holidays whose date lies in ``start..end`` (inclusive)."""
        holidays: list[StatHoliday] = []
        for year in range(start.year - 1, end.year + 2):
            holidays.extend(
                h for h in self.stat_holidays(year, region)
                if start <= h.holiday_date <= end
            )
        return sorted(holidays, key=lambda h: h.holiday_date)

    def is_stat_holiday(self, day: date, region: Region) -> bool:
        return find_holiday(day, self.holidays_around(day, region)) is not None

    def holiday_name(self, day: date, region: Region) -> str | None:
        holiday = find_holiday(day, self.holidays_around(day, region))
        return holiday.name if holiday is not None else None

"""
Pay-period boundary providers (``timecard_engines.pay_periods``).

Responsibility
--------------
Answer "which pay period contains this day?".  The categorization engine
consumes the resulting ``PayPeriod`` (number, start, end, payday) but does
not own the schedule; any object satisfying ``PayPeriodProvider`` works.

Two biweekly schedules ship with the package:

* ``ThursdayBiweeklyPeriods`` -- periods start on the first Thursday of
  the year, run 14 days and are numbered 1..26 (27 in rare years).  Days
  before that Thursday belong to the previous year's schedule.  Payday is
  seven days after the period ends.
* ``AnchoredBiweeklyPeriods`` -- Sunday..Saturday periods paid the
  following Friday, anchored on a known payday.  Periods carry odd
  sequence numbers (1, 3, 5, ...) counted from the anchor.

Architecture position
---------------------
**Engines layer** -- pure date arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol, runtime_checkable

from timecard_kernel.domain.values import PayPeriod
from timecard_engines.date_math import FRIDAY, THURSDAY

PERIOD_DAYS = 14


@runtime_checkable
class PayPeriodProvider(Protocol):
    """External pay-period collaborator."""

    def period_for(self, day: date) -> PayPeriod:
        ...


def _first_weekday_of_year(year: int, weekday: int) -> date:
    jan1 = date(year, 1, 1)
    return jan1 + timedelta(days=(weekday - jan1.weekday()) % 7)


class ThursdayBiweeklyPeriods:
    """Biweekly schedule anchored on the first Thursday of each year."""

    payday_offset = timedelta(days=7)

    def period_for(self, day: date) -> PayPeriod:
        anchor = _first_weekday_of_year(day.year, THURSDAY)
        if day < anchor:
            anchor = _first_weekday_of_year(day.year - 1, THURSDAY)
        index = (day - anchor).days // PERIOD_DAYS
        start = anchor + timedelta(days=index * PERIOD_DAYS)
        end = start + timedelta(days=PERIOD_DAYS - 1)
        return PayPeriod(
            number=index + 1,
            start=start,
            end=end,
            payday=end + self.payday_offset,
        )

    def shifted(self, period: PayPeriod, offset: int) -> PayPeriod:
        return self.period_for(period.start + timedelta(days=offset * PERIOD_DAYS))


@dataclass(frozen=True)
class AnchoredBiweeklyPeriods:
    """
    Sunday..Saturday biweekly schedule paid the following Friday.

    Periods carry odd numbers counted from the one paid on
    ``anchor_payday`` (1, 3, 5, ...).  Dates before that period continue
    the same sequence backward with non-positive odd numbers (-1, -3, ...).
    """

    anchor_payday: date = date(2025, 1, 3)

    def __post_init__(self) -> None:
        if self.anchor_payday.weekday() != FRIDAY:
            raise ValueError(
                f"anchor_payday must be a Friday, got {self.anchor_payday:%A}"
            )

    def _period_at(self, index: int) -> PayPeriod:
        payday = self.anchor_payday + timedelta(days=(index - 1) * PERIOD_DAYS)
        end = payday - timedelta(days=6)
        start = end - timedelta(days=PERIOD_DAYS - 1)
        return PayPeriod(
            number=(index - 1) * 2 + 1,
            start=start,
            end=end,
            payday=payday,
        )

    def period_for(self, day: date) -> PayPeriod:
        first_start = self._period_at(1).start
        index = (day - first_start).days // PERIOD_DAYS + 1
        return self._period_at(index)

    def shifted(self, period: PayPeriod, offset: int) -> PayPeriod:
        return self.period_for(period.start + timedelta(days=offset * PERIOD_DAYS))

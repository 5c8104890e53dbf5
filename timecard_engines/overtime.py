"""
Overtime Policy and Threshold Allocation (``timecard_engines.overtime``).

Responsibility
--------------
* ``OvertimePolicy`` -- daily and weekly thresholds for one region, each
  tier independently optional.
* ``PolicyTable`` -- named presets plus the region -> preset lookup with a
  documented fallback for unmapped regions.
* ``CustomPolicy`` -- a user override of the daily tiers that keeps the
  region's weekly cap unless that too is overridden.
* ``allocate_week`` -- split each day's worked hours of a week into OT and
  DT (daily tiers, weekly-rest-day rule, weekly overflow, reporting cap).

Architecture position
---------------------
**Engines layer** -- pure functional core.  The categorization engine
feeds ``allocate_week`` with per-day worked hours; presets and the region
table are compiled from ``overtime.yaml``.

Invariants enforced
-------------------
* Conservation: for every day ``regular + ot + dt == worked``.
* An absent cap means "unconstrained", never zero.
* Weekly excess is allocated backward from the last day of the week and
  only consumes a day's remaining regular hours.

Failure modes
-------------
* ``InvalidPolicyError`` -- negative caps, or a DT threshold below the
  daily regular cap.
* ``UnknownPresetError`` -- lookup of a preset name that is not defined.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from timecard_kernel.domain.values import ZERO, Region
from timecard_kernel.exceptions import InvalidPolicyError, UnknownPresetError
from timecard_kernel.logging_config import get_logger
from timecard_engines.tracer import traced_engine

logger = get_logger("engines.overtime")


def _fmt_hours(value: Decimal) -> str:
    return format(value.normalize(), "f")


@dataclass(frozen=True)
class OvertimePolicy:
    """
    Daily/weekly overtime thresholds.

    Contract:
        ``daily_regular_cap`` -- OT starts after this many hours per day.
        ``daily_ot_cap`` -- upper bound of the OT band.
        ``daily_dt_cap`` -- DT starts after this; falls back to
        ``daily_ot_cap``.
        ``weekly_regular_cap`` -- OT after this many worked hours per week.
        ``weekly_rest_day_ot`` -- all hours on the first day of the week
        are at least OT.
        ``daily_ot_report_cap`` -- maximum reported OT per day; the
        overflow rolls into DT.
    Guarantees:
        - All caps are ``Decimal`` or None.
        - ``dt_threshold >= daily_regular_cap`` when both are set.
    """

    daily_regular_cap: Decimal | None = None
    daily_ot_cap: Decimal | None = None
    daily_dt_cap: Decimal | None = None
    weekly_regular_cap: Decimal | None = None
    weekly_rest_day_ot: bool = True
    daily_ot_report_cap: Decimal | None = None

    def __post_init__(self) -> None:
        for name in (
            "daily_regular_cap",
            "daily_ot_cap",
            "daily_dt_cap",
            "weekly_regular_cap",
            "daily_ot_report_cap",
        ):
            value = getattr(self, name)
            if value is None:
                continue
            if not isinstance(value, Decimal):
                value = Decimal(str(value))
                object.__setattr__(self, name, value)
            if value < ZERO:
                raise InvalidPolicyError(name, f"cannot be negative: {value}")

        threshold = self.dt_threshold
        if (
            threshold is not None
            and self.daily_regular_cap is not None
            and threshold < self.daily_regular_cap
        ):
            raise InvalidPolicyError(
                "daily_dt_cap",
                f"DT threshold {threshold} is below the daily regular cap "
                f"{self.daily_regular_cap}",
            )

    @property
    def dt_threshold(self) -> Decimal | None:
        if self.daily_dt_cap is not None:
            return self.daily_dt_cap
        return self.daily_ot_cap

    @property
    def has_daily_tiers(self) -> bool:
        return self.daily_regular_cap is not None or self.dt_threshold is not None

    def daily_split(self, worked: Decimal) -> tuple[Decimal, Decimal]:
        """(ot, dt) for a single day by the daily tiers alone."""
        threshold = self.dt_threshold
        banded = worked if threshold is None else min(worked, threshold)
        ot = ZERO
        if self.daily_regular_cap is not None:
            ot = max(ZERO, banded - self.daily_regular_cap)
        dt = ZERO if threshold is None else max(ZERO, worked - threshold)
        return ot, dt

    def with_overrides(self, **changes) -> OvertimePolicy:
        return replace(self, **changes)


@dataclass(frozen=True)
class CustomPolicy:
    """
    User-supplied daily thresholds layered over a region's policy.

    The three daily caps replace the inferred ones outright (None = tier
    not enforced).  ``weekly_regular_cap`` of None keeps the region's
    weekly cap.
    """

    daily_regular_cap: Decimal | None = None
    daily_ot_cap: Decimal | None = None
    daily_dt_cap: Decimal | None = None
    weekly_regular_cap: Decimal | None = None

    def apply(self, inferred: OvertimePolicy) -> OvertimePolicy:
        weekly = (
            self.weekly_regular_cap
            if self.weekly_regular_cap is not None
            else inferred.weekly_regular_cap
        )
        return inferred.with_overrides(
            daily_regular_cap=self.daily_regular_cap,
            daily_ot_cap=self.daily_ot_cap,
            daily_dt_cap=self.daily_dt_cap,
            weekly_regular_cap=weekly,
        )


@dataclass(frozen=True)
class PolicyTable:
    """
    Named presets and the region -> preset table.

    Lookup order: region code (``"CA-BC"``), then country (``"CA"``), then
    ``default_preset``.
    """

    presets: Mapping[str, OvertimePolicy]
    region_presets: Mapping[str, str] = field(default_factory=dict)
    default_preset: str = "daily_8_dt_12"

    def __post_init__(self) -> None:
        if self.default_preset not in self.presets:
            raise UnknownPresetError(self.default_preset)
        for preset in self.region_presets.values():
            if preset not in self.presets:
                raise UnknownPresetError(preset)

    def preset(self, name: str) -> OvertimePolicy:
        try:
            return self.presets[name]
        except KeyError:
            raise UnknownPresetError(name) from None

    def preset_name_for(self, region: Region) -> str:
        for key in (region.code, region.country):
            if key in self.region_presets:
                return self.region_presets[key]
        return self.default_preset

    def inferred_policy(self, region: Region) -> OvertimePolicy:
        """Policy for ``region``, falling back to the default preset."""
        name = self.preset_name_for(region)
        logger.debug(
            "overtime_policy_inferred",
            extra={"region": region.code, "preset": name},
        )
        return self.presets[name]


@dataclass(frozen=True)
class DayOvertime:
    """Allocation result for one day."""

    work_date: date
    worked: Decimal
    ot: Decimal = ZERO
    dt: Decimal = ZERO

    @property
    def regular(self) -> Decimal:
        return self.worked - self.ot - self.dt


@traced_engine("overtime", "1.0", fingerprint_fields=("worked_by_day", "policy"))
def allocate_week(
    worked_by_day: Sequence[tuple[date, Decimal]],
    policy: OvertimePolicy,
) -> dict[date, DayOvertime]:
    """
    Allocate OT and DT across one week of worked hours.

    ``worked_by_day`` is ordered from the first day of the week to the
    last.  Steps: daily tiers, weekly-rest-day rule on the first day,
    weekly overflow walked backward from the last day, then the optional
    daily reporting cap.
    """
    ot: dict[date, Decimal] = {}
    dt: dict[date, Decimal] = {}
    worked = dict(worked_by_day)
    days = [d for d, _ in worked_by_day]

    for day in days:
        ot[day], dt[day] = policy.daily_split(worked[day])

    if days and policy.weekly_rest_day_ot:
        first = days[0]
        threshold = policy.dt_threshold
        floor = worked[first] if threshold is None else min(worked[first], threshold)
        ot[first] = max(ot[first], floor)

    if policy.weekly_regular_cap is not None:
        remaining = max(ZERO, sum(worked.values(), ZERO) - policy.weekly_regular_cap)
        for day in reversed(days):
            if remaining <= ZERO:
                break
            reg_left = max(ZERO, worked[day] - (ot[day] + dt[day]))
            if reg_left > ZERO:
                moved = min(reg_left, remaining)
                ot[day] += moved
                remaining -= moved

    if policy.daily_ot_report_cap is not None:
        cap = policy.daily_ot_report_cap
        for day in days:
            if ot[day] > cap:
                dt[day] += ot[day] - cap
                ot[day] = cap

    return {
        day: DayOvertime(day, worked[day], ot[day], dt[day])
        for day in days
    }


def describe_policy(policy: OvertimePolicy) -> list[str]:
    """Human-readable summary lines for a policy."""
    lines: list[str] = []
    threshold = policy.dt_threshold
    if policy.daily_regular_cap is not None and threshold is not None:
        lines.append(
            f"Daily: OT after {_fmt_hours(policy.daily_regular_cap)}h, "
            f"DT after {_fmt_hours(threshold)}h"
        )
    elif policy.daily_regular_cap is not None:
        lines.append(f"Daily: OT after {_fmt_hours(policy.daily_regular_cap)}h")
    elif threshold is not None:
        lines.append(f"Daily: DT after {_fmt_hours(threshold)}h")
    if policy.weekly_regular_cap is not None:
        lines.append(f"Weekly OT after {_fmt_hours(policy.weekly_regular_cap)}h")
    if policy.daily_ot_report_cap is not None:
        lines.append(
            f"Reported OT capped at {_fmt_hours(policy.daily_ot_report_cap)}h per day"
        )
    if policy.weekly_rest_day_ot:
        lines.append("First day of the week paid at least OT")
    if not lines:
        lines.append("No overtime thresholds")
    return lines

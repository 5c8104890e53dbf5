"""
timecard_services.timecard_service -- Consumer-facing timecard facade.

Responsibility:
    Wire the compiled configuration, the engines and the holiday service
    into the surface the rendering and export code consumes:
    ``categorize``, ``daily_overtime``, ``holidays``, ``is_holiday``,
    ``add_stat_holidays_for_period`` and ``remove_stat_holidays_for_period``,
    plus region selection, custom overtime policy, pay periods and an
    in-memory entry store.

Architecture position:
    Services -- the only layer that reads the clock or touches the
    network (through ``HolidayService``).  Engines stay pure.

Invariants enforced:
    - Region changes never purge the holiday cache implicitly; callers
      call ``purge_holiday_cache()`` (``auto_detect_region`` does so
      explicitly).
    - The active policy is the region's inferred policy with the custom
      override, if any, layered on top.
    - Holiday add/remove use the same holiday list, so a remove after an
      add on the same range is an exact inverse.

Failure modes:
    - ``UnsupportedRegionError`` from ``set_region`` for an unknown region.
    - ``KeyError`` from ``update_entry``/``delete_entry`` for an unknown id.
    - Nothing else raises for data problems; remote holiday failures are
      absorbed by ``HolidayService``.

Usage:
    from timecard_config import get_active_config
    from timecard_services import TimecardService

    service = TimecardService(get_active_config())
    service.add_entry(TimeEntry(date(2025, 3, 3), job="J-100",
                                labour_code="201", hours=Decimal("10")))
    totals = service.categorize(service.current_pay_period().range)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

import requests

from timecard_config.compiler import CompiledTimecardConfig
from timecard_engines.categorization import CategorizationEngine, HolidaySyncResult
from timecard_engines.holiday_calendar import HolidayCalendar
from timecard_engines.overtime import (
    CustomPolicy,
    DayOvertime,
    OvertimePolicy,
    describe_policy,
)
from timecard_engines.pay_periods import PayPeriodProvider
from timecard_kernel.domain.clock import Clock, SystemClock
from timecard_kernel.domain.values import (
    ZERO,
    DateRange,
    PayPeriod,
    Region,
    StatHoliday,
    SummaryTotals,
    TimeEntry,
)
from timecard_kernel.logging_config import LogContext, get_logger
from timecard_services.holiday_service import HolidayService
from timecard_services.holiday_source import HolidaySource, NagerHolidaySource
from timecard_services.region import RegionDetector, resolve_detected_region

logger = get_logger("services.timecard")


class TimecardService:
    """
    Facade over the categorization engine for one user's timecard.

    Contract:
        Receives the compiled configuration and, optionally, a clock, a
        holiday source (or a ``requests`` session for the default remote
        source) and a pay-period provider via constructor injection.
    Guarantees:
        - ``categorize`` and the overtime methods never raise for data
          problems.
        - ``holidays`` never raises for remote problems.
    Non-goals:
        - Persistence; entries live in memory only.
    """

    def __init__(
        self,
        config: CompiledTimecardConfig,
        clock: Clock | None = None,
        holiday_source: HolidaySource | None = None,
        session: requests.Session | None = None,
        pay_periods: PayPeriodProvider | None = None,
        region: Region | None = None,
        entries: Iterable[TimeEntry] = (),
    ) -> None:
        self._config = config
        self._clock = clock or SystemClock()
        if holiday_source is None and config.remote_source.enabled:
            holiday_source = NagerHolidaySource(config.remote_source, session=session)
        self._holiday_service = HolidayService(
            HolidayCalendar(config.holiday_rules), holiday_source
        )
        self._engine = CategorizationEngine(
            config.code_map,
            on_call=config.on_call,
            holiday_defaults=config.holiday_defaults,
        )
        self._pay_periods = pay_periods or config.pay_periods.provider()
        self._region = config.regions.require(region or config.default_region)
        self._custom_policy: CustomPolicy | None = None
        self._entries: list[TimeEntry] = sorted(entries, key=lambda e: e.work_date)

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def config(self) -> CompiledTimecardConfig:
        return self._config

    @property
    def engine(self) -> CategorizationEngine:
        return self._engine

    @property
    def holiday_service(self) -> HolidayService:
        return self._holiday_service

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[TimeEntry]:
        return list(self._entries)

    def entries_in(self, date_range: DateRange) -> list[TimeEntry]:
        return [e for e in self._entries if date_range.contains(e.work_date)]

    def add_entry(self, entry: TimeEntry) -> TimeEntry:
        self._entries.append(entry)
        self._entries.sort(key=lambda e: e.work_date)
        logger.debug(
            "entry_added",
            extra={"entry_id": str(entry.entry_id), "work_date": entry.work_date},
        )
        return entry

    def _index_of(self, entry_id: UUID) -> int:
        for index, entry in enumerate(self._entries):
            if entry.entry_id == entry_id:
                return index
        raise KeyError(f"No time entry with id {entry_id}")

    def update_entry(self, entry_id: UUID, **changes) -> TimeEntry:
        """Replace fields of an existing entry; hours are re-validated."""
        index = self._index_of(entry_id)
        current = self._entries[index]
        updated = TimeEntry(
            work_date=changes.pop("work_date", current.work_date),
            job=changes.pop("job", current.job),
            labour_code=changes.pop("labour_code", current.labour_code),
            hours=changes.pop("hours", current.hours),
            notes=changes.pop("notes", current.notes),
            is_overtime=changes.pop("is_overtime", current.is_overtime),
            is_night_shift=changes.pop("is_night_shift", current.is_night_shift),
            placeholder=changes.pop("placeholder", current.placeholder),
            entry_id=current.entry_id,
        )
        if changes:
            raise TypeError(f"Unknown entry fields: {sorted(changes)}")
        self._entries[index] = updated
        self._entries.sort(key=lambda e: e.work_date)
        with LogContext.bind(entry_id=str(entry_id)):
            logger.debug("entry_updated", extra={"work_date": updated.work_date})
        return updated

    def delete_entry(self, entry_id: UUID) -> TimeEntry:
        removed = self._entries.pop(self._index_of(entry_id))
        with LogContext.bind(entry_id=str(entry_id)):
            logger.debug("entry_deleted", extra={"work_date": removed.work_date})
        return removed

    # ------------------------------------------------------------------
    # Region and policy
    # ------------------------------------------------------------------

    @property
    def region(self) -> Region:
        return self._region

    def set_region(self, region: Region) -> Region:
        """Select ``region``.  The holiday cache is left untouched."""
        previous = self._region
        self._region = self._config.regions.require(region)
        logger.info(
            "region_changed",
            extra={"previous_region": previous.code, "new_region": region.code},
        )
        return self._region

    def region_display_name(self) -> str:
        return self._config.regions.display_name(self._region)

    def purge_holiday_cache(self) -> int:
        return self._holiday_service.purge_cache_except_region(self._region)

    def auto_detect_region(self, detector: RegionDetector) -> Region | None:
        """
        Ask ``detector`` for a location, select the matching region, purge
        cached holidays of other regions and preload the clock year +/- 1.

        Returns None, leaving the region unchanged, if the detector fails.
        """
        try:
            location = detector.detect()
        except Exception as exc:
            logger.warning(
                "region_detection_failed",
                extra={"error": str(exc), "current_region": self._region.code},
            )
            return None
        region = resolve_detected_region(
            self._config.regions, location.country_code, location.admin_code
        )
        self.set_region(region)
        with LogContext.bind(region=region.code):
            self.purge_holiday_cache()
            year = self._clock.today().year
            for preload_year in (year - 1, year, year + 1):
                self._holiday_service.holidays(preload_year, region)
        return region

    def inferred_policy(self) -> OvertimePolicy:
        return self._config.policy_table.inferred_policy(self._region)

    @property
    def custom_policy(self) -> CustomPolicy | None:
        return self._custom_policy

    def set_custom_policy(self, custom: CustomPolicy | None) -> None:
        """Layer ``custom`` over the region policy; None clears the override."""
        self._custom_policy = custom
        logger.info(
            "custom_policy_changed",
            extra={"enabled": custom is not None, "region_code": self._region.code},
        )

    def clear_custom_policy(self) -> None:
        self.set_custom_policy(None)

    @property
    def policy(self) -> OvertimePolicy:
        inferred = self.inferred_policy()
        if self._custom_policy is None:
            return inferred
        return self._custom_policy.apply(inferred)

    def describe_policy(self) -> list[str]:
        return describe_policy(self.policy)

    # ------------------------------------------------------------------
    # Pay periods
    # ------------------------------------------------------------------

    def pay_period_for(self, day: date) -> PayPeriod:
        return self._pay_periods.period_for(day)

    def current_pay_period(self) -> PayPeriod:
        return self.pay_period_for(self._clock.today())

    # ------------------------------------------------------------------
    # Categorization
    # ------------------------------------------------------------------

    def categorize(
        self,
        date_range: DateRange,
        entries: Iterable[TimeEntry] | None = None,
    ) -> SummaryTotals:
        """Category totals for ``date_range`` (stored entries by default)."""
        source = self._entries if entries is None else list(entries)
        with LogContext.bind(region=self._region.code):
            return self._engine.totals(source, date_range)

    def daily_overtime(self, day: date) -> tuple[Decimal, Decimal]:
        """Policy-derived (ot, dt) for ``day`` within its week."""
        return self._engine.daily_overtime(
            self._entries, day, self.policy, self._config.week_start
        )

    def week_overtime(self, day: date) -> dict[date, DayOvertime]:
        week = DateRange.week_containing(day, self._config.week_start)
        return self._engine.compute_week_ot_dt(self._entries, list(week.days()), self.policy)

    def week_overtime_totals(self, day: date) -> tuple[Decimal, Decimal]:
        """Weekly (ot, dt) display totals: the sum of the per-day results."""
        ot = dt = ZERO
        for result in self.week_overtime(day).values():
            ot += result.ot
            dt += result.dt
        return ot, dt

    def explicit_overtime(self, day: date) -> tuple[Decimal, Decimal]:
        return self._engine.explicit_overtime(self._entries, day)

    def on_call_entry_count(self, date_range: DateRange) -> int:
        return self._engine.on_call_entry_count(self._entries, date_range)

    def on_call_entry_amount(self, date_range: DateRange) -> Decimal:
        return self._engine.on_call_entry_amount(self._entries, date_range)

    # ------------------------------------------------------------------
    # Holidays
    # ------------------------------------------------------------------

    def holidays(self, year: int, region: Region | None = None) -> list[StatHoliday]:
        """Merged (remote + local) holidays; falls back to local on failure."""
        target = region or self._region
        with LogContext.bind(region=target.code):
            return self._holiday_service.holidays(year, target)

    def holidays_in(self, date_range: DateRange) -> list[StatHoliday]:
        return self._holiday_service.holidays_in(
            date_range.start, date_range.end, self._region
        )

    def is_holiday(self, day: date) -> bool:
        return self._holiday_service.is_stat_holiday(day, self._region)

    def holiday_name(self, day: date) -> str | None:
        return self._holiday_service.holiday_name(day, self._region)

    def _holiday_range(
        self, date_range: DateRange | None
    ) -> tuple[DateRange, str | None]:
        """``date_range``, or the current pay period and its log label."""
        if date_range is not None:
            return date_range, None
        period = self.current_pay_period()
        return period.range, period.label

    def preload_holidays(self, date_range: DateRange) -> HolidaySyncResult | None:
        """Warm the cache for every year in range; insert holidays if enabled."""
        with LogContext.bind(region=self._region.code):
            for year in date_range.years():
                self._holiday_service.holidays(year, self._region)
        if not self._config.auto_holidays:
            return None
        return self.add_stat_holidays_for_period(date_range)

    def add_stat_holidays_for_period(
        self, date_range: DateRange | None = None
    ) -> HolidaySyncResult:
        """Insert holiday entries for ``date_range`` (current pay period by default)."""
        target, period_label = self._holiday_range(date_range)
        with LogContext.bind(region=self._region.code, pay_period=period_label):
            result = self._engine.add_stat_holidays_for_period(
                self._entries, target, self.holidays_in(target)
            )
            if result.inserted:
                logger.info(
                    "stat_holidays_inserted",
                    extra={
                        "range_start": target.start,
                        "range_end": target.end,
                        "dates": [e.work_date for e in result.inserted],
                    },
                )
        return result

    def remove_stat_holidays_for_period(
        self, date_range: DateRange | None = None
    ) -> HolidaySyncResult:
        target, period_label = self._holiday_range(date_range)
        with LogContext.bind(region=self._region.code, pay_period=period_label):
            return self._engine.remove_stat_holidays_for_period(
                self._entries, target, self.holidays_in(target)
            )

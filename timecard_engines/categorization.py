"""
Categorization Engine (``timecard_engines.categorization``).

Responsibility
--------------
Turn raw time entries into category-classified hour totals:

* ``LabourCodeCategoryMap`` -- validated code -> ``PayCategory`` table;
  unknown codes resolve to ``REGULAR``.
* ``CategorizationEngine.classify`` -- the fixed category precedence.
* ``CategorizationEngine.totals`` -- ``SummaryTotals`` for a date range,
  including the weekly on-call stipend.
* ``CategorizationEngine.compute_week_ot_dt`` -- per-day OT/DT from an
  ``OvertimePolicy`` (delegates to ``overtime.allocate_week``).
* Holiday entry lifecycle -- ``add_stat_holidays_for_period`` and
  ``remove_stat_holidays_for_period``.

Architecture position
---------------------
**Engines layer** -- no I/O, no clock.  The holiday list and the policy
are supplied by the caller (``timecard_services.TimecardService``).

Invariants enforced
-------------------
* Precedence (highest first): night (flag or code), DT, on-call, OT
  (flag or code), vacation, stat, regular.  The order is fixed.
* Entries with a blank labour code, or flagged as placeholders, never
  contribute to any bucket, the stipend or the on-call count.
* A regular-category entry with a blank job is an unfilled row and is
  skipped by totals and week allocation.
* On-call hours are counted in ``on_call`` and also folded into ``ot``.
* Holiday insertion is idempotent; removal only touches H/STAT entries on
  holiday dates.

Failure modes
-------------
None for data problems: every public operation is total over its inputs.
``LabourCodeCategoryMap`` raises ``ValueError`` at construction for a code
mapped to two different categories.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableSequence, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from timecard_kernel.domain.values import (
    ZERO,
    DateRange,
    PayCategory,
    StatHoliday,
    SummaryTotals,
    TimeEntry,
)
from timecard_kernel.logging_config import get_logger
from timecard_engines.overtime import DayOvertime, OvertimePolicy, allocate_week
from timecard_engines.tracer import traced_engine

logger = get_logger("engines.categorization")

WORKED_CATEGORIES = frozenset({PayCategory.REGULAR, PayCategory.NIGHT})


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass(frozen=True)
class LabourCode:
    """An official labour code offered to users (display name + code)."""

    name: str
    code: str


class LabourCodeCategoryMap:
    """
    Code -> base category lookup, built once from configuration.

    Codes are matched case- and whitespace-insensitively.  With on-call
    disabled every ``ON_CALL`` code resolves to ``REGULAR``.
    """

    def __init__(
        self,
        mapping: Mapping[str, PayCategory],
        on_call_enabled: bool = True,
    ) -> None:
        table: dict[str, PayCategory] = {}
        for raw, category in mapping.items():
            code = normalize_code(raw)
            category = PayCategory(category)
            existing = table.get(code)
            if existing is not None and existing is not category:
                raise ValueError(
                    f"Labour code {code!r} mapped to both "
                    f"{existing.value} and {category.value}"
                )
            table[code] = category
        self._table = table
        self._on_call_enabled = on_call_enabled

    @property
    def on_call_enabled(self) -> bool:
        return self._on_call_enabled

    def with_on_call(self, enabled: bool) -> LabourCodeCategoryMap:
        return LabourCodeCategoryMap(self._table, on_call_enabled=enabled)

    def category_for(self, code: str) -> PayCategory:
        category = self._table.get(normalize_code(code), PayCategory.REGULAR)
        if category is PayCategory.ON_CALL and not self._on_call_enabled:
            return PayCategory.REGULAR
        return category

    def codes_for(self, category: PayCategory) -> list[str]:
        return sorted(c for c, cat in self._table.items() if cat is category)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_code(code) in self._table

    def __len__(self) -> int:
        return len(self._table)


@dataclass(frozen=True)
class OnCallSettings:
    """Weekly stipend and per-entry amount for on-call work."""

    enabled: bool = True
    weekly_stipend: Decimal = Decimal("300")
    per_entry_amount: Decimal = Decimal("50")
    currency: str = "CAD"


@dataclass(frozen=True)
class HolidayEntryDefaults:
    """Shape of an auto-inserted holiday entry."""

    hours: Decimal = Decimal("8")
    job: str = "Stat"
    code: str = "H"


@dataclass
class HolidaySyncResult:
    """What a holiday add/remove pass changed."""

    inserted: list[TimeEntry] = field(default_factory=list)
    normalized: list[TimeEntry] = field(default_factory=list)
    removed: list[TimeEntry] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.normalized or self.removed)


def _in_range(entries: Iterable[TimeEntry], date_range: DateRange) -> list[TimeEntry]:
    return [e for e in entries if date_range.contains(e.work_date)]


class CategorizationEngine:
    """
    Classify and aggregate time entries.

    Contract:
        Stateless apart from its frozen configuration.  Reads entries, never
        mutates them, except in the two holiday lifecycle methods which
        edit the supplied list in place.
    """

    def __init__(
        self,
        code_map: LabourCodeCategoryMap,
        on_call: OnCallSettings | None = None,
        holiday_defaults: HolidayEntryDefaults | None = None,
    ) -> None:
        self._on_call = on_call or OnCallSettings()
        self._code_map = code_map.with_on_call(self._on_call.enabled)
        self._holiday_defaults = holiday_defaults or HolidayEntryDefaults()

    @property
    def code_map(self) -> LabourCodeCategoryMap:
        return self._code_map

    @property
    def on_call(self) -> OnCallSettings:
        return self._on_call

    @property
    def holiday_defaults(self) -> HolidayEntryDefaults:
        return self._holiday_defaults

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, entry: TimeEntry) -> PayCategory:
        """Effective category of one entry by the fixed precedence order."""
        base = self._code_map.category_for(entry.labour_code)
        if entry.is_night_shift or base is PayCategory.NIGHT:
            return PayCategory.NIGHT
        if base is PayCategory.DT:
            return PayCategory.DT
        if base is PayCategory.ON_CALL:
            return PayCategory.ON_CALL
        if entry.is_overtime or base is PayCategory.OT:
            return PayCategory.OT
        if base is PayCategory.VACATION:
            return PayCategory.VACATION
        if base is PayCategory.STAT:
            return PayCategory.STAT
        return PayCategory.REGULAR

    @staticmethod
    def is_excluded(entry: TimeEntry) -> bool:
        return entry.has_blank_code or entry.is_placeholder

    def counted(self, entries: Iterable[TimeEntry]) -> list[tuple[TimeEntry, PayCategory]]:
        """Entries that count toward totals, paired with their category."""
        result: list[tuple[TimeEntry, PayCategory]] = []
        for entry in entries:
            if self.is_excluded(entry):
                continue
            category = self.classify(entry)
            if category is PayCategory.REGULAR and entry.has_blank_job:
                continue
            result.append((entry, category))
        return result

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    @traced_engine("categorization", "1.0", fingerprint_fields=("date_range",))
    def totals(
        self,
        entries: Iterable[TimeEntry],
        date_range: DateRange,
    ) -> SummaryTotals:
        """Hours per category for ``date_range`` plus the on-call stipend."""
        in_range = _in_range(entries, date_range)
        totals = SummaryTotals()
        for entry, category in self.counted(in_range):
            hours = entry.hours
            if category is PayCategory.REGULAR:
                totals.regular += hours
            elif category is PayCategory.OT:
                totals.ot += hours
            elif category is PayCategory.DT:
                totals.dt += hours
            elif category is PayCategory.VACATION:
                totals.vacation += hours
            elif category is PayCategory.NIGHT:
                totals.night += hours
            elif category is PayCategory.STAT:
                totals.stat += hours
            else:
                totals.on_call += hours
                totals.ot += hours
                totals.on_call_entries += 1

        totals.on_call_bonus = self.on_call_stipend(in_range, date_range)
        return totals

    def _on_call_entries(self, entries: Iterable[TimeEntry]) -> list[TimeEntry]:
        return [
            e for e in entries
            if not self.is_excluded(e) and self.classify(e) is PayCategory.ON_CALL
        ]

    def on_call_stipend(
        self,
        entries: Iterable[TimeEntry],
        date_range: DateRange,
    ) -> Decimal:
        """Flat stipend for every 7-day window of the range with on-call work."""
        if not self._on_call.enabled:
            return ZERO
        on_call_days = {e.work_date for e in self._on_call_entries(entries)}
        weeks = sum(
            1 for week in date_range.weeks()
            if any(week.contains(d) for d in on_call_days)
        )
        return self._on_call.weekly_stipend * weeks

    def on_call_entry_count(
        self,
        entries: Iterable[TimeEntry],
        date_range: DateRange,
    ) -> int:
        return len(self._on_call_entries(_in_range(entries, date_range)))

    def on_call_entry_amount(
        self,
        entries: Iterable[TimeEntry],
        date_range: DateRange,
    ) -> Decimal:
        """Per-entry on-call amount; shown separately, never added to the stipend."""
        count = self.on_call_entry_count(entries, date_range)
        return self._on_call.per_entry_amount * count

    # ------------------------------------------------------------------
    # Overtime
    # ------------------------------------------------------------------

    def worked_hours(self, entries: Iterable[TimeEntry], day: date) -> Decimal:
        """Regular plus night hours on ``day``."""
        return sum(
            (
                entry.hours
                for entry, category in self.counted(
                    e for e in entries if e.work_date == day
                )
                if category in WORKED_CATEGORIES
            ),
            ZERO,
        )

    def compute_week_ot_dt(
        self,
        entries: Sequence[TimeEntry],
        week_dates: Sequence[date],
        policy: OvertimePolicy,
    ) -> dict[date, DayOvertime]:
        """Policy-derived OT/DT for each day of ``week_dates`` (first day first)."""
        worked = [(day, self.worked_hours(entries, day)) for day in week_dates]
        return allocate_week(worked, policy)

    def daily_overtime(
        self,
        entries: Sequence[TimeEntry],
        day: date,
        policy: OvertimePolicy,
        week_start: int = 6,
    ) -> tuple[Decimal, Decimal]:
        """(ot, dt) for ``day`` within the week that contains it."""
        week = DateRange.week_containing(day, week_start)
        result = self.compute_week_ot_dt(entries, list(week.days()), policy)[day]
        return result.ot, result.dt

    def explicit_overtime(
        self,
        entries: Iterable[TimeEntry],
        day: date,
    ) -> tuple[Decimal, Decimal]:
        """Hours entered directly as OT or DT on ``day``."""
        ot = dt = ZERO
        for entry, category in self.counted(e for e in entries if e.work_date == day):
            if category is PayCategory.OT:
                ot += entry.hours
            elif category is PayCategory.DT:
                dt += entry.hours
        return ot, dt

    # ------------------------------------------------------------------
    # Holiday lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def _holiday_dates(
        holidays: Iterable[StatHoliday],
        date_range: DateRange,
    ) -> dict[date, StatHoliday]:
        dates: dict[date, StatHoliday] = {}
        for holiday in holidays:
            if date_range.contains(holiday.holiday_date):
                dates.setdefault(holiday.holiday_date, holiday)
        return dates

    def add_stat_holidays_for_period(
        self,
        entries: MutableSequence[TimeEntry],
        date_range: DateRange,
        holidays: Iterable[StatHoliday],
    ) -> HolidaySyncResult:
        """
        Insert one holiday entry per uncovered holiday date in range.

        Existing H/STAT entries in range are normalized (blank or
        "holiday" job -> holiday job label, ``STAT`` -> holiday code).
        ``entries`` is edited in place and left sorted by date.
        """
        defaults = self._holiday_defaults
        result = HolidaySyncResult()
        covered = {e.work_date for e in entries if e.is_holiday_code}

        for day, holiday in sorted(self._holiday_dates(holidays, date_range).items()):
            if day in covered:
                continue
            entry = TimeEntry(
                work_date=day,
                job=defaults.job,
                labour_code=defaults.code,
                hours=defaults.hours,
                notes=holiday.name,
            )
            entries.append(entry)
            covered.add(day)
            result.inserted.append(entry)

        for entry in entries:
            if not (date_range.contains(entry.work_date) and entry.is_holiday_code):
                continue
            changed = False
            job = entry.job.strip()
            if not job or job.lower() == "holiday":
                if entry.job != defaults.job:
                    entry.job = defaults.job
                    changed = True
            if entry.normalized_code == "STAT":
                entry.labour_code = defaults.code
                changed = True
            if changed:
                result.normalized.append(entry)

        self._sort_by_date(entries)
        logger.debug(
            "stat_holidays_added",
            extra={
                "range_start": date_range.start,
                "range_end": date_range.end,
                "inserted": len(result.inserted),
                "normalized": len(result.normalized),
            },
        )
        return result

    def remove_stat_holidays_for_period(
        self,
        entries: MutableSequence[TimeEntry],
        date_range: DateRange,
        holidays: Iterable[StatHoliday],
    ) -> HolidaySyncResult:
        """Delete H/STAT entries on holiday dates within ``date_range``."""
        holiday_dates = self._holiday_dates(holidays, date_range)
        result = HolidaySyncResult()
        kept: list[TimeEntry] = []
        for entry in entries:
            if entry.is_holiday_code and entry.work_date in holiday_dates:
                result.removed.append(entry)
            else:
                kept.append(entry)
        entries[:] = kept
        self._sort_by_date(entries)
        logger.debug(
            "stat_holidays_removed",
            extra={
                "range_start": date_range.start,
                "range_end": date_range.end,
                "removed": len(result.removed),
            },
        )
        return result

    @staticmethod
    def _sort_by_date(entries: MutableSequence[TimeEntry]) -> None:
        entries[:] = sorted(entries, key=lambda e: e.work_date)

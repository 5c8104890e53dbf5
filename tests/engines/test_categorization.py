"""
Tests for the categorization engine.

Covers:
- Labour code table: normalization, duplicates, on-call toggle
- Category precedence
- Exclusion of blank codes, placeholders and unfilled regular rows
- Range totals, on-call duality and the weekly stipend
- Policy-derived and explicit OT/DT
- Holiday entry insertion, normalization and removal
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from timecard_engines.categorization import (
    CategorizationEngine,
    LabourCodeCategoryMap,
    OnCallSettings,
)
from timecard_engines.overtime import OvertimePolicy
from timecard_kernel.domain.values import (
    DateRange,
    PayCategory,
    StatHoliday,
    TimeEntry,
)

D = Decimal
SUNDAY = date(2025, 3, 2)
MONDAY = date(2025, 3, 3)
PERIOD = DateRange(SUNDAY, SUNDAY + timedelta(days=13))
BC_POLICY = OvertimePolicy(
    daily_regular_cap=D(8), daily_ot_cap=D(12), daily_dt_cap=D(12), weekly_regular_cap=D(40)
)
CANADA_DAY = StatHoliday("Canada Day", date(2025, 7, 1))
JULY = DateRange(date(2025, 6, 29), date(2025, 7, 12))


class TestLabourCodeCategoryMap:
    def test_unknown_code_is_regular(self, config):
        assert config.code_map.category_for("ZZZ") is PayCategory.REGULAR

    def test_codes_normalized(self, config):
        assert config.code_map.category_for(" ot ") is PayCategory.OT
        assert config.code_map.category_for("o/c") is PayCategory.ON_CALL
        assert " vp" in config.code_map

    def test_conflicting_mapping_raises(self):
        with pytest.raises(ValueError, match="mapped to both"):
            LabourCodeCategoryMap({"OT": PayCategory.OT, " ot": PayCategory.DT})

    def test_on_call_disabled_resolves_to_regular(self, config):
        code_map = config.code_map.with_on_call(False)
        assert code_map.category_for("OC") is PayCategory.REGULAR
        assert not code_map.on_call_enabled

    def test_codes_for(self, config):
        assert config.code_map.codes_for(PayCategory.STAT) == ["H", "HOL", "SH", "ST", "STAT"]


class TestClassify:
    @pytest.mark.parametrize(
        "code,flags,expected",
        [
            ("DT", {"is_night_shift": True}, PayCategory.NIGHT),
            ("201", {"is_night_shift": True}, PayCategory.NIGHT),
            ("DT", {"is_overtime": True}, PayCategory.DT),
            ("OC", {"is_overtime": True}, PayCategory.ON_CALL),
            ("201", {"is_overtime": True}, PayCategory.OT),
            ("VP", {"is_overtime": True}, PayCategory.OT),
            ("O/T", {}, PayCategory.OT),
            ("VAC", {}, PayCategory.VACATION),
            ("H", {}, PayCategory.STAT),
            ("NS", {}, PayCategory.NIGHT),
            ("ZZZ", {}, PayCategory.REGULAR),
        ],
    )
    def test_precedence(self, engine, code, flags, expected):
        entry = TimeEntry(MONDAY, job="J-1", labour_code=code, hours=D(8), **flags)
        assert engine.classify(entry) is expected

    def test_night_code_outranks_overtime_flag(self, engine):
        entry = TimeEntry(MONDAY, job="J-1", labour_code=" ns ", hours=D(8), is_overtime=True)
        assert engine.classify(entry) is PayCategory.NIGHT

    def test_night_code_hours_land_in_night_bucket(self, engine, make_entry):
        entries = [make_entry(MONDAY, 6, labour_code="NS"), make_entry(MONDAY, 2)]
        totals = engine.totals(entries, DateRange.single(MONDAY))
        assert totals.night == D(6)
        assert totals.regular == D(2)
        assert engine.worked_hours(entries, MONDAY) == D(8)


class TestTotals:
    def test_buckets(self, engine, make_entry):
        entries = [
            make_entry(MONDAY, 8),
            make_entry(MONDAY, 2, labour_code="OT"),
            make_entry(MONDAY + timedelta(days=1), 1, labour_code="DT"),
            make_entry(MONDAY + timedelta(days=2), 8, labour_code="VP"),
            make_entry(MONDAY + timedelta(days=3), 8, labour_code="201", is_night_shift=True),
            make_entry(MONDAY + timedelta(days=4), 8, labour_code="H", job=""),
        ]
        totals = engine.totals(entries, PERIOD)

        assert totals.regular == D(8)
        assert totals.ot == D(2)
        assert totals.dt == D(1)
        assert totals.vacation == D(8)
        assert totals.night == D(8)
        assert totals.stat == D(8)
        assert totals.on_call == D(0)
        assert totals.on_call_bonus == D(0)
        assert totals.total_hours == D(35)

    def test_filters_to_range(self, engine, make_entry):
        entries = [
            make_entry(SUNDAY - timedelta(days=1), 8),
            make_entry(MONDAY, 8),
            make_entry(PERIOD.end + timedelta(days=1), 8),
        ]
        assert engine.totals(entries, PERIOD).regular == D(8)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"labour_code": ""},
            {"labour_code": "   "},
            {"hours": 600},
            {"hours": 600, "labour_code": "OT"},
            {"placeholder": True, "labour_code": "OC"},
            {"job": ""},
        ],
    )
    def test_excluded_entries(self, engine, make_entry, kwargs):
        entry = make_entry(MONDAY, **kwargs)
        totals = engine.totals([entry], PERIOD)
        assert totals.total_hours == D(0)
        assert totals.on_call == D(0)
        assert totals.on_call_bonus == D(0)
        assert totals.on_call_entries == 0

    def test_blank_job_kept_for_non_regular(self, engine, make_entry):
        totals = engine.totals([make_entry(MONDAY, 3, labour_code="OT", job="")], PERIOD)
        assert totals.ot == D(3)

    def test_on_call_counted_twice(self, engine, make_entry):
        totals = engine.totals([make_entry(MONDAY, 4, labour_code="OC")], PERIOD)
        assert totals.on_call == D(4)
        assert totals.ot == D(4)
        assert totals.on_call_entries == 1
        assert totals.total_hours == D(4)

    def test_never_mutates_entries(self, engine, make_entry):
        entries = [make_entry(MONDAY, 8), make_entry(MONDAY, 2, labour_code="OC")]
        snapshot = [(e.work_date, e.job, e.labour_code, e.hours) for e in entries]
        engine.totals(entries, PERIOD)
        assert [(e.work_date, e.job, e.labour_code, e.hours) for e in entries] == snapshot


class TestOnCallStipend:
    def test_one_entry_in_a_week(self, engine, make_entry):
        week = DateRange.week_containing(MONDAY)
        totals = engine.totals([make_entry(MONDAY, 0, labour_code="OC")], week)
        assert totals.on_call_bonus == D(300)

    def test_zero_entries(self, engine, make_entry):
        week = DateRange.week_containing(MONDAY)
        assert engine.totals([make_entry(MONDAY, 8)], week).on_call_bonus == D(0)

    def test_once_per_week_not_per_entry(self, engine, make_entry):
        entries = [
            make_entry(MONDAY, 1, labour_code="OC"),
            make_entry(MONDAY + timedelta(days=1), 1, labour_code="OC"),
        ]
        assert engine.totals(entries, PERIOD).on_call_bonus == D(300)

    def test_each_week_of_period(self, engine, make_entry):
        entries = [
            make_entry(MONDAY, 1, labour_code="OC"),
            make_entry(MONDAY + timedelta(days=7), 1, labour_code="OC"),
        ]
        assert engine.totals(entries, PERIOD).on_call_bonus == D(600)

    def test_per_entry_amount_tracked_separately(self, engine, make_entry):
        entries = [
            make_entry(MONDAY, 1, labour_code="OC"),
            make_entry(MONDAY + timedelta(days=1), 1, labour_code="OC"),
            make_entry(MONDAY + timedelta(days=2), 600, labour_code="OC"),
        ]
        assert engine.on_call_entry_count(entries, PERIOD) == 2
        assert engine.on_call_entry_amount(entries, PERIOD) == D(100)
        assert engine.totals(entries, PERIOD).on_call_bonus == D(300)

    def test_disabled(self, config, make_entry):
        engine = CategorizationEngine(config.code_map, on_call=OnCallSettings(enabled=False))
        totals = engine.totals([make_entry(MONDAY, 4, labour_code="OC")], PERIOD)
        assert totals.on_call_bonus == D(0)
        assert totals.on_call == D(0)
        assert totals.regular == D(4)


class TestOvertime:
    def _five_tens(self, make_entry):
        return [make_entry(MONDAY + timedelta(days=i), 10) for i in range(5)]

    def test_daily_overtime(self, engine, make_entry):
        entries = self._five_tens(make_entry)
        assert engine.daily_overtime(entries, MONDAY, BC_POLICY) == (D(2), D(0))
        assert engine.daily_overtime(entries, MONDAY + timedelta(days=4), BC_POLICY) == (D(10), D(0))

    def test_week_conserves_hours(self, engine, make_entry):
        entries = self._five_tens(make_entry)
        week = list(DateRange.week_containing(MONDAY).days())
        result = engine.compute_week_ot_dt(entries, week, BC_POLICY)
        assert sum(r.regular + r.ot + r.dt for r in result.values()) == D(50)

    def test_worked_hours_include_night_only(self, engine, make_entry):
        entries = [
            make_entry(MONDAY, 6),
            make_entry(MONDAY, 4, is_night_shift=True),
            make_entry(MONDAY, 8, labour_code="VP"),
            make_entry(MONDAY, 8, labour_code="H"),
            make_entry(MONDAY, 3, labour_code="OC"),
            make_entry(MONDAY, 2, labour_code="OT"),
        ]
        assert engine.worked_hours(entries, MONDAY) == D(10)

    def test_week_start_changes_rest_day(self, engine, make_entry):
        entries = [make_entry(MONDAY, 6)]
        assert engine.daily_overtime(entries, MONDAY, BC_POLICY, week_start=6) == (D(0), D(0))
        # with Monday-start weeks, Monday is the rest day
        assert engine.daily_overtime(entries, MONDAY, BC_POLICY, week_start=0) == (D(6), D(0))

    def test_explicit_overtime(self, engine, make_entry):
        entries = [
            make_entry(MONDAY, 3, labour_code="OT"),
            make_entry(MONDAY, 1, is_overtime=True),
            make_entry(MONDAY, 2, labour_code="DT"),
            make_entry(MONDAY, 8),
            make_entry(MONDAY + timedelta(days=1), 5, labour_code="OT"),
        ]
        assert engine.explicit_overtime(entries, MONDAY) == (D(4), D(2))


class TestHolidayLifecycle:
    def test_inserts_missing_holiday(self, engine, make_entry):
        entries = [make_entry(date(2025, 7, 2), 8)]
        result = engine.add_stat_holidays_for_period(entries, JULY, [CANADA_DAY])

        assert len(result.inserted) == 1
        inserted = result.inserted[0]
        assert inserted.work_date == date(2025, 7, 1)
        assert inserted.job == "Stat"
        assert inserted.labour_code == "H"
        assert inserted.hours == D(8)
        assert inserted.notes == "Canada Day"
        assert [e.work_date for e in entries] == [date(2025, 7, 1), date(2025, 7, 2)]

    def test_idempotent(self, engine):
        entries: list[TimeEntry] = []
        engine.add_stat_holidays_for_period(entries, JULY, [CANADA_DAY])
        second = engine.add_stat_holidays_for_period(entries, JULY, [CANADA_DAY])
        assert second.inserted == []
        assert len(entries) == 1

    def test_outside_range_ignored(self, engine):
        entries: list[TimeEntry] = []
        range_ = DateRange(date(2025, 7, 2), date(2025, 7, 15))
        result = engine.add_stat_holidays_for_period(entries, range_, [CANADA_DAY])
        assert not result.changed
        assert entries == []

    def test_existing_stat_entry_normalized(self, engine, make_entry):
        existing = make_entry(date(2025, 7, 1), 8, labour_code="stat", job="holiday")
        entries = [existing]
        result = engine.add_stat_holidays_for_period(entries, JULY, [CANADA_DAY])

        assert result.inserted == []
        assert result.normalized == [existing]
        assert existing.job == "Stat"
        assert existing.labour_code == "H"

    def test_custom_job_preserved(self, engine, make_entry):
        existing = make_entry(date(2025, 7, 1), 8, labour_code="H", job="Site 7")
        engine.add_stat_holidays_for_period([existing], JULY, [CANADA_DAY])
        assert existing.job == "Site 7"

    def test_observed_and_actual_same_week(self, engine):
        holidays = [
            StatHoliday("Canada Day", date(2023, 7, 1)),
            StatHoliday("Canada Day (Observed)", date(2023, 7, 3), is_observed=True),
        ]
        entries: list[TimeEntry] = []
        range_ = DateRange(date(2023, 6, 25), date(2023, 7, 8))
        result = engine.add_stat_holidays_for_period(entries, range_, holidays)
        assert [e.work_date for e in result.inserted] == [date(2023, 7, 1), date(2023, 7, 3)]

    def test_remove_only_holiday_codes_on_holiday_dates(self, engine, make_entry):
        worked = make_entry(date(2025, 7, 1), 4)
        stray_stat = make_entry(date(2025, 7, 4), 8, labour_code="H")
        entries = [worked, stray_stat]
        engine.add_stat_holidays_for_period(entries, JULY, [CANADA_DAY])

        result = engine.remove_stat_holidays_for_period(entries, JULY, [CANADA_DAY])

        assert len(result.removed) == 1
        assert result.removed[0].work_date == date(2025, 7, 1)
        assert entries == [worked, stray_stat]

    def test_round_trip(self, engine, make_entry):
        originals = [
            make_entry(date(2025, 6, 30), 8),
            make_entry(date(2025, 7, 2), 10),
        ]
        entries = list(originals)
        added = engine.add_stat_holidays_for_period(entries, JULY, [CANADA_DAY])
        removed = engine.remove_stat_holidays_for_period(entries, JULY, [CANADA_DAY])

        assert removed.removed == added.inserted
        assert entries == originals

    def test_holiday_entry_counts_as_stat(self, engine):
        entries: list[TimeEntry] = []
        engine.add_stat_holidays_for_period(entries, JULY, [CANADA_DAY])
        assert engine.totals(entries, JULY).stat == D(8)

    def test_lifecycle_logged(self, engine, captured_logs):
        engine.add_stat_holidays_for_period([], JULY, [CANADA_DAY])
        records = [r for r in captured_logs() if r["message"] == "stat_holidays_added"]
        assert records[0]["inserted"] == 1
        assert records[0]["range_start"] == "2025-06-29"

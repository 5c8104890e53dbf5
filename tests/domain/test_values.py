"""Tests for the pure domain values and the region catalogue."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from timecard_kernel.domain.clock import DeterministicClock
from timecard_kernel.domain.regions import CountryInfo, RegionCatalogue
from timecard_kernel.domain.values import (
    DateRange,
    PayCategory,
    Region,
    SummaryTotals,
    TimeEntry,
)
from timecard_kernel.exceptions import InvalidEntryError, UnsupportedRegionError


class TestTimeEntry:
    def test_hours_coerced_to_decimal(self):
        entry = TimeEntry(date(2025, 3, 3), hours="7.5")
        assert entry.hours == Decimal("7.5")

    def test_negative_hours_rejected(self):
        with pytest.raises(InvalidEntryError) as exc_info:
            TimeEntry(date(2025, 3, 3), hours=Decimal("-1"))
        assert exc_info.value.code == "INVALID_ENTRY"

    def test_legacy_placeholder_hours(self):
        assert TimeEntry(date(2025, 3, 3), hours=600).is_placeholder
        assert TimeEntry(date(2025, 3, 3), hours=8, placeholder=True).is_placeholder
        assert not TimeEntry(date(2025, 3, 3), hours=8).is_placeholder

    def test_holiday_code(self):
        assert TimeEntry(date(2025, 3, 3), labour_code=" stat ").is_holiday_code
        assert TimeEntry(date(2025, 3, 3), labour_code="h").is_holiday_code
        assert not TimeEntry(date(2025, 3, 3), labour_code="HOL").is_holiday_code

    def test_blank_fields(self):
        entry = TimeEntry(date(2025, 3, 3), job="  ", labour_code="")
        assert entry.has_blank_job
        assert entry.has_blank_code

    def test_entries_have_distinct_ids(self):
        assert TimeEntry(date(2025, 3, 3)).entry_id != TimeEntry(date(2025, 3, 3)).entry_id


class TestSummaryTotals:
    def test_total_excludes_on_call_mirror(self):
        totals = SummaryTotals(regular=Decimal(8), ot=Decimal(4), on_call=Decimal(4))
        assert totals.total_hours == Decimal(12)

    def test_category_labels(self):
        assert PayCategory.VACATION.label == "Vacation (VP)"
        assert PayCategory("on_call") is PayCategory.ON_CALL


class TestDateRange:
    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            DateRange(date(2025, 3, 2), date(2025, 3, 1))

    def test_contains(self):
        range_ = DateRange(date(2025, 3, 2), date(2025, 3, 8))
        assert date(2025, 3, 2) in range_
        assert date(2025, 3, 8) in range_
        assert date(2025, 3, 9) not in range_
        assert range_.contains(datetime(2025, 3, 5, 23, 59))
        assert not range_.contains("2025-03-05")
        assert not range_.contains(None)

    def test_week_containing_sunday_start(self):
        week = DateRange.week_containing(date(2025, 3, 5))
        assert week == DateRange(date(2025, 3, 2), date(2025, 3, 8))

    def test_week_containing_on_first_day(self):
        week = DateRange.week_containing(date(2025, 3, 2))
        assert week.start == date(2025, 3, 2)

    def test_weeks_last_window_short(self):
        windows = DateRange(date(2025, 3, 1), date(2025, 3, 10)).weeks()
        assert [w.day_count for w in windows] == [7, 3]

    def test_years(self):
        assert list(DateRange(date(2024, 12, 29), date(2025, 1, 11)).years()) == [2024, 2025]


class TestRegion:
    def test_normalized(self):
        region = Region(" ca", "bc ")
        assert region == Region("CA", "BC")
        assert region.code == "CA-BC"
        assert str(region) == "CA-BC"

    def test_cache_key(self):
        assert Region("CA", "BC").cache_key(2025) == "CA-BC-2025"
        assert Region("CA", "BC").cache_prefix == "CA-BC-"


@pytest.fixture
def catalogue():
    return RegionCatalogue(
        countries={
            "CA": CountryInfo("CA", "Canada", "BC", {"BC": "British Columbia", "ON": "Ontario"}),
            "US": CountryInfo("US", "United States", "NM", {"NM": "New Mexico", "CA": "California"}),
        },
        default_region=Region("CA", "BC"),
    )


class TestRegionCatalogue:
    def test_resolve_exact(self, catalogue):
        assert catalogue.resolve("CA", "ON") == Region("CA", "ON")

    def test_resolve_prefixed_admin_code(self, catalogue):
        assert catalogue.resolve("us", "US-CA") == Region("US", "CA")
        assert catalogue.resolve("CA", "CA-ON") == Region("CA", "ON")

    def test_unknown_subdivision_uses_country_default(self, catalogue):
        assert catalogue.resolve("US", "TX") == Region("US", "NM")
        assert catalogue.resolve("US", None) == Region("US", "NM")

    def test_unknown_country_uses_catalogue_default(self, catalogue):
        assert catalogue.resolve("FR", "IDF") == Region("CA", "BC")
        assert catalogue.resolve(None, None) == Region("CA", "BC")

    def test_require(self, catalogue):
        with pytest.raises(UnsupportedRegionError) as exc_info:
            catalogue.require(Region("CA", "QC"))
        assert exc_info.value.subdivision == "QC"

    def test_display_name(self, catalogue):
        assert catalogue.display_name(Region("CA", "ON")) == "Ontario, Canada"

    def test_invalid_country_default_rejected(self):
        with pytest.raises(UnsupportedRegionError):
            CountryInfo("CA", "Canada", "XX", {"BC": "British Columbia"})

    def test_unsupported_catalogue_default_rejected(self):
        with pytest.raises(UnsupportedRegionError):
            RegionCatalogue(
                countries={"CA": CountryInfo("CA", "Canada", "BC", {"BC": "British Columbia"})},
                default_region=Region("US", "NM"),
            )


class TestDeterministicClock:
    def test_advance(self):
        clock = DeterministicClock()
        start = clock.today()
        clock.advance(3)
        assert (clock.today() - start).days == 3

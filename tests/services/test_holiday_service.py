"""
Tests for HolidayService: cache, remote merge and local fallback.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from tests.services.conftest import NAGER, FakeResponse, FakeSession
from timecard_config.compiler import RemoteSourceSettings
from timecard_kernel.domain.values import Region, StatHoliday
from timecard_kernel.exceptions import HolidayDecodeError, HolidayFetchError
from timecard_services.holiday_service import HolidayService
from timecard_services.holiday_source import NagerHolidaySource

BC = Region("CA", "BC")
AB = Region("CA", "AB")

REMOTE_2025 = [
    StatHoliday("Easter Monday", date(2025, 4, 21)),
    StatHoliday("Fête du Canada", date(2025, 7, 1)),
]


@pytest.fixture
def remote(make_source):
    return make_source({2025: REMOTE_2025})


@pytest.fixture
def holiday_service(calendar, remote):
    return HolidayService(calendar, remote)


class TestRemoteMerge:
    def test_remote_added_and_name_wins(self, holiday_service, calendar):
        merged = holiday_service.holidays(2025, BC)
        local = calendar.stat_holidays(2025, BC)
        assert len(merged) == len(local) + 1
        by_day = {h.holiday_date: h.name for h in merged}
        assert by_day[date(2025, 4, 21)] == "Easter Monday"
        assert by_day[date(2025, 7, 1)] == "Fête du Canada"
        assert by_day[date(2025, 8, 4)] == "British Columbia Day"

    def test_merged_sorted(self, holiday_service):
        dates = [h.holiday_date for h in holiday_service.holidays(2025, BC)]
        assert dates == sorted(dates)

    def test_merge_logged(self, holiday_service, captured_logs):
        holiday_service.holidays(2025, BC)
        merged = [r for r in captured_logs() if r["message"] == "holiday_remote_merged"]
        assert merged[0]["cache_key"] == "CA-BC-2025"
        assert merged[0]["remote_count"] == 2
        assert merged[0]["local_count"] == 11
        assert merged[0]["merged_count"] == 12

    def test_empty_remote_keeps_local(self, calendar, make_source):
        service = HolidayService(calendar, make_source())
        assert service.holidays(2026, BC) == calendar.stat_holidays(2026, BC)


class TestCache:
    def test_second_call_served_from_cache(self, holiday_service, remote):
        first = holiday_service.holidays(2025, BC)
        second = holiday_service.holidays(2025, BC)
        assert first == second
        assert remote.calls == [(2025, "CA-BC")]

    def test_returned_list_is_a_copy(self, holiday_service):
        holiday_service.holidays(2025, BC).clear()
        assert len(holiday_service.holidays(2025, BC)) == 12

    def test_cached_before_and_after(self, holiday_service):
        assert holiday_service.cached(2025, BC) is None
        holiday_service.holidays(2025, BC)
        assert len(holiday_service.cached(2025, BC)) == 12

    def test_cache_keyed_by_region(self, holiday_service, remote):
        holiday_service.holidays(2025, BC)
        holiday_service.holidays(2025, AB)
        assert remote.calls == [(2025, "CA-BC"), (2025, "CA-AB")]
        assert holiday_service.cached_years(BC) == [2025]
        assert holiday_service.cached_years(AB) == [2025]

    def test_purge_keeps_selected_region(self, holiday_service):
        for year in (2024, 2025):
            holiday_service.holidays(year, BC)
            holiday_service.holidays(year, AB)
        assert holiday_service.purge_cache_except_region(BC) == 2
        assert holiday_service.cached_years(BC) == [2024, 2025]
        assert holiday_service.cached_years(AB) == []

    def test_purge_logged(self, holiday_service, captured_logs):
        holiday_service.holidays(2025, AB)
        holiday_service.purge_cache_except_region(BC)
        purged = [r for r in captured_logs() if r["message"] == "holiday_cache_purged"]
        assert purged[0]["kept_prefix"] == "CA-BC-"
        assert purged[0]["purged_count"] == 1

    def test_clear(self, holiday_service):
        holiday_service.holidays(2025, BC)
        holiday_service.clear()
        assert holiday_service.cached(2025, BC) is None

    def test_concurrent_first_calls_agree(self, holiday_service):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: holiday_service.holidays(2025, BC), range(16)))
        assert all(r == results[0] for r in results)
        assert holiday_service.cached_years(BC) == [2025]


class TestFallback:
    @pytest.mark.parametrize(
        "error",
        [
            HolidayFetchError("CA", 2025, "unexpected status 500", status_code=500),
            HolidayDecodeError("CA", 2025, "expected a list, got dict"),
        ],
    )
    def test_remote_failure_returns_local(self, calendar, make_source, error):
        service = HolidayService(calendar, make_source(error=error))
        assert service.holidays(2025, BC) == calendar.stat_holidays(2025, BC)

    def test_failure_logged_and_local_cached(self, calendar, make_source, captured_logs):
        source = make_source(error=HolidayFetchError("CA", 2025, "refused"))
        service = HolidayService(calendar, source)
        service.holidays(2025, BC)
        service.holidays(2025, BC)
        assert len(source.calls) == 1
        failures = [r for r in captured_logs() if r["message"] == "holiday_remote_fetch_failed"]
        assert failures[0]["level"] == "WARNING"
        assert failures[0]["error_code"] == "HOLIDAY_FETCH_FAILED"
        assert failures[0]["cache_key"] == "CA-BC-2025"

    def test_no_source_is_local_only(self, calendar):
        service = HolidayService(calendar)
        assert service.holidays(2025, BC) == calendar.stat_holidays(2025, BC)

    def test_malformed_counties_falls_back_to_local(self, calendar):
        row = {"date": "2025-07-01", "name": "Canada Day", "global": False, "counties": 5}
        session = FakeSession({f"{NAGER}/PublicHolidays/2025/CA": FakeResponse(200, [row])})
        source = NagerHolidaySource(
            RemoteSourceSettings(enabled=True, base_url=NAGER, timeout_seconds=4.0),
            session=session,
        )
        service = HolidayService(calendar, source)
        assert service.holidays(2025, BC) == calendar.stat_holidays(2025, BC)


class TestLookups:
    def test_lookup_never_fetches(self, holiday_service, remote, calendar):
        assert holiday_service.lookup_holidays(2025, BC) == calendar.stat_holidays(2025, BC)
        assert remote.calls == []

    def test_is_stat_holiday_sees_cached_remote_days(self, holiday_service):
        easter_monday = date(2025, 4, 21)
        assert not holiday_service.is_stat_holiday(easter_monday, BC)
        holiday_service.holidays(2025, BC)
        assert holiday_service.is_stat_holiday(easter_monday, BC)

    def test_holiday_name(self, holiday_service):
        assert holiday_service.holiday_name(date(2025, 7, 1), BC) == "Canada Day"
        holiday_service.holidays(2025, BC)
        assert holiday_service.holiday_name(date(2025, 7, 1), BC) == "Fête du Canada"
        assert holiday_service.holiday_name(date(2025, 7, 2), BC) is None

    def test_holidays_in_spans_year_boundary(self, holiday_service):
        holidays = holiday_service.holidays_in(date(2025, 12, 20), date(2026, 1, 5), BC)
        assert [h.name for h in holidays] == ["Christmas Day", "New Year's Day"]

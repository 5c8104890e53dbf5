"""
HolidayService -- cached region holidays with remote merge and local fallback.

Responsibility:
    Owns the holiday cache.  ``holidays(year, region)`` returns the cached
    list when present; otherwise it computes the local statutory list,
    merges the remote list by calendar day (remote name wins), caches the
    result under ``"{country}-{subdivision}-{year}"`` and returns it.  Any
    remote failure is logged and the local list is cached instead.

Architecture position:
    Services -- stateful, owns the only shared mutable state of the
    package (the cache).  Uses the pure ``HolidayCalendar`` engine and an
    injected ``HolidaySource``.

Invariants enforced:
    - ``holidays()`` never raises for remote problems.
    - Cache reads and writes are guarded by a lock; the network call is
      made outside the lock.
    - The cache is only purged when the caller asks
      (``purge_cache_except_region``); changing region does not purge.
"""

from __future__ import annotations

import threading
from datetime import date

from timecard_engines.holiday_calendar import (
    HolidayCalendar,
    find_holiday,
    merge_holidays,
)
from timecard_kernel.domain.values import Region, StatHoliday
from timecard_kernel.exceptions import HolidaySourceError
from timecard_kernel.logging_config import get_logger
from timecard_services.holiday_source import HolidaySource

logger = get_logger("services.holiday_service")


class HolidayService:
    """Holiday lookup with an explicit, instance-owned cache."""

    def __init__(
        self,
        calendar: HolidayCalendar,
        source: HolidaySource | None = None,
    ) -> None:
        self._calendar = calendar
        self._source = source
        self._cache: dict[str, list[StatHoliday]] = {}
        self._lock = threading.Lock()

    @property
    def calendar(self) -> HolidayCalendar:
        return self._calendar

    def holidays(self, year: int, region: Region) -> list[StatHoliday]:
        """Merged holidays for ``region`` in ``year`` (cached)."""
        key = region.cache_key(year)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        local = self._calendar.stat_holidays(year, region)
        merged = local
        if self._source is not None:
            try:
                remote = self._source.fetch(year, region)
            except HolidaySourceError as exc:
                logger.warning(
                    "holiday_remote_fetch_failed",
                    extra={
                        "cache_key": key,
                        "error_code": exc.code,
                        "error": str(exc),
                    },
                )
            else:
                merged = merge_holidays(local, remote)
                logger.info(
                    "holiday_remote_merged",
                    extra={
                        "cache_key": key,
                        "remote_count": len(remote),
                        "local_count": len(local),
                        "merged_count": len(merged),
                    },
                )

        with self._lock:
            stored = self._cache.setdefault(key, merged)
        return list(stored)

    def cached(self, year: int, region: Region) -> list[StatHoliday] | None:
        with self._lock:
            cached = self._cache.get(region.cache_key(year))
        return list(cached) if cached is not None else None

    def lookup_holidays(self, year: int, region: Region) -> list[StatHoliday]:
        """Cached list if present, else the local computation.  Never fetches."""
        cached = self.cached(year, region)
        if cached is not None:
            return cached
        return self._calendar.stat_holidays(year, region)

    def holidays_in(self, start: date, end: date, region: Region) -> list[StatHoliday]:
        holidays: list[StatHoliday] = []
        for year in range(start.year - 1, end.year + 2):
            holidays.extend(
                h for h in self.lookup_holidays(year, region)
                if start <= h.holiday_date <= end
            )
        return sorted(holidays, key=lambda h: h.holiday_date)

    def _around(self, day: date, region: Region) -> list[StatHoliday]:
        holidays: list[StatHoliday] = []
        for year in (day.year - 1, day.year, day.year + 1):
            holidays.extend(self.lookup_holidays(year, region))
        return holidays

    def is_stat_holiday(self, day: date, region: Region) -> bool:
        return find_holiday(day, self._around(day, region)) is not None

    def holiday_name(self, day: date, region: Region) -> str | None:
        holiday = find_holiday(day, self._around(day, region))
        return holiday.name if holiday is not None else None

    def purge_cache_except_region(self, region: Region) -> int:
        """Drop cached years of every other region; returns the count dropped."""
        prefix = region.cache_prefix
        with self._lock:
            stale = [k for k in self._cache if not k.startswith(prefix)]
            for key in stale:
                del self._cache[key]
        logger.info(
            "holiday_cache_purged",
            extra={"kept_prefix": prefix, "purged_count": len(stale)},
        )
        return len(stale)

    def cached_years(self, region: Region) -> list[int]:
        prefix = region.cache_prefix
        with self._lock:
            keys = [k for k in self._cache if k.startswith(prefix)]
        return sorted(int(k[len(prefix):]) for k in keys)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

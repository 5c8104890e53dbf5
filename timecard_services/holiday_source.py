"""
Remote public-holiday source (``timecard_services.holiday_source``).

Responsibility
--------------
Fetch a country's public holidays for one year from a Nager.Date style
endpoint (``GET {base_url}/PublicHolidays/{year}/{country}``) and decode
them into ``StatHoliday`` values.

Architecture position
---------------------
**Services layer** -- the only network I/O in the package.  Consumed by
``HolidayService``, which always catches ``HolidaySourceError`` and falls
back to local computation.

Failure modes
-------------
* ``HolidayFetchError`` -- transport error, timeout or non-200 status.
* ``HolidayDecodeError`` -- body is not a JSON array of holiday objects.
* Rows whose ``date`` cannot be parsed are skipped, not fatal.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol

import requests

from timecard_config.compiler import RemoteSourceSettings
from timecard_kernel.domain.values import Region, StatHoliday
from timecard_kernel.exceptions import HolidayDecodeError, HolidayFetchError
from timecard_kernel.logging_config import get_logger

logger = get_logger("services.holiday_source")


class HolidaySource(Protocol):
    """Anything that can list public holidays for a region and year."""

    def fetch(self, year: int, region: Region) -> list[StatHoliday]:
        ...


class NagerHolidaySource:
    """
    Synchronous client for the Nager.Date public holiday API.

    One request per call with a hard timeout; no retry.  The session is
    injectable so tests never touch the network.
    """

    def __init__(
        self,
        settings: RemoteSourceSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def url_for(self, year: int, country_code: str) -> str:
        return f"{self._settings.base_url}/PublicHolidays/{year}/{country_code}"

    def fetch(self, year: int, region: Region) -> list[StatHoliday]:
        url = self.url_for(year, region.country)
        try:
            response = self._session.get(url, timeout=self._settings.timeout_seconds)
        except requests.exceptions.Timeout as exc:
            raise HolidayFetchError(region.country, year, f"timed out: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise HolidayFetchError(region.country, year, str(exc)) from exc

        if response.status_code != 200:
            raise HolidayFetchError(
                region.country,
                year,
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise HolidayDecodeError(region.country, year, f"invalid JSON: {exc}") from exc

        holidays = self._decode(payload, year, region)
        logger.debug(
            "holiday_remote_fetched",
            extra={
                "country_code": region.country,
                "year": year,
                "row_count": len(payload),
                "holiday_count": len(holidays),
            },
        )
        return holidays

    def _decode(self, payload: Any, year: int, region: Region) -> list[StatHoliday]:
        if not isinstance(payload, list):
            raise HolidayDecodeError(
                region.country, year, f"expected a list, got {type(payload).__name__}"
            )
        holidays: list[StatHoliday] = []
        for row in payload:
            if not isinstance(row, dict) or not isinstance(row.get("name"), str):
                raise HolidayDecodeError(region.country, year, f"malformed row: {row!r}")
            if not self._applies_to(row, year, region):
                continue
            try:
                day = date.fromisoformat(str(row.get("date")))
            except ValueError:
                logger.debug(
                    "holiday_remote_row_skipped",
                    extra={"country_code": region.country, "raw_date": row.get("date")},
                )
                continue
            local_name = row.get("localName")
            title = local_name if isinstance(local_name, str) and local_name else row["name"]
            holidays.append(StatHoliday(title, day))
        return sorted(holidays, key=lambda h: h.holiday_date)

    def _applies_to(self, row: dict[str, Any], year: int, region: Region) -> bool:
        # Non-global rows list the subdivisions they apply to ("CA-BC").
        if not self._settings.filter_subdivisions or row.get("global", True):
            return True
        return region.code in self._counties(row, year, region)

    @staticmethod
    def _counties(row: dict[str, Any], year: int, region: Region) -> tuple[str, ...]:
        counties = row.get("counties")
        if counties is None:
            return ()
        if not isinstance(counties, (list, tuple)) or not all(
            isinstance(code, str) for code in counties
        ):
            raise HolidayDecodeError(
                region.country, year, f"counties must be a list of codes: {counties!r}"
            )
        return tuple(counties)

    def close(self) -> None:
        self._session.close()

"""
Pytest fixtures for the timecard test suite.

Provides:
- Structured logging configured once per session, plus ``captured_logs``
- The compiled default configuration set
- Engine, calendar and service builders
- Time entry builders
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from timecard_config import get_active_config
from timecard_engines.categorization import CategorizationEngine
from timecard_engines.holiday_calendar import HolidayCalendar
from timecard_kernel.domain.clock import DeterministicClock
from timecard_kernel.domain.values import Region, TimeEntry
from timecard_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from timecard_services.timecard_service import TimecardService

BC = Region("CA", "BC")
AB = Region("CA", "AB")
ON = Region("CA", "ON")
US_CA = Region("US", "CA")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture timecard_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.holidays(2025)
            logs = captured_logs()
            assert any(r["message"] == "holiday_remote_merged" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("timecard_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration and engines
# =============================================================================


@pytest.fixture(scope="session")
def config():
    """The compiled ``default`` configuration set."""
    return get_active_config("default")


@pytest.fixture
def calendar(config):
    return HolidayCalendar(config.holiday_rules)


@pytest.fixture
def engine(config):
    return CategorizationEngine(
        config.code_map,
        on_call=config.on_call,
        holiday_defaults=config.holiday_defaults,
    )


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2025, 3, 5, 12, 0, tzinfo=timezone.utc))


class FakeHolidaySource:
    """In-memory holiday source; records calls, optionally fails."""

    def __init__(self, holidays=None, error=None):
        self.holidays = holidays or {}
        self.error = error
        self.calls: list[tuple[int, str]] = []

    def fetch(self, year, region):
        self.calls.append((year, region.code))
        if self.error is not None:
            raise self.error
        return list(self.holidays.get(year, []))


@pytest.fixture
def make_source():
    """Factory for FakeHolidaySource(holidays={year: [...]}, error=None)."""
    return FakeHolidaySource


@pytest.fixture
def make_service(config, clock):
    """Build a TimecardService with a local-only or fake holiday source."""

    def _make(source=None, **kwargs):
        kwargs.setdefault("clock", clock)
        service = TimecardService(
            config,
            holiday_source=source if source is not None else FakeHolidaySource(),
            **kwargs,
        )
        return service

    return _make


@pytest.fixture
def service(make_service):
    return make_service()


# =============================================================================
# Entry builders
# =============================================================================


@pytest.fixture
def make_entry():
    """Create a TimeEntry with sensible defaults (regular code 201, job J-100)."""

    def _make(
        work_date: date,
        hours="8",
        labour_code: str = "201",
        job: str = "J-100",
        **kwargs,
    ) -> TimeEntry:
        return TimeEntry(
            work_date=work_date,
            job=job,
            labour_code=labour_code,
            hours=Decimal(str(hours)),
            **kwargs,
        )

    return _make

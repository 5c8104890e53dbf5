"""
Pure domain layer.

This module contains pure data objects with NO dependencies on:
- Network
- Filesystem
- Time/clock (except the injectable Clock itself)
"""

from timecard_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from timecard_kernel.domain.regions import CountryInfo, RegionCatalogue
from timecard_kernel.domain.values import (
    HOLIDAY_CODES,
    LEGACY_PLACEHOLDER_HOURS,
    ZERO,
    DateRange,
    PayCategory,
    PayPeriod,
    Region,
    StatHoliday,
    SummaryTotals,
    TimeEntry,
)

__all__ = [
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Regions
    "CountryInfo",
    "RegionCatalogue",
    # Values
    "DateRange",
    "PayCategory",
    "PayPeriod",
    "Region",
    "StatHoliday",
    "SummaryTotals",
    "TimeEntry",
    # Constants
    "HOLIDAY_CODES",
    "LEGACY_PLACEHOLDER_HOURS",
    "ZERO",
]

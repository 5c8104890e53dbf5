"""
timecard_services -- Package init and public API.

Responsibility:
    Stateful services that compose the pure engines (timecard_engines/)
    with the clock, the holiday cache and the remote holiday source.
    This is the **only** layer that may perform network I/O or read
    wall-clock time.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction:
        timecard_services/ -> timecard_engines/  (allowed)
        timecard_services/ -> timecard_config/   (allowed)
        timecard_services/ -> timecard_kernel/   (allowed)
        timecard_engines/  -> timecard_services/ (FORBIDDEN)
        timecard_kernel/   -> timecard_services/ (FORBIDDEN)

Failure modes:
    - ImportError at startup if a service's dependency graph is broken.
"""

from timecard_kernel.logging_config import get_logger

logger = get_logger("services")

from timecard_services.holiday_service import HolidayService
from timecard_services.holiday_source import HolidaySource, NagerHolidaySource
from timecard_services.region import (
    DetectedLocation,
    RegionDetector,
    resolve_detected_region,
)
from timecard_services.timecard_service import TimecardService

__all__ = [
    "DetectedLocation",
    "HolidayService",
    "HolidaySource",
    "NagerHolidaySource",
    "RegionDetector",
    "TimecardService",
    "resolve_detected_region",
]

"""
Module: timecard_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    timecard_services and timecard_config.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import timecard_kernel (and sibling engine modules).
    MUST NOT import timecard_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in explicitly by the services layer.
    - Decimal-only arithmetic for hours and money.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``timecard_engines.tracer``), emitting TIMECARD_ENGINE_TRACE records.

Usage:
    from timecard_engines.date_math import easter_sunday
    from timecard_engines.holiday_calendar import HolidayCalendar
    from timecard_engines.overtime import OvertimePolicy, allocate_week
    from timecard_engines.categorization import CategorizationEngine
"""

from timecard_kernel.logging_config import get_logger

logger = get_logger("engines")

from timecard_engines.categorization import (
    CategorizationEngine,
    HolidayEntryDefaults,
    HolidaySyncResult,
    LabourCode,
    LabourCodeCategoryMap,
    OnCallSettings,
    normalize_code,
)
from timecard_engines.date_math import (
    easter_sunday,
    last_weekday_of_month,
    last_weekday_on_or_before,
    nth_weekday,
    observed_date,
)
from timecard_engines.holiday_calendar import (
    HolidayCalendar,
    HolidayKind,
    HolidayRule,
    HolidayRuleBook,
    find_holiday,
    merge_holidays,
)
from timecard_engines.overtime import (
    CustomPolicy,
    DayOvertime,
    OvertimePolicy,
    PolicyTable,
    allocate_week,
    describe_policy,
)
from timecard_engines.pay_periods import (
    AnchoredBiweeklyPeriods,
    PayPeriodProvider,
    ThursdayBiweeklyPeriods,
)
from timecard_engines.tracer import traced_engine

__all__ = [
    # Categorization
    "CategorizationEngine",
    "HolidayEntryDefaults",
    "HolidaySyncResult",
    "LabourCode",
    "LabourCodeCategoryMap",
    "OnCallSettings",
    "normalize_code",
    # Date math
    "easter_sunday",
    "last_weekday_of_month",
    "last_weekday_on_or_before",
    "nth_weekday",
    "observed_date",
    # Holidays
    "HolidayCalendar",
    "HolidayKind",
    "HolidayRule",
    "HolidayRuleBook",
    "find_holiday",
    "merge_holidays",
    # Overtime
    "CustomPolicy",
    "DayOvertime",
    "OvertimePolicy",
    "PolicyTable",
    "allocate_week",
    "describe_policy",
    # Pay periods
    "AnchoredBiweeklyPeriods",
    "PayPeriodProvider",
    "ThursdayBiweeklyPeriods",
    # Tracing
    "traced_engine",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 5,
    "modules": [
        "date_math", "holiday_calendar", "overtime",
        "categorization", "pay_periods",
    ],
})

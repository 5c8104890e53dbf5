"""
Typed Exception Hierarchy for the Timecard Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers catch by type, never by message text. Every exception carries a
machine-readable ``code`` class attribute and keeps its context as
structured attributes so it survives logging and serialization.

    try:
        policy = resolve_custom_policy(...)
    except InvalidPolicyError as e:
        log.warning("policy_rejected", extra={"code": e.code, "field": e.field})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from TimecardKernelError:

    TimecardKernelError (base)
    |
    +-- EntryError
    |   +-- InvalidEntryError
    |
    +-- HolidaySourceError
    |   +-- HolidayFetchError
    |   +-- HolidayDecodeError
    |
    +-- PolicyError
    |   +-- InvalidPolicyError
    |   +-- UnknownPresetError
    |
    +-- RegionError
        +-- UnsupportedRegionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Entry           | INVALID_ENTRY               | Negative hours on a time entry
----------------|-----------------------------|-----------------------------------------
Holiday source  | HOLIDAY_FETCH_FAILED        | Network error, timeout, non-200 status
                | HOLIDAY_DECODE_FAILED       | Body is not the expected JSON array
----------------|-----------------------------|-----------------------------------------
Policy          | INVALID_OVERTIME_POLICY     | Negative cap or DT threshold below cap
                | UNKNOWN_POLICY_PRESET       | Preset name not in the policy table
----------------|-----------------------------|-----------------------------------------
Region          | UNSUPPORTED_REGION          | Country/subdivision not in catalogue

===============================================================================
HANDLING PATTERNS
===============================================================================

HolidaySourceError never leaves the services layer: ``HolidayService``
catches it, logs it with its code and falls back to the locally computed
holiday list. Totals, week allocation and holiday lifecycle operations are
total functions and do not raise for data problems.
"""

from __future__ import annotations


class TimecardKernelError(Exception):
    """
    Base exception for all timecard kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "TIMECARD_KERNEL_ERROR"


# Entry-related exceptions


class EntryError(TimecardKernelError):
    """Base exception for time entry errors."""

    code: str = "ENTRY_ERROR"


class InvalidEntryError(EntryError):
    """Time entry carries a value outside its domain."""

    code: str = "INVALID_ENTRY"

    def __init__(self, entry_id: str, reason: str):
        self.entry_id = entry_id
        self.reason = reason
        super().__init__(f"Invalid time entry {entry_id}: {reason}")


# Holiday source exceptions


class HolidaySourceError(TimecardKernelError):
    """Base exception for remote holiday source failures."""

    code: str = "HOLIDAY_SOURCE_ERROR"


class HolidayFetchError(HolidaySourceError):
    """Remote holiday request failed (transport, timeout or HTTP status)."""

    code: str = "HOLIDAY_FETCH_FAILED"

    def __init__(
        self,
        country_code: str,
        year: int,
        reason: str,
        status_code: int | None = None,
    ):
        self.country_code = country_code
        self.year = year
        self.reason = reason
        self.status_code = status_code
        super().__init__(
            f"Holiday fetch failed for {country_code} {year}: {reason}"
        )


class HolidayDecodeError(HolidaySourceError):
    """Remote holiday payload could not be decoded."""

    code: str = "HOLIDAY_DECODE_FAILED"

    def __init__(self, country_code: str, year: int, reason: str):
        self.country_code = country_code
        self.year = year
        self.reason = reason
        super().__init__(
            f"Holiday payload for {country_code} {year} is malformed: {reason}"
        )


# Policy exceptions


class PolicyError(TimecardKernelError):
    """Base exception for overtime policy errors."""

    code: str = "POLICY_ERROR"


class InvalidPolicyError(PolicyError):
    """Overtime policy thresholds are inconsistent."""

    code: str = "INVALID_OVERTIME_POLICY"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid overtime policy ({field}): {reason}")


class UnknownPresetError(PolicyError):
    """Named policy preset does not exist."""

    code: str = "UNKNOWN_POLICY_PRESET"

    def __init__(self, preset: str):
        self.preset = preset
        super().__init__(f"Unknown overtime policy preset: {preset}")


# Region exceptions


class RegionError(TimecardKernelError):
    """Base exception for region errors."""

    code: str = "REGION_ERROR"


class UnsupportedRegionError(RegionError):
    """Country or subdivision is not in the region catalogue."""

    code: str = "UNSUPPORTED_REGION"

    def __init__(self, country: str, subdivision: str | None = None):
        self.country = country
        self.subdivision = subdivision
        label = f"{country}-{subdivision}" if subdivision else country
        super().__init__(f"Unsupported region: {label}")

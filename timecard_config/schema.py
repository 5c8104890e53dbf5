"""
TimecardConfigurationSet schema.

Defines the human-authored, reviewable source artifact for timecard
configuration.  YAML fragments are parsed into these types by the loader,
composed by the assembler, and compiled into a CompiledTimecardConfig by
the compiler.

Key distinction:
  TimecardConfigurationSet = source artifact (human-authored, versioned)
  CompiledTimecardConfig   = runtime artifact (validated, frozen, engine types)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum, unique


@unique
class ConfigStatus(str, Enum):
    """Lifecycle status for a configuration set."""

    DRAFT = "draft"
    REVIEWED = "reviewed"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"


# ---------------------------------------------------------------------------
# Labour codes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LabourCodeDef:
    """An official labour code shown to users."""

    name: str
    code: str


@dataclass(frozen=True)
class CategoryMappingDef:
    """Labour code -> pay category (category is the PayCategory value)."""

    code: str
    category: str


# ---------------------------------------------------------------------------
# Overtime
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PolicyPresetDef:
    """Named overtime threshold preset.  Caps are decimal strings or None."""

    name: str
    description: str = ""
    daily_regular_cap: str | None = None
    daily_ot_cap: str | None = None
    daily_dt_cap: str | None = None
    weekly_regular_cap: str | None = None
    weekly_rest_day_ot: bool = True
    daily_ot_report_cap: str | None = None


@dataclass(frozen=True)
class RegionPolicyDef:
    """Region code (``CA-BC``) or country code (``CA``) -> preset name."""

    region: str
    preset: str


# ---------------------------------------------------------------------------
# Holidays
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HolidayRuleDef:
    """
    Declarative holiday rule.

    ``applies_to`` is a country code (national rule) or a region code
    (regional addition).  ``weekday`` is the English day name.
    """

    name: str
    kind: str
    applies_to: str
    month: int | None = None
    day: int | None = None
    weekday: str | None = None
    occurrence: int | None = None
    offset_days: int = 0
    observed: bool = False
    from_year: int | None = None
    until_year: int | None = None


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SubdivisionDef:
    code: str
    name: str


@dataclass(frozen=True)
class CountryDef:
    code: str
    name: str
    default_subdivision: str
    subdivisions: tuple[SubdivisionDef, ...] = ()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemoteHolidaySourceDef:
    """Remote public-holiday endpoint."""

    enabled: bool = True
    base_url: str = "https://date.nager.at/api/v3"
    timeout_seconds: float = 10.0
    filter_subdivisions: bool = True


@dataclass(frozen=True)
class OnCallDef:
    enabled: bool = True
    weekly_stipend: str = "300"
    per_entry_amount: str = "50"
    currency: str = "CAD"


@dataclass(frozen=True)
class PayPeriodDef:
    """``scheme`` is ``thursday_biweekly`` or ``anchored_biweekly``."""

    scheme: str = "thursday_biweekly"
    anchor_payday: date | None = None


@dataclass(frozen=True)
class EntryDefaultsDef:
    """Shape of auto-inserted holiday entries."""

    holiday_hours: str = "8"
    holiday_job: str = "Stat"
    holiday_code: str = "H"


# ---------------------------------------------------------------------------
# Configuration set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimecardConfigurationSet:
    """The complete, human-authored source artifact."""

    config_id: str
    version: int
    checksum: str
    status: ConfigStatus = ConfigStatus.DRAFT
    default_region: str = "CA-BC"
    week_start: str = "sunday"
    auto_holidays: bool = True
    entry_defaults: EntryDefaultsDef = field(default_factory=EntryDefaultsDef)
    labour_codes: tuple[LabourCodeDef, ...] = ()
    category_mappings: tuple[CategoryMappingDef, ...] = ()
    policy_presets: tuple[PolicyPresetDef, ...] = ()
    region_policies: tuple[RegionPolicyDef, ...] = ()
    default_preset: str = ""
    holiday_rules: tuple[HolidayRuleDef, ...] = ()
    countries: tuple[CountryDef, ...] = ()
    remote_source: RemoteHolidaySourceDef = field(default_factory=RemoteHolidaySourceDef)
    on_call: OnCallDef = field(default_factory=OnCallDef)
    pay_period: PayPeriodDef = field(default_factory=PayPeriodDef)


WEEKDAYS: dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

PAY_PERIOD_SCHEMES = frozenset({"thursday_biweekly", "anchored_biweekly"})

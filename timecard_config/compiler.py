"""
Configuration Compiler -- TimecardConfigurationSet -> CompiledTimecardConfig.

The compiler turns the validated source artifact into the frozen runtime
artifact the services accept: engine types (``LabourCodeCategoryMap``,
``PolicyTable``, ``HolidayRuleBook``), the region catalogue and the
service settings.  Anything the engines would reject at construction is
collected as a ``CompilationError`` and reported together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from timecard_config.schema import (
    WEEKDAYS,
    ConfigStatus,
    HolidayRuleDef,
    PolicyPresetDef,
    TimecardConfigurationSet,
)
from timecard_engines.categorization import (
    HolidayEntryDefaults,
    LabourCode,
    LabourCodeCategoryMap,
    OnCallSettings,
)
from timecard_engines.holiday_calendar import HolidayKind, HolidayRule, HolidayRuleBook
from timecard_engines.overtime import OvertimePolicy, PolicyTable
from timecard_engines.pay_periods import (
    AnchoredBiweeklyPeriods,
    PayPeriodProvider,
    ThursdayBiweeklyPeriods,
)
from timecard_kernel.domain.regions import CountryInfo, RegionCatalogue
from timecard_kernel.domain.values import PayCategory, Region
from timecard_kernel.exceptions import TimecardKernelError


# ---------------------------------------------------------------------------
# Compiled types (frozen, runtime-ready)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemoteSourceSettings:
    """Remote public-holiday endpoint settings."""

    enabled: bool
    base_url: str
    timeout_seconds: float
    filter_subdivisions: bool = True


@dataclass(frozen=True)
class PayPeriodSettings:
    scheme: str
    anchor_payday: date | None = None

    def provider(self) -> PayPeriodProvider:
        if self.scheme == "anchored_biweekly":
            if self.anchor_payday is None:
                return AnchoredBiweeklyPeriods()
            return AnchoredBiweeklyPeriods(self.anchor_payday)
        return ThursdayBiweeklyPeriods()


@dataclass(frozen=True)
class CompiledTimecardConfig:
    """Machine-validated, frozen runtime artifact.

    The ONLY configuration object the services accept.

    Attributes:
        config_id: Source configuration identifier
        config_version: Source configuration version
        checksum: Matches source ConfigurationSet
        status: Lifecycle status of the source set
        default_region: Region used until one is selected
        week_start: ``date.weekday()`` number of the first day of a week
        auto_holidays: Insert holiday entries when preloading a range
        labour_codes: Official labour codes, in display order
        code_map: Validated code -> category table
        policy_table: Overtime presets and region table
        holiday_rules: Holiday rule book
        regions: Supported countries and subdivisions
        remote_source: Remote holiday endpoint
        on_call: On-call stipend settings
        holiday_defaults: Shape of auto-inserted holiday entries
        pay_periods: Pay-period scheme
    """

    config_id: str
    config_version: int
    checksum: str
    status: ConfigStatus
    default_region: Region
    week_start: int
    auto_holidays: bool
    labour_codes: tuple[LabourCode, ...]
    code_map: LabourCodeCategoryMap
    policy_table: PolicyTable
    holiday_rules: HolidayRuleBook
    regions: RegionCatalogue
    remote_source: RemoteSourceSettings
    on_call: OnCallSettings
    holiday_defaults: HolidayEntryDefaults
    pay_periods: PayPeriodSettings = field(
        default_factory=lambda: PayPeriodSettings("thursday_biweekly")
    )


# ---------------------------------------------------------------------------
# Compilation errors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompilationError:
    """A single compilation error or warning."""

    category: str
    message: str
    severity: str = "error"


class CompilationFailedError(TimecardKernelError):
    """Compilation produced errors that prevent creating a valid config."""

    code: str = "COMPILATION_FAILED"

    def __init__(self, errors: list[CompilationError]):
        self.errors = errors
        messages = [f"  [{e.category}] {e.message}" for e in errors if e.severity == "error"]
        super().__init__(
            f"Compilation failed with {len(messages)} error(s):\n"
            + "\n".join(messages)
        )


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _cap(value: str | None) -> Decimal | None:
    return None if value is None else Decimal(value)


def _compile_preset(preset: PolicyPresetDef) -> OvertimePolicy:
    return OvertimePolicy(
        daily_regular_cap=_cap(preset.daily_regular_cap),
        daily_ot_cap=_cap(preset.daily_ot_cap),
        daily_dt_cap=_cap(preset.daily_dt_cap),
        weekly_regular_cap=_cap(preset.weekly_regular_cap),
        weekly_rest_day_ot=preset.weekly_rest_day_ot,
        daily_ot_report_cap=_cap(preset.daily_ot_report_cap),
    )


def _compile_rule(rule: HolidayRuleDef) -> HolidayRule:
    return HolidayRule(
        name=rule.name,
        kind=HolidayKind(rule.kind),
        month=rule.month,
        day=rule.day,
        weekday=WEEKDAYS[rule.weekday.lower()] if rule.weekday else None,
        occurrence=rule.occurrence,
        offset_days=rule.offset_days,
        observed=rule.observed,
        from_year=rule.from_year,
        until_year=rule.until_year,
    )


def _compile_rule_book(
    config: TimecardConfigurationSet, errors: list[CompilationError]
) -> HolidayRuleBook:
    national: dict[str, list[HolidayRule]] = {}
    regional: dict[str, list[HolidayRule]] = {}
    for rule_def in config.holiday_rules:
        try:
            rule = _compile_rule(rule_def)
        except (KeyError, ValueError) as exc:
            errors.append(CompilationError("holidays", f"{rule_def.name}: {exc}"))
            continue
        target = regional if "-" in rule_def.applies_to else national
        target.setdefault(rule_def.applies_to, []).append(rule)
    return HolidayRuleBook(
        national={k: tuple(v) for k, v in national.items()},
        regional={k: tuple(v) for k, v in regional.items()},
    )


def _compile_regions(
    config: TimecardConfigurationSet, errors: list[CompilationError]
) -> RegionCatalogue | None:
    country, _, subdivision = config.default_region.partition("-")
    try:
        countries = {
            c.code: CountryInfo(
                code=c.code,
                name=c.name,
                default_subdivision=c.default_subdivision,
                subdivisions={s.code: s.name for s in c.subdivisions},
            )
            for c in config.countries
        }
        return RegionCatalogue(countries, Region(country, subdivision))
    except TimecardKernelError as exc:
        errors.append(CompilationError("regions", str(exc)))
        return None


def compile_timecard_config(config: TimecardConfigurationSet) -> CompiledTimecardConfig:
    """Compile a TimecardConfigurationSet into a CompiledTimecardConfig.

    Raises:
        CompilationFailedError: If any part cannot be built.
    """
    errors: list[CompilationError] = []

    # 1. Labour codes and the category table
    labour_codes = tuple(LabourCode(lc.name, lc.code) for lc in config.labour_codes)
    code_map: LabourCodeCategoryMap | None = None
    try:
        code_map = LabourCodeCategoryMap(
            {m.code: PayCategory(m.category) for m in config.category_mappings},
            on_call_enabled=config.on_call.enabled,
        )
    except ValueError as exc:
        errors.append(CompilationError("labour_codes", str(exc)))

    # 2. Overtime presets
    presets: dict[str, OvertimePolicy] = {}
    for preset in config.policy_presets:
        try:
            presets[preset.name] = _compile_preset(preset)
        except (ArithmeticError, TimecardKernelError) as exc:
            errors.append(CompilationError("overtime", f"{preset.name}: {exc}"))
    policy_table: PolicyTable | None = None
    try:
        policy_table = PolicyTable(
            presets=presets,
            region_presets={r.region: r.preset for r in config.region_policies},
            default_preset=config.default_preset,
        )
    except TimecardKernelError as exc:
        errors.append(CompilationError("overtime", str(exc)))

    # 3. Holidays and regions
    rule_book = _compile_rule_book(config, errors)
    regions = _compile_regions(config, errors)

    actual_errors = [e for e in errors if e.severity == "error"]
    if actual_errors:
        raise CompilationFailedError(actual_errors)

    defaults = config.entry_defaults
    return CompiledTimecardConfig(
        config_id=config.config_id,
        config_version=config.version,
        checksum=config.checksum,
        status=config.status,
        default_region=regions.default_region,
        week_start=WEEKDAYS[config.week_start],
        auto_holidays=config.auto_holidays,
        labour_codes=labour_codes,
        code_map=code_map,
        policy_table=policy_table,
        holiday_rules=rule_book,
        regions=regions,
        remote_source=RemoteSourceSettings(
            enabled=config.remote_source.enabled,
            base_url=config.remote_source.base_url,
            timeout_seconds=config.remote_source.timeout_seconds,
            filter_subdivisions=config.remote_source.filter_subdivisions,
        ),
        on_call=OnCallSettings(
            enabled=config.on_call.enabled,
            weekly_stipend=Decimal(config.on_call.weekly_stipend),
            per_entry_amount=Decimal(config.on_call.per_entry_amount),
            currency=config.on_call.currency,
        ),
        holiday_defaults=HolidayEntryDefaults(
            hours=Decimal(defaults.holiday_hours),
            job=defaults.holiday_job,
            code=defaults.holiday_code,
        ),
        pay_periods=PayPeriodSettings(
            scheme=config.pay_period.scheme,
            anchor_payday=config.pay_period.anchor_payday,
        ),
    )

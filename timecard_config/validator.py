"""
Configuration Validator (``timecard_config.validator``).

Responsibility
--------------
Validates a ``TimecardConfigurationSet`` before compilation, so that the
engines are only ever built from a structurally sound table.

Architecture position
---------------------
**Config layer** -- build-time validation.  Called by
``timecard_config.get_active_config()`` after assembly and before
compilation.

Invariants enforced
-------------------
* Labour-code uniqueness -- an official code or a category mapping may
  appear only once (case/whitespace-insensitive).
* Category names must be ``PayCategory`` values.
* Overtime presets -- unique names, decimal non-negative caps, DT
  threshold not below the regular cap; every region row and the default
  preset must name a defined preset.
* Holiday rules -- known kind, weekday names, the fields the kind needs.
* Regions -- default subdivisions and the default region must exist.

Failure modes
-------------
* Validation errors (``ConfigValidationResult.errors``)  -> configuration
  MUST NOT be compiled.
* Validation warnings (``ConfigValidationResult.warnings``)  ->
  configuration may be compiled but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from timecard_config.schema import (
    PAY_PERIOD_SCHEMES,
    WEEKDAYS,
    PolicyPresetDef,
    TimecardConfigurationSet,
)
from timecard_engines.holiday_calendar import HolidayKind
from timecard_kernel.domain.values import PayCategory

_REQUIRED_RULE_FIELDS: dict[str, tuple[str, ...]] = {
    HolidayKind.FIXED.value: ("month", "day"),
    HolidayKind.EASTER.value: (),
    HolidayKind.NTH_WEEKDAY.value: ("month", "weekday", "occurrence"),
    HolidayKind.LAST_WEEKDAY_ON_OR_BEFORE.value: ("month", "day", "weekday"),
    HolidayKind.LAST_WEEKDAY_OF_MONTH.value: ("month", "weekday"),
}


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block compilation but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: TimecardConfigurationSet) -> ConfigValidationResult:
    """
    Validate a configuration set.

    Postconditions:
        - Returns a ``ConfigValidationResult`` with errors and warnings.
        - A configuration with errors MUST NOT be compiled.
    """
    result = ConfigValidationResult()

    _validate_labour_codes(config, result)
    _validate_category_mappings(config, result)
    _validate_presets(config, result)
    _validate_region_policies(config, result)
    _validate_holiday_rules(config, result)
    _validate_regions(config, result)
    _validate_services(config, result)
    _validate_root(config, result)

    return result


def _decimal(value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(value) from None


def _validate_labour_codes(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    """Official codes must be unique and non-blank."""
    seen: set[str] = set()
    for labour_code in config.labour_codes:
        code = labour_code.code.strip().upper()
        if not code:
            result.add_error(f"Labour code '{labour_code.name}' has a blank code")
            continue
        if code in seen:
            result.add_error(f"Duplicate labour code: {code}")
        seen.add(code)


def _validate_category_mappings(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    """Each code maps to exactly one known category."""
    valid = {c.value for c in PayCategory}
    seen: dict[str, str] = {}
    for mapping in config.category_mappings:
        code = mapping.code.strip().upper()
        if mapping.category not in valid:
            result.add_error(
                f"Code '{code}' maps to unknown category '{mapping.category}'"
            )
        if code in seen:
            result.add_error(
                f"Duplicate category mapping for code '{code}' "
                f"({seen[code]} and {mapping.category})"
            )
        seen[code] = mapping.category

    holiday_code = config.entry_defaults.holiday_code.strip().upper()
    if seen.get(holiday_code) != PayCategory.STAT.value:
        result.add_warning(
            f"Holiday entry code '{holiday_code}' is not mapped to the stat category"
        )


def _validate_preset_tiers(
    preset: PolicyPresetDef, result: ConfigValidationResult
) -> None:
    caps: dict[str, Decimal | None] = {}
    for name in (
        "daily_regular_cap",
        "daily_ot_cap",
        "daily_dt_cap",
        "weekly_regular_cap",
        "daily_ot_report_cap",
    ):
        try:
            caps[name] = _decimal(getattr(preset, name))
        except ValueError:
            result.add_error(
                f"Preset '{preset.name}': {name} is not a number "
                f"({getattr(preset, name)!r})"
            )
            return
        if caps[name] is not None and caps[name] < 0:
            result.add_error(f"Preset '{preset.name}': {name} is negative")

    threshold = caps["daily_dt_cap"] if caps["daily_dt_cap"] is not None else caps["daily_ot_cap"]
    regular = caps["daily_regular_cap"]
    if threshold is not None and regular is not None and threshold < regular:
        result.add_error(
            f"Preset '{preset.name}': DT threshold {threshold} is below "
            f"the daily regular cap {regular}"
        )


def _validate_presets(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    """Preset names are unique and tiers are consistent."""
    seen: set[str] = set()
    for preset in config.policy_presets:
        if preset.name in seen:
            result.add_error(f"Duplicate overtime preset: {preset.name}")
        seen.add(preset.name)
        _validate_preset_tiers(preset, result)

    if not config.default_preset:
        result.add_error("overtime.yaml declares no default_preset")
    elif config.default_preset not in seen:
        result.add_error(f"Default preset '{config.default_preset}' is not defined")


def _validate_region_policies(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    """Region rows must point at defined presets."""
    presets = {p.name for p in config.policy_presets}
    for row in config.region_policies:
        if row.preset not in presets:
            result.add_error(
                f"Region '{row.region}' uses unknown preset '{row.preset}'"
            )


def _validate_holiday_rules(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    """Kinds, weekdays and required fields of every holiday rule."""
    known_scopes = {c.code for c in config.countries} | {
        f"{c.code}-{s.code}" for c in config.countries for s in c.subdivisions
    }
    for rule in config.holiday_rules:
        label = f"Holiday '{rule.name}' ({rule.applies_to})"
        required = _REQUIRED_RULE_FIELDS.get(rule.kind)
        if required is None:
            result.add_error(f"{label}: unknown kind '{rule.kind}'")
            continue
        for name in required:
            if getattr(rule, name) is None:
                result.add_error(f"{label}: kind '{rule.kind}' requires {name}")
        if rule.weekday is not None and rule.weekday.lower() not in WEEKDAYS:
            result.add_error(f"{label}: unknown weekday '{rule.weekday}'")
        if rule.month is not None and not 1 <= rule.month <= 12:
            result.add_error(f"{label}: month {rule.month} out of range")
        if rule.occurrence is not None and not 1 <= rule.occurrence <= 5:
            result.add_error(f"{label}: occurrence {rule.occurrence} out of range")
        if (
            rule.from_year is not None
            and rule.until_year is not None
            and rule.until_year < rule.from_year
        ):
            result.add_error(f"{label}: until_year precedes from_year")
        if known_scopes and rule.applies_to not in known_scopes:
            result.add_warning(f"{label}: applies to an unknown region")


def _validate_regions(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    """Default subdivisions and the default region must be declared."""
    if not config.countries:
        result.add_error("regions.yaml declares no countries")
        return
    for country in config.countries:
        codes = {s.code for s in country.subdivisions}
        if country.default_subdivision not in codes:
            result.add_error(
                f"Country '{country.code}' default subdivision "
                f"'{country.default_subdivision}' is not declared"
            )

    country_code, _, subdivision = config.default_region.partition("-")
    country = next((c for c in config.countries if c.code == country_code), None)
    if country is None or subdivision not in {s.code for s in country.subdivisions}:
        result.add_error(f"Default region '{config.default_region}' is not declared")


def _validate_services(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    if config.remote_source.timeout_seconds <= 0:
        result.add_error("Remote holiday source timeout must be positive")
    for name in ("weekly_stipend", "per_entry_amount"):
        try:
            amount = _decimal(getattr(config.on_call, name))
        except ValueError:
            result.add_error(f"On-call {name} is not a number")
            continue
        if amount is not None and amount < 0:
            result.add_error(f"On-call {name} is negative")
    scheme = config.pay_period.scheme
    if scheme not in PAY_PERIOD_SCHEMES:
        result.add_error(f"Unknown pay period scheme '{scheme}'")
    anchor = config.pay_period.anchor_payday
    if scheme == "anchored_biweekly" and anchor is not None and anchor.weekday() != 4:
        result.add_error(f"Anchor payday {anchor} is not a Friday")


def _validate_root(
    config: TimecardConfigurationSet, result: ConfigValidationResult
) -> None:
    if config.week_start not in WEEKDAYS:
        result.add_error(f"Unknown week_start '{config.week_start}'")
    try:
        hours = _decimal(config.entry_defaults.holiday_hours)
    except ValueError:
        result.add_error("Holiday entry hours is not a number")
        return
    if hours is None or hours <= 0:
        result.add_error("Holiday entry hours must be positive")

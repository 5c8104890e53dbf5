"""
timecard_config.assembler -- composes YAML fragments into one ConfigurationSet.

Responsibility:
    Humans edit small, well-owned YAML fragments.  This module composes
    them into a single ``TimecardConfigurationSet``.  Runtime only ever
    sees the final ``CompiledTimecardConfig``.

Fragment structure::

    sets/default/
    +-- root.yaml          # Identity, status, default region, entry defaults
    +-- labour_codes.yaml  # Official codes and the code -> category table
    +-- overtime.yaml      # Policy presets and the region -> preset table
    +-- holidays.yaml      # Holiday rules per country and per region
    +-- regions.yaml       # Supported countries and subdivisions
    +-- services.yaml      # Remote holiday source, on-call, pay periods

Invariants enforced:
    - ``root.yaml`` must exist in every fragment directory.
    - A deterministic SHA-256 checksum is computed over all assembled
      fragment data.
    - All parsed structures are immutable frozen dataclasses.

Failure modes:
    - ``AssemblyError`` -- directory or ``root.yaml`` missing, or a
      mandatory field cannot be parsed.
    - ``yaml.YAMLError`` (propagated from loader) -- invalid YAML syntax.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from timecard_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_category_mapping,
    parse_country,
    parse_entry_defaults,
    parse_holiday_rule,
    parse_labour_code,
    parse_on_call,
    parse_pay_period,
    parse_policy_preset,
    parse_region_policy,
    parse_remote_source,
)
from timecard_config.schema import ConfigStatus, HolidayRuleDef, TimecardConfigurationSet
from timecard_kernel.exceptions import TimecardKernelError


class AssemblyError(TimecardKernelError):
    """Error during fragment assembly.

    Contract:
        Raised when a fragment directory is missing, ``root.yaml`` is
        absent, or a required field within fragments cannot be parsed.
    """

    code: str = "ASSEMBLY_FAILED"


def _optional_fragment(fragment_dir: Path, name: str) -> dict[str, Any]:
    path = fragment_dir / name
    if not path.exists():
        return {}
    return load_yaml_file(path)


def _holiday_rules(data: dict[str, Any]) -> tuple[HolidayRuleDef, ...]:
    rules: list[HolidayRuleDef] = []
    for section in ("national", "regional"):
        for applies_to, entries in (data.get(section) or {}).items():
            for entry in entries or ():
                rules.append(parse_holiday_rule(entry, str(applies_to)))
    return tuple(rules)


def assemble_from_directory(fragment_dir: Path) -> TimecardConfigurationSet:
    """Compose fragments from a directory into one ConfigurationSet.

    Build/test tooling only.  Runtime never calls this directly; it is
    invoked by ``get_active_config()`` during the load phase.

    Raises:
        AssemblyError: If required fragments are missing or malformed.
    """
    if not fragment_dir.is_dir():
        raise AssemblyError(f"Fragment directory not found: {fragment_dir}")

    root_path = fragment_dir / "root.yaml"
    if not root_path.exists():
        raise AssemblyError(f"root.yaml not found in {fragment_dir}")
    root_data = load_yaml_file(root_path)

    codes_data = _optional_fragment(fragment_dir, "labour_codes.yaml")
    overtime_data = _optional_fragment(fragment_dir, "overtime.yaml")
    holidays_data = _optional_fragment(fragment_dir, "holidays.yaml")
    regions_data = _optional_fragment(fragment_dir, "regions.yaml")
    services_data = _optional_fragment(fragment_dir, "services.yaml")

    try:
        labour_codes = tuple(
            parse_labour_code(lc) for lc in codes_data.get("official_codes", [])
        )
        category_mappings = tuple(
            parse_category_mapping(code, category)
            for category, codes in (codes_data.get("categories") or {}).items()
            for code in codes or ()
        )
        presets = tuple(
            parse_policy_preset(p) for p in overtime_data.get("presets", [])
        )
        region_policies = tuple(
            parse_region_policy(region, preset)
            for region, preset in (overtime_data.get("regions") or {}).items()
        )
        holiday_rules = _holiday_rules(holidays_data)
        countries = tuple(parse_country(c) for c in regions_data.get("countries", []))
        remote_source = parse_remote_source(services_data.get("remote_holidays", {}))
        on_call = parse_on_call(services_data.get("on_call", {}))
        pay_period = parse_pay_period(services_data.get("pay_period", {}))
        entry_defaults = parse_entry_defaults(root_data.get("entry_defaults", {}))
        config_id = root_data["config_id"]
        status = ConfigStatus(root_data.get("status", "draft"))
    except (KeyError, ValueError) as exc:
        raise AssemblyError(
            f"Malformed configuration in {fragment_dir}: {exc!r}"
        ) from exc

    all_data: dict[str, Any] = {
        "root": root_data,
        "labour_codes": codes_data,
        "overtime": overtime_data,
        "holidays": holidays_data,
        "regions": regions_data,
        "services": services_data,
    }
    checksum = compute_checksum(all_data)

    # INVARIANT: checksum must be a non-empty SHA-256 hex digest.
    assert checksum and len(checksum) == 64, (
        f"Checksum must be a 64-char SHA-256 hex digest, got {checksum!r}"
    )

    return TimecardConfigurationSet(
        config_id=config_id,
        version=root_data.get("version", 1),
        checksum=checksum,
        status=status,
        default_region=str(root_data.get("default_region", "CA-BC")).upper(),
        week_start=str(root_data.get("week_start", "sunday")).lower(),
        auto_holidays=bool(root_data.get("auto_holidays", True)),
        entry_defaults=entry_defaults,
        labour_codes=labour_codes,
        category_mappings=category_mappings,
        policy_presets=presets,
        region_policies=region_policies,
        default_preset=overtime_data.get("default_preset", ""),
        holiday_rules=holiday_rules,
        countries=countries,
        remote_source=remote_source,
        on_call=on_call,
        pay_period=pay_period,
    )

"""
Configuration Loader (``timecard_config.loader``).

Responsibility
--------------
Loads individual YAML fragment files and parses them into typed
``timecard_config.schema`` dataclass instances.  This is **build/test
tooling only** -- no service should call this directly.  The single public
entry point for runtime config is ``timecard_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  The loader is consumed by
``timecard_config.assembler`` during configuration set assembly.  It has
no dependency on kernel, engines or services.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* Threshold values are kept as decimal strings so no float rounding
  reaches the engines.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Invalid date format  -> ``ValueError`` from ``date.fromisoformat``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from timecard_config.schema import (
    CategoryMappingDef,
    CountryDef,
    EntryDefaultsDef,
    HolidayRuleDef,
    LabourCodeDef,
    OnCallDef,
    PayPeriodDef,
    PolicyPresetDef,
    RegionPolicyDef,
    RemoteHolidaySourceDef,
    SubdivisionDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def _hours(value: Any) -> str | None:
    """YAML number or string -> decimal string; None stays None."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Expected an hour value, got {value!r}")
    return str(value)


def parse_entry_defaults(data: dict[str, Any]) -> EntryDefaultsDef:
    return EntryDefaultsDef(
        holiday_hours=_hours(data.get("holiday_hours", 8)),
        holiday_job=data.get("holiday_job", "Stat"),
        holiday_code=data.get("holiday_code", "H"),
    )


def parse_labour_code(data: dict[str, Any]) -> LabourCodeDef:
    """Parse a ``LabourCodeDef``; both ``name`` and ``code`` are required."""
    return LabourCodeDef(name=data["name"], code=str(data["code"]))


def parse_category_mapping(code: Any, category: Any) -> CategoryMappingDef:
    return CategoryMappingDef(code=str(code), category=str(category))


def parse_policy_preset(data: dict[str, Any]) -> PolicyPresetDef:
    """
    Parse a ``PolicyPresetDef`` from a dict.

    Preconditions:
        - ``data`` must contain ``name``.  Omitted caps mean "not enforced".
    Raises:
        KeyError: if ``name`` is missing.
        ValueError: if a cap is a boolean.
    """
    return PolicyPresetDef(
        name=data["name"],
        description=data.get("description", ""),
        daily_regular_cap=_hours(data.get("daily_regular_cap")),
        daily_ot_cap=_hours(data.get("daily_ot_cap")),
        daily_dt_cap=_hours(data.get("daily_dt_cap")),
        weekly_regular_cap=_hours(data.get("weekly_regular_cap")),
        weekly_rest_day_ot=bool(data.get("weekly_rest_day_ot", True)),
        daily_ot_report_cap=_hours(data.get("daily_ot_report_cap")),
    )


def parse_region_policy(region: Any, preset: Any) -> RegionPolicyDef:
    return RegionPolicyDef(region=str(region).upper(), preset=str(preset))


def parse_holiday_rule(data: dict[str, Any], applies_to: str) -> HolidayRuleDef:
    """
    Parse a ``HolidayRuleDef`` from a dict.

    ``applies_to`` comes from the enclosing section of ``holidays.yaml``
    (a country or a region code).
    """
    return HolidayRuleDef(
        name=data["name"],
        kind=data["kind"],
        applies_to=applies_to.upper(),
        month=data.get("month"),
        day=data.get("day"),
        weekday=data.get("weekday"),
        occurrence=data.get("occurrence"),
        offset_days=data.get("offset_days", 0),
        observed=bool(data.get("observed", False)),
        from_year=data.get("from_year"),
        until_year=data.get("until_year"),
    )


def parse_country(data: dict[str, Any]) -> CountryDef:
    """Parse a ``CountryDef`` with its subdivisions (``code: name`` map)."""
    subdivisions = tuple(
        SubdivisionDef(code=str(code).upper(), name=name)
        for code, name in data.get("subdivisions", {}).items()
    )
    return CountryDef(
        code=str(data["code"]).upper(),
        name=data["name"],
        default_subdivision=str(data["default_subdivision"]).upper(),
        subdivisions=subdivisions,
    )


def parse_remote_source(data: dict[str, Any]) -> RemoteHolidaySourceDef:
    return RemoteHolidaySourceDef(
        enabled=bool(data.get("enabled", True)),
        base_url=data.get("base_url", "https://date.nager.at/api/v3").rstrip("/"),
        timeout_seconds=float(data.get("timeout_seconds", 10)),
        filter_subdivisions=bool(data.get("filter_subdivisions", True)),
    )


def parse_on_call(data: dict[str, Any]) -> OnCallDef:
    return OnCallDef(
        enabled=bool(data.get("enabled", True)),
        weekly_stipend=str(data.get("weekly_stipend", "300")),
        per_entry_amount=str(data.get("per_entry_amount", "50")),
        currency=data.get("currency", "CAD"),
    )


def parse_pay_period(data: dict[str, Any]) -> PayPeriodDef:
    anchor = data.get("anchor_payday")
    return PayPeriodDef(
        scheme=data.get("scheme", "thursday_biweekly"),
        anchor_payday=parse_date(anchor) if anchor else None,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums (deterministic).
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

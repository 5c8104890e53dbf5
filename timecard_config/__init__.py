"""
timecard_config -- single public entrypoint for timecard configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component may read configuration
    files or environment variables directly.  Returns a
    ``CompiledTimecardConfig`` -- the sole runtime artifact.  YAML loading
    is internal tooling and never exposed to callers.

Architecture position:
    Configuration -- YAML-driven pipeline (assemble, validate, compile).
    Sits above ``timecard_kernel`` and ``timecard_engines`` and below
    ``timecard_services``.  The kernel and engines MUST NEVER import from
    ``timecard_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - ``TIMECARD_CONFIG_SET`` is read here and nowhere else.
    - Deterministic compilation: same YAML fragments always produce the
      same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration set does not exist.
    - ``AssemblyError`` -- a fragment is malformed.
    - ``ValueError`` -- validation failures.
    - ``CompilationFailedError`` -- engine types could not be built.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``TIMECARD_CONFIG_TRACE`` log entry containing the config_id, version,
    checksum and table sizes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from timecard_config.assembler import AssemblyError, assemble_from_directory
from timecard_config.compiler import (
    CompilationFailedError,
    CompiledTimecardConfig,
    compile_timecard_config,
)
from timecard_config.validator import validate_configuration

_logger = logging.getLogger("timecard_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
_DEFAULT_CONFIG_SET = "default"
CONFIG_SET_ENV_VAR = "TIMECARD_CONFIG_SET"


def get_active_config(
    config_set: str | None = None,
    config_dir: Path | None = None,
) -> CompiledTimecardConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_set: Name of the set directory under ``config_dir``.
            Defaults to ``$TIMECARD_CONFIG_SET`` or ``"default"``.
        config_dir: Override path to configuration sets directory.
            Defaults to timecard_config/sets/.

    Returns:
        CompiledTimecardConfig -- the sole runtime artifact.

    Raises:
        FileNotFoundError: If the configuration set is not found.
        AssemblyError: If a fragment is malformed.
        ValueError: If configuration validation fails.
        CompilationFailedError: If compilation produces errors.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    name = config_set or os.environ.get(CONFIG_SET_ENV_VAR) or _DEFAULT_CONFIG_SET
    fragment_dir = sets_dir / name
    if not (fragment_dir / "root.yaml").exists():
        raise FileNotFoundError(
            f"No configuration set '{name}' found in {sets_dir}"
        )

    source = assemble_from_directory(fragment_dir)

    validation = validate_configuration(source)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"detail": warning})
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    compiled = compile_timecard_config(source)

    # INVARIANT: compiled checksum must match assembled source checksum.
    assert compiled.checksum == source.checksum, (
        f"Checksum drift: compiled={compiled.checksum!r} != source={source.checksum!r}"
    )

    _logger.info(
        "TIMECARD_CONFIG_TRACE",
        extra={
            "trace_type": "TIMECARD_CONFIG_TRACE",
            "config_set_id": compiled.config_id,
            "config_set_version": compiled.config_version,
            "checksum": compiled.checksum,
            "default_region": compiled.default_region.code,
            "labour_code_count": len(compiled.labour_codes),
            "preset_count": len(compiled.policy_table.presets),
            "holiday_rule_count": compiled.holiday_rules.rule_count(),
        },
    )

    return compiled


__all__ = [
    "AssemblyError",
    "CompilationFailedError",
    "CompiledTimecardConfig",
    "get_active_config",
]

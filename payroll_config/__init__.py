"""
payroll_config -- versioned regulatory rule sets for the payroll engines.

Responsibility:
    Provides the rule-set schema (``RegulatoryConstants``, ``TaxBracket``),
    YAML loading and validation, and ``get_active_rule_set()`` which picks
    the rule set that governs a jurisdiction on a given date.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_engines`` / ``payroll_batch``.  Engines never read files;
    they receive a ``RegulatoryConstants`` instance by injection.

Invariants enforced:
    - Every rule set returned from this package has passed validation.
    - Rule sets are frozen; a payroll run holds one instance for its whole
      duration so every payslip in the run uses the same rules.
    - Deterministic selection: same directory, jurisdiction and date always
      select the same rule set.

Failure modes:
    - ``RuleSetNotFoundError`` -- no rule set covers the jurisdiction/date.
    - ``ConfigurationError`` -- a candidate rule set is malformed.

Audit relevance:
    Every successful ``get_active_rule_set()`` call emits a
    ``PAYROLL_RULE_SET_TRACE`` log entry with the rule-set id, version and
    checksum, tying every payslip back to the exact rules used.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from payroll_config.lifecycle import RuleSetStatus
from payroll_config.loader import compute_checksum, load_rule_set, parse_rule_set
from payroll_config.schema import RegulatoryConstants, TaxBracket
from payroll_config.validator import (
    ConfigValidationResult,
    ensure_valid,
    ensure_valid_brackets,
    validate_brackets,
    validate_constants,
)
from payroll_kernel.exceptions import RuleSetNotFoundError
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

# Bundled rule sets
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "ConfigValidationResult",
    "RegulatoryConstants",
    "RuleSetStatus",
    "TaxBracket",
    "compute_checksum",
    "ensure_valid",
    "ensure_valid_brackets",
    "get_active_rule_set",
    "load_rule_set",
    "parse_rule_set",
    "validate_brackets",
    "validate_constants",
]


def get_active_rule_set(
    jurisdiction: str,
    as_of_date: date,
    config_dir: Path | None = None,
) -> RegulatoryConstants:
    """Return the rule set governing ``jurisdiction`` on ``as_of_date``.

    Scans every ``*.yaml`` file in the directory, keeps those whose
    jurisdiction matches and whose effective range covers the date, then
    prefers PUBLISHED rule sets and, among those, the highest version.

    Args:
        jurisdiction: Jurisdiction code, e.g. ``"TN"``.
        as_of_date: Date the payroll period is governed by (usually the
            period end).
        config_dir: Override path to the rule-set directory.  Defaults to
            the bundled ``payroll_config/sets/``.

    Raises:
        RuleSetNotFoundError: If no rule set matches.
        ConfigurationError: If a candidate file is malformed.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR

    candidates: list[RegulatoryConstants] = []
    if sets_dir.is_dir():
        for path in sorted(sets_dir.glob("*.yaml")):
            constants = load_rule_set(path)
            if constants.jurisdiction == jurisdiction and constants.is_effective(as_of_date):
                candidates.append(constants)

    if not candidates:
        raise RuleSetNotFoundError(jurisdiction, as_of_date.isoformat(), str(sets_dir))

    published = [c for c in candidates if c.status == RuleSetStatus.PUBLISHED]
    pool = published or candidates
    selected = max(pool, key=lambda c: c.version)

    _logger.info(
        "PAYROLL_RULE_SET_TRACE",
        extra={
            "trace_type": "PAYROLL_RULE_SET_TRACE",
            "rule_set_id": selected.rule_set_id,
            "rule_set_version": selected.version,
            "checksum": selected.checksum,
            "jurisdiction": jurisdiction,
            "as_of_date": as_of_date.isoformat(),
            "candidate_count": len(candidates),
        },
    )
    return selected

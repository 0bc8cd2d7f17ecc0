"""
Rule-set Loader (``payroll_config.loader``).

Responsibility
--------------
Loads YAML rule-set files and parses them into frozen
``RegulatoryConstants`` instances.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Consumed by
``payroll_config.get_active_rule_set`` and by callers that pin a specific
rule-set file.  It has no dependency on the engines.

Invariants enforced
-------------------
* Monetary values and rates are parsed with ``Decimal(str(value))``;
  a YAML float never reaches an engine as a binary float.
* Missing required keys raise ``ConfigurationError`` naming the key.
* Every loaded rule set is validated before it is returned.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  source document, stored on the returned constants.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing keys, bad numbers, bad dates, failed validation
  -> ``ConfigurationError``.

Expected document layout::

    rule_set_id: TN-2024
    version: 1
    jurisdiction: TN
    currency: TND
    status: published
    effective_from: 2024-01-01
    social_contributions: {employee_rate, employer_rate, solidarity_rate,
                           training_tax_rate, housing_fund_rate}
    allowances: {professional_expense_rate, child_monthly, spouse_monthly}
    overtime: {day_multiplier, night_multiplier, holiday_multiplier}
    working_time: {hours_per_day, hours_per_week, working_days_per_month}
    income_tax:
      brackets:
        - {lower: 0, upper: 5000, rate: "0"}
        - {lower: 50000, upper: null, rate: "0.35"}
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.lifecycle import RuleSetStatus
from payroll_config.schema import RegulatoryConstants, TaxBracket
from payroll_config.validator import ensure_valid
from payroll_kernel.exceptions import ConfigurationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.loader")


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
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise ConfigurationError([f"invalid date {value!r}"]) from exc
    raise ConfigurationError([f"cannot parse date from {value!r}"])


def parse_decimal(value: Any, key: str) -> Decimal:
    """Parse a YAML scalar (str, int or float) into an exact ``Decimal``."""
    if isinstance(value, bool) or value is None:
        raise ConfigurationError([f"{key}: expected a number, got {value!r}"])
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError([f"{key}: expected a number, got {value!r}"]) from exc


def parse_bracket(data: dict[str, Any], index: int) -> TaxBracket:
    """
    Parse one ``TaxBracket``.  ``upper: null`` (or a missing ``upper``)
    denotes the open-ended top bracket.
    """
    prefix = f"income_tax.brackets[{index}]"
    if not isinstance(data, dict):
        raise ConfigurationError([f"{prefix}: expected a mapping, got {data!r}"])
    upper = data.get("upper")
    return TaxBracket(
        lower_bound=parse_decimal(data["lower"], f"{prefix}.lower"),
        upper_bound=None if upper is None else parse_decimal(upper, f"{prefix}.upper"),
        rate=parse_decimal(data["rate"], f"{prefix}.rate"),
    )


def parse_rule_set(data: dict[str, Any], checksum: str | None = None) -> RegulatoryConstants:
    """
    Parse a ``RegulatoryConstants`` from a rule-set document.

    Does not validate; ``load_rule_set`` does.

    Raises:
        ConfigurationError: if required keys are missing or values cannot
            be parsed.
    """
    try:
        social = data["social_contributions"]
        allowances = data["allowances"]
        overtime = data["overtime"]
        working_time = data["working_time"]
        brackets = tuple(
            parse_bracket(b, i) for i, b in enumerate(data["income_tax"]["brackets"])
        )

        return RegulatoryConstants(
            rule_set_id=data["rule_set_id"],
            version=int(data.get("version", 1)),
            jurisdiction=data.get("jurisdiction", "TN"),
            currency=data.get("currency", "TND"),
            status=RuleSetStatus(data.get("status", RuleSetStatus.DRAFT.value)),
            effective_from=parse_date(data["effective_from"]),
            effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
            employee_social_rate=parse_decimal(social["employee_rate"], "employee_rate"),
            employer_social_rate=parse_decimal(social["employer_rate"], "employer_rate"),
            solidarity_rate=parse_decimal(social["solidarity_rate"], "solidarity_rate"),
            training_tax_rate=parse_decimal(social["training_tax_rate"], "training_tax_rate"),
            housing_fund_rate=parse_decimal(social["housing_fund_rate"], "housing_fund_rate"),
            professional_expense_rate=parse_decimal(
                allowances["professional_expense_rate"], "professional_expense_rate"
            ),
            child_allowance_monthly=parse_decimal(allowances["child_monthly"], "child_monthly"),
            spouse_allowance_monthly=parse_decimal(allowances["spouse_monthly"], "spouse_monthly"),
            overtime_day_multiplier=parse_decimal(overtime["day_multiplier"], "day_multiplier"),
            overtime_night_multiplier=parse_decimal(
                overtime["night_multiplier"], "night_multiplier"
            ),
            overtime_holiday_multiplier=parse_decimal(
                overtime["holiday_multiplier"], "holiday_multiplier"
            ),
            standard_hours_per_day=parse_decimal(working_time["hours_per_day"], "hours_per_day"),
            standard_hours_per_week=parse_decimal(
                working_time["hours_per_week"], "hours_per_week"
            ),
            standard_working_days_per_month=parse_decimal(
                working_time["working_days_per_month"], "working_days_per_month"
            ),
            brackets=brackets,
            checksum=checksum,
        )
    except KeyError as exc:
        raise ConfigurationError(
            [f"missing required key: {exc.args[0]}"],
            rule_set_id=data.get("rule_set_id"),
        ) from exc
    except (AttributeError, TypeError, ValueError) as exc:
        raise ConfigurationError(
            [f"malformed rule set: {exc}"],
            rule_set_id=data.get("rule_set_id"),
        ) from exc


def load_rule_set(path: Path) -> RegulatoryConstants:
    """
    Load, parse and validate a rule-set YAML file.

    Postconditions:
        - Returns validated, frozen ``RegulatoryConstants`` whose
          ``checksum`` identifies the exact source document.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is incomplete or invalid.
    """
    data = load_yaml_file(path)
    checksum = compute_checksum(data)
    constants = ensure_valid(parse_rule_set(data, checksum=checksum))

    logger.info(
        "rule_set_loaded",
        extra={
            "path": str(path),
            "rule_set_id": constants.rule_set_id,
            "rule_set_version": constants.version,
            "status": constants.status.value,
            "checksum": checksum,
            "bracket_count": len(constants.brackets),
        },
    )
    return constants


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

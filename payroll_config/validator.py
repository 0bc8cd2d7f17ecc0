"""
Rule-set Validator (``payroll_config.validator``).

Responsibility
--------------
Validates ``RegulatoryConstants`` and bracket tables before any engine is
allowed to use them.

Architecture position
---------------------
**Config layer** -- called by the loader after parsing and by every engine
constructor on injection.  Has no dependency on the engines.

Invariants enforced
-------------------
* Every constant, bracket bound and bracket rate is a finite ``Decimal``
  or an ``int``; floats, bools, NaN and infinities are errors.
* Every fractional rate lies in [0, 1].
* Every overtime multiplier is strictly greater than 1.
* Standard hours and working days are strictly positive.
* Allowance amounts are non-negative.
* Bracket table is non-empty, starts at 0, is contiguous
  (``lower(i+1) == upper(i)``), has ``upper > lower`` for every bounded
  bracket, is open-ended only in its last bracket, and has strictly
  increasing rates in [0, 1].

Failure modes
-------------
* Validation errors (``ConfigValidationResult.errors``) -> the rule set
  MUST NOT be used; ``ensure_valid`` raises ``ConfigurationError``.
* Validation warnings -> usable, but should be reviewed (e.g. a bounded
  top bracket leaves income above it untaxed).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from payroll_config.schema import RegulatoryConstants, TaxBracket
from payroll_kernel.exceptions import ConfigurationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.validator")

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass
class ConfigValidationResult:
    """
    Result of rule-set validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
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


def validate_constants(constants: RegulatoryConstants) -> ConfigValidationResult:
    """
    Validate a full rule set.

    Range checks only run once every scalar constant is a finite number,
    so a malformed value is reported instead of raising mid-comparison.

    Postconditions:
        - Returns a ``ConfigValidationResult`` with errors and warnings.
        - A rule set with errors MUST NOT be injected into an engine.
    """
    result = ConfigValidationResult()

    if _validate_numbers(constants, result):
        _validate_rates(constants, result)
        _validate_overtime(constants, result)
        _validate_working_time(constants, result)
        _validate_allowances(constants, result)
    _validate_bracket_table(constants.brackets, result)

    return result


def validate_brackets(brackets: Sequence[TaxBracket]) -> ConfigValidationResult:
    """Validate a bracket table on its own."""
    result = ConfigValidationResult()
    _validate_bracket_table(brackets, result)
    return result


def ensure_valid(constants: RegulatoryConstants) -> RegulatoryConstants:
    """
    Validate ``constants`` and return them unchanged.

    Raises:
        ConfigurationError: if validation produced any error.
    """
    result = validate_constants(constants)
    _raise_on_errors(result, constants.rule_set_id)
    return constants


def ensure_valid_brackets(brackets: Sequence[TaxBracket]) -> tuple[TaxBracket, ...]:
    """
    Validate a bracket table and return it as a tuple.

    Raises:
        ConfigurationError: if the table is malformed.
    """
    result = validate_brackets(brackets)
    _raise_on_errors(result, None)
    return tuple(brackets)


def _raise_on_errors(result: ConfigValidationResult, rule_set_id: str | None) -> None:
    for warning in result.warnings:
        logger.warning(
            "rule_set_validation_warning",
            extra={"rule_set_id": rule_set_id, "warning": warning},
        )
    if not result.is_valid:
        logger.error(
            "rule_set_validation_failed",
            extra={"rule_set_id": rule_set_id, "errors": result.errors},
        )
        raise ConfigurationError(result.errors, rule_set_id=rule_set_id)


def _is_number(value: object) -> bool:
    """True for a finite ``Decimal`` or an ``int`` (bool excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, Decimal) and value.is_finite()


def _check_number(name: str, value: object, result: ConfigValidationResult) -> bool:
    if _is_number(value):
        return True
    result.add_error(
        f"{name} must be a finite Decimal or int, got {type(value).__name__} {value!r}"
    )
    return False


def _validate_numbers(
    constants: RegulatoryConstants, result: ConfigValidationResult
) -> bool:
    scalars = {
        **constants.rates,
        **{
            f"overtime_{category}_multiplier": multiplier
            for category, multiplier in constants.overtime_multipliers.items()
        },
        "standard_hours_per_day": constants.standard_hours_per_day,
        "standard_hours_per_week": constants.standard_hours_per_week,
        "standard_working_days_per_month": constants.standard_working_days_per_month,
        "child_allowance_monthly": constants.child_allowance_monthly,
        "spouse_allowance_monthly": constants.spouse_allowance_monthly,
    }
    checks = [_check_number(name, value, result) for name, value in scalars.items()]
    return all(checks)


def _validate_rates(
    constants: RegulatoryConstants, result: ConfigValidationResult
) -> None:
    for name, rate in constants.rates.items():
        if not _ZERO <= rate <= _ONE:
            result.add_error(f"{name} must be within [0, 1], got {rate}")


def _validate_overtime(
    constants: RegulatoryConstants, result: ConfigValidationResult
) -> None:
    for category, multiplier in constants.overtime_multipliers.items():
        if multiplier <= _ONE:
            result.add_error(
                f"overtime {category} multiplier must be greater than 1, got {multiplier}"
            )


def _validate_working_time(
    constants: RegulatoryConstants, result: ConfigValidationResult
) -> None:
    if constants.standard_hours_per_day <= _ZERO:
        result.add_error("standard_hours_per_day must be positive")
    if constants.standard_hours_per_week <= _ZERO:
        result.add_error("standard_hours_per_week must be positive")
    if constants.standard_working_days_per_month <= _ZERO:
        result.add_error("standard_working_days_per_month must be positive")


def _validate_allowances(
    constants: RegulatoryConstants, result: ConfigValidationResult
) -> None:
    if constants.child_allowance_monthly < _ZERO:
        result.add_error("child_allowance_monthly cannot be negative")
    if constants.spouse_allowance_monthly < _ZERO:
        result.add_error("spouse_allowance_monthly cannot be negative")


def _validate_bracket_table(
    brackets: Sequence[TaxBracket], result: ConfigValidationResult
) -> None:
    if not brackets:
        result.add_error("bracket table is empty")
        return

    well_formed = True
    for i, bracket in enumerate(brackets):
        well_formed &= _check_number(f"bracket {i} lower_bound", bracket.lower_bound, result)
        well_formed &= _check_number(f"bracket {i} rate", bracket.rate, result)
        if bracket.upper_bound is not None:
            well_formed &= _check_number(f"bracket {i} upper_bound", bracket.upper_bound, result)
    if not well_formed:
        return

    if brackets[0].lower_bound != _ZERO:
        result.add_error(
            f"first bracket must start at 0, got {brackets[0].lower_bound}"
        )

    last_index = len(brackets) - 1
    for i, bracket in enumerate(brackets):
        if not _ZERO <= bracket.rate <= _ONE:
            result.add_error(
                f"bracket {i} ({bracket.label}): rate must be within [0, 1], got {bracket.rate}"
            )
        if bracket.is_unbounded:
            if i != last_index:
                result.add_error(
                    f"bracket {i} ({bracket.label}): only the last bracket may be unbounded"
                )
        elif bracket.upper_bound <= bracket.lower_bound:
            result.add_error(
                f"bracket {i} ({bracket.label}): upper bound must exceed lower bound"
            )

    for i in range(1, len(brackets)):
        previous, current = brackets[i - 1], brackets[i]
        if previous.upper_bound is not None and current.lower_bound != previous.upper_bound:
            kind = "overlaps" if current.lower_bound < previous.upper_bound else "leaves a gap after"
            result.add_error(
                f"bracket {i} ({current.label}) {kind} bracket {i - 1} ({previous.label})"
            )
        if current.rate <= previous.rate:
            result.add_error(
                f"bracket {i} ({current.label}): rate {current.rate} must be greater "
                f"than previous rate {previous.rate}"
            )

    if not brackets[last_index].is_unbounded:
        result.add_warning(
            f"top bracket ({brackets[last_index].label}) is bounded; "
            "income above it is not taxed"
        )

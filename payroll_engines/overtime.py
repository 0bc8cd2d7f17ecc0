"""
payroll_engines.overtime -- Overtime pay by shift category.

Responsibility:
    Derive the hourly rate from a monthly base salary and compute pay for
    the three overtime categories (day, night, holiday), each with its own
    multiplier from the rule set.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by the payslip assembler.

Invariants enforced:
    - hourly_rate = base_salary / (standard_hours_per_day * standard_working_days_per_month)
    - category pay = hours * hourly_rate * multiplier; total = sum of the three
    - No rounding: amounts keep full Decimal precision.

Failure modes:
    - InvalidInputError if any hour value is negative, missing or a float.
    - InvalidInputError if base_salary is not positive.
    - ConfigurationError if the injected constants are invalid.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_config.schema import RegulatoryConstants
from payroll_config.validator import ensure_valid
from payroll_kernel.domain.validation import require_amount
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.overtime")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class OvertimeHours:
    """Overtime hours worked in the period, per category."""

    day: Decimal = _ZERO
    night: Decimal = _ZERO
    holiday: Decimal = _ZERO

    @property
    def is_empty(self) -> bool:
        """True when no overtime hour was worked in any category."""
        return self.day == 0 and self.night == 0 and self.holiday == 0


@dataclass(frozen=True)
class OvertimeBreakdown:
    """
    Derived overtime figures for one pay period.

    ``regular_hours`` is the standard monthly baseline the hourly rate is
    derived from, not the hours actually worked.
    """

    regular_hours: Decimal
    hourly_rate: Decimal
    day_hours: Decimal
    night_hours: Decimal
    holiday_hours: Decimal
    day_pay: Decimal
    night_pay: Decimal
    holiday_pay: Decimal
    total_pay: Decimal

    @property
    def total_hours(self) -> Decimal:
        return self.day_hours + self.night_hours + self.holiday_hours


class OvertimeCalculator:
    """
    Pure calculator for overtime pay.

    Contract:
        No I/O, fully deterministic.  Multipliers and working-time
        assumptions come from the injected constants only.
    """

    def __init__(self, constants: RegulatoryConstants):
        self._constants = ensure_valid(constants)

    def hourly_rate(self, base_salary: Decimal) -> Decimal:
        """Hourly rate implied by a monthly base salary."""
        base = require_amount(base_salary, "base_salary", positive=True)
        return base / self._constants.standard_monthly_hours

    def compute(self, base_salary: Decimal, hours: OvertimeHours) -> OvertimeBreakdown:
        """
        Compute the overtime breakdown for one period.

        Preconditions:
            base_salary > 0; every hour value >= 0.
        Postconditions:
            total_pay == day_pay + night_pay + holiday_pay.
        Raises:
            InvalidInputError: on negative or malformed input.
        """
        day = require_amount(hours.day, "overtime_hours.day")
        night = require_amount(hours.night, "overtime_hours.night")
        holiday = require_amount(hours.holiday, "overtime_hours.holiday")
        rate = self.hourly_rate(base_salary)

        c = self._constants
        day_pay = day * rate * c.overtime_day_multiplier
        night_pay = night * rate * c.overtime_night_multiplier
        holiday_pay = holiday * rate * c.overtime_holiday_multiplier

        breakdown = OvertimeBreakdown(
            regular_hours=c.standard_monthly_hours,
            hourly_rate=rate,
            day_hours=day,
            night_hours=night,
            holiday_hours=holiday,
            day_pay=day_pay,
            night_pay=night_pay,
            holiday_pay=holiday_pay,
            total_pay=day_pay + night_pay + holiday_pay,
        )

        logger.debug("overtime_computed", extra={
            "hourly_rate": str(rate),
            "total_hours": str(breakdown.total_hours),
            "total_pay": str(breakdown.total_pay),
        })
        return breakdown


def compute_overtime(
    base_salary: Decimal,
    hours: OvertimeHours,
    constants: RegulatoryConstants,
) -> OvertimeBreakdown:
    """Convenience wrapper around ``OvertimeCalculator.compute``."""
    return OvertimeCalculator(constants).compute(base_salary, hours)

"""
payroll_engines.payslip -- Payslip assembler.

Responsibility:
    The top-level pure function of the payroll engine.  Validates an
    employee profile and a pay period's raw inputs once, then sequences
    overtime, gross salary, employee social contribution, allowances,
    taxable base, progressive income tax, solidarity contribution,
    itemized earnings and deductions, net pay and employer cost into one
    complete ``Payslip``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The only time source is
    the injected ``Clock``.  Consumed by ``payroll_batch`` and by callers
    computing a single payslip.

Invariants enforced:
    - gross_salary == base_salary + bonuses + overtime total (0 if none)
    - total_deductions == social + income tax + solidarity + advances + other
    - net_salary == gross_salary - total_deductions, exactly (no rounding)
    - "No overtime" (absent, or all hours zero) produces no overtime line
      and no overtime breakdown.
    - Identical inputs, constants and clock produce equal payslips.

Failure modes:
    - InvalidInputError before any calculation when a numeric field is
      missing, a float, negative, base_salary is not positive, or
      worked_days > work_days.
    - ConfigurationError at construction if the constants are invalid.

Usage:
    from payroll_engines.payslip import PayslipAssembler

    assembler = PayslipAssembler(constants, clock=DeterministicClock())
    payslip = assembler.compute(profile, period)
    payslip.net_salary
"""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from payroll_config.schema import RegulatoryConstants
from payroll_config.validator import ensure_valid
from payroll_engines.allowances import AllowanceBreakdown, AllowanceCalculator, MaritalStatus
from payroll_engines.contributions import ContributionCalculator, EmployerContributions
from payroll_engines.overtime import OvertimeBreakdown, OvertimeCalculator, OvertimeHours
from payroll_engines.progressive_tax import ProgressiveTaxEngine, ProgressiveTaxResult
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.validation import require_amount, require_count
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.payslip")

_ZERO = Decimal("0")


class PayslipStatus(str, Enum):
    DRAFT = "draft"
    FINAL = "final"


class DeductionCategory(str, Enum):
    SOCIAL = "social"
    TAX = "tax"
    OTHER = "other"


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class EmployeeProfile:
    """The subset of the employee record the engine consumes."""

    employee_id: str
    first_name: str
    last_name: str
    employee_number: str  # matricule, echoed only
    number_of_children: int = 0
    marital_status: MaritalStatus | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class PayPeriodInput:
    """
    Raw inputs for one employee and one pay period.

    ``period_start`` / ``period_end`` are ISO date strings echoed onto the
    payslip, never interpreted.  ``overtime_hours=None`` means no overtime.
    """

    base_salary: Decimal
    work_days: int
    worked_days: int
    period_start: str
    period_end: str
    bonuses: Decimal = _ZERO
    overtime_hours: OvertimeHours | None = None
    advances: Decimal = _ZERO
    other_deductions: Decimal = _ZERO
    run_id: str | None = None

    @property
    def absence_days(self) -> int:
        return self.work_days - self.worked_days


# =============================================================================
# Outputs
# =============================================================================


@dataclass(frozen=True)
class EarningLine:
    element_id: str
    label: str
    amount: Decimal
    taxable: bool = True


@dataclass(frozen=True)
class DeductionLine:
    element_id: str
    label: str
    amount: Decimal
    category: DeductionCategory


@dataclass(frozen=True)
class Payslip:
    """
    Complete, itemized pay statement for one employee and one period.

    All amounts are unrounded ``Decimal``; rounding and currency formatting
    belong to the presentation layer.  ``earnings`` and ``deductions`` are
    in display order.
    """

    # Identity and period echo
    employee_id: str
    employee_name: str
    employee_number: str
    run_id: str | None
    period_start: str
    period_end: str
    number_of_children: int
    marital_status: MaritalStatus | None

    # Salary and time
    base_salary: Decimal
    work_days: int
    worked_days: int
    absence_days: int
    overtime: OvertimeBreakdown | None

    # Earnings
    earnings: tuple[EarningLine, ...]
    gross_salary: Decimal

    # Employee social contribution
    employee_social_contribution: Decimal
    employee_social_rate: Decimal

    # Taxable base
    allowances: AllowanceBreakdown
    taxable_base: Decimal
    taxable_base_clamped: bool  # raw base was negative; taxable_base holds 0

    # Income tax
    tax: ProgressiveTaxResult
    income_tax: Decimal

    # Solidarity contribution
    solidarity_contribution: Decimal
    solidarity_rate: Decimal

    # Deductions and totals
    deductions: tuple[DeductionLine, ...]
    total_deductions: Decimal
    net_salary_before_advances: Decimal
    advances: Decimal
    other_deductions: Decimal
    net_salary: Decimal

    # Employer side
    employer_contributions: EmployerContributions
    total_employer_cost: Decimal

    # Provenance
    rule_set_id: str
    rule_set_version: int
    currency: str
    status: PayslipStatus
    generated_at: datetime

    @property
    def bracket_breakdown(self):
        return self.tax.bracket_breakdown

    @property
    def total_allowances(self) -> Decimal:
        return self.allowances.total

    @property
    def total_employer_contributions(self) -> Decimal:
        return self.employer_contributions.total


# =============================================================================
# Assembler
# =============================================================================


@dataclass(frozen=True)
class _ValidatedInput:
    base_salary: Decimal
    bonuses: Decimal
    advances: Decimal
    other_deductions: Decimal
    overtime_hours: OvertimeHours | None
    number_of_children: int
    marital_status: MaritalStatus | None


class PayslipAssembler:
    """
    Sequences the payroll engines into one payslip.

    Contract:
        No I/O, no clock access other than the injected ``Clock``.
        The constants are validated once at construction and shared
        read-only by every computation.
    Guarantees:
        - Steps run in a fixed order; each feeds the next.
        - Never raises after entry validation has passed.
    Non-goals:
        - Does not round or format amounts.
        - Does not persist payslips or manage payroll-run status.
    """

    def __init__(self, constants: RegulatoryConstants, clock: Clock | None = None):
        self._constants = ensure_valid(constants)
        self._clock = clock or SystemClock()
        self._overtime = OvertimeCalculator(self._constants)
        self._contributions = ContributionCalculator(self._constants)
        self._allowances = AllowanceCalculator(self._constants)
        self._tax = ProgressiveTaxEngine(self._constants.brackets)

    @property
    def constants(self) -> RegulatoryConstants:
        return self._constants

    @traced_engine("payslip", "1.0", fingerprint_fields=("profile", "period"))
    def compute(self, profile: EmployeeProfile, period: PayPeriodInput) -> Payslip:
        """
        Compute the full payslip for one employee and one period.

        Raises:
            InvalidInputError: if any input fails entry validation.
        """
        with LogContext.bind(
            employee_id=profile.employee_id,
            rule_set_id=self._constants.rule_set_id,
        ):
            return self._compute(profile, period)

    def _compute(self, profile: EmployeeProfile, period: PayPeriodInput) -> Payslip:
        t0 = time.monotonic()
        c = self._constants
        logger.info("payslip_computation_started", extra={
            "period_start": period.period_start,
            "period_end": period.period_end,
        })

        inputs = self._validate(profile, period)

        # 1. Overtime (only when some hours were actually worked)
        overtime: OvertimeBreakdown | None = None
        if inputs.overtime_hours is not None and not inputs.overtime_hours.is_empty:
            overtime = self._overtime.compute(inputs.base_salary, inputs.overtime_hours)
        overtime_total = overtime.total_pay if overtime is not None else _ZERO

        # 2. Gross
        gross_salary = inputs.base_salary + inputs.bonuses + overtime_total

        # 3. Employee social contribution
        employee_social = self._contributions.employee_social(gross_salary)

        # 4. Allowances
        allowances = self._allowances.compute(
            gross_salary,
            employee_social,
            inputs.number_of_children,
            inputs.marital_status,
        )

        # 5. Taxable base
        raw_taxable_base = gross_salary - employee_social - allowances.total
        taxable_base_clamped = raw_taxable_base < _ZERO
        taxable_base = _ZERO if taxable_base_clamped else raw_taxable_base
        if taxable_base_clamped:
            logger.warning("payslip_negative_taxable_base", extra={
                "taxable_base": str(raw_taxable_base),
                "gross_salary": str(gross_salary),
                "total_allowances": str(allowances.total),
            })

        # 6. Income tax
        tax = self._tax.compute(taxable_base)
        income_tax = tax.monthly_tax

        # 7. Solidarity contribution
        solidarity = self._contributions.solidarity(gross_salary)

        # 8. Earnings
        earnings = [
            EarningLine("base", "Base salary", inputs.base_salary, taxable=True),
        ]
        if inputs.bonuses > _ZERO:
            earnings.append(EarningLine("bonus", "Bonuses", inputs.bonuses, taxable=True))
        if overtime is not None and overtime.total_pay > _ZERO:
            earnings.append(EarningLine("overtime", "Overtime", overtime.total_pay, taxable=True))

        # 9. Deductions
        deductions = [
            DeductionLine("cnss", "CNSS employee contribution", employee_social, DeductionCategory.SOCIAL),
            DeductionLine("irpp", "Income tax (IRPP)", income_tax, DeductionCategory.TAX),
            DeductionLine("css", "Solidarity contribution (CSS)", solidarity, DeductionCategory.TAX),
        ]
        if inputs.advances > _ZERO:
            deductions.append(
                DeductionLine("advance", "Salary advance", inputs.advances, DeductionCategory.OTHER)
            )
        if inputs.other_deductions > _ZERO:
            deductions.append(
                DeductionLine("other", "Other deductions", inputs.other_deductions, DeductionCategory.OTHER)
            )

        # 10-12. Totals
        total_deductions = (
            employee_social + income_tax + solidarity + inputs.advances + inputs.other_deductions
        )
        net_before_advances = gross_salary - employee_social - income_tax - solidarity
        net_salary = gross_salary - total_deductions

        # 13. Employer side
        employer = self._contributions.employer_side(gross_salary)
        total_employer_cost = gross_salary + employer.total

        # 14. Assemble
        payslip = Payslip(
            employee_id=profile.employee_id,
            employee_name=profile.display_name,
            employee_number=profile.employee_number,
            run_id=period.run_id,
            period_start=period.period_start,
            period_end=period.period_end,
            number_of_children=inputs.number_of_children,
            marital_status=inputs.marital_status,
            base_salary=inputs.base_salary,
            work_days=period.work_days,
            worked_days=period.worked_days,
            absence_days=period.absence_days,
            overtime=overtime,
            earnings=tuple(earnings),
            gross_salary=gross_salary,
            employee_social_contribution=employee_social,
            employee_social_rate=c.employee_social_rate,
            allowances=allowances,
            taxable_base=taxable_base,
            taxable_base_clamped=taxable_base_clamped,
            tax=tax,
            income_tax=income_tax,
            solidarity_contribution=solidarity,
            solidarity_rate=c.solidarity_rate,
            deductions=tuple(deductions),
            total_deductions=total_deductions,
            net_salary_before_advances=net_before_advances,
            advances=inputs.advances,
            other_deductions=inputs.other_deductions,
            net_salary=net_salary,
            employer_contributions=employer,
            total_employer_cost=total_employer_cost,
            rule_set_id=c.rule_set_id,
            rule_set_version=c.version,
            currency=c.currency,
            status=PayslipStatus.DRAFT,
            generated_at=self._clock.now_utc(),
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("payslip_computation_completed", extra={
            "gross_salary": str(gross_salary),
            "income_tax": str(income_tax),
            "net_salary": str(net_salary),
            "total_employer_cost": str(total_employer_cost),
            "duration_ms": duration_ms,
        })
        return payslip

    def _validate(self, profile: EmployeeProfile, period: PayPeriodInput) -> _ValidatedInput:
        """Entry-boundary validation, run once before any step."""
        try:
            base_salary = require_amount(period.base_salary, "base_salary", positive=True)
            work_days = require_count(period.work_days, "work_days")
            worked_days = require_count(period.worked_days, "worked_days")
            if worked_days > work_days:
                raise InvalidInputError(
                    "worked_days", worked_days, f"cannot exceed work_days ({work_days})"
                )
            bonuses = require_amount(period.bonuses, "bonuses")
            advances = require_amount(period.advances, "advances")
            other_deductions = require_amount(period.other_deductions, "other_deductions")

            overtime_hours = None
            if period.overtime_hours is not None:
                overtime_hours = OvertimeHours(
                    day=require_amount(period.overtime_hours.day, "overtime_hours.day"),
                    night=require_amount(period.overtime_hours.night, "overtime_hours.night"),
                    holiday=require_amount(period.overtime_hours.holiday, "overtime_hours.holiday"),
                )

            children = profile.number_of_children
            number_of_children = 0 if children is None else require_count(
                children, "number_of_children"
            )
            marital_status = _parse_marital_status(profile.marital_status)
        except InvalidInputError as exc:
            logger.warning("payslip_invalid_input", extra={
                "field": exc.field,
                "reason": exc.reason,
            })
            raise

        return _ValidatedInput(
            base_salary=base_salary,
            bonuses=bonuses,
            advances=advances,
            other_deductions=other_deductions,
            overtime_hours=overtime_hours,
            number_of_children=number_of_children,
            marital_status=marital_status,
        )


def _parse_marital_status(value) -> MaritalStatus | None:
    if value is None:
        return None
    try:
        return MaritalStatus(value)
    except ValueError as exc:
        raise InvalidInputError("marital_status", value, "unknown marital status") from exc


def compute_payslip(
    profile: EmployeeProfile,
    period: PayPeriodInput,
    constants: RegulatoryConstants,
    clock: Clock | None = None,
) -> Payslip:
    """Convenience wrapper around ``PayslipAssembler.compute``."""
    return PayslipAssembler(constants, clock=clock).compute(profile, period)


def finalize(payslip: Payslip) -> Payslip:
    """Return a FINAL copy of a draft payslip; the input payslip is untouched."""
    return dataclasses.replace(payslip, status=PayslipStatus.FINAL)

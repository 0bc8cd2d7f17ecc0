"""
payroll_engines.allowances -- Fiscal abatements on the taxable base.

Responsibility:
    Compute the three allowances that reduce the income-tax base:
    the professional-expense abatement (a percentage of gross minus the
    employee social contribution), the per-dependent flat allowance and
    the flat spousal allowance for married employees.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - professional = (gross - employee_social) * professional_expense_rate
    - children = number_of_children * child_allowance_monthly
    - spouse = spouse_allowance_monthly iff marital status is MARRIED
    - total = professional + children + spouse
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_config.schema import RegulatoryConstants
from payroll_config.validator import ensure_valid

_ZERO = Decimal("0")


class MaritalStatus(str, Enum):
    """Marital status as recorded on the employee profile."""

    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


@dataclass(frozen=True)
class AllowanceBreakdown:
    professional_expense_allowance: Decimal
    children_allowance: Decimal
    spouse_allowance: Decimal

    @property
    def total(self) -> Decimal:
        return (
            self.professional_expense_allowance
            + self.children_allowance
            + self.spouse_allowance
        )


class AllowanceCalculator:
    """
    Pure calculator for fiscal allowances.

    Inputs are assumed already validated by the caller (the payslip
    assembler validates once at its entry boundary).
    """

    def __init__(self, constants: RegulatoryConstants):
        self._constants = ensure_valid(constants)

    def compute(
        self,
        gross_salary: Decimal,
        employee_social_contribution: Decimal,
        number_of_children: int | None = None,
        marital_status: MaritalStatus | None = None,
    ) -> AllowanceBreakdown:
        c = self._constants
        professional = (gross_salary - employee_social_contribution) * c.professional_expense_rate
        children = Decimal(number_of_children or 0) * c.child_allowance_monthly
        spouse = c.spouse_allowance_monthly if marital_status == MaritalStatus.MARRIED else _ZERO

        return AllowanceBreakdown(
            professional_expense_allowance=professional,
            children_allowance=children,
            spouse_allowance=spouse,
        )


def compute_allowances(
    gross_salary: Decimal,
    employee_social_contribution: Decimal,
    number_of_children: int | None,
    marital_status: MaritalStatus | None,
    constants: RegulatoryConstants,
) -> AllowanceBreakdown:
    """Convenience wrapper around ``AllowanceCalculator.compute``."""
    return AllowanceCalculator(constants).compute(
        gross_salary,
        employee_social_contribution,
        number_of_children,
        marital_status,
    )

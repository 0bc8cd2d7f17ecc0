"""
payroll_engines.contributions -- Flat-rate social and fiscal contributions.

Responsibility:
    Compute every contribution that is a simple proportion of gross
    salary: employee and employer social security (CNSS), the solidarity
    contribution (CSS), the training tax (TFP) and the housing fund
    (FOPROLOS).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - amount = gross_salary * rate, rate read from the injected constants.
    - TFP and FOPROLOS are employer-only; they never reduce employee pay.

Failure modes:
    - InvalidInputError if gross_salary is negative or malformed.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_config.schema import RegulatoryConstants
from payroll_config.validator import ensure_valid
from payroll_kernel.domain.validation import require_amount


@dataclass(frozen=True)
class EmployerContributions:
    """Employer-side charges on gross salary (not deducted from pay)."""

    social_security: Decimal  # CNSS employer
    social_security_rate: Decimal
    training_tax: Decimal  # TFP
    training_tax_rate: Decimal
    housing_fund: Decimal  # FOPROLOS
    housing_fund_rate: Decimal

    @property
    def total(self) -> Decimal:
        return self.social_security + self.training_tax + self.housing_fund


class ContributionCalculator:
    """Stateless proportional contributions on gross salary."""

    def __init__(self, constants: RegulatoryConstants):
        self._constants = ensure_valid(constants)

    def _apply(self, gross_salary: Decimal, rate: Decimal) -> Decimal:
        return require_amount(gross_salary, "gross_salary") * rate

    def employee_social(self, gross_salary: Decimal) -> Decimal:
        return self._apply(gross_salary, self._constants.employee_social_rate)

    def employer_social(self, gross_salary: Decimal) -> Decimal:
        return self._apply(gross_salary, self._constants.employer_social_rate)

    def solidarity(self, gross_salary: Decimal) -> Decimal:
        return self._apply(gross_salary, self._constants.solidarity_rate)

    def training_tax(self, gross_salary: Decimal) -> Decimal:
        return self._apply(gross_salary, self._constants.training_tax_rate)

    def housing_fund(self, gross_salary: Decimal) -> Decimal:
        return self._apply(gross_salary, self._constants.housing_fund_rate)

    def employer_side(self, gross_salary: Decimal) -> EmployerContributions:
        """All employer-side contributions for one gross salary."""
        c = self._constants
        return EmployerContributions(
            social_security=self.employer_social(gross_salary),
            social_security_rate=c.employer_social_rate,
            training_tax=self.training_tax(gross_salary),
            training_tax_rate=c.training_tax_rate,
            housing_fund=self.housing_fund(gross_salary),
            housing_fund_rate=c.housing_fund_rate,
        )

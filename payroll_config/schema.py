"""
Regulatory rule-set schema.

Defines the versioned, read-only data the payroll engines are evaluated
against: flat contribution rates, fiscal allowance amounts, overtime
multipliers, standard working time, and the progressive income-tax
brackets.  YAML rule sets are parsed into these types by the loader;
tests and callers may also build them directly.

Every type here is a frozen dataclass and every collection is a tuple, so a
loaded rule set can be shared read-only across concurrent payslip
computations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_config.lifecycle import RuleSetStatus

# ---------------------------------------------------------------------------
# Tax brackets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxBracket:
    """
    One bracket of the annual progressive income-tax scale.

    ``upper_bound=None`` marks the open-ended top bracket.  There is no
    numeric sentinel for "infinity": code that needs a width must check
    ``is_unbounded`` first.
    """

    lower_bound: Decimal
    upper_bound: Decimal | None
    rate: Decimal  # As decimal (e.g., 0.26 for 26%)

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None

    @property
    def width(self) -> Decimal | None:
        """Size of the bracket, or None for the open-ended top bracket."""
        if self.upper_bound is None:
            return None
        return self.upper_bound - self.lower_bound

    @property
    def rate_percent(self) -> Decimal:
        return self.rate * Decimal("100")

    @property
    def label(self) -> str:
        """Human-readable range, e.g. ``5,000 - 20,000`` or ``50,000 - +``."""
        upper = "+" if self.upper_bound is None else f"{self.upper_bound:,}"
        return f"{self.lower_bound:,} - {upper}"


# ---------------------------------------------------------------------------
# Regulatory constants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RegulatoryConstants:
    """
    Versioned, immutable table of payroll rates and thresholds.

    Field defaults are the Tunisian values (CNSS, CSS, TFP, FOPROLOS, IRPP
    professional-expense abatement, dependents abatements, overtime
    majorations).  The bracket table has no default: it must be supplied.

    Build one directly for tests:

        constants = RegulatoryConstants(
            rule_set_id="TEST",
            brackets=(TaxBracket(Decimal("0"), None, Decimal("0.10")),),
        )

    or load a reviewed YAML rule set via ``payroll_config.load_rule_set``.
    Engines validate the constants on injection (see ``validator.py``).
    """

    rule_set_id: str
    brackets: tuple[TaxBracket, ...]
    version: int = 1
    jurisdiction: str = "TN"
    currency: str = "TND"
    effective_from: date | None = None
    effective_to: date | None = None
    status: RuleSetStatus = RuleSetStatus.DRAFT

    # Social contributions (fractions of gross salary)
    employee_social_rate: Decimal = Decimal("0.0918")  # CNSS employee
    employer_social_rate: Decimal = Decimal("0.1657")  # CNSS employer
    solidarity_rate: Decimal = Decimal("0.01")  # CSS
    training_tax_rate: Decimal = Decimal("0.01")  # TFP, employer only
    housing_fund_rate: Decimal = Decimal("0.02")  # FOPROLOS, employer only

    # Fiscal allowances
    professional_expense_rate: Decimal = Decimal("0.10")
    child_allowance_monthly: Decimal = Decimal("25")
    spouse_allowance_monthly: Decimal = Decimal("150")

    # Overtime multipliers
    overtime_day_multiplier: Decimal = Decimal("1.25")
    overtime_night_multiplier: Decimal = Decimal("1.5")
    overtime_holiday_multiplier: Decimal = Decimal("2.0")

    # Standard working time
    standard_hours_per_day: Decimal = Decimal("8")
    standard_hours_per_week: Decimal = Decimal("40")
    standard_working_days_per_month: Decimal = Decimal("22")

    # SHA-256 of the source document when loaded from YAML
    checksum: str | None = None

    @property
    def standard_monthly_hours(self) -> Decimal:
        return self.standard_hours_per_day * self.standard_working_days_per_month

    @property
    def child_allowance_annual(self) -> Decimal:
        return self.child_allowance_monthly * Decimal("12")

    @property
    def overtime_multipliers(self) -> dict[str, Decimal]:
        return {
            "day": self.overtime_day_multiplier,
            "night": self.overtime_night_multiplier,
            "holiday": self.overtime_holiday_multiplier,
        }

    @property
    def rates(self) -> dict[str, Decimal]:
        """Every fractional rate, keyed by field name (brackets excluded)."""
        return {
            "employee_social_rate": self.employee_social_rate,
            "employer_social_rate": self.employer_social_rate,
            "solidarity_rate": self.solidarity_rate,
            "training_tax_rate": self.training_tax_rate,
            "housing_fund_rate": self.housing_fund_rate,
            "professional_expense_rate": self.professional_expense_rate,
        }

    def is_effective(self, on_date: date) -> bool:
        """Check whether the rule set covers ``on_date``."""
        if self.effective_from and on_date < self.effective_from:
            return False
        if self.effective_to and on_date > self.effective_to:
            return False
        return True

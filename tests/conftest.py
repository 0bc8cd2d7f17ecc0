"""
Pytest fixtures for the payroll engine test suite.

Provides:
- The Tunisian rule set, built programmatically and from the bundled YAML
- A deterministic clock
- Employee profile / pay period factories
- Logging state reset between tests
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from payroll_config.lifecycle import RuleSetStatus
from payroll_config.schema import RegulatoryConstants, TaxBracket
from payroll_engines.allowances import MaritalStatus
from payroll_engines.payslip import EmployeeProfile, PayPeriodInput
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.logging_config import LogContext, reset_logging

TN_BRACKETS = (
    TaxBracket(Decimal("0"), Decimal("5000"), Decimal("0")),
    TaxBracket(Decimal("5000"), Decimal("20000"), Decimal("0.26")),
    TaxBracket(Decimal("20000"), Decimal("30000"), Decimal("0.28")),
    TaxBracket(Decimal("30000"), Decimal("50000"), Decimal("0.32")),
    TaxBracket(Decimal("50000"), None, Decimal("0.35")),
)

FIXED_TIME = datetime(2024, 1, 31, 18, 0, 0, tzinfo=timezone.utc)


def make_constants(**overrides) -> RegulatoryConstants:
    """Tunisian rule set with optional field overrides."""
    fields = {
        "rule_set_id": "TN-TEST",
        "version": 1,
        "status": RuleSetStatus.PUBLISHED,
        "effective_from": date(2024, 1, 1),
        "brackets": TN_BRACKETS,
    }
    fields.update(overrides)
    return RegulatoryConstants(**fields)


def make_profile(
    employee_id: str = "emp-001",
    number_of_children: int = 0,
    marital_status: MaritalStatus | None = MaritalStatus.SINGLE,
    **overrides,
) -> EmployeeProfile:
    fields = {
        "employee_id": employee_id,
        "first_name": "Amine",
        "last_name": "Trabelsi",
        "employee_number": "M-0001",
        "number_of_children": number_of_children,
        "marital_status": marital_status,
    }
    fields.update(overrides)
    return EmployeeProfile(**fields)


def make_period(base_salary="1000", **overrides) -> PayPeriodInput:
    fields = {
        "base_salary": Decimal(base_salary) if isinstance(base_salary, str) else base_salary,
        "work_days": 22,
        "worked_days": 22,
        "period_start": "2024-01-01",
        "period_end": "2024-01-31",
    }
    fields.update(overrides)
    return PayPeriodInput(**fields)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def tn_constants() -> RegulatoryConstants:
    return make_constants()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(FIXED_TIME)


@pytest.fixture
def profile() -> EmployeeProfile:
    return make_profile()


@pytest.fixture
def period() -> PayPeriodInput:
    return make_period()

"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A payroll run computes hundreds of payslips and must report, per employee,
exactly why one of them could not be produced. Callers catch by type and
read the ``code`` attribute instead of parsing messages:

    try:
        payslip = compute_payslip(profile, period, constants)
    except InvalidInputError as e:
        report(employee_id, code=e.code, field=e.field)

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- InvalidInputError        -- bad period/profile input (entry boundary)
    |
    +-- ConfigurationError       -- malformed constants or bracket table
    |
    +-- RuleSetNotFoundError     -- no rule set for jurisdiction/date

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                  | When Raised
----------------------|------------------------------------------------------
INVALID_INPUT         | Missing, float, negative or non-integer numeric input;
                      | base salary not positive; worked_days > work_days
CONFIGURATION_ERROR   | Constants out of range; brackets empty, overlapping,
                      | non-contiguous, or with non-increasing rates
RULE_SET_NOT_FOUND    | No rule set covers the requested jurisdiction/date

All of these are programmer or configuration errors. Nothing here is
transient; none of them should be retried.
"""

from __future__ import annotations

from typing import Any


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


class InvalidInputError(PayrollKernelError):
    """
    A pay-period or employee-profile field failed entry validation.

    Raised once, before any calculation, so that no partially computed
    payslip is ever produced.
    """

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid input for '{field}' ({value!r}): {reason}")


class ConfigurationError(PayrollKernelError):
    """
    Regulatory constants or bracket table are malformed.

    Detected when a rule set is loaded or injected into an engine, never
    per payslip.
    """

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, errors: list[str] | tuple[str, ...], rule_set_id: str | None = None):
        self.errors = tuple(errors)
        self.rule_set_id = rule_set_id
        label = f"rule set '{rule_set_id}'" if rule_set_id else "rule set"
        super().__init__(
            f"Invalid {label}:\n" + "\n".join(f"  - {e}" for e in self.errors)
        )


class RuleSetNotFoundError(PayrollKernelError):
    """No configured rule set matches the requested scope and date."""

    code: str = "RULE_SET_NOT_FOUND"

    def __init__(self, jurisdiction: str, as_of_date: str, search_path: str):
        self.jurisdiction = jurisdiction
        self.as_of_date = as_of_date
        self.search_path = search_path
        super().__init__(
            f"No rule set found for jurisdiction='{jurisdiction}' "
            f"as_of_date={as_of_date} in {search_path}"
        )

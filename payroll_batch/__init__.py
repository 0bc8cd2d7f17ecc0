"""
payroll_batch -- Payroll run execution.

Computes payslips for a whole roster against one rule set, isolating
per-employee failures and aggregating run totals (gross, net, deductions,
employer cost, headcount).  Also generates ``PAY-YYYY-MM`` run references.

Architecture:
    payroll_batch/ is a top-level package.  Nothing in payroll_kernel,
    payroll_config or payroll_engines imports from payroll_batch.
    Persistence and the run lifecycle (validation, payment, closing) live
    outside this package.
"""

from payroll_batch.executor import PayrollRunExecutor, RosterEntry, generate_run_reference
from payroll_batch.types import (
    PayrollItemResult,
    PayrollItemStatus,
    PayrollRunResult,
    PayrollRunStatus,
)

__all__ = [
    "PayrollItemResult",
    "PayrollItemStatus",
    "PayrollRunExecutor",
    "PayrollRunResult",
    "PayrollRunStatus",
    "RosterEntry",
    "generate_run_reference",
]

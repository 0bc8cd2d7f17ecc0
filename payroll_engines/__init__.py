"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    payroll calculation engines.  This is the canonical import surface for
    higher layers (payroll_batch, callers computing single payslips).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel and payroll_config (and sibling engine
    modules).  MUST NOT import payroll_batch.

Invariants enforced:
    - Purity: engines never read the system clock directly.  The payslip
      timestamp comes from an injected ``Clock``.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``; floats
      are rejected at the entry boundary.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - InvalidInputError on malformed employee or period input.
    - ConfigurationError when injected constants are invalid.

Audit relevance:
    The progressive tax engine and the payslip assembler are traced via
    ``@traced_engine`` (see ``payroll_engines.tracer``), emitting
    PAYROLL_ENGINE_TRACE log records with engine name, version, input
    fingerprint and duration.

Usage:
    from payroll_engines.payslip import PayslipAssembler
    from payroll_engines.progressive_tax import ProgressiveTaxEngine
    from payroll_engines.overtime import OvertimeCalculator
    from payroll_engines.contributions import ContributionCalculator
    from payroll_engines.allowances import AllowanceCalculator
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines")

from payroll_engines.allowances import (
    AllowanceBreakdown,
    AllowanceCalculator,
    MaritalStatus,
    compute_allowances,
)
from payroll_engines.contributions import (
    ContributionCalculator,
    EmployerContributions,
)
from payroll_engines.overtime import (
    OvertimeBreakdown,
    OvertimeCalculator,
    OvertimeHours,
    compute_overtime,
)
from payroll_engines.payslip import (
    DeductionCategory,
    DeductionLine,
    EarningLine,
    EmployeeProfile,
    PayPeriodInput,
    Payslip,
    PayslipAssembler,
    PayslipStatus,
    compute_payslip,
    finalize,
)
from payroll_engines.progressive_tax import (
    BracketTaxLine,
    ProgressiveTaxEngine,
    ProgressiveTaxResult,
    compute_progressive_tax,
)
from payroll_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Overtime
    "OvertimeCalculator",
    "OvertimeHours",
    "OvertimeBreakdown",
    "compute_overtime",
    # Contributions
    "ContributionCalculator",
    "EmployerContributions",
    # Allowances
    "AllowanceCalculator",
    "AllowanceBreakdown",
    "MaritalStatus",
    "compute_allowances",
    # Progressive tax
    "ProgressiveTaxEngine",
    "ProgressiveTaxResult",
    "BracketTaxLine",
    "compute_progressive_tax",
    # Payslip
    "PayslipAssembler",
    "Payslip",
    "PayslipStatus",
    "EmployeeProfile",
    "PayPeriodInput",
    "EarningLine",
    "DeductionLine",
    "DeductionCategory",
    "compute_payslip",
    "finalize",
    # Tracer
    "traced_engine",
    "compute_input_fingerprint",
]

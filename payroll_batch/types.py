"""
payroll_batch.types -- Pure frozen dataclasses for payroll runs.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - Run totals are sums over SUCCEEDED items only.
    - ``items`` preserves roster order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from payroll_engines.payslip import Payslip


class PayrollItemStatus(str, Enum):
    """Per-employee outcome within a payroll run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PayrollRunStatus(str, Enum):
    """Run-level outcome."""

    COMPLETED = "completed"  # Every employee computed
    PARTIALLY_COMPLETED = "partially_completed"  # Some employees failed
    FAILED = "failed"  # No employee computed


@dataclass(frozen=True)
class PayrollItemResult:
    """Result of computing one employee's payslip within a run.

    ``payslip`` is set iff ``status`` is SUCCEEDED; ``error_code`` and
    ``error_message`` iff it is FAILED.
    """

    item_index: int  # 0-indexed position in the roster
    employee_id: str
    status: PayrollItemStatus
    payslip: Payslip | None = None
    error_code: str | None = None
    error_message: str | None = None
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == PayrollItemStatus.SUCCEEDED


@dataclass(frozen=True)
class PayrollRunResult:
    """Immutable result of computing a whole payroll run.

    Returned by ``PayrollRunExecutor.execute()``.
    """

    run_id: str
    rule_set_id: str
    rule_set_version: int
    status: PayrollRunStatus
    items: tuple[PayrollItemResult, ...]
    total_gross: Decimal
    total_net: Decimal
    total_deductions: Decimal
    total_employer_cost: Decimal
    employees_count: int
    failed_count: int
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def payslips(self) -> tuple[Payslip, ...]:
        return tuple(item.payslip for item in self.items if item.payslip is not None)

    @property
    def failures(self) -> tuple[PayrollItemResult, ...]:
        return tuple(item for item in self.items if not item.succeeded)

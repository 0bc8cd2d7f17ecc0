"""
PayrollRunExecutor -- per-employee isolated payroll run.

Contract:
    Computes one payslip per roster entry with a single shared rule set,
    records per-employee failures without aborting the run, and aggregates
    the run totals (gross, net, deductions, employer cost, headcount).

Architecture: payroll_batch.  Imports from payroll_engines, payroll_config
    and payroll_kernel; nothing below imports from payroll_batch.

Invariants enforced:
    - One failure does not abort the run: a PayrollKernelError raised for an
      employee becomes a FAILED item.  Any other exception propagates.
    - Item order equals roster order, sequential or parallel.
    - All timestamps come from the injected Clock.
    - Every payslip in a run carries the same rule_set_id / version.
"""

from __future__ import annotations

import contextvars
import dataclasses
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from decimal import Decimal

from payroll_batch.types import (
    PayrollItemResult,
    PayrollItemStatus,
    PayrollRunResult,
    PayrollRunStatus,
)
from payroll_config.schema import RegulatoryConstants
from payroll_engines.payslip import EmployeeProfile, PayPeriodInput, PayslipAssembler
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import PayrollKernelError
from payroll_kernel.logging_config import LogContext, get_logger

logger = get_logger("batch.executor")

_ZERO = Decimal("0")

RosterEntry = tuple[EmployeeProfile, PayPeriodInput]


def generate_run_reference(period_end: date | str) -> str:
    """Run reference for the month containing ``period_end``: ``PAY-YYYY-MM``."""
    if isinstance(period_end, str):
        period_end = date.fromisoformat(period_end)
    return f"PAY-{period_end.year:04d}-{period_end.month:02d}"


class PayrollRunExecutor:
    """Payroll run executor with per-employee failure isolation.

    Contract:
        - ``execute()`` computes every entry and returns a PayrollRunResult.
        - With ``max_workers > 1`` entries are computed on a thread pool.

    Non-goals:
        - Does NOT persist payslips or move the run through its lifecycle.
        - Does NOT retry failed employees.
    """

    def __init__(
        self,
        constants: RegulatoryConstants,
        clock: Clock | None = None,
        max_workers: int | None = None,
    ):
        self._clock = clock or SystemClock()
        self._assembler = PayslipAssembler(constants, clock=self._clock)
        self._max_workers = max_workers

    @property
    def constants(self) -> RegulatoryConstants:
        return self._assembler.constants

    def execute(self, run_id: str, entries: Sequence[RosterEntry]) -> PayrollRunResult:
        """Compute a payslip for every (profile, period) entry.

        Periods are stamped with ``run_id`` when they carry none.
        """
        start_time = time.monotonic()
        started_at = self._clock.now()
        constants = self.constants

        with LogContext.bind(run_id=run_id, rule_set_id=constants.rule_set_id):
            logger.info("payroll_run_started", extra={
                "total_items": len(entries),
                "max_workers": self._max_workers,
            })

            if self._max_workers is not None and self._max_workers > 1:
                with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                    # Each worker needs its own copy of the logging context
                    futures = [
                        pool.submit(
                            contextvars.copy_context().run,
                            self._execute_item, index, entry, run_id,
                        )
                        for index, entry in enumerate(entries)
                    ]
                    items = [future.result() for future in futures]
            else:
                items = [
                    self._execute_item(index, entry, run_id)
                    for index, entry in enumerate(entries)
                ]

            result = self._aggregate(run_id, items, started_at, start_time)

            log = logger.warning if result.failed_count else logger.info
            log("payroll_run_completed", extra={
                "status": result.status.value,
                "employees_count": result.employees_count,
                "failed_count": result.failed_count,
                "total_gross": str(result.total_gross),
                "total_net": str(result.total_net),
                "duration_ms": result.duration_ms,
            })
        return result

    def _execute_item(self, index: int, entry: RosterEntry, run_id: str) -> PayrollItemResult:
        profile, period = entry
        if period.run_id is None:
            period = dataclasses.replace(period, run_id=run_id)

        item_start = time.monotonic()
        try:
            payslip = self._assembler.compute(profile, period)
        except PayrollKernelError as exc:
            duration = int((time.monotonic() - item_start) * 1000)
            logger.warning("payroll_item_failed", extra={
                "employee_id": profile.employee_id,
                "item_index": index,
                "error_code": exc.code,
                "error_message": str(exc),
            })
            return PayrollItemResult(
                item_index=index,
                employee_id=profile.employee_id,
                status=PayrollItemStatus.FAILED,
                error_code=exc.code,
                error_message=str(exc),
                duration_ms=duration,
            )

        return PayrollItemResult(
            item_index=index,
            employee_id=profile.employee_id,
            status=PayrollItemStatus.SUCCEEDED,
            payslip=payslip,
            duration_ms=int((time.monotonic() - item_start) * 1000),
        )

    def _aggregate(
        self,
        run_id: str,
        items: list[PayrollItemResult],
        started_at: datetime,
        start_time: float,
    ) -> PayrollRunResult:
        payslips = [item.payslip for item in items if item.payslip is not None]
        succeeded = len(payslips)
        failed = len(items) - succeeded

        # An empty roster is trivially complete
        if failed == 0:
            status = PayrollRunStatus.COMPLETED
        elif succeeded == 0:
            status = PayrollRunStatus.FAILED
        else:
            status = PayrollRunStatus.PARTIALLY_COMPLETED

        constants = self.constants
        return PayrollRunResult(
            run_id=run_id,
            rule_set_id=constants.rule_set_id,
            rule_set_version=constants.version,
            status=status,
            items=tuple(items),
            total_gross=sum((p.gross_salary for p in payslips), _ZERO),
            total_net=sum((p.net_salary for p in payslips), _ZERO),
            total_deductions=sum((p.total_deductions for p in payslips), _ZERO),
            total_employer_cost=sum((p.total_employer_cost for p in payslips), _ZERO),
            employees_count=succeeded,
            failed_count=failed,
            started_at=started_at,
            completed_at=self._clock.now(),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )


"""Pure domain helpers shared by the payroll layers."""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = ["Clock", "DeterministicClock", "SystemClock"]

"""
Lightweight domain validation helpers.

Pure checks with no I/O, used at the entry boundary of the payroll engines
to enforce Decimal amounts and non-negative counts.  Every failure raises
``InvalidInputError`` naming the offending field.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from payroll_kernel.exceptions import InvalidInputError

_ZERO = Decimal("0")


def require_amount(value: Any, name: str, *, positive: bool = False) -> Decimal:
    """
    Return ``value`` as a finite, non-negative ``Decimal``.

    ``int`` is accepted and converted exactly.  ``float`` is rejected so
    that binary rounding never enters a payslip.  With ``positive=True``
    zero is rejected too.
    """
    if value is None:
        raise InvalidInputError(name, value, "required")
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise InvalidInputError(
            name, value, f"must be Decimal or int, not {type(value).__name__}"
        )
    amount = Decimal(value)
    if not amount.is_finite():
        raise InvalidInputError(name, value, "must be finite")
    if amount < _ZERO:
        raise InvalidInputError(name, value, "cannot be negative")
    if positive and amount == _ZERO:
        raise InvalidInputError(name, value, "must be positive")
    return amount


def require_count(value: Any, name: str) -> int:
    """Return ``value`` as a non-negative ``int``."""
    if value is None:
        raise InvalidInputError(name, value, "required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(name, value, f"must be int, not {type(value).__name__}")
    if value < 0:
        raise InvalidInputError(name, value, "cannot be negative")
    return value

"""
payroll_engines.progressive_tax -- Bracketed annual income tax (IRPP).

Responsibility:
    Given a monthly taxable base and an ascending bracket table, annualize
    the base, walk the brackets consuming each one's width, tax every
    bracket actually reached, and convert the annual total back to a
    monthly figure.  Returns the full per-bracket breakdown for audit.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by the payslip assembler; usable on its own with any valid
    bracket table.

Invariants enforced:
    - annual_base = monthly_taxable_base * 12
    - A base exactly on a boundary belongs to the lower bracket: the loop
      consumes the lower bracket's full width before moving on.
    - Only brackets with amount_in_bracket > 0 appear in the breakdown
      (a reached 0% bracket is still listed).
    - sum(line.tax) == annual_tax and annual_tax / 12 == monthly_tax.
    - With an unbounded top bracket, sum(line.amount_in_bracket) == annual_base.
    - No intermediate rounding.

Failure modes:
    - annual_base <= 0 is non-taxable: empty breakdown, zero tax.
    - Base above a bounded top bracket: the excess is untaxed and a warning
      is logged (the validator already warns about such tables).
    - ConfigurationError on a malformed bracket table (at construction).
    - InvalidInputError if the base is a float or not a number.

Usage:
    from payroll_engines.progressive_tax import ProgressiveTaxEngine

    engine = ProgressiveTaxEngine(constants.brackets)
    result = engine.compute(Decimal("817.38"))
    result.monthly_tax          # Decimal('104.18546...')
    result.bracket_breakdown    # (0 - 5,000 @ 0%, 5,000 - 20,000 @ 26%)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from payroll_config.schema import TaxBracket
from payroll_config.validator import ensure_valid_brackets
from payroll_engines.tracer import traced_engine
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.progressive_tax")

MONTHS_PER_YEAR = Decimal("12")
_ZERO = Decimal("0")


@dataclass(frozen=True)
class BracketTaxLine:
    """Tax computed on the slice of the annual base falling in one bracket."""

    label: str
    lower_bound: Decimal
    upper_bound: Decimal | None
    amount_in_bracket: Decimal
    rate: Decimal
    tax: Decimal

    @property
    def rate_percent(self) -> Decimal:
        return self.rate * Decimal("100")


@dataclass(frozen=True)
class ProgressiveTaxResult:
    annual_base: Decimal
    annual_tax: Decimal
    monthly_tax: Decimal
    bracket_breakdown: tuple[BracketTaxLine, ...] = ()

    @property
    def is_taxable(self) -> bool:
        return bool(self.bracket_breakdown)

    @property
    def taxed_amount(self) -> Decimal:
        """Portion of the annual base that fell inside some bracket."""
        return sum((line.amount_in_bracket for line in self.bracket_breakdown), _ZERO)

    @property
    def effective_rate(self) -> Decimal:
        """Annual tax / annual base (zero for a non-taxable base)."""
        if self.annual_base <= _ZERO:
            return _ZERO
        return self.annual_tax / self.annual_base


class ProgressiveTaxEngine:
    """
    Pure progressive-tax calculator over a fixed bracket table.

    Contract:
        The bracket table is validated once, at construction, and then
        held as an immutable tuple.
    """

    def __init__(self, brackets: Sequence[TaxBracket]):
        self._brackets = ensure_valid_brackets(brackets)

    @property
    def brackets(self) -> tuple[TaxBracket, ...]:
        return self._brackets

    @traced_engine("progressive_tax", "1.0", fingerprint_fields=("monthly_taxable_base",))
    def compute(self, monthly_taxable_base: Decimal) -> ProgressiveTaxResult:
        """
        Compute the monthly tax and its per-bracket breakdown.

        Args:
            monthly_taxable_base: Taxable base for one month.  May be
                negative (allowances exceeding income); treated as zero.

        Returns:
            ProgressiveTaxResult with unrounded figures.
        """
        if isinstance(monthly_taxable_base, bool) or not isinstance(
            monthly_taxable_base, (int, Decimal)
        ):
            raise InvalidInputError(
                "monthly_taxable_base",
                monthly_taxable_base,
                f"must be Decimal or int, not {type(monthly_taxable_base).__name__}",
            )

        annual_base = Decimal(monthly_taxable_base) * MONTHS_PER_YEAR

        if annual_base <= _ZERO:
            logger.debug("progressive_tax_non_taxable", extra={
                "annual_base": str(annual_base),
            })
            return ProgressiveTaxResult(
                annual_base=annual_base,
                annual_tax=_ZERO,
                monthly_tax=_ZERO,
            )

        remaining = annual_base
        annual_tax = _ZERO
        lines: list[BracketTaxLine] = []

        for bracket in self._brackets:
            if remaining <= _ZERO:
                break

            width = bracket.width
            amount_in_bracket = remaining if width is None else min(remaining, width)
            tax = amount_in_bracket * bracket.rate

            if amount_in_bracket > _ZERO:
                lines.append(BracketTaxLine(
                    label=bracket.label,
                    lower_bound=bracket.lower_bound,
                    upper_bound=bracket.upper_bound,
                    amount_in_bracket=amount_in_bracket,
                    rate=bracket.rate,
                    tax=tax,
                ))
                annual_tax += tax

            remaining -= amount_in_bracket

        if remaining > _ZERO:
            logger.warning("progressive_tax_base_exceeds_top_bracket", extra={
                "annual_base": str(annual_base),
                "untaxed_amount": str(remaining),
            })

        result = ProgressiveTaxResult(
            annual_base=annual_base,
            annual_tax=annual_tax,
            monthly_tax=annual_tax / MONTHS_PER_YEAR,
            bracket_breakdown=tuple(lines),
        )

        logger.debug("progressive_tax_computed", extra={
            "annual_base": str(annual_base),
            "annual_tax": str(annual_tax),
            "bracket_count": len(lines),
        })
        return result


def compute_progressive_tax(
    monthly_taxable_base: Decimal,
    brackets: Sequence[TaxBracket],
) -> ProgressiveTaxResult:
    """Convenience wrapper around ``ProgressiveTaxEngine.compute``."""
    return ProgressiveTaxEngine(brackets).compute(monthly_taxable_base)

"""
Tests for the payslip assembler.

Covers:
- Reference scenarios (single employee, dependants, invalid base)
- Earnings and deduction line itemization
- Overtime, bonuses, advances and other deductions
- Negative taxable base
- Entry validation
- Provenance, status and finalization
- Structured logging context
"""

import dataclasses
import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from payroll_engines.allowances import MaritalStatus
from payroll_engines.overtime import OvertimeHours
from payroll_engines.payslip import (
    DeductionCategory,
    PayslipAssembler,
    PayslipStatus,
    compute_payslip,
    finalize,
)
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.exceptions import ConfigurationError, InvalidInputError
from payroll_kernel.logging_config import configure_logging
from tests.conftest import FIXED_TIME, make_constants, make_period, make_profile

MILLS = Decimal("0.001")


def q(amount: Decimal) -> Decimal:
    """Round to the dinar's three decimals for comparison."""
    return amount.quantize(MILLS)


class TestReferenceScenarios:

    def setup_method(self):
        self.assembler = PayslipAssembler(make_constants())

    def test_single_employee_no_dependants(self):
        payslip = self.assembler.compute(make_profile(), make_period("1000"))

        assert payslip.gross_salary == Decimal("1000")
        assert payslip.employee_social_contribution == Decimal("91.8")
        assert payslip.allowances.professional_expense_allowance == Decimal("90.82")
        assert payslip.total_allowances == Decimal("90.82")
        assert payslip.taxable_base == Decimal("817.38")
        assert payslip.tax.annual_base == Decimal("9808.56")
        assert payslip.tax.annual_tax == Decimal("1250.2256")
        assert q(payslip.income_tax) == Decimal("104.185")
        assert payslip.solidarity_contribution == Decimal("10")
        assert q(payslip.total_deductions) == Decimal("205.985")
        assert q(payslip.net_salary) == Decimal("794.015")

    def test_single_employee_breakdown(self):
        payslip = self.assembler.compute(make_profile(), make_period("1000"))

        assert [line.label for line in payslip.bracket_breakdown] == [
            "0 - 5,000",
            "5,000 - 20,000",
        ]
        assert payslip.bracket_breakdown[1].amount_in_bracket == Decimal("4808.56")
        assert payslip.bracket_breakdown[1].tax == Decimal("1250.2256")

    def test_two_children_reduce_tax(self):
        without = self.assembler.compute(make_profile(), make_period("1000"))
        with_children = self.assembler.compute(
            make_profile(number_of_children=2), make_period("1000")
        )

        assert with_children.allowances.children_allowance == Decimal("50")
        assert with_children.taxable_base == Decimal("767.38")
        # 50 * 12 * 26% / 12
        assert q(without.income_tax - with_children.income_tax) == Decimal("13.000")
        assert with_children.net_salary > without.net_salary

    def test_zero_base_salary_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.assembler.compute(make_profile(), make_period("0"))
        assert exc_info.value.field == "base_salary"


class TestLineItems:

    def setup_method(self):
        self.assembler = PayslipAssembler(make_constants())

    def test_base_only_lines(self):
        payslip = self.assembler.compute(make_profile(), make_period("1000"))

        assert [line.element_id for line in payslip.earnings] == ["base"]
        assert payslip.earnings[0].label == "Base salary"
        assert payslip.earnings[0].taxable
        assert [line.element_id for line in payslip.deductions] == ["cnss", "irpp", "css"]
        assert [line.category for line in payslip.deductions] == [
            DeductionCategory.SOCIAL,
            DeductionCategory.TAX,
            DeductionCategory.TAX,
        ]

    def test_bonus_and_overtime_lines(self):
        period = make_period(
            "1760",
            bonuses=Decimal("200"),
            overtime_hours=OvertimeHours(day=Decimal("10")),
        )
        payslip = self.assembler.compute(make_profile(), period)

        assert [(line.element_id, line.amount) for line in payslip.earnings] == [
            ("base", Decimal("1760")),
            ("bonus", Decimal("200")),
            ("overtime", Decimal("125")),
        ]
        assert payslip.gross_salary == Decimal("2085")
        assert payslip.overtime.hourly_rate == Decimal("10")

    def test_advances_and_other_deductions(self):
        period = make_period(
            "1000",
            advances=Decimal("100"),
            other_deductions=Decimal("15.5"),
        )
        payslip = self.assembler.compute(make_profile(), period)
        baseline = self.assembler.compute(make_profile(), make_period("1000"))

        assert [line.element_id for line in payslip.deductions] == [
            "cnss", "irpp", "css", "advance", "other",
        ]
        assert payslip.deductions[3].category == DeductionCategory.OTHER
        assert payslip.net_salary_before_advances == baseline.net_salary
        assert payslip.net_salary == baseline.net_salary - Decimal("115.5")
        # Advances do not change the tax
        assert payslip.income_tax == baseline.income_tax

    def test_lines_sum_to_totals(self):
        period = make_period(
            "2300",
            bonuses=Decimal("150"),
            overtime_hours=OvertimeHours(night=Decimal("3"), holiday=Decimal("1")),
            advances=Decimal("50"),
        )
        payslip = self.assembler.compute(make_profile(), period)

        assert sum(line.amount for line in payslip.earnings) == payslip.gross_salary
        assert sum(line.amount for line in payslip.deductions) == payslip.total_deductions
        assert payslip.net_salary == payslip.gross_salary - payslip.total_deductions

    def test_employer_side(self):
        payslip = self.assembler.compute(make_profile(), make_period("1000"))

        assert payslip.employer_contributions.social_security == Decimal("165.7")
        assert payslip.employer_contributions.training_tax == Decimal("10")
        assert payslip.employer_contributions.housing_fund == Decimal("20")
        assert payslip.total_employer_contributions == Decimal("195.7")
        assert payslip.total_employer_cost == Decimal("1195.7")


class TestOvertimeHandling:

    def setup_method(self):
        self.assembler = PayslipAssembler(make_constants(), clock=DeterministicClock(FIXED_TIME))

    def test_absent_overtime(self):
        payslip = self.assembler.compute(make_profile(), make_period("1000"))
        assert payslip.overtime is None

    def test_all_zero_hours_same_as_absent(self):
        absent = self.assembler.compute(make_profile(), make_period("1000"))
        zero = self.assembler.compute(
            make_profile(), make_period("1000", overtime_hours=OvertimeHours())
        )
        assert zero == absent

    def test_negative_overtime_rejected(self):
        period = make_period("1000", overtime_hours=OvertimeHours(day=Decimal("-2")))
        with pytest.raises(InvalidInputError) as exc_info:
            self.assembler.compute(make_profile(), period)
        assert exc_info.value.field == "overtime_hours.day"


class TestSpouseAndDependants:

    def test_married_with_children(self):
        payslip = compute_payslip(
            make_profile(number_of_children=3, marital_status=MaritalStatus.MARRIED),
            make_period("1500"),
            make_constants(),
        )

        assert payslip.allowances.spouse_allowance == Decimal("150")
        assert payslip.allowances.children_allowance == Decimal("75")
        assert payslip.marital_status == MaritalStatus.MARRIED

    def test_marital_status_given_as_value(self):
        payslip = compute_payslip(
            make_profile(marital_status="married"), make_period("1500"), make_constants()
        )
        assert payslip.marital_status is MaritalStatus.MARRIED
        assert payslip.allowances.spouse_allowance == Decimal("150")

    def test_negative_taxable_base_clamped_to_zero(self, caplog):
        profile = make_profile(number_of_children=10)
        with caplog.at_level(logging.WARNING, logger="payroll_kernel"):
            payslip = compute_payslip(profile, make_period("100"), make_constants())

        # 100 - 9.18 - 9.082 - 250 = -168.262
        assert payslip.taxable_base == 0
        assert payslip.taxable_base_clamped
        assert payslip.tax.annual_base == 0
        assert payslip.income_tax == 0
        assert payslip.bracket_breakdown == ()

        warnings = [r for r in caplog.records if r.getMessage() == "payslip_negative_taxable_base"]
        assert len(warnings) == 1
        assert Decimal(warnings[0].taxable_base) == Decimal("-168.262")
        assert payslip.net_salary == payslip.gross_salary - payslip.total_deductions


class TestEntryValidation:

    def setup_method(self):
        self.assembler = PayslipAssembler(make_constants())

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"base_salary": 1000.0}, "base_salary"),
            ({"base_salary": Decimal("-5")}, "base_salary"),
            ({"base_salary": None}, "base_salary"),
            ({"bonuses": Decimal("-1")}, "bonuses"),
            ({"advances": 10.5}, "advances"),
            ({"other_deductions": Decimal("-0.001")}, "other_deductions"),
            ({"work_days": Decimal("22")}, "work_days"),
            ({"worked_days": -1}, "worked_days"),
            ({"worked_days": 23}, "worked_days"),
        ],
    )
    def test_invalid_period(self, overrides, field):
        period = dataclasses.replace(make_period("1000"), **overrides)
        with pytest.raises(InvalidInputError) as exc_info:
            self.assembler.compute(make_profile(), period)
        assert exc_info.value.field == field

    def test_negative_children(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.assembler.compute(make_profile(number_of_children=-1), make_period("1000"))
        assert exc_info.value.field == "number_of_children"

    def test_unknown_marital_status(self):
        with pytest.raises(InvalidInputError) as exc_info:
            self.assembler.compute(make_profile(marital_status="engaged"), make_period("1000"))
        assert exc_info.value.field == "marital_status"

    def test_int_amounts_accepted(self):
        payslip = self.assembler.compute(make_profile(), make_period(1000, bonuses=50))
        assert payslip.gross_salary == Decimal("1050")

    def test_absence_days(self):
        payslip = self.assembler.compute(make_profile(), make_period("1000", worked_days=20))
        assert payslip.absence_days == 2

    def test_invalid_constants(self):
        with pytest.raises(ConfigurationError):
            PayslipAssembler(make_constants(brackets=()))

    def test_float_constant_rejected_at_construction(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PayslipAssembler(make_constants(employee_social_rate=0.0918))
        assert "employee_social_rate" in exc_info.value.errors[0]


class TestProvenance:

    def test_identity_echoed(self, clock):
        period = make_period("1000", run_id="PAY-2024-01")
        payslip = compute_payslip(make_profile(), period, make_constants(), clock=clock)

        assert payslip.employee_id == "emp-001"
        assert payslip.employee_name == "Amine Trabelsi"
        assert payslip.employee_number == "M-0001"
        assert payslip.run_id == "PAY-2024-01"
        assert payslip.period_start == "2024-01-01"
        assert payslip.period_end == "2024-01-31"
        assert payslip.rule_set_id == "TN-TEST"
        assert payslip.rule_set_version == 1
        assert payslip.currency == "TND"
        assert payslip.employee_social_rate == Decimal("0.0918")
        assert payslip.solidarity_rate == Decimal("0.01")

    def test_generated_at_from_clock(self, clock):
        payslip = compute_payslip(make_profile(), make_period(), make_constants(), clock=clock)
        assert payslip.generated_at == FIXED_TIME

    def test_draft_then_final(self, clock):
        draft = compute_payslip(make_profile(), make_period(), make_constants(), clock=clock)
        final = finalize(draft)

        assert draft.status == PayslipStatus.DRAFT
        assert final.status == PayslipStatus.FINAL
        assert dataclasses.replace(final, status=PayslipStatus.DRAFT) == draft

    def test_payslip_is_immutable(self, clock):
        payslip = compute_payslip(make_profile(), make_period(), make_constants(), clock=clock)
        with pytest.raises(dataclasses.FrozenInstanceError):
            payslip.net_salary = Decimal("0")


class TestLogging:

    def test_context_bound_during_computation(self):
        stream = StringIO()
        configure_logging(handler=logging.StreamHandler(stream))

        compute_payslip(make_profile(employee_id="emp-042"), make_period(), make_constants())

        records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
        completed = [r for r in records if r["message"] == "payslip_computation_completed"]
        assert len(completed) == 1
        assert completed[0]["employee_id"] == "emp-042"
        assert completed[0]["rule_set_id"] == "TN-TEST"
        assert "net_salary" in completed[0]

    def test_invalid_input_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="payroll_kernel"):
            with pytest.raises(InvalidInputError):
                compute_payslip(make_profile(), make_period("0"), make_constants())

        assert "payslip_invalid_input" in [r.getMessage() for r in caplog.records]

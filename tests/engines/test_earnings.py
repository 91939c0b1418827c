"""
Tests for earnings aggregation.

Covers:
- Proration of every salary component
- Overtime and variable pay added unprorated
- LOP subtraction and the net gross floor
- Breakdown serialisation
"""

from decimal import Decimal

from payroll_engines.earnings import aggregate_earnings
from payroll_engines.overtime import OvertimeResult
from payroll_kernel.domain.types import SalaryStructure, VariablePay

SALARY = SalaryStructure(
    basic=Decimal("50000"),
    hra=Decimal("20000"),
    allowances=Decimal("15000"),
)

NO_OVERTIME = OvertimeResult(
    normal_overtime_pay=Decimal("0"),
    night_shift_allowance=Decimal("0"),
    weekend_allowance=Decimal("0"),
    hourly_rate=Decimal("0"),
)


class TestFullMonth:
    """Factor 1 with no extras."""

    def test_gross_is_monthly_structure(self):
        result = aggregate_earnings(Decimal("1"), SALARY, NO_OVERTIME, VariablePay(), Decimal("0"))
        breakdown = result.breakdown

        assert breakdown.basic == Decimal("50000.00")
        assert breakdown.gross_earnings == Decimal("85000.00")
        assert breakdown.net_gross_earnings == Decimal("85000.00")
        assert result.warnings == ()

    def test_pf_wages_are_basic_plus_da(self):
        salary = SalaryStructure(basic=Decimal("10000"), da=Decimal("2000"))
        result = aggregate_earnings(Decimal("1"), salary, NO_OVERTIME, VariablePay(), Decimal("0"))

        assert result.breakdown.pf_wages == Decimal("12000.00")


class TestProration:
    """Components scaled by the proration factor."""

    def test_half_month(self):
        result = aggregate_earnings(Decimal("0.5"), SALARY, NO_OVERTIME, VariablePay(), Decimal("0"))
        breakdown = result.breakdown

        assert breakdown.basic == Decimal("25000.00")
        assert breakdown.hra == Decimal("10000.00")
        assert breakdown.allowances == Decimal("7500.00")
        assert breakdown.gross_earnings == Decimal("42500.00")

    def test_itemized_allowances_prorated(self):
        salary = SalaryStructure(
            basic=Decimal("30000"),
            conveyance_allowance=Decimal("1600"),
            medical_allowance=Decimal("1250"),
        )
        factor = Decimal(10) / Decimal(30)
        breakdown = aggregate_earnings(factor, salary, NO_OVERTIME, VariablePay(), Decimal("0")).breakdown

        assert breakdown.basic == Decimal("10000.00")
        assert breakdown.conveyance_allowance == Decimal("533.33")
        assert breakdown.medical_allowance == Decimal("416.67")
        assert breakdown.total_allowances == Decimal("950.00")

    def test_variable_pay_not_prorated(self):
        variable = VariablePay(bonus=Decimal("5000"), incentives=Decimal("1000"))
        breakdown = aggregate_earnings(
            Decimal("0.5"), SALARY, NO_OVERTIME, variable, Decimal("0")
        ).breakdown

        assert breakdown.bonus == Decimal("5000")
        assert breakdown.gross_earnings == Decimal("48500.00")

    def test_overtime_not_prorated(self):
        overtime = OvertimeResult(
            normal_overtime_pay=Decimal("5000.00"),
            night_shift_allowance=Decimal("2000.00"),
            weekend_allowance=Decimal("1500.00"),
            hourly_rate=Decimal("500.00"),
        )
        breakdown = aggregate_earnings(
            Decimal("0.5"), SALARY, overtime, VariablePay(), Decimal("0")
        ).breakdown

        assert breakdown.overtime == Decimal("5000.00")
        assert breakdown.night_shift_allowance == Decimal("2000.00")
        assert breakdown.gross_earnings == Decimal("51000.00")


class TestLossOfPay:
    """LOP subtraction."""

    def test_lop_reduces_net_gross(self):
        result = aggregate_earnings(
            Decimal("1"), SALARY, NO_OVERTIME, VariablePay(), Decimal("14000.00")
        )

        assert result.breakdown.gross_earnings == Decimal("85000.00")
        assert result.breakdown.lop_deduction == Decimal("14000.00")
        assert result.breakdown.net_gross_earnings == Decimal("71000.00")

    def test_lop_above_gross_floors_with_warning(self):
        result = aggregate_earnings(
            Decimal("0.1"), SALARY, NO_OVERTIME, VariablePay(), Decimal("14000.00")
        )

        assert result.breakdown.net_gross_earnings == Decimal("0")
        assert len(result.warnings) == 1
        assert "floored" in result.warnings[0]


class TestSerialisation:
    def test_to_dict_includes_total_allowances(self):
        data = aggregate_earnings(
            Decimal("1"), SALARY, NO_OVERTIME, VariablePay(), Decimal("0")
        ).breakdown.to_dict()

        assert data["total_allowances"] == Decimal("15000.00")
        assert data["net_gross_earnings"] == Decimal("85000.00")

"""
Tests for run-level payroll summaries.

Covers:
- Headcounts and failed employee IDs
- Earnings, deduction and net pay totals over valid outputs only
- Statutory breakdown and employer cost
"""

from decimal import Decimal

from payroll_services import summarize_payroll


class TestCounts:
    def test_headcounts(self, payroll_batch):
        summary = summarize_payroll(payroll_batch)

        assert summary.employee_count == 4
        assert summary.processed_count == 3
        assert summary.failed_count == 1
        assert summary.failed_employee_ids == ("EMP003",)

    def test_empty_run(self):
        summary = summarize_payroll([])

        assert summary.employee_count == 0
        assert summary.total_net_pay == Decimal("0")
        assert summary.total_employer_cost == Decimal("0")


class TestTotals:
    def test_earnings_and_net_pay(self, payroll_batch):
        summary = summarize_payroll(payroll_batch)

        assert summary.total_gross_earnings == Decimal("182000.00")
        assert summary.total_net_gross_earnings == Decimal("182000.00")
        assert summary.total_lop_deduction == Decimal("0")
        assert summary.total_net_pay == Decimal("160250")

    def test_net_pay_reconciles(self, payroll_batch):
        summary = summarize_payroll(payroll_batch)

        assert summary.total_net_gross_earnings - summary.total_deductions == summary.total_net_pay
        assert summary.total_deductions == (
            summary.total_statutory_deductions + summary.total_non_statutory_deductions
        )

    def test_statutory_breakdown(self, payroll_batch):
        statutory = summarize_payroll(payroll_batch).statutory

        assert statutory.pf_employee == Decimal("2760")
        assert statutory.pf_employer == Decimal("2760")
        assert statutory.pf_admin == Decimal("115")
        assert statutory.esi_employee == Decimal("90")
        assert statutory.esi_employer == Decimal("390")
        assert statutory.professional_tax == Decimal("400")
        assert statutory.lwf_employee == Decimal("40")
        assert statutory.tds == Decimal("18460")

    def test_employer_cost(self, payroll_batch):
        summary = summarize_payroll(payroll_batch)

        assert summary.total_employer_contributions == Decimal("3420")
        assert summary.total_employer_cost == Decimal("185420.00")

    def test_to_dict(self, payroll_batch):
        data = summarize_payroll(payroll_batch).to_dict()

        assert data["total_employer_cost"] == Decimal("185420.00")
        assert data["statutory"]["tds"] == Decimal("18460")
        assert data["failed_employee_ids"] == ("EMP003",)

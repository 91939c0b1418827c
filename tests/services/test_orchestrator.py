"""
Tests for gross-to-net payroll processing.

Covers:
- End-to-end worked examples (full month, LOP month, PF/ESI opt-out)
- Validation gating: zeroed output, unchanged YTD, failure audit entry
- Stage sequence and rule-set / input fingerprint stamping
- PT, LWF and TDS wired through from the rule set
- YTD roll-forward across consecutive months
- Determinism, audit trail and period lock events
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from payroll_kernel.exceptions import InvalidPayrollInputError
from payroll_kernel.domain.types import YTDAccumulator
from payroll_services import (
    AuditAction,
    PayrollStage,
    lock_payroll,
    process_payroll,
)

FULL_STAGES = (
    PayrollStage.RECEIVED,
    PayrollStage.VALIDATED,
    PayrollStage.EARNINGS_COMPUTED,
    PayrollStage.DEDUCTIONS_COMPUTED,
    PayrollStage.FINALIZED,
)


class TestWorkedExamples:
    """Reference scenarios from the payroll team."""

    def test_full_month_without_tax(self, make_input, zero_tds_rule_set, clock):
        """85000 gross, PF 1800 on the 15000 ceiling, ESI excluded above 21000."""
        output = process_payroll(make_input(), zero_tds_rule_set, clock=clock)

        assert output.is_valid
        assert output.earnings.gross_earnings == Decimal("85000.00")
        assert output.statutory_deductions.pf_employee == Decimal("1800")
        assert output.statutory_deductions.esi_employee == Decimal("0")
        assert output.statutory_deductions.professional_tax == Decimal("0")
        assert output.statutory_deductions.tds == Decimal("0")
        assert output.net_pay == Decimal("83200")

    def test_full_month_with_old_regime_tax(self, make_input, rule_set, clock):
        output = process_payroll(make_input(), rule_set, clock=clock)

        assert output.statutory_deductions.tds == Decimal("9230")
        assert output.tds_detail.regime == "old"
        assert output.total_deductions == Decimal("11030")
        assert output.net_pay == Decimal("73970")

    def test_new_regime_employee(self, make_input, rule_set, clock):
        output = process_payroll(
            make_input(employee={"taxRegime": "new"}), rule_set, clock=clock
        )

        assert output.statutory_deductions.tds == Decimal("3857")

    def test_loss_of_pay_month(self, make_input, zero_tds_rule_set, clock):
        """Six LOP days at (50000 + 20000) / 30 per day."""
        output = process_payroll(
            make_input(attendance={"presentDays": 20}), zero_tds_rule_set, clock=clock
        )

        assert output.attendance.absent_days == Decimal("6")
        assert output.attendance.lop_days == Decimal("6")
        assert output.earnings.lop_deduction == Decimal("14000.00")
        assert output.earnings.net_gross_earnings == Decimal("71000.00")
        assert output.statutory_deductions.pf_employee == Decimal("1800")
        assert output.net_pay == Decimal("69200")

    def test_pf_and_esi_opt_out(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(employee={"pfOptIn": False, "esiApplicable": False}),
            zero_tds_rule_set,
            clock=clock,
        )

        assert output.statutory_deductions.pf_employee == Decimal("0")
        assert output.statutory_deductions.esi_employee == Decimal("0")
        assert output.employer_contributions.pf_epf == Decimal("0")
        assert output.employer_contributions.esi_employer == Decimal("0")
        assert output.net_pay == Decimal("85000")

    def test_low_wage_employee_gets_esi(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(salaryStructure={"basic": 12000, "hra": 4000, "allowances": 2000, "ctc": 18000}),
            zero_tds_rule_set,
            clock=clock,
        )

        assert output.statutory_deductions.esi_employee == Decimal("135")
        assert output.statutory_deductions.esi_wages == Decimal("18000.00")
        assert output.employer_contributions.esi_employer == Decimal("585")
        assert output.statutory_deductions.pf_employee == Decimal("1440")
        assert output.net_pay == Decimal("16425")


class TestStatePrograms:
    """PT and LWF come from the employee's work state."""

    def test_karnataka(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(employee={"workState": "Karnataka"}), zero_tds_rule_set, clock=clock
        )

        assert output.statutory_deductions.professional_tax == Decimal("200")
        assert output.statutory_deductions.lwf_employee == Decimal("20")
        assert output.employer_contributions.lwf_employer == Decimal("20")
        assert output.net_pay == Decimal("82980")

    def test_unconfigured_state_warns(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(employee={"workState": "Goa"}), zero_tds_rule_set, clock=clock
        )

        assert output.is_valid
        assert output.statutory_deductions.professional_tax == Decimal("0")
        assert output.statutory_deductions.lwf_employee == Decimal("0")
        assert output.validation.warnings == (
            "No Professional Tax slabs configured for state 'Goa'; PT not deducted",
            "No LWF rates configured for state 'Goa'; LWF not deducted",
        )

    def test_missing_state_warns_for_pt_and_lwf(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(make_input(), zero_tds_rule_set, clock=clock)

        assert output.net_pay == Decimal("83200")
        assert "Work state not specified; PT not deducted" in output.validation.warnings
        assert "Work state not specified; LWF not deducted" in output.validation.warnings


class TestValidationGate:
    """Errors short-circuit calculation."""

    def test_zeroed_output(self, make_input, rule_set, clock):
        ytd = YTDAccumulator(gross_earnings=Decimal("85000"), tds_deducted=Decimal("9230"))
        output = process_payroll(
            make_input(employee={"pan": "BAD"}), rule_set, ytd, clock=clock
        )

        assert not output.is_valid
        assert "Valid PAN number is required" in output.validation.errors
        assert output.net_pay == Decimal("0")
        assert output.earnings.gross_earnings == Decimal("0")
        assert output.statutory_deductions.total == Decimal("0")
        assert output.ytd == ytd
        assert output.stages == (PayrollStage.RECEIVED, PayrollStage.FINALIZED)
        assert output.rule_set_version == rule_set.version

    def test_failure_audited(self, make_input, rule_set, clock, audit_log):
        process_payroll(
            make_input(attendance={"presentDays": 30}), rule_set, audit_sink=audit_log, clock=clock
        )

        (entry,) = audit_log.entries()
        assert entry.action is AuditAction.PAYROLL_VALIDATION_FAILED
        assert "Present days cannot exceed working days" in entry.payload["errors"]

    def test_failure_logged(self, make_input, rule_set, clock, captured_logs):
        process_payroll(make_input(employee={"name": ""}), rule_set, clock=clock)

        failed = [r for r in captured_logs() if r["message"] == "payroll_validation_failed"]
        assert failed[0]["level"] == "WARNING"
        assert failed[0]["employee_id"] == "EMP001"

    def test_unparseable_input_raises(self, make_payload, rule_set, clock):
        with pytest.raises(InvalidPayrollInputError) as exc_info:
            process_payroll(
                make_payload(employee={"joiningDate": "15/01/2020"}), rule_set, clock=clock
            )

        assert exc_info.value.field == "employee.joining_date"

    def test_bad_month_raises(self, make_payload, rule_set, clock):
        with pytest.raises(InvalidPayrollInputError):
            process_payroll(make_payload(period={"month": 13}), rule_set, clock=clock)

    def test_string_flags_are_read_as_booleans(self, make_payload, zero_tds_rule_set, clock):
        """A "false" string from a form or CSV export opts the employee out."""
        payload = make_payload(employee={"pfOptIn": "false", "esiApplicable": "False"})
        output = process_payroll(payload, zero_tds_rule_set, clock=clock)

        assert output.statutory_deductions.pf_employee == Decimal("0")
        assert output.statutory_deductions.pf_wage_base == Decimal("0")
        assert output.net_pay == Decimal("85000")

    @pytest.mark.parametrize("flag", ["0", "no", 1, "maybe"])
    def test_ambiguous_flag_raises(self, make_payload, rule_set, clock, flag):
        with pytest.raises(InvalidPayrollInputError) as exc_info:
            process_payroll(make_payload(employee={"pfOptIn": flag}), rule_set, clock=clock)

        assert exc_info.value.field == "employee.pf_opt_in"


class TestOutputShape:
    """Stages, stamps and serialisation."""

    def test_stage_sequence(self, make_input, rule_set, clock):
        output = process_payroll(make_input(), rule_set, clock=clock)

        assert output.stages == FULL_STAGES
        assert output.final_stage is PayrollStage.FINALIZED

    def test_stamps(self, make_input, rule_set, clock):
        output = process_payroll(make_input(), rule_set, clock=clock)

        assert output.rule_set_version == "IN-FY2024-25"
        assert output.rule_set_fingerprint == rule_set.fingerprint
        assert len(output.input_fingerprint) == 64
        assert output.processed_at == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)

    def test_mapping_input_matches_dataclass_input(self, make_input, make_payload, rule_set, clock):
        from_mapping = process_payroll(make_payload(), rule_set, clock=clock)
        from_dataclass = process_payroll(make_input(), rule_set, clock=clock)

        assert from_mapping == from_dataclass

    def test_identity_carried(self, make_input, rule_set, clock):
        output = process_payroll(make_input(), rule_set, clock=clock)

        assert output.identity.name == "Asha Rao"
        assert output.identity.uan == "100200300400"
        assert output.identity.ifsc == "HDFC0001234"

    def test_to_dict(self, make_input, rule_set, clock):
        data = process_payroll(make_input(), rule_set, clock=clock).to_dict()

        assert data["period"] == {"month": 4, "year": 2024}
        assert data["net_pay"] == Decimal("73970")
        assert data["stages"][-1] == "finalized"
        assert data["validation"]["is_valid"] is True
        assert data["processed_at"] == "2024-05-01T10:30:00+00:00"


class TestEdgeCases:
    def test_mid_month_joiner(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(employee={"joiningDate": "2024-04-16"}), zero_tds_rule_set, clock=clock
        )

        assert output.attendance.effective_days == 15
        assert output.earnings.gross_earnings == Decimal("42500.00")
        assert output.statutory_deductions.pf_wage_base == Decimal("15000")

    def test_no_eligible_days(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(employee={"joiningDate": "2024-05-02"}), zero_tds_rule_set, clock=clock
        )

        assert output.is_valid
        assert output.earnings.gross_earnings == Decimal("0")
        assert output.earnings.lop_deduction == Decimal("0")
        assert output.net_pay == Decimal("0")
        assert "No eligible days in period" in output.validation.warnings

    def test_low_gross_warning(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(employee={"joiningDate": "2024-04-28"}), zero_tds_rule_set, clock=clock
        )

        assert output.earnings.gross_earnings == Decimal("8500.00")
        assert any(w.startswith("Gross earnings 8500.00 below") for w in output.validation.warnings)

    def test_negative_net_pay_reported(self, make_input, zero_tds_rule_set, clock, captured_logs):
        output = process_payroll(
            make_input(deductions={"loanEMI": 90000}), zero_tds_rule_set, clock=clock
        )

        assert output.net_pay == Decimal("-6800")
        assert output.non_statutory_deductions.loan_emi == Decimal("90000.00")
        assert any("Net pay is negative" in w for w in output.validation.warnings)
        assert any(r["message"] == "payroll_negative_net_pay" for r in captured_logs())

    def test_overtime_and_variable_pay(self, make_input, zero_tds_rule_set, clock):
        output = process_payroll(
            make_input(
                attendance={"overtimeHours": 10, "nightShiftDays": 2, "weekendShiftDays": 1},
                variablePay={"bonus": 5000},
            ),
            zero_tds_rule_set,
            clock=clock,
        )

        assert output.earnings.overtime == Decimal("5000.00")
        assert output.earnings.gross_earnings == Decimal("98500.00")
        assert output.net_pay == Decimal("96700")


class TestYearToDate:
    """Running totals across months."""

    def test_first_month(self, make_input, rule_set, clock):
        output = process_payroll(make_input(), rule_set, clock=clock)

        assert output.ytd.gross_earnings == Decimal("85000.00")
        assert output.ytd.tds_deducted == Decimal("9230")
        assert output.ytd.net_pay == Decimal("73970")

    def test_second_month_uses_first_months_totals(self, make_input, rule_set, clock):
        april = process_payroll(make_input(), rule_set, clock=clock)
        may = process_payroll(
            make_input(period={"month": "May", "year": 2024}), rule_set, april.ytd, clock=clock
        )

        assert may.tds_detail.already_deducted == Decimal("9230")
        assert may.tds_detail.remaining_months == 11
        assert may.statutory_deductions.tds == Decimal("9230")
        assert may.ytd.gross_earnings == Decimal("170000.00")

    def test_ytd_mapping(self, make_input, rule_set, clock):
        output = process_payroll(
            make_input(), rule_set, {"grossEarnings": "0", "tdsDeducted": "110760"}, clock=clock
        )

        assert output.statutory_deductions.tds == Decimal("0")


class TestDeterminismAndAudit:
    def test_same_input_same_output(self, make_input, rule_set, clock):
        first = process_payroll(make_input(), rule_set, clock=clock)
        second = process_payroll(make_input(), rule_set, clock=clock)

        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_input_fingerprint_tracks_input(self, make_input, rule_set, clock):
        base = process_payroll(make_input(), rule_set, clock=clock)
        changed = process_payroll(make_input(variablePay={"bonus": 1}), rule_set, clock=clock)

        assert base.input_fingerprint != changed.input_fingerprint

    def test_processed_entry(self, make_input, rule_set, clock, audit_log):
        output = process_payroll(make_input(), rule_set, audit_sink=audit_log, clock=clock)

        (entry,) = audit_log.for_action(AuditAction.PAYROLL_PROCESSED)
        assert entry.timestamp == output.processed_at
        assert entry.payload["net_pay"] == Decimal("73970")
        assert entry.payload["input_fingerprint"] == output.input_fingerprint
        assert entry.payload["rule_set_fingerprint"] == rule_set.fingerprint
        assert audit_log.for_period("2024-04") == (entry,)

    def test_completion_logged_with_context(self, make_input, rule_set, clock, captured_logs):
        process_payroll(make_input(), rule_set, clock=clock)

        completed = [r for r in captured_logs() if r["message"] == "payroll_processing_completed"]
        assert completed[0]["period"] == "2024-04"
        assert completed[0]["rule_set_version"] == "IN-FY2024-25"


class TestLockPayroll:
    def test_lock_entry(self, audit_log, clock):
        entry = lock_payroll(
            "April",
            2024,
            "hr.admin",
            audit_sink=audit_log,
            clock=clock,
            employee_count=2,
            total_net_pay=Decimal("150000"),
        )

        assert entry.action is AuditAction.PAYROLL_LOCKED
        assert entry.payload["period"] == "2024-04"
        assert entry.payload["locked_by"] == "hr.admin"
        assert entry.payload["employee_count"] == 2
        assert audit_log.for_action(AuditAction.PAYROLL_LOCKED) == (entry,)

    def test_lock_logged(self, audit_log, clock, captured_logs):
        lock_payroll(4, 2024, "hr.admin", audit_sink=audit_log, clock=clock)

        locked = [r for r in captured_logs() if r["message"] == "payroll_period_locked"]
        assert locked[0]["actor_id"] == "hr.admin"

"""
payroll_services.orchestrator -- Gross-to-net payroll for one employee.

Responsibility:
    Validate a payroll input, sequence the calculators in
    ``payroll_engines``, assemble the ``PayrollOutput`` and record an
    audit entry.  Also records period lock events.

Architecture position:
    Services -- composes engines over a caller-supplied ``RuleSet``.
    Stateless between calls: the YTD accumulator comes in and goes out,
    audit entries go to the sink the caller passes.

Invariants enforced:
    - Stage order: received -> validated -> earnings-computed ->
      deductions-computed -> finalized.  A validation failure skips
      straight to finalized with zeroed breakdowns, net pay 0 and the
      YTD returned unchanged.
    - Determinism: the same input, YTD and rule set produce the same
      output apart from ``processed_at``.
    - Net pay = net gross earnings - statutory - non-statutory
      deductions, rounded to the rupee.  A negative result is reported
      as computed with a warning.

Failure modes:
    - ``InvalidPayrollInputError`` when a mapping input cannot be parsed
      (bad dates, month outside 1..12, non-numeric amounts).
    - Business-rule problems never raise; they are on ``output.validation``.

Audit relevance:
    Every call appends PAYROLL_PROCESSED or PAYROLL_VALIDATION_FAILED to
    the audit sink with the input fingerprint, rule-set version and
    fingerprint, and net pay.  ``lock_payroll`` appends PAYROLL_LOCKED;
    enforcing the lock is the caller's job.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, Mapping

from payroll_config.schema import RuleSet
from payroll_engines.attendance import resolve_absent_days, resolve_lop, resolve_lop_days
from payroll_engines.earnings import EarningsBreakdown, aggregate_earnings
from payroll_engines.overtime import calculate_overtime
from payroll_engines.proration import NO_ELIGIBLE_DAYS_WARNING, calculate_proration
from payroll_engines.recoveries import RecoveriesBreakdown, aggregate_recoveries
from payroll_engines.statutory import (
    calculate_esi,
    calculate_lwf,
    calculate_pf,
    calculate_professional_tax,
    calculate_tds,
    round_rupees,
)
from payroll_engines.validation import validate_payroll_input
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.types import (
    ZERO,
    PayrollInput,
    PayrollPeriod,
    ValidationResult,
    YTDAccumulator,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.utils.hashing import hash_payload
from payroll_services.audit import AuditAction, AuditEntry, AuditSink
from payroll_services.models import (
    AttendanceSummary,
    EmployeeIdentity,
    EmployerContributions,
    PayrollOutput,
    PayrollStage,
    StatutoryDeductions,
)

logger = get_logger("services.orchestrator")


def _coerce_input(payroll_input: PayrollInput | Mapping[str, Any]) -> PayrollInput:
    if isinstance(payroll_input, PayrollInput):
        return payroll_input
    return PayrollInput.from_dict(payroll_input)


def _coerce_ytd(ytd: YTDAccumulator | Mapping[str, Any] | None) -> YTDAccumulator:
    if ytd is None:
        return YTDAccumulator()
    if isinstance(ytd, YTDAccumulator):
        return ytd
    return YTDAccumulator.from_dict(ytd)


def _record(audit_sink: AuditSink | None, entry: AuditEntry) -> None:
    if audit_sink is not None:
        audit_sink.record(entry)


def process_payroll(
    payroll_input: PayrollInput | Mapping[str, Any],
    rules: RuleSet,
    ytd: YTDAccumulator | Mapping[str, Any] | None = None,
    *,
    audit_sink: AuditSink | None = None,
    clock: Clock | None = None,
) -> PayrollOutput:
    """Compute one employee's payroll for one period.

    Args:
        payroll_input: A ``PayrollInput`` or a collaborator mapping
            (camelCase or snake_case keys).
        rules: The rule set in force for the period.
        ytd: Fiscal-year running totals before this period.
        audit_sink: Receives one audit entry for this call.
        clock: Source of ``processed_at`` and audit timestamps.

    Raises:
        InvalidPayrollInputError: If a mapping input cannot be parsed.
    """
    clock = clock or SystemClock()
    payroll_input = _coerce_input(payroll_input)
    ytd = _coerce_ytd(ytd)
    period = payroll_input.period
    input_fingerprint = hash_payload({"input": payroll_input, "ytd": ytd})

    with LogContext.bind(
        employee_id=payroll_input.employee_id or payroll_input.employee.employee_id,
        period=period.label,
        rule_set_version=rules.version,
    ):
        logger.info(
            "payroll_processing_started",
            extra={"input_fingerprint": input_fingerprint},
        )
        stages = [PayrollStage.RECEIVED]

        validation = validate_payroll_input(payroll_input, rules)
        if not validation.is_valid:
            stages.append(PayrollStage.FINALIZED)
            output = PayrollOutput(
                employee_id=payroll_input.employee_id,
                period=period,
                identity=EmployeeIdentity.from_profile(payroll_input.employee),
                attendance=AttendanceSummary(),
                earnings=EarningsBreakdown(),
                statutory_deductions=StatutoryDeductions(),
                non_statutory_deductions=RecoveriesBreakdown(),
                employer_contributions=EmployerContributions(),
                total_deductions=ZERO,
                net_pay=ZERO,
                ytd=ytd,
                validation=validation,
                stages=tuple(stages),
                rule_set_version=rules.version,
                rule_set_fingerprint=rules.fingerprint,
                input_fingerprint=input_fingerprint,
                processed_at=clock.now(),
            )
            logger.warning(
                "payroll_validation_failed",
                extra={"errors": list(validation.errors)},
            )
            _record(
                audit_sink,
                AuditEntry(
                    timestamp=output.processed_at,
                    action=AuditAction.PAYROLL_VALIDATION_FAILED,
                    payload=_audit_payload(output),
                ),
            )
            return output

        stages.append(PayrollStage.VALIDATED)
        output = _calculate(payroll_input, rules, ytd, validation, stages)
        output = _stamp(output, rules, input_fingerprint, clock)

        logger.info(
            "payroll_processing_completed",
            extra={
                "gross_earnings": output.earnings.gross_earnings,
                "net_pay": output.net_pay,
                "warning_count": len(output.validation.warnings),
            },
        )
        _record(
            audit_sink,
            AuditEntry(
                timestamp=output.processed_at,
                action=AuditAction.PAYROLL_PROCESSED,
                payload=_audit_payload(output),
            ),
        )
        return output


def _calculate(
    payroll_input: PayrollInput,
    rules: RuleSet,
    ytd: YTDAccumulator,
    validation: ValidationResult,
    stages: list[PayrollStage],
) -> PayrollOutput:
    employee = payroll_input.employee
    salary = payroll_input.salary_structure
    attendance = payroll_input.attendance
    period = payroll_input.period
    warnings: list[str] = []

    # Earnings
    proration = calculate_proration(employee.joining_date, employee.exit_date, period)
    if not proration.has_eligible_days:
        warnings.append(NO_ELIGIBLE_DAYS_WARNING)
        lop_amount = ZERO
    else:
        lop = resolve_lop(attendance, salary, rules.lop)
        warnings.extend(lop.warnings)
        lop_amount = lop.amount

    overtime = calculate_overtime(
        basic=salary.basic,
        overtime_hours=attendance.overtime_hours,
        night_shift_days=attendance.night_shift_days,
        weekend_shift_days=attendance.weekend_shift_days,
        rules=rules.overtime,
    )
    earnings_result = aggregate_earnings(
        proration_factor=proration.factor,
        salary=salary,
        overtime=overtime,
        variable_pay=payroll_input.variable_pay,
        lop_amount=lop_amount,
    )
    warnings.extend(earnings_result.warnings)
    earnings = earnings_result.breakdown
    if earnings.gross_earnings < rules.validation.low_gross_threshold:
        warnings.append(
            f"Gross earnings {earnings.gross_earnings} below {rules.validation.low_gross_threshold}"
        )
    stages.append(PayrollStage.EARNINGS_COMPUTED)

    # Statutory deductions
    net_gross = earnings.net_gross_earnings
    pf = calculate_pf(
        basic=earnings.basic,
        da=earnings.da,
        pf_opt_in=employee.pf_opt_in,
        vpf_percent=employee.vpf_percent,
        rules=rules.pf,
    )
    esi = calculate_esi(
        net_gross_earnings=net_gross,
        esi_applicable=employee.esi_applicable,
        rules=rules.esi,
    )
    pt = calculate_professional_tax(
        net_gross_earnings=net_gross,
        state=employee.work_state,
        slabs_by_state=rules.professional_tax,
    )
    warnings.extend(pt.warnings)
    lwf = calculate_lwf(
        state=employee.work_state,
        month=period.month,
        rules_by_state=rules.lwf,
    )
    warnings.extend(lwf.warnings)
    tds = calculate_tds(
        net_gross_earnings=net_gross,
        period=period,
        ytd=ytd,
        regime=employee.tax_regime,
        rules=rules.tds,
    )
    warnings.extend(tds.warnings)

    statutory = StatutoryDeductions(
        pf_employee=pf.employee,
        vpf=pf.vpf,
        esi_employee=esi.employee,
        professional_tax=pt.amount,
        lwf_employee=lwf.employee,
        tds=tds.monthly_tds,
        pf_wage_base=pf.wage_base,
        esi_wages=esi.wages,
    )
    employer = EmployerContributions(
        pf_epf=pf.employer_epf,
        pf_eps=pf.employer_eps,
        pf_admin=pf.admin_charges,
        pf_edli=pf.edli,
        esi_employer=esi.employer,
        lwf_employer=lwf.employer,
    )
    recoveries = aggregate_recoveries(payroll_input.deductions)
    total_deductions = statutory.total + recoveries.total
    stages.append(PayrollStage.DEDUCTIONS_COMPUTED)

    # Finalize
    net_pay = round_rupees(net_gross - total_deductions)
    if net_pay < ZERO:
        warnings.append(f"Net pay is negative ({net_pay}); deductions exceed earnings")
        logger.warning(
            "payroll_negative_net_pay",
            extra={"net_pay": net_pay, "total_deductions": total_deductions},
        )
    stages.append(PayrollStage.FINALIZED)

    return PayrollOutput(
        employee_id=payroll_input.employee_id,
        period=period,
        identity=EmployeeIdentity.from_profile(employee),
        attendance=AttendanceSummary(
            total_days=attendance.total_days,
            working_days=attendance.working_days,
            present_days=attendance.present_days,
            absent_days=resolve_absent_days(attendance),
            lop_days=resolve_lop_days(attendance),
            paid_leave_days=attendance.paid_leave_days,
            effective_days=proration.effective_days,
            proration_factor=proration.factor,
        ),
        earnings=earnings,
        statutory_deductions=statutory,
        non_statutory_deductions=recoveries,
        employer_contributions=employer,
        total_deductions=total_deductions,
        net_pay=net_pay,
        ytd=ytd.add(
            gross_earnings=net_gross,
            total_deductions=total_deductions,
            net_pay=net_pay,
            tds_deducted=tds.monthly_tds,
        ),
        validation=validation.with_warnings(*warnings),
        tds_detail=tds,
        stages=tuple(stages),
    )


def _stamp(
    output: PayrollOutput,
    rules: RuleSet,
    input_fingerprint: str,
    clock: Clock,
) -> PayrollOutput:
    return replace(
        output,
        rule_set_version=rules.version,
        rule_set_fingerprint=rules.fingerprint,
        input_fingerprint=input_fingerprint,
        processed_at=clock.now(),
    )


def _audit_payload(output: PayrollOutput) -> dict[str, Any]:
    return {
        "employee_id": output.employee_id,
        "period": output.period.label,
        "rule_set_version": output.rule_set_version,
        "rule_set_fingerprint": output.rule_set_fingerprint,
        "input_fingerprint": output.input_fingerprint,
        "gross_earnings": output.earnings.gross_earnings,
        "total_deductions": output.total_deductions,
        "net_pay": output.net_pay,
        "errors": list(output.validation.errors),
        "warnings": list(output.validation.warnings),
    }


def lock_payroll(
    month: int | str,
    year: int,
    locked_by: str,
    *,
    audit_sink: AuditSink,
    clock: Clock | None = None,
    employee_count: int | None = None,
    total_net_pay: Decimal | None = None,
) -> AuditEntry:
    """Record that a period's payroll is locked.

    The engine does not enforce the lock; the caller must refuse further
    processing for a locked period.
    """
    clock = clock or SystemClock()
    period = PayrollPeriod.of(month, year)
    payload: dict[str, Any] = {"period": period.label, "locked_by": locked_by}
    if employee_count is not None:
        payload["employee_count"] = employee_count
    if total_net_pay is not None:
        payload["total_net_pay"] = total_net_pay

    entry = AuditEntry(
        timestamp=clock.now(),
        action=AuditAction.PAYROLL_LOCKED,
        payload=payload,
    )
    with LogContext.bind(period=period.label, actor_id=locked_by):
        logger.info("payroll_period_locked", extra=dict(payload))
    audit_sink.record(entry)
    return entry

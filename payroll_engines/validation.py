"""
Module: payroll_engines.validation
Responsibility:
    Check a ``PayrollInput`` before calculation: mandatory identity
    fields, identifier formats (PAN, IFSC, UAN, ESIC number), attendance
    consistency and non-negative amounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Errors block a trustworthy net pay: the orchestrator short-circuits
      to a zeroed output when any error is present.
    - Warnings never block calculation.
    - Validation never raises for business-rule violations.

Failure modes:
    - None.  Every problem becomes a message on ``ValidationResult``.
"""

from __future__ import annotations

import re

from payroll_config.schema import RuleSet
from payroll_kernel.domain.types import ZERO, PayrollInput, ValidationResult

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
UAN_PATTERN = re.compile(r"^[0-9]{12}$")
ESIC_PATTERN = re.compile(r"^[0-9]{10}$")


def validate_pan(pan: str) -> bool:
    return bool(PAN_PATTERN.match(pan or ""))


def validate_ifsc(ifsc: str) -> bool:
    return bool(IFSC_PATTERN.match(ifsc or ""))


def validate_uan(uan: str) -> bool:
    return bool(UAN_PATTERN.match(uan or ""))


def validate_esic_number(esic_number: str) -> bool:
    return bool(ESIC_PATTERN.match(esic_number or ""))


def _identity_checks(payroll_input: PayrollInput, errors: list[str], warnings: list[str]) -> None:
    employee = payroll_input.employee
    if not employee.name:
        errors.append("Employee name is required")
    if not employee.employee_id and not payroll_input.employee_id:
        errors.append("Employee ID is required")
    elif (
        employee.employee_id
        and payroll_input.employee_id
        and employee.employee_id != payroll_input.employee_id
    ):
        warnings.append(
            f"Employee ID mismatch: payroll record '{payroll_input.employee_id}' "
            f"vs employee master '{employee.employee_id}'"
        )
    if not validate_pan(employee.pan):
        errors.append("Valid PAN number is required")
    if not employee.bank_account:
        errors.append("Bank account number is required")
    if not validate_ifsc(employee.ifsc):
        errors.append("Valid IFSC code is required")
    if employee.exit_date is not None and employee.exit_date < employee.joining_date:
        errors.append("Exit date cannot precede joining date")

    if employee.pf_opt_in:
        if not employee.uan:
            warnings.append("UAN number missing for PF opted employee")
        elif not validate_uan(employee.uan):
            warnings.append("Invalid UAN format. Should be 12 digits")
    if employee.esi_applicable:
        if not employee.esic_number:
            warnings.append("ESIC number missing for ESI applicable employee")
        elif not validate_esic_number(employee.esic_number):
            warnings.append("Invalid ESIC number format. Should be 10 digits")
    if employee.vpf_percent < ZERO:
        errors.append("VPF percentage cannot be negative")


def _salary_checks(payroll_input: PayrollInput, rules: RuleSet, errors: list[str], warnings: list[str]) -> None:
    salary = payroll_input.salary_structure
    if salary.basic <= ZERO:
        errors.append("Valid basic salary is required")
    negative = [
        name
        for name in (
            "hra",
            "da",
            "allowances",
            "conveyance_allowance",
            "medical_allowance",
            "special_allowance",
            "city_compensatory_allowance",
            "other_allowances",
        )
        if salary.component(name) < ZERO
    ]
    if negative:
        errors.append(f"Salary components cannot be negative: {', '.join(negative)}")
    if salary.ctc is not None:
        if abs(salary.monthly_gross - salary.ctc) > rules.validation.ctc_tolerance:
            warnings.append("Salary components do not match CTC")


def _attendance_checks(payroll_input: PayrollInput, errors: list[str], warnings: list[str]) -> None:
    attendance = payroll_input.attendance
    if attendance.working_days < ZERO or attendance.present_days < ZERO:
        errors.append("Working and present days cannot be negative")
    if attendance.present_days > attendance.working_days:
        errors.append("Present days cannot exceed working days")
    if attendance.lop_days is not None and attendance.lop_days < ZERO:
        errors.append("LOP days cannot be negative")
    if attendance.overtime_hours < ZERO:
        errors.append("Overtime hours cannot be negative")
    if attendance.night_shift_days < ZERO or attendance.weekend_shift_days < ZERO:
        errors.append("Shift days cannot be negative")
    if attendance.paid_leave_days < ZERO:
        errors.append("Paid leave days cannot be negative")
    if attendance.total_days < 0:
        errors.append("Total days in month cannot be negative")
    elif (
        attendance.total_days > 0
        and attendance.lop_days is not None
        and attendance.lop_days > attendance.total_days
    ):
        warnings.append("LOP days exceed total days in month")


def _amount_checks(payroll_input: PayrollInput, errors: list[str]) -> None:
    variable = payroll_input.variable_pay
    negative = [
        name
        for name in ("bonus", "incentives", "arrears", "reimbursements")
        if getattr(variable, name) < ZERO
    ]
    if negative:
        errors.append(f"Variable pay cannot be negative: {', '.join(negative)}")

    deductions = payroll_input.deductions
    negative = [
        name
        for name in (
            "loan_emi",
            "advance_recovery",
            "insurance_premium",
            "canteen_deduction",
            "other_deductions",
        )
        if getattr(deductions, name) < ZERO
    ]
    if negative:
        errors.append(f"Deductions cannot be negative: {', '.join(negative)}")


def validate_payroll_input(payroll_input: PayrollInput, rules: RuleSet) -> ValidationResult:
    """Run every pre-calculation check and collect the messages."""
    errors: list[str] = []
    warnings: list[str] = []

    _identity_checks(payroll_input, errors, warnings)
    _salary_checks(payroll_input, rules, errors, warnings)
    _attendance_checks(payroll_input, errors, warnings)
    _amount_checks(payroll_input, errors)

    return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))

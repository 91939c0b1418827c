"""
Payroll domain types (``payroll_kernel.domain.types``).

Responsibility
--------------
Frozen dataclass value objects for everything a collaborator hands to the
engine for one employee and one period: the employee master subset, salary
structure, attendance, variable pay, manual recoveries, and the year-to-date
accumulator.  ``ValidationResult`` also lives here because every layer
produces one.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Consumed by
``payroll_engines`` and ``payroll_services``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Defaults are applied once, here, at the input boundary (``from_dict``);
  calculators never see missing fields.

Failure modes
-------------
* ``InvalidPayrollInputError`` for unparseable dates, months outside
  1..12 and values that are not numbers.  Business-rule problems (negative
  LOP days, present days above working days) are NOT rejected here: they
  are reported by ``payroll_engines.validation``.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Self

from payroll_kernel.exceptions import InvalidPayrollInputError

ZERO = Decimal("0")
PAISE = Decimal("0.01")
RUPEE = Decimal("1")

_MISSING = object()

_MONTH_NAMES: dict[str, int] = {
    name.lower(): index
    for index, name in enumerate(calendar.month_name)
    if name
} | {
    abbr.lower(): index
    for index, abbr in enumerate(calendar.month_abbr)
    if abbr
}


# ---------------------------------------------------------------------------
# Boundary parsing helpers
# ---------------------------------------------------------------------------


def to_decimal(value: Any, field_name: str, default: Decimal = ZERO) -> Decimal:
    """
    Convert a collaborator-supplied number to ``Decimal``.

    ``None`` and empty strings become ``default``.  Floats go through
    ``str`` so 0.1 stays 0.1.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidPayrollInputError(field_name, value, "expected a number, got a boolean")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise InvalidPayrollInputError(field_name, value, "not a number") from exc
    if not result.is_finite():
        raise InvalidPayrollInputError(field_name, value, "must be finite")
    return result


def to_bool(value: Any, field_name: str, default: bool = False) -> bool:
    """
    Convert a collaborator-supplied flag to ``bool``.

    Accepts real booleans and the strings "true"/"false" in any case.
    ``None`` and empty strings become ``default``.  Anything else, ``0``
    and ``1`` included, is rejected rather than guessed.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    raise InvalidPayrollInputError(field_name, value, "expected true or false")


def to_int(value: Any, field_name: str, default: int = 0) -> int:
    """Convert a day count to ``int``; fractional values are rejected."""
    number = to_decimal(value, field_name, Decimal(default))
    if number != number.to_integral_value():
        raise InvalidPayrollInputError(field_name, value, "must be a whole number")
    return int(number)


def parse_date(value: Any, field_name: str) -> date | None:
    """
    Parse an ISO date (``YYYY-MM-DD``, optionally with a time part).

    Returns ``None`` for ``None``/empty values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError as exc:
            raise InvalidPayrollInputError(field_name, value, "not an ISO date") from exc
    raise InvalidPayrollInputError(field_name, value, "expected a date or ISO string")


def parse_month(value: Any) -> int:
    """Accept 1..12, "04", "April" or "Apr"."""
    if isinstance(value, str) and not value.strip().isdigit():
        month = _MONTH_NAMES.get(value.strip().lower())
        if month is None:
            raise InvalidPayrollInputError("month", value, "unknown month name")
        return month
    return to_int(value, "month")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _pick(data: Mapping[str, Any], name: str, default: Any = _MISSING) -> Any:
    """Look a field up by snake_case name, then by its camelCase spelling."""
    if name in data:
        return data[name]
    camel = _camel(name)
    if camel in data:
        return data[camel]
    if default is _MISSING:
        raise InvalidPayrollInputError(name, None, "required field is missing")
    return default


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


# ---------------------------------------------------------------------------
# Period
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PayrollPeriod:
    """A calendar-month payroll period."""

    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidPayrollInputError("month", self.month, "must be between 1 and 12")
        if not 1900 <= self.year <= 9999:
            raise InvalidPayrollInputError("year", self.year, "out of range")

    @classmethod
    def of(cls, month: Any, year: Any) -> Self:
        return cls(month=parse_month(month), year=to_int(year, "year"))

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    def __str__(self) -> str:
        return self.label


# ---------------------------------------------------------------------------
# Employee master subset
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EmployeeProfile:
    """
    The calculation-relevant subset of the employee master.

    Identifiers (PAN, UAN, ESIC, bank account, IFSC) are validated and
    passed through to exports; they never influence amounts.
    """

    employee_id: str
    name: str
    joining_date: date
    exit_date: date | None = None
    work_state: str = ""
    pf_opt_in: bool = False
    esi_applicable: bool = False
    vpf_percent: Decimal = ZERO
    tax_regime: str | None = None
    pan: str = ""
    uan: str = ""
    esic_number: str = ""
    aadhaar: str = ""
    bank_account: str = ""
    ifsc: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        joining = parse_date(_pick(data, "joining_date"), "employee.joining_date")
        if joining is None:
            raise InvalidPayrollInputError("employee.joining_date", None, "required field is missing")
        regime = _text(_pick(data, "tax_regime", None)) or None
        return cls(
            employee_id=_text(_pick(data, "employee_id", "")),
            name=_text(_pick(data, "name", "")),
            joining_date=joining,
            exit_date=parse_date(_pick(data, "exit_date", None), "employee.exit_date"),
            work_state=_text(_pick(data, "work_state", "")),
            pf_opt_in=to_bool(_pick(data, "pf_opt_in", None), "employee.pf_opt_in"),
            esi_applicable=to_bool(_pick(data, "esi_applicable", None), "employee.esi_applicable"),
            vpf_percent=to_decimal(_pick(data, "vpf_percent", None), "employee.vpf_percent"),
            tax_regime=regime.lower() if regime else None,
            pan=_text(_pick(data, "pan", "")).upper(),
            uan=_text(_pick(data, "uan", "")),
            esic_number=_text(_pick(data, "esic_number", "")),
            aadhaar=_text(_pick(data, "aadhaar", "")),
            bank_account=_text(_pick(data, "bank_account", "")),
            ifsc=_text(_pick(data, "ifsc", "")).upper(),
        )


# ---------------------------------------------------------------------------
# Salary structure
# ---------------------------------------------------------------------------


ITEMIZED_ALLOWANCES = (
    "conveyance_allowance",
    "medical_allowance",
    "special_allowance",
    "city_compensatory_allowance",
    "other_allowances",
)


@dataclass(frozen=True)
class SalaryStructure:
    """
    Monthly salary structure for one employee and period.

    ``allowances`` is the lump-sum form; the itemized fields are the
    detailed form.  Both may be used together and are summed.
    """

    basic: Decimal
    hra: Decimal = ZERO
    da: Decimal = ZERO
    allowances: Decimal = ZERO
    conveyance_allowance: Decimal = ZERO
    medical_allowance: Decimal = ZERO
    special_allowance: Decimal = ZERO
    city_compensatory_allowance: Decimal = ZERO
    other_allowances: Decimal = ZERO
    ctc: Decimal | None = None

    @property
    def total_allowances(self) -> Decimal:
        return self.allowances + sum(
            (getattr(self, name) for name in ITEMIZED_ALLOWANCES), ZERO
        )

    @property
    def monthly_gross(self) -> Decimal:
        return self.basic + self.hra + self.da + self.total_allowances

    def component(self, name: str) -> Decimal:
        """Amount of a named component; unknown names are zero."""
        value = getattr(self, name, None)
        return value if isinstance(value, Decimal) else ZERO

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        def amount(name: str) -> Decimal:
            return to_decimal(_pick(data, name, None), f"salary_structure.{name}")

        ctc_raw = _pick(data, "ctc", None)
        return cls(
            basic=amount("basic"),
            hra=amount("hra"),
            da=amount("da"),
            allowances=amount("allowances"),
            conveyance_allowance=amount("conveyance_allowance"),
            medical_allowance=amount("medical_allowance"),
            special_allowance=amount("special_allowance"),
            city_compensatory_allowance=amount("city_compensatory_allowance"),
            other_allowances=amount("other_allowances"),
            ctc=None if ctc_raw in (None, "") else to_decimal(ctc_raw, "salary_structure.ctc"),
        )


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttendancePeriod:
    """
    Attendance for one employee and period.

    ``lop_days`` and ``absent_days`` are optional; when ``None`` the
    attendance resolver derives them from working/present/paid-leave days.
    A ``total_days`` of 0 means "unknown".
    """

    total_days: int
    working_days: Decimal
    present_days: Decimal
    lop_days: Decimal | None = None
    absent_days: Decimal | None = None
    paid_leave_days: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    night_shift_days: Decimal = ZERO
    weekend_shift_days: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        def days(name: str) -> Decimal:
            return to_decimal(_pick(data, name, None), f"attendance.{name}")

        def optional(name: str) -> Decimal | None:
            raw = _pick(data, name, None)
            return None if raw in (None, "") else to_decimal(raw, f"attendance.{name}")

        total = _pick(data, "total_days", None)
        if total is None:
            total = _pick(data, "total_days_in_month", None)
        return cls(
            total_days=to_int(total, "attendance.total_days"),
            working_days=days("working_days"),
            present_days=days("present_days"),
            lop_days=optional("lop_days"),
            absent_days=optional("absent_days"),
            paid_leave_days=days("paid_leave_days"),
            overtime_hours=days("overtime_hours"),
            night_shift_days=days("night_shift_days"),
            weekend_shift_days=days("weekend_shift_days"),
        )


# ---------------------------------------------------------------------------
# Variable pay and manual recoveries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VariablePay:
    """One-off earnings added to gross without proration."""

    bonus: Decimal = ZERO
    incentives: Decimal = ZERO
    arrears: Decimal = ZERO
    reimbursements: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.bonus + self.incentives + self.arrears + self.reimbursements

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Self:
        data = data or {}
        return cls(**{
            name: to_decimal(_pick(data, name, None), f"variable_pay.{name}")
            for name in ("bonus", "incentives", "arrears", "reimbursements")
        })


@dataclass(frozen=True)
class ManualDeductions:
    """Non-statutory recoveries, subtracted after statutory deductions."""

    loan_emi: Decimal = ZERO
    advance_recovery: Decimal = ZERO
    insurance_premium: Decimal = ZERO
    canteen_deduction: Decimal = ZERO
    other_deductions: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return (
            self.loan_emi
            + self.advance_recovery
            + self.insurance_premium
            + self.canteen_deduction
            + self.other_deductions
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Self:
        data = data or {}
        loan = _pick(data, "loan_emi", None)
        if loan is None:
            loan = data.get("loanEMI")
        return cls(
            loan_emi=to_decimal(loan, "deductions.loan_emi"),
            advance_recovery=to_decimal(_pick(data, "advance_recovery", None), "deductions.advance_recovery"),
            insurance_premium=to_decimal(_pick(data, "insurance_premium", None), "deductions.insurance_premium"),
            canteen_deduction=to_decimal(_pick(data, "canteen_deduction", None), "deductions.canteen_deduction"),
            other_deductions=to_decimal(_pick(data, "other_deductions", None), "deductions.other_deductions"),
        )


# ---------------------------------------------------------------------------
# Year-to-date
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class YTDAccumulator:
    """Running totals for one employee, owned by the caller's persistence."""

    gross_earnings: Decimal = ZERO
    total_deductions: Decimal = ZERO
    net_pay: Decimal = ZERO
    tds_deducted: Decimal = ZERO

    def add(
        self,
        *,
        gross_earnings: Decimal,
        total_deductions: Decimal,
        net_pay: Decimal,
        tds_deducted: Decimal,
    ) -> YTDAccumulator:
        return YTDAccumulator(
            gross_earnings=self.gross_earnings + gross_earnings,
            total_deductions=self.total_deductions + total_deductions,
            net_pay=self.net_pay + net_pay,
            tds_deducted=self.tds_deducted + tds_deducted,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Self:
        data = data or {}
        return cls(**{
            name: to_decimal(_pick(data, name, None), f"ytd.{name}")
            for name in ("gross_earnings", "total_deductions", "net_pay", "tds_deducted")
        })


# ---------------------------------------------------------------------------
# Full input envelope
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PayrollInput:
    """Everything needed to compute one employee's payroll for one period."""

    employee_id: str
    period: PayrollPeriod
    employee: EmployeeProfile
    salary_structure: SalaryStructure
    attendance: AttendancePeriod
    variable_pay: VariablePay = field(default_factory=VariablePay)
    deductions: ManualDeductions = field(default_factory=ManualDeductions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """
        Build an input from a collaborator payload.

        Accepts camelCase (``salaryStructure``, ``pfOptIn``) or snake_case
        keys.  The period may be given as ``{"period": {"month", "year"}}``
        or as top-level ``month``/``year``.
        """
        period_data = _pick(data, "period", None)
        if isinstance(period_data, Mapping):
            period = PayrollPeriod.of(_pick(period_data, "month"), _pick(period_data, "year"))
        else:
            period = PayrollPeriod.of(_pick(data, "month"), _pick(data, "year"))

        employee = EmployeeProfile.from_dict(_pick(data, "employee"))
        return cls(
            employee_id=_text(_pick(data, "employee_id", employee.employee_id)),
            period=period,
            employee=employee,
            salary_structure=SalaryStructure.from_dict(_pick(data, "salary_structure")),
            attendance=AttendancePeriod.from_dict(_pick(data, "attendance")),
            variable_pay=VariablePay.from_dict(_pick(data, "variable_pay", None)),
            deductions=ManualDeductions.from_dict(_pick(data, "deductions", None)),
        )


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationResult:
    """Errors block a trustworthy net pay; warnings flag items for review."""

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: ValidationResult) -> ValidationResult:
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def with_warnings(self, *warnings: str) -> ValidationResult:
        return ValidationResult(errors=self.errors, warnings=self.warnings + tuple(warnings))

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

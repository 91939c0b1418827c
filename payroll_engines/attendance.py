"""
Module: payroll_engines.attendance
Responsibility:
    Resolve absent and loss-of-pay (LOP) days from an attendance record,
    translate LOP days into a deduction amount, and build the working-day
    calendar for a month.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel and payroll_config.schema.

Invariants enforced:
    - The LOP per-day rate always divides by the calendar days of the
      month (``attendance.total_days``), never by working days.
    - A ``total_days`` of 0 falls back to the rule set's
      ``fallback_days_in_month`` and raises a warning; nothing divides
      by zero.
    - LOP amounts are quantized to paise (ROUND_HALF_UP).
    - Derived absent and LOP days are never negative.

Failure modes:
    - None.  Inconsistent attendance (present above working, negative LOP)
      is reported by ``payroll_engines.validation``.

Usage:
    from payroll_engines.attendance import resolve_lop, month_details

    lop = resolve_lop(attendance, salary, rules.lop)
    lop.amount  # Decimal("14000.00")

    details = month_details(2024, 8, rules.calendar)
    details.working_days  # 26
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from payroll_config.schema import CalendarRules, Holiday, LOPRules
from payroll_kernel.domain.types import PAISE, ZERO, AttendancePeriod, SalaryStructure
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.attendance")


# ---------------------------------------------------------------------------
# Loss of pay
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LOPResult:
    """Resolved attendance figures and the resulting LOP deduction."""

    absent_days: Decimal
    lop_days: Decimal
    days_divisor: int
    per_day_rate: Decimal
    amount: Decimal
    warnings: tuple[str, ...] = ()


def resolve_absent_days(attendance: AttendancePeriod) -> Decimal:
    """Explicit absent days, else ``max(0, working - present)``."""
    if attendance.absent_days is not None:
        return attendance.absent_days
    return max(ZERO, attendance.working_days - attendance.present_days)


def resolve_lop_days(attendance: AttendancePeriod) -> Decimal:
    """Explicit LOP days, else ``max(0, absent - paid leave)``."""
    if attendance.lop_days is not None:
        return attendance.lop_days
    return max(ZERO, resolve_absent_days(attendance) - attendance.paid_leave_days)


def lop_basis_amount(salary: SalaryStructure, rules: LOPRules) -> Decimal:
    """Monthly amount the per-day LOP rate is derived from."""
    return sum((salary.component(name) for name in rules.basis), ZERO)


def resolve_lop(
    attendance: AttendancePeriod,
    salary: SalaryStructure,
    rules: LOPRules,
) -> LOPResult:
    """Compute the LOP deduction for one period."""
    warnings: list[str] = []
    days_divisor = attendance.total_days
    if days_divisor <= 0:
        days_divisor = rules.fallback_days_in_month
        warnings.append(
            f"Total days in month not provided; using {days_divisor} for the LOP per-day rate"
        )
        logger.warning(
            "lop_days_divisor_fallback",
            extra={"fallback_days": days_divisor},
        )

    absent_days = resolve_absent_days(attendance)
    lop_days = resolve_lop_days(attendance)
    per_day_rate = lop_basis_amount(salary, rules) / Decimal(days_divisor)

    # Negative LOP days are a validation error; they never add pay.
    billable_days = max(ZERO, lop_days)
    amount = (per_day_rate * billable_days).quantize(PAISE, rounding=ROUND_HALF_UP)

    return LOPResult(
        absent_days=absent_days,
        lop_days=lop_days,
        days_divisor=days_divisor,
        per_day_rate=per_day_rate.quantize(PAISE, rounding=ROUND_HALF_UP),
        amount=amount,
        warnings=tuple(warnings),
    )


# ---------------------------------------------------------------------------
# Month calendar
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CalendarHoliday:
    """A holiday falling on a working weekday of the month."""

    day: date
    name: str
    source: str  # "predefined" or "custom"


@dataclass(frozen=True)
class MonthDetails:
    """Calendar breakdown of one month."""

    year: int
    month: int
    total_days: int
    weekly_off_days: int
    holidays: tuple[CalendarHoliday, ...]
    working_days: int


def month_details(
    year: int,
    month: int,
    rules: CalendarRules,
    custom_holidays: Sequence[Holiday] = (),
) -> MonthDetails:
    """
    Count working days in a month.

    A day is a weekly off first, then a holiday (rule-set holidays before
    caller-supplied ones), otherwise a working day.  Holidays that fall on
    a weekly off are not counted twice.
    """
    total_days = calendar.monthrange(year, month)[1]
    predefined = {h.day: h.name for h in rules.holidays_in(year, month)}
    custom = {h.day: h.name for h in custom_holidays if h.day.year == year and h.day.month == month}

    weekly_offs = 0
    working = 0
    holidays: list[CalendarHoliday] = []
    for day_number in range(1, total_days + 1):
        day = date(year, month, day_number)
        if day.weekday() in rules.weekly_off_days:
            weekly_offs += 1
        elif day in predefined:
            holidays.append(CalendarHoliday(day, predefined[day], "predefined"))
        elif day in custom:
            holidays.append(CalendarHoliday(day, custom[day], "custom"))
        else:
            working += 1

    return MonthDetails(
        year=year,
        month=month,
        total_days=total_days,
        weekly_off_days=weekly_offs,
        holidays=tuple(holidays),
        working_days=working,
    )

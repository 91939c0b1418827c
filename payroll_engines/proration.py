"""
Module: payroll_engines.proration
Responsibility:
    Compute the fraction of a calendar-month payroll period an employee is
    eligible to be paid for, given joining and exit dates.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel.

Invariants enforced:
    - The divisor is the actual length of the calendar month, never 30.
    - Effective days are counted inclusively: joining on the 16th of a
      30-day month yields 15 days.
    - ``factor`` is in [0, 1].  Zero means the employee joined after the
      period or left before it; the caller turns that into a warning.

Failure modes:
    - None.  Dates are already parsed by ``payroll_kernel.domain.types``.

Usage:
    from payroll_engines.proration import calculate_proration
    from payroll_kernel.domain.types import PayrollPeriod

    result = calculate_proration(
        joining_date=date(2024, 4, 16),
        exit_date=None,
        period=PayrollPeriod(4, 2024),
    )
    result.factor        # Decimal("0.5")
    result.effective_days  # 15
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_kernel.domain.types import PayrollPeriod
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.proration")

NO_ELIGIBLE_DAYS_WARNING = "No eligible days in period"


@dataclass(frozen=True)
class ProrationResult:
    """Eligibility window of one employee within one period."""

    factor: Decimal
    effective_days: int
    total_days: int
    effective_start: date | None
    effective_end: date | None

    @property
    def is_full_period(self) -> bool:
        return self.effective_days == self.total_days

    @property
    def has_eligible_days(self) -> bool:
        return self.effective_days > 0


def calculate_proration(
    joining_date: date,
    exit_date: date | None,
    period: PayrollPeriod,
) -> ProrationResult:
    """Proration factor for ``period`` given the employment window."""
    total_days = period.days_in_month
    effective_start = max(period.start, joining_date)
    effective_end = min(period.end, exit_date) if exit_date else period.end

    if effective_start > effective_end:
        logger.info(
            "proration_no_eligible_days",
            extra={
                "period": period.label,
                "joining_date": joining_date,
                "exit_date": exit_date,
            },
        )
        return ProrationResult(
            factor=Decimal("0"),
            effective_days=0,
            total_days=total_days,
            effective_start=None,
            effective_end=None,
        )

    effective_days = (effective_end - effective_start).days + 1
    factor = Decimal(effective_days) / Decimal(total_days)
    return ProrationResult(
        factor=factor,
        effective_days=effective_days,
        total_days=total_days,
        effective_start=effective_start,
        effective_end=effective_end,
    )

"""
Module: payroll_engines.overtime
Responsibility:
    Convert overtime hours, night-shift days and weekend-shift days into
    allowance amounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Hours and day counts are clamped to >= 0 before use.
    - Amounts are quantized to paise (ROUND_HALF_UP).
    - In ``derived_hourly_double_time`` mode the hourly rate is
      ``basic x 12 / (days x hours x 12) x multiplier``; night and weekend
      allowances stay flat per day in both modes.

Failure modes:
    - None.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from payroll_config.schema import OvertimeMode, OvertimeRules
from payroll_kernel.domain.types import PAISE, ZERO
from payroll_engines.tracer import traced_engine


@dataclass(frozen=True)
class OvertimeResult:
    normal_overtime_pay: Decimal
    night_shift_allowance: Decimal
    weekend_allowance: Decimal
    hourly_rate: Decimal

    @property
    def total(self) -> Decimal:
        return self.normal_overtime_pay + self.night_shift_allowance + self.weekend_allowance


def hourly_overtime_rate(basic: Decimal, rules: OvertimeRules) -> Decimal:
    """Per-hour overtime rate under the configured mode."""
    if rules.mode is OvertimeMode.FLAT_RATE:
        return rules.normal_rate
    annual_hours = rules.standard_days_per_month * rules.standard_hours_per_day * 12
    return basic * 12 / annual_hours * rules.multiplier


@traced_engine(
    "overtime",
    "1.0",
    fingerprint_fields=("basic", "overtime_hours", "night_shift_days", "weekend_shift_days"),
)
def calculate_overtime(
    basic: Decimal,
    overtime_hours: Decimal,
    night_shift_days: Decimal,
    weekend_shift_days: Decimal,
    rules: OvertimeRules,
) -> OvertimeResult:
    hours = max(ZERO, overtime_hours)
    nights = max(ZERO, night_shift_days)
    weekends = max(ZERO, weekend_shift_days)

    rate = hourly_overtime_rate(basic, rules)
    return OvertimeResult(
        normal_overtime_pay=(hours * rate).quantize(PAISE, rounding=ROUND_HALF_UP),
        night_shift_allowance=(nights * rules.night_shift_rate).quantize(PAISE, rounding=ROUND_HALF_UP),
        weekend_allowance=(weekends * rules.weekend_rate).quantize(PAISE, rounding=ROUND_HALF_UP),
        hourly_rate=rate.quantize(PAISE, rounding=ROUND_HALF_UP),
    )

"""
Module: payroll_engines.earnings
Responsibility:
    Combine prorated salary components, overtime and variable pay into
    gross earnings, then subtract loss of pay to reach net gross earnings,
    the wage base every statutory calculator works from.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every salary component is multiplied by the same proration factor
      and quantized to paise (ROUND_HALF_UP).
    - Variable pay is added as supplied, never prorated.
    - ``gross_earnings`` and ``net_gross_earnings`` are floored at zero;
      flooring adds a warning instead of raising.

Failure modes:
    - None.

Audit relevance:
    The breakdown is returned verbatim on the payroll output so every
    rupee of gross can be traced to a component.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from payroll_kernel.domain.types import (
    ITEMIZED_ALLOWANCES,
    PAISE,
    ZERO,
    SalaryStructure,
    VariablePay,
)
from payroll_kernel.logging_config import get_logger
from payroll_engines.overtime import OvertimeResult
from payroll_engines.tracer import traced_engine

logger = get_logger("engines.earnings")


def _prorate(amount: Decimal, factor: Decimal) -> Decimal:
    return (amount * factor).quantize(PAISE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class EarningsBreakdown:
    """Per-component earnings for one period."""

    basic: Decimal = ZERO
    hra: Decimal = ZERO
    da: Decimal = ZERO
    allowances: Decimal = ZERO
    conveyance_allowance: Decimal = ZERO
    medical_allowance: Decimal = ZERO
    special_allowance: Decimal = ZERO
    city_compensatory_allowance: Decimal = ZERO
    other_allowances: Decimal = ZERO
    overtime: Decimal = ZERO
    night_shift_allowance: Decimal = ZERO
    weekend_allowance: Decimal = ZERO
    bonus: Decimal = ZERO
    incentives: Decimal = ZERO
    arrears: Decimal = ZERO
    reimbursements: Decimal = ZERO
    gross_earnings: Decimal = ZERO
    lop_deduction: Decimal = ZERO
    net_gross_earnings: Decimal = ZERO

    @property
    def total_allowances(self) -> Decimal:
        return self.allowances + sum(
            (getattr(self, name) for name in ITEMIZED_ALLOWANCES), ZERO
        )

    @property
    def pf_wages(self) -> Decimal:
        """Earned basic plus DA, before any ceiling."""
        return self.basic + self.da

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total_allowances"] = self.total_allowances
        return data


@dataclass(frozen=True)
class EarningsResult:
    breakdown: EarningsBreakdown
    warnings: tuple[str, ...] = ()


@traced_engine(
    "earnings",
    "1.0",
    fingerprint_fields=("proration_factor", "salary", "variable_pay", "lop_amount"),
)
def aggregate_earnings(
    proration_factor: Decimal,
    salary: SalaryStructure,
    overtime: OvertimeResult,
    variable_pay: VariablePay,
    lop_amount: Decimal,
) -> EarningsResult:
    """Build the earnings breakdown for one employee and period."""
    warnings: list[str] = []

    components = {
        name: _prorate(salary.component(name), proration_factor)
        for name in ("basic", "hra", "da", "allowances", *ITEMIZED_ALLOWANCES)
    }
    base_total = sum(components.values(), ZERO)

    gross = base_total + overtime.total + variable_pay.total
    if gross < ZERO:
        warnings.append(f"Gross earnings computed as {gross}; floored at 0")
        logger.warning("gross_earnings_floored", extra={"computed_gross": gross})
        gross = ZERO

    net_gross = gross - lop_amount
    if net_gross < ZERO:
        warnings.append(
            f"Loss of pay {lop_amount} exceeds gross earnings {gross}; net gross floored at 0"
        )
        logger.warning(
            "net_gross_earnings_floored",
            extra={"gross_earnings": gross, "lop_amount": lop_amount},
        )
        net_gross = ZERO

    breakdown = EarningsBreakdown(
        **components,
        overtime=overtime.normal_overtime_pay,
        night_shift_allowance=overtime.night_shift_allowance,
        weekend_allowance=overtime.weekend_allowance,
        bonus=variable_pay.bonus,
        incentives=variable_pay.incentives,
        arrears=variable_pay.arrears,
        reimbursements=variable_pay.reimbursements,
        gross_earnings=gross,
        lop_deduction=lop_amount,
        net_gross_earnings=net_gross,
    )
    return EarningsResult(breakdown=breakdown, warnings=tuple(warnings))

"""Non-statutory recoveries (loan EMI, advances, insurance, canteen, other)."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from payroll_kernel.domain.types import PAISE, ZERO, ManualDeductions


@dataclass(frozen=True)
class RecoveriesBreakdown:
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

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total"] = self.total
        return data


def aggregate_recoveries(deductions: ManualDeductions) -> RecoveriesBreakdown:
    """Quantize each recovery to paise; amounts are taken as supplied."""

    def paise(amount: Decimal) -> Decimal:
        return amount.quantize(PAISE, rounding=ROUND_HALF_UP)

    return RecoveriesBreakdown(
        loan_emi=paise(deductions.loan_emi),
        advance_recovery=paise(deductions.advance_recovery),
        insurance_premium=paise(deductions.insurance_premium),
        canteen_deduction=paise(deductions.canteen_deduction),
        other_deductions=paise(deductions.other_deductions),
    )

"""
payroll_services.summary -- Run-level totals over many payroll outputs.

Responsibility:
    Aggregate a batch of ``PayrollOutput`` objects into headcounts,
    earnings and deduction totals, a statutory breakdown and employer
    cost.  Outputs that failed validation are counted but contribute no
    amounts.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Iterable

from payroll_kernel.domain.types import ZERO
from payroll_services.models import PayrollOutput


@dataclass(frozen=True)
class StatutorySummary:
    pf_employee: Decimal = ZERO
    vpf: Decimal = ZERO
    pf_employer: Decimal = ZERO  # EPF + EPS
    pf_admin: Decimal = ZERO
    pf_edli: Decimal = ZERO
    esi_employee: Decimal = ZERO
    esi_employer: Decimal = ZERO
    professional_tax: Decimal = ZERO
    lwf_employee: Decimal = ZERO
    lwf_employer: Decimal = ZERO
    tds: Decimal = ZERO


@dataclass(frozen=True)
class PayrollRunSummary:
    employee_count: int = 0
    processed_count: int = 0
    failed_count: int = 0
    warning_count: int = 0
    total_gross_earnings: Decimal = ZERO
    total_lop_deduction: Decimal = ZERO
    total_net_gross_earnings: Decimal = ZERO
    total_statutory_deductions: Decimal = ZERO
    total_non_statutory_deductions: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_net_pay: Decimal = ZERO
    total_employer_contributions: Decimal = ZERO
    statutory: StatutorySummary = field(default_factory=StatutorySummary)
    failed_employee_ids: tuple[str, ...] = ()

    @property
    def total_employer_cost(self) -> Decimal:
        """Gross earnings plus employer statutory contributions."""
        return self.total_net_gross_earnings + self.total_employer_contributions

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total_employer_cost"] = self.total_employer_cost
        return data


def summarize_payroll(outputs: Iterable[PayrollOutput]) -> PayrollRunSummary:
    outputs = list(outputs)
    valid = [o for o in outputs if o.validation.is_valid]
    failed = [o for o in outputs if not o.validation.is_valid]

    def total(getter) -> Decimal:
        return sum((getter(o) for o in valid), ZERO)

    statutory = StatutorySummary(
        pf_employee=total(lambda o: o.statutory_deductions.pf_employee),
        vpf=total(lambda o: o.statutory_deductions.vpf),
        pf_employer=total(lambda o: o.employer_contributions.pf_epf + o.employer_contributions.pf_eps),
        pf_admin=total(lambda o: o.employer_contributions.pf_admin),
        pf_edli=total(lambda o: o.employer_contributions.pf_edli),
        esi_employee=total(lambda o: o.statutory_deductions.esi_employee),
        esi_employer=total(lambda o: o.employer_contributions.esi_employer),
        professional_tax=total(lambda o: o.statutory_deductions.professional_tax),
        lwf_employee=total(lambda o: o.statutory_deductions.lwf_employee),
        lwf_employer=total(lambda o: o.employer_contributions.lwf_employer),
        tds=total(lambda o: o.statutory_deductions.tds),
    )
    return PayrollRunSummary(
        employee_count=len(outputs),
        processed_count=len(valid),
        failed_count=len(failed),
        warning_count=sum(len(o.validation.warnings) for o in outputs),
        total_gross_earnings=total(lambda o: o.earnings.gross_earnings),
        total_lop_deduction=total(lambda o: o.earnings.lop_deduction),
        total_net_gross_earnings=total(lambda o: o.earnings.net_gross_earnings),
        total_statutory_deductions=total(lambda o: o.statutory_deductions.total),
        total_non_statutory_deductions=total(lambda o: o.non_statutory_deductions.total),
        total_deductions=total(lambda o: o.total_deductions),
        total_net_pay=total(lambda o: o.net_pay),
        total_employer_contributions=total(lambda o: o.employer_contributions.total),
        statutory=statutory,
        failed_employee_ids=tuple(o.employee_id for o in failed),
    )

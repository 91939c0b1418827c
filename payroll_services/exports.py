"""
payroll_services.exports -- Export-ready record shapes from payroll outputs.

Responsibility:
    Pure transformations of already-computed ``PayrollOutput`` objects
    into the record shapes of a bank transfer file and the statutory
    filings: PF ECR, ESI return, PT challan, LWF return and the TDS 24Q
    summary.  Rendering to CSV or Excel is the caller's concern.

Architecture position:
    Services -- reads outputs only; no calculation happens here.

Invariants enforced:
    - Outputs that failed validation never appear in any export.
    - Bank transfers skip non-positive net pay.
    - Every export is for a single period; mixing periods raises.
    - Amounts are copied from the outputs, never recomputed.

Failure modes:
    - ``InvalidPayrollInputError`` when outputs from different periods
      are passed to one export.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Sequence

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.types import ZERO, PayrollPeriod
from payroll_kernel.exceptions import InvalidPayrollInputError
from payroll_kernel.logging_config import get_logger
from payroll_services.models import PayrollOutput

logger = get_logger("services.exports")


class StatutoryFileType(str, Enum):
    PF_ECR = "pf-ecr"
    ESI_RETURN = "esi-return"
    PT_CHALLAN = "pt-challan"
    LWF_RETURN = "lwf-return"
    TDS_24Q = "tds-24q"


ESI_REASON_LEFT_SERVICE = "2"


@dataclass(frozen=True)
class StatutoryFile:
    """A filing: header fields, per-row records and column totals."""

    file_type: StatutoryFileType
    period: PayrollPeriod | None
    establishment_code: str
    generated_at: datetime
    records: tuple[Any, ...] = ()
    totals: dict[str, Decimal] = field(default_factory=dict)

    @property
    def record_count(self) -> int:
        return len(self.records)


def _valid(outputs: Iterable[PayrollOutput]) -> list[PayrollOutput]:
    return [o for o in outputs if o.validation.is_valid]


def _single_period(outputs: Sequence[PayrollOutput]) -> PayrollPeriod | None:
    periods = {o.period for o in outputs}
    if len(periods) > 1:
        labels = sorted(p.label for p in periods)
        raise InvalidPayrollInputError("outputs", labels, "outputs span multiple periods")
    return next(iter(periods), None)


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


# ---------------------------------------------------------------------------
# Bank transfer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BankTransferRecord:
    employee_id: str
    employee_name: str
    account_number: str
    ifsc_code: str
    amount: Decimal
    narration: str
    payment_mode: str = "NEFT"


def generate_bank_transfer_file(outputs: Sequence[PayrollOutput]) -> tuple[BankTransferRecord, ...]:
    """One credit per valid output with positive net pay."""
    _single_period(outputs)
    records = tuple(
        BankTransferRecord(
            employee_id=o.employee_id,
            employee_name=o.identity.name,
            account_number=o.identity.bank_account,
            ifsc_code=o.identity.ifsc,
            amount=o.net_pay,
            narration=f"Salary for {o.period.month_name} {o.period.year}",
        )
        for o in _valid(outputs)
        if o.net_pay > ZERO
    )
    skipped = len(outputs) - len(records)
    if skipped:
        logger.info("bank_transfer_records_skipped", extra={"skipped": skipped})
    return records


# ---------------------------------------------------------------------------
# PF ECR
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PFECRRecord:
    employee_id: str
    uan: str
    member_name: str
    gross_wages: Decimal
    epf_wages: Decimal
    eps_wages: Decimal
    edli_wages: Decimal
    ee_share: Decimal  # employee PF + VPF
    eps_contribution: Decimal
    er_share: Decimal  # employer EPF after EPS carve-out
    ncp_days: Decimal
    refund: Decimal = ZERO


def generate_pf_ecr(
    outputs: Sequence[PayrollOutput],
    establishment_code: str,
    *,
    clock: Clock | None = None,
) -> StatutoryFile:
    """Electronic challan-cum-return rows for PF members."""
    clock = clock or SystemClock()
    period = _single_period(outputs)
    records = tuple(
        PFECRRecord(
            employee_id=o.employee_id,
            uan=o.identity.uan,
            member_name=o.identity.name,
            gross_wages=o.earnings.net_gross_earnings,
            epf_wages=o.statutory_deductions.pf_wage_base,
            eps_wages=o.statutory_deductions.pf_wage_base,
            edli_wages=o.statutory_deductions.pf_wage_base,
            ee_share=o.statutory_deductions.pf_employee + o.statutory_deductions.vpf,
            eps_contribution=o.employer_contributions.pf_eps,
            er_share=o.employer_contributions.pf_epf,
            ncp_days=max(ZERO, o.attendance.lop_days),
        )
        for o in _valid(outputs)
        if o.statutory_deductions.pf_employee > ZERO
    )
    return StatutoryFile(
        file_type=StatutoryFileType.PF_ECR,
        period=period,
        establishment_code=establishment_code,
        generated_at=clock.now(),
        records=records,
        totals={
            "epf_wages": _sum(r.epf_wages for r in records),
            "ee_share": _sum(r.ee_share for r in records),
            "eps_contribution": _sum(r.eps_contribution for r in records),
            "er_share": _sum(r.er_share for r in records),
        },
    )


# ---------------------------------------------------------------------------
# ESI return
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ESIReturnRecord:
    employee_id: str
    ip_number: str
    ip_name: str
    days_paid: Decimal
    total_wages: Decimal
    employee_contribution: Decimal
    employer_contribution: Decimal
    reason_code: str = ""
    last_working_day: date | None = None


def generate_esi_return(
    outputs: Sequence[PayrollOutput],
    establishment_code: str,
    *,
    clock: Clock | None = None,
) -> StatutoryFile:
    """Monthly contribution rows for insured persons.

    Employees whose exit date falls in the period carry reason code 2
    (left service) and their last working day.
    """
    clock = clock or SystemClock()
    period = _single_period(outputs)
    rows: list[ESIReturnRecord] = []
    for o in _valid(outputs):
        if o.statutory_deductions.esi_wages <= ZERO:
            continue
        exit_date = o.identity.exit_date
        left = exit_date is not None and o.period.start <= exit_date <= o.period.end
        rows.append(
            ESIReturnRecord(
                employee_id=o.employee_id,
                ip_number=o.identity.esic_number,
                ip_name=o.identity.name,
                days_paid=o.attendance.paid_days,
                total_wages=o.statutory_deductions.esi_wages,
                employee_contribution=o.statutory_deductions.esi_employee,
                employer_contribution=o.employer_contributions.esi_employer,
                reason_code=ESI_REASON_LEFT_SERVICE if left else "",
                last_working_day=exit_date if left else None,
            )
        )
    records = tuple(rows)
    return StatutoryFile(
        file_type=StatutoryFileType.ESI_RETURN,
        period=period,
        establishment_code=establishment_code,
        generated_at=clock.now(),
        records=records,
        totals={
            "total_wages": _sum(r.total_wages for r in records),
            "employee_contribution": _sum(r.employee_contribution for r in records),
            "employer_contribution": _sum(r.employer_contribution for r in records),
        },
    )


# ---------------------------------------------------------------------------
# Professional Tax / LWF (per state)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PTChallanRecord:
    state: str
    employee_count: int
    total_wages: Decimal
    total_tax: Decimal


@dataclass(frozen=True)
class LWFReturnRecord:
    state: str
    employee_count: int
    employee_contribution: Decimal
    employer_contribution: Decimal

    @property
    def total(self) -> Decimal:
        return self.employee_contribution + self.employer_contribution


def generate_pt_challan(
    outputs: Sequence[PayrollOutput],
    establishment_code: str,
    *,
    clock: Clock | None = None,
) -> StatutoryFile:
    """Professional Tax collected, grouped by work state."""
    clock = clock or SystemClock()
    period = _single_period(outputs)
    by_state: dict[str, list[PayrollOutput]] = defaultdict(list)
    for o in _valid(outputs):
        if o.statutory_deductions.professional_tax > ZERO:
            by_state[o.identity.work_state].append(o)

    records = tuple(
        PTChallanRecord(
            state=state,
            employee_count=len(group),
            total_wages=_sum(o.earnings.net_gross_earnings for o in group),
            total_tax=_sum(o.statutory_deductions.professional_tax for o in group),
        )
        for state, group in sorted(by_state.items())
    )
    return StatutoryFile(
        file_type=StatutoryFileType.PT_CHALLAN,
        period=period,
        establishment_code=establishment_code,
        generated_at=clock.now(),
        records=records,
        totals={"total_tax": _sum(r.total_tax for r in records)},
    )


def generate_lwf_return(
    outputs: Sequence[PayrollOutput],
    establishment_code: str,
    *,
    clock: Clock | None = None,
) -> StatutoryFile:
    """LWF contributions grouped by state; states with nothing due are omitted."""
    clock = clock or SystemClock()
    period = _single_period(outputs)
    by_state: dict[str, list[PayrollOutput]] = defaultdict(list)
    for o in _valid(outputs):
        if o.statutory_deductions.lwf_employee > ZERO or o.employer_contributions.lwf_employer > ZERO:
            by_state[o.identity.work_state].append(o)

    records = tuple(
        LWFReturnRecord(
            state=state,
            employee_count=len(group),
            employee_contribution=_sum(o.statutory_deductions.lwf_employee for o in group),
            employer_contribution=_sum(o.employer_contributions.lwf_employer for o in group),
        )
        for state, group in sorted(by_state.items())
    )
    return StatutoryFile(
        file_type=StatutoryFileType.LWF_RETURN,
        period=period,
        establishment_code=establishment_code,
        generated_at=clock.now(),
        records=records,
        totals={
            "employee_contribution": _sum(r.employee_contribution for r in records),
            "employer_contribution": _sum(r.employer_contribution for r in records),
        },
    )


# ---------------------------------------------------------------------------
# TDS 24Q
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TDS24QRecord:
    employee_id: str
    pan: str
    employee_name: str
    gross_salary: Decimal
    tax_deducted: Decimal
    quarter: str
    financial_year: str


def fiscal_quarter(period: PayrollPeriod, fiscal_year_start_month: int = 4) -> str:
    """``Q1``..``Q4`` of the fiscal year containing ``period``."""
    elapsed = (period.month - fiscal_year_start_month) % 12
    return f"Q{elapsed // 3 + 1}"


def financial_year_label(period: PayrollPeriod, fiscal_year_start_month: int = 4) -> str:
    """E.g. ``2024-25`` for any month from April 2024 to March 2025."""
    start_year = period.year if period.month >= fiscal_year_start_month else period.year - 1
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def generate_tds_24q(
    outputs: Sequence[PayrollOutput],
    establishment_code: str,
    *,
    clock: Clock | None = None,
) -> StatutoryFile:
    """PAN-wise salary and tax deducted for the quarterly 24Q return."""
    clock = clock or SystemClock()
    period = _single_period(outputs)
    records = tuple(
        TDS24QRecord(
            employee_id=o.employee_id,
            pan=o.identity.pan,
            employee_name=o.identity.name,
            gross_salary=o.earnings.net_gross_earnings,
            tax_deducted=o.statutory_deductions.tds,
            quarter=fiscal_quarter(o.period),
            financial_year=financial_year_label(o.period),
        )
        for o in _valid(outputs)
        if o.statutory_deductions.tds > ZERO
    )
    return StatutoryFile(
        file_type=StatutoryFileType.TDS_24Q,
        period=period,
        establishment_code=establishment_code,
        generated_at=clock.now(),
        records=records,
        totals={
            "gross_salary": _sum(r.gross_salary for r in records),
            "tax_deducted": _sum(r.tax_deducted for r in records),
        },
    )

"""
Payroll output models.

``PayrollOutput`` is created fresh by every ``process_payroll`` call and
is immutable once returned.  ``to_dict`` produces the serialisable shape
collaborators persist and display; amounts stay ``Decimal``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_kernel.domain.types import (
    ZERO,
    EmployeeProfile,
    PayrollPeriod,
    ValidationResult,
    YTDAccumulator,
)
from payroll_engines.earnings import EarningsBreakdown
from payroll_engines.recoveries import RecoveriesBreakdown
from payroll_engines.statutory import TDSResult


class PayrollStage(str, Enum):
    """Orchestrator states, in order."""

    RECEIVED = "received"
    VALIDATED = "validated"
    EARNINGS_COMPUTED = "earnings-computed"
    DEDUCTIONS_COMPUTED = "deductions-computed"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class EmployeeIdentity:
    """Identifiers passed through untouched for exports."""

    name: str = ""
    pan: str = ""
    uan: str = ""
    esic_number: str = ""
    bank_account: str = ""
    ifsc: str = ""
    work_state: str = ""
    exit_date: date | None = None

    @classmethod
    def from_profile(cls, employee: EmployeeProfile) -> EmployeeIdentity:
        return cls(
            name=employee.name,
            pan=employee.pan,
            uan=employee.uan,
            esic_number=employee.esic_number,
            bank_account=employee.bank_account,
            ifsc=employee.ifsc,
            work_state=employee.work_state,
            exit_date=employee.exit_date,
        )


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int = 0
    working_days: Decimal = ZERO
    present_days: Decimal = ZERO
    absent_days: Decimal = ZERO
    lop_days: Decimal = ZERO
    paid_leave_days: Decimal = ZERO
    effective_days: int = 0
    proration_factor: Decimal = ZERO

    @property
    def paid_days(self) -> Decimal:
        """Eligible calendar days less LOP days, never negative."""
        return max(ZERO, Decimal(self.effective_days) - max(ZERO, self.lop_days))


@dataclass(frozen=True)
class StatutoryDeductions:
    """Employee-side statutory deductions plus the wage bases they used."""

    pf_employee: Decimal = ZERO
    vpf: Decimal = ZERO
    esi_employee: Decimal = ZERO
    professional_tax: Decimal = ZERO
    lwf_employee: Decimal = ZERO
    tds: Decimal = ZERO
    pf_wage_base: Decimal = ZERO
    esi_wages: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return (
            self.pf_employee
            + self.vpf
            + self.esi_employee
            + self.professional_tax
            + self.lwf_employee
            + self.tds
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total"] = self.total
        return data


@dataclass(frozen=True)
class EmployerContributions:
    """Employer-side statutory costs; not deducted from net pay."""

    pf_epf: Decimal = ZERO
    pf_eps: Decimal = ZERO
    pf_admin: Decimal = ZERO
    pf_edli: Decimal = ZERO
    esi_employer: Decimal = ZERO
    lwf_employer: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return (
            self.pf_epf
            + self.pf_eps
            + self.pf_admin
            + self.pf_edli
            + self.esi_employer
            + self.lwf_employer
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total"] = self.total
        return data


@dataclass(frozen=True)
class PayrollOutput:
    """Result of processing one employee for one period."""

    employee_id: str
    period: PayrollPeriod
    identity: EmployeeIdentity
    attendance: AttendanceSummary
    earnings: EarningsBreakdown
    statutory_deductions: StatutoryDeductions
    non_statutory_deductions: RecoveriesBreakdown
    employer_contributions: EmployerContributions
    total_deductions: Decimal
    net_pay: Decimal
    ytd: YTDAccumulator
    validation: ValidationResult
    tds_detail: TDSResult = field(default_factory=TDSResult)
    stages: tuple[PayrollStage, ...] = ()
    rule_set_version: str = ""
    rule_set_fingerprint: str = ""
    input_fingerprint: str = ""
    processed_at: datetime | None = None

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid

    @property
    def final_stage(self) -> PayrollStage | None:
        return self.stages[-1] if self.stages else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "period": {"month": self.period.month, "year": self.period.year},
            "identity": asdict(self.identity),
            "attendance": asdict(self.attendance),
            "earnings": self.earnings.to_dict(),
            "statutory_deductions": self.statutory_deductions.to_dict(),
            "non_statutory_deductions": self.non_statutory_deductions.to_dict(),
            "employer_contributions": self.employer_contributions.to_dict(),
            "total_deductions": self.total_deductions,
            "net_pay": self.net_pay,
            "ytd": asdict(self.ytd),
            "validation": self.validation.to_dict(),
            "tds_detail": asdict(self.tds_detail),
            "stages": [stage.value for stage in self.stages],
            "rule_set_version": self.rule_set_version,
            "rule_set_fingerprint": self.rule_set_fingerprint,
            "input_fingerprint": self.input_fingerprint,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }

"""
Payroll rule-set schema.

A ``RuleSet`` is the versioned, immutable bundle of statutory tables the
engine computes against: PF and ESI rates and ceilings, Professional Tax
slabs per state, LWF rates per state, TDS regimes, overtime rates, the
holiday calendar and validation thresholds.  YAML files are parsed into
these types by ``payroll_config.loader``.

Structural checks run in ``__post_init__`` so an inconsistent table
(overlapping PT slabs, a gap in TDS slabs) can never reach a calculator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from functools import cached_property
from typing import Any

from payroll_kernel.exceptions import InvalidRuleSetError
from payroll_kernel.utils.hashing import hash_payload

ZERO = Decimal("0")
ONE = Decimal("1")


class OvertimeMode(str, Enum):
    """How normal overtime pay is derived."""

    FLAT_RATE = "flat_rate"  # configured rupees per hour
    DERIVED_HOURLY_DOUBLE_TIME = "derived_hourly_double_time"  # from basic


class LWFFrequency(str, Enum):
    """How often a state collects Labour Welfare Fund."""

    MONTHLY = "monthly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"


class TDSProjection(str, Enum):
    """How annual income is projected from the current month."""

    FLAT = "flat"  # net gross x 12
    YTD_WEIGHTED = "ytd_weighted"  # YTD gross + net gross x remaining months


def _check_rate(section: str, name: str, value: Decimal) -> None:
    if value < ZERO or value > ONE:
        raise InvalidRuleSetError(section, f"{name} must be between 0 and 1, got {value}")


def _check_non_negative(section: str, name: str, value: Decimal) -> None:
    if value < ZERO:
        raise InvalidRuleSetError(section, f"{name} cannot be negative, got {value}")


# ---------------------------------------------------------------------------
# Provident Fund / ESI
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PFRules:
    """Employees' Provident Fund rates and wage ceiling."""

    employee_rate: Decimal
    employer_rate: Decimal
    eps_rate: Decimal  # carved out of the employer share
    wage_ceiling: Decimal
    admin_rate: Decimal = ZERO
    edli_rate: Decimal = ZERO
    include_da: bool = True

    def __post_init__(self) -> None:
        for name in ("employee_rate", "employer_rate", "eps_rate", "admin_rate", "edli_rate"):
            _check_rate("pf", name, getattr(self, name))
        if self.eps_rate > self.employer_rate:
            raise InvalidRuleSetError("pf", "eps_rate cannot exceed employer_rate")
        if self.wage_ceiling <= ZERO:
            raise InvalidRuleSetError("pf", "wage_ceiling must be positive")


@dataclass(frozen=True)
class ESIRules:
    """Employee State Insurance rates and the (inclusive) gross ceiling."""

    employee_rate: Decimal
    employer_rate: Decimal
    gross_ceiling: Decimal

    def __post_init__(self) -> None:
        _check_rate("esi", "employee_rate", self.employee_rate)
        _check_rate("esi", "employer_rate", self.employer_rate)
        if self.gross_ceiling <= ZERO:
            raise InvalidRuleSetError("esi", "gross_ceiling must be positive")


# ---------------------------------------------------------------------------
# Professional Tax / LWF
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PTSlab:
    """Inclusive rupee range -> flat monthly tax.  ``max_amount`` None = open."""

    min_amount: Decimal
    max_amount: Decimal | None
    tax: Decimal

    def contains(self, amount: Decimal) -> bool:
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount <= self.max_amount


def _check_pt_slabs(state: str, slabs: tuple[PTSlab, ...]) -> None:
    section = f"professional_tax.{state}"
    if not slabs:
        raise InvalidRuleSetError(section, "at least one slab is required")
    previous: PTSlab | None = None
    for slab in slabs:
        _check_non_negative(section, "tax", slab.tax)
        if slab.max_amount is not None and slab.max_amount < slab.min_amount:
            raise InvalidRuleSetError(section, f"slab max {slab.max_amount} below min {slab.min_amount}")
        if previous is not None:
            if previous.max_amount is None:
                raise InvalidRuleSetError(section, "only the last slab may be open-ended")
            if slab.min_amount <= previous.max_amount:
                raise InvalidRuleSetError(
                    section,
                    f"slabs overlap or are unordered at {slab.min_amount}",
                )
        previous = slab


@dataclass(frozen=True)
class LWFRule:
    """Labour Welfare Fund contribution for one state."""

    employee: Decimal
    employer: Decimal
    frequency: LWFFrequency
    deduction_months: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        _check_non_negative("lwf", "employee", self.employee)
        _check_non_negative("lwf", "employer", self.employer)
        if any(not 1 <= m <= 12 for m in self.deduction_months):
            raise InvalidRuleSetError("lwf", f"deduction_months must be 1..12, got {self.deduction_months}")
        if self.frequency is not LWFFrequency.MONTHLY and not self.deduction_months:
            raise InvalidRuleSetError(
                "lwf", f"{self.frequency.value} LWF needs deduction_months"
            )


# ---------------------------------------------------------------------------
# TDS
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxSlab:
    """Income in ``(lower, upper]`` is taxed at ``rate``.  ``upper`` None = open."""

    lower: Decimal
    upper: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class Rebate:
    """Section 87A rebate: up to ``max_rebate`` when taxable income <= limit."""

    income_limit: Decimal
    max_rebate: Decimal


@dataclass(frozen=True)
class TDSRegime:
    """One income-tax regime's standard deduction, slabs and rebate."""

    name: str
    standard_deduction: Decimal
    slabs: tuple[TaxSlab, ...]
    rebate: Rebate | None = None

    def __post_init__(self) -> None:
        section = f"tds.regimes.{self.name}"
        _check_non_negative(section, "standard_deduction", self.standard_deduction)
        if not self.slabs:
            raise InvalidRuleSetError(section, "at least one slab is required")
        if self.slabs[0].lower != ZERO:
            raise InvalidRuleSetError(section, "first slab must start at 0")
        for current, following in zip(self.slabs, self.slabs[1:]):
            if current.upper is None or current.upper != following.lower:
                raise InvalidRuleSetError(
                    section, f"slabs must be contiguous (break after {current.lower})"
                )
        if self.slabs[-1].upper is not None:
            raise InvalidRuleSetError(section, "last slab must be open-ended")
        for slab in self.slabs:
            _check_rate(section, "rate", slab.rate)


@dataclass(frozen=True)
class TDSRules:
    """Tax-deducted-at-source settings shared by all regimes."""

    regimes: dict[str, TDSRegime]
    default_regime: str
    cess_rate: Decimal = Decimal("0.04")
    projection: TDSProjection = TDSProjection.FLAT
    fiscal_year_start_month: int = 4

    def __post_init__(self) -> None:
        if self.default_regime not in self.regimes:
            raise InvalidRuleSetError(
                "tds", f"default_regime {self.default_regime!r} is not among {sorted(self.regimes)}"
            )
        _check_rate("tds", "cess_rate", self.cess_rate)
        if not 1 <= self.fiscal_year_start_month <= 12:
            raise InvalidRuleSetError("tds", "fiscal_year_start_month must be 1..12")


# ---------------------------------------------------------------------------
# Overtime / calendar / LOP / validation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OvertimeRules:
    """Overtime and shift allowance rates."""

    mode: OvertimeMode
    normal_rate: Decimal  # per hour, flat_rate mode
    night_shift_rate: Decimal  # per night-shift day
    weekend_rate: Decimal  # per weekend-shift day
    standard_days_per_month: Decimal = Decimal("26")
    standard_hours_per_day: Decimal = Decimal("8")
    multiplier: Decimal = Decimal("2")

    def __post_init__(self) -> None:
        for name in ("normal_rate", "night_shift_rate", "weekend_rate", "multiplier"):
            _check_non_negative("overtime", name, getattr(self, name))
        if self.standard_days_per_month <= ZERO or self.standard_hours_per_day <= ZERO:
            raise InvalidRuleSetError("overtime", "standard days and hours must be positive")


@dataclass(frozen=True)
class Holiday:
    """A gazetted holiday."""

    day: date
    name: str


@dataclass(frozen=True)
class CalendarRules:
    """Weekly offs (``date.weekday()`` numbers, Monday=0) and holidays."""

    weekly_off_days: tuple[int, ...] = (6,)
    holidays: tuple[Holiday, ...] = ()

    def __post_init__(self) -> None:
        if any(not 0 <= d <= 6 for d in self.weekly_off_days):
            raise InvalidRuleSetError("calendar", "weekly_off_days must be 0..6")

    def holidays_in(self, year: int, month: int) -> tuple[Holiday, ...]:
        return tuple(
            h for h in self.holidays if h.day.year == year and h.day.month == month
        )


@dataclass(frozen=True)
class LOPRules:
    """Loss-of-pay per-day rate basis."""

    basis: tuple[str, ...] = ("basic", "hra", "conveyance_allowance")
    fallback_days_in_month: int = 30

    def __post_init__(self) -> None:
        if not self.basis:
            raise InvalidRuleSetError("lop", "basis needs at least one salary component")
        if self.fallback_days_in_month <= 0:
            raise InvalidRuleSetError("lop", "fallback_days_in_month must be positive")


@dataclass(frozen=True)
class ValidationRules:
    """Thresholds for warnings raised during validation."""

    ctc_tolerance: Decimal = Decimal("1")
    low_gross_threshold: Decimal = Decimal("10000")


# ---------------------------------------------------------------------------
# Rule set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleSet:
    """
    Versioned statutory rule tables.

    Immutable.  ``fingerprint`` is a SHA-256 over the canonical JSON of
    every field, recorded on each payroll output so a period can be
    reprocessed against exactly the tables that produced it.
    """

    version: str
    effective_from: date
    pf: PFRules
    esi: ESIRules
    tds: TDSRules
    overtime: OvertimeRules
    professional_tax: dict[str, tuple[PTSlab, ...]] = field(default_factory=dict)
    lwf: dict[str, LWFRule] = field(default_factory=dict)
    calendar: CalendarRules = field(default_factory=CalendarRules)
    lop: LOPRules = field(default_factory=LOPRules)
    validation: ValidationRules = field(default_factory=ValidationRules)
    effective_to: date | None = None
    currency: str = "INR"
    description: str = ""

    def __post_init__(self) -> None:
        if not self.version:
            raise InvalidRuleSetError("rule_set", "version is required")
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise InvalidRuleSetError("rule_set", "effective_to precedes effective_from")
        for state, slabs in self.professional_tax.items():
            _check_pt_slabs(state, slabs)

    def covers(self, as_of: date) -> bool:
        """True if ``as_of`` falls inside the effective range."""
        if as_of < self.effective_from:
            return False
        return self.effective_to is None or as_of <= self.effective_to

    @cached_property
    def fingerprint(self) -> str:
        return hash_payload(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "effective_from": self.effective_from,
            "effective_to": self.effective_to,
            "currency": self.currency,
            "description": self.description,
            "pf": self.pf,
            "esi": self.esi,
            "professional_tax": self.professional_tax,
            "lwf": self.lwf,
            "tds": self.tds,
            "overtime": self.overtime,
            "calendar": self.calendar,
            "lop": self.lop,
            "validation": self.validation,
        }

"""
Module: payroll_engines.statutory
Responsibility:
    Indian statutory deduction calculators: Provident Fund (PF, with EPS,
    VPF, admin and EDLI charges), Employee State Insurance (ESI),
    Professional Tax (PT), Labour Welfare Fund (LWF) and income tax
    deducted at source (TDS).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Reads rates and slabs only from the ``payroll_config.schema`` sections
    passed in; there are no module-level statutory constants.

Invariants enforced:
    - Contributions and TDS are rounded to whole rupees (ROUND_HALF_UP).
      PT and LWF are returned as configured (e.g. 208.33).
    - PF wage base never exceeds the configured ceiling.
    - ESI applies when net gross is at or below the ceiling; one rupee
      above excludes it.  Eligibility is re-evaluated every period.
    - TDS slabs are ``(lower, upper]`` intervals: income exactly on a
      boundary is taxed entirely at the lower slab's rate.
    - Monthly TDS is never negative.

Failure modes:
    - Calculators never raise for business gaps.  A missing or unknown
      PT/LWF state degrades to zero and an unknown tax regime to the
      default regime; the result carries a warning either way.

Audit relevance:
    Every calculator is wrapped with ``@traced_engine`` so each deduction
    can be tied back to its inputs through PAYROLL_ENGINE_TRACE records.

Usage:
    from payroll_engines.statutory import calculate_pf, calculate_esi

    pf = calculate_pf(basic=Decimal("50000"), da=ZERO, pf_opt_in=True,
                      vpf_percent=ZERO, rules=rule_set.pf)
    pf.employee  # Decimal("1800")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, TypeVar

from payroll_config.schema import (
    ESIRules,
    LWFFrequency,
    LWFRule,
    PFRules,
    PTSlab,
    TaxSlab,
    TDSProjection,
    TDSRegime,
    TDSRules,
)
from payroll_kernel.domain.types import PAISE, RUPEE, ZERO, PayrollPeriod, YTDAccumulator
from payroll_kernel.logging_config import get_logger
from payroll_engines.tracer import traced_engine

logger = get_logger("engines.statutory")

_T = TypeVar("_T")


def round_rupees(amount: Decimal) -> Decimal:
    """Round to the nearest whole rupee, halves away from zero."""
    return amount.quantize(RUPEE, rounding=ROUND_HALF_UP)


def lookup_state(table: Mapping[str, _T], state: str) -> _T | None:
    """Case-insensitive lookup of a work state in a rule table."""
    if not state:
        return None
    if state in table:
        return table[state]
    wanted = state.strip().casefold()
    for key, value in table.items():
        if key.casefold() == wanted:
            return value
    return None


# ---------------------------------------------------------------------------
# Provident Fund
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PFResult:
    """
    PF contributions for one period.

    ``employer_epf + employer_eps`` equals the employer rate applied to the
    wage base; EPS is carved out of the employer share.
    """

    wage_base: Decimal = ZERO
    employee: Decimal = ZERO
    vpf: Decimal = ZERO
    employer_epf: Decimal = ZERO
    employer_eps: Decimal = ZERO
    admin_charges: Decimal = ZERO
    edli: Decimal = ZERO

    @property
    def employer_total(self) -> Decimal:
        return self.employer_epf + self.employer_eps


@traced_engine(
    "pf",
    "1.0",
    fingerprint_fields=("basic", "da", "pf_opt_in", "vpf_percent"),
)
def calculate_pf(
    basic: Decimal,
    da: Decimal,
    pf_opt_in: bool,
    vpf_percent: Decimal,
    rules: PFRules,
) -> PFResult:
    """PF on earned basic (plus DA when configured), capped at the ceiling."""
    if not pf_opt_in:
        return PFResult()

    wages = basic + da if rules.include_da else basic
    wage_base = min(max(ZERO, wages), rules.wage_ceiling)

    employer_eps = round_rupees(wage_base * rules.eps_rate)
    vpf = ZERO
    if vpf_percent > ZERO:
        vpf = round_rupees(wage_base * vpf_percent / 100)

    return PFResult(
        wage_base=wage_base,
        employee=round_rupees(wage_base * rules.employee_rate),
        vpf=vpf,
        employer_epf=round_rupees(wage_base * rules.employer_rate) - employer_eps,
        employer_eps=employer_eps,
        admin_charges=round_rupees(wage_base * rules.admin_rate),
        edli=round_rupees(wage_base * rules.edli_rate),
    )


# ---------------------------------------------------------------------------
# Employee State Insurance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ESIResult:
    applicable: bool = False
    wages: Decimal = ZERO
    employee: Decimal = ZERO
    employer: Decimal = ZERO


@traced_engine("esi", "1.0", fingerprint_fields=("net_gross_earnings", "esi_applicable"))
def calculate_esi(
    net_gross_earnings: Decimal,
    esi_applicable: bool,
    rules: ESIRules,
) -> ESIResult:
    """ESI on the current period's net gross; inclusive ceiling."""
    if not esi_applicable:
        return ESIResult()
    if net_gross_earnings > rules.gross_ceiling:
        logger.info(
            "esi_not_applicable_above_ceiling",
            extra={
                "net_gross_earnings": net_gross_earnings,
                "gross_ceiling": rules.gross_ceiling,
            },
        )
        return ESIResult()

    return ESIResult(
        applicable=True,
        wages=net_gross_earnings,
        employee=round_rupees(net_gross_earnings * rules.employee_rate),
        employer=round_rupees(net_gross_earnings * rules.employer_rate),
    )


# ---------------------------------------------------------------------------
# Professional Tax
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PTResult:
    state: str = ""
    amount: Decimal = ZERO
    warnings: tuple[str, ...] = ()


@traced_engine("professional_tax", "1.0", fingerprint_fields=("net_gross_earnings", "state"))
def calculate_professional_tax(
    net_gross_earnings: Decimal,
    state: str,
    slabs_by_state: Mapping[str, tuple[PTSlab, ...]],
) -> PTResult:
    """
    Flat monthly PT for the slab containing the wage.

    The wage is rounded to a whole rupee first so amounts such as
    15000.40 never fall between a ``max`` of 15000 and a ``min`` of 15001.
    """
    if not state:
        logger.warning("professional_tax_state_missing")
        return PTResult(warnings=("Work state not specified; PT not deducted",))

    slabs = lookup_state(slabs_by_state, state)
    if slabs is None:
        logger.warning("professional_tax_state_not_configured", extra={"work_state": state})
        return PTResult(
            state=state,
            warnings=(f"No Professional Tax slabs configured for state '{state}'; PT not deducted",),
        )

    wage = round_rupees(net_gross_earnings)
    for slab in slabs:
        if slab.contains(wage):
            return PTResult(state=state, amount=slab.tax)

    # Wage below the first slab's minimum.
    return PTResult(state=state)


# ---------------------------------------------------------------------------
# Labour Welfare Fund
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LWFResult:
    state: str = ""
    frequency: LWFFrequency | None = None
    employee: Decimal = ZERO
    employer: Decimal = ZERO
    warnings: tuple[str, ...] = ()


def lwf_due(rule: LWFRule, month: int) -> bool:
    """True if the state collects LWF in ``month``."""
    if rule.frequency is LWFFrequency.MONTHLY:
        return True
    return month in rule.deduction_months


@traced_engine("lwf", "1.0", fingerprint_fields=("state", "month"))
def calculate_lwf(
    state: str,
    month: int,
    rules_by_state: Mapping[str, LWFRule],
) -> LWFResult:
    """
    LWF for the period.

    Half-yearly and yearly states deduct the configured rate in full in
    their deduction months and nothing otherwise.
    """
    if not state:
        logger.warning("lwf_state_missing")
        return LWFResult(warnings=("Work state not specified; LWF not deducted",))

    rule = lookup_state(rules_by_state, state)
    if rule is None:
        logger.warning("lwf_state_not_configured", extra={"work_state": state})
        return LWFResult(
            state=state,
            warnings=(f"No LWF rates configured for state '{state}'; LWF not deducted",),
        )
    if not lwf_due(rule, month):
        return LWFResult(state=state, frequency=rule.frequency)
    return LWFResult(
        state=state,
        frequency=rule.frequency,
        employee=rule.employee,
        employer=rule.employer,
    )


# ---------------------------------------------------------------------------
# Income tax (TDS)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TDSResult:
    """Annual projection and the monthly withholding derived from it."""

    regime: str = ""
    projected_annual_income: Decimal = ZERO
    standard_deduction: Decimal = ZERO
    taxable_income: Decimal = ZERO
    tax_before_rebate: Decimal = ZERO
    rebate: Decimal = ZERO
    cess: Decimal = ZERO
    annual_tax: Decimal = ZERO
    already_deducted: Decimal = ZERO
    remaining_months: int = 0
    monthly_tds: Decimal = ZERO
    warnings: tuple[str, ...] = ()


def remaining_months_in_fiscal_year(month: int, fiscal_year_start_month: int = 4) -> int:
    """Months from ``month`` (inclusive) to the end of the fiscal year."""
    elapsed = (month - fiscal_year_start_month) % 12
    return 12 - elapsed


def tax_on_income(taxable_income: Decimal, slabs: tuple[TaxSlab, ...]) -> Decimal:
    """Progressive tax over contiguous ``(lower, upper]`` slabs."""
    tax = ZERO
    for slab in slabs:
        if taxable_income <= slab.lower:
            break
        upper = taxable_income if slab.upper is None else min(taxable_income, slab.upper)
        tax += (upper - slab.lower) * slab.rate
    return tax


def _resolve_regime(name: str | None, rules: TDSRules) -> tuple[TDSRegime, list[str]]:
    if not name:
        return rules.regimes[rules.default_regime], []
    regime = rules.regimes.get(name.lower())
    if regime is not None:
        return regime, []
    logger.warning(
        "tds_regime_not_configured",
        extra={"requested_regime": name, "default_regime": rules.default_regime},
    )
    return rules.regimes[rules.default_regime], [
        f"Tax regime '{name}' not configured; using '{rules.default_regime}'"
    ]


@traced_engine(
    "tds",
    "1.0",
    fingerprint_fields=("net_gross_earnings", "period", "ytd", "regime"),
)
def calculate_tds(
    net_gross_earnings: Decimal,
    period: PayrollPeriod,
    ytd: YTDAccumulator,
    regime: str | None,
    rules: TDSRules,
) -> TDSResult:
    """
    Monthly TDS from a projected annual income.

    The projection is ``net gross x 12`` (``flat``) or YTD gross plus
    net gross for each remaining month (``ytd_weighted``).  Tax already
    deducted this fiscal year is subtracted before spreading the balance
    over the remaining months.
    """
    tax_regime, warnings = _resolve_regime(regime, rules)
    remaining = remaining_months_in_fiscal_year(period.month, rules.fiscal_year_start_month)

    if rules.projection is TDSProjection.YTD_WEIGHTED:
        projected = ytd.gross_earnings + net_gross_earnings * remaining
    else:
        projected = net_gross_earnings * 12

    taxable = max(ZERO, projected - tax_regime.standard_deduction)
    tax = tax_on_income(taxable, tax_regime.slabs)

    rebate = ZERO
    if tax_regime.rebate is not None and taxable <= tax_regime.rebate.income_limit:
        rebate = min(tax, tax_regime.rebate.max_rebate)

    cess = (tax - rebate) * rules.cess_rate
    annual_tax = tax - rebate + cess
    balance = max(ZERO, annual_tax - ytd.tds_deducted)
    monthly = round_rupees(balance / remaining)

    return TDSResult(
        regime=tax_regime.name,
        projected_annual_income=projected.quantize(PAISE, rounding=ROUND_HALF_UP),
        standard_deduction=tax_regime.standard_deduction,
        taxable_income=taxable.quantize(PAISE, rounding=ROUND_HALF_UP),
        tax_before_rebate=tax.quantize(PAISE, rounding=ROUND_HALF_UP),
        rebate=rebate.quantize(PAISE, rounding=ROUND_HALF_UP),
        cess=cess.quantize(PAISE, rounding=ROUND_HALF_UP),
        annual_tax=annual_tax.quantize(PAISE, rounding=ROUND_HALF_UP),
        already_deducted=ytd.tds_deducted,
        remaining_months=remaining,
        monthly_tds=monthly,
        warnings=tuple(warnings),
    )

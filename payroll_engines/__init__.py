"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    payroll calculators.  This is the import surface for
    ``payroll_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel and payroll_config.schema.
    MUST NOT import payroll_services.

Invariants enforced:
    - Purity: calculators NEVER call ``datetime.now()`` or ``date.today()``.
      Periods and dates are passed in explicitly.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs and rule sets produce identical results.

Audit relevance:
    Statutory, overtime and earnings calculators are traced via
    ``@traced_engine`` (see ``payroll_engines.tracer``), emitting
    PAYROLL_ENGINE_TRACE log records.

Usage:
    from payroll_engines import calculate_proration, resolve_lop
    from payroll_engines import calculate_pf, calculate_esi, calculate_tds
"""

from payroll_engines.attendance import (
    CalendarHoliday,
    LOPResult,
    MonthDetails,
    month_details,
    resolve_absent_days,
    resolve_lop,
    resolve_lop_days,
)
from payroll_engines.earnings import EarningsBreakdown, EarningsResult, aggregate_earnings
from payroll_engines.overtime import OvertimeResult, calculate_overtime, hourly_overtime_rate
from payroll_engines.proration import (
    NO_ELIGIBLE_DAYS_WARNING,
    ProrationResult,
    calculate_proration,
)
from payroll_engines.recoveries import RecoveriesBreakdown, aggregate_recoveries
from payroll_engines.statutory import (
    ESIResult,
    LWFResult,
    PFResult,
    PTResult,
    TDSResult,
    calculate_esi,
    calculate_lwf,
    calculate_pf,
    calculate_professional_tax,
    calculate_tds,
    remaining_months_in_fiscal_year,
    round_rupees,
    tax_on_income,
)
from payroll_engines.tracer import compute_input_fingerprint, traced_engine
from payroll_engines.validation import (
    validate_esic_number,
    validate_ifsc,
    validate_pan,
    validate_payroll_input,
    validate_uan,
)

__all__ = [
    # attendance
    "CalendarHoliday",
    "LOPResult",
    "MonthDetails",
    "month_details",
    "resolve_absent_days",
    "resolve_lop",
    "resolve_lop_days",
    # earnings / overtime
    "EarningsBreakdown",
    "EarningsResult",
    "aggregate_earnings",
    "OvertimeResult",
    "calculate_overtime",
    "hourly_overtime_rate",
    # proration
    "NO_ELIGIBLE_DAYS_WARNING",
    "ProrationResult",
    "calculate_proration",
    # recoveries
    "RecoveriesBreakdown",
    "aggregate_recoveries",
    # statutory
    "ESIResult",
    "LWFResult",
    "PFResult",
    "PTResult",
    "TDSResult",
    "calculate_esi",
    "calculate_lwf",
    "calculate_pf",
    "calculate_professional_tax",
    "calculate_tds",
    "remaining_months_in_fiscal_year",
    "round_rupees",
    "tax_on_income",
    # tracer
    "compute_input_fingerprint",
    "traced_engine",
    # validation
    "validate_esic_number",
    "validate_ifsc",
    "validate_pan",
    "validate_payroll_input",
    "validate_uan",
]

"""
Rule-set loader (``payroll_config.loader``).

Responsibility
--------------
Reads a rule-set YAML file and parses it into the frozen dataclasses of
``payroll_config.schema``.  Runtime callers go through
``payroll_config.get_rule_set()``; this module is exposed for tests and
for tooling that validates a draft file before it is published.

Invariants enforced
-------------------
* Every amount and rate is parsed to ``Decimal`` through ``str`` so YAML
  floats such as ``0.0075`` keep their exact digits.
* Required sections (``pf``, ``esi``, ``tds``, ``overtime``) must be
  present; no silent defaults for them.

Failure modes
-------------
* Missing file -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Missing keys, unknown enum values, non-numeric amounts and structural
  problems -> ``InvalidRuleSetError``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    CalendarRules,
    ESIRules,
    Holiday,
    LOPRules,
    LWFFrequency,
    LWFRule,
    OvertimeMode,
    OvertimeRules,
    PFRules,
    PTSlab,
    Rebate,
    RuleSet,
    TaxSlab,
    TDSProjection,
    TDSRegime,
    TDSRules,
    ValidationRules,
)
from payroll_kernel.exceptions import InvalidRuleSetError

# Default deduction months when a non-monthly LWF entry omits them.
_DEFAULT_LWF_MONTHS: dict[LWFFrequency, tuple[int, ...]] = {
    LWFFrequency.HALF_YEARLY: (6, 12),
    LWFFrequency.YEARLY: (12,),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def _require(data: dict[str, Any], key: str, section: str) -> Any:
    if key not in data or data[key] is None:
        raise InvalidRuleSetError(section, f"missing required key {key!r}")
    return data[key]


def _decimal(value: Any, section: str, key: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidRuleSetError(section, f"{key} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidRuleSetError(section, f"{key} must be a number, got {value!r}") from exc


def _optional_decimal(value: Any, section: str, key: str) -> Decimal | None:
    return None if value is None else _decimal(value, section, key)


def _bool(value: Any, section: str, key: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidRuleSetError(section, f"{key} must be true or false, got {value!r}")
    return value


def _date(value: Any, section: str, key: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise InvalidRuleSetError(section, f"{key} is not an ISO date: {value!r}") from exc


def _enum(enum_cls: type, value: Any, section: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidRuleSetError(section, f"{value!r} is not one of: {allowed}") from exc


# ---------------------------------------------------------------------------
# Section parsers
# ---------------------------------------------------------------------------


def parse_pf(data: dict[str, Any]) -> PFRules:
    return PFRules(
        employee_rate=_decimal(_require(data, "employee_rate", "pf"), "pf", "employee_rate"),
        employer_rate=_decimal(_require(data, "employer_rate", "pf"), "pf", "employer_rate"),
        eps_rate=_decimal(_require(data, "eps_rate", "pf"), "pf", "eps_rate"),
        wage_ceiling=_decimal(_require(data, "wage_ceiling", "pf"), "pf", "wage_ceiling"),
        admin_rate=_decimal(data.get("admin_rate", 0), "pf", "admin_rate"),
        edli_rate=_decimal(data.get("edli_rate", 0), "pf", "edli_rate"),
        include_da=_bool(data.get("include_da", True), "pf", "include_da"),
    )


def parse_esi(data: dict[str, Any]) -> ESIRules:
    return ESIRules(
        employee_rate=_decimal(_require(data, "employee_rate", "esi"), "esi", "employee_rate"),
        employer_rate=_decimal(_require(data, "employer_rate", "esi"), "esi", "employer_rate"),
        gross_ceiling=_decimal(_require(data, "gross_ceiling", "esi"), "esi", "gross_ceiling"),
    )


def parse_pt_slabs(state: str, rows: list[dict[str, Any]]) -> tuple[PTSlab, ...]:
    section = f"professional_tax.{state}"
    return tuple(
        PTSlab(
            min_amount=_decimal(_require(row, "min", section), section, "min"),
            max_amount=_optional_decimal(row.get("max"), section, "max"),
            tax=_decimal(_require(row, "tax", section), section, "tax"),
        )
        for row in rows
    )


def parse_lwf(state: str, data: dict[str, Any]) -> LWFRule:
    section = f"lwf.{state}"
    frequency = _enum(LWFFrequency, data.get("frequency", "monthly"), section)
    months = data.get("deduction_months")
    if months is None:
        months = _DEFAULT_LWF_MONTHS.get(frequency, ())
    return LWFRule(
        employee=_decimal(_require(data, "employee", section), section, "employee"),
        employer=_decimal(_require(data, "employer", section), section, "employer"),
        frequency=frequency,
        deduction_months=tuple(int(m) for m in months),
    )


def parse_tds_regime(name: str, data: dict[str, Any]) -> TDSRegime:
    section = f"tds.regimes.{name}"
    slabs = tuple(
        TaxSlab(
            lower=_decimal(_require(row, "lower", section), section, "lower"),
            upper=_optional_decimal(row.get("upper"), section, "upper"),
            rate=_decimal(_require(row, "rate", section), section, "rate"),
        )
        for row in _require(data, "slabs", section)
    )
    rebate_data = data.get("rebate")
    rebate = None
    if rebate_data:
        rebate = Rebate(
            income_limit=_decimal(_require(rebate_data, "income_limit", section), section, "income_limit"),
            max_rebate=_decimal(_require(rebate_data, "max_rebate", section), section, "max_rebate"),
        )
    return TDSRegime(
        name=name,
        standard_deduction=_decimal(data.get("standard_deduction", 0), section, "standard_deduction"),
        slabs=slabs,
        rebate=rebate,
    )


def parse_tds(data: dict[str, Any]) -> TDSRules:
    regimes_data = _require(data, "regimes", "tds")
    return TDSRules(
        regimes={
            str(name).lower(): parse_tds_regime(str(name).lower(), regime)
            for name, regime in regimes_data.items()
        },
        default_regime=str(_require(data, "default_regime", "tds")).lower(),
        cess_rate=_decimal(data.get("cess_rate", "0.04"), "tds", "cess_rate"),
        projection=_enum(TDSProjection, data.get("projection", "flat"), "tds"),
        fiscal_year_start_month=int(data.get("fiscal_year_start_month", 4)),
    )


def parse_overtime(data: dict[str, Any]) -> OvertimeRules:
    return OvertimeRules(
        mode=_enum(OvertimeMode, data.get("mode", "flat_rate"), "overtime"),
        normal_rate=_decimal(_require(data, "normal_rate", "overtime"), "overtime", "normal_rate"),
        night_shift_rate=_decimal(_require(data, "night_shift_rate", "overtime"), "overtime", "night_shift_rate"),
        weekend_rate=_decimal(_require(data, "weekend_rate", "overtime"), "overtime", "weekend_rate"),
        standard_days_per_month=_decimal(data.get("standard_days_per_month", 26), "overtime", "standard_days_per_month"),
        standard_hours_per_day=_decimal(data.get("standard_hours_per_day", 8), "overtime", "standard_hours_per_day"),
        multiplier=_decimal(data.get("multiplier", 2), "overtime", "multiplier"),
    )


def parse_calendar(data: dict[str, Any]) -> CalendarRules:
    holidays = tuple(
        Holiday(
            day=_date(_require(row, "date", "calendar"), "calendar", "date"),
            name=str(row.get("name", "")),
        )
        for row in data.get("holidays", [])
    )
    return CalendarRules(
        weekly_off_days=tuple(int(d) for d in data.get("weekly_off_days", [6])),
        holidays=tuple(sorted(holidays, key=lambda h: h.day)),
    )


def parse_lop(data: dict[str, Any]) -> LOPRules:
    basis = data.get("basis", ["basic", "hra", "conveyance_allowance"])
    return LOPRules(
        basis=tuple(str(component) for component in basis),
        fallback_days_in_month=int(data.get("fallback_days_in_month", 30)),
    )


def parse_validation(data: dict[str, Any]) -> ValidationRules:
    return ValidationRules(
        ctc_tolerance=_decimal(data.get("ctc_tolerance", 1), "validation", "ctc_tolerance"),
        low_gross_threshold=_decimal(data.get("low_gross_threshold", 10000), "validation", "low_gross_threshold"),
    )


# ---------------------------------------------------------------------------
# Rule set
# ---------------------------------------------------------------------------


def load_rule_set_from_dict(data: dict[str, Any]) -> RuleSet:
    """Parse an already-loaded mapping into a ``RuleSet``."""
    effective_to = data.get("effective_to")
    return RuleSet(
        version=str(_require(data, "version", "rule_set")),
        effective_from=_date(_require(data, "effective_from", "rule_set"), "rule_set", "effective_from"),
        effective_to=None if effective_to is None else _date(effective_to, "rule_set", "effective_to"),
        currency=str(data.get("currency", "INR")),
        description=str(data.get("description", "")),
        pf=parse_pf(_require(data, "pf", "rule_set")),
        esi=parse_esi(_require(data, "esi", "rule_set")),
        tds=parse_tds(_require(data, "tds", "rule_set")),
        overtime=parse_overtime(_require(data, "overtime", "rule_set")),
        professional_tax={
            str(state): parse_pt_slabs(str(state), rows)
            for state, rows in (data.get("professional_tax") or {}).items()
        },
        lwf={
            str(state): parse_lwf(str(state), rule)
            for state, rule in (data.get("lwf") or {}).items()
        },
        calendar=parse_calendar(data.get("calendar") or {}),
        lop=parse_lop(data.get("lop") or {}),
        validation=parse_validation(data.get("validation") or {}),
    )


def load_rule_set(path: Path) -> RuleSet:
    """Load and parse one rule-set YAML file."""
    return load_rule_set_from_dict(load_yaml_file(path))

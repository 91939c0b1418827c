"""
Pytest fixtures for the payroll engine test suite.

Provides:
- The shipped FY 2024-25 rule set, plus a variant with zero-rate TDS for
  examples that only exercise PF/ESI/PT/LWF
- A deterministic clock and an in-memory audit log
- A payroll input builder over a realistic camelCase collaborator payload
- Structured log capture
"""

import copy
import json
import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from pathlib import Path
from typing import Any

import pytest

from payroll_config import TaxSlab, TDSRegime, TDSRules, load_rule_set
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.domain.types import PayrollInput
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_services.audit import InMemoryAuditLog

SETS_DIR = Path(__file__).resolve().parent.parent / "payroll_config" / "sets"
FY2024_RULES_PATH = SETS_DIR / "in-fy2024-25" / "rules.yaml"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, rule_set):
            process_payroll(...)
            logs = captured_logs()
            assert any(r["message"] == "payroll_processing_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Rule sets
# =============================================================================


@pytest.fixture(scope="session")
def rule_set():
    """The shipped FY 2024-25 rule set."""
    return load_rule_set(FY2024_RULES_PATH)


@pytest.fixture(scope="session")
def zero_tds_rule_set(rule_set):
    """FY 2024-25 tables with a single 0% tax slab."""
    zero_regime = TDSRegime(
        name="old",
        standard_deduction=Decimal("0"),
        slabs=(TaxSlab(lower=Decimal("0"), upper=None, rate=Decimal("0")),),
    )
    return replace(
        rule_set,
        version="TEST-ZERO-TDS",
        tds=TDSRules(regimes={"old": zero_regime}, default_regime="old"),
    )


# =============================================================================
# Clock / audit
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc))


@pytest.fixture
def audit_log():
    return InMemoryAuditLog()


# =============================================================================
# Payroll input builder
# =============================================================================


BASE_PAYLOAD: dict[str, Any] = {
    "employeeId": "EMP001",
    "period": {"month": "April", "year": 2024},
    "employee": {
        "employeeId": "EMP001",
        "name": "Asha Rao",
        "pan": "ABCDE1234F",
        "uan": "100200300400",
        "esicNumber": "3100123456",
        "bankAccount": "001234567890",
        "ifsc": "HDFC0001234",
        "joiningDate": "2020-01-15",
        "workState": "",
        "pfOptIn": True,
        "esiApplicable": True,
    },
    "salaryStructure": {
        "basic": 50000,
        "hra": 20000,
        "allowances": 15000,
        "da": 0,
        "ctc": 85000,
    },
    "attendance": {
        "totalDays": 30,
        "workingDays": 26,
        "presentDays": 26,
        "overtimeHours": 0,
        "nightShiftDays": 0,
        "weekendShiftDays": 0,
    },
    "variablePay": {},
    "deductions": {},
}


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_payload(**overrides: Any) -> dict[str, Any]:
    """Collaborator payload with nested overrides, e.g. ``employee={"pan": ""}``."""
    return _merge(BASE_PAYLOAD, overrides)


@pytest.fixture
def make_input():
    """Factory returning a ``PayrollInput`` built from the base payload."""

    def _make(**overrides: Any) -> PayrollInput:
        return PayrollInput.from_dict(build_payload(**overrides))

    return _make


@pytest.fixture
def make_payload():
    """Factory returning the raw collaborator mapping with overrides applied."""
    return build_payload

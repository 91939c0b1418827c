"""
Typed exception hierarchy for the payroll engine.

Only contract violations raise. Business-rule problems (bad PAN, present
days above working days, an unknown PT state) are reported through the
``ValidationResult`` attached to every payroll output, so a batch over many
employees keeps going past one bad record.

Hierarchy:

    PayrollError (base)
    |
    +-- InvalidPayrollInputError      INVALID_PAYROLL_INPUT
    |
    +-- RuleSetError                  RULE_SET_ERROR
    |   +-- RuleSetNotFoundError      RULE_SET_NOT_FOUND
    |   +-- InvalidRuleSetError       INVALID_RULE_SET
    |   +-- ConfigIntegrityError      CONFIG_INTEGRITY_MISMATCH

Every class carries a ``code`` class attribute (machine-readable, API-safe)
and stores its context as attributes rather than only in the message.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any


class PayrollError(Exception):
    """Base exception for all payroll engine errors."""

    code: str = "PAYROLL_ERROR"


class InvalidPayrollInputError(PayrollError):
    """
    The collaborator supplied input that cannot be interpreted at all.

    Raised for unparseable dates, months outside 1..12, non-numeric amounts
    and unknown enum values. These indicate a broken caller, not a payroll
    business condition.
    """

    code: str = "INVALID_PAYROLL_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for {field}: {value!r} ({reason})")


class RuleSetError(PayrollError):
    """Base exception for statutory rule-set problems."""

    code: str = "RULE_SET_ERROR"


class RuleSetNotFoundError(RuleSetError):
    """No rule set covers the requested date or version."""

    code: str = "RULE_SET_NOT_FOUND"

    def __init__(
        self,
        as_of: date | None = None,
        version: str | None = None,
        config_dir: Path | None = None,
    ):
        self.as_of = as_of
        self.version = version
        self.config_dir = config_dir
        if version is not None:
            target = f"version {version!r}"
        else:
            target = f"date {as_of.isoformat() if as_of else None}"
        super().__init__(f"No payroll rule set found for {target} in {config_dir}")


class InvalidRuleSetError(RuleSetError):
    """A rule set failed structural validation while loading."""

    code: str = "INVALID_RULE_SET"

    def __init__(self, section: str, reason: str):
        self.section = section
        self.reason = reason
        super().__init__(f"Invalid rule set [{section}]: {reason}")


class ConfigIntegrityError(RuleSetError):
    """
    Rule-set fingerprint does not match the approved pin.

    Raised when an APPROVED_FINGERPRINT file sits next to a rule-set file
    and the computed fingerprint differs from the pinned value.
    """

    code: str = "CONFIG_INTEGRITY_MISMATCH"

    def __init__(self, version: str, expected: str, actual: str, pin_path: Path):
        self.version = version
        self.expected = expected
        self.actual = actual
        self.pin_path = pin_path
        super().__init__(
            f"Rule set integrity check failed for '{version}': "
            f"pinned fingerprint {expected[:16]}... != "
            f"computed fingerprint {actual[:16]}... "
            f"(pin file: {pin_path})"
        )

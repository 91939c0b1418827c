"""
payroll_config -- single public entrypoint for statutory rule sets.

Responsibility:
    Provides the way to obtain a ``RuleSet`` at runtime through
    ``get_rule_set()``.  Calculators never read files or environment
    variables; they receive the rule set as an argument.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_engines`` / ``payroll_services``.  The kernel MUST NEVER
    import from ``payroll_config``.

Invariants enforced:
    - Effective dating: the returned rule set covers ``as_of``.  When
      several do, the one with the latest ``effective_from`` wins.
    - Fingerprint pinning: when an APPROVED_FINGERPRINT file exists next to
      a rule set, its fingerprint must match the pinned value.

Failure modes:
    - ``RuleSetNotFoundError`` -- no rule set for the date or version.
    - ``InvalidRuleSetError`` -- structural validation failures.
    - ``ConfigIntegrityError`` -- fingerprint mismatch against a pin.

Audit relevance:
    Every successful call emits a ``PAYROLL_RULESET_TRACE`` log entry with
    the version and fingerprint.  The same pair is stamped on every
    payroll output.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from payroll_config.integrity import verify_fingerprint_pin
from payroll_config.loader import load_rule_set, load_rule_set_from_dict
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
from payroll_kernel.exceptions import RuleSetNotFoundError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
RULES_FILE_NAME = "rules.yaml"

__all__ = [
    "CalendarRules",
    "ESIRules",
    "Holiday",
    "LOPRules",
    "LWFFrequency",
    "LWFRule",
    "OvertimeMode",
    "OvertimeRules",
    "PFRules",
    "PTSlab",
    "Rebate",
    "RuleSet",
    "TaxSlab",
    "TDSProjection",
    "TDSRegime",
    "TDSRules",
    "ValidationRules",
    "get_rule_set",
    "load_rule_set",
    "load_rule_set_from_dict",
]


def get_rule_set(
    as_of: date,
    config_dir: Path | None = None,
    version: str | None = None,
) -> RuleSet:
    """Return the rule set in force on ``as_of`` (or the named ``version``).

    Args:
        as_of: Date the rule set must cover, usually the period start.
        config_dir: Override path to the rule-set directory tree.
            Defaults to payroll_config/sets/.
        version: Exact version to load, ignoring effective dates.

    Raises:
        RuleSetNotFoundError: If nothing matches.
        ConfigIntegrityError: If a pin file exists and does not match.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    rule_set, rule_set_dir = _find_rule_set(sets_dir, as_of, version)

    logger.info(
        "PAYROLL_RULESET_TRACE",
        extra={
            "trace_type": "PAYROLL_RULESET_TRACE",
            "rule_set_version": rule_set.version,
            "rule_set_fingerprint": rule_set.fingerprint,
            "effective_from": rule_set.effective_from,
            "effective_to": rule_set.effective_to,
            "as_of": as_of,
            "pt_states": sorted(rule_set.professional_tax),
            "lwf_states": sorted(rule_set.lwf),
        },
    )

    verify_fingerprint_pin(rule_set.version, rule_set.fingerprint, rule_set_dir)
    return rule_set


def _find_rule_set(
    sets_dir: Path, as_of: date, version: str | None
) -> tuple[RuleSet, Path]:
    """Scan ``sets_dir`` subdirectories for a matching ``rules.yaml``."""
    if not sets_dir.is_dir():
        raise RuleSetNotFoundError(as_of=as_of, version=version, config_dir=sets_dir)

    candidates: list[tuple[RuleSet, Path]] = []
    for subdir in sorted(sets_dir.iterdir()):
        rules_file = subdir / RULES_FILE_NAME
        if not subdir.is_dir() or not rules_file.is_file():
            continue
        rule_set = load_rule_set(rules_file)
        if version is not None:
            if rule_set.version == version:
                return rule_set, subdir
            continue
        if rule_set.covers(as_of):
            candidates.append((rule_set, subdir))

    if not candidates:
        raise RuleSetNotFoundError(as_of=as_of, version=version, config_dir=sets_dir)

    return max(candidates, key=lambda pair: pair[0].effective_from)

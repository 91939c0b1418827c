"""
Rule-set integrity -- fingerprint pinning for approved rule sets.

When a rule-set directory contains an APPROVED_FINGERPRINT file, the
loaded rule set's fingerprint must match the pinned value.  This stops an
edited statutory table from silently changing published payroll.

The pin file is a single line: the SHA-256 hex string of
``RuleSet.fingerprint``.

If no APPROVED_FINGERPRINT file exists, the check is skipped
(draft/dev workflow).
"""

from __future__ import annotations

from pathlib import Path

from payroll_kernel.exceptions import ConfigIntegrityError

PINFILE_NAME = "APPROVED_FINGERPRINT"


def read_pinned_fingerprint(rule_set_dir: Path) -> str | None:
    """Return the pinned fingerprint, or None if no pin file exists."""
    pin_path = rule_set_dir / PINFILE_NAME
    if not pin_path.is_file():
        return None
    return pin_path.read_text().strip()


def verify_fingerprint_pin(version: str, fingerprint: str, rule_set_dir: Path) -> None:
    """Verify the fingerprint against the pin file.

    No-op if no APPROVED_FINGERPRINT file exists.

    Raises:
        ConfigIntegrityError: If a pin exists and the fingerprint differs.
    """
    pinned = read_pinned_fingerprint(rule_set_dir)
    if pinned is None:
        return

    if fingerprint != pinned:
        raise ConfigIntegrityError(
            version=version,
            expected=pinned,
            actual=fingerprint,
            pin_path=rule_set_dir / PINFILE_NAME,
        )

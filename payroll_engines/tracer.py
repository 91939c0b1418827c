"""
payroll_engines.tracer -- Calculator invocation tracer emitting PAYROLL_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    calculator invocations with structured trace logging.  The trace
    captures engine_name, engine_version, input_fingerprint (deterministic
    SHA-256 prefix of selected arguments), and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Does NOT introduce I/O into calculators; emits a log record only.

Invariants enforced:
    - Fingerprints are deterministic: arguments are bound to parameter
      names (positional or keyword alike) and serialised with the kernel's
      canonical JSON, so Decimal("1800") and Decimal("1800.00") agree.
    - The decorator only reads arguments and emits a log record; it does
      not mutate inputs.

Failure modes:
    - Fingerprint fields naming parameters that were not supplied are
      recorded with their declared default (or null).

Usage:
    from payroll_engines.tracer import traced_engine

    @traced_engine("pf", "1.0", fingerprint_fields=("basic", "da"))
    def calculate_pf(basic, da, pf_opt_in, rules):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable
from typing import Any

from payroll_kernel.logging_config import get_logger
from payroll_kernel.utils.hashing import canonicalize_json

_logger = get_logger("engines.tracer")


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """Compute a 16-hex-character SHA-256 prefix over the named arguments.

    Only the fields listed in ``fingerprint_fields`` are included; missing
    fields are recorded as null.
    """
    selected = {field: arguments.get(field) for field in fingerprint_fields}
    canonical = canonicalize_json(selected)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits PAYROLL_ENGINE_TRACE for pure calculator invocations.

    Args:
        engine_name: Calculator identifier (e.g., "pf").
        engine_version: Calculator version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint hash.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "PAYROLL_ENGINE_TRACE",
                extra={
                    "trace_type": "PAYROLL_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator

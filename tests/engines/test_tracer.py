"""
Tests for the calculator invocation tracer.

Covers:
- PAYROLL_ENGINE_TRACE emission with engine name, version and duration
- Deterministic input fingerprints (positional and keyword calls agree)
- Return values pass through unchanged
"""

from decimal import Decimal

from payroll_engines.statutory import calculate_esi
from payroll_engines.tracer import compute_input_fingerprint, traced_engine


def _traces(records):
    return [r for r in records if r.get("trace_type") == "PAYROLL_ENGINE_TRACE"]


class TestFingerprint:
    def test_sixteen_hex_characters(self):
        fp = compute_input_fingerprint(("a",), {"a": Decimal("1")})

        assert len(fp) == 16
        int(fp, 16)

    def test_decimal_scale_does_not_matter(self):
        assert compute_input_fingerprint(("a",), {"a": Decimal("1800")}) == (
            compute_input_fingerprint(("a",), {"a": Decimal("1800.00")})
        )

    def test_only_named_fields(self):
        base = compute_input_fingerprint(("a",), {"a": 1, "b": 2})

        assert base == compute_input_fingerprint(("a",), {"a": 1, "b": 3})
        assert base != compute_input_fingerprint(("a",), {"a": 2, "b": 2})


class TestTracedEngine:
    def test_emits_trace(self, captured_logs, rule_set):
        calculate_esi(Decimal("15000"), True, rule_set.esi)

        traces = _traces(captured_logs())
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "esi"
        assert traces[0]["engine_version"] == "1.0"
        assert traces[0]["logger"] == "payroll.engines.tracer"
        assert traces[0]["duration_ms"] >= 0

    def test_positional_and_keyword_calls_match(self, captured_logs, rule_set):
        calculate_esi(Decimal("15000"), True, rule_set.esi)
        calculate_esi(net_gross_earnings=Decimal("15000.00"), esi_applicable=True, rules=rule_set.esi)

        first, second = _traces(captured_logs())
        assert first["input_fingerprint"] == second["input_fingerprint"]

    def test_defaults_included(self, captured_logs):
        @traced_engine("sample", "2.1", fingerprint_fields=("x", "y"))
        def sample(x, y=3):
            return x + y

        assert sample(1) == 4
        sample(1, 3)

        first, second = _traces(captured_logs())
        assert first["input_fingerprint"] == second["input_fingerprint"]
        assert first["function"].endswith("sample")

    def test_no_fingerprint_fields(self, captured_logs):
        @traced_engine("bare", "1.0")
        def bare():
            return "ok"

        assert bare() == "ok"
        assert _traces(captured_logs())[0]["input_fingerprint"] == ""

"""
Payroll Kernel - shared foundation for the payroll engine.

- Immutable, Decimal-only domain types
- Structured JSON logging with request-scoped context
- Typed exceptions for contract violations
- Injectable clock for deterministic reprocessing
"""

__version__ = "0.1.0"

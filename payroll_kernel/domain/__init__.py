"""
Pure domain layer.

This module contains immutable input types and the clock abstraction,
with NO dependencies on persistence, HTTP, or the system time.
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.types import (
    AttendancePeriod,
    EmployeeProfile,
    ManualDeductions,
    PayrollInput,
    PayrollPeriod,
    SalaryStructure,
    ValidationResult,
    VariablePay,
    YTDAccumulator,
)

__all__ = [
    "AttendancePeriod",
    "Clock",
    "DeterministicClock",
    "EmployeeProfile",
    "ManualDeductions",
    "PayrollInput",
    "PayrollPeriod",
    "SalaryStructure",
    "SystemClock",
    "ValidationResult",
    "VariablePay",
    "YTDAccumulator",
]

"""
payroll_services -- Composition layer over the payroll calculators.

``process_payroll`` is the single calculation entry point; exports and
the run summary are pure reads over its outputs.
"""

from payroll_services.audit import AuditAction, AuditEntry, AuditSink, InMemoryAuditLog
from payroll_services.exports import (
    BankTransferRecord,
    ESIReturnRecord,
    LWFReturnRecord,
    PFECRRecord,
    PTChallanRecord,
    StatutoryFile,
    StatutoryFileType,
    TDS24QRecord,
    generate_bank_transfer_file,
    generate_esi_return,
    generate_lwf_return,
    generate_pf_ecr,
    generate_pt_challan,
    generate_tds_24q,
)
from payroll_services.models import (
    AttendanceSummary,
    EmployeeIdentity,
    EmployerContributions,
    PayrollOutput,
    PayrollStage,
    StatutoryDeductions,
)
from payroll_services.orchestrator import lock_payroll, process_payroll
from payroll_services.summary import PayrollRunSummary, StatutorySummary, summarize_payroll

__all__ = [
    "AttendanceSummary",
    "AuditAction",
    "AuditEntry",
    "AuditSink",
    "BankTransferRecord",
    "ESIReturnRecord",
    "EmployeeIdentity",
    "EmployerContributions",
    "InMemoryAuditLog",
    "LWFReturnRecord",
    "PFECRRecord",
    "PTChallanRecord",
    "PayrollOutput",
    "PayrollRunSummary",
    "PayrollStage",
    "StatutoryDeductions",
    "StatutoryFile",
    "StatutoryFileType",
    "StatutorySummary",
    "TDS24QRecord",
    "generate_bank_transfer_file",
    "generate_esi_return",
    "generate_lwf_return",
    "generate_pf_ecr",
    "generate_pt_challan",
    "generate_tds_24q",
    "lock_payroll",
    "process_payroll",
    "summarize_payroll",
]

"""
payroll_services.audit -- Append-only payroll audit trail.

Responsibility:
    Define the audit entry shape, the sink protocol the orchestrator writes
    to, and an in-memory sink for tests and single-process callers.

Architecture position:
    Services -- the orchestrator receives a sink as an explicit argument;
    calculators never see it.  Persisting entries elsewhere (database,
    queue) is the caller's sink implementation.

Invariants enforced:
    - Entries are frozen; a sink only appends.
    - ``InMemoryAuditLog.entries()`` returns a snapshot tuple, so callers
      cannot mutate the log through it.

Audit relevance:
    One entry per processing call (PAYROLL_PROCESSED or
    PAYROLL_VALIDATION_FAILED) and one per lock (PAYROLL_LOCKED).  Payloads
    carry the input fingerprint and rule-set version so a period can be
    reprocessed and compared.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Protocol, runtime_checkable
from uuid import UUID, uuid4


class AuditAction(str, Enum):
    PAYROLL_PROCESSED = "PAYROLL_PROCESSED"
    PAYROLL_VALIDATION_FAILED = "PAYROLL_VALIDATION_FAILED"
    PAYROLL_LOCKED = "PAYROLL_LOCKED"


@dataclass(frozen=True)
class AuditEntry:
    """One immutable audit record."""

    timestamp: datetime
    action: AuditAction
    payload: Mapping[str, Any] = field(default_factory=dict)
    entry_id: UUID = field(default_factory=uuid4)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": str(self.entry_id),
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "payload": dict(self.payload),
        }


@runtime_checkable
class AuditSink(Protocol):
    """Anything that can accept audit entries."""

    def record(self, entry: AuditEntry) -> None: ...


class InMemoryAuditLog:
    """Thread-safe, append-only in-memory audit sink."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def record(self, entry: AuditEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self) -> tuple[AuditEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def for_action(self, action: AuditAction) -> tuple[AuditEntry, ...]:
        return tuple(e for e in self.entries() if e.action is action)

    def for_period(self, period_label: str) -> tuple[AuditEntry, ...]:
        return tuple(e for e in self.entries() if e.payload.get("period") == period_label)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import AttendanceStatus, DayStatus, LedgerKind, Role, ScanKind, TransportSession


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: int
    status: AttendanceStatus


@dataclass(frozen=True)
class ClassLedgerKey:
    class_id: int
    day: date

    @property
    def kind(self) -> LedgerKind:
        return LedgerKind.CLASS

    def values(self) -> tuple:
        return (self.class_id, self.day)


@dataclass(frozen=True)
class TransportLedgerKey:
    vehicle_id: int
    day: date
    session: TransportSession

    @property
    def kind(self) -> LedgerKind:
        return LedgerKind.TRANSPORT

    def values(self) -> tuple:
        return (self.vehicle_id, self.day, self.session.value)


LedgerKey = Union[ClassLedgerKey, TransportLedgerKey]


@dataclass(frozen=True)
class ClassAttendanceLedger:
    """One class, one calendar day."""

    ledger_id: int
    class_id: int
    day: date
    records: tuple[AttendanceEntry, ...] = ()

    def status_of(self, student_id: int) -> Optional[AttendanceStatus]:
        for r in self.records:
            if r.student_id == student_id:
                return r.status
        return None


@dataclass(frozen=True)
class TransportAttendanceLedger:
    """One vehicle, one calendar day, one session."""

    ledger_id: int
    vehicle_id: int
    day: date
    session: TransportSession
    records: tuple[AttendanceEntry, ...] = ()

    def status_of(self, student_id: int) -> Optional[AttendanceStatus]:
        for r in self.records:
            if r.student_id == student_id:
                return r.status
        return None


@dataclass(frozen=True)
class UpsertResult:
    ledger_id: int
    previous_status: Optional[AttendanceStatus]


@dataclass(frozen=True)
class NewAuditEvent:
    student_id: int
    class_id: Optional[int]
    scanner_id: int
    scanner_role: Role
    kind: ScanKind
    occurred_at: datetime
    raw_payload: dict


@dataclass(frozen=True)
class AttendanceAuditEvent:
    """Immutable record of one scan attempt."""

    event_id: int
    student_id: int
    class_id: Optional[int]
    scanner_id: int
    scanner_role: Role
    kind: ScanKind
    occurred_at: datetime
    raw_payload: dict


@dataclass(frozen=True)
class ScanOutcome:
    """What a scan did.

    ``ledger_error`` is set when the audit event was stored but the ledger
    write failed; the scan is still on record.
    """

    event_id: int
    student_id: int
    student_name: str
    roll_number: Optional[str]
    class_id: Optional[int]
    ledger_kind: LedgerKind
    day: date
    status: AttendanceStatus
    ledger_id: Optional[int] = None
    previous_status: Optional[AttendanceStatus] = None
    session: Optional[TransportSession] = None
    ledger_error: Optional[str] = None

    @property
    def recorded(self) -> bool:
        return self.ledger_error is None

    @property
    def changed(self) -> bool:
        return self.recorded and self.previous_status != self.status


@dataclass(frozen=True)
class StudentAttendanceSummary:
    student_id: int
    full_name: str
    roll_number: Optional[str]
    total_days: int
    present_days: int
    percentage: float


@dataclass(frozen=True)
class StudentDayEntry:
    day: date
    status: DayStatus


@dataclass(frozen=True)
class StudentAttendanceReport:
    """One student's view of their class ledgers in a date window.

    Every ledger day counts toward ``total_days``; days where the ledger has
    no entry for the student are reported as not marked.
    """

    student_id: int
    class_id: int
    total_days: int
    present_days: int
    percentage: float
    entries: tuple[StudentDayEntry, ...] = ()

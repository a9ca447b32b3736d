from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import (
    AttendanceAuditEvent,
    AttendanceEntry,
    ClassAttendanceLedger,
    ClassLedgerKey,
    LedgerKey,
    NewAuditEvent,
    TransportAttendanceLedger,
    TransportLedgerKey,
    UpsertResult,
)


class LedgerRepository(Protocol):
    """Class and transport attendance ledgers.

    Each ledger key is unique at the store. ``upsert_status`` is the only
    write path for scans and must be atomic per (ledger key, student).
    """

    def create_class_ledger(self, key: ClassLedgerKey, records: Sequence[AttendanceEntry]) -> Optional[int]:
        """Create the ledger with its records; ``None`` when the key already exists."""

        raise NotImplementedError

    def get_class_ledger(self, ledger_id: int) -> Optional[ClassAttendanceLedger]:
        raise NotImplementedError

    def find_class_ledger(self, key: ClassLedgerKey) -> Optional[ClassAttendanceLedger]:
        raise NotImplementedError

    def list_class_ledgers(self, class_id: int, *, start: date, end: date) -> Sequence[ClassAttendanceLedger]:
        raise NotImplementedError

    def replace_class_records(self, ledger_id: int, records: Sequence[AttendanceEntry]) -> bool:
        raise NotImplementedError

    def find_transport_ledger(self, key: TransportLedgerKey) -> Optional[TransportAttendanceLedger]:
        raise NotImplementedError

    def upsert_status(self, key: LedgerKey, student_id: int, status: AttendanceStatus) -> UpsertResult:
        """Fetch-or-create the ledger for ``key``, then set the student's status.

        Returns the ledger id and the status the student had before (``None``
        when the student had no entry).
        """

        raise NotImplementedError


class AuditRepository(Protocol):
    """Append-only store of scan events."""

    def append(self, event: NewAuditEvent) -> int:
        raise NotImplementedError

    def list_for_student(self, student_id: int, *, limit: int) -> Sequence[AttendanceAuditEvent]:
        raise NotImplementedError

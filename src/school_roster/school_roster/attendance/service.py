from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, tzinfo
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import day_key, now_utc, reference_zone
from ..common.validators import require_unique
from ..core.constants import SCAN_HISTORY_LIMIT, SCAN_HISTORY_MAX
from ..core.enums import SCANNING_ROLES, AttendanceStatus, DayStatus, LedgerKind, Role, ScanKind, TransportSession
from ..core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidReferenceError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from ..credentials.service import CredentialService
from ..roster.model import Student
from ..roster.repository import ClassRepository, StudentRepository
from ..transport.repository import VehicleRepository
from .model import (
    AttendanceAuditEvent,
    AttendanceEntry,
    ClassAttendanceLedger,
    ClassLedgerKey,
    LedgerKey,
    NewAuditEvent,
    ScanOutcome,
    StudentAttendanceReport,
    StudentAttendanceSummary,
    StudentDayEntry,
    TransportAttendanceLedger,
    TransportLedgerKey,
)
from .repository import AuditRepository, LedgerRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: turn manual submissions and scans into ledger state.

    Day keys are always computed in one reference time zone, so two scans on
    the same calendar day hit the same ledger whatever the caller's zone.
    """

    def __init__(
        self,
        ledgers: LedgerRepository,
        audit: AuditRepository,
        students: StudentRepository,
        classes: ClassRepository,
        vehicles: VehicleRepository,
        credentials: CredentialService,
        *,
        zone: Optional[tzinfo] = None,
        default_session: TransportSession = TransportSession.MORNING,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._ledgers = ledgers
        self._audit = audit
        self._students = students
        self._classes = classes
        self._vehicles = vehicles
        self._credentials = credentials
        self._zone = zone or reference_zone()
        self._default_session = TransportSession(default_session)
        self._clock = clock or now_utc

    def day_for(self, value: date | datetime | None = None) -> date:
        return day_key(value if value is not None else self._clock(), self._zone)

    def _require_class(self, class_id: int):
        cls = self._classes.get_by_id(int(class_id))
        if not cls:
            raise NotFoundError(f"Class {class_id} not found")
        return cls

    def _check_records(self, records: Sequence[AttendanceEntry]) -> list[AttendanceEntry]:
        ids = [r.student_id for r in records]
        require_unique(ids, "records")

        seen = set(ids)
        existing = self._students.existing_ids(seen)
        missing = sorted(seen - existing)
        if missing:
            raise InvalidReferenceError(f"Unknown student ids: {', '.join(str(s) for s in missing)}")
        return list(records)

    # Manual marking

    def mark_class(
        self, class_id: int, day: date | datetime, records: Sequence[AttendanceEntry]
    ) -> ClassAttendanceLedger:
        """Create the day's ledger for a class. Never overwrites an existing one."""

        cls = self._require_class(class_id)
        key = ClassLedgerKey(class_id=cls.class_id, day=self.day_for(day))
        entries = self._check_records(records)

        ledger_id = self._ledgers.create_class_ledger(key, entries)
        if ledger_id is None:
            existing = self._ledgers.find_class_ledger(key)
            suffix = f" (ledger {existing.ledger_id})" if existing else ""
            raise ConflictError(f"Attendance already marked for {cls.name} on {key.day.isoformat()}{suffix}")

        ledger = self._ledgers.get_class_ledger(ledger_id)
        if ledger is None:
            raise UnexpectedError(f"Ledger {ledger_id} vanished after creation")
        logger.info("class %s marked for %s (%d records)", cls.class_id, key.day, len(entries))
        return ledger

    def update_class(self, ledger_id: int, records: Sequence[AttendanceEntry]) -> ClassAttendanceLedger:
        """Replace the full record list of an existing class ledger."""

        entries = self._check_records(records)
        if not self._ledgers.replace_class_records(int(ledger_id), entries):
            raise NotFoundError(f"Attendance ledger {ledger_id} not found")

        ledger = self._ledgers.get_class_ledger(int(ledger_id))
        if ledger is None:
            raise NotFoundError(f"Attendance ledger {ledger_id} not found")
        logger.info("class ledger %s replaced (%d records)", ledger_id, len(entries))
        return ledger

    def get_class_ledger(self, ledger_id: int) -> ClassAttendanceLedger:
        ledger = self._ledgers.get_class_ledger(int(ledger_id))
        if ledger is None:
            raise NotFoundError(f"Attendance ledger {ledger_id} not found")
        return ledger

    def get_class_ledgers(self, class_id: int, *, start: date, end: date) -> list[ClassAttendanceLedger]:
        self._require_class(class_id)
        if end < start:
            raise ValidationError("end must not be before start")
        return list(self._ledgers.list_class_ledgers(int(class_id), start=start, end=end))

    def class_report(self, class_id: int, *, start: date, end: date) -> list[StudentAttendanceSummary]:
        cls = self._require_class(class_id)
        ledgers = self.get_class_ledgers(cls.class_id, start=start, end=end)
        total = len(ledgers)

        report: list[StudentAttendanceSummary] = []
        for sid in cls.roster:
            student = self._students.get_by_id(sid)
            present = sum(1 for lg in ledgers if lg.status_of(sid) == AttendanceStatus.PRESENT)
            report.append(
                StudentAttendanceSummary(
                    student_id=sid,
                    full_name=student.full_name if student else "",
                    roll_number=student.roll_number if student else None,
                    total_days=total,
                    present_days=present,
                    percentage=(present / total) * 100 if total else 0.0,
                )
            )
        return report

    # Student self-service

    def _student_for_user(self, user_id: int) -> Student:
        student = self._students.get_by_user_id(int(user_id))
        if not student:
            raise NotFoundError("No student record is linked to this account")
        return student

    def student_attendance(self, user_id: int, *, start: date, end: date) -> StudentAttendanceReport:
        student = self._student_for_user(user_id)
        if student.class_id is None:
            raise NotFoundError(f"Student {student.student_id} is not assigned to a class")

        ledgers = sorted(self.get_class_ledgers(student.class_id, start=start, end=end), key=lambda lg: lg.day)
        entries = []
        for lg in ledgers:
            status = lg.status_of(student.student_id)
            mark = DayStatus(status.value) if status else DayStatus.NOT_MARKED
            entries.append(StudentDayEntry(day=lg.day, status=mark))

        total = len(entries)
        present = sum(1 for e in entries if e.status == DayStatus.PRESENT)
        return StudentAttendanceReport(
            student_id=student.student_id,
            class_id=student.class_id,
            total_days=total,
            present_days=present,
            percentage=(present / total) * 100 if total else 0.0,
            entries=tuple(entries),
        )

    def student_scans(self, user_id: int, *, limit: int = SCAN_HISTORY_LIMIT) -> list[AttendanceAuditEvent]:
        """Most recent scan events for the signed-in student, newest first."""

        if not 1 <= int(limit) <= SCAN_HISTORY_MAX:
            raise ValidationError(f"limit must be between 1 and {SCAN_HISTORY_MAX}")
        student = self._student_for_user(user_id)
        return list(self._audit.list_for_student(student.student_id, limit=int(limit)))

    # Transport crew

    def transport_ledger(
        self,
        crew_user_id: int,
        *,
        session: TransportSession | str | None = None,
        day: date | datetime | None = None,
    ) -> TransportAttendanceLedger:
        vehicle = self._vehicles.get_by_crew_member(int(crew_user_id))
        if not vehicle:
            raise NotFoundError("No vehicle is assigned to this account")
        try:
            chosen_session = TransportSession(session) if session else self._default_session
        except ValueError:
            raise ValidationError(f"Unknown session {session!r}")

        key = TransportLedgerKey(vehicle_id=vehicle.vehicle_id, day=self.day_for(day), session=chosen_session)
        ledger = self._ledgers.find_transport_ledger(key)
        if ledger is None:
            raise NotFoundError(
                f"No {chosen_session.value} pickups recorded for {vehicle.number} on {key.day.isoformat()}"
            )
        return ledger

    # Scanning

    def record_scan(
        self,
        raw: str,
        scanner_id: int,
        scanner_role: Role | str,
        *,
        session: TransportSession | str | None = None,
        now: Optional[datetime] = None,
    ) -> ScanOutcome:
        try:
            role = Role(scanner_role)
        except ValueError:
            raise ForbiddenError(f"Role {scanner_role!r} may not scan credentials")
        if role not in SCANNING_ROLES:
            raise ForbiddenError(f"Role {role.value!r} may not scan credentials")

        try:
            chosen_session = TransportSession(session) if session else self._default_session
        except ValueError:
            raise ValidationError(f"Unknown session {session!r}")

        now = now or self._clock()
        credential = self._credentials.validate(raw, now=now)
        student = credential.student

        event_id = self._audit.append(
            NewAuditEvent(
                student_id=student.student_id,
                class_id=student.class_id,
                scanner_id=int(scanner_id),
                scanner_role=role,
                kind=ScanKind.PICKUP if role.is_transport else ScanKind.DAILY,
                occurred_at=now,
                raw_payload=credential.payload.to_dict(),
            )
        )

        day = self.day_for(now)
        key: LedgerKey
        if role.is_transport:
            vehicle = self._vehicles.get_by_crew_member(int(scanner_id))
            if not vehicle:
                raise NotFoundError("No vehicle is assigned to this scanner")
            key = TransportLedgerKey(vehicle_id=vehicle.vehicle_id, day=day, session=chosen_session)
        else:
            if student.class_id is None:
                raise NotFoundError(f"Student {student.student_id} is not assigned to a class")
            cls = self._require_class(student.class_id)
            key = ClassLedgerKey(class_id=cls.class_id, day=day)

        outcome = ScanOutcome(
            event_id=event_id,
            student_id=student.student_id,
            student_name=student.full_name,
            roll_number=student.roll_number,
            class_id=student.class_id,
            ledger_kind=key.kind,
            day=day,
            status=AttendanceStatus.PRESENT,
            session=key.session if key.kind == LedgerKind.TRANSPORT else None,
        )

        try:
            result = self._ledgers.upsert_status(key, student.student_id, AttendanceStatus.PRESENT)
        except UnexpectedError as e:
            logger.error("scan event %s stored but %s ledger write failed: %s", event_id, key.kind.value, e)
            return replace(outcome, ledger_error=str(e))

        logger.info(
            "scan event %s: student %s %s ledger %s (%s -> present)",
            event_id,
            student.student_id,
            key.kind.value,
            result.ledger_id,
            result.previous_status.value if result.previous_status else "none",
        )
        return replace(outcome, ledger_id=result.ledger_id, previous_status=result.previous_status)

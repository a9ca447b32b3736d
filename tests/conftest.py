from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from src.school_roster.school_roster.attendance.model import (
    AttendanceAuditEvent,
    AttendanceEntry,
    ClassAttendanceLedger,
    ClassLedgerKey,
    TransportAttendanceLedger,
    TransportLedgerKey,
    UpsertResult,
)
from src.school_roster.school_roster.attendance.service import AttendanceService
from src.school_roster.school_roster.common.datetime_utils import reference_zone
from src.school_roster.school_roster.container import Container
from src.school_roster.school_roster.core.exceptions import UnexpectedError
from src.school_roster.school_roster.credentials.service import CredentialService
from src.school_roster.school_roster.promotion.service import PromotionService
from src.school_roster.school_roster.roster.model import SchoolClass, Student
from src.school_roster.school_roster.roster.service import RosterService
from src.school_roster.school_roster.transport.model import LiveState, Vehicle
from src.school_roster.school_roster.transport.service import TransportService


class InMemoryStudents:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Student] = {}

    def add(self, first_name, last_name, *, roll_number=None, user_id=None) -> Student:
        sid = self._next_id
        self._next_id += 1
        self.rows[sid] = Student(
            student_id=sid,
            first_name=first_name,
            last_name=last_name,
            roll_number=roll_number,
            user_id=user_id,
        )
        return self.rows[sid]

    def get_by_id(self, student_id):
        return self.rows.get(int(student_id))

    def get_by_user_id(self, user_id):
        return next((s for s in self.rows.values() if s.user_id == int(user_id)), None)

    def list_all(self):
        return [self.rows[k] for k in sorted(self.rows)]

    def existing_ids(self, student_ids):
        return {int(s) for s in student_ids if int(s) in self.rows}

    def create(self, new):
        return self.add(new.first_name, new.last_name, roll_number=new.roll_number, user_id=new.user_id).student_id

    def delete_by_id(self, student_id):
        return self.rows.pop(int(student_id), None) is not None

    def set_class(self, student_id, class_id):
        s = self.rows.get(int(student_id))
        if s is None:
            return False
        self.rows[s.student_id] = replace(s, class_id=class_id)
        return True

    def set_class_bulk(self, student_ids, class_id):
        return sum(1 for sid in student_ids if self.set_class(sid, class_id))

    def set_credential(self, student_id, *, token, issued_at, expires_at):
        s = self.rows.get(int(student_id))
        if s is None:
            return False
        self.rows[s.student_id] = replace(
            s, credential_token=token, credential_issued_at=issued_at, credential_expires_at=expires_at
        )
        return True


class InMemoryClasses:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, SchoolClass] = {}
        self.rosters: dict[int, list[int]] = {}
        self.fail_push_for: set[int] = set()

    def add(self, name, *, grade=None, section=None, rank=None) -> SchoolClass:
        cid = self._next_id
        self._next_id += 1
        self.rows[cid] = SchoolClass(class_id=cid, name=name, grade=grade, section=section, promotion_rank=rank)
        self.rosters[cid] = []
        return self.get_by_id(cid)

    def get_by_id(self, class_id):
        cls = self.rows.get(int(class_id))
        if cls is None:
            return None
        return replace(cls, roster=tuple(self.rosters[cls.class_id]))

    def get_by_name(self, name):
        return next((self.get_by_id(c) for c, row in self.rows.items() if row.name == name), None)

    def create(self, new):
        return self.add(new.name, grade=new.grade, section=new.section, rank=new.promotion_rank).class_id

    def list_promotable(self):
        return [
            self.get_by_id(cid)
            for cid, row in sorted(self.rows.items())
            if row.promotion_rank is not None and row.section
        ]

    def find_by_section_and_rank(self, section, rank):
        for cid, row in sorted(self.rows.items()):
            if row.section == section and row.promotion_rank == rank:
                return self.get_by_id(cid)
        return None

    def pull_student(self, student_id, *, keep_class_id=None):
        removed = 0
        for cid, roster in self.rosters.items():
            if cid == keep_class_id:
                continue
            while int(student_id) in roster:
                roster.remove(int(student_id))
                removed += 1
        return removed

    def push_students(self, class_id, student_ids):
        if int(class_id) in self.fail_push_for:
            raise UnexpectedError(f"write to class {class_id} failed")
        roster = self.rosters[int(class_id)]
        added = 0
        for sid in student_ids:
            if sid not in roster:
                roster.append(sid)
                added += 1
        return added

    def clear_roster(self, class_id):
        n = len(self.rosters[int(class_id)])
        self.rosters[int(class_id)] = []
        return n


class InMemoryLedgers:
    """Ledger store keyed like the real unique constraints."""

    def __init__(self):
        self._next_id = 1
        self.class_keys: dict[tuple, int] = {}
        self.transport_keys: dict[tuple, int] = {}
        self.records: dict[int, dict[int, object]] = {}
        self.meta: dict[int, object] = {}
        self.fail_upserts = False

    def _new_ledger(self, keys: dict, key) -> int:
        lid = self._next_id
        self._next_id += 1
        keys[key.values()] = lid
        self.records[lid] = {}
        self.meta[lid] = key
        return lid

    def _class_ledger(self, lid) -> ClassAttendanceLedger:
        key = self.meta[lid]
        return ClassAttendanceLedger(
            ledger_id=lid,
            class_id=key.class_id,
            day=key.day,
            records=tuple(AttendanceEntry(sid, st) for sid, st in self.records[lid].items()),
        )

    def create_class_ledger(self, key, records):
        if key.values() in self.class_keys:
            return None
        lid = self._new_ledger(self.class_keys, key)
        for r in records:
            self.records[lid][r.student_id] = r.status
        return lid

    def get_class_ledger(self, ledger_id):
        key = self.meta.get(int(ledger_id))
        if not isinstance(key, ClassLedgerKey):
            return None
        return self._class_ledger(int(ledger_id))

    def find_class_ledger(self, key):
        lid = self.class_keys.get(key.values())
        return self._class_ledger(lid) if lid else None

    def list_class_ledgers(self, class_id, *, start, end):
        out = [
            self._class_ledger(lid)
            for (cid, day), lid in self.class_keys.items()
            if cid == class_id and start <= day <= end
        ]
        return sorted(out, key=lambda lg: lg.day)

    def replace_class_records(self, ledger_id, records):
        if not isinstance(self.meta.get(int(ledger_id)), ClassLedgerKey):
            return False
        self.records[int(ledger_id)] = {r.student_id: r.status for r in records}
        return True

    def find_transport_ledger(self, key):
        lid = self.transport_keys.get(key.values())
        if not lid:
            return None
        return TransportAttendanceLedger(
            ledger_id=lid,
            vehicle_id=key.vehicle_id,
            day=key.day,
            session=key.session,
            records=tuple(AttendanceEntry(sid, st) for sid, st in self.records[lid].items()),
        )

    def upsert_status(self, key, student_id, status):
        if self.fail_upserts:
            raise UnexpectedError("ledger store unavailable")
        keys = self.transport_keys if isinstance(key, TransportLedgerKey) else self.class_keys
        lid = keys.get(key.values()) or self._new_ledger(keys, key)
        previous = self.records[lid].get(student_id)
        self.records[lid][student_id] = status
        return UpsertResult(ledger_id=lid, previous_status=previous)


class InMemoryAudit:
    def __init__(self):
        self.events: list[AttendanceAuditEvent] = []

    def append(self, event):
        eid = len(self.events) + 1
        self.events.append(
            AttendanceAuditEvent(
                event_id=eid,
                student_id=event.student_id,
                class_id=event.class_id,
                scanner_id=event.scanner_id,
                scanner_role=event.scanner_role,
                kind=event.kind,
                occurred_at=event.occurred_at,
                raw_payload=event.raw_payload,
            )
        )
        return eid

    def list_for_student(self, student_id, *, limit):
        return [e for e in reversed(self.events) if e.student_id == student_id][:limit]


class InMemoryVehicles:
    def __init__(self):
        self.rows: dict[int, Vehicle] = {}

    def add(self, number, *, driver=None, attendant=None) -> Vehicle:
        vid = len(self.rows) + 1
        self.rows[vid] = Vehicle(vehicle_id=vid, number=number, driver_user_id=driver, attendant_user_id=attendant)
        return self.rows[vid]

    def get_by_id(self, vehicle_id):
        return self.rows.get(int(vehicle_id))

    def get_by_driver(self, user_id):
        return next((v for v in self.rows.values() if v.driver_user_id == user_id), None)

    def get_by_crew_member(self, user_id):
        return next((v for v in self.rows.values() if user_id in (v.driver_user_id, v.attendant_user_id)), None)

    def update_live(self, vehicle_id, *, updated_at, active=None, started_at=None, lat=None, lng=None):
        v = self.rows.get(int(vehicle_id))
        if v is None:
            return False
        live = v.live
        self.rows[v.vehicle_id] = replace(
            v,
            live=LiveState(
                active=live.active if active is None else active,
                started_at=live.started_at if started_at is None else started_at,
                lat=live.lat if lat is None else lat,
                lng=live.lng if lng is None else lng,
                updated_at=updated_at,
            ),
        )
        return True


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    """Mutable clock; set ``clock.now`` to move time."""

    class _Clock:
        def __init__(self, now: datetime):
            self.now = now

        def __call__(self) -> datetime:
            return self.now

    return _Clock(fixed_now)


@pytest.fixture
def students():
    return InMemoryStudents()


@pytest.fixture
def classes():
    return InMemoryClasses()


@pytest.fixture
def ledgers():
    return InMemoryLedgers()


@pytest.fixture
def audit():
    return InMemoryAudit()


@pytest.fixture
def vehicles():
    return InMemoryVehicles()


@pytest.fixture
def roster_service(students, classes):
    return RosterService(students, classes)


@pytest.fixture
def promotion_service(students, classes):
    return PromotionService(students, classes, terminal_rank=14)


@pytest.fixture
def credential_service(students, classes, clock):
    return CredentialService(students, classes, ttl_days=365, clock=clock)


@pytest.fixture
def zone_name() -> str:
    return "UTC"


@pytest.fixture
def attendance_service(ledgers, audit, students, classes, vehicles, credential_service, clock, zone_name):
    return AttendanceService(
        ledgers,
        audit,
        students,
        classes,
        vehicles,
        credential_service,
        zone=reference_zone(zone_name),
        clock=clock,
    )


@pytest.fixture
def transport_service(vehicles, clock):
    return TransportService(vehicles, clock=clock)


@pytest.fixture
def container(
    students,
    classes,
    ledgers,
    audit,
    vehicles,
    roster_service,
    promotion_service,
    credential_service,
    attendance_service,
    transport_service,
) -> Container:
    return Container(
        conn=None,
        students_repo=students,
        classes_repo=classes,
        ledgers_repo=ledgers,
        audit_repo=audit,
        vehicles_repo=vehicles,
        roster_service=roster_service,
        promotion_service=promotion_service,
        credential_service=credential_service,
        attendance_service=attendance_service,
        transport_service=transport_service,
    )


@pytest.fixture
def app(container):
    from src.school_roster.school_roster.main import create_app

    return create_app(settings_module="config.testing", container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def sign_in(client, *, user_id: int, role: str) -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


@pytest.fixture
def login(client):
    def _login(user_id: int, role: str):
        sign_in(client, user_id=user_id, role=role)
        return client

    return _login

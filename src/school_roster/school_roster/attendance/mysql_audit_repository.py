from __future__ import annotations

import json
from typing import Sequence

from ..core.enums import Role, ScanKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_utc, db_cursor, fetchall, to_db_datetime
from .model import AttendanceAuditEvent, NewAuditEvent
from .repository import AuditRepository


def _load_json(value) -> dict:
    if not value:
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value)


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, event: NewAuditEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_events(
                    student_id, class_id, scanner_id, scanner_role, kind, occurred_at, raw_payload
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(event.student_id),
                    event.class_id,
                    int(event.scanner_id),
                    event.scanner_role.value,
                    event.kind.value,
                    to_db_datetime(event.occurred_at),
                    json.dumps(event.raw_payload),
                ),
            )
            return int(cur.lastrowid)

    def list_for_student(self, student_id: int, *, limit: int) -> Sequence[AttendanceAuditEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, student_id, class_id, scanner_id, scanner_role, kind, occurred_at, raw_payload
                FROM attendance_events
                WHERE student_id=%s
                ORDER BY occurred_at DESC, event_id DESC
                LIMIT %s
                """,
                (int(student_id), int(limit)),
            )
            return [
                AttendanceAuditEvent(
                    event_id=int(r["event_id"]),
                    student_id=int(r["student_id"]),
                    class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
                    scanner_id=int(r["scanner_id"]),
                    scanner_role=Role(r["scanner_role"]),
                    kind=ScanKind(r["kind"]),
                    occurred_at=as_utc(r["occurred_at"]),
                    raw_payload=_load_json(r.get("raw_payload")),
                )
                for r in fetchall(cur)
            ]

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, LedgerKind, TransportSession
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import (
    AttendanceEntry,
    ClassAttendanceLedger,
    ClassLedgerKey,
    LedgerKey,
    TransportAttendanceLedger,
    TransportLedgerKey,
    UpsertResult,
)
from .repository import LedgerRepository


@dataclass(frozen=True)
class _LedgerTables:
    ledger: str
    entries: str
    key_columns: tuple[str, ...]


_TABLES = {
    LedgerKind.CLASS: _LedgerTables("class_attendance", "class_attendance_entries", ("class_id", "day")),
    LedgerKind.TRANSPORT: _LedgerTables(
        "transport_attendance", "transport_attendance_entries", ("vehicle_id", "day", "session")
    ),
}


def _entries_by_ledger(cur, entries_table: str, ledger_ids: Sequence[int]) -> dict[int, tuple[AttendanceEntry, ...]]:
    if not ledger_ids:
        return {}
    cur.execute(
        f"""
        SELECT ledger_id, student_id, status
        FROM {entries_table}
        WHERE ledger_id IN ({in_clause(ledger_ids)})
        ORDER BY entry_id ASC
        """,
        tuple(ledger_ids),
    )
    out: dict[int, list[AttendanceEntry]] = {lid: [] for lid in ledger_ids}
    for r in fetchall(cur):
        out[int(r["ledger_id"])].append(
            AttendanceEntry(student_id=int(r["student_id"]), status=AttendanceStatus(r["status"]))
        )
    return {lid: tuple(items) for lid, items in out.items()}


def _insert_entries(cur, entries_table: str, ledger_id: int, records: Sequence[AttendanceEntry]) -> None:
    if not records:
        return
    cur.executemany(
        f"INSERT INTO {entries_table}(ledger_id, student_id, status) VALUES(%s,%s,%s)",
        [(ledger_id, int(r.student_id), r.status.value) for r in records],
    )


class MySQLLedgerRepository(LedgerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_class(self, where: str, params: tuple) -> list[ClassAttendanceLedger]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ledger_id, class_id, day
                FROM class_attendance
                WHERE {where}
                ORDER BY day DESC
                """,
                params,
            )
            rows = fetchall(cur)
            entries = _entries_by_ledger(cur, "class_attendance_entries", [int(r["ledger_id"]) for r in rows])
            return [
                ClassAttendanceLedger(
                    ledger_id=int(r["ledger_id"]),
                    class_id=int(r["class_id"]),
                    day=r["day"],
                    records=entries.get(int(r["ledger_id"]), ()),
                )
                for r in rows
            ]

    def create_class_ledger(self, key: ClassLedgerKey, records: Sequence[AttendanceEntry]) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    "INSERT INTO class_attendance(class_id, day) VALUES(%s,%s)",
                    (int(key.class_id), key.day),
                )
            except IntegrityError as e:
                if e.errno == errorcode.ER_DUP_ENTRY:
                    return None
                raise
            ledger_id = int(cur.lastrowid)
            _insert_entries(cur, "class_attendance_entries", ledger_id, records)
            return ledger_id

    def get_class_ledger(self, ledger_id: int) -> Optional[ClassAttendanceLedger]:
        found = self._select_class("ledger_id=%s", (int(ledger_id),))
        return found[0] if found else None

    def find_class_ledger(self, key: ClassLedgerKey) -> Optional[ClassAttendanceLedger]:
        found = self._select_class("class_id=%s AND day=%s", (int(key.class_id), key.day))
        return found[0] if found else None

    def list_class_ledgers(self, class_id: int, *, start: date, end: date) -> Sequence[ClassAttendanceLedger]:
        return self._select_class("class_id=%s AND day BETWEEN %s AND %s", (int(class_id), start, end))

    def replace_class_records(self, ledger_id: int, records: Sequence[AttendanceEntry]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT ledger_id FROM class_attendance WHERE ledger_id=%s FOR UPDATE", (int(ledger_id),))
            if not fetchone(cur):
                return False
            cur.execute("DELETE FROM class_attendance_entries WHERE ledger_id=%s", (int(ledger_id),))
            _insert_entries(cur, "class_attendance_entries", int(ledger_id), records)
            return True

    def find_transport_ledger(self, key: TransportLedgerKey) -> Optional[TransportAttendanceLedger]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ledger_id, vehicle_id, day, session
                FROM transport_attendance
                WHERE vehicle_id=%s AND day=%s AND session=%s
                """,
                key.values(),
            )
            r = fetchone(cur)
            if not r:
                return None
            ledger_id = int(r["ledger_id"])
            entries = _entries_by_ledger(cur, "transport_attendance_entries", [ledger_id])
            return TransportAttendanceLedger(
                ledger_id=ledger_id,
                vehicle_id=int(r["vehicle_id"]),
                day=r["day"],
                session=TransportSession(r["session"]),
                records=entries.get(ledger_id, ()),
            )

    def upsert_status(self, key: LedgerKey, student_id: int, status: AttendanceStatus) -> UpsertResult:
        tables = _TABLES[key.kind]
        values = key.values()
        columns = ", ".join(tables.key_columns)

        with db_cursor(self._conn_factory) as (_, cur):
            # Fetch-or-create: LAST_INSERT_ID(expr) makes lastrowid the existing id on conflict.
            cur.execute(
                f"""
                INSERT INTO {tables.ledger}({columns}) VALUES({in_clause(values)})
                ON DUPLICATE KEY UPDATE ledger_id=LAST_INSERT_ID(ledger_id)
                """,
                values,
            )
            ledger_id = int(cur.lastrowid)

            # Assignments run left to right, so previous_status receives the old status.
            cur.execute(
                f"""
                INSERT INTO {tables.entries}(ledger_id, student_id, status, previous_status)
                VALUES(%s,%s,%s,NULL)
                ON DUPLICATE KEY UPDATE previous_status=status, status=%s
                """,
                (ledger_id, int(student_id), status.value, status.value),
            )
            cur.execute(
                f"SELECT previous_status FROM {tables.entries} WHERE ledger_id=%s AND student_id=%s",
                (ledger_id, int(student_id)),
            )
            r = fetchone(cur)
            previous = r.get("previous_status") if r else None
            return UpsertResult(
                ledger_id=ledger_id,
                previous_status=AttendanceStatus(previous) if previous else None,
            )

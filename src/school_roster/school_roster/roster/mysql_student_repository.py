from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_utc, db_cursor, fetchall, fetchone, in_clause, to_db_datetime
from .model import NewStudent, Student
from .repository import StudentRepository

_COLUMNS = """
    student_id, first_name, last_name, roll_number, user_id, class_id,
    credential_token, credential_issued_at, credential_expires_at
"""


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        first_name=r["first_name"],
        last_name=r["last_name"],
        roll_number=r.get("roll_number"),
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        credential_token=r.get("credential_token"),
        credential_issued_at=as_utc(r.get("credential_issued_at")),
        credential_expires_at=as_utc(r.get("credential_expires_at")),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE user_id=%s LIMIT 1", (int(user_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students ORDER BY student_id")
            return [_to_student(r) for r in fetchall(cur)]

    def existing_ids(self, student_ids: Iterable[int]) -> set[int]:
        ids = [int(s) for s in student_ids]
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT student_id FROM students WHERE student_id IN ({in_clause(ids)})", tuple(ids))
            return {int(r["student_id"]) for r in fetchall(cur)}

    def create(self, new: NewStudent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(first_name, last_name, roll_number, user_id)
                VALUES(%s,%s,%s,%s)
                """,
                (new.first_name, new.last_name, new.roll_number, new.user_id),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE student_id=%s", (int(student_id),))
            return cur.rowcount > 0

    def set_class(self, student_id: int, class_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE students SET class_id=%s WHERE student_id=%s", (class_id, int(student_id)))
            return cur.rowcount > 0

    def set_class_bulk(self, student_ids: Sequence[int], class_id: Optional[int]) -> int:
        ids = [int(s) for s in student_ids]
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE students SET class_id=%s WHERE student_id IN ({in_clause(ids)})",
                (class_id, *ids),
            )
            return cur.rowcount

    def set_credential(
        self,
        student_id: int,
        *,
        token: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET credential_token=%s, credential_issued_at=%s, credential_expires_at=%s
                WHERE student_id=%s
                """,
                (token, to_db_datetime(issued_at), to_db_datetime(expires_at), int(student_id)),
            )
            return cur.rowcount > 0

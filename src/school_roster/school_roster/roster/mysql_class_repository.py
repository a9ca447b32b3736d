from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import NewClass, SchoolClass
from .repository import ClassRepository


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _load_rosters(cur, class_ids: Sequence[int]) -> dict[int, tuple[int, ...]]:
        if not class_ids:
            return {}
        cur.execute(
            f"""
            SELECT class_id, student_id
            FROM class_roster
            WHERE class_id IN ({in_clause(class_ids)})
            ORDER BY roster_id ASC
            """,
            tuple(class_ids),
        )
        rosters: dict[int, list[int]] = {cid: [] for cid in class_ids}
        for r in fetchall(cur):
            rosters[int(r["class_id"])].append(int(r["student_id"]))
        return {cid: tuple(ids) for cid, ids in rosters.items()}

    def _select(self, where: str, params: tuple, *, order_by: str = "class_id") -> list[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT class_id, name, grade, section, promotion_rank
                FROM classes
                WHERE {where}
                ORDER BY {order_by}
                """,
                params,
            )
            rows = fetchall(cur)
            rosters = self._load_rosters(cur, [int(r["class_id"]) for r in rows])
            return [
                SchoolClass(
                    class_id=int(r["class_id"]),
                    name=r["name"],
                    roster=rosters.get(int(r["class_id"]), ()),
                    grade=r.get("grade"),
                    section=r.get("section"),
                    promotion_rank=int(r["promotion_rank"]) if r.get("promotion_rank") is not None else None,
                )
                for r in rows
            ]

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        found = self._select("class_id=%s", (int(class_id),))
        return found[0] if found else None

    def get_by_name(self, name: str) -> Optional[SchoolClass]:
        found = self._select("name=%s", (name,))
        return found[0] if found else None

    def create(self, new: NewClass) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO classes(name, grade, section, promotion_rank)
                VALUES(%s,%s,%s,%s)
                """,
                (new.name, new.grade, new.section, new.promotion_rank),
            )
            return int(cur.lastrowid)

    def list_promotable(self) -> Sequence[SchoolClass]:
        return self._select(
            "promotion_rank IS NOT NULL AND section IS NOT NULL",
            (),
            order_by="promotion_rank DESC, class_id ASC",
        )

    def find_by_section_and_rank(self, section: str, rank: int) -> Optional[SchoolClass]:
        found = self._select("section=%s AND promotion_rank=%s", (section, int(rank)))
        return found[0] if found else None

    def pull_student(self, student_id: int, *, keep_class_id: Optional[int] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if keep_class_id is None:
                cur.execute("DELETE FROM class_roster WHERE student_id=%s", (int(student_id),))
            else:
                cur.execute(
                    "DELETE FROM class_roster WHERE student_id=%s AND class_id<>%s",
                    (int(student_id), int(keep_class_id)),
                )
            return cur.rowcount

    def push_students(self, class_id: int, student_ids: Sequence[int]) -> int:
        if not student_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            # Multi-row insert keeps the given order; existing members are skipped.
            values = ", ".join(["(%s, %s)"] * len(student_ids))
            params: list[int] = []
            for sid in student_ids:
                params.extend((int(class_id), int(sid)))
            cur.execute(
                f"INSERT IGNORE INTO class_roster(class_id, student_id) VALUES {values}",
                tuple(params),
            )
            return cur.rowcount

    def clear_roster(self, class_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM class_roster WHERE class_id=%s", (int(class_id),))
            return cur.rowcount

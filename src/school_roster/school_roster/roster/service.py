from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..common.validators import require_non_empty
from ..core.constants import GRADE_ORDER
from ..core.exceptions import ConflictError, InvalidReferenceError, NotFoundError, ValidationError
from .model import NewClass, NewStudent, RosterChange, SchoolClass, Student
from .repository import ClassRepository, StudentRepository

logger = logging.getLogger(__name__)


def _dedupe(ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    out: list[int] = []
    for sid in ids:
        sid = int(sid)
        if sid not in seen:
            seen.add(sid)
            out.append(sid)
    return out


class RosterService:
    """Use case: keep class rosters and student back-pointers in sync.

    The class roster is authoritative. ``Student.class_id`` is a derived
    back-pointer and is written here (and by the promotion migrator) only.

    Membership changes span up to two roster writes plus one student write
    and are not atomic across them. A crash in between can leave a
    duplicate or missing roster entry; re-running ``set_class_roster`` for
    the affected class repairs it.
    """

    def __init__(self, students: StudentRepository, classes: ClassRepository):
        self._students = students
        self._classes = classes

    def get_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError(f"Student {student_id} not found")
        return student

    def get_class(self, class_id: int) -> SchoolClass:
        cls = self._classes.get_by_id(int(class_id))
        if not cls:
            raise NotFoundError(f"Class {class_id} not found")
        return cls

    def assign_student_to_class(self, student_id: int, class_id: int) -> None:
        student = self.get_student(student_id)
        cls = self.get_class(class_id)

        on_roster = student.student_id in cls.roster
        if student.class_id == cls.class_id and on_roster:
            return

        if student.class_id != cls.class_id:
            self._classes.pull_student(student.student_id, keep_class_id=cls.class_id)
        if not on_roster:
            self._classes.push_students(cls.class_id, [student.student_id])
        if student.class_id != cls.class_id:
            self._students.set_class(student.student_id, cls.class_id)

        logger.info("student %s assigned to class %s (was %s)", student.student_id, cls.class_id, student.class_id)

    def remove_student_from_class(self, student_id: int) -> None:
        student = self.get_student(student_id)
        if student.class_id is None:
            return

        self._classes.pull_student(student.student_id)
        self._students.set_class(student.student_id, None)
        logger.info("student %s removed from class %s", student.student_id, student.class_id)

    def set_class_roster(self, class_id: int, student_ids: Sequence[int]) -> RosterChange:
        cls = self.get_class(class_id)
        desired = _dedupe(student_ids)

        existing = self._students.existing_ids(desired)
        missing = [sid for sid in desired if sid not in existing]
        if missing:
            raise InvalidReferenceError(f"Unknown student ids: {', '.join(str(s) for s in missing)}")

        desired_set = set(desired)
        removed = [sid for sid in cls.roster if sid not in desired_set]
        for sid in removed:
            student = self._students.get_by_id(sid)
            if student is None or student.class_id not in (None, cls.class_id):
                # Stale entry: the student is gone or already belongs elsewhere.
                self._classes.pull_student(sid, keep_class_id=student.class_id if student else None)
                continue
            self.remove_student_from_class(sid)

        for sid in desired:
            self.assign_student_to_class(sid, cls.class_id)

        current = set(cls.roster)
        change = RosterChange(
            class_id=cls.class_id,
            added=tuple(sid for sid in desired if sid not in current),
            removed=tuple(removed),
            retained=tuple(sid for sid in desired if sid in current),
        )
        logger.info(
            "roster of class %s replaced: +%d -%d =%d",
            cls.class_id,
            len(change.added),
            len(change.removed),
            len(change.retained),
        )
        return change

    def enroll_student(self, new: NewStudent) -> Student:
        first_name = require_non_empty(new.first_name, "first_name")
        last_name = require_non_empty(new.last_name, "last_name")
        if new.class_id is not None:
            self.get_class(new.class_id)

        student_id = self._students.create(
            NewStudent(
                first_name=first_name,
                last_name=last_name,
                roll_number=(new.roll_number or "").strip() or None,
                user_id=new.user_id,
            )
        )
        if new.class_id is not None:
            self.assign_student_to_class(student_id, new.class_id)
        return self.get_student(student_id)

    def delete_student(self, student_id: int) -> None:
        student = self.get_student(student_id)
        self._classes.pull_student(student.student_id)
        if not self._students.delete_by_id(student.student_id):
            raise NotFoundError(f"Student {student_id} not found")
        logger.info("student %s deleted", student.student_id)

    def create_class(self, new: NewClass) -> SchoolClass:
        grade = (new.grade or "").strip() or None
        section = (new.section or "").strip() or None
        name = (new.name or "").strip()
        if not name and grade and section:
            name = f"{grade} {section}"
        if not name:
            raise ValidationError("name is required")

        rank: Optional[int] = new.promotion_rank
        if rank is None and grade and section:
            rank = GRADE_ORDER.get(grade)

        if self._classes.get_by_name(name):
            raise ConflictError(f"Class {name!r} already exists")

        class_id = self._classes.create(NewClass(name=name, grade=grade, section=section, promotion_rank=rank))
        return self.get_class(class_id)

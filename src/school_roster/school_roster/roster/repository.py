from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import NewClass, NewStudent, SchoolClass, Student


class StudentRepository(Protocol):
    """Repository interface for Student.

    Note (DIP): services depend on this interface, not on a concrete store.
    """

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def existing_ids(self, student_ids: Iterable[int]) -> set[int]:
        raise NotImplementedError

    def create(self, new: NewStudent) -> int:
        """Insert without a class; membership goes through the roster service."""

        raise NotImplementedError

    def delete_by_id(self, student_id: int) -> bool:
        raise NotImplementedError

    def set_class(self, student_id: int, class_id: Optional[int]) -> bool:
        raise NotImplementedError

    def set_class_bulk(self, student_ids: Sequence[int], class_id: Optional[int]) -> int:
        raise NotImplementedError

    def set_credential(
        self,
        student_id: int,
        *,
        token: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> bool:
        raise NotImplementedError


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[SchoolClass]:
        raise NotImplementedError

    def create(self, new: NewClass) -> int:
        raise NotImplementedError

    def list_promotable(self) -> Sequence[SchoolClass]:
        """Classes that carry both a promotion rank and a section."""

        raise NotImplementedError

    def find_by_section_and_rank(self, section: str, rank: int) -> Optional[SchoolClass]:
        raise NotImplementedError

    def pull_student(self, student_id: int, *, keep_class_id: Optional[int] = None) -> int:
        """Remove the student from every roster except ``keep_class_id``'s.

        Returns the number of roster entries removed.
        """

        raise NotImplementedError

    def push_students(self, class_id: int, student_ids: Sequence[int]) -> int:
        """Append to the roster, skipping members already present."""

        raise NotImplementedError

    def clear_roster(self, class_id: int) -> int:
        raise NotImplementedError

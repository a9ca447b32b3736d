from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Domain entity: Student.

    ``class_id`` is a back-pointer derived from the class roster; only the
    roster service and the promotion migrator write it.
    """

    student_id: int
    first_name: str
    last_name: str
    roll_number: Optional[str] = None
    user_id: Optional[int] = None
    class_id: Optional[int] = None
    credential_token: Optional[str] = None
    credential_issued_at: Optional[datetime] = None
    credential_expires_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class SchoolClass:
    """Domain entity: Class with its authoritative, ordered roster."""

    class_id: int
    name: str
    roster: tuple[int, ...] = ()
    grade: Optional[str] = None
    section: Optional[str] = None
    promotion_rank: Optional[int] = None


@dataclass(frozen=True)
class NewStudent:
    first_name: str
    last_name: str
    roll_number: Optional[str] = None
    user_id: Optional[int] = None
    class_id: Optional[int] = None


@dataclass(frozen=True)
class NewClass:
    name: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    promotion_rank: Optional[int] = None


@dataclass(frozen=True)
class RosterChange:
    """Summary of a bulk roster replacement."""

    class_id: int
    added: tuple[int, ...]
    removed: tuple[int, ...]
    retained: tuple[int, ...]

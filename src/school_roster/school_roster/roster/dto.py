"""Typed request bodies for the roster endpoints, validated at the boundary."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.validators import optional_int, require_int, require_int_list
from ..core.exceptions import ValidationError
from .model import NewClass, NewStudent


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, (str, int)):
        raise ValidationError(f"{key} must be a string")
    return str(value)


@dataclass(frozen=True)
class CreateClassRequest:
    name: Optional[str]
    grade: Optional[str]
    section: Optional[str]
    promotion_rank: Optional[int]

    @classmethod
    def from_json(cls, data: dict) -> "CreateClassRequest":
        return cls(
            name=_optional_str(data, "name"),
            grade=_optional_str(data, "grade"),
            section=_optional_str(data, "section"),
            promotion_rank=optional_int(data.get("promotion_rank"), "promotion_rank"),
        )

    def to_new_class(self) -> NewClass:
        return NewClass(name=self.name, grade=self.grade, section=self.section, promotion_rank=self.promotion_rank)


@dataclass(frozen=True)
class SetRosterRequest:
    student_ids: list[int]

    @classmethod
    def from_json(cls, data: dict) -> "SetRosterRequest":
        if "student_ids" not in data:
            raise ValidationError("student_ids is required")
        return cls(student_ids=require_int_list(data["student_ids"], "student_ids"))


@dataclass(frozen=True)
class EnrollStudentRequest:
    first_name: str
    last_name: str
    roll_number: Optional[str]
    user_id: Optional[int]
    class_id: Optional[int]

    @classmethod
    def from_json(cls, data: dict) -> "EnrollStudentRequest":
        return cls(
            first_name=_optional_str(data, "first_name") or "",
            last_name=_optional_str(data, "last_name") or "",
            roll_number=_optional_str(data, "roll_number"),
            user_id=optional_int(data.get("user_id"), "user_id"),
            class_id=optional_int(data.get("class_id"), "class_id"),
        )

    def to_new_student(self) -> NewStudent:
        return NewStudent(
            first_name=self.first_name,
            last_name=self.last_name,
            roll_number=self.roll_number,
            user_id=self.user_id,
            class_id=self.class_id,
        )


@dataclass(frozen=True)
class AssignStudentRequest:
    class_id: int

    @classmethod
    def from_json(cls, data: dict) -> "AssignStudentRequest":
        return cls(class_id=require_int(data.get("class_id"), "class_id"))

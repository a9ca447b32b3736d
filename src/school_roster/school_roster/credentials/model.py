from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..core.exceptions import InvalidCredentialError
from ..roster.model import Student


@dataclass(frozen=True)
class ScanPayload:
    """Decoded scan credential: identity, token and optional display fields."""

    student_id: int
    token: str
    roll_number: Optional[str] = None
    class_id: Optional[int] = None
    class_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "token": self.token,
            "roll_number": self.roll_number,
            "class_id": self.class_id,
            "class_name": self.class_name,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ScanPayload":
        if not isinstance(data, dict):
            raise InvalidCredentialError("Credential payload must be an object")

        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise InvalidCredentialError("Credential payload missing token")

        raw_id = data.get("student_id")
        if isinstance(raw_id, bool) or raw_id is None:
            raise InvalidCredentialError("Credential payload missing student_id")
        if isinstance(raw_id, float) and not raw_id.is_integer():
            raise InvalidCredentialError("Credential payload has an invalid student_id")
        try:
            student_id = int(raw_id)
        except (TypeError, ValueError):
            raise InvalidCredentialError("Credential payload has an invalid student_id")

        class_id = data.get("class_id")
        try:
            class_id = int(class_id) if class_id is not None else None
        except (TypeError, ValueError):
            class_id = None

        return cls(
            student_id=student_id,
            token=token,
            roll_number=data.get("roll_number"),
            class_id=class_id,
            class_name=data.get("class_name"),
        )


@dataclass(frozen=True)
class IssuedCredential:
    raw: str
    payload: ScanPayload


@dataclass(frozen=True)
class ValidatedCredential:
    student: Student
    class_id: Optional[int]
    payload: ScanPayload

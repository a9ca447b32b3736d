from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import CREDENTIAL_TOKEN_BYTES, CREDENTIAL_TTL_DAYS
from ..core.exceptions import InvalidCredentialError, NotFoundError
from ..roster.model import Student
from ..roster.repository import ClassRepository, StudentRepository
from .codec import decode_payload, encode_payload
from .model import IssuedCredential, ScanPayload, ValidatedCredential

logger = logging.getLogger(__name__)


class CredentialService:
    """Use case: issue and validate scannable student credentials.

    One active token per student: issuing overwrites the stored token, so any
    previously printed credential stops validating immediately.
    """

    def __init__(
        self,
        students: StudentRepository,
        classes: ClassRepository,
        *,
        ttl_days: int = CREDENTIAL_TTL_DAYS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._students = students
        self._classes = classes
        self._ttl = timedelta(days=int(ttl_days))
        self._clock = clock or now_utc

    def issue(self, student_id: int) -> IssuedCredential:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError(f"Student {student_id} not found")
        return self._issue_for(student)

    def issue_for_user(self, user_id: int) -> IssuedCredential:
        student = self._students.get_by_user_id(int(user_id))
        if not student:
            raise NotFoundError("No student record is linked to this account")
        return self._issue_for(student)

    def issue_all(self) -> list[IssuedCredential]:
        issued = [self._issue_for(s) for s in self._students.list_all()]
        logger.info("issued credentials for %d students", len(issued))
        return issued

    def _issue_for(self, student: Student) -> IssuedCredential:
        token = secrets.token_hex(CREDENTIAL_TOKEN_BYTES)
        issued_at = self._clock()
        expires_at = issued_at + self._ttl

        if not self._students.set_credential(
            student.student_id, token=token, issued_at=issued_at, expires_at=expires_at
        ):
            raise NotFoundError(f"Student {student.student_id} not found")

        class_name = None
        if student.class_id is not None:
            cls = self._classes.get_by_id(student.class_id)
            class_name = cls.name if cls else None

        payload = ScanPayload(
            student_id=student.student_id,
            token=token,
            roll_number=student.roll_number,
            class_id=student.class_id,
            class_name=class_name,
        )
        logger.info("credential issued for student %s (expires %s)", student.student_id, expires_at.isoformat())
        return IssuedCredential(raw=encode_payload(payload), payload=payload)

    def validate(self, raw: str, *, now: Optional[datetime] = None) -> ValidatedCredential:
        payload = decode_payload(raw)

        student = self._students.get_by_id(payload.student_id)
        if not student:
            raise InvalidCredentialError("Unknown student")
        if not student.credential_token or student.credential_token != payload.token:
            raise InvalidCredentialError("Invalid or superseded credential")

        now = now or self._clock()
        if student.credential_expires_at is not None and now > student.credential_expires_at:
            raise InvalidCredentialError("Credential expired")

        return ValidatedCredential(student=student, class_id=student.class_id, payload=payload)

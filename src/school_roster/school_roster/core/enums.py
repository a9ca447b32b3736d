from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role tag of the authenticated principal."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    TRANSPORT_DRIVER = "transport-driver"
    TRANSPORT_ATTENDANT = "transport-attendant"

    @property
    def is_transport(self) -> bool:
        return self in (Role.TRANSPORT_DRIVER, Role.TRANSPORT_ATTENDANT)


SCANNING_ROLES = frozenset({Role.TEACHER, Role.TRANSPORT_DRIVER, Role.TRANSPORT_ATTENDANT})


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class TransportSession(str, Enum):
    MORNING = "morning"
    EVENING = "evening"


class LedgerKind(str, Enum):
    CLASS = "class"
    TRANSPORT = "transport"


class ScanKind(str, Enum):
    """Event kind stored on audit events."""

    DAILY = "daily"
    PICKUP = "pickup"


class PromotionOutcome(str, Enum):
    PROMOTED = "promoted"
    GRADUATED = "graduated"
    SKIPPED = "skipped"
    FAILED = "failed"


class DayStatus(str, Enum):
    """A student's status on one ledger day, as seen from the student's side."""

    PRESENT = "present"
    ABSENT = "absent"
    NOT_MARKED = "not-marked"

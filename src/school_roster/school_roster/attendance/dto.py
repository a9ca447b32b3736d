from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_int
from ..core.enums import AttendanceStatus, TransportSession
from ..core.exceptions import ValidationError
from .model import AttendanceEntry


def _parse_day(value, field_name: str) -> date:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field_name} is required (YYYY-MM-DD)")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def _parse_records(values) -> list[AttendanceEntry]:
    if not isinstance(values, list):
        raise ValidationError("records must be a list")

    entries: list[AttendanceEntry] = []
    for item in values:
        if not isinstance(item, dict):
            raise ValidationError("each record must be an object")
        try:
            status = AttendanceStatus(item.get("status"))
        except ValueError:
            raise ValidationError(f"status must be one of: {', '.join(s.value for s in AttendanceStatus)}")
        entries.append(AttendanceEntry(student_id=require_int(item.get("student_id"), "student_id"), status=status))
    return entries


@dataclass(frozen=True)
class ScanRequest:
    raw: str
    session: Optional[TransportSession] = None

    @classmethod
    def from_json(cls, data: dict) -> "ScanRequest":
        raw = data.get("raw") or data.get("qr_data")
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("raw credential text is required")
        return cls(raw=raw.strip(), session=parse_session(data.get("session")))


def parse_session(value) -> Optional[TransportSession]:
    if value in (None, ""):
        return None
    try:
        return TransportSession(value)
    except ValueError:
        raise ValidationError(f"session must be one of: {', '.join(s.value for s in TransportSession)}")


@dataclass(frozen=True)
class MarkClassRequest:
    day: date
    records: list[AttendanceEntry]

    @classmethod
    def from_json(cls, data: dict) -> "MarkClassRequest":
        return cls(day=_parse_day(data.get("day"), "day"), records=_parse_records(data.get("records")))


@dataclass(frozen=True)
class UpdateClassRequest:
    records: list[AttendanceEntry]

    @classmethod
    def from_json(cls, data: dict) -> "UpdateClassRequest":
        return cls(records=_parse_records(data.get("records")))


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @classmethod
    def from_args(cls, args) -> "DateRange":
        return cls(start=_parse_day(args.get("start"), "start"), end=_parse_day(args.get("end"), "end"))

from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_REFERENCE_TIMEZONE


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current instant, timezone-aware.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def reference_zone(name: str | None = None) -> tzinfo:
    return ZoneInfo(name or DEFAULT_REFERENCE_TIMEZONE)


def day_key(value: date | datetime | None, zone: tzinfo) -> date:
    """Normalize an instant or calendar day into the ledger day key.

    Aware datetimes are converted to ``zone`` before truncation; naive
    datetimes are taken as wall-clock time in ``zone``. A plain date is
    already a day key. ``None`` means now.
    """

    if value is None:
        value = now_utc()
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(zone).date()
    return value

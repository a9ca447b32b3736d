from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class LiveState:
    active: bool = False
    started_at: Optional[datetime] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Vehicle:
    """A school bus with its crew and last known position."""

    vehicle_id: int
    number: str
    capacity: int = 20
    driver_user_id: Optional[int] = None
    attendant_user_id: Optional[int] = None
    live: LiveState = field(default_factory=LiveState)

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class LocationRequest:
    lat: Optional[float]
    lng: Optional[float]

    @classmethod
    def from_json(cls, data: dict, *, required: bool = True) -> "LocationRequest":
        lat, lng = data.get("lat"), data.get("lng")
        if required and (lat is None or lng is None):
            raise ValidationError("lat and lng are required")
        if (lat is None) != (lng is None):
            raise ValidationError("lat and lng must be sent together")
        return cls(lat=lat, lng=lng)

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import Vehicle


class VehicleRepository(Protocol):
    def get_by_id(self, vehicle_id: int) -> Optional[Vehicle]:
        raise NotImplementedError

    def get_by_driver(self, user_id: int) -> Optional[Vehicle]:
        raise NotImplementedError

    def get_by_crew_member(self, user_id: int) -> Optional[Vehicle]:
        """Vehicle where the user is the driver or the attendant."""

        raise NotImplementedError

    def update_live(
        self,
        vehicle_id: int,
        *,
        updated_at: datetime,
        active: Optional[bool] = None,
        started_at: Optional[datetime] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> bool:
        """Single-row update; ``None`` arguments leave the column unchanged."""

        raise NotImplementedError

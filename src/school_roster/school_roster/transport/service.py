from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import require_coordinate
from ..core.exceptions import NotFoundError, ValidationError
from .model import Vehicle
from .repository import VehicleRepository

logger = logging.getLogger(__name__)


class TransportService:
    """Use case: a driver's ride state and last known position."""

    def __init__(self, vehicles: VehicleRepository, *, clock: Optional[Callable[[], datetime]] = None):
        self._vehicles = vehicles
        self._clock = clock or now_utc

    def _vehicle_for_driver(self, driver_user_id: int) -> Vehicle:
        vehicle = self._vehicles.get_by_driver(int(driver_user_id))
        if not vehicle:
            raise NotFoundError("No vehicle is assigned to this driver")
        return vehicle

    def _reload(self, vehicle_id: int) -> Vehicle:
        vehicle = self._vehicles.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        return vehicle

    def start_ride(self, driver_user_id: int, *, lat=None, lng=None) -> Vehicle:
        vehicle = self._vehicle_for_driver(driver_user_id)
        now = self._clock()
        point = None
        if lat is not None or lng is not None:
            point = (require_coordinate(lat, "lat", limit=90), require_coordinate(lng, "lng", limit=180))

        self._vehicles.update_live(
            vehicle.vehicle_id,
            updated_at=now,
            active=True,
            started_at=now,
            lat=point[0] if point else None,
            lng=point[1] if point else None,
        )
        logger.info("ride started on vehicle %s", vehicle.number)
        return self._reload(vehicle.vehicle_id)

    def stop_ride(self, driver_user_id: int) -> Vehicle:
        vehicle = self._vehicle_for_driver(driver_user_id)
        self._vehicles.update_live(vehicle.vehicle_id, updated_at=self._clock(), active=False)
        logger.info("ride stopped on vehicle %s", vehicle.number)
        return self._reload(vehicle.vehicle_id)

    def update_location(self, driver_user_id: int, *, lat, lng) -> Vehicle:
        if lat is None or lng is None:
            raise ValidationError("lat and lng are required")
        vehicle = self._vehicle_for_driver(driver_user_id)
        self._vehicles.update_live(
            vehicle.vehicle_id,
            updated_at=self._clock(),
            lat=require_coordinate(lat, "lat", limit=90),
            lng=require_coordinate(lng, "lng", limit=180),
        )
        return self._reload(vehicle.vehicle_id)

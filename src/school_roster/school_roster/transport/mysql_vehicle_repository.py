from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_utc, db_cursor, fetchone, to_db_datetime
from .model import LiveState, Vehicle
from .repository import VehicleRepository

_COLUMNS = """
    vehicle_id, number, capacity, driver_user_id, attendant_user_id,
    live_active, live_started_at, live_lat, live_lng, live_updated_at
"""


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _opt_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _to_vehicle(r: dict) -> Vehicle:
    return Vehicle(
        vehicle_id=int(r["vehicle_id"]),
        number=r["number"],
        capacity=int(r.get("capacity") or 0),
        driver_user_id=_opt_int(r.get("driver_user_id")),
        attendant_user_id=_opt_int(r.get("attendant_user_id")),
        live=LiveState(
            active=bool(r.get("live_active")),
            started_at=as_utc(r.get("live_started_at")),
            lat=_opt_float(r.get("live_lat")),
            lng=_opt_float(r.get("live_lng")),
            updated_at=as_utc(r.get("live_updated_at")),
        ),
    )


class MySQLVehicleRepository(VehicleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM vehicles WHERE {where} ORDER BY vehicle_id LIMIT 1", params)
            r = fetchone(cur)
            return _to_vehicle(r) if r else None

    def get_by_id(self, vehicle_id: int) -> Optional[Vehicle]:
        return self._get_one("vehicle_id=%s", (int(vehicle_id),))

    def get_by_driver(self, user_id: int) -> Optional[Vehicle]:
        return self._get_one("driver_user_id=%s", (int(user_id),))

    def get_by_crew_member(self, user_id: int) -> Optional[Vehicle]:
        return self._get_one("driver_user_id=%s OR attendant_user_id=%s", (int(user_id), int(user_id)))

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
        sets = ["live_updated_at=%s"]
        params: list[object] = [to_db_datetime(updated_at)]
        if active is not None:
            sets.append("live_active=%s")
            params.append(1 if active else 0)
        if started_at is not None:
            sets.append("live_started_at=%s")
            params.append(to_db_datetime(started_at))
        if lat is not None and lng is not None:
            sets.append("live_lat=%s")
            sets.append("live_lng=%s")
            params.extend([float(lat), float(lng)])
        params.append(int(vehicle_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE vehicles SET {', '.join(sets)} WHERE vehicle_id=%s", tuple(params))
            return cur.rowcount > 0

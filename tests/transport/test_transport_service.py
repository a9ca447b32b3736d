from __future__ import annotations

from datetime import timedelta

import pytest

from src.school_roster.school_roster.core.exceptions import NotFoundError, ValidationError


@pytest.fixture
def bus(vehicles):
    return vehicles.add("BUS-01", driver=201, attendant=202)


def test_start_ride_marks_active_with_position(bus, transport_service, fixed_now):
    vehicle = transport_service.start_ride(201, lat=12.97, lng=77.59)

    assert vehicle.live.active
    assert vehicle.live.started_at == fixed_now
    assert (vehicle.live.lat, vehicle.live.lng) == (12.97, 77.59)


def test_location_update_keeps_ride_state(bus, transport_service, clock, fixed_now):
    transport_service.start_ride(201)
    clock.now = fixed_now + timedelta(minutes=5)

    vehicle = transport_service.update_location(201, lat="13.0", lng="77.6")

    assert vehicle.live.active
    assert vehicle.live.started_at == fixed_now
    assert vehicle.live.updated_at == fixed_now + timedelta(minutes=5)
    assert vehicle.live.lat == 13.0


def test_stop_ride_keeps_last_position(bus, transport_service):
    transport_service.start_ride(201, lat=1.0, lng=2.0)

    vehicle = transport_service.stop_ride(201)

    assert not vehicle.live.active
    assert vehicle.live.lat == 1.0


def test_attendant_cannot_drive(bus, transport_service):
    with pytest.raises(NotFoundError):
        transport_service.start_ride(202)


@pytest.mark.parametrize("lat,lng", [(91, 0), (0, -181), ("north", 0), (None, 1)])
def test_bad_coordinates_are_rejected(bus, transport_service, lat, lng):
    with pytest.raises(ValidationError):
        transport_service.update_location(201, lat=lat, lng=lng)

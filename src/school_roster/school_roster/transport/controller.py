from __future__ import annotations

from flask import Flask

from ..common.http import as_json, current_principal, json_body, ok, roles_required
from ..container import Container
from ..core.enums import Role
from .dto import LocationRequest


def register(app: Flask, container: Container) -> None:
    transport = container.transport_service

    @app.route("/api/ride/start", methods=["POST"], endpoint="api_ride_start")
    @roles_required(Role.TRANSPORT_DRIVER)
    def api_ride_start():
        req = LocationRequest.from_json(json_body(), required=False)
        vehicle = transport.start_ride(current_principal().user_id, lat=req.lat, lng=req.lng)
        return ok(message="Ride started", data=as_json(vehicle))

    @app.route("/api/ride/stop", methods=["POST"], endpoint="api_ride_stop")
    @roles_required(Role.TRANSPORT_DRIVER)
    def api_ride_stop():
        vehicle = transport.stop_ride(current_principal().user_id)
        return ok(message="Ride stopped", data=as_json(vehicle))

    @app.route("/api/ride/location", methods=["POST"], endpoint="api_ride_location")
    @roles_required(Role.TRANSPORT_DRIVER)
    def api_ride_location():
        req = LocationRequest.from_json(json_body())
        vehicle = transport.update_location(current_principal().user_id, lat=req.lat, lng=req.lng)
        return ok(data=as_json(vehicle))

from __future__ import annotations

from flask import Flask, jsonify, request
from PIL import Image, UnidentifiedImageError

from ..common.http import as_json, current_principal, json_body, ok, roles_required
from ..common.validators import optional_int
from ..container import Container
from ..core.constants import SCAN_HISTORY_LIMIT
from ..core.enums import Role
from ..core.exceptions import ValidationError
from .dto import DateRange, MarkClassRequest, ScanRequest, UpdateClassRequest, parse_session
from .model import ScanOutcome


def read_qr_text(file_storage) -> str:
    """Decode the first QR code found in an uploaded image."""
    # Loaded on use: pyzbar needs the native zbar library at import time.
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(file_storage.stream).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Uploaded file is not a readable image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No QR code found in the image")
    return decoded[0].data.decode("utf-8").strip()


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    def _scan_response(outcome: ScanOutcome):
        data = as_json(outcome)
        if not outcome.recorded:
            # The audit event is stored; only the ledger write is missing.
            return jsonify({
                "success": False,
                "error": "unexpected",
                "message": "Scan recorded but the attendance ledger could not be updated",
                "data": data,
            }), 500

        if outcome.changed:
            message = f"{outcome.student_name} marked present"
        else:
            message = f"{outcome.student_name} was already marked present"
        return ok(message=message, data=data)

    # Scanning. Role policy is enforced by the service.

    @app.route("/api/scan", methods=["POST"], endpoint="api_scan")
    @roles_required()
    def api_scan():
        principal = current_principal()
        req = ScanRequest.from_json(json_body())
        outcome = attendance.record_scan(req.raw, principal.user_id, principal.role, session=req.session)
        return _scan_response(outcome)

    @app.route("/api/scan/image", methods=["POST"], endpoint="api_scan_image")
    @roles_required()
    def api_scan_image():
        principal = current_principal()
        if "image" not in request.files:
            raise ValidationError("image file is required")

        raw = read_qr_text(request.files["image"])
        outcome = attendance.record_scan(
            raw,
            principal.user_id,
            principal.role,
            session=parse_session(request.form.get("session")),
        )
        return _scan_response(outcome)

    # Manual class ledgers

    @app.route("/api/classes/<int:class_id>/attendance", methods=["POST"], endpoint="api_mark_class")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_mark_class(class_id: int):
        req = MarkClassRequest.from_json(json_body())
        ledger = attendance.mark_class(class_id, req.day, req.records)
        return ok(data=as_json(ledger)), 201

    @app.route("/api/classes/<int:class_id>/attendance", methods=["GET"], endpoint="api_list_class_ledgers")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_list_class_ledgers(class_id: int):
        window = DateRange.from_args(request.args)
        ledgers = attendance.get_class_ledgers(class_id, start=window.start, end=window.end)
        return ok(data=as_json(ledgers))

    @app.route("/api/classes/<int:class_id>/attendance/report", methods=["GET"], endpoint="api_class_report")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_class_report(class_id: int):
        window = DateRange.from_args(request.args)
        rows = attendance.class_report(class_id, start=window.start, end=window.end)
        return ok(data=as_json(rows))

    @app.route("/api/attendance/<int:ledger_id>", methods=["GET"], endpoint="api_get_class_ledger")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_get_class_ledger(ledger_id: int):
        return ok(data=as_json(attendance.get_class_ledger(ledger_id)))

    @app.route("/api/attendance/<int:ledger_id>", methods=["PUT"], endpoint="api_update_class_ledger")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_update_class_ledger(ledger_id: int):
        req = UpdateClassRequest.from_json(json_body())
        return ok(data=as_json(attendance.update_class(ledger_id, req.records)))

    # Student self-service

    @app.route("/api/me/attendance", methods=["GET"], endpoint="api_my_attendance")
    @roles_required(Role.STUDENT)
    def api_my_attendance():
        window = DateRange.from_args(request.args)
        report = attendance.student_attendance(current_principal().user_id, start=window.start, end=window.end)
        return ok(data={
            "total_days": report.total_days,
            "present_days": report.present_days,
            "percentage": report.percentage,
        })

    @app.route("/api/me/attendance/report", methods=["GET"], endpoint="api_my_attendance_report")
    @roles_required(Role.STUDENT)
    def api_my_attendance_report():
        window = DateRange.from_args(request.args)
        report = attendance.student_attendance(current_principal().user_id, start=window.start, end=window.end)
        return ok(data=as_json(report))

    @app.route("/api/me/scans", methods=["GET"], endpoint="api_my_scans")
    @roles_required(Role.STUDENT)
    def api_my_scans():
        limit = optional_int(request.args.get("limit"), "limit")
        if limit is None:
            limit = SCAN_HISTORY_LIMIT
        events = attendance.student_scans(current_principal().user_id, limit=limit)
        return ok(data=[
            {
                "event_id": e.event_id,
                "kind": e.kind.value,
                "scanner_role": e.scanner_role.value,
                "class_id": e.class_id,
                "occurred_at": as_json(e.occurred_at),
            }
            for e in events
        ])

    # Transport crew

    @app.route("/api/ride/attendance", methods=["GET"], endpoint="api_ride_attendance")
    @roles_required(Role.TRANSPORT_DRIVER, Role.TRANSPORT_ATTENDANT)
    def api_ride_attendance():
        ledger = attendance.transport_ledger(
            current_principal().user_id,
            session=parse_session(request.args.get("session")),
        )
        return ok(data=as_json(ledger))

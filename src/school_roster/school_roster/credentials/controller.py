from __future__ import annotations

import io

import qrcode
from flask import Flask, send_file

from ..common.http import as_json, current_principal, ok, roles_required
from ..container import Container
from ..core.enums import Role
from .model import IssuedCredential


def qr_png(raw: str) -> io.BytesIO:
    """Render credential text as a PNG QR code."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(raw)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def _issued_json(issued: IssuedCredential) -> dict:
    return {"raw": issued.raw, "payload": as_json(issued.payload)}


def register(app: Flask, container: Container) -> None:
    credentials = container.credential_service

    @app.route("/api/students/<int:student_id>/credential", methods=["POST"], endpoint="api_issue_credential")
    @roles_required(Role.ADMIN)
    def api_issue_credential(student_id: int):
        return ok(data=_issued_json(credentials.issue(student_id)))

    @app.route("/api/students/<int:student_id>/credential/qr", methods=["POST"], endpoint="api_issue_credential_qr")
    @roles_required(Role.ADMIN)
    def api_issue_credential_qr(student_id: int):
        issued = credentials.issue(student_id)
        return send_file(qr_png(issued.raw), mimetype="image/png")

    @app.route("/api/credentials/issue-all", methods=["POST"], endpoint="api_issue_all_credentials")
    @roles_required(Role.ADMIN)
    def api_issue_all_credentials():
        issued = credentials.issue_all()
        return ok(count=len(issued), data=[_issued_json(i) for i in issued])

    @app.route("/api/me/credential", methods=["POST"], endpoint="api_issue_my_credential")
    @roles_required(Role.STUDENT)
    def api_issue_my_credential():
        principal = current_principal()
        return ok(data=_issued_json(credentials.issue_for_user(principal.user_id)))

    @app.route("/api/me/credential/qr", methods=["POST"], endpoint="api_issue_my_credential_qr")
    @roles_required(Role.STUDENT)
    def api_issue_my_credential_qr():
        principal = current_principal()
        issued = credentials.issue_for_user(principal.user_id)
        return send_file(qr_png(issued.raw), mimetype="image/png")

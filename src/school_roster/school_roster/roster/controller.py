from __future__ import annotations

from flask import Flask

from ..common.http import as_json, json_body, ok, roles_required
from ..container import Container
from ..core.enums import Role
from .dto import AssignStudentRequest, CreateClassRequest, EnrollStudentRequest, SetRosterRequest
from .model import Student


def student_json(student: Student) -> dict:
    # The credential token never leaves the server outside an issued payload.
    return {
        "student_id": student.student_id,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "full_name": student.full_name,
        "roll_number": student.roll_number,
        "user_id": student.user_id,
        "class_id": student.class_id,
        "credential_expires_at": as_json(student.credential_expires_at),
    }


def register(app: Flask, container: Container) -> None:
    roster = container.roster_service
    promotion = container.promotion_service

    # Classes

    @app.route("/api/classes", methods=["POST"], endpoint="api_create_class")
    @roles_required(Role.ADMIN)
    def api_create_class():
        req = CreateClassRequest.from_json(json_body())
        cls = roster.create_class(req.to_new_class())
        return ok(data=as_json(cls)), 201

    @app.route("/api/classes/<int:class_id>", methods=["GET"], endpoint="api_get_class")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_get_class(class_id: int):
        return ok(data=as_json(roster.get_class(class_id)))

    @app.route("/api/classes/<int:class_id>/roster", methods=["PUT"], endpoint="api_set_class_roster")
    @roles_required(Role.ADMIN)
    def api_set_class_roster(class_id: int):
        req = SetRosterRequest.from_json(json_body())
        change = roster.set_class_roster(class_id, req.student_ids)
        return ok(data=as_json(change))

    @app.route("/api/classes/promote", methods=["POST"], endpoint="api_promote_classes")
    @roles_required(Role.ADMIN)
    def api_promote_classes():
        report = promotion.promote_all()
        return ok(logs=report.logs, data=as_json(report.results))

    # Students

    @app.route("/api/students", methods=["POST"], endpoint="api_enroll_student")
    @roles_required(Role.ADMIN)
    def api_enroll_student():
        req = EnrollStudentRequest.from_json(json_body())
        student = roster.enroll_student(req.to_new_student())
        return ok(data=student_json(student)), 201

    @app.route("/api/students/<int:student_id>", methods=["GET"], endpoint="api_get_student")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def api_get_student(student_id: int):
        return ok(data=student_json(roster.get_student(student_id)))

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="api_delete_student")
    @roles_required(Role.ADMIN)
    def api_delete_student(student_id: int):
        roster.delete_student(student_id)
        return ok(message="Student deleted")

    @app.route("/api/students/<int:student_id>/class", methods=["PUT"], endpoint="api_assign_student")
    @roles_required(Role.ADMIN)
    def api_assign_student(student_id: int):
        req = AssignStudentRequest.from_json(json_body())
        roster.assign_student_to_class(student_id, req.class_id)
        return ok(data=student_json(roster.get_student(student_id)))

    @app.route("/api/students/<int:student_id>/class", methods=["DELETE"], endpoint="api_remove_student")
    @roles_required(Role.ADMIN)
    def api_remove_student(student_id: int):
        roster.remove_student_from_class(student_id)
        return ok(data=student_json(roster.get_student(student_id)))

from __future__ import annotations

from datetime import date

from src.school_roster.school_roster.attendance.model import AttendanceEntry
from src.school_roster.school_roster.core.enums import AttendanceStatus, Role


def test_unauthenticated_requests_are_rejected(client):
    resp = client.post("/api/classes/promote")

    assert resp.status_code == 401


def test_teacher_cannot_promote(login):
    resp = login(11, Role.TEACHER.value).post("/api/classes/promote")

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "forbidden"


def test_admin_builds_class_and_roster(login, students):
    s = students.add("Asha", "Rao")
    client = login(1, Role.ADMIN.value)

    created = client.post("/api/classes", json={"grade": "1", "section": "A"})
    class_id = created.get_json()["data"]["class_id"]
    resp = client.put(f"/api/classes/{class_id}/roster", json={"student_ids": [s.student_id]})

    assert created.status_code == 201
    assert resp.status_code == 200
    assert resp.get_json()["data"]["added"] == [s.student_id]
    assert students.get_by_id(s.student_id).class_id == class_id


def test_unknown_roster_ids_map_to_400(login, classes):
    cls = classes.add("1 A")

    resp = login(1, Role.ADMIN.value).put(f"/api/classes/{cls.class_id}/roster", json={"student_ids": [404]})

    assert resp.status_code == 400
    assert resp.get_json() == {
        "success": False,
        "error": "invalid_reference",
        "message": "Unknown student ids: 404",
    }


def test_malformed_body_is_validation_error(login, classes):
    cls = classes.add("1 A")

    resp = login(1, Role.ADMIN.value).put(f"/api/classes/{cls.class_id}/roster", json={"student_ids": "1,2"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_scan_flow_over_http(login, students, classes, roster_service, credential_service):
    cls = classes.add("3 A")
    s = students.add("Asha", "Rao")
    roster_service.assign_student_to_class(s.student_id, cls.class_id)
    raw = credential_service.issue(s.student_id).raw
    client = login(11, Role.TEACHER.value)

    first = client.post("/api/scan", json={"raw": raw})
    second = client.post("/api/scan", json={"raw": raw})

    assert first.status_code == 200
    assert first.get_json()["data"]["previous_status"] is None
    assert second.get_json()["data"]["previous_status"] == "present"
    assert second.get_json()["message"] == "Asha Rao was already marked present"


def test_bad_credential_maps_to_401(login):
    resp = login(11, Role.TEACHER.value).post("/api/scan", json={"raw": "garbage"})

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "invalid_credential"


def test_student_cannot_scan(login):
    resp = login(5, Role.STUDENT.value).post("/api/scan", json={"raw": "anything"})

    assert resp.status_code == 403


def test_mark_class_conflict_maps_to_409(login, classes, students):
    cls = classes.add("3 A")
    s = students.add("Asha", "Rao")
    client = login(11, Role.TEACHER.value)
    body = {"day": "2026-03-02", "records": [{"student_id": s.student_id, "status": "present"}]}

    assert client.post(f"/api/classes/{cls.class_id}/attendance", json=body).status_code == 201
    resp = client.post(f"/api/classes/{cls.class_id}/attendance", json=body)

    assert resp.status_code == 409


def test_student_downloads_own_qr(login, students):
    students.add("Asha", "Rao", user_id=101)

    resp = login(101, Role.STUDENT.value).post("/api/me/credential/qr")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")


def test_scan_image_requires_file(login):
    resp = login(11, Role.TEACHER.value).post("/api/scan/image", data={"session": "morning"})

    assert resp.status_code == 400


def test_driver_starts_ride(login, vehicles):
    vehicles.add("BUS-01", driver=201)

    resp = login(201, Role.TRANSPORT_DRIVER.value).post("/api/ride/start", json={"lat": 12.9, "lng": 77.5})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["live"]["active"] is True


def _enrolled_student(students, classes, roster_service, *, user_id):
    cls = classes.add("3 A")
    s = students.add("Asha", "Rao", user_id=user_id)
    other = students.add("Vikram", "Nair")
    roster_service.assign_student_to_class(s.student_id, cls.class_id)
    roster_service.assign_student_to_class(other.student_id, cls.class_id)
    return cls, s, other


def test_student_sees_own_attendance_summary(login, students, classes, roster_service, attendance_service):
    cls, s, other = _enrolled_student(students, classes, roster_service, user_id=55)
    attendance_service.mark_class(cls.class_id, date(2026, 3, 2), [AttendanceEntry(s.student_id, AttendanceStatus.PRESENT)])
    attendance_service.mark_class(cls.class_id, date(2026, 3, 3), [AttendanceEntry(other.student_id, AttendanceStatus.PRESENT)])

    resp = login(55, Role.STUDENT.value).get("/api/me/attendance?start=2026-03-01&end=2026-03-31")

    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"total_days": 2, "present_days": 1, "percentage": 50.0}


def test_student_report_marks_missing_days(login, students, classes, roster_service, attendance_service):
    cls, s, other = _enrolled_student(students, classes, roster_service, user_id=55)
    attendance_service.mark_class(cls.class_id, date(2026, 3, 3), [AttendanceEntry(other.student_id, AttendanceStatus.PRESENT)])
    attendance_service.mark_class(cls.class_id, date(2026, 3, 2), [AttendanceEntry(s.student_id, AttendanceStatus.ABSENT)])

    resp = login(55, Role.STUDENT.value).get("/api/me/attendance/report?start=2026-03-01&end=2026-03-31")

    data = resp.get_json()["data"]
    assert data["student_id"] == s.student_id
    assert data["entries"] == [
        {"day": "2026-03-02", "status": "absent"},
        {"day": "2026-03-03", "status": "not-marked"},
    ]


def test_student_attendance_requires_window(login, students, classes, roster_service):
    _enrolled_student(students, classes, roster_service, user_id=55)

    resp = login(55, Role.STUDENT.value).get("/api/me/attendance")

    assert resp.status_code == 400


def test_teacher_cannot_read_student_portal(login):
    resp = login(11, Role.TEACHER.value).get("/api/me/attendance?start=2026-03-01&end=2026-03-31")

    assert resp.status_code == 403


def test_student_scan_history(login, students, classes, roster_service, credential_service, attendance_service):
    cls, s, _ = _enrolled_student(students, classes, roster_service, user_id=55)
    attendance_service.record_scan(credential_service.issue(s.student_id).raw, 11, Role.TEACHER)

    resp = login(55, Role.STUDENT.value).get("/api/me/scans")
    bad = login(55, Role.STUDENT.value).get("/api/me/scans?limit=0")

    events = resp.get_json()["data"]
    assert [(e["kind"], e["scanner_role"], e["class_id"]) for e in events] == [("daily", "teacher", cls.class_id)]
    assert bad.status_code == 400


def test_attendant_reads_ride_ledger(login, students, classes, roster_service, vehicles, credential_service):
    _, s, _ = _enrolled_student(students, classes, roster_service, user_id=55)
    bus = vehicles.add("BUS-01", driver=201, attendant=202)
    raw = credential_service.issue(s.student_id).raw
    client = login(202, Role.TRANSPORT_ATTENDANT.value)

    empty = client.get("/api/ride/attendance")
    client.post("/api/scan", json={"raw": raw})
    resp = client.get("/api/ride/attendance?session=morning")

    assert empty.status_code == 404
    data = resp.get_json()["data"]
    assert data["vehicle_id"] == bus.vehicle_id
    assert data["records"] == [{"student_id": s.student_id, "status": "present"}]

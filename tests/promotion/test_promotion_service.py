from __future__ import annotations

from src.school_roster.school_roster.core.enums import PromotionOutcome
from src.school_roster.school_roster.roster.model import SchoolClass


def _seat(students, classes, class_id, *names):
    ids = []
    for name in names:
        s = students.add(name, "X")
        classes.push_students(class_id, [s.student_id])
        students.set_class(s.student_id, class_id)
        ids.append(s.student_id)
    return ids


def test_single_student_moves_to_next_rank(students, classes, promotion_service):
    c1 = classes.add("1 A", section="A", rank=3)
    c2 = classes.add("2 A", section="A", rank=4)
    (s1,) = _seat(students, classes, c1.class_id, "S1")

    report = promotion_service.promote_all()

    assert classes.rosters[c2.class_id] == [s1]
    assert classes.rosters[c1.class_id] == []
    assert students.get_by_id(s1).class_id == c2.class_id
    assert report.logs == ["Promoted 1 students from 1 A to 2 A"]


def test_every_roster_moves_exactly_one_rank(students, classes, promotion_service):
    ladder = [classes.add(f"{r} A", section="A", rank=r) for r in range(3, 8)]
    seated = {c.class_id: _seat(students, classes, c.class_id, f"P{c.class_id}a", f"P{c.class_id}b") for c in ladder[:-1]}

    promotion_service.promote_all()

    for lower, upper in zip(ladder, ladder[1:]):
        assert classes.rosters[upper.class_id] == seated[lower.class_id]
        for sid in seated[lower.class_id]:
            assert students.get_by_id(sid).class_id == upper.class_id
    assert classes.rosters[ladder[0].class_id] == []


def test_terminal_class_graduates(students, classes, promotion_service):
    top = classes.add("12 A", section="A", rank=14)
    ids = _seat(students, classes, top.class_id, "G1", "G2")

    report = promotion_service.promote_all()

    assert classes.rosters[top.class_id] == []
    assert all(students.get_by_id(sid).class_id is None for sid in ids)
    assert report.count(PromotionOutcome.GRADUATED) == 1
    assert report.logs == ["Graduated 2 students from 12 A"]


def test_missing_successor_is_skipped(students, classes, promotion_service):
    stranded = classes.add("5 C", section="C", rank=7)
    ids = _seat(students, classes, stranded.class_id, "K1")

    report = promotion_service.promote_all()

    assert classes.rosters[stranded.class_id] == ids
    assert students.get_by_id(ids[0]).class_id == stranded.class_id
    assert report.results[0].outcome == PromotionOutcome.SKIPPED
    assert report.logs[0].startswith("Skipped 5 C: next class (rank 8, section C) not found")


def test_empty_rosters_produce_no_lines(classes, promotion_service):
    classes.add("1 A", section="A", rank=3)
    classes.add("2 A", section="A", rank=4)

    report = promotion_service.promote_all()

    assert report.results == []


def test_failure_in_one_class_does_not_stop_batch(students, classes, promotion_service):
    a1 = classes.add("1 A", section="A", rank=3)
    a2 = classes.add("2 A", section="A", rank=4)
    b1 = classes.add("1 B", section="B", rank=3)
    b2 = classes.add("2 B", section="B", rank=4)
    _seat(students, classes, a1.class_id, "A1")
    b_ids = _seat(students, classes, b1.class_id, "B1")
    classes.fail_push_for.add(a2.class_id)

    report = promotion_service.promote_all()

    assert report.count(PromotionOutcome.FAILED) == 1
    assert any(line.startswith("Failed 1 A:") for line in report.logs)
    assert classes.rosters[b2.class_id] == b_ids


def test_unranked_classes_are_ignored(students, classes, promotion_service):
    club = classes.add("Chess Club")
    ids = _seat(students, classes, club.class_id, "C1")

    report = promotion_service.promote_all()

    assert report.results == []
    assert classes.rosters[club.class_id] == ids


def test_class_deleted_after_listing_is_skipped(students, classes, promotion_service, monkeypatch):
    target = classes.add("2 A", section="A", rank=4)
    s = students.add("S1", "X")
    gone = SchoolClass(class_id=99, name="1 A", roster=(s.student_id,), section="A", promotion_rank=3)
    monkeypatch.setattr(classes, "list_promotable", lambda: [gone])

    report = promotion_service.promote_all()

    assert report.results[0].outcome == PromotionOutcome.SKIPPED
    assert report.logs == ["Skipped 1 A: class no longer exists"]
    assert classes.rosters[target.class_id] == []
    assert students.get_by_id(s.student_id).class_id is None

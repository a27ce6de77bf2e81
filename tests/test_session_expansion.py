import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.class_scheduler import (
    AvailabilityTracker,
    ClassInfo,
    Session,
    Subject,
    expand_sessions,
    unresolved_subject_references,
)


def test_expand_sessions_one_per_weekly_hour():
    subjects = [Subject(name="Math", hours_per_week=3)]
    classes = [ClassInfo(name="10A", subjects=("Math",), student_count=25)]

    sessions = expand_sessions(subjects, classes)

    assert sessions == [Session(class_name="10A", subject_name="Math", student_count=25)] * 3


def test_expand_sessions_sorted_by_hours_descending_with_stable_ties():
    subjects = [
        Subject(name="Art", hours_per_week=1),
        Subject(name="Math", hours_per_week=4),
        Subject(name="English", hours_per_week=4),
    ]
    classes = [
        ClassInfo(name="10A", subjects=("Art", "English", "Math"), student_count=25),
        ClassInfo(name="10B", subjects=("Math",), student_count=30),
    ]

    sessions = expand_sessions(subjects, classes)

    assert [(s.class_name, s.subject_name) for s in sessions] == (
        [("10A", "English")] * 4 + [("10A", "Math")] * 4 + [("10B", "Math")] * 4 + [("10A", "Art")]
    )


def test_expand_sessions_skips_subjects_missing_from_catalog():
    subjects = [Subject(name="Math", hours_per_week=2)]
    classes = [ClassInfo(name="10A", subjects=("Math", "Latin"), student_count=25)]

    sessions = expand_sessions(subjects, classes)

    assert {s.subject_name for s in sessions} == {"Math"}
    assert unresolved_subject_references(subjects, classes) == ["10A - Latin"]


def test_expand_sessions_ignores_subjects_no_class_requires():
    subjects = [Subject(name="Math", hours_per_week=2), Subject(name="Art", hours_per_week=5)]
    classes = [ClassInfo(name="10A", subjects=("Math",), student_count=25)]

    assert len(expand_sessions(subjects, classes)) == 2


def test_session_descriptor():
    assert Session(class_name="10A", subject_name="Math", student_count=1).descriptor == "10A - Math"


def test_tracker_commit_marks_only_that_slot():
    occ = AvailabilityTracker(["Alice"])

    assert occ.is_free("Alice", "Monday", "09:00 - 10:00")
    occ.commit("Alice", "Monday", "09:00 - 10:00")

    assert not occ.is_free("Alice", "Monday", "09:00 - 10:00")
    assert occ.is_free("Alice", "Monday", "10:00 - 11:00")
    assert occ.is_free("Alice", "Tuesday", "09:00 - 10:00")
    assert occ.occupied("Alice", "Monday") == {"09:00 - 10:00"}


def test_tracker_keys_are_independent_and_unknown_keys_are_free():
    occ = AvailabilityTracker()
    occ.commit("Room 1", "Friday", "16:00 - 17:00")

    assert occ.is_free("Room 2", "Friday", "16:00 - 17:00")
    assert occ.is_free("never seen", "Friday", "16:00 - 17:00")
    assert occ.occupied("never seen", "Friday") == set()


def test_tracker_occupied_returns_a_copy():
    occ = AvailabilityTracker(["10A"])
    occ.commit("10A", "Monday", "09:00 - 10:00")

    occ.occupied("10A", "Monday").clear()

    assert not occ.is_free("10A", "Monday", "09:00 - 10:00")

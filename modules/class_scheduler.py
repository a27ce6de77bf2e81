"""Weekly class timetable generation module.

This module builds a conflict-free weekly timetable (day x time slot) for a
set of classes, assigning a qualified teacher and a large-enough room to
every required teaching hour.

Approach
--------
We use a greedy constructive heuristic (first-fit), not a search:

1. Expand every (class, required subject) pair into one-hour "sessions".
   Example: if class 10A requires Math with hours_per_week=4, we create 4
   sessions for 10A/Math.
2. Sort sessions so subjects demanding more weekly hours are placed first.
3. For each session, walk the fixed week (Monday..Friday, 09:00..17:00) and
   take the first slot where the class, an eligible teacher and an eligible
   room are all free.

Hard constraints (never violated)
---------------------------------
- A class cannot have 2 sessions in the same (day, slot)
- A teacher cannot teach 2 sessions in the same (day, slot)
- A room cannot host 2 sessions in the same (day, slot)
- The teacher must list the subject and be available on that day
- The room capacity must cover the class size

Sessions that cannot be placed are collected, and the run fails with one
summary error at the end. There is no backtracking: an earlier placement is
never revisited, so a feasible timetable can still be missed.

Tie-breaks follow the caller's input order (first teacher / first room wins),
which keeps the output deterministic for identical input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import logging


logger = logging.getLogger(__name__)


WEEKDAYS: Tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")

TIME_SLOTS: Tuple[str, ...] = (
    "09:00 - 10:00",
    "10:00 - 11:00",
    "11:00 - 12:00",
    "12:00 - 13:00",
    "13:00 - 14:00",
    "14:00 - 15:00",
    "15:00 - 16:00",
    "16:00 - 17:00",
)


# ----------------------------
# Data models
# ----------------------------


def _name_list(raw: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return ()
    # a bare string would otherwise be split into characters
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"{key!r} must be a list of names, got {type(value).__name__}")
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class Teacher:
    name: str
    subjects: Tuple[str, ...]
    available_days: Tuple[str, ...]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Teacher":
        return cls(
            name=str(raw["name"]),
            subjects=_name_list(raw, "subjects"),
            available_days=_name_list(raw, "availableDays"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "subjects": list(self.subjects), "availableDays": list(self.available_days)}


@dataclass(frozen=True)
class Subject:
    name: str
    hours_per_week: int

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Subject":
        return cls(name=str(raw["name"]), hours_per_week=int(raw["hoursPerWeek"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "hoursPerWeek": self.hours_per_week}


@dataclass(frozen=True)
class ClassInfo:
    name: str
    subjects: Tuple[str, ...]
    student_count: int

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ClassInfo":
        return cls(
            name=str(raw["name"]),
            subjects=_name_list(raw, "subjects"),
            student_count=int(raw["studentCount"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "subjects": list(self.subjects), "studentCount": self.student_count}


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    capacity: int

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Room":
        # Rooms typed into the UI form get their id here if the caller has none.
        from utils.id_generator import new_room_id

        return cls(
            id=str(raw.get("id") or new_room_id()),
            name=str(raw["name"]),
            capacity=int(raw["capacity"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "capacity": self.capacity}


@dataclass(frozen=True)
class Session:
    """One required teaching hour of a subject for a class."""

    class_name: str
    subject_name: str
    student_count: int

    @property
    def descriptor(self) -> str:
        return f"{self.class_name} - {self.subject_name}"


@dataclass(frozen=True)
class TimetableEntry:
    day: str
    time_slot: str
    class_name: str
    subject_name: str
    teacher_name: str
    room_name: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TimetableEntry":
        return cls(
            day=str(raw["day"]),
            time_slot=str(raw["timeSlot"]),
            class_name=str(raw["className"]),
            subject_name=str(raw["subjectName"]),
            teacher_name=str(raw["teacherName"]),
            room_name=str(raw["roomName"]),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "day": self.day,
            "timeSlot": self.time_slot,
            "className": self.class_name,
            "subjectName": self.subject_name,
            "teacherName": self.teacher_name,
            "roomName": self.room_name,
        }


@dataclass(frozen=True)
class SchedulerSettings:
    # Fail the whole request when a class names a subject missing from the catalog.
    # Default keeps the permissive behavior and reports it as a warning instead.
    strict_subject_references: bool = False

    # How many unplaced session descriptors the failure summary lists.
    max_reported_failures: int = 5


@dataclass(frozen=True)
class PlacementResult:
    entries: Tuple[TimetableEntry, ...]
    unscheduled: Tuple[str, ...]


@dataclass(frozen=True)
class ScheduleResult:
    entries: Tuple[TimetableEntry, ...]
    warnings: Tuple[str, ...] = ()


class SchedulingError(Exception):
    """Raised when at least one session could not be placed."""

    def __init__(self, message: str, unscheduled: Sequence[str] = (), warnings: Sequence[str] = ()):
        super().__init__(message)
        self.unscheduled: Tuple[str, ...] = tuple(unscheduled)
        self.warnings: Tuple[str, ...] = tuple(warnings)


# ----------------------------
# Availability tracking
# ----------------------------


class AvailabilityTracker:
    """Occupancy for one resource kind: key -> day -> occupied time slots.

    Only commits, never releases; the placer commits a slot once it has found
    a fully valid placement.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._occupied: Dict[str, Dict[str, Set[str]]] = {str(k): {} for k in keys}

    def is_free(self, key: str, day: str, time_slot: str) -> bool:
        return time_slot not in self._occupied.get(key, {}).get(day, ())

    def commit(self, key: str, day: str, time_slot: str) -> None:
        self._occupied.setdefault(key, {}).setdefault(day, set()).add(time_slot)

    def occupied(self, key: str, day: str) -> Set[str]:
        """Return a copy of the occupied slots of `key` on `day`."""

        return set(self._occupied.get(key, {}).get(day, ()))


# ----------------------------
# Build sessions
# ----------------------------


def unresolved_subject_references(subjects: Sequence[Subject], classes: Sequence[ClassInfo]) -> List[str]:
    """Class requirements naming a subject that is not in the catalog."""

    known = {s.name for s in subjects}
    return [f"{c.name} - {name}" for c in classes for name in c.subjects if name not in known]


def expand_sessions(subjects: Sequence[Subject], classes: Sequence[ClassInfo]) -> List[Session]:
    """Create one session per required weekly hour, most demanding subjects first.

    Requirements that do not resolve against `subjects` produce no sessions.
    """

    subject_map = {s.name: s for s in subjects}

    sessions: List[Session] = []
    for cls in classes:
        for subject_name in cls.subjects:
            subj = subject_map.get(subject_name)
            if subj is None:
                continue
            for _k in range(int(subj.hours_per_week)):
                sessions.append(
                    Session(class_name=cls.name, subject_name=subj.name, student_count=int(cls.student_count))
                )

    # sorted() is stable: ties keep class/subject enumeration order
    return sorted(sessions, key=lambda s: subject_map[s.subject_name].hours_per_week, reverse=True)


# ----------------------------
# Placement
# ----------------------------


def place_sessions(
    sessions: Sequence[Session],
    teachers: Sequence[Teacher],
    rooms: Sequence[Room],
    *,
    teacher_occ: Optional[AvailabilityTracker] = None,
    room_occ: Optional[AvailabilityTracker] = None,
    class_occ: Optional[AvailabilityTracker] = None,
) -> PlacementResult:
    """Greedy first-fit placement of `sessions` in the given order.

    Never stops early: every session is attempted so the list of unplaced
    sessions is complete.

    Trackers may be passed in already holding commitments (e.g. fixed
    sessions placed by hand); otherwise fresh ones are created. Rooms are
    tracked by name, the same key the entries carry.
    """

    if teacher_occ is None:
        teacher_occ = AvailabilityTracker(t.name for t in teachers)
    if room_occ is None:
        room_occ = AvailabilityTracker(r.name for r in rooms)
    if class_occ is None:
        class_occ = AvailabilityTracker(s.class_name for s in sessions)

    entries: List[TimetableEntry] = []
    unscheduled: List[str] = []

    for sess in sessions:
        eligible_teachers = [t for t in teachers if sess.subject_name in t.subjects]
        if not eligible_teachers:
            unscheduled.append(f"{sess.descriptor} (no teacher)")
            continue

        eligible_rooms = [r for r in rooms if r.capacity >= sess.student_count]
        if not eligible_rooms:
            unscheduled.append(f"{sess.descriptor} (no room)")
            continue

        logger.debug(
            "%s: %d eligible teachers, %d eligible rooms",
            sess.descriptor,
            len(eligible_teachers),
            len(eligible_rooms),
        )

        entry = _first_fit(sess, eligible_teachers, eligible_rooms, teacher_occ, room_occ, class_occ)
        if entry is None:
            unscheduled.append(sess.descriptor)
        else:
            entries.append(entry)

    return PlacementResult(entries=tuple(entries), unscheduled=tuple(unscheduled))


def _first_fit(
    sess: Session,
    eligible_teachers: Sequence[Teacher],
    eligible_rooms: Sequence[Room],
    teacher_occ: AvailabilityTracker,
    room_occ: AvailabilityTracker,
    class_occ: AvailabilityTracker,
) -> Optional[TimetableEntry]:
    for day in WEEKDAYS:
        for time_slot in TIME_SLOTS:
            if not class_occ.is_free(sess.class_name, day, time_slot):
                continue

            teacher = next(
                (
                    t
                    for t in eligible_teachers
                    if day in t.available_days and teacher_occ.is_free(t.name, day, time_slot)
                ),
                None,
            )
            if teacher is None:
                continue

            room = next((r for r in eligible_rooms if room_occ.is_free(r.name, day, time_slot)), None)
            if room is None:
                continue

            teacher_occ.commit(teacher.name, day, time_slot)
            room_occ.commit(room.name, day, time_slot)
            class_occ.commit(sess.class_name, day, time_slot)

            return TimetableEntry(
                day=day,
                time_slot=time_slot,
                class_name=sess.class_name,
                subject_name=sess.subject_name,
                teacher_name=teacher.name,
                room_name=room.name,
            )

    return None


# ----------------------------
# Reporting
# ----------------------------


def format_failure_message(unscheduled: Sequence[str], limit: int = 5) -> str:
    summary = ", ".join(unscheduled[:limit])
    more = "..." if len(unscheduled) > limit else ""
    return f"Could not schedule all classes. Failed to place: {summary}{more}. Please check constraints."


def schedule_summary(entries: Sequence[TimetableEntry]) -> Dict[str, int]:
    return {
        "entries": len(entries),
        "classes": len({e.class_name for e in entries}),
        "teachers": len({e.teacher_name for e in entries}),
        "rooms": len({e.room_name for e in entries}),
    }


# ----------------------------
# Solve
# ----------------------------


def generate_timetable(
    teachers: Sequence[Teacher],
    subjects: Sequence[Subject],
    classes: Sequence[ClassInfo],
    rooms: Sequence[Room],
    settings: SchedulerSettings = SchedulerSettings(),
) -> ScheduleResult:
    """Build the weekly timetable or raise `SchedulingError`.

    On success the entries are returned in placement order (session priority
    order), not grouped by day or class.
    """

    unresolved = unresolved_subject_references(subjects, classes)
    warnings = tuple(f"{ref} (unknown subject)" for ref in unresolved)
    for w in warnings:
        logger.warning("Requirement dropped: %s", w)

    if unresolved and settings.strict_subject_references:
        message = (
            f"Classes reference subjects missing from the catalog: "
            f"{', '.join(unresolved[: settings.max_reported_failures])}"
            f"{'...' if len(unresolved) > settings.max_reported_failures else ''}."
        )
        raise SchedulingError(message, unscheduled=(), warnings=warnings)

    sessions = expand_sessions(subjects, classes)
    logger.info(
        "Scheduling %d sessions (classes=%d subjects=%d teachers=%d rooms=%d)",
        len(sessions),
        len(classes),
        len(subjects),
        len(teachers),
        len(rooms),
    )

    placement = place_sessions(sessions, teachers, rooms)

    if placement.unscheduled:
        logger.warning(
            "%d of %d sessions could not be placed",
            len(placement.unscheduled),
            len(sessions),
        )
        raise SchedulingError(
            format_failure_message(placement.unscheduled, limit=settings.max_reported_failures),
            unscheduled=placement.unscheduled,
            warnings=warnings,
        )

    logger.info("Placed all %d sessions", len(placement.entries))
    return ScheduleResult(entries=placement.entries, warnings=warnings)

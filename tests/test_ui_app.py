import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.class_scheduler import ClassInfo, Room, Subject, Teacher
from ui.app import add_room, missing_inputs, remove_room
from utils.timetable_import import WorkbookData


def test_add_and_remove_room():
    ok, msg, rooms = add_room([], " Room 1 ", 30)
    assert ok and msg == ""
    assert rooms[0].name == "Room 1"
    assert rooms[0].id.startswith("R-")

    ok, msg, same = add_room(rooms, "Room 1", 40)
    assert not ok
    assert same == rooms

    assert remove_room(rooms, rooms[0].id) == []


def test_missing_inputs():
    data = WorkbookData(
        teachers=(Teacher("Alice", ("Math",), ("Monday",)),),
        subjects=(Subject("Math", 1),),
        classes=(ClassInfo("10A", ("Math",), 20),),
    )

    assert missing_inputs(None, []) == ["rooms", "teachers", "subjects", "classes"]
    assert missing_inputs(data, []) == ["rooms"]
    assert missing_inputs(data, [Room("R1", "Room 1", 30)]) == []

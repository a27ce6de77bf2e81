import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ui.utils.validators import require_non_empty, validate_positive_int, validate_room_form, validate_unique
from utils.id_generator import new_room_id, new_short_id


def test_basic_validators():
    assert require_non_empty("  ", "Name") == (False, "Name cannot be empty")
    assert validate_positive_int(0, "Capacity") == (False, "Capacity must be >= 1")
    assert validate_positive_int(5, "Capacity", max_value=4) == (False, "Capacity must be <= 4")
    assert validate_unique(["a", " a "], "Names") == (False, "Names contains duplicates")
    assert validate_unique(["a", "b", ""], "Names") == (True, "")


def test_validate_room_form():
    assert validate_room_form(name="Room 1", capacity=30) == (True, "")
    assert validate_room_form(name="", capacity=30) == (False, "Room name cannot be empty")
    assert validate_room_form(name="Room 1", capacity=0) == (False, "Capacity must be >= 1")
    assert validate_room_form(name=" Room 1", capacity=30, existing_names=["Room 1"]) == (
        False,
        "Room 'Room 1' already exists",
    )


def test_room_ids_are_short_and_unique():
    ids = {new_room_id() for _ in range(50)}

    assert len(ids) == 50
    assert all(i.startswith("R-") and len(i) == 14 for i in ids)
    assert new_short_id("X").startswith("X-")

"""Validation helpers for Streamlit forms."""

from __future__ import annotations

from typing import Iterable, Tuple


MAX_ROOM_CAPACITY = 1000


def require_non_empty(value: str, field: str) -> Tuple[bool, str]:
    if not value or not value.strip():
        return False, f"{field} cannot be empty"
    return True, ""


def validate_positive_int(value: int, field: str, min_value: int = 1, max_value: int | None = None) -> Tuple[bool, str]:
    if value is None:
        return False, f"{field} is required"
    if value < min_value:
        return False, f"{field} must be >= {min_value}"
    if max_value is not None and value > max_value:
        return False, f"{field} must be <= {max_value}"
    return True, ""


def validate_unique(values: Iterable[str], field: str) -> Tuple[bool, str]:
    vals = [v.strip() for v in values if v and v.strip()]
    if len(vals) != len(set(vals)):
        return False, f"{field} contains duplicates"
    return True, ""


def validate_room_form(*, name: str, capacity: int, existing_names: Iterable[str] = ()) -> Tuple[bool, str]:
    """Check a room before it is added to the configured list.

    Room names are what the timetable shows, so a name already in use is
    rejected rather than producing two indistinguishable rooms.
    """

    ok, msg = require_non_empty(name, "Room name")
    if not ok:
        return ok, msg
    ok, msg = validate_positive_int(capacity, "Capacity", min_value=1, max_value=MAX_ROOM_CAPACITY)
    if not ok:
        return ok, msg
    ok, msg = validate_unique(list(existing_names) + [name], "Room names")
    if not ok:
        return False, f"Room '{name.strip()}' already exists"
    return True, ""

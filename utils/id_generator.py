"""ID generation helpers.

Rooms configured by hand in the UI have no natural key (two rooms may even
share a display name), so each gets a generated id:
- Rooms: R-1a2b3c4d5e6f

"""

from __future__ import annotations

import uuid


def new_short_id(prefix: str) -> str:
    """Generate a short ID for UI-created records.

    Uses 12 hex chars for readability.
    """

    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def new_room_id() -> str:
    return new_short_id("R")

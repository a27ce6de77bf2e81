"""UI utilities (form validation)."""

from .validators import require_non_empty, validate_positive_int, validate_room_form, validate_unique

__all__ = ["require_non_empty", "validate_positive_int", "validate_room_form", "validate_unique"]

"""Spreadsheet / JSON import for scheduler input data.

The upload workbook has three sheets (one row per record):

    Teachers: TeacherName | SubjectsTaught | AvailableDays
    Subjects: SubjectName | HoursPerWeek
    Classes:  ClassName   | Subjects       | StudentCount

List columns are comma separated ("Mathematics, Physics"). Rooms are not part
of the workbook; they are configured separately in the UI.

This layer only checks shape (sheets/columns exist, counts are positive
integers, available days are weekday names). Business constraints are the scheduler's job.
"""

from __future__ import annotations

import io
import json
import math
import zipfile
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import pandas as pd

from modules.class_scheduler import WEEKDAYS, ClassInfo, Subject, Teacher


TEACHER_COLUMNS = ("TeacherName", "SubjectsTaught", "AvailableDays")
SUBJECT_COLUMNS = ("SubjectName", "HoursPerWeek")
CLASS_COLUMNS = ("ClassName", "Subjects", "StudentCount")


class WorkbookFormatError(ValueError):
    """The uploaded workbook does not match the expected template."""


@dataclass(frozen=True)
class WorkbookData:
    teachers: Tuple[Teacher, ...]
    subjects: Tuple[Subject, ...]
    classes: Tuple[ClassInfo, ...]

    def to_request(self, rooms) -> Dict[str, List[Dict[str, Any]]]:
        """Combine with configured rooms into a scheduler request payload."""

        return {
            "teachers": [t.to_dict() for t in self.teachers],
            "subjects": [s.to_dict() for s in self.subjects],
            "classes": [c.to_dict() for c in self.classes],
            "rooms": [r.to_dict() for r in rooms],
        }


def _split_list(value: Any) -> Tuple[str, ...]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ()
    return tuple(s.strip() for s in str(value).split(",") if s.strip())


def _text(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def _positive_int(value: Any, *, sheet: str, row: int, column: str) -> int:
    try:
        num = float(value)
    except (TypeError, ValueError):
        num = float("nan")
    if not math.isfinite(num) or num != int(num) or int(num) < 1:
        raise WorkbookFormatError(f"Sheet '{sheet}' row {row}: {column} must be a positive whole number (got {value!r})")
    return int(num)


def _weekdays(value: Any, *, sheet: str, row: int, column: str) -> Tuple[str, ...]:
    """Split a day list, matching names case-insensitively against the Monday..Friday week."""

    canonical = {d.lower(): d for d in WEEKDAYS}
    days = _split_list(value)
    unknown = [d for d in days if d.lower() not in canonical]
    if unknown:
        raise WorkbookFormatError(
            f"Sheet '{sheet}' row {row}: {column} has unknown day(s) {', '.join(unknown)} "
            f"(expected one of {', '.join(WEEKDAYS)})"
        )
    return tuple(canonical[d.lower()] for d in days)


def _sheet(sheets: Dict[str, pd.DataFrame], name: str, columns: Tuple[str, ...]) -> pd.DataFrame:
    df = sheets.get(name)
    if df is None:
        raise WorkbookFormatError(f"Sheet '{name}' not found.")
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise WorkbookFormatError(f"Sheet '{name}' is missing column(s): {', '.join(missing)}")
    # Drop fully blank rows left behind by spreadsheet editors.
    return df.dropna(how="all")


def _required_name(value: Any, *, sheet: str, row: int, column: str) -> str:
    name = _text(value)
    if not name:
        raise WorkbookFormatError(f"Sheet '{sheet}' row {row}: {column} cannot be empty")
    return name


def parse_workbook_sheets(sheets: Dict[str, pd.DataFrame]) -> WorkbookData:
    teachers_df = _sheet(sheets, "Teachers", TEACHER_COLUMNS)
    subjects_df = _sheet(sheets, "Subjects", SUBJECT_COLUMNS)
    classes_df = _sheet(sheets, "Classes", CLASS_COLUMNS)

    # Row numbers in messages match what the user sees in Excel (header is row 1).
    teachers = tuple(
        Teacher(
            name=_required_name(r["TeacherName"], sheet="Teachers", row=i + 2, column="TeacherName"),
            subjects=_split_list(r["SubjectsTaught"]),
            available_days=_weekdays(r["AvailableDays"], sheet="Teachers", row=i + 2, column="AvailableDays"),
        )
        for i, r in teachers_df.iterrows()
    )

    subjects = tuple(
        Subject(
            name=_required_name(r["SubjectName"], sheet="Subjects", row=i + 2, column="SubjectName"),
            hours_per_week=_positive_int(r["HoursPerWeek"], sheet="Subjects", row=i + 2, column="HoursPerWeek"),
        )
        for i, r in subjects_df.iterrows()
    )

    classes = tuple(
        ClassInfo(
            name=_required_name(r["ClassName"], sheet="Classes", row=i + 2, column="ClassName"),
            subjects=_split_list(r["Subjects"]),
            student_count=_positive_int(r["StudentCount"], sheet="Classes", row=i + 2, column="StudentCount"),
        )
        for i, r in classes_df.iterrows()
    )

    return WorkbookData(teachers=teachers, subjects=subjects, classes=classes)


def load_workbook_data(source) -> WorkbookData:
    """Load teachers/subjects/classes from an .xlsx path, bytes or file-like object."""

    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        sheets = pd.read_excel(source, sheet_name=None, engine="openpyxl")
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise WorkbookFormatError(f"Failed to read workbook: {e}") from e
    return parse_workbook_sheets(sheets)


def template_workbook_bytes() -> bytes:
    """Example workbook users can download, fill in and upload again."""

    teachers = pd.DataFrame(
        [
            {
                "TeacherName": "Mr. Smith",
                "SubjectsTaught": "Mathematics, Physics",
                "AvailableDays": "Monday,Tuesday,Wednesday,Thursday,Friday",
            }
        ],
        columns=list(TEACHER_COLUMNS),
    )
    subjects = pd.DataFrame([{"SubjectName": "Mathematics", "HoursPerWeek": 4}], columns=list(SUBJECT_COLUMNS))
    classes = pd.DataFrame(
        [{"ClassName": "Grade 10A", "Subjects": "Mathematics, Physics", "StudentCount": 25}],
        columns=list(CLASS_COLUMNS),
    )

    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        teachers.to_excel(writer, sheet_name="Teachers", index=False)
        subjects.to_excel(writer, sheet_name="Subjects", index=False)
        classes.to_excel(writer, sheet_name="Classes", index=False)
    return out.getvalue()


def load_request_json(path: str) -> Dict[str, Any]:
    """Load a full scheduler request payload (teachers/subjects/classes/rooms) from JSON."""

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    return raw

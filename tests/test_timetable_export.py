from __future__ import annotations

import io
import sys
import zipfile
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.class_scheduler import TIME_SLOTS, WEEKDAYS, TimetableEntry
from utils.timetable_export import (
    ImageExportOptions,
    _safe_sheet_name,
    _unique_sheet_name,
    class_timetable_df,
    df_to_markdown,
    df_to_png_bytes,
    entries_df,
    teacher_timetable_df,
    timetable_workbook_bytes,
    timetable_zip_bytes,
)


ENTRIES = [
    TimetableEntry("Tuesday", "10:00 - 11:00", "10A", "Math", "Alice", "Room 1"),
    TimetableEntry("Monday", "09:00 - 10:00", "10A", "English", "Bob", "Room 2"),
    TimetableEntry("Monday", "09:00 - 10:00", "10B/Science", "Math", "Alice", "Room 1"),
]


def test_entries_df_keeps_committed_order():
    df = entries_df(ENTRIES)

    assert list(df.columns) == ["day", "time_slot", "class_name", "subject_name", "teacher_name", "room_name"]
    assert df["day"].tolist() == ["Tuesday", "Monday", "Monday"]


def test_class_timetable_grid():
    df = class_timetable_df(ENTRIES, "10A")

    assert df.shape == (len(WEEKDAYS), len(TIME_SLOTS) + 1)
    assert df["DAY"].tolist() == list(WEEKDAYS)
    assert df.loc[0, "09:00 - 10:00"] == "English\nBob\nRoom 2"
    assert df.loc[1, "10:00 - 11:00"] == "Math\nAlice\nRoom 1"
    assert df.loc[4, "16:00 - 17:00"] == ""


def test_teacher_timetable_grid():
    df = teacher_timetable_df(ENTRIES, "Alice")

    assert df.loc[0, "09:00 - 10:00"] == "Math\n10B/Science\nRoom 1"
    assert df.loc[1, "10:00 - 11:00"] == "Math\n10A\nRoom 1"
    assert df.loc[0, "10:00 - 11:00"] == ""


def test_workbook_has_entries_class_and_teacher_sheets():
    sheets = pd.read_excel(io.BytesIO(timetable_workbook_bytes(ENTRIES)), sheet_name=None, engine="openpyxl")

    assert list(sheets.keys()) == ["Entries", "10A", "10B-Science", "Teacher-Alice", "Teacher-Bob"]
    assert len(sheets["Entries"]) == 3


def test_unique_sheet_name_handles_collisions_and_length():
    used: set[str] = set()

    first = _unique_sheet_name("A" * 40, used)
    second = _unique_sheet_name("A" * 40, used)

    assert first == "A" * 31
    assert second == "A" * 27 + " (2)"


def test_safe_sheet_name_replaces_forbidden_characters():
    assert _safe_sheet_name("Grade 10/A: [Science]?") == "Grade 10-A- -Science--"
    assert _safe_sheet_name("  ") == "Sheet"


def test_zip_contains_workbook_and_csvs():
    with zipfile.ZipFile(io.BytesIO(timetable_zip_bytes(ENTRIES))) as z:
        names = set(z.namelist())

    assert {
        "timetable.xlsx",
        "tables/entries.csv",
        "timetables/classes/10A.csv",
        "timetables/classes/10B_Science.csv",
        "timetables/teachers/Alice.csv",
        "timetables/teachers/Bob.csv",
    } <= names


def test_df_to_markdown_basic() -> None:
    df = pd.DataFrame([["A", "B|C"], ["x\ny", "D"]], columns=["Col1", "Col2"])
    md = df_to_markdown(df)
    assert "| Col1 | Col2 |" in md
    assert "| A | B\\|C |" in md
    assert "| x<br>y | D |" in md


def test_df_to_markdown_class_grid_line_breaks() -> None:
    md = df_to_markdown(class_timetable_df(ENTRIES, "10A"), line_break=" / ")
    lines = md.splitlines()

    assert lines[0] == "| DAY | " + " | ".join(TIME_SLOTS) + " |"
    assert lines[2].startswith("| Monday | English / Bob / Room 2 |  |")
    assert lines[3].startswith("| Tuesday |  | Math / Alice / Room 1 |")
    assert len(lines) == 2 + len(WEEKDAYS)


def test_df_to_png_bytes_renders_png() -> None:
    png = df_to_png_bytes(class_timetable_df(ENTRIES, "10A"), options=ImageExportOptions(title="10A"))

    assert png.startswith(b"\x89PNG")

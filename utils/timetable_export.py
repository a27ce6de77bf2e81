"""Timetable exports: flat entries table, day x slot grids and their files.

Grids are one row per weekday (first column `DAY`) and one column per time
slot. A booked cell holds three lines ("Subject\\nTeacher\\nRoom" for a class,
"Subject\\nClass\\nRoom" for a teacher); a free cell is the empty string.

Files built from them:
- Excel workbook (`Entries`, one sheet per class, one `Teacher-<name>` per teacher)
- ZIP with that workbook plus a CSV per table
- Markdown and PNG renderings of a single grid
"""

from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import pandas as pd

from modules.class_scheduler import TIME_SLOTS, WEEKDAYS, TimetableEntry


ENTRY_COLUMNS = ["day", "time_slot", "class_name", "subject_name", "teacher_name", "room_name"]


def entries_df(entries: Sequence[TimetableEntry]) -> pd.DataFrame:
    """Flat table of entries, in the order the scheduler committed them."""

    return pd.DataFrame([[getattr(e, c) for c in ENTRY_COLUMNS] for e in entries], columns=ENTRY_COLUMNS)


def _grid_df(
    entries: Sequence[TimetableEntry],
    keep: Callable[[TimetableEntry], bool],
    label: Callable[[TimetableEntry], str],
) -> pd.DataFrame:
    """Pivot entries into a weekday x time-slot table (empty string = free)."""

    table: List[List[str]] = [["" for _ in TIME_SLOTS] for _ in WEEKDAYS]
    day_idx = {d: i for i, d in enumerate(WEEKDAYS)}
    slot_idx = {s: i for i, s in enumerate(TIME_SLOTS)}

    for e in entries:
        if not keep(e):
            continue
        r = day_idx.get(e.day)
        c = slot_idx.get(e.time_slot)
        if r is None or c is None:
            continue
        table[r][c] = label(e)

    df = pd.DataFrame(table, columns=list(TIME_SLOTS))
    df.insert(0, "DAY", list(WEEKDAYS))
    return df


def class_timetable_df(entries: Sequence[TimetableEntry], class_name: str) -> pd.DataFrame:
    """Per-class timetable: 'Subject / Teacher / Room' in each booked cell."""

    return _grid_df(
        entries,
        keep=lambda e: e.class_name == class_name,
        label=lambda e: f"{e.subject_name}\n{e.teacher_name}\n{e.room_name}",
    )


def teacher_timetable_df(entries: Sequence[TimetableEntry], teacher_name: str) -> pd.DataFrame:
    """Individual teacher timetable: 'Subject / Class / Room' in each booked cell."""

    return _grid_df(
        entries,
        keep=lambda e: e.teacher_name == teacher_name,
        label=lambda e: f"{e.subject_name}\n{e.class_name}\n{e.room_name}",
    )


def _names(values) -> List[str]:
    # first-seen order, duplicates dropped
    return list(dict.fromkeys(values))


_SHEET_NAME_FORBIDDEN = re.compile(r"[:\\/?*\[\]]")
SHEET_NAME_LIMIT = 31


def _safe_sheet_name(name: str) -> str:
    """Excel rejects `: \\ / ? * [ ]` in sheet names and caps them at 31 chars."""

    cleaned = _SHEET_NAME_FORBIDDEN.sub("-", str(name or "")).strip()
    return (cleaned or "Sheet")[:SHEET_NAME_LIMIT]


def _unique_sheet_name(name: str, used: set[str]) -> str:
    base = _safe_sheet_name(name)
    candidate = base
    n = 2
    while candidate.lower() in used:
        suffix = f" ({n})"
        candidate = base[: SHEET_NAME_LIMIT - len(suffix)] + suffix
        n += 1
    used.add(candidate.lower())
    return candidate


def timetable_workbook_bytes(entries: Sequence[TimetableEntry]) -> bytes:
    """Excel workbook: all entries, then one sheet per class and per teacher."""

    out = io.BytesIO()
    used: set[str] = set()

    # Pandas uses openpyxl to write .xlsx.
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        entries_df(entries).to_excel(writer, sheet_name=_unique_sheet_name("Entries", used), index=False)

        for class_name in _names(e.class_name for e in entries):
            class_timetable_df(entries, class_name).to_excel(
                writer, sheet_name=_unique_sheet_name(class_name, used), index=False
            )

        for teacher_name in _names(e.teacher_name for e in entries):
            teacher_timetable_df(entries, teacher_name).to_excel(
                writer, sheet_name=_unique_sheet_name(f"Teacher-{teacher_name}", used), index=False
            )

    return out.getvalue()


def _safe_file_name(name: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_. " else "_" for ch in str(name)).strip() or "unnamed"


def timetable_zip_bytes(entries: Sequence[TimetableEntry]) -> bytes:
    """ZIP with the workbook plus CSVs of every table in it."""

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as z:
        z.writestr("timetable.xlsx", timetable_workbook_bytes(entries))
        z.writestr("tables/entries.csv", entries_df(entries).to_csv(index=False).encode("utf-8"))

        for class_name in _names(e.class_name for e in entries):
            df = class_timetable_df(entries, class_name)
            z.writestr(f"timetables/classes/{_safe_file_name(class_name)}.csv", df.to_csv(index=False).encode("utf-8"))

        for teacher_name in _names(e.teacher_name for e in entries):
            df = teacher_timetable_df(entries, teacher_name)
            z.writestr(
                f"timetables/teachers/{_safe_file_name(teacher_name)}.csv",
                df.to_csv(index=False).encode("utf-8"),
            )

    return buf.getvalue()


@dataclass(frozen=True)
class ImageExportOptions:
    title: Optional[str] = None
    font_size: int = 8
    slot_width: float = 1.5
    line_height: float = 0.22
    free_color: str = "#ffffff"
    booked_color: str = "#e8f0fe"
    header_color: str = "#f0f2f6"


def df_to_markdown(df: pd.DataFrame, *, line_break: str = "<br>") -> str:
    """Render a grid as a GitHub-flavored Markdown table.

    Markdown table cells cannot span lines, so the lines of a booked cell are
    joined with `line_break` (`<br>` renders as a line break on GitHub; the CLI
    passes " / " for plain terminals). Free cells are left blank.
    """

    def cell(value) -> str:
        text = "" if value is None or (not isinstance(value, str) and pd.isna(value)) else str(value)
        return line_break.join(text.replace("|", "\\|").splitlines())

    lines = ["| " + " | ".join(cell(c) for c in df.columns) + " |"]
    lines.append("|" + "|".join("---" for _ in df.columns) + "|")
    for row in df.itertuples(index=False):
        lines.append("| " + " | ".join(cell(v) for v in row) + " |")
    return "\n".join(lines) + "\n"


def _cell_lines(value) -> int:
    return max(1, str(value).count("\n") + 1)


def df_to_png_bytes(df: pd.DataFrame, *, options: ImageExportOptions = ImageExportOptions()) -> bytes:
    """Render a grid as a PNG with matplotlib's table artist.

    Row heights follow the tallest cell so three-line bookings are not
    clipped; booked cells are shaded, the header row and `DAY` column are bold.
    """

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    values = df.fillna("").astype(str).values
    nrows, ncols = values.shape
    lines_per_row = [max((_cell_lines(v) for v in row), default=1) for row in values]

    fig_w = max(6.0, options.slot_width * ncols)
    fig_h = max(2.0, options.line_height * (sum(lines_per_row) + 2) * 1.6)

    fig, ax = plt.subplots(figsize=(fig_w, fig_h))
    ax.axis("off")
    if options.title:
        ax.set_title(options.title, fontsize=options.font_size + 3, pad=10)

    tbl = ax.table(cellText=values, colLabels=[str(c) for c in df.columns], cellLoc="center", loc="center")
    tbl.auto_set_font_size(False)
    tbl.set_fontsize(options.font_size)

    # Table coordinates: row 0 is the header, data rows start at 1.
    header_h = 1.0 / (sum(lines_per_row) + 1)
    for (r, c), cell in tbl.get_celld().items():
        cell.set_linewidth(0.5)
        if r == 0:
            cell.set_height(header_h)
        else:
            cell.set_height(header_h * lines_per_row[r - 1])

        if r == 0 or c == 0:
            cell.set_facecolor(options.header_color)
            cell.set_text_props(weight="bold")
        elif values[r - 1][c]:
            cell.set_facecolor(options.booked_color)
        else:
            cell.set_facecolor(options.free_color)

    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=200, bbox_inches="tight")
    plt.close(fig)
    return buf.getvalue()

"""Main Streamlit app entrypoint: weekly class timetable generator.

Run:
    streamlit run ui/app.py

Steps on the page:
1. Configure rooms (name + capacity)
2. Upload the Teachers/Subjects/Classes workbook (template downloadable)
3. Generate; the scheduler runs in a separate worker, the page only waits
4. Browse per-class timetables and download exports

"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Tuple

import pandas as pd
import streamlit as st

# Ensure project root is on PYTHONPATH when Streamlit runs this file
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.class_scheduler import Room, TimetableEntry, schedule_summary
from modules.timetable_worker import WorkerConfig, run_in_worker
from ui.utils.validators import validate_room_form
from utils.id_generator import new_room_id
from utils.timetable_export import (
    ImageExportOptions,
    class_timetable_df,
    df_to_markdown,
    df_to_png_bytes,
    timetable_workbook_bytes,
    timetable_zip_bytes,
)
from utils.timetable_import import WorkbookData, WorkbookFormatError, load_workbook_data, template_workbook_bytes


def add_room(rooms: List[Room], name: str, capacity: int) -> Tuple[bool, str, List[Room]]:
    """Validate and append a room; returns (ok, message, rooms)."""

    ok, msg = validate_room_form(name=name, capacity=capacity, existing_names=[r.name for r in rooms])
    if not ok:
        return False, msg, rooms
    room = Room(id=new_room_id(), name=name.strip(), capacity=int(capacity))
    return True, "", rooms + [room]


def remove_room(rooms: List[Room], room_id: str) -> List[Room]:
    return [r for r in rooms if r.id != room_id]


def missing_inputs(data: WorkbookData | None, rooms: List[Room]) -> List[str]:
    """Which inputs still need to be provided before generating."""

    missing = []
    if not rooms:
        missing.append("rooms")
    if data is None or not data.teachers:
        missing.append("teachers")
    if data is None or not data.subjects:
        missing.append("subjects")
    if data is None or not data.classes:
        missing.append("classes")
    return missing


def _rooms_section() -> None:
    st.subheader("1. Configure Rooms")
    rooms: List[Room] = st.session_state["rooms"]

    for r in rooms:
        c1, c2 = st.columns([4, 1])
        c1.write(f"{r.name} (Capacity: {r.capacity})")
        if c2.button("Remove", key=f"remove_{r.id}"):
            st.session_state["rooms"] = remove_room(rooms, r.id)
            st.rerun()

    with st.form("room_form", clear_on_submit=True):
        c1, c2 = st.columns([3, 1])
        name = c1.text_input("Room Name/Number")
        capacity = c2.number_input("Capacity", min_value=1, max_value=1000, value=30)
        submitted = st.form_submit_button("Add Room")

    if submitted:
        ok, msg, new_rooms = add_room(rooms, name, int(capacity))
        if ok:
            st.session_state["rooms"] = new_rooms
            st.rerun()
        else:
            st.error(msg)


def _upload_section() -> None:
    st.subheader("2. Upload Data File")
    st.download_button(
        "Download template",
        data=template_workbook_bytes(),
        file_name="Timetable_Template.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    uploaded = st.file_uploader("Teachers / Subjects / Classes workbook", type=["xlsx"])
    if uploaded is None:
        return

    try:
        data = load_workbook_data(uploaded.getvalue())
    except WorkbookFormatError as e:
        st.error(f"Failed to parse file: {e}")
        return

    st.session_state["workbook_data"] = data
    st.success(
        f"Loaded {len(data.teachers)} teachers, {len(data.subjects)} subjects, {len(data.classes)} classes."
    )


def _generate_section() -> None:
    st.subheader("3. Generate Timetable")
    data: WorkbookData | None = st.session_state.get("workbook_data")
    rooms: List[Room] = st.session_state["rooms"]

    missing = missing_inputs(data, rooms)
    if missing:
        st.info(f"Add {', '.join(missing)} before generating.")

    if not st.button("Generate Timetable", type="primary", disabled=bool(missing)):
        return

    with st.spinner("Generating timetable..."):
        response = run_in_worker(data.to_request(rooms), WorkerConfig.from_env())

    for w in response.get("warnings") or []:
        st.warning(f"Ignored requirement: {w}")

    if response["success"]:
        st.session_state["timetable"] = [TimetableEntry.from_dict(e) for e in response["schedule"]]
        st.success("Timetable generated successfully!")
    else:
        st.session_state["timetable"] = None
        st.error(response["error"])


def _results_section() -> None:
    entries: List[TimetableEntry] | None = st.session_state.get("timetable")
    if not entries:
        return

    st.divider()
    st.subheader("Generated Timetable")

    summary = schedule_summary(entries)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Sessions", summary["entries"])
    c2.metric("Classes", summary["classes"])
    c3.metric("Teachers", summary["teachers"])
    c4.metric("Rooms used", summary["rooms"])

    c_xlsx, c_zip = st.columns(2)
    c_xlsx.download_button(
        "Download Excel",
        data=timetable_workbook_bytes(entries),
        file_name="timetable.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    c_zip.download_button("Download all (ZIP)", data=timetable_zip_bytes(entries), file_name="timetable.zip")

    class_names = list(dict.fromkeys(e.class_name for e in entries))
    for class_name, tab in zip(class_names, st.tabs(class_names)):
        with tab:
            df = class_timetable_df(entries, class_name)
            st.dataframe(df, use_container_width=True, hide_index=True)
            c1, c2 = st.columns(2)
            c1.download_button(
                "Download PNG",
                data=df_to_png_bytes(df, options=ImageExportOptions(title=class_name)),
                file_name=f"{class_name}.png",
                mime="image/png",
                key=f"png_{class_name}",
            )
            c2.download_button(
                "Download Markdown",
                data=df_to_markdown(df),
                file_name=f"{class_name}.md",
                key=f"md_{class_name}",
            )

    with st.expander("All entries"):
        st.dataframe(pd.DataFrame([e.to_dict() for e in entries]), use_container_width=True, hide_index=True)


def main() -> None:
    st.set_page_config(page_title="Timetable Generator", page_icon="🗓️", layout="wide")

    st.session_state.setdefault("rooms", [])
    st.session_state.setdefault("workbook_data", None)
    st.session_state.setdefault("timetable", None)

    st.title("Weekly Timetable Generator")
    st.caption("Monday to Friday, 09:00 to 17:00 in one-hour slots.")

    left, right = st.columns(2)
    with left:
        _rooms_section()
    with right:
        _upload_section()

    _generate_section()
    _results_section()


if __name__ == "__main__":
    main()

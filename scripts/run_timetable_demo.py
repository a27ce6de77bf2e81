"""Demo runner: generate a weekly class timetable from a JSON request or an .xlsx workbook.

This is meant for quick validation from a terminal.

Usage:
    python scripts/run_timetable_demo.py
    python scripts/run_timetable_demo.py data/sample_timetable_request.json --class "Grade 10A"
    python scripts/run_timetable_demo.py upload.xlsx --rooms rooms.json --out timetable.xlsx

"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.class_scheduler import TimetableEntry
from modules.timetable_worker import WorkerConfig, parse_request, run_in_worker
from utils.timetable_export import class_timetable_df, df_to_markdown, timetable_workbook_bytes
from utils.timetable_import import load_request_json, load_workbook_data


def _load_payload(args: argparse.Namespace) -> dict:
    path = Path(args.input)
    if path.suffix.lower() in {".xlsx", ".xlsm"}:
        if not args.rooms:
            raise SystemExit("--rooms is required when the input is a workbook")
        rooms = parse_request({"teachers": [], "subjects": [], "classes": [], **load_request_json(args.rooms)}).rooms
        return load_workbook_data(str(path)).to_request(rooms)
    return load_request_json(str(path))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a weekly class timetable.")
    parser.add_argument("input", nargs="?", default=str(ROOT / "data" / "sample_timetable_request.json"))
    parser.add_argument("--rooms", help="JSON file with a 'rooms' list (needed for .xlsx input)")
    parser.add_argument("--class", dest="class_name", help="Only print this class")
    parser.add_argument("--out", help="Write the timetable workbook (.xlsx) here")
    parser.add_argument("--mode", choices=["process", "thread"], default="process")
    parser.add_argument("--timeout", type=float, default=60.0)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    payload = _load_payload(args)
    response = run_in_worker(payload, WorkerConfig(mode=args.mode, timeout_seconds=args.timeout))

    for w in response.get("warnings") or []:
        print(f"warning: ignored requirement {w}")

    if not response["success"]:
        print(response["error"], file=sys.stderr)
        return 1

    entries = [TimetableEntry.from_dict(e) for e in response["schedule"]]

    class_names = list(dict.fromkeys(e.class_name for e in entries))
    if args.class_name:
        class_names = [c for c in class_names if c == args.class_name]

    for class_name in class_names:
        print(f"\n=== {class_name} ===")
        print(df_to_markdown(class_timetable_df(entries, class_name), line_break=" / "))

    print("\n=== Entries ===")
    print(pd.DataFrame([e.to_dict() for e in entries]).to_string(index=False))

    if args.out:
        Path(args.out).write_bytes(timetable_workbook_bytes(entries))
        print(f"\nWrote {args.out}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.timetable_worker import handle_request
from scripts.run_timetable_demo import main
from utils.timetable_import import load_request_json, template_workbook_bytes


SAMPLE = ROOT / "data" / "sample_timetable_request.json"


def test_sample_request_schedules_every_hour():
    payload = load_request_json(str(SAMPLE))
    hours = {s["name"]: s["hoursPerWeek"] for s in payload["subjects"]}
    expected = sum(hours[n] for c in payload["classes"] for n in c["subjects"])

    response = handle_request(payload)

    assert response["success"] is True
    assert len(response["schedule"]) == expected


def test_demo_prints_class_grid(capsys):
    code = main([str(SAMPLE), "--mode", "thread", "--class", "Grade 10A"])

    out = capsys.readouterr().out
    assert code == 0
    assert "=== Grade 10A ===" in out
    assert "=== Grade 10B ===" not in out


def test_demo_reads_workbook_and_writes_output(tmp_path, capsys):
    workbook = tmp_path / "upload.xlsx"
    workbook.write_bytes(template_workbook_bytes())
    rooms = tmp_path / "rooms.json"
    rooms.write_text(json.dumps({"rooms": [{"id": "R1", "name": "Room 1", "capacity": 30}]}), encoding="utf-8")
    out_path = tmp_path / "timetable.xlsx"

    code = main([str(workbook), "--rooms", str(rooms), "--mode", "thread", "--out", str(out_path)])

    # the template class asks for Physics, which is not in its subject catalog
    captured = capsys.readouterr().out
    assert code == 0
    assert "Grade 10A - Physics (unknown subject)" in captured
    assert out_path.exists()


def test_demo_reports_failure(tmp_path, capsys):
    payload = load_request_json(str(SAMPLE))
    payload["rooms"] = [{"id": "R1", "name": "Closet", "capacity": 2}]
    path = tmp_path / "request.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    code = main([str(path), "--mode", "thread"])

    assert code == 1
    assert "Could not schedule all classes" in capsys.readouterr().err

"""Tests for the report file listener."""

import json

from j1939_toolkit.controllers.listener import MessageType
from j1939_toolkit.models import Outcome, PartResult, VehicleInformation
from j1939_toolkit.storage import ReportFileListener


def test_lines_are_time_stamped(tmp_path, clock):
    path = tmp_path / "reports" / "run.txt"

    with ReportFileListener(path, clock) as report:
        report.on_result("first")
        clock.advance(1.5)
        report.on_result("second\nthird")

    assert path.read_text().splitlines() == [
        "10:15:30.0000 first",
        "10:15:31.5000 second",
        "10:15:31.5000 third",
    ]


def test_appends_to_existing_file(tmp_path, clock):
    path = tmp_path / "run.txt"
    path.write_text("previous\n")

    with ReportFileListener(path, clock) as report:
        report.add_outcome(3, 7, Outcome.FAIL, "6.3.7.2.a - message")

    assert path.read_text().splitlines() == ["previous", "10:15:30.0000 FAIL: 6.3.7.2.a - message"]


def test_urgent_message_and_step_end(tmp_path, clock):
    path = tmp_path / "run.txt"

    with ReportFileListener(path, clock) as report:
        assert report.on_urgent_message("Turn key on", "Adjust Key Switch", MessageType.WARNING) is None
        report.end_step(1, 27, "Part 1 Step 27", Outcome.PASS)

    assert path.read_text().splitlines() == [
        "10:15:30.0000 WARNING: Adjust Key Switch: Turn key on",
        "10:15:30.0000 Part 1 Step 27: PASS",
    ]


def test_closed_report_drops_lines(tmp_path, clock):
    path = tmp_path / "run.txt"
    report = ReportFileListener(path, clock)
    report.close()

    report.on_result("late")

    assert path.read_text() == ""


def test_summary(tmp_path, clock):
    result = PartResult(part=3, name="Part 3 Test")
    result.step_result(7, "DM2")

    with ReportFileListener(tmp_path / "run.txt", clock) as report:
        summary = report.write_summary([result], VehicleInformation(vin="1FUJGLDR5CLBP8834"))

    assert summary == tmp_path / "run.json"
    data = json.loads(summary.read_text())
    assert data["vehicle"]["vin"] == "1FUJGLDR5CLBP8834"
    assert data["parts"][0]["name"] == "Part 3 Test"
    assert data["parts"][0]["steps"]["7"]["name"] == "DM2"

import json

import pytest

from session_engine.adapters.csv_adapter import parse as parse_csv
from session_engine.adapters.json_adapter import parse as parse_json


def test_csv_parse_success(tmp_path):
    path = tmp_path / "sessions.csv"
    path.write_text(
        "session_id,started_at,ended_at\n"
        "a,2025-01-01T07:30:00,2025-01-01T07:36:00\n"
        "b,2025-01-02T07:31:00,\n",
        encoding="utf-8",
    )
    events = parse_csv(str(path))
    assert len(events) == 2
    assert events[0].completed
    assert not events[1].completed
    assert events[1].session_id == "b"


def test_csv_parse_invalid_row(tmp_path):
    path = tmp_path / "sessions.csv"
    path.write_text("session_id,started_at,ended_at\na,bad,\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Row 2"):
        parse_csv(str(path))


def test_csv_rejects_end_before_start(tmp_path):
    path = tmp_path / "sessions.csv"
    path.write_text("session_id,started_at,ended_at\na,2025-01-01T07:30:00,2025-01-01T07:00:00\n", encoding="utf-8")
    with pytest.raises(ValueError, match="ended_at before started_at"):
        parse_csv(str(path))


def test_csv_empty_file(tmp_path):
    path = tmp_path / "sessions.csv"
    path.write_text("", encoding="utf-8")
    assert parse_csv(str(path)) == []


def test_json_parse_success(tmp_path):
    path = tmp_path / "sessions.json"
    payload = [
        {"session_id": "a", "started_at": "2025-01-01T07:30:00+01:00", "ended_at": "2025-01-01T07:35:00+01:00"},
        {"session_id": 7, "started_at": "2025-01-02T07:30:00+01:00", "ended_at": None},
    ]
    path.write_text(json.dumps(payload), encoding="utf-8")
    events = parse_json(str(path))
    assert len(events) == 2
    assert events[0].occurred_at.utcoffset().total_seconds() == 3600
    assert events[1].session_id == "7"
    assert not events[1].completed


def test_json_parse_malformed(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps([{"session_id": "a", "started_at": "bad"}]), encoding="utf-8")
    with pytest.raises(ValueError, match="Item 1"):
        parse_json(str(path))


def test_json_requires_list(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps({"session_id": "a"}), encoding="utf-8")
    with pytest.raises(ValueError):
        parse_json(str(path))

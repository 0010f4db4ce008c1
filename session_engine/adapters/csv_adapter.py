"""CSV adapter for session exports."""

from __future__ import annotations

import csv
from datetime import datetime

from session_engine.schema import SessionEvent

_REQUIRED_FIELDS = ("session_id", "started_at")


def _parse_timestamp(raw: str, field: str, row_number: int) -> datetime:
    try:
        return datetime.fromisoformat(raw.strip())
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Row {row_number}: malformed {field}") from exc


def _parse_row(row: dict, row_number: int) -> SessionEvent:
    missing = [field for field in _REQUIRED_FIELDS if not row.get(field)]
    if missing:
        raise ValueError(f"Row {row_number}: missing required fields {missing}")

    started_at = _parse_timestamp(row["started_at"], "started_at", row_number)

    ended_raw = row.get("ended_at")
    ended_at = None
    if ended_raw not in (None, ""):
        ended_at = _parse_timestamp(ended_raw, "ended_at", row_number)
        if ended_at < started_at:
            raise ValueError(f"Row {row_number}: ended_at before started_at")

    return SessionEvent(
        occurred_at=started_at,
        completed=ended_at is not None,
        session_id=row["session_id"].strip(),
    )


def parse(file_path: str) -> list[SessionEvent]:
    """Parse CSV file into a list of session events."""

    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        events: list[SessionEvent] = []
        for row_number, row in enumerate(reader, start=2):
            events.append(_parse_row(row, row_number))
        return events

"""JSON adapter for session exports."""

from __future__ import annotations

import json
from datetime import datetime

from session_engine.schema import SessionEvent

_REQUIRED_FIELDS = ("session_id", "started_at")


def _parse_timestamp(raw, field: str, index: int) -> datetime:
    try:
        return datetime.fromisoformat(str(raw).strip())
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Item {index}: malformed {field}") from exc


def _parse_item(item: dict, index: int) -> SessionEvent:
    if not isinstance(item, dict):
        raise ValueError(f"Item {index}: expected an object")

    missing = [field for field in _REQUIRED_FIELDS if not item.get(field)]
    if missing:
        raise ValueError(f"Item {index}: missing required fields {missing}")

    started_at = _parse_timestamp(item["started_at"], "started_at", index)

    ended_at = None
    if item.get("ended_at") is not None:
        ended_at = _parse_timestamp(item["ended_at"], "ended_at", index)
        if ended_at < started_at:
            raise ValueError(f"Item {index}: ended_at before started_at")

    return SessionEvent(
        occurred_at=started_at,
        completed=ended_at is not None,
        session_id=str(item["session_id"]).strip(),
    )


def parse(file_path: str) -> list[SessionEvent]:
    """Parse JSON file into session events."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of objects")

    return [_parse_item(item, i) for i, item in enumerate(payload, start=1)]

"""Core data schema for session events."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SessionEvent:
    """A logged session, reduced to what the prediction engine reads."""

    occurred_at: datetime
    completed: bool = True
    session_id: Optional[str] = None


def completed_events(events) -> list[SessionEvent]:
    """Drop sessions that are still open."""
    return [event for event in events if event.completed]


def canonical_order(events) -> list[SessionEvent]:
    return sorted(events, key=lambda e: (e.occurred_at, e.session_id or ""))

"""Demo script for session-engine."""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from session_engine.adapters.csv_adapter import parse
from session_engine.insights import get_insights
from session_engine.model import build_model
from session_engine.predictor import predict_next_session
from session_engine.scheduling import reminder_time


def main() -> None:
    events = parse(str(Path(__file__).resolve().parent / "sample_sessions.csv"))
    now = datetime.fromisoformat("2025-01-15T06:00:00")
    model = build_model(events, now=now)
    prediction = predict_next_session(model)
    print("Sessions:", model.total_sessions)
    print("Prediction:", prediction)
    print("Reminder at:", reminder_time(prediction, now=now))
    for insight in get_insights(model):
        print(f"[{insight.type}] {insight.message}")


if __name__ == "__main__":
    main()

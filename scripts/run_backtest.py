"""Backtest next-session predictions on a CSV/JSON session export."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from session_engine.adapters import csv_adapter, json_adapter
from session_engine.config import DEFAULT_CONFIG, load_config
from session_engine.evaluator import backtest, baseline_backtest, compare
from session_engine.insights import get_insights
from session_engine.model import build_model
from session_engine.predictor import predict_next_session

logger = logging.getLogger("session_engine.backtest")


def _load_events(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse(str(path))
    if suffix == ".json":
        return json_adapter.parse(str(path))
    raise ValueError("Unsupported input format, expected .csv or .json")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run session-engine prediction backtest")
    parser.add_argument("--data", required=True, help="Path to CSV/JSON sessions file")
    parser.add_argument("--config", help="Optional JSON file overriding engine settings")
    parser.add_argument("--tolerance", type=float, default=30.0, help="Hit tolerance in minutes")
    parser.add_argument("--now", help="Reference instant (ISO-8601) for the current prediction")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config) if args.config else DEFAULT_CONFIG
    events = _load_events(Path(args.data))
    logger.info("Loaded %d sessions from %s", len(events), args.data)

    baseline = baseline_backtest(events, tolerance_minutes=args.tolerance)
    engine = backtest(events, config=config, tolerance_minutes=args.tolerance)

    now = datetime.fromisoformat(args.now) if args.now else None
    model = build_model(events, now=now, config=config)
    prediction = predict_next_session(model, config=config)

    report = {
        "baseline": baseline,
        "engine": engine,
        "comparison": compare(baseline, engine),
        "current": {
            "total_sessions": model.total_sessions,
            "built_at": model.built_at.isoformat(),
            "prediction": None
            if prediction is None
            else {
                "predicted_time": prediction.predicted_time.isoformat(),
                "confidence": prediction.confidence,
            },
            "insights": [insight.to_dict() for insight in get_insights(model, config=config)],
        },
        "config": config.to_dict(),
    }

    print(json.dumps(report, indent=2))

    outputs_dir = Path("outputs")
    outputs_dir.mkdir(parents=True, exist_ok=True)
    out_path = outputs_dir / "backtest_report.json"
    out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    logger.info("Saved backtest report to %s", out_path)


if __name__ == "__main__":
    main()

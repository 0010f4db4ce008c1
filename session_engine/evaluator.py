"""Walk-forward backtest of next-session predictions against a naive baseline."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

import numpy as np
from sklearn.metrics import mean_absolute_error, median_absolute_error

from session_engine.config import DEFAULT_CONFIG, EngineConfig
from session_engine.model import build_model
from session_engine.predictor import predict_next_session
from session_engine.schema import SessionEvent, canonical_order, completed_events

logger = logging.getLogger(__name__)


def _score(pairs: list[tuple[datetime, datetime]], n_evaluated: int, tolerance_minutes: float) -> dict:
    if not pairs:
        return {
            "n_evaluated": n_evaluated,
            "n_predicted": 0,
            "coverage": 0.0,
            "mean_abs_error_minutes": 0.0,
            "median_abs_error_minutes": 0.0,
            "hit_rate": 0.0,
        }

    predicted = np.array([p.timestamp() / 60.0 for p, _ in pairs])
    actual = np.array([a.timestamp() / 60.0 for _, a in pairs])
    errors = np.abs(predicted - actual)
    return {
        "n_evaluated": n_evaluated,
        "n_predicted": len(pairs),
        "coverage": len(pairs) / n_evaluated if n_evaluated else 0.0,
        "mean_abs_error_minutes": float(mean_absolute_error(actual, predicted)),
        "median_abs_error_minutes": float(median_absolute_error(actual, predicted)),
        "hit_rate": float(np.mean(errors <= tolerance_minutes)),
    }


def _walk_forward(
    events: Iterable[SessionEvent],
    predict: Callable[[list[SessionEvent], datetime], Optional[datetime]],
    tolerance_minutes: float,
) -> dict:
    ordered = canonical_order(completed_events(events))
    pairs = []
    for i in range(1, len(ordered)):
        now = ordered[i - 1].occurred_at
        predicted = predict(ordered[:i], now)
        if predicted is not None:
            pairs.append((predicted, ordered[i].occurred_at))
    n_evaluated = max(0, len(ordered) - 1)
    logger.debug("Walk-forward scored %d predictions over %d steps", len(pairs), n_evaluated)
    return _score(pairs, n_evaluated, tolerance_minutes)


def backtest(
    events: Iterable[SessionEvent],
    config: EngineConfig = DEFAULT_CONFIG,
    tolerance_minutes: float = 30.0,
) -> dict:
    """Replay history, predicting each session from the ones before it."""

    def predict(history: list[SessionEvent], now: datetime) -> Optional[datetime]:
        prediction = predict_next_session(build_model(history, now=now, config=config), now=now, config=config)
        return prediction.predicted_time if prediction else None

    return _walk_forward(events, predict, tolerance_minutes)


def baseline_backtest(events: Iterable[SessionEvent], tolerance_minutes: float = 30.0) -> dict:
    """Naive baseline: the next session repeats the previous one's time of day."""

    def predict(history: list[SessionEvent], now: datetime) -> Optional[datetime]:
        return history[-1].occurred_at + timedelta(days=1)

    return _walk_forward(events, predict, tolerance_minutes)


def compare(baseline_metrics: dict, engine_metrics: dict) -> dict:
    """Compare baseline and engine backtest reports with percentage deltas."""

    def pct_change(old: float, new: float) -> float:
        if old == 0:
            return 0.0
        return ((new - old) / old) * 100.0

    return {
        "hit_rate_improvement_pct": pct_change(
            baseline_metrics.get("hit_rate", 0.0),
            engine_metrics.get("hit_rate", 0.0),
        ),
        "error_reduction_pct": -pct_change(
            baseline_metrics.get("mean_abs_error_minutes", 0.0),
            engine_metrics.get("mean_abs_error_minutes", 0.0),
        ),
        "coverage_change_pct": pct_change(baseline_metrics.get("coverage", 0.0), engine_metrics.get("coverage", 0.0)),
    }

"""Next-session prediction from a built model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
import math
from datetime import datetime, timedelta
from typing import Optional

from session_engine.config import DEFAULT_CONFIG, EngineConfig
from session_engine.histogram import bucket_index, bucket_midpoint, bucket_start, smoothed, window_indices
from session_engine.model import PredictionModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """Predicted start of the next session."""

    predicted_time: datetime
    confidence: float
    bucket: int


def confidence_for_bucket(model: PredictionModel, bucket: int, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Excess share of weight around bucket over what a flat day would put there.

    0 for a flat histogram or an empty model, 1 when every session falls
    within the window around bucket.
    """

    if model.total_sessions == 0:
        return 0.0

    weights = smoothed(model.histogram, model.total_sessions, config.smoothing_epsilon)
    total = float(weights.sum())
    window = window_indices(bucket, config.confidence_window_radius, model.n_buckets)
    uniform = len(window) / model.n_buckets
    if total <= 0.0 or uniform >= 1.0:
        return 0.0

    share = float(weights[window].sum()) / total
    return max(0.0, min(1.0, (share - uniform) / (1.0 - uniform)))


def _select_offset(weights, start: int, first: int, span: int, threshold: float) -> Optional[int]:
    n_buckets = len(weights)
    best, best_weight = None, threshold
    for offset in range(first, first + span):
        weight = weights[(start + offset) % n_buckets]
        if weight > best_weight:
            best, best_weight = offset, weight
    return best


def _first_open_offset(model: PredictionModel, slot_start: datetime, radius: int) -> int:
    """Offset of the first slot clear of the latest session's window.

    Slots within radius buckets after the latest session are already spent;
    only a session close enough to now can push the scan forward.
    """

    if model.last_event_at is None:
        return 0
    last = model.last_event_at
    last_slot = last.replace(hour=0, minute=0, second=0, microsecond=0) + bucket_start(
        bucket_index(last, model.bucket_minutes), model.bucket_minutes
    )
    spent_until = last_slot + timedelta(minutes=(radius + 1) * model.bucket_minutes)
    gap_minutes = (spent_until - slot_start).total_seconds() / 60.0
    return min(model.n_buckets, max(0, math.ceil(gap_minutes / model.bucket_minutes)))


def _occurrence(midnight: datetime, index: int, bucket_minutes: int, now: datetime) -> datetime:
    candidate = midnight + bucket_midpoint(index, bucket_minutes)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def predict_next_session(
    model: PredictionModel,
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[Prediction]:
    """Predict when the next session starts, or None without enough evidence.

    Decay stays anchored at model.built_at; the next occurrence is found
    relative to now, which defaults to built_at. The forward half day is
    searched first; the rest of the day is tried when it has no clear peak
    or its best slot falls short of the confidence threshold.
    """

    if model.total_sessions < config.min_sessions_for_prediction:
        logger.debug("No prediction: %d sessions below minimum", model.total_sessions)
        return None

    now = now if now is not None else model.built_at
    weights = smoothed(model.histogram, model.total_sessions, config.smoothing_epsilon)
    threshold = float(weights.mean()) * config.peak_margin

    start = bucket_index(now, model.bucket_minutes)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    slot_start = midnight + bucket_start(start, model.bucket_minutes)
    first = _first_open_offset(model, slot_start, config.confidence_window_radius)

    best = None
    for span in (config.forward_window_buckets, model.n_buckets):
        offset = _select_offset(weights, start, first, span, threshold)
        if offset is None:
            continue
        bucket = (start + offset) % model.n_buckets
        confidence = confidence_for_bucket(model, bucket, config)
        if confidence >= config.confidence_threshold:
            return Prediction(
                predicted_time=_occurrence(midnight, start + offset, model.bucket_minutes, now),
                confidence=confidence,
                bucket=bucket,
            )
        best = confidence

    if best is None:
        logger.debug("No prediction: no bucket clears %.6f", threshold)
    else:
        logger.debug("No prediction: confidence %.3f below threshold", best)
    return None

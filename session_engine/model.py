"""Immutable prediction model built from session history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from session_engine.config import DEFAULT_CONFIG, EngineConfig
from session_engine.histogram import accumulate, circular_moments, decay_weight
from session_engine.schema import SessionEvent, canonical_order, completed_events

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionModel:
    """Derived snapshot of a session history; holds no raw events."""

    total_sessions: int
    histogram: tuple[float, ...]
    weekday_histogram: tuple[float, ...]
    last_event_at: Optional[datetime]
    built_at: datetime
    total_weight: float = 0.0
    circular_mean_minutes: Optional[float] = None
    mean_resultant_length: float = 0.0
    bucket_minutes: int = DEFAULT_CONFIG.bucket_minutes
    decay_lambda: float = DEFAULT_CONFIG.decay_lambda

    @property
    def n_buckets(self) -> int:
        return len(self.histogram)


def _default_now(events: list[SessionEvent]) -> datetime:
    tz = events[-1].occurred_at.tzinfo if events else None
    return datetime.now(tz)


def build_model(
    events: Iterable[SessionEvent],
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> PredictionModel:
    """Build a prediction model from completed sessions, decayed relative to now."""

    ordered = canonical_order(completed_events(events))
    built_at = now if now is not None else _default_now(ordered)

    by_bucket, by_weekday = accumulate(ordered, built_at, config.bucket_minutes, config.decay_lambda)
    weights = [decay_weight(e.occurred_at, built_at, config.decay_lambda) for e in ordered]
    mean_minutes, resultant = circular_moments(ordered, weights)

    total_weight = 0.0
    for value in by_bucket:
        total_weight += float(value)

    model = PredictionModel(
        total_sessions=len(ordered),
        histogram=tuple(float(v) for v in by_bucket),
        weekday_histogram=tuple(float(v) for v in by_weekday),
        last_event_at=ordered[-1].occurred_at if ordered else None,
        built_at=built_at,
        total_weight=total_weight,
        circular_mean_minutes=mean_minutes,
        mean_resultant_length=resultant,
        bucket_minutes=config.bucket_minutes,
        decay_lambda=config.decay_lambda,
    )
    logger.debug(
        "Built model from %d sessions at %s (total weight %.4f, resultant %.3f)",
        model.total_sessions,
        built_at.isoformat(),
        total_weight,
        resultant,
    )
    return model

"""Circular time-of-day histogram with recency decay."""

from __future__ import annotations

from datetime import datetime, timedelta

import numpy as np

from session_engine.config import DECAY_LAMBDA, HISTOGRAM_BUCKET_SIZE_MINUTES, MINUTES_PER_DAY
from session_engine.schema import SessionEvent

SECONDS_PER_DAY = 86400.0
MIN_WEIGHT = float(np.finfo(float).tiny)
DAYS_PER_WEEK = 7


def minutes_since_midnight(moment: datetime) -> float:
    return moment.hour * 60 + moment.minute + (moment.second + moment.microsecond / 1e6) / 60.0


def bucket_index(moment: datetime, bucket_minutes: int = HISTOGRAM_BUCKET_SIZE_MINUTES) -> int:
    """Map a timestamp onto its time-of-day bucket, using its own wall clock."""

    return (moment.hour * 60 + moment.minute) // bucket_minutes


def decay_weight(occurred_at: datetime, built_at: datetime, decay_lambda: float = DECAY_LAMBDA) -> float:
    """Exponential recency weight in (0, 1]; events after built_at count as fresh.

    Very old events bottom out at the smallest positive float rather than 0,
    so a non-empty history never produces an all-zero histogram.
    """

    age_days = max(0.0, (built_at - occurred_at).total_seconds() / SECONDS_PER_DAY)
    return max(MIN_WEIGHT, float(decay_lambda**age_days))


def accumulate(
    events: list[SessionEvent],
    built_at: datetime,
    bucket_minutes: int = HISTOGRAM_BUCKET_SIZE_MINUTES,
    decay_lambda: float = DECAY_LAMBDA,
) -> tuple[np.ndarray, np.ndarray]:
    """Fold events into decayed time-of-day and weekday weights.

    Events are summed in the order given; callers pass them in canonical
    order so repeated builds agree bit for bit.
    """

    by_bucket = np.zeros(MINUTES_PER_DAY // bucket_minutes, dtype=float)
    by_weekday = np.zeros(DAYS_PER_WEEK, dtype=float)
    for event in events:
        weight = decay_weight(event.occurred_at, built_at, decay_lambda)
        by_bucket[bucket_index(event.occurred_at, bucket_minutes)] += weight
        by_weekday[event.occurred_at.weekday()] += weight
    return by_bucket, by_weekday


def smoothed(histogram, total_sessions: int, epsilon: float = 1e-6) -> np.ndarray:
    """Add a small floor to every bucket before any ratio is taken."""

    return np.asarray(histogram, dtype=float) + epsilon * total_sessions


def circular_distance(i: int, j: int, n_buckets: int) -> int:
    diff = abs(i - j) % n_buckets
    return min(diff, n_buckets - diff)


def window_indices(center: int, radius: int, n_buckets: int) -> list[int]:
    """Buckets within radius of center on the ring, each listed once."""

    if 2 * radius + 1 >= n_buckets:
        return list(range(n_buckets))
    return [(center + offset) % n_buckets for offset in range(-radius, radius + 1)]


def bucket_start(index: int, bucket_minutes: int = HISTOGRAM_BUCKET_SIZE_MINUTES) -> timedelta:
    return timedelta(minutes=index * bucket_minutes)


def bucket_midpoint(index: int, bucket_minutes: int = HISTOGRAM_BUCKET_SIZE_MINUTES) -> timedelta:
    return timedelta(minutes=index * bucket_minutes + bucket_minutes / 2.0)


def format_minutes(total_minutes: float) -> str:
    minutes = int(round(total_minutes)) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def bucket_label(index: int, bucket_minutes: int = HISTOGRAM_BUCKET_SIZE_MINUTES) -> str:
    return format_minutes(index * bucket_minutes)


def circular_moments(events: list[SessionEvent], weights: list[float]) -> tuple[float | None, float]:
    """Weighted circular mean (minutes after midnight) and mean resultant length."""

    total = float(np.sum(weights)) if weights else 0.0
    if total <= 0.0:
        return None, 0.0

    angles = np.array([minutes_since_midnight(e.occurred_at) for e in events]) * (2.0 * np.pi / MINUTES_PER_DAY)
    w = np.asarray(weights, dtype=float)
    sin_sum = float(np.sum(w * np.sin(angles)))
    cos_sum = float(np.sum(w * np.cos(angles)))

    resultant = min(1.0, float(np.hypot(sin_sum, cos_sum)) / total)
    mean_angle = float(np.arctan2(sin_sum, cos_sum)) % (2.0 * np.pi)
    return mean_angle * MINUTES_PER_DAY / (2.0 * np.pi), resultant


def circular_std_minutes(mean_resultant_length: float) -> float:
    """Circular standard deviation, expressed in minutes of the day."""

    if mean_resultant_length <= 0.0:
        return float("inf")
    radians = float(np.sqrt(-2.0 * np.log(min(1.0, mean_resultant_length))))
    return radians * MINUTES_PER_DAY / (2.0 * np.pi)

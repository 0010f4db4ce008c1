"""Qualitative pattern insights derived from a prediction model."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import numpy as np

from session_engine.config import DEFAULT_CONFIG, EngineConfig
from session_engine.histogram import (
    DAYS_PER_WEEK,
    bucket_label,
    circular_std_minutes,
    format_minutes,
    smoothed,
    window_indices,
)
from session_engine.model import PredictionModel

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class Insight:
    """A qualitative observation; data is a read-only view for programmatic use."""

    type: str
    message: str
    data: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _freeze(self.data))

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message, "data": _thaw(self.data)}


def _peak_runs(qualifying: list[bool]) -> list[list[int]]:
    """Group qualifying buckets into runs that are contiguous on the ring."""

    n_buckets = len(qualifying)
    if all(qualifying):
        return [list(range(n_buckets))]

    # Start scanning just after a non-qualifying bucket so no run straddles the seam.
    start = next(i for i in range(n_buckets) if not qualifying[i]) + 1
    runs: list[list[int]] = []
    current: list[int] = []
    for offset in range(n_buckets):
        index = (start + offset) % n_buckets
        if qualifying[index]:
            current.append(index)
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def _peak_times(model: PredictionModel, weights: np.ndarray, config: EngineConfig) -> Insight | None:
    total = float(weights.sum())
    mean = total / model.n_buckets
    qualifying = []
    for index in range(model.n_buckets):
        window = window_indices(index, config.confidence_window_radius, model.n_buckets)
        window_share = float(weights[window].sum()) / total
        qualifying.append(
            bool(weights[index] > config.peak_mean_multiplier * mean and window_share >= config.peak_min_window_share)
        )
    if not any(qualifying):
        return None

    runs = sorted(_peak_runs(qualifying), key=lambda run: (-float(weights[run].sum()), run[0]))
    ranges = []
    for run in runs[: config.max_peak_ranges]:
        start = run[0] * model.bucket_minutes
        end = (run[-1] + 1) * model.bucket_minutes
        ranges.append(
            {
                "start": bucket_label(run[0], model.bucket_minutes),
                "end": format_minutes(end),
                "start_minutes": start,
                "end_minutes": end,
            }
        )

    rendered = " and ".join(f"{r['start']}–{r['end']}" for r in ranges)
    return Insight(
        type="peak_times",
        message=f"Your sessions cluster around {rendered}.",
        data={"ranges": ranges},
    )


def _regularity(model: PredictionModel, config: EngineConfig) -> Insight | None:
    if model.circular_mean_minutes is None:
        return None
    std_minutes = circular_std_minutes(model.mean_resultant_length)
    if std_minutes > config.regularity_max_std_minutes:
        return None
    return Insight(
        type="regularity",
        message=(
            f"You're remarkably regular: sessions usually land within ±{int(round(std_minutes))} minutes "
            f"of {format_minutes(model.circular_mean_minutes)}."
        ),
        data={"mean_time": format_minutes(model.circular_mean_minutes), "std_minutes": std_minutes},
    )


def _weekly_pattern(model: PredictionModel, config: EngineConfig) -> Insight | None:
    if model.total_sessions < config.weekly_min_sessions:
        return None
    weights = np.asarray(model.weekday_histogram, dtype=float)
    total = float(weights.sum())
    if total <= 0.0:
        return None

    shares = weights / total
    threshold = config.weekly_share_multiplier / DAYS_PER_WEEK
    days = sorted((day for day in range(DAYS_PER_WEEK) if shares[day] > threshold), key=lambda d: (-shares[d], d))[:2]
    if not days:
        return None

    names = [WEEKDAY_NAMES[day] for day in days]
    return Insight(
        type="weekly_pattern",
        message=f"{' and '.join(names)} {'is' if len(names) == 1 else 'are'} your busiest "
        f"{'day' if len(names) == 1 else 'days'}.",
        data={"days": names, "shares": [float(shares[day]) for day in days]},
    )


def get_insights(model: PredictionModel, config: EngineConfig = DEFAULT_CONFIG) -> list[Insight]:
    """Return statistically supported insights in a fixed order."""

    if model.total_sessions < max(1, config.min_sessions_for_insights):
        return []

    weights = smoothed(model.histogram, model.total_sessions, config.smoothing_epsilon)
    candidates = [
        _peak_times(model, weights, config),
        _regularity(model, config),
        _weekly_pattern(model, config),
    ]
    return [insight for insight in candidates if insight is not None]

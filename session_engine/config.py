"""Tunable engine constants and JSON overrides."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields

MINUTES_PER_DAY = 24 * 60

HISTOGRAM_BUCKET_SIZE_MINUTES = 15
HISTOGRAM_BUCKETS_PER_DAY = MINUTES_PER_DAY // HISTOGRAM_BUCKET_SIZE_MINUTES
DECAY_LAMBDA = 0.95
MIN_SESSIONS_FOR_PREDICTION = 5
PREDICTION_CONFIDENCE_THRESHOLD = 0.5
PREDICTION_NOTIFICATION_LEAD_MINUTES = 10


@dataclass(frozen=True)
class EngineConfig:
    """All knobs read by the model builder, predictor and insight generator."""

    bucket_minutes: int = HISTOGRAM_BUCKET_SIZE_MINUTES
    decay_lambda: float = DECAY_LAMBDA
    min_sessions_for_prediction: int = MIN_SESSIONS_FOR_PREDICTION
    confidence_threshold: float = PREDICTION_CONFIDENCE_THRESHOLD
    notification_lead_minutes: int = PREDICTION_NOTIFICATION_LEAD_MINUTES
    smoothing_epsilon: float = 1e-6
    forward_window_minutes: int = MINUTES_PER_DAY // 2
    confidence_window_minutes: int = 30
    peak_margin: float = 1.5
    min_sessions_for_insights: int = 5
    peak_mean_multiplier: float = 2.0
    peak_min_window_share: float = 0.25
    max_peak_ranges: int = 2
    regularity_max_std_minutes: float = 60.0
    weekly_min_sessions: int = 7
    weekly_share_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.bucket_minutes <= 0 or MINUTES_PER_DAY % self.bucket_minutes:
            raise ValueError(f"bucket_minutes must divide {MINUTES_PER_DAY}, got {self.bucket_minutes}")
        if not 0.0 < self.decay_lambda <= 1.0:
            raise ValueError(f"decay_lambda must be in (0, 1], got {self.decay_lambda}")
        for name in ("confidence_threshold", "peak_min_window_share"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        for name in (
            "min_sessions_for_prediction",
            "notification_lead_minutes",
            "confidence_window_minutes",
            "min_sessions_for_insights",
            "weekly_min_sessions",
            "smoothing_epsilon",
            "regularity_max_std_minutes",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if not self.bucket_minutes <= self.forward_window_minutes <= MINUTES_PER_DAY:
            raise ValueError(f"forward_window_minutes must be between bucket_minutes and {MINUTES_PER_DAY}")
        if self.max_peak_ranges < 1:
            raise ValueError("max_peak_ranges must be at least 1")

    @property
    def buckets_per_day(self) -> int:
        return MINUTES_PER_DAY // self.bucket_minutes

    @property
    def forward_window_buckets(self) -> int:
        return self.forward_window_minutes // self.bucket_minutes

    @property
    def confidence_window_radius(self) -> int:
        """Buckets on each side of a slot that count towards its confidence window."""
        return self.confidence_window_minutes // self.bucket_minutes

    @classmethod
    def from_dict(cls, payload: dict) -> "EngineConfig":
        """Build a config from a partial mapping; missing keys keep their defaults."""

        if not isinstance(payload, dict):
            raise ValueError("Config payload must be an object")

        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(payload) - set(known))
        if unknown:
            raise ValueError(f"Unknown config keys {unknown}")

        values = {}
        for key, raw in payload.items():
            if isinstance(raw, bool):
                raise ValueError(f"Config key '{key}' must be numeric")
            try:
                value = float(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Config key '{key}' must be numeric") from exc
            if isinstance(getattr(DEFAULT_CONFIG, key), int):
                if not value.is_integer():
                    raise ValueError(f"Config key '{key}' must be a whole number, got {raw}")
                value = int(value)
            values[key] = value
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_CONFIG = EngineConfig()


def load_config(file_path: str) -> EngineConfig:
    """Load JSON overrides on top of the defaults."""

    with open(file_path, encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed config file {file_path}") from exc
    return EngineConfig.from_dict(payload)

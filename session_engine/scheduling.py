"""Reminder time planning ahead of a predicted session."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from session_engine.config import DEFAULT_CONFIG, EngineConfig
from session_engine.predictor import Prediction


def reminder_time(
    prediction: Optional[Prediction],
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[datetime]:
    """Moment to nudge the user, lead minutes before the predicted session."""

    if prediction is None:
        return None

    nudge_at = prediction.predicted_time - timedelta(minutes=config.notification_lead_minutes)
    if now is not None and nudge_at <= now:
        return None
    return nudge_at

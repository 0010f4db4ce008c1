from datetime import datetime, timedelta, timezone

from session_engine.config import EngineConfig
from session_engine.model import build_model
from session_engine.predictor import confidence_for_bucket, predict_next_session
from session_engine.schema import SessionEvent


def morning_events(days=6, jitter=(-5, 3, 0, -2, 5, -4)):
    start = datetime.fromisoformat("2025-01-01T07:30:00")
    return [
        SessionEvent(start + timedelta(days=day, minutes=jitter[day % len(jitter)]), session_id=f"m{day}")
        for day in range(days)
    ]


def test_fewer_than_five_sessions_never_predict():
    events = morning_events(days=4, jitter=(0,))
    model = build_model(events, now=datetime.fromisoformat("2025-01-05T06:00:00"))
    assert predict_next_session(model) is None


def test_regular_morning_habit_predicted_for_today():
    now = datetime.fromisoformat("2025-01-07T06:00:00")
    prediction = predict_next_session(build_model(morning_events(), now=now))
    assert prediction is not None
    assert prediction.predicted_time.date() == now.date()
    assert abs(prediction.predicted_time - datetime.fromisoformat("2025-01-07T07:30:00")) <= timedelta(minutes=15)
    assert prediction.confidence >= 0.7


def test_scattered_sessions_are_not_predicted():
    start = datetime.fromisoformat("2025-01-01T02:00:00")
    events = [SessionEvent(start + timedelta(days=i, hours=5 * i)) for i in range(5)]
    model = build_model(events, now=datetime.fromisoformat("2025-01-07T00:00:00"))
    assert predict_next_session(model) is None
    assert all(confidence_for_bucket(model, b) < 0.5 for b in range(96))


def test_empty_model_has_no_prediction():
    model = build_model([], now=datetime.fromisoformat("2025-01-07T00:00:00"))
    assert predict_next_session(model) is None
    assert confidence_for_bucket(model, 30) == 0.0


def test_passed_time_rolls_to_tomorrow():
    events = morning_events(jitter=(0,))
    now = datetime.fromisoformat("2025-01-07T09:00:00")
    prediction = predict_next_session(build_model(events, now=now))
    assert prediction.predicted_time == datetime.fromisoformat("2025-01-08T07:37:30")


def test_liveness_now_after_build():
    events = morning_events(jitter=(0,))
    model = build_model(events, now=datetime.fromisoformat("2025-01-07T06:00:00"))
    same = predict_next_session(model)
    later = predict_next_session(model, now=datetime.fromisoformat("2025-01-07T07:40:00"))
    assert same.predicted_time == datetime.fromisoformat("2025-01-07T07:37:30")
    assert later.predicted_time == datetime.fromisoformat("2025-01-08T07:37:30")
    assert later.confidence == same.confidence


def test_slot_already_used_today_moves_to_tomorrow():
    events = morning_events(days=7, jitter=(0,))
    now = datetime.fromisoformat("2025-01-07T07:32:00")
    prediction = predict_next_session(build_model(events, now=now))
    assert prediction.predicted_time == datetime.fromisoformat("2025-01-08T07:37:30")


def test_confidence_grows_with_sharpness():
    day = datetime.fromisoformat("2025-03-01T00:00:00")
    peak = [SessionEvent(day + timedelta(hours=8), session_id=f"p{i}") for i in range(10)]
    noise = [SessionEvent(day + timedelta(hours=h)) for h in (13, 15, 17, 20, 22)]
    more_noise = [SessionEvent(day + timedelta(hours=h)) for h in (1, 3, 11, 14, 18)]
    now = day + timedelta(days=1)
    sharp = confidence_for_bucket(build_model(peak + noise, now=now), 32)
    blunt = confidence_for_bucket(build_model(peak + noise + more_noise, now=now), 32)
    assert 0.0 <= blunt < sharp <= 1.0
    assert confidence_for_bucket(build_model(peak, now=now), 32) > 0.99


def test_equal_peaks_break_ties_by_distance():
    day = datetime.fromisoformat("2025-03-01T00:00:00")
    events = [SessionEvent(day + timedelta(days=i, hours=9)) for i in range(5)]
    events += [SessionEvent(day + timedelta(days=i, hours=12)) for i in range(5)]
    config = EngineConfig(decay_lambda=1.0, confidence_threshold=0.3)
    now = day + timedelta(days=5, hours=7)
    prediction = predict_next_session(build_model(events, now=now, config=config), config=config)
    assert prediction.bucket == 36
    assert prediction.predicted_time == now.replace(hour=9, minute=7, second=30)


def test_timezone_aware_history_keeps_zone():
    tz = timezone(timedelta(hours=2))
    start = datetime(2025, 1, 1, 21, 0, tzinfo=tz)
    events = [SessionEvent(start + timedelta(days=i)) for i in range(6)]
    now = datetime(2025, 1, 7, 12, 0, tzinfo=tz)
    prediction = predict_next_session(build_model(events, now=now))
    assert prediction.predicted_time == datetime(2025, 1, 7, 21, 7, 30, tzinfo=tz)


def test_prediction_does_not_mutate_model():
    model = build_model(morning_events(), now=datetime.fromisoformat("2025-01-07T06:00:00"))
    snapshot = model.histogram
    predict_next_session(model)
    assert model.histogram == snapshot


def test_stray_session_does_not_hide_daily_habit():
    start = datetime.fromisoformat("2025-01-01T08:00:00")
    events = [SessionEvent(start + timedelta(days=i), session_id=f"h{i}") for i in range(20)]
    events.append(SessionEvent(datetime.fromisoformat("2025-01-20T20:00:00"), session_id="stray"))
    model = build_model(events, now=datetime.fromisoformat("2025-01-21T12:00:00"))

    assert confidence_for_bucket(model, 80) < 0.5
    prediction = predict_next_session(model)
    assert prediction is not None
    assert prediction.bucket == 32
    assert prediction.predicted_time == datetime.fromisoformat("2025-01-22T08:07:30")


def test_session_in_previous_slot_is_not_predicted_again():
    events = morning_events(days=6)
    events.append(SessionEvent(datetime.fromisoformat("2025-01-07T07:28:00"), session_id="today"))
    now = datetime.fromisoformat("2025-01-07T07:31:00")
    prediction = predict_next_session(build_model(events, now=now))
    assert prediction is not None
    assert prediction.predicted_time.date() == datetime.fromisoformat("2025-01-08T00:00:00").date()
    assert abs(prediction.predicted_time - datetime.fromisoformat("2025-01-08T07:30:00")) <= timedelta(minutes=15)


def test_hourly_buckets_predict_within_the_hour():
    config = EngineConfig(bucket_minutes=60)
    now = datetime.fromisoformat("2025-01-07T06:00:00")
    model = build_model(morning_events(), now=now, config=config)
    prediction = predict_next_session(model, config=config)
    assert len(model.histogram) == 24
    assert prediction.bucket == 7
    assert prediction.predicted_time == datetime.fromisoformat("2025-01-07T07:30:00")

from datetime import datetime, timedelta, timezone

from custom_components.sunphases.runtime.contracts import (
    Delta,
    Position,
    RefreshStatus,
    WindowState,
)
from custom_components.sunphases.runtime.engine import RuleEngine
from custom_components.sunphases.runtime.window import NotificationSpec, WindowRuleConfig

UTC = timezone.utc
HERE = Position(52.0, 4.0)


def fake_sun(now, latitude, longitude):
    midnight = now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        "dawn": midnight + timedelta(hours=5),
        "sunrise": midnight + timedelta(hours=5, minutes=40),
        "dusk": midnight + timedelta(hours=21),
    }


def no_sun(now, latitude, longitude):
    return None


def daylight_rule(rule_id="daylight", low="dawn", high="dusk"):
    return WindowRuleConfig(
        rule_id=rule_id,
        low=low,
        high=high,
        in_range=NotificationSpec(key="daytime"),
        out_range=NotificationSpec(key="nighttime"),
    )


def test_end_to_end_after_dusk():
    engine = RuleEngine([daylight_rule()], fake_sun)
    engine.on_sample(HERE, datetime(2024, 6, 1, 12, 0, tzinfo=UTC))
    assert engine.rule_states == {"daylight": WindowState.ASSERTED_IN}

    result = engine.on_sample(HERE, datetime(2024, 6, 1, 22, 0, tzinfo=UTC))

    assert result.refresh.status == RefreshStatus.NOT_NEEDED
    assert result.published_events is None
    assert result.deltas() == [
        Delta(path="notifications.sunphases.daytime", value=None),
        Delta(
            path="notifications.sunphases.nighttime",
            value={"state": "normal", "method": [], "message": "Outside dawn and dusk."},
        ),
    ]
    assert engine.rule_states == {"daylight": WindowState.ASSERTED_OUT}


def test_identical_sample_is_silent():
    engine = RuleEngine([daylight_rule()], fake_sun)
    now = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    first = engine.on_sample(HERE, now)
    second = engine.on_sample(HERE, now)

    assert first.published_events is not None
    assert len(first.actions) == 1
    assert second.published_events is None
    assert second.actions == []
    assert second.deltas() == []


def test_refresh_publishes_events_under_root():
    engine = RuleEngine([], fake_sun, root="environment.sunphases")

    result = engine.on_sample(HERE, datetime(2024, 6, 1, 12, 0, tzinfo=UTC))

    assert set(result.published_events) == {
        "environment.sunphases.dawn",
        "environment.sunphases.sunrise",
        "environment.sunphases.dusk",
    }
    assert Delta(path="environment.sunphases.dawn", value="2024-06-01T05:00:00+00:00") in result.deltas()


def test_event_deltas_precede_notifications():
    engine = RuleEngine([daylight_rule()], fake_sun)

    deltas = engine.on_sample(HERE, datetime(2024, 6, 1, 12, 0, tzinfo=UTC)).deltas()

    paths = [delta.path for delta in deltas]
    assert paths[:3] == ["sunphases.dawn", "sunphases.sunrise", "sunphases.dusk"]
    assert paths[3:] == ["notifications.sunphases.nighttime", "notifications.sunphases.daytime"]


def test_no_events_ever_skips_rules():
    engine = RuleEngine([daylight_rule()], no_sun)

    result = engine.on_sample(HERE, datetime(2024, 6, 1, 12, 0, tzinfo=UTC))

    assert result.refresh.status == RefreshStatus.FAILED
    assert result.actions == []
    assert engine.rule_states == {"daylight": WindowState.UNSET}
    assert engine.health.ok is False


def test_failed_refresh_uses_stale_events():
    calls = {"count": 0}

    def flaky_sun(now, latitude, longitude):
        calls["count"] += 1
        return fake_sun(now, latitude, longitude) if calls["count"] == 1 else None

    engine = RuleEngine([daylight_rule()], flaky_sun)
    engine.on_sample(HERE, datetime(2024, 6, 1, 12, 0, tzinfo=UTC))

    result = engine.on_sample(HERE, datetime(2024, 6, 2, 23, 0, tzinfo=UTC))

    assert result.refresh.status == RefreshStatus.FAILED
    assert result.published_events is None
    assert [action.state for action in result.actions] == [WindowState.ASSERTED_OUT]
    assert engine.health.ok is True


def test_malformed_rule_does_not_block_siblings():
    rules = [
        daylight_rule(rule_id="broken", high="sundown"),
        daylight_rule(rule_id="morning", low="dawn", high="10:00:00"),
        daylight_rule(rule_id="daylight"),
    ]
    engine = RuleEngine(rules, fake_sun)

    result = engine.on_sample(HERE, datetime(2024, 6, 1, 12, 0, tzinfo=UTC))

    assert [(action.rule_id, action.state) for action in result.actions] == [
        ("morning", WindowState.ASSERTED_OUT),
        ("daylight", WindowState.ASSERTED_IN),
    ]
    assert engine.rule_states["broken"] == WindowState.UNSET


def test_local_time_zone_is_used_for_now():
    cest = timezone(timedelta(hours=2))
    engine = RuleEngine([daylight_rule(low="06:00:00", high="08:00:00")], fake_sun, tz=cest)

    # 05:30 UTC is 07:30 local.
    result = engine.on_sample(HERE, datetime(2024, 6, 1, 5, 30, tzinfo=UTC))

    assert result.actions[0].state == WindowState.ASSERTED_IN


def test_metadata_deltas():
    engine = RuleEngine([], fake_sun, root="sunphases")

    deltas = engine.metadata_deltas(
        {
            "dawn": {"description": "Morning civil twilight starts"},
            "dusk": {"description": "Evening civil twilight ends", "units": "epoch seconds"},
        }
    )

    assert deltas == [
        Delta(
            path="sunphases.dawn.meta",
            value={"description": "Morning civil twilight starts", "units": "ISO8601 (UTC)"},
        ),
        Delta(
            path="sunphases.dusk.meta",
            value={"description": "Evening civil twilight ends", "units": "epoch seconds"},
        ),
    ]


def test_calculator_math_error_does_not_escape():
    def broken_sun(now, latitude, longitude):
        raise ValueError("math domain error")

    engine = RuleEngine([daylight_rule()], broken_sun)

    result = engine.on_sample(HERE, datetime(2024, 6, 1, 12, 0, tzinfo=UTC))

    assert result.refresh.status == RefreshStatus.FAILED
    assert result.refresh.reason == "math domain error"
    assert result.actions == []
    assert engine.health.reason == "refresh_failed:math domain error"

from datetime import datetime, timedelta, timezone

import pytest

from custom_components.sunphases.runtime.errors import ExpressionError
from custom_components.sunphases.runtime.expression import (
    ClockTime,
    EventOffset,
    evaluate_expression,
    parse_expression,
)

UTC = timezone.utc
CEST = timezone(timedelta(hours=2))

EVENTS = {
    "dawn": datetime(2024, 6, 1, 6, 0, 0, tzinfo=UTC),
    "dusk": datetime(2024, 6, 1, 20, 15, 30, tzinfo=UTC),
}


def test_clock_time():
    assert evaluate_expression("10:30:00", {}, UTC) == 37800


def test_clock_time_bounds():
    assert evaluate_expression("00:00:00", {}, UTC) == 0
    assert evaluate_expression("23:59:59", {}, UTC) == 86399


@pytest.mark.parametrize("text", ["25:00:00", "24:00:00", "10:60:00", "10:00:60"])
def test_clock_time_out_of_range(text):
    with pytest.raises(ExpressionError, match="hh:mm:ss value is invalid"):
        evaluate_expression(text, {}, UTC)


def test_event_key():
    assert evaluate_expression("dawn", EVENTS, UTC) == 6 * 3600
    assert evaluate_expression("dusk", EVENTS, UTC) == 20 * 3600 + 15 * 60 + 30


def test_event_offsets():
    assert evaluate_expression("dawn+30m", EVENTS, UTC) == 6 * 3600 + 30 * 60
    assert evaluate_expression("dawn-2h", EVENTS, UTC) == 4 * 3600
    assert evaluate_expression("dawn+15s", EVENTS, UTC) == 6 * 3600 + 15


def test_event_uses_local_wall_clock():
    assert evaluate_expression("dawn", EVENTS, CEST) == 8 * 3600


def test_offset_clamped_to_day():
    assert evaluate_expression("dawn-7h", EVENTS, UTC) == 0
    assert evaluate_expression("dusk+5h", EVENTS, UTC) == 86399


def test_unknown_key():
    with pytest.raises(ExpressionError, match="invalid sun phase key 'bogus'"):
        evaluate_expression("bogus", EVENTS, UTC)


def test_unknown_key_with_offset():
    with pytest.raises(ExpressionError, match="invalid sun phase key 'bogus'"):
        evaluate_expression("bogus+1h", EVENTS, UTC)


@pytest.mark.parametrize("text", ["", "dawn + 30m", "dawn+30x", "dawn+", "10:30", "1:02:03"])
def test_unparsable(text):
    with pytest.raises(ExpressionError, match="error parsing"):
        evaluate_expression(text, EVENTS, UTC)


def test_first_matching_form_wins():
    # Digits alone match the bare key form, so this is a key error, not a parse error.
    with pytest.raises(ExpressionError, match="invalid sun phase key '1030'"):
        evaluate_expression("1030", EVENTS, UTC)


def test_parse_is_tagged():
    assert parse_expression(" 06:05:04 ") == ClockTime(6, 5, 4)
    assert parse_expression("dusk") == EventOffset(key="dusk")
    assert parse_expression("dusk-30m") == EventOffset(key="dusk", offset=-1800)
    assert parse_expression("dawn+1h") == EventOffset(key="dawn", offset=3600)

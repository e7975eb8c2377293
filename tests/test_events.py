from datetime import datetime, timezone

import pytest

from custom_components.sunphases.runtime.contracts import Position, RefreshStatus
from custom_components.sunphases.runtime.errors import ComputationFailure
from custom_components.sunphases.runtime.events import EventCache, day_of_year

UTC = timezone.utc


class FakeCalculator:
    def __init__(self, result="events"):
        self.calls = []
        self.result = result

    def __call__(self, now, latitude, longitude):
        self.calls.append((now, latitude, longitude))
        if self.result == "events":
            return {"dawn": now.replace(hour=6, minute=0, second=0, microsecond=0)}
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_day_of_year():
    assert day_of_year(datetime(2024, 1, 1, 0, 0, tzinfo=UTC)) == 1
    assert day_of_year(datetime(2024, 1, 1, 23, 59, 59, tzinfo=UTC)) == 1
    assert day_of_year(datetime(2024, 12, 31, 12, 0, tzinfo=UTC)) == 366
    assert day_of_year(datetime(2023, 12, 31, 12, 0, tzinfo=UTC)) == 365


def test_first_sample_refreshes():
    calc = FakeCalculator()
    cache = EventCache(calc)
    now = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    outcome = cache.maybe_refresh(Position(52.0, 4.0), now)

    assert outcome.status == RefreshStatus.REFRESHED
    assert outcome.events["dawn"].hour == 6
    assert calc.calls == [(now, 52.0, 4.0)]
    assert cache.state.last_day == day_of_year(now)
    assert cache.state.last_position == Position(52.0, 4.0)


@pytest.mark.parametrize(
    "second",
    [Position(52.0, 4.0), Position(53.0, 5.0), Position(51.0, 3.0), Position(52.4, 3.2)],
)
def test_nearby_position_same_day_not_needed(second):
    calc = FakeCalculator()
    cache = EventCache(calc)
    cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 1, 8, 0, tzinfo=UTC))

    outcome = cache.maybe_refresh(second, datetime(2024, 6, 1, 18, 0, tzinfo=UTC))

    assert outcome.status == RefreshStatus.NOT_NEEDED
    assert len(calc.calls) == 1


@pytest.mark.parametrize("second", [Position(53.5, 4.0), Position(52.0, 2.9)])
def test_displacement_refreshes(second):
    calc = FakeCalculator()
    cache = EventCache(calc)
    cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 1, 8, 0, tzinfo=UTC))

    outcome = cache.maybe_refresh(second, datetime(2024, 6, 1, 9, 0, tzinfo=UTC))

    assert outcome.status == RefreshStatus.REFRESHED
    assert cache.state.last_position == second


def test_day_rollover_refreshes_same_position():
    calc = FakeCalculator()
    cache = EventCache(calc)
    cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 1, 23, 59, tzinfo=UTC))

    outcome = cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 2, 0, 1, tzinfo=UTC))

    assert outcome.status == RefreshStatus.REFRESHED
    assert cache.state.last_day == day_of_year(datetime(2024, 6, 2, tzinfo=UTC))


def test_failure_keeps_stale_state():
    calc = FakeCalculator()
    cache = EventCache(calc)
    cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 1, 12, 0, tzinfo=UTC))
    before = cache.state

    calc.result = None
    outcome = cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 2, 12, 0, tzinfo=UTC))

    assert outcome.status == RefreshStatus.FAILED
    assert cache.state is before
    assert cache.events["dawn"].day == 1


def test_calculator_exception_is_failure():
    calc = FakeCalculator(result=ComputationFailure("polar night"))
    cache = EventCache(calc)

    outcome = cache.maybe_refresh(Position(89.0, 0.0), datetime(2024, 12, 21, 12, 0, tzinfo=UTC))

    assert outcome.status == RefreshStatus.FAILED
    assert outcome.reason == "polar night"
    assert cache.events is None


@pytest.mark.parametrize(
    "error",
    [ValueError("math domain error"), ZeroDivisionError("float division by zero")],
)
def test_calculator_math_error_is_failure(error):
    calc = FakeCalculator(result=error)
    cache = EventCache(calc)

    outcome = cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 1, 12, 0, tzinfo=UTC))

    assert outcome.status == RefreshStatus.FAILED
    assert outcome.reason == str(error)
    assert cache.state is None


def test_empty_map_is_failure_and_retried():
    calc = FakeCalculator(result={})
    cache = EventCache(calc)
    now = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    assert cache.maybe_refresh(Position(52.0, 4.0), now).status == RefreshStatus.FAILED
    assert cache.maybe_refresh(Position(52.0, 4.0), now).status == RefreshStatus.FAILED
    assert len(calc.calls) == 2


def test_event_map_is_read_only():
    cache = EventCache(FakeCalculator())
    cache.maybe_refresh(Position(52.0, 4.0), datetime(2024, 6, 1, 12, 0, tzinfo=UTC))

    with pytest.raises(TypeError):
        cache.events["dusk"] = datetime(2024, 6, 1, 21, 0, tzinfo=UTC)

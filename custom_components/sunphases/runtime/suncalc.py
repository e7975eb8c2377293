"""Default sun event calculator built on astral.

Produces the same key set as the suncalc family of libraries; every value is a
timezone-aware UTC datetime. Events the sun never reaches on the requested date
(polar day or night) are left out of the map.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from astral import Observer, SunDirection
from astral.sun import dawn, dusk, noon, sunrise, sunset, time_at_elevation

from .errors import ComputationFailure

_LOGGER = logging.getLogger(__name__)

CIVIL_DEPRESSION = 6.0
NAUTICAL_DEPRESSION = 12.0
ASTRONOMICAL_DEPRESSION = 18.0
SUN_DISC_EDGE_ELEVATION = -0.3
GOLDEN_HOUR_ELEVATION = 6.0


def _elevation(elevation: float, direction: SunDirection) -> Callable:
    def _calc(observer, date, tzinfo):
        return time_at_elevation(
            observer, elevation, date=date, direction=direction, tzinfo=tzinfo
        )

    return _calc


def _depression(func: Callable, depression: float) -> Callable:
    def _calc(observer, date, tzinfo):
        return func(observer, date=date, depression=depression, tzinfo=tzinfo)

    return _calc


_EVENTS: dict[str, Callable] = {
    "sunrise": lambda observer, date, tzinfo: sunrise(observer, date=date, tzinfo=tzinfo),
    "sunset": lambda observer, date, tzinfo: sunset(observer, date=date, tzinfo=tzinfo),
    "sunriseEnd": _elevation(SUN_DISC_EDGE_ELEVATION, SunDirection.RISING),
    "sunsetStart": _elevation(SUN_DISC_EDGE_ELEVATION, SunDirection.SETTING),
    "dawn": _depression(dawn, CIVIL_DEPRESSION),
    "dusk": _depression(dusk, CIVIL_DEPRESSION),
    "nauticalDawn": _depression(dawn, NAUTICAL_DEPRESSION),
    "nauticalDusk": _depression(dusk, NAUTICAL_DEPRESSION),
    "nightEnd": _depression(dawn, ASTRONOMICAL_DEPRESSION),
    "night": _depression(dusk, ASTRONOMICAL_DEPRESSION),
    "goldenHourEnd": _elevation(GOLDEN_HOUR_ELEVATION, SunDirection.RISING),
    "goldenHour": _elevation(GOLDEN_HOUR_ELEVATION, SunDirection.SETTING),
}


def compute_sun_events(now: datetime, latitude: float, longitude: float) -> dict[str, datetime]:
    """Return the sun events for the calendar day of ``now`` at a position."""
    if now.tzinfo is None:
        raise ComputationFailure("timestamp must be timezone aware")
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        raise ComputationFailure(f"position out of range: {latitude}, {longitude}")

    observer = Observer(latitude=latitude, longitude=longitude)
    date = now.date()
    tzinfo = now.tzinfo

    try:
        solar_noon = noon(observer, date=date, tzinfo=tzinfo)
    except ValueError as err:
        raise ComputationFailure(str(err)) from err

    events: dict[str, datetime] = {
        "solarNoon": solar_noon.astimezone(timezone.utc),
        "nadir": (solar_noon - timedelta(hours=12)).astimezone(timezone.utc),
    }
    for key, func in _EVENTS.items():
        try:
            events[key] = func(observer, date, tzinfo).astimezone(timezone.utc)
        except ValueError:
            _LOGGER.debug("Sun never reaches %s on %s at %s, %s", key, date, latitude, longitude)

    return events

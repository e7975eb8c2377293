"""Constants for the Sun Phases integration."""

from __future__ import annotations

from homeassistant.const import Platform

DOMAIN = "sunphases"
PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
]

# Options keys
OPT_POSITION_ENTITY = "position_entity"
OPT_ROOT = "root"
OPT_HEARTBEAT = "heartbeat"
OPT_RULES = "rules"
OPT_METADATA = "metadata"

DEFAULT_POSITION_ENTITY = "zone.home"
DEFAULT_ROOT = "sunphases"
DEFAULT_HEARTBEAT = 600

NOTIFICATION_STATES = ["normal", "alert", "warn", "alarm", "emergency"]
NOTIFICATION_METHODS = ["visual", "sound"]

EVENT_KEYS = [
    "dawn",
    "dusk",
    "goldenHour",
    "goldenHourEnd",
    "nadir",
    "nauticalDawn",
    "nauticalDusk",
    "night",
    "nightEnd",
    "solarNoon",
    "sunrise",
    "sunriseEnd",
    "sunset",
    "sunsetStart",
]

DEFAULT_METADATA = {
    "dawn": "Morning civil twilight starts",
    "dusk": "Evening civil twilight ends",
    "goldenHour": "Evening golden hour starts",
    "goldenHourEnd": "Morning golden hour ends",
    "nadir": "Darkest moment of the night, sun is in the lowest position",
    "nauticalDawn": "Morning nautical twilight starts",
    "nauticalDusk": "Evening nautical twilight ends",
    "night": "Dark enough for astronomical observations",
    "nightEnd": "Morning astronomical twilight starts",
    "solarNoon": "Sun is at its highest elevation",
    "sunrise": "Top edge of the sun appears on the horizon",
    "sunriseEnd": "Bottom edge of the sun touches the horizon",
    "sunset": "Sun disappears below the horizon",
    "sunsetStart": "Bottom edge of the sun touches the horizon",
}

METADATA_UNITS = "ISO8601 (UTC)"

# Used when the options have no "rules" key; an explicit empty list stays empty.
DEFAULT_RULES = [
    {
        "rule_id": "daylight",
        "low": "dawn",
        "high": "dusk",
        "in_range": {"key": "daytime", "state": "normal", "method": []},
        "out_range": {"key": "nighttime", "state": "normal", "method": []},
    }
]

# Services
SERVICE_EVALUATE = "evaluate"

# Events
EVENT_SUNPHASES_NOTIFICATION = "sunphases_notification"

DIAGNOSTICS_REDACT_KEYS = {
    "latitude",
    "longitude",
    "position",
    "last_position",
}

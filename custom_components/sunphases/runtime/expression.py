"""Boundary expressions for window rules.

An expression is one of, tried in order:

* ``HH:MM:SS``: a literal clock time,
* ``<key>``: the local time of a named sun event (``dawn``),
* ``<key><+|-><n><h|m|s>``: a sun event shifted by an offset (``dusk+15m``).

Evaluation yields seconds since local midnight.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, tzinfo

from .contracts import EventMap
from .errors import ExpressionError

SECONDS_PER_DAY = 86400

_CLOCK_RE = re.compile(r"^(\d\d):(\d\d):(\d\d)$")
_KEY_RE = re.compile(r"^(\w+)$")
_OFFSET_RE = re.compile(r"^(\w+)([+-])(\d+)([hms])$")

_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


@dataclass(frozen=True)
class ClockTime:
    hours: int
    minutes: int
    seconds: int


@dataclass(frozen=True)
class EventOffset:
    key: str
    offset: int = 0


Expression = ClockTime | EventOffset


def parse_expression(text: str) -> Expression:
    """Parse an expression without resolving event keys."""
    value = text.strip()

    if match := _CLOCK_RE.match(value):
        hours, minutes, seconds = (int(part) for part in match.groups())
        if hours >= 24 or minutes >= 60 or seconds >= 60:
            raise ExpressionError("hh:mm:ss value is invalid")
        return ClockTime(hours, minutes, seconds)

    if match := _KEY_RE.match(value):
        return EventOffset(key=match.group(1))

    if match := _OFFSET_RE.match(value):
        key, sign, amount, unit = match.groups()
        offset = int(amount) * _UNIT_SECONDS[unit]
        return EventOffset(key=key, offset=offset if sign == "+" else -offset)

    raise ExpressionError(f"error parsing '{text}'")


def seconds_of_day(moment: datetime, tz: tzinfo) -> int:
    """Seconds since midnight of ``moment`` as a wall clock in ``tz``."""
    local = moment.astimezone(tz)
    return local.hour * 3600 + local.minute * 60 + local.second


def evaluate_expression(text: str, events: EventMap, tz: tzinfo) -> int:
    """Resolve an expression against today's events, in seconds of day."""
    expression = parse_expression(text)

    if isinstance(expression, ClockTime):
        return expression.hours * 3600 + expression.minutes * 60 + expression.seconds

    moment = events.get(expression.key)
    if moment is None:
        raise ExpressionError(f"invalid sun phase key '{expression.key}'")

    value = seconds_of_day(moment, tz) + expression.offset
    return min(max(value, 0), SECONDS_PER_DAY - 1)

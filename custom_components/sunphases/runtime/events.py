"""Event cache and refresh trigger."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType

from .contracts import EventMap, Position, RefreshOutcome, SunCalculator
from .errors import ComputationFailure

_LOGGER = logging.getLogger(__name__)


def day_of_year(now: datetime) -> int:
    """Ordinal day of the calendar date of ``now`` (1 January is 1)."""
    return now.date().timetuple().tm_yday


@dataclass(frozen=True)
class RefreshState:
    """Day, position and event map of the last successful refresh."""

    last_day: int
    last_position: Position
    events: EventMap


class EventCache:
    """Holds today's event map and decides when to recompute it."""

    def __init__(self, calculator: SunCalculator) -> None:
        self._calculator = calculator
        self._state: RefreshState | None = None

    @property
    def state(self) -> RefreshState | None:
        return self._state

    @property
    def events(self) -> EventMap | None:
        return self._state.events if self._state else None

    def needs_refresh(self, position: Position, now: datetime) -> bool:
        state = self._state
        if state is None:
            return True
        if day_of_year(now) != state.last_day:
            return True
        return not state.last_position.is_near(position)

    def maybe_refresh(self, position: Position, now: datetime) -> RefreshOutcome:
        if not self.needs_refresh(position, now):
            return RefreshOutcome.not_needed()

        try:
            events = self._calculator(now, position.latitude, position.longitude)
        except (ComputationFailure, ArithmeticError, ValueError) as err:
            _LOGGER.warning("Unable to compute sun phase data: %s", err)
            return RefreshOutcome.failed(str(err))

        if not events:
            _LOGGER.warning(
                "Unable to compute sun phase data for %.3f, %.3f",
                position.latitude,
                position.longitude,
            )
            return RefreshOutcome.failed("no sun phase data")

        frozen = MappingProxyType(dict(events))
        self._state = RefreshState(
            last_day=day_of_year(now),
            last_position=position,
            events=frozen,
        )
        _LOGGER.debug("Refreshed %s sun phase keys", len(frozen))
        return RefreshOutcome.refreshed(frozen)

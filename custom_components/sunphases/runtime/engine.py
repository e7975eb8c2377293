"""Sun Phases runtime engine (refresh trigger + window rules)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Mapping, Sequence

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from ..const import DEFAULT_ROOT, EVENT_SUNPHASES_NOTIFICATION, METADATA_UNITS
from ..models import SunphasesOptions
from .contracts import (
    Delta,
    EventMap,
    Position,
    RefreshStatus,
    SampleResult,
    SunCalculator,
    WindowAction,
    WindowState,
)
from .errors import ExpressionError, SourceUnavailable
from .events import EventCache
from .expression import seconds_of_day
from .snapshot import SampleSnapshot
from .state_store import CanonicalState
from .suncalc import compute_sun_events
from .window import WindowRule, WindowRuleConfig, notification_path

_LOGGER = logging.getLogger(__name__)

_WINDOW_VALUES = {
    WindowState.UNSET: None,
    WindowState.ASSERTED_IN: True,
    WindowState.ASSERTED_OUT: False,
}


@dataclass(frozen=True)
class EngineHealth:
    """Health status for the runtime engine."""

    ok: bool
    reason: str


class RuleEngine:
    """Owns the event cache and the window rules of one config entry."""

    def __init__(
        self,
        rules: Sequence[WindowRuleConfig],
        calculator: SunCalculator,
        *,
        root: str = DEFAULT_ROOT,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._root = root
        self._tz = tz
        self._cache = EventCache(calculator)
        self._rules = [WindowRule(config=config, root=root) for config in rules]
        self._health = EngineHealth(ok=True, reason="initialized")

    @property
    def health(self) -> EngineHealth:
        return self._health

    @property
    def root(self) -> str:
        return self._root

    @property
    def events(self) -> EventMap | None:
        return self._cache.events

    @property
    def cache(self) -> EventCache:
        return self._cache

    @property
    def rules(self) -> list[WindowRule]:
        return list(self._rules)

    @property
    def rule_states(self) -> dict[str, WindowState]:
        return {rule.rule_id: rule.state for rule in self._rules}

    def event_path(self, key: str) -> str:
        return f"{self._root}.{key}"

    def metadata_deltas(self, metadata: Mapping[str, Mapping[str, str]]) -> list[Delta]:
        """Meta announcements for every described event key."""
        return [
            Delta(
                path=f"{self.event_path(key)}.meta",
                value={
                    "description": entry["description"],
                    "units": entry.get("units") or METADATA_UNITS,
                },
            )
            for key, entry in metadata.items()
        ]

    def on_sample(self, position: Position, now: datetime) -> SampleResult:
        """Process one position sample to completion."""
        local_now = now.astimezone(self._tz)
        outcome = self._cache.maybe_refresh(position, local_now)

        published: dict[str, datetime] | None = None
        if outcome.status == RefreshStatus.REFRESHED and outcome.events is not None:
            published = {self.event_path(key): value for key, value in outcome.events.items()}
            for path, value in published.items():
                _LOGGER.debug("Injecting key %s: %s", path, value.isoformat())
            self._health = EngineHealth(ok=True, reason="refreshed")
        elif outcome.status == RefreshStatus.FAILED:
            self._health = EngineHealth(
                ok=self.events is not None,
                reason=f"refresh_failed:{outcome.reason}",
            )

        events = self._cache.events
        if events is None:
            _LOGGER.debug("No sun phase data yet, skipping rule evaluation")
            return SampleResult(refresh=outcome, published_events=published)

        actions = self._evaluate_rules(seconds_of_day(local_now, self._tz), events)
        return SampleResult(refresh=outcome, published_events=published, actions=actions)

    def _evaluate_rules(self, now_seconds: int, events: EventMap) -> list[WindowAction]:
        actions: list[WindowAction] = []
        for rule in self._rules:
            try:
                action = rule.evaluate(now_seconds, events, self._tz)
            except ExpressionError as err:
                _LOGGER.warning("Skipping rule %s: %s", rule.rule_id, err)
                continue
            if action is None:
                continue
            _LOGGER.debug("Issuing notifications for rule %s: %s", rule.rule_id, action.deltas())
            actions.append(action)
        return actions


class SunphasesEngine:
    """Binds a RuleEngine to Home Assistant: position source, canonical state and bus."""

    def __init__(
        self,
        hass: HomeAssistant,
        options: SunphasesOptions,
        calculator: SunCalculator = compute_sun_events,
        tz: tzinfo | None = None,
    ) -> None:
        self._hass = hass
        self._options = options
        self._core = RuleEngine(
            options.rules,
            calculator,
            root=options.root,
            tz=tz or dt_util.get_default_time_zone(),
        )
        self._state = CanonicalState()
        self._snapshot = SampleSnapshot.empty()
        self._samples = 0
        self._last_refresh = ""
        self._last_sample = ""

    @property
    def options(self) -> SunphasesOptions:
        return self._options

    @property
    def core(self) -> RuleEngine:
        return self._core

    @property
    def state(self) -> CanonicalState:
        return self._state

    @property
    def snapshot(self) -> SampleSnapshot:
        return self._snapshot

    @property
    def health(self) -> EngineHealth:
        return self._core.health

    @property
    def samples(self) -> int:
        return self._samples

    @property
    def last_refresh(self) -> str:
        return self._last_refresh

    @property
    def last_sample(self) -> str:
        return self._last_sample

    @property
    def active_notifications(self) -> int:
        return sum(1 for value in self._state.notifications.values() if value is not None)

    def event_path(self, key: str) -> str:
        return self._core.event_path(key)

    def read_position(self) -> Position | None:
        state = self._hass.states.get(self._options.position_entity)
        if state is None:
            return None
        latitude = state.attributes.get("latitude")
        longitude = state.attributes.get("longitude")
        if latitude is None or longitude is None:
            return None
        try:
            return Position(latitude=float(latitude), longitude=float(longitude))
        except (TypeError, ValueError):
            return None

    def initialize(self, now: datetime | None = None) -> SampleResult | None:
        """Check the source, publish metadata and take the first sample.

        Raises SourceUnavailable when the position entity has no coordinates.
        """
        if self.read_position() is None:
            raise SourceUnavailable(
                f"position source {self._options.position_entity} has no latitude/longitude"
            )

        _LOGGER.info("Maintaining keys in %s", self._options.root)
        self._publish_metadata()
        for rule in self._core.rules:
            self._state.set_window(rule.rule_id, None)
            for spec in (rule.config.in_range, rule.config.out_range):
                if spec:
                    path = notification_path(self._options.root, spec.key)
                    self._state.set_notification(path, None)

        return self.sample("initialize", now)

    def sample(self, reason: str, now: datetime | None = None) -> SampleResult | None:
        """Process one sample of the position source.

        Returns None when nothing was evaluated: the source has no coordinates,
        or one-shot mode already took its sample.
        """
        if self._options.one_shot and self._samples:
            _LOGGER.debug("One-shot mode: ignoring %s sample", reason)
            return None

        position = self.read_position()
        if position is None:
            _LOGGER.warning(
                "Skipping sample (%s): %s has no position", reason, self._options.position_entity
            )
            return None

        now = now or dt_util.now()
        result = self._core.on_sample(position, now)
        self._samples += 1
        self._publish(result)
        self._snapshot = SampleSnapshot.from_result(
            result, position.latitude, position.longitude, now, reason
        )
        if result.refresh.status == RefreshStatus.REFRESHED:
            self._last_refresh = now.isoformat()
        self._last_sample = now.isoformat()
        return result

    def _publish(self, result: SampleResult) -> None:
        if result.refresh.status == RefreshStatus.REFRESHED and result.refresh.events:
            self._state.replace_events(result.refresh.events)

        for action in result.actions:
            self._state.set_window(action.rule_id, _WINDOW_VALUES[action.state])
            for delta in action.deltas():
                self._state.set_notification(delta.path, delta.value)
                self._hass.bus.async_fire(
                    EVENT_SUNPHASES_NOTIFICATION,
                    {"rule_id": action.rule_id, "path": delta.path, "value": delta.value},
                )

    def _publish_metadata(self) -> None:
        deltas = self._core.metadata_deltas(self._options.metadata)
        for key, delta in zip(self._options.metadata, deltas):
            _LOGGER.debug("Publishing meta %s", delta.path)
            self._state.set_metadata(key, delta.value)

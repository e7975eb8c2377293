"""Coordinator for Sun Phases runtime."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import Event, HomeAssistant, callback
from homeassistant.helpers.debounce import Debouncer
from homeassistant.helpers.event import (
    async_track_state_change_event,
    async_track_time_interval,
)
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import DOMAIN
from .models import SunphasesOptions, SunphasesRuntimeState
from .runtime.engine import SunphasesEngine

_LOGGER = logging.getLogger(__name__)


class SunphasesCoordinator(DataUpdateCoordinator[SunphasesRuntimeState]):
    """Owns the Sun Phases engine and its position subscription."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry, options: SunphasesOptions) -> None:
        super().__init__(
            hass=hass,
            logger=_LOGGER,
            name=DOMAIN,
            update_interval=None,  # push-based
        )
        self.entry = entry
        self.options = options
        self.engine = SunphasesEngine(hass, options)
        self._unsubscribes: list = []
        self._debouncer: Debouncer | None = None
        self.data = SunphasesRuntimeState(
            health_ok=True,
            health_reason="booting",
            last_refresh="",
            last_sample="",
            active_notifications=0,
        )

    async def _async_update_data(self) -> SunphasesRuntimeState:
        """Return current runtime state for coordinator refreshes.

        Sun Phases is push-driven: state updates are produced by position samples.
        """
        return self.data

    async def async_initialize(self) -> None:
        """Publish metadata, take the first sample and subscribe for more."""
        self.engine.initialize()
        self.data = self._runtime_state()
        await self.async_refresh()

        if self.options.one_shot:
            _LOGGER.debug("Heartbeat is 0, one-shot mode: no further samples")
            return
        self._subscribe()

    async def async_request_sample(self, reason: str) -> None:
        """Process one sample now, bypassing the heartbeat throttle."""
        if self.engine.sample(reason) is None:
            return
        self.data = self._runtime_state()
        await self.async_refresh()

    async def async_shutdown(self) -> None:
        """Shutdown runtime."""
        for unsub in self._unsubscribes:
            unsub()
        self._unsubscribes.clear()
        if self._debouncer is not None:
            self._debouncer.async_cancel()
            self._debouncer = None
        _LOGGER.debug("Sun Phases runtime shutdown")

    def _runtime_state(self) -> SunphasesRuntimeState:
        return SunphasesRuntimeState(
            health_ok=self.engine.health.ok,
            health_reason=self.engine.health.reason,
            last_refresh=self.engine.last_refresh,
            last_sample=self.engine.last_sample,
            active_notifications=self.engine.active_notifications,
        )

    def _subscribe(self) -> None:
        self._debouncer = Debouncer(
            self.hass,
            _LOGGER,
            cooldown=self.options.heartbeat,
            immediate=True,
            function=self._async_heartbeat_sample,
        )

        @callback
        def _handle_position_changed(event: Event) -> None:
            self.hass.async_create_task(self._debouncer.async_call())

        async def _handle_interval(now: datetime) -> None:
            await self._debouncer.async_call()

        self._unsubscribes.append(
            async_track_state_change_event(
                self.hass, [self.options.position_entity], _handle_position_changed
            )
        )
        self._unsubscribes.append(
            async_track_time_interval(
                self.hass, _handle_interval, timedelta(seconds=self.options.heartbeat)
            )
        )

    async def _async_heartbeat_sample(self) -> None:
        await self.async_request_sample(reason="heartbeat")

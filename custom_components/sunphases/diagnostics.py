"""Diagnostics support for Sun Phases."""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.redact import async_redact_data

from .const import DIAGNOSTICS_REDACT_KEYS, DOMAIN


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    data = hass.data.get(DOMAIN, {}).get(entry.entry_id, {})
    coordinator = data.get("coordinator")

    runtime: dict[str, Any] = {"data": getattr(coordinator, "data", None)}
    if coordinator is not None:
        refresh = coordinator.engine.core.cache.state
        runtime.update(
            {
                "last_sample": coordinator.engine.snapshot.as_dict(),
                "rule_states": {
                    rule_id: state.value
                    for rule_id, state in coordinator.engine.core.rule_states.items()
                },
                "last_day": refresh.last_day if refresh else None,
                "last_position": (
                    [refresh.last_position.latitude, refresh.last_position.longitude]
                    if refresh
                    else None
                ),
                "events": {
                    key: value.isoformat() for key, value in (coordinator.engine.core.events or {}).items()
                },
                "notifications": dict(coordinator.engine.state.notifications),
            }
        )

    payload = {
        "entry": {
            "title": entry.title,
            "version": entry.version,
            "minor_version": getattr(entry, "minor_version", None),
            "options": dict(entry.options),
        },
        "runtime": runtime,
    }

    return async_redact_data(payload, DIAGNOSTICS_REDACT_KEYS)

"""Service registration for Sun Phases."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv

from .const import DOMAIN, SERVICE_EVALUATE

_LOGGER = logging.getLogger(__name__)

EVALUATE_SCHEMA = vol.Schema(
    {
        vol.Optional("entry_id"): cv.string,
    }
)


async def async_register_services(hass: HomeAssistant) -> None:
    async def _handle_evaluate(call: ServiceCall) -> None:
        data: dict[str, Any] = call.data
        entries = {
            entry_id: value
            for entry_id, value in hass.data.get(DOMAIN, {}).items()
            if isinstance(value, dict) and "coordinator" in value
        }

        entry_id = data.get("entry_id")
        if entry_id is not None:
            if entry_id not in entries:
                raise ServiceValidationError(f"Unknown {DOMAIN} entry '{entry_id}'")
            entries = {entry_id: entries[entry_id]}

        for value in entries.values():
            _LOGGER.debug("Sun Phases evaluate requested for %s", value["coordinator"].entry.entry_id)
            await value["coordinator"].async_request_sample(reason="service")

    hass.services.async_register(DOMAIN, SERVICE_EVALUATE, _handle_evaluate, schema=EVALUATE_SCHEMA)

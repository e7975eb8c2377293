"""The Sun Phases integration."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryError
from homeassistant.helpers.typing import ConfigType

from .const import DOMAIN, PLATFORMS
from .coordinator import SunphasesCoordinator
from .models import SunphasesOptions
from .runtime.errors import ConfigError, SourceUnavailable
from .services import async_register_services

_LOGGER = logging.getLogger(__name__)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up Sun Phases (YAML not supported)."""
    hass.data.setdefault(DOMAIN, {})

    if not hass.data[DOMAIN].get("services_registered"):
        await async_register_services(hass)
        hass.data[DOMAIN]["services_registered"] = True

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Sun Phases from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    try:
        options = SunphasesOptions.from_entry(entry)
    except ConfigError as err:
        _LOGGER.error("Invalid %s options: %s", DOMAIN, err)
        raise ConfigEntryError(str(err)) from err

    coordinator = SunphasesCoordinator(hass=hass, entry=entry, options=options)
    try:
        await coordinator.async_initialize()
    except SourceUnavailable as err:
        _LOGGER.error("No position source for %s: %s", DOMAIN, err)
        await coordinator.async_shutdown()
        raise ConfigEntryError(str(err)) from err

    hass.data[DOMAIN][entry.entry_id] = {"coordinator": coordinator}

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(_async_entry_updated))

    _LOGGER.info("Set up %s (entry_id=%s)", DOMAIN, entry.entry_id)
    return True


async def _async_entry_updated(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update.

    Reloading the config entry is required to rebuild entity platforms because
    entity sets are derived from options (rules, metadata, root).
    """
    _LOGGER.debug("Options updated for %s, reloading entry %s", DOMAIN, entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        data = hass.data[DOMAIN].pop(entry.entry_id, None)
        if data and "coordinator" in data:
            coordinator: SunphasesCoordinator = data["coordinator"]
            await coordinator.async_shutdown()
    return unload_ok

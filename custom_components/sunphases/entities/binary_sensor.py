"""Sun Phases binary sensors (one per window rule)."""

from __future__ import annotations

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DOMAIN
from ..coordinator import SunphasesCoordinator
from .base import SunphasesEntity
from .registry import build_registry


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    coordinator: SunphasesCoordinator = data["coordinator"]
    registry = build_registry(coordinator.options)
    entities = [
        SunphasesWindowBinarySensor(coordinator, entry, desc.key, desc.name)
        for desc in registry.windows
    ]
    async_add_entities(entities)


class SunphasesWindowBinarySensor(SunphasesEntity, BinarySensorEntity):
    """On while the rule's in-range notification is the asserted one."""

    def __init__(
        self, coordinator: SunphasesCoordinator, entry: ConfigEntry, key: str, name: str
    ) -> None:
        super().__init__(coordinator, entry, "window", key, name)

    @property
    def is_on(self):
        return self.coordinator.engine.state.get_window(self._key)

"""Base entities for Sun Phases."""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from ..const import DOMAIN
from ..coordinator import SunphasesCoordinator
from .registry import object_id


class SunphasesEntity(CoordinatorEntity[SunphasesCoordinator]):
    """Base class for Sun Phases entities."""

    def __init__(
        self, coordinator: SunphasesCoordinator, entry: ConfigEntry, kind: str, key: str, name: str
    ) -> None:
        super().__init__(coordinator)
        self._entry = entry
        self._key = key
        normalized_key = object_id(f"{kind}_{key}" if kind else key)
        self._attr_name = name
        self._attr_unique_id = f"{entry.entry_id}_{normalized_key}"
        self._attr_suggested_object_id = normalized_key

    @property
    def device_info(self):
        return {
            "identifiers": {(DOMAIN, self._entry.entry_id)},
            "name": "Sun Phases",
            "manufacturer": "Sun Phases",
            "model": "Sun Phase Calculator",
        }

"""Sun Phases sensors (event timestamps and notifications)."""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DOMAIN, NOTIFICATION_STATES
from ..coordinator import SunphasesCoordinator
from .base import SunphasesEntity
from .registry import build_registry


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    coordinator: SunphasesCoordinator = data["coordinator"]
    registry = build_registry(coordinator.options)
    entities: list[SensorEntity] = [
        SunphasesEventSensor(coordinator, entry, desc.key, desc.name) for desc in registry.events
    ]
    entities.extend(
        SunphasesNotificationSensor(coordinator, entry, desc.key, desc.name, desc.path)
        for desc in registry.notifications
    )
    async_add_entities(entities)


class SunphasesEventSensor(SunphasesEntity, SensorEntity):
    """Timestamp of one sun event for today."""

    _attr_device_class = SensorDeviceClass.TIMESTAMP

    def __init__(
        self, coordinator: SunphasesCoordinator, entry: ConfigEntry, key: str, name: str
    ) -> None:
        super().__init__(coordinator, entry, "", key, name)

    @property
    def native_value(self):
        return self.coordinator.engine.state.get_event(self._key)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {
            "path": self.coordinator.engine.event_path(self._key),
            **self.coordinator.engine.state.get_metadata(self._key),
        }


class SunphasesNotificationSensor(SunphasesEntity, SensorEntity):
    """Currently raised notification state at one path, None when cleared."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = NOTIFICATION_STATES

    def __init__(
        self,
        coordinator: SunphasesCoordinator,
        entry: ConfigEntry,
        key: str,
        name: str,
        path: str,
    ) -> None:
        super().__init__(coordinator, entry, "notification", key, name)
        self._path = path

    @property
    def native_value(self):
        notification = self.coordinator.engine.state.get_notification(self._path)
        return notification["state"] if notification else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        notification = self.coordinator.engine.state.get_notification(self._path) or {}
        return {
            "path": self._path,
            "message": notification.get("message"),
            "method": notification.get("method", []),
        }

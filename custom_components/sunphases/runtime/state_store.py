"""Canonical state store for Sun Phases entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from ..const import EVENT_KEYS


@dataclass
class CanonicalState:
    """In-memory canonical state for entities."""

    events: dict[str, datetime | None] = field(default_factory=dict)
    notifications: dict[str, dict[str, Any] | None] = field(default_factory=dict)
    windows: dict[str, bool | None] = field(default_factory=dict)
    metadata: dict[str, dict[str, Any]] = field(default_factory=dict)

    def get_event(self, key: str) -> datetime | None:
        return self.events.get(key)

    def get_notification(self, key: str) -> dict[str, Any] | None:
        return self.notifications.get(key)

    def get_window(self, rule_id: str) -> bool | None:
        return self.windows.get(rule_id)

    def get_metadata(self, key: str) -> dict[str, Any]:
        return self.metadata.get(key, {})

    def set_event(self, key: str, value: datetime | None) -> None:
        self.events[key] = value

    def set_notification(self, key: str, value: dict[str, Any] | None) -> None:
        self.notifications[key] = value

    def set_window(self, rule_id: str, value: bool | None) -> None:
        self.windows[rule_id] = value

    def set_metadata(self, key: str, value: dict[str, Any]) -> None:
        self.metadata[key] = value

    def replace_events(self, events: Mapping[str, datetime]) -> None:
        """Swap in a new day's map; keys it lacks read as unknown."""
        self.events = {key: None for key in EVENT_KEYS} | dict(events)

"""Entity registry builders for Sun Phases entities."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..const import EVENT_KEYS
from ..models import SunphasesOptions
from ..runtime.window import notification_path

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class SunphasesEntityDescription:
    key: str
    name: str


@dataclass(frozen=True)
class SunphasesNotificationDescription(SunphasesEntityDescription):
    path: str


@dataclass(frozen=True)
class SunphasesRegistry:
    events: list[SunphasesEntityDescription]
    notifications: list[SunphasesNotificationDescription]
    windows: list[SunphasesEntityDescription]


def build_registry(options: SunphasesOptions) -> SunphasesRegistry:
    events = [_s(key, f"Sun Phase {_label(key)}") for key in EVENT_KEYS]

    notifications: list[SunphasesNotificationDescription] = []
    windows: list[SunphasesEntityDescription] = []
    seen_paths: set[str] = set()

    for rule in options.rules:
        windows.append(_s(rule.rule_id, f"Sun Window {_label(rule.rule_id)}"))
        for spec in (rule.in_range, rule.out_range):
            if spec is None:
                continue
            path = notification_path(options.root, spec.key)
            # Two rules may share a notification key; one entity per path.
            if path in seen_paths:
                continue
            seen_paths.add(path)
            notifications.append(
                SunphasesNotificationDescription(
                    key=spec.key,
                    name=f"Sun Notification {_label(spec.key)}",
                    path=path,
                )
            )

    return SunphasesRegistry(events=events, notifications=notifications, windows=windows)


def object_id(key: str) -> str:
    """Home Assistant object id for a key: ``goldenHourEnd`` -> ``sunphases_golden_hour_end``."""
    snake = _CAMEL_RE.sub("_", key).lower().replace(".", "_")
    return snake if snake.startswith("sunphases_") else f"sunphases_{snake}"


def _label(value: str | None) -> str:
    if not value:
        return "Unknown"
    return _CAMEL_RE.sub(" ", str(value)).replace("_", " ").replace(".", " ").title()


def _s(key: str, name: str) -> SunphasesEntityDescription:
    return SunphasesEntityDescription(key=key, name=name)

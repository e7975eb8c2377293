"""Typed models for Sun Phases configuration and runtime state."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.helpers import config_validation as cv

from .const import (
    DEFAULT_HEARTBEAT,
    DEFAULT_METADATA,
    DEFAULT_POSITION_ENTITY,
    DEFAULT_ROOT,
    DEFAULT_RULES,
    METADATA_UNITS,
    NOTIFICATION_METHODS,
    NOTIFICATION_STATES,
    OPT_HEARTBEAT,
    OPT_METADATA,
    OPT_POSITION_ENTITY,
    OPT_ROOT,
    OPT_RULES,
)
from .runtime.errors import ConfigError, ExpressionError
from .runtime.expression import parse_expression
from .runtime.window import NotificationSpec, WindowRuleConfig

NOTIFICATION_SCHEMA = vol.Schema(
    {
        vol.Required("key"): cv.string,
        vol.Optional("state", default="normal"): vol.In(NOTIFICATION_STATES),
        vol.Optional("method", default=[]): [vol.In(NOTIFICATION_METHODS)],
    }
)

RULE_SCHEMA = vol.Schema(
    {
        vol.Required("rule_id"): cv.slug,
        vol.Required("low"): cv.string,
        vol.Required("high"): cv.string,
        vol.Optional("in_range"): vol.Any(None, NOTIFICATION_SCHEMA),
        vol.Optional("out_range"): vol.Any(None, NOTIFICATION_SCHEMA),
    },
    extra=vol.REMOVE_EXTRA,
)

METADATA_SCHEMA = vol.Schema(
    {
        vol.Required("key"): cv.string,
        vol.Required("description"): cv.string,
        vol.Optional("units", default=METADATA_UNITS): cv.string,
    },
    extra=vol.REMOVE_EXTRA,
)

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(OPT_POSITION_ENTITY, default=DEFAULT_POSITION_ENTITY): cv.entity_id,
        vol.Optional(OPT_ROOT, default=DEFAULT_ROOT): vol.Any(None, cv.string),
        vol.Optional(OPT_HEARTBEAT, default=DEFAULT_HEARTBEAT): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(OPT_RULES, default=lambda: copy.deepcopy(DEFAULT_RULES)): [RULE_SCHEMA],
        vol.Optional(OPT_METADATA): vol.Any(None, [METADATA_SCHEMA]),
    },
    extra=vol.ALLOW_EXTRA,
)


def normalize_root(value: str | None) -> str:
    """Trim whitespace and leading/trailing dots from a path prefix."""
    root = (value or "").strip().strip(".")
    return root or DEFAULT_ROOT


def rule_from_dict(data: dict[str, Any]) -> WindowRuleConfig:
    """Build a rule from validated options, checking expression syntax."""
    for field_name in ("low", "high"):
        try:
            parse_expression(data[field_name])
        except ExpressionError as err:
            raise ConfigError(f"rule '{data['rule_id']}' {field_name}: {err}") from err

    in_range = _notification(data.get("in_range"))
    out_range = _notification(data.get("out_range"))
    if in_range is None and out_range is None:
        raise ConfigError(f"rule '{data['rule_id']}' has no notification")

    return WindowRuleConfig(
        rule_id=data["rule_id"],
        low=data["low"].strip(),
        high=data["high"].strip(),
        in_range=in_range,
        out_range=out_range,
    )


def _notification(data: dict[str, Any] | None) -> NotificationSpec | None:
    if not data or not str(data.get("key", "")).strip():
        return None
    return NotificationSpec(
        key=str(data["key"]).strip().strip("."),
        state=data.get("state", "normal"),
        method=tuple(data.get("method", [])),
    )


@dataclass(frozen=True)
class SunphasesOptions:
    """Normalized options stored in the config entry."""

    position_entity: str
    root: str
    heartbeat: int
    rules: tuple[WindowRuleConfig, ...]
    metadata: dict[str, dict[str, str]]

    @property
    def one_shot(self) -> bool:
        return self.heartbeat == 0

    @classmethod
    def from_entry(cls, entry: ConfigEntry) -> "SunphasesOptions":
        return cls.from_dict(dict(entry.options))

    @classmethod
    def from_dict(cls, options: dict[str, Any]) -> "SunphasesOptions":
        try:
            validated = OPTIONS_SCHEMA(options)
        except vol.Invalid as err:
            raise ConfigError(f"invalid options: {err}") from err

        rules = tuple(rule_from_dict(rule) for rule in validated[OPT_RULES])
        rule_ids = [rule.rule_id for rule in rules]
        duplicates = sorted({rule_id for rule_id in rule_ids if rule_ids.count(rule_id) > 1})
        if duplicates:
            raise ConfigError(f"duplicate rule ids: {', '.join(duplicates)}")

        metadata_list = validated.get(OPT_METADATA)
        if metadata_list is None:
            metadata = {
                key: {"description": description, "units": METADATA_UNITS}
                for key, description in DEFAULT_METADATA.items()
            }
        else:
            metadata = {
                item["key"]: {"description": item["description"], "units": item["units"]}
                for item in metadata_list
            }

        return cls(
            position_entity=validated[OPT_POSITION_ENTITY],
            root=normalize_root(validated[OPT_ROOT]),
            heartbeat=validated[OPT_HEARTBEAT],
            rules=rules,
            metadata=metadata,
        )


@dataclass(frozen=True)
class SunphasesRuntimeState:
    """Minimal runtime state surfaced to entity platforms."""

    health_ok: bool
    health_reason: str
    last_refresh: str
    last_sample: str
    active_notifications: int

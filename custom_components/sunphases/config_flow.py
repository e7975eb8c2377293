"""Config flow for Sun Phases."""

from __future__ import annotations

import copy
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.selector import selector

import logging

from .const import (
    DEFAULT_HEARTBEAT,
    DEFAULT_POSITION_ENTITY,
    DEFAULT_ROOT,
    DEFAULT_RULES,
    DOMAIN,
    NOTIFICATION_METHODS,
    NOTIFICATION_STATES,
    OPT_HEARTBEAT,
    OPT_POSITION_ENTITY,
    OPT_ROOT,
    OPT_RULES,
)
from .models import normalize_root
from .runtime.errors import ExpressionError
from .runtime.expression import parse_expression

POSITION_DOMAINS = ["zone", "device_tracker", "person"]

_LOGGER = logging.getLogger(__name__)


def _entity_selector(domains: list[str], multiple: bool = False) -> dict[str, Any]:
    return selector({"entity": {"domain": domains, "multiple": multiple}})


def _is_valid_slug(value: str) -> bool:
    try:
        cv.slug(value)
        return True
    except vol.Invalid:
        return False


def _has_position(hass: HomeAssistant, entity_id: str) -> bool:
    state = hass.states.get(entity_id)
    if state is None:
        return False
    return (
        state.attributes.get("latitude") is not None
        and state.attributes.get("longitude") is not None
    )


def _general_schema(defaults: dict[str, Any]) -> vol.Schema:
    return vol.Schema(
        {
            vol.Required(
                OPT_POSITION_ENTITY,
                default=defaults.get(OPT_POSITION_ENTITY, DEFAULT_POSITION_ENTITY),
            ): _entity_selector(POSITION_DOMAINS),
            vol.Optional(
                OPT_HEARTBEAT, default=defaults.get(OPT_HEARTBEAT, DEFAULT_HEARTBEAT)
            ): cv.positive_int,
            vol.Optional(OPT_ROOT, default=defaults.get(OPT_ROOT, DEFAULT_ROOT)): cv.string,
        }
    )


def _validate_general(hass: HomeAssistant, payload: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not _has_position(hass, str(payload.get(OPT_POSITION_ENTITY, ""))):
        errors[OPT_POSITION_ENTITY] = "no_position"
    return errors


class SunphasesConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Sun Phases."""

    VERSION = 1
    MINOR_VERSION = 1

    async def async_step_user(self, user_input=None) -> FlowResult:
        if user_input is None:
            return self.async_show_form(step_id="user", data_schema=_general_schema({}))

        errors = _validate_general(self.hass, user_input)
        if errors:
            return self.async_show_form(
                step_id="user", data_schema=_general_schema(user_input), errors=errors
            )

        options = {
            OPT_POSITION_ENTITY: user_input[OPT_POSITION_ENTITY],
            OPT_HEARTBEAT: user_input.get(OPT_HEARTBEAT, DEFAULT_HEARTBEAT),
            OPT_ROOT: normalize_root(user_input.get(OPT_ROOT)),
            OPT_RULES: copy.deepcopy(DEFAULT_RULES),
        }
        return self.async_create_entry(title="Sun Phases", data={}, options=options)

    @staticmethod
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        return SunphasesOptionsFlowHandler(config_entry)


class SunphasesOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle Sun Phases options."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self.options = dict(config_entry.options)
        self._editing_rule_id: str | None = None

    # ---- Helpers ----
    def _rules(self) -> list[dict[str, Any]]:
        return list(self.options.get(OPT_RULES, []))

    def _rule_ids(self) -> list[str]:
        return [rule["rule_id"] for rule in self._rules()]

    def _find_rule(self, rule_id: str) -> dict[str, Any] | None:
        for rule in self._rules():
            if rule.get("rule_id") == rule_id:
                return rule
        return None

    def _store_rules(self, rules: list[dict[str, Any]]) -> None:
        self.options[OPT_RULES] = rules

    # ---- Flow steps ----
    async def async_step_init(self, user_input=None) -> FlowResult:
        return await self.async_step_general(user_input)

    async def async_step_general(self, user_input=None) -> FlowResult:
        if user_input is None:
            return self.async_show_form(step_id="general", data_schema=_general_schema(self.options))

        errors = _validate_general(self.hass, user_input)
        if errors:
            return self.async_show_form(
                step_id="general", data_schema=_general_schema(user_input), errors=errors
            )

        self.options[OPT_POSITION_ENTITY] = user_input[OPT_POSITION_ENTITY]
        self.options[OPT_HEARTBEAT] = user_input.get(OPT_HEARTBEAT, DEFAULT_HEARTBEAT)
        self.options[OPT_ROOT] = normalize_root(user_input.get(OPT_ROOT))
        return await self.async_step_rules_menu()

    # ---- Window rules ----
    async def async_step_rules_menu(self, user_input=None) -> FlowResult:
        _LOGGER.debug("Options flow: rules_menu")
        return self.async_show_menu(
            step_id="rules_menu",
            menu_options=["rules_add", "rules_edit", "rules_remove", "rules_save"],
        )

    async def async_step_rules_add(self, user_input=None) -> FlowResult:
        _LOGGER.debug("Options flow: rules_add user_input=%s", bool(user_input))
        if user_input is None:
            return self.async_show_form(step_id="rules_add", data_schema=self._rule_schema())

        errors = self._validate_rule_payload(user_input, is_edit=False)
        if errors:
            return self.async_show_form(
                step_id="rules_add", data_schema=self._rule_schema(user_input), errors=errors
            )

        rules = self._rules()
        rules.append(_rule_from_form(user_input))
        self._store_rules(rules)
        return await self.async_step_rules_menu()

    async def async_step_rules_edit(self, user_input=None) -> FlowResult:
        _LOGGER.debug("Options flow: rules_edit user_input=%s", bool(user_input))
        if not self._rules():
            return await self.async_step_rules_add()

        if user_input is None:
            schema = vol.Schema({vol.Required("rule"): vol.In(self._rule_ids())})
            return self.async_show_form(step_id="rules_edit", data_schema=schema)

        self._editing_rule_id = user_input.get("rule")
        return await self.async_step_rules_edit_form()

    async def async_step_rules_edit_form(self, user_input=None) -> FlowResult:
        _LOGGER.debug("Options flow: rules_edit_form user_input=%s", bool(user_input))
        if user_input is None:
            existing = self._find_rule(self._editing_rule_id or "") or {}
            return self.async_show_form(
                step_id="rules_edit_form", data_schema=self._rule_schema(_rule_to_form(existing))
            )

        errors = self._validate_rule_payload(user_input, is_edit=True)
        if errors:
            return self.async_show_form(
                step_id="rules_edit_form", data_schema=self._rule_schema(user_input), errors=errors
            )

        updated = []
        for rule in self._rules():
            if rule.get("rule_id") == self._editing_rule_id:
                updated.append(_rule_from_form(user_input))
            else:
                updated.append(rule)
        self._store_rules(updated)
        self._editing_rule_id = None
        return await self.async_step_rules_menu()

    async def async_step_rules_remove(self, user_input=None) -> FlowResult:
        _LOGGER.debug("Options flow: rules_remove user_input=%s", bool(user_input))
        if not self._rules():
            return await self.async_step_rules_menu()

        if user_input is None:
            schema = vol.Schema({vol.Required("rule"): vol.In(self._rule_ids())})
            return self.async_show_form(step_id="rules_remove", data_schema=schema)

        rule_id = user_input.get("rule")
        self._store_rules([rule for rule in self._rules() if rule.get("rule_id") != rule_id])
        return await self.async_step_rules_menu()

    async def async_step_rules_save(self, user_input=None) -> FlowResult:
        """Persist options and close the flow."""
        return self.async_create_entry(title="", data=self.options)

    def _rule_schema(self, defaults: dict[str, Any] | None = None) -> vol.Schema:
        defaults = defaults or {}
        return vol.Schema(
            {
                vol.Required("rule_id", default=defaults.get("rule_id", "")): cv.string,
                vol.Required("low", default=defaults.get("low", "sunrise")): cv.string,
                vol.Required("high", default=defaults.get("high", "sunset")): cv.string,
                vol.Optional("in_key", default=defaults.get("in_key", "")): cv.string,
                vol.Optional("in_state", default=defaults.get("in_state", "normal")):
                vol.In(NOTIFICATION_STATES),
                vol.Optional("in_method", default=defaults.get("in_method", [])):
                cv.multi_select(NOTIFICATION_METHODS),
                vol.Optional("out_key", default=defaults.get("out_key", "")): cv.string,
                vol.Optional("out_state", default=defaults.get("out_state", "normal")):
                vol.In(NOTIFICATION_STATES),
                vol.Optional("out_method", default=defaults.get("out_method", [])):
                cv.multi_select(NOTIFICATION_METHODS),
            }
        )

    def _validate_rule_payload(self, payload: dict[str, Any], is_edit: bool) -> dict[str, str]:
        errors: dict[str, str] = {}
        rule_id = str(payload.get("rule_id", "")).strip()
        if not rule_id:
            errors["rule_id"] = "required"
        elif not _is_valid_slug(rule_id):
            errors["rule_id"] = "invalid_slug"
        else:
            existing = set(self._rule_ids())
            if is_edit:
                existing.discard(self._editing_rule_id)
            if rule_id in existing:
                errors["rule_id"] = "duplicate"

        for field_name in ("low", "high"):
            try:
                parse_expression(str(payload.get(field_name, "")))
            except ExpressionError:
                errors[field_name] = "invalid_expression"

        if not str(payload.get("in_key", "")).strip() and not str(payload.get("out_key", "")).strip():
            errors["base"] = "no_notification"
        return errors


def _rule_from_form(payload: dict[str, Any]) -> dict[str, Any]:
    """Flat form fields to the nested rule stored in options."""
    rule: dict[str, Any] = {
        "rule_id": str(payload["rule_id"]).strip(),
        "low": str(payload["low"]).strip(),
        "high": str(payload["high"]).strip(),
    }
    for side in ("in", "out"):
        key = str(payload.get(f"{side}_key", "")).strip()
        rule[f"{side}_range"] = (
            {
                "key": key,
                "state": payload.get(f"{side}_state", "normal"),
                "method": list(payload.get(f"{side}_method", [])),
            }
            if key
            else None
        )
    return rule


def _rule_to_form(rule: dict[str, Any]) -> dict[str, Any]:
    form: dict[str, Any] = {
        "rule_id": rule.get("rule_id", ""),
        "low": rule.get("low", ""),
        "high": rule.get("high", ""),
    }
    for side in ("in", "out"):
        spec = rule.get(f"{side}_range") or {}
        form[f"{side}_key"] = spec.get("key", "")
        form[f"{side}_state"] = spec.get("state", "normal")
        form[f"{side}_method"] = list(spec.get("method", []))
    return form

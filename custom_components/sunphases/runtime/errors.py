"""Error taxonomy for the Sun Phases runtime."""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class SunphasesError(HomeAssistantError):
    """Base class for Sun Phases errors."""


class ConfigError(SunphasesError):
    """Options are malformed; the engine must not start."""


class ComputationFailure(SunphasesError):
    """The astronomical calculator produced no usable event map."""


class ExpressionError(SunphasesError):
    """A boundary expression is unparsable or names an unknown event."""


class SourceUnavailable(SunphasesError):
    """No position can be obtained from the configured source."""

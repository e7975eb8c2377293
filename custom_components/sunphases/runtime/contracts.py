"""Core runtime contracts for samples, deltas and notification actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping, Optional

EventMap = Mapping[str, datetime]
SunCalculator = Callable[[datetime, float, float], Optional[EventMap]]

POSITION_TOLERANCE_DEG = 1.0


@dataclass(frozen=True)
class Position:
    """Observer position in degrees."""

    latitude: float
    longitude: float

    def is_near(self, other: "Position", tolerance: float = POSITION_TOLERANCE_DEG) -> bool:
        """Coarse bucketing: both axes within tolerance, not geodesic distance."""
        return (
            abs(self.latitude - other.latitude) <= tolerance
            and abs(self.longitude - other.longitude) <= tolerance
        )


class WindowState(str, Enum):
    """Which notification of a window rule is currently asserted."""

    UNSET = "unset"
    ASSERTED_IN = "asserted_in"
    ASSERTED_OUT = "asserted_out"


class RefreshStatus(str, Enum):
    """Result of a refresh decision."""

    NOT_NEEDED = "not_needed"
    REFRESHED = "refreshed"
    FAILED = "failed"


@dataclass(frozen=True)
class RefreshOutcome:
    """Refresh decision, carrying the new map or the failure reason."""

    status: RefreshStatus
    events: EventMap | None = None
    reason: str = ""

    @classmethod
    def not_needed(cls) -> "RefreshOutcome":
        return cls(status=RefreshStatus.NOT_NEEDED)

    @classmethod
    def refreshed(cls, events: EventMap) -> "RefreshOutcome":
        return cls(status=RefreshStatus.REFRESHED, events=events)

    @classmethod
    def failed(cls, reason: str) -> "RefreshOutcome":
        return cls(status=RefreshStatus.FAILED, reason=reason)


@dataclass(frozen=True)
class Delta:
    """Single path/value update handed to the publisher."""

    path: str
    value: Any


@dataclass(frozen=True)
class Notification:
    """Notification payload raised at a path."""

    state: str
    method: tuple[str, ...]
    message: str

    def as_dict(self) -> dict[str, Any]:
        return {"state": self.state, "method": list(self.method), "message": self.message}


@dataclass(frozen=True)
class WindowAction:
    """Transition of one window rule: clear one path, raise another."""

    rule_id: str
    state: WindowState
    clear_path: str | None = None
    raise_path: str | None = None
    notification: Notification | None = None

    def deltas(self) -> list[Delta]:
        deltas: list[Delta] = []
        if self.clear_path:
            deltas.append(Delta(path=self.clear_path, value=None))
        if self.raise_path and self.notification:
            deltas.append(Delta(path=self.raise_path, value=self.notification.as_dict()))
        return deltas


@dataclass(frozen=True)
class SampleResult:
    """Outcome of processing one position sample."""

    refresh: RefreshOutcome
    published_events: dict[str, datetime] | None = None
    actions: list[WindowAction] = field(default_factory=list)

    def deltas(self) -> list[Delta]:
        """Event deltas first, then notification deltas in rule order."""
        deltas: list[Delta] = []
        for path, value in (self.published_events or {}).items():
            deltas.append(Delta(path=path, value=value.isoformat()))
        for action in self.actions:
            deltas.extend(action.deltas())
        return deltas

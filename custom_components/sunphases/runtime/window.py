"""Window rules: edge-triggered in-range / out-of-range notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import tzinfo

from .contracts import EventMap, Notification, WindowAction, WindowState
from .expression import evaluate_expression


@dataclass(frozen=True)
class NotificationSpec:
    """Notification raised when a rule enters one side of its window."""

    key: str
    state: str = "normal"
    method: tuple[str, ...] = ()


@dataclass(frozen=True)
class WindowRuleConfig:
    rule_id: str
    low: str
    high: str
    in_range: NotificationSpec | None = None
    out_range: NotificationSpec | None = None


def notification_path(root: str, key: str) -> str:
    return f"notifications.{root}.{key}"


def next_state(state: WindowState, in_range: bool) -> WindowState | None:
    """Return the state to assert, or None when it is already asserted."""
    target = WindowState.ASSERTED_IN if in_range else WindowState.ASSERTED_OUT
    if state == target:
        return None
    return target


@dataclass
class WindowRule:
    """One configured window with its hysteresis memory."""

    config: WindowRuleConfig
    root: str
    state: WindowState = field(default=WindowState.UNSET)

    @property
    def rule_id(self) -> str:
        return self.config.rule_id

    def in_range(self, now_seconds: int, events: EventMap, tz: tzinfo) -> bool:
        """Exclusive on both ends: the boundary instants are out of range."""
        low = evaluate_expression(self.config.low, events, tz)
        high = evaluate_expression(self.config.high, events, tz)
        return low < now_seconds < high

    def evaluate(self, now_seconds: int, events: EventMap, tz: tzinfo) -> WindowAction | None:
        in_range = self.in_range(now_seconds, events, tz)
        target = next_state(self.state, in_range)
        if target is None:
            return None

        if in_range:
            raised, cleared = self.config.in_range, self.config.out_range
            message = f"Between {self.config.low} and {self.config.high}."
        else:
            raised, cleared = self.config.out_range, self.config.in_range
            message = f"Outside {self.config.low} and {self.config.high}."

        action = WindowAction(
            rule_id=self.rule_id,
            state=target,
            clear_path=notification_path(self.root, cleared.key) if cleared else None,
            raise_path=notification_path(self.root, raised.key) if raised else None,
            notification=(
                Notification(state=raised.state, method=tuple(raised.method), message=message)
                if raised
                else None
            ),
        )
        self.state = target
        return action

"""Sample snapshot models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from .contracts import SampleResult


@dataclass(frozen=True)
class SampleSnapshot:
    """Summary of the last processed position sample."""

    ts: str
    latitude: float | None
    longitude: float | None
    refresh_status: str
    refresh_reason: str
    published_events: int
    actions: list[str]
    notes: str | None = None

    @classmethod
    def empty(cls) -> "SampleSnapshot":
        now = datetime.now(timezone.utc).isoformat()
        return cls(
            ts=now,
            latitude=None,
            longitude=None,
            refresh_status="none",
            refresh_reason="",
            published_events=0,
            actions=[],
            notes=None,
        )

    @classmethod
    def from_result(
        cls, result: SampleResult, latitude: float, longitude: float, now: datetime, reason: str
    ) -> "SampleSnapshot":
        return cls(
            ts=now.isoformat(),
            latitude=latitude,
            longitude=longitude,
            refresh_status=result.refresh.status.value,
            refresh_reason=result.refresh.reason,
            published_events=len(result.published_events or {}),
            actions=[f"{action.rule_id}:{action.state.value}" for action in result.actions],
            notes=f"reason={reason}",
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

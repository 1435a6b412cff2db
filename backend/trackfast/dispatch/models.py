"""
Dispatch data model — the event handed to the Dispatcher and the
per-provider outcomes it reports back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


# ═══════════════════════════════════════════════════════════
#  TrackingEvent
# ═══════════════════════════════════════════════════════════

@dataclass
class TrackingEvent:
    """
    A validated event ready for fan-out.

    Owned by the caller; the Dispatcher only reads it.

    Args:
        event_name: Schema event name (unsanitised).
        properties: Normalized properties from the Validator.
        timestamp: When the event happened (defaults to now, UTC).
        user_id: Correlated user, if known.
        validated: True when the event carried a verified trust marker
            or was validated in-process.
    """

    event_name: str
    properties: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    validated: bool = False

    @property
    def distinct_id(self) -> str:
        """Best available identity for providers that require one."""
        if self.user_id:
            return self.user_id
        user_prop = self.properties.get("userId")
        if isinstance(user_prop, str) and user_prop:
            return user_prop
        return "anonymous"


# ═══════════════════════════════════════════════════════════
#  ProviderOutcome / DispatchReport
# ═══════════════════════════════════════════════════════════

@dataclass
class ProviderOutcome:
    """Result of one provider delivery attempt."""

    provider_id: str
    succeeded: bool
    error_detail: str | None = None
    latency_ms: int = 0
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "succeeded": self.succeeded,
            "error_detail": self.error_detail,
            "latency_ms": self.latency_ms,
            "status_code": self.status_code,
        }


@dataclass
class DispatchReport:
    """Aggregated outcome of one fan-out, in configured provider order."""

    outcomes: list[ProviderOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> list[ProviderOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def to_summary_dict(self) -> dict[str, int]:
        """Counts as exposed in the track response."""
        return {
            "attempted": self.attempted,
            "successful": self.succeeded,
            "failed": len(self.failed),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.to_summary_dict(),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }

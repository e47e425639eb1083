"""Notification events emitted by the controller."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Literal, Optional, Protocol

from ..signals.signal_types import Opportunity, ToolUsage

EventKind = Literal[
    "startup",
    "analysis_start",
    "cooldown",
    "rejection",
    "watch_triggered",
    "followup",
    "signal",
    "no_opportunity",
    "error",
    "tool_usage",
]


@dataclass(frozen=True)
class NotificationEvent:
    kind: EventKind
    symbol: str = ""
    message: str = ""
    opportunity: Optional[Opportunity] = None
    trigger_info: str = ""
    remaining: Optional[timedelta] = None
    signal_id: str = ""
    symbols: tuple[str, ...] = ()
    tools: tuple[ToolUsage, ...] = ()


class Notifier(Protocol):
    def notify(self, event: NotificationEvent) -> None:
        """Deliver an event on a best-effort basis."""
        ...

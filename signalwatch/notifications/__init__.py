"""Outbound notifications for monitor events."""

from .events import EventKind, NotificationEvent, Notifier
from .formatter import format_event, format_opportunity, strip_tags
from .telegram_notifier import LoggingNotifier, TelegramNotifier

__all__ = [
    "EventKind",
    "LoggingNotifier",
    "NotificationEvent",
    "Notifier",
    "TelegramNotifier",
    "format_event",
    "format_opportunity",
    "strip_tags",
]

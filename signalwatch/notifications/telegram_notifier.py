"""Notification sinks: Telegram Bot API and a logging fallback."""

from __future__ import annotations

import logging

import requests

from ..errors import NotifyError
from .events import NotificationEvent
from .formatter import format_event, strip_tags

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Send events to one Telegram chat as HTML messages.

    Delivery is best-effort: when Telegram rejects the HTML markup the
    message is retried once as plain text, and any remaining failure is
    logged and swallowed.
    """

    API_URL = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(
        self,
        token: str,
        chat_id: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.token = token
        self.chat_id = chat_id
        self.session = session or requests.Session()
        self.timeout = timeout

    def notify(self, event: NotificationEvent) -> None:
        message = format_event(event)
        try:
            self._send(message, parse_mode="HTML")
        except NotifyError as exc:
            if "parse" not in str(exc).lower():
                logger.error("Telegram send failed (%s): %s", event.kind, exc)
                return
            try:
                self._send(strip_tags(message), parse_mode=None)
            except NotifyError as retry_exc:
                logger.error("Telegram plain-text retry failed (%s): %s", event.kind, retry_exc)

    def _send(self, text: str, parse_mode: str | None) -> None:
        payload: dict = {
            "chat_id": self.chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode
        try:
            resp = self.session.post(
                self.API_URL.format(token=self.token),
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise NotifyError(f"Telegram request failed: {type(exc).__name__}") from exc

        if resp.status_code != 200:
            try:
                description = resp.json().get("description", "")
            except ValueError:
                description = resp.text[:200]
            raise NotifyError(f"Telegram HTTP {resp.status_code}: {description}")


class LoggingNotifier:
    """Write events to the log; used when Telegram is not configured."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def notify(self, event: NotificationEvent) -> None:
        logger.log(self.level, "[%s] %s", event.kind, strip_tags(format_event(event)))

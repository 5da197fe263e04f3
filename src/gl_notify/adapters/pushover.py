"""Pushover adapter for mobile push notifications."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..exceptions import ConfigurationError, NotificationError
from ..models import Notification, NotificationKind, PushoverChannel
from ._http import HttpNotifier, perform

logger = structlog.get_logger(__name__)

PUSHOVER_API_URL = "https://api.pushover.net/1/messages.json"
APP_TOKEN_LENGTH = 30

KIND_GLYPHS: dict[NotificationKind, str] = {
    NotificationKind.INFO: "ℹ️",
    NotificationKind.WARNING: "⚠️",
    NotificationKind.ERROR: "❌",
    NotificationKind.SUCCESS: "✅",
}


class PushoverAdapter(HttpNotifier):
    """Posts every PushoverChannel of a notification to the Pushover messages API."""

    def __init__(
        self,
        app_token: str,
        client: httpx.AsyncClient | None = None,
        *,
        api_url: str = PUSHOVER_API_URL,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client, timeout)
        self._app_token = app_token
        self._api_url = api_url

    @property
    def name(self) -> str:
        return PushoverChannel.adapter

    def build_payload(self, notification: Notification, channel: PushoverChannel) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "token": self._app_token,
            "user": channel.user_key,
            "title": f"{KIND_GLYPHS[notification.kind]} {notification.title}",
            "message": notification.body,
        }
        if channel.device is not None:
            payload["device"] = channel.device
        if channel.priority is not None:
            payload["priority"] = channel.priority
        if channel.sound is not None:
            payload["sound"] = channel.sound
        return payload

    async def send(self, notification: Notification) -> None:
        for channel in notification.channels:
            if not isinstance(channel, PushoverChannel):
                continue
            log = logger.bind(notification_id=str(notification.id), user_key=channel.user_key)
            log.debug("Sending Pushover notification")
            try:
                await perform(
                    self._client.post(self._api_url, json=self.build_payload(notification, channel)),
                    "pushover",
                )
            except NotificationError as e:
                log.warning("Pushover delivery failed", error=str(e))
                raise
            log.info("Pushover notification sent")

    async def health_check(self) -> None:
        """Validate the application token format without calling the API."""
        token = self._app_token
        if len(token) != APP_TOKEN_LENGTH or not token.isascii() or not token.isalnum():
            raise ConfigurationError(
                f"Invalid Pushover app token format: expected {APP_TOKEN_LENGTH} alphanumeric characters"
            )

"""Webhook adapter: delivers notifications as JSON HTTP requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from ..exceptions import NotificationError
from ..models import Notification, WebhookChannel
from ._http import HttpNotifier, perform

logger = structlog.get_logger(__name__)

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class WebhookAdapter(HttpNotifier):
    """Sends ``{"id", "title", "body"}`` to every WebhookChannel of a notification."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 10.0,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self._default_headers = dict(headers or {})

    @property
    def name(self) -> str:
        return WebhookChannel.adapter

    def build_payload(self, notification: Notification) -> dict[str, Any]:
        return {
            "id": str(notification.id),
            "title": notification.title,
            "body": notification.body,
        }

    def _build_headers(self, channel: WebhookChannel) -> dict[str, str]:
        headers = {"Content-Type": "application/json", **self._default_headers}
        if channel.headers:
            headers.update(channel.headers)
        return headers

    async def send(self, notification: Notification) -> None:
        for channel in notification.channels:
            if not isinstance(channel, WebhookChannel):
                continue
            method = channel.http_method
            log = logger.bind(
                notification_id=str(notification.id),
                webhook_url=channel.url,
                method=method,
            )
            log.debug("Sending webhook notification")

            kwargs: dict[str, Any] = {"headers": self._build_headers(channel)}
            if method in _BODY_METHODS:
                kwargs["json"] = self.build_payload(notification)
            try:
                resp = await perform(
                    self._client.request(method, channel.url, **kwargs),
                    f"webhook {channel.url}",
                )
            except NotificationError as e:
                log.error("Webhook request failed", error=str(e))
                raise
            log.debug("Webhook notification sent", status=resp.status_code)

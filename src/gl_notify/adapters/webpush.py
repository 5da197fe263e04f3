"""WebPush adapter for browser push notifications."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog
from cryptography.hazmat.primitives.asymmetric import ec

from ..exceptions import ConfigurationError, NotificationError, NotificationErrorCodes
from ..models import Notification, WebPushChannel
from ._http import HttpNotifier, perform
from .webpush_crypto import encrypt_payload, load_vapid_key, vapid_authorization

logger = structlog.get_logger(__name__)

CONTENT_ENCODING = "aes128gcm"


class WebPushAdapter(HttpNotifier):
    """Encrypts the notification for each subscription and posts it to its push service.

    ``vapid_private_key`` is the application server key, either PEM or the
    URL-safe base64 form produced by the usual VAPID tooling. Without it
    messages are sent unsigned, which most push services reject.
    """

    def __init__(
        self,
        vapid_private_key: str = "",
        client: httpx.AsyncClient | None = None,
        *,
        vapid_subject: str = "mailto:alerts@example.com",
        ttl: int = 86400,
        icon: str = "/icon-192x192.png",
        badge: str = "/badge-72x72.png",
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client, timeout)
        self._vapid_private_key = vapid_private_key
        self._vapid_subject = vapid_subject
        self._ttl = ttl
        self._icon = icon
        self._badge = badge
        self._vapid_key: ec.EllipticCurvePrivateKey | None = None

    @property
    def name(self) -> str:
        return WebPushChannel.adapter

    def build_payload(self, notification: Notification) -> dict[str, Any]:
        return {
            "title": notification.title,
            "body": notification.body,
            "icon": self._icon,
            "badge": self._badge,
            "data": {
                "id": str(notification.id),
                "kind": str(notification.kind),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "metadata": dict(notification.metadata),
            },
        }

    def _load_vapid_key(self) -> ec.EllipticCurvePrivateKey:
        if self._vapid_key is None:
            if not self._vapid_private_key:
                raise ConfigurationError("VAPID private key not configured")
            try:
                self._vapid_key = load_vapid_key(self._vapid_private_key)
            except ValueError as e:
                raise ConfigurationError(f"Invalid VAPID private key: {e}", cause=e) from e
        return self._vapid_key

    def _encrypt(self, channel: WebPushChannel, data: bytes) -> bytes:
        try:
            return encrypt_payload(data, channel.p256dh, channel.auth)
        except ValueError as e:
            raise NotificationError(
                code=NotificationErrorCodes.PAYLOAD_ERROR,
                message=f"Failed to encrypt push payload for {channel.endpoint}: {e}",
                cause=e,
            ) from e

    def _build_headers(self, channel: WebPushChannel) -> dict[str, str]:
        headers = {
            "TTL": str(self._ttl),
            "Content-Encoding": CONTENT_ENCODING,
            "Content-Type": "application/octet-stream",
        }
        if self._vapid_private_key:
            headers["Authorization"] = vapid_authorization(
                self._load_vapid_key(), channel.endpoint, self._vapid_subject
            )
        return headers

    async def send(self, notification: Notification) -> None:
        data: bytes | None = None
        for channel in notification.channels:
            if not isinstance(channel, WebPushChannel):
                continue
            if data is None:
                data = json.dumps(self.build_payload(notification)).encode("utf-8")
            log = logger.bind(notification_id=str(notification.id), endpoint=channel.endpoint)
            log.debug("Sending WebPush notification")
            try:
                body = self._encrypt(channel, data)
                resp = await perform(
                    self._client.post(channel.endpoint, content=body, headers=self._build_headers(channel)),
                    f"webpush {channel.endpoint}",
                )
            except NotificationError as e:
                log.error("WebPush delivery failed", error=str(e))
                raise
            log.debug("WebPush notification sent", status=resp.status_code)

    async def health_check(self) -> None:
        """Check that the VAPID key is configured and parses."""
        self._load_vapid_key()

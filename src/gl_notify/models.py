"""Notification data model."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType
from typing import ClassVar, Union

from .exceptions import DispatchError, NotificationError


class NotificationKind(StrEnum):
    """Presentation hint for a notification. Never affects delivery."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


def _frozen_mapping(value: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class WebhookChannel:
    """HTTP webhook target."""

    adapter: ClassVar[str] = "webhook"

    url: str
    headers: Mapping[str, str] | None = None
    method: str | None = None

    def __post_init__(self) -> None:
        if self.headers is not None:
            object.__setattr__(self, "headers", _frozen_mapping(self.headers))

    @property
    def http_method(self) -> str:
        return (self.method or "POST").upper()


@dataclass(frozen=True)
class PushoverChannel:
    """Pushover recipient."""

    adapter: ClassVar[str] = "pushover"

    user_key: str
    device: str | None = None
    priority: int | None = None
    sound: str | None = None


@dataclass(frozen=True)
class WebPushChannel:
    """Browser push subscription.

    ``p256dh`` is the client's public key and ``auth`` the client auth
    secret, both URL-safe base64 as handed out by ``PushSubscription``.
    """

    adapter: ClassVar[str] = "webpush"

    endpoint: str
    p256dh: str
    auth: str


NotificationChannel = Union[WebhookChannel, PushoverChannel, WebPushChannel]


@dataclass(frozen=True)
class Notification:
    """What to send and where. Immutable once constructed."""

    kind: NotificationKind
    title: str
    body: str
    channels: tuple[NotificationChannel, ...] = ()
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    attachments: tuple[str, ...] = ()
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "channels", tuple(self.channels))
        object.__setattr__(self, "attachments", tuple(self.attachments))
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))

    def with_attachment(self, url: str) -> Notification:
        """Return a copy with ``url`` appended to the attachments."""
        return replace(self, attachments=(*self.attachments, url))

    def with_metadata(self, key: str, value: str) -> Notification:
        """Return a copy with ``key`` set in the metadata."""
        return replace(self, metadata={**self.metadata, key: value})


@dataclass
class AdapterOutcome:
    """Result of one adapter invocation against one notification."""

    adapter: str
    error: NotificationError | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DispatchResult:
    """Aggregated per-adapter outcomes of a single fan-out dispatch."""

    notification_id: uuid.UUID
    outcomes: dict[str, AdapterOutcome] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes.values())

    @property
    def succeeded(self) -> list[str]:
        return [name for name, o in self.outcomes.items() if o.ok]

    @property
    def failed(self) -> list[str]:
        return [name for name, o in self.outcomes.items() if not o.ok]

    @property
    def failures(self) -> dict[str, NotificationError]:
        return {name: o.error for name, o in self.outcomes.items() if o.error is not None}

    def raise_for_failures(self) -> None:
        """Raise ``DispatchError`` if any adapter failed."""
        if not self.ok:
            raise DispatchError(self.failures, self.succeeded)

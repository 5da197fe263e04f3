"""Notifier abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import Notification


class Notifier(ABC):
    """Delivers a Notification over one channel kind.

    Implementations must be safe for concurrent use: the same instance is
    shared by every dispatch in the process.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier used for registry lookup, logging and breaker keying."""
        ...

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver every channel entry addressed to this notifier.

        Raises:
            NotificationError: the delivery failed.
        """
        ...

    async def health_check(self) -> None:
        """Quick self-test. Must not deliver anything."""
        return None

    async def aclose(self) -> None:
        """Release resources owned by this notifier."""
        return None

"""Retry decorator with exponential backoff."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from .exceptions import RetryExhaustedError, is_retryable
from .metrics import notification_retries_total
from .models import Notification
from .notifier import Notifier

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy. Delays are in seconds."""

    max_retries: int = 5
    initial_delay: float = 0.1
    max_delay: float = 30.0
    multiplier: float = 2.0

    def compute_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-indexed). No jitter."""
        return min(self.initial_delay * (self.multiplier**attempt), self.max_delay)


class RetryNotifier(Notifier):
    """Wraps a notifier and retries failed sends.

    Non-retryable errors (see ``is_retryable``) are raised immediately. Once
    ``max_retries`` attempts have failed a ``RetryExhaustedError`` carrying
    the last error is raised. Health checks are never retried.
    """

    def __init__(
        self,
        inner: Notifier,
        config: RetryConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._inner = inner
        self._config = config or RetryConfig()
        self._sleep = sleep

    @property
    def inner(self) -> Notifier:
        return self._inner

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._inner.name

    async def send(self, notification: Notification) -> None:
        max_attempts = max(self._config.max_retries, 1)
        log = logger.bind(notification_id=str(notification.id), adapter=self.name)
        attempt = 0
        while True:
            try:
                await self._inner.send(notification)
            except Exception as e:
                attempt += 1
                if not is_retryable(e):
                    log.warning("Non-retryable error, giving up", attempt=attempt, error=str(e))
                    raise
                if attempt >= max_attempts:
                    log.warning(
                        "Notification failed after all retry attempts",
                        attempts=attempt,
                        error=str(e),
                    )
                    raise RetryExhaustedError(self.name, attempt, e) from e
                delay = self._config.compute_delay(attempt - 1)
                log.debug(
                    "Notification failed, retrying after delay",
                    attempt=attempt,
                    delay=delay,
                    error=str(e),
                )
                notification_retries_total.add(1, {"adapter": self.name})
                await self._sleep(delay)
                continue
            if attempt > 0:
                log.debug("Notification sent after retry", attempt=attempt + 1)
            return

    async def health_check(self) -> None:
        await self._inner.health_check()

    async def aclose(self) -> None:
        await self._inner.aclose()

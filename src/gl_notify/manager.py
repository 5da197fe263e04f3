"""NotificationManager: registry and concurrent fan-out dispatch."""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable
from types import TracebackType

import structlog

from .exceptions import DispatchTimeoutError, NotificationError, NotificationErrorCodes
from .metrics import notification_deliveries_total, notification_delivery_duration_seconds
from .models import AdapterOutcome, DispatchResult, Notification
from .notifier import Notifier

logger = structlog.get_logger(__name__)


class NotificationManager:
    """Registry of named notifiers with join-all fan-out dispatch.

    Register every notifier at startup; ``send`` then runs one task per
    registered notifier and waits for all of them. A failing or slow notifier
    never prevents the others from completing.
    """

    def __init__(self) -> None:
        self._notifiers: dict[str, Notifier] = {}

    def register(self, name: str, notifier: Notifier) -> None:
        """Register ``notifier`` under ``name``. The last registration wins."""
        if name in self._notifiers:
            logger.info("Replacing registered notifier", adapter=name)
        self._notifiers[name] = notifier

    def get(self, name: str) -> Notifier | None:
        return self._notifiers.get(name)

    @property
    def adapters(self) -> list[str]:
        """Registered adapter names."""
        return list(self._notifiers)

    async def send(
        self,
        notification: Notification,
        *,
        timeout: float | None = None,
    ) -> DispatchResult:
        """Dispatch ``notification`` to every registered notifier concurrently.

        Args:
            notification: what to deliver
            timeout: optional per-notifier limit in seconds; a notifier that
                exceeds it is cancelled and reported as DispatchTimeoutError

        Returns:
            DispatchResult with one AdapterOutcome per registered notifier
        """
        log = logger.bind(notification_id=str(notification.id))
        log.debug("Dispatching notification", adapters=self.adapters)
        notifiers = list(self._notifiers.items())
        outcomes = await asyncio.gather(
            *(
                self._run_unit(name, functools.partial(notifier.send, notification), timeout)
                for name, notifier in notifiers
            )
        )
        result = DispatchResult(
            notification_id=notification.id,
            outcomes={o.adapter: o for o in outcomes},
        )
        for outcome in outcomes:
            attrs = {"adapter": outcome.adapter, "outcome": "success" if outcome.ok else "failure"}
            notification_deliveries_total.add(1, attrs)
            notification_delivery_duration_seconds.record(outcome.elapsed, attrs)
        if result.ok:
            log.info("Notification dispatched", succeeded=result.succeeded)
        else:
            log.warning(
                "Notification dispatch had failures",
                succeeded=result.succeeded,
                failed={name: str(err) for name, err in result.failures.items()},
            )
        return result

    async def health_check_all(
        self,
        *,
        timeout: float | None = None,
    ) -> dict[str, AdapterOutcome]:
        """Run every notifier's health check concurrently."""
        notifiers = list(self._notifiers.items())
        outcomes = await asyncio.gather(
            *(
                self._run_unit(name, notifier.health_check, timeout)
                for name, notifier in notifiers
            )
        )
        return {o.adapter: o for o in outcomes}

    async def aclose(self) -> None:
        """Close every registered notifier."""
        for name, notifier in self._notifiers.items():
            try:
                await notifier.aclose()
            except Exception as e:
                logger.warning("Failed to close notifier", adapter=name, error=str(e))

    async def __aenter__(self) -> NotificationManager:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @staticmethod
    async def _run_unit(
        name: str,
        call: Callable[[], Awaitable[None]],
        timeout: float | None,
    ) -> AdapterOutcome:
        started = time.monotonic()
        error: NotificationError | None = None
        try:
            try:
                async with asyncio.timeout(timeout) as scope:
                    await call()
            except TimeoutError as e:
                if not scope.expired():
                    raise
                raise DispatchTimeoutError(name, timeout) from e
        except NotificationError as e:
            error = e
        except Exception as e:
            error = NotificationError(
                code=NotificationErrorCodes.UNEXPECTED_ERROR,
                message=f"{name}: {e}",
                cause=e,
            )
        return AdapterOutcome(adapter=name, error=error, elapsed=time.monotonic() - started)

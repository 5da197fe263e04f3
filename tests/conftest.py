"""Shared fakes for gl_notify tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest
from gl_notify import Notification, NotificationKind, Notifier
from gl_notify.exceptions import NotificationError
from gl_notify.models import NotificationChannel


class FakeNotifier(Notifier):
    """Notifier whose outcome is scripted per call.

    ``errors`` are raised by successive calls; once they run out the notifier
    fails with ``always`` if set, otherwise succeeds.
    """

    def __init__(
        self,
        name: str = "fake",
        *,
        errors: Sequence[BaseException] = (),
        always: BaseException | None = None,
        delay: float = 0.0,
        health_error: NotificationError | None = None,
    ) -> None:
        self._name = name
        self._errors = list(errors)
        self._always = always
        self._delay = delay
        self._health_error = health_error
        self.calls = 0
        self.health_calls = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    async def send(self, notification: Notification) -> None:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._errors:
            raise self._errors.pop(0)
        if self._always is not None:
            raise self._always

    async def health_check(self) -> None:
        self.health_calls += 1
        if self._health_error is not None:
            raise self._health_error

    async def aclose(self) -> None:
        self.closed = True


class BlockingNotifier(Notifier):
    """Notifier that waits until ``release`` is set, then succeeds or fails."""

    def __init__(self, name: str = "blocking", error: NotificationError | None = None) -> None:
        self._name = name
        self._error = error
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def send(self, notification: Notification) -> None:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        if self._error is not None:
            raise self._error


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_notification(
    *channels: NotificationChannel,
    kind: NotificationKind = NotificationKind.INFO,
) -> Notification:
    return Notification(kind=kind, title="Motion detected", body="Camera 3 saw movement", channels=channels)


@pytest.fixture
def notification() -> Notification:
    return make_notification()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()

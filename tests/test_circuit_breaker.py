"""CircuitBreaker and CircuitBreakerNotifier unit tests."""

import asyncio

import pytest
from conftest import BlockingNotifier, FakeClock, FakeNotifier
from gl_notify import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerNotifier,
    CircuitState,
    Notification,
)
from gl_notify.circuit_breaker import counts_as_failure
from gl_notify.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    RetryExhaustedError,
    ServiceError,
    TransportError,
)


def _breaker(clock: FakeClock, threshold: int = 3, cooldown: float = 30.0) -> CircuitBreaker:
    return CircuitBreaker(
        "fake", CircuitBreakerConfig(failure_threshold=threshold, cooldown=cooldown), clock=clock
    )


def _guarded(inner, clock: FakeClock, threshold: int = 3, cooldown: float = 30.0) -> CircuitBreakerNotifier:
    return CircuitBreakerNotifier(inner, breaker=_breaker(clock, threshold, cooldown))


def test_initial_state_is_closed(clock: FakeClock) -> None:
    cb = _breaker(clock)
    assert cb.state == CircuitState.CLOSED
    assert cb.failure_count == 0


def test_opens_at_threshold(clock: FakeClock) -> None:
    cb = _breaker(clock, threshold=3)
    cb.record_failure()
    cb.record_failure()
    assert cb.state == CircuitState.CLOSED
    cb.record_failure()
    assert cb.state == CircuitState.OPEN


def test_success_resets_failure_count(clock: FakeClock) -> None:
    cb = _breaker(clock, threshold=3)
    cb.record_failure()
    cb.record_failure()
    cb.record_success()
    assert cb.failure_count == 0
    cb.record_failure()
    cb.record_failure()
    assert cb.state == CircuitState.CLOSED


def test_open_rejects_with_remaining_time(clock: FakeClock) -> None:
    cb = _breaker(clock, threshold=1, cooldown=30.0)
    cb.record_failure()
    clock.advance(10.0)
    with pytest.raises(CircuitBreakerOpenError) as exc_info:
        cb.acquire()
    assert exc_info.value.adapter == "fake"
    assert exc_info.value.remaining_seconds == pytest.approx(20.0)


def test_half_open_after_cooldown(clock: FakeClock) -> None:
    cb = _breaker(clock, threshold=1, cooldown=30.0)
    cb.record_failure()
    clock.advance(29.9)
    assert cb.state == CircuitState.OPEN
    clock.advance(0.1)
    assert cb.state == CircuitState.HALF_OPEN


def test_half_open_admits_single_trial(clock: FakeClock) -> None:
    cb = _breaker(clock, threshold=1, cooldown=5.0)
    cb.record_failure()
    clock.advance(5.0)
    permit = cb.acquire()
    assert permit.trial
    with pytest.raises(CircuitBreakerOpenError):
        cb.acquire()
    cb.release(permit)
    assert cb.acquire().trial


def test_half_open_success_closes(clock: FakeClock) -> None:
    cb = _breaker(clock, threshold=1, cooldown=5.0)
    cb.record_failure()
    clock.advance(5.0)
    cb.record_success(cb.acquire())
    assert cb.state == CircuitState.CLOSED
    assert cb.failure_count == 0


def test_half_open_failure_reopens_with_fresh_cooldown(clock: FakeClock) -> None:
    cb = _breaker(clock, threshold=1, cooldown=5.0)
    cb.record_failure()
    clock.advance(5.0)
    cb.record_failure(cb.acquire())
    assert cb.state == CircuitState.OPEN
    clock.advance(4.0)
    assert cb.state == CircuitState.OPEN
    clock.advance(1.0)
    assert cb.state == CircuitState.HALF_OPEN


def test_stale_permit_does_not_drive_half_open(clock: FakeClock) -> None:
    """Outcomes of calls admitted before the circuit opened are ignored."""
    cb = _breaker(clock, threshold=1, cooldown=5.0)
    early = cb.acquire()
    cb.record_failure()
    clock.advance(5.0)
    trial = cb.acquire()

    cb.release(early)
    with pytest.raises(CircuitBreakerOpenError):
        cb.acquire()
    cb.record_success(early)
    assert cb.state == CircuitState.HALF_OPEN
    cb.record_failure(early)
    assert cb.state == CircuitState.HALF_OPEN

    cb.record_success(trial)
    assert cb.state == CircuitState.CLOSED


async def test_open_circuit_fast_fails_without_calling_inner(
    notification: Notification, clock: FakeClock
) -> None:
    inner = FakeNotifier(always=ServiceError(status=500, body="down"))
    notifier = _guarded(inner, clock, threshold=2)
    for _ in range(2):
        with pytest.raises(ServiceError):
            await notifier.send(notification)
    assert notifier.breaker.state == CircuitState.OPEN

    with pytest.raises(CircuitBreakerOpenError):
        await notifier.send(notification)
    assert inner.calls == 2


async def test_client_errors_do_not_trip_breaker(notification: Notification, clock: FakeClock) -> None:
    """A 4xx means the channel answered; the breaker stays closed."""
    inner = FakeNotifier(always=ServiceError(status=400, body="bad request"))
    notifier = _guarded(inner, clock, threshold=2)
    for _ in range(3):
        with pytest.raises(ServiceError):
            await notifier.send(notification)
    assert notifier.breaker.state == CircuitState.CLOSED
    assert notifier.breaker.failure_count == 0
    assert inner.calls == 3


async def test_retry_exhaustion_trips_breaker(notification: Notification, clock: FakeClock) -> None:
    inner = FakeNotifier(always=RetryExhaustedError("fake", 5, ServiceError(status=503, body="")))
    notifier = _guarded(inner, clock, threshold=2)
    for _ in range(2):
        with pytest.raises(RetryExhaustedError):
            await notifier.send(notification)
    assert notifier.breaker.state == CircuitState.OPEN


async def test_client_error_during_trial_frees_the_slot(
    notification: Notification, clock: FakeClock
) -> None:
    inner = FakeNotifier(errors=[ServiceError(status=404, body="gone")])
    notifier = _guarded(inner, clock, threshold=1, cooldown=1.0)
    notifier.breaker.record_failure()
    clock.advance(1.0)
    with pytest.raises(ServiceError):
        await notifier.send(notification)
    assert notifier.breaker.state == CircuitState.HALF_OPEN
    await notifier.send(notification)
    assert notifier.breaker.state == CircuitState.CLOSED


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (TransportError(code="TIMEOUT", message="t"), True),
        (ServiceError(status=500, body=""), True),
        (ServiceError(status=400, body=""), False),
        (ServiceError(status=429, body=""), False),
        (RetryExhaustedError("fake", 3, ServiceError(status=502, body="")), True),
    ],
)
def test_counts_as_failure(error: Exception, expected: bool) -> None:
    assert counts_as_failure(error) is expected


async def test_recovers_after_cooldown(notification: Notification, clock: FakeClock) -> None:
    inner = FakeNotifier(errors=[TransportError(code="TIMEOUT", message="t")])
    notifier = _guarded(inner, clock, threshold=1, cooldown=10.0)
    with pytest.raises(TransportError):
        await notifier.send(notification)
    with pytest.raises(CircuitBreakerOpenError):
        await notifier.send(notification)

    clock.advance(10.0)
    await notifier.send(notification)
    assert notifier.breaker.state == CircuitState.CLOSED
    assert inner.calls == 2


async def test_concurrent_callers_rejected_during_trial(
    notification: Notification, clock: FakeClock
) -> None:
    inner = BlockingNotifier()
    notifier = _guarded(inner, clock, threshold=1, cooldown=1.0)
    notifier.breaker.record_failure()
    clock.advance(1.0)

    trial = asyncio.create_task(notifier.send(notification))
    await inner.started.wait()
    with pytest.raises(CircuitBreakerOpenError):
        await notifier.send(notification)
    inner.release.set()
    await trial

    assert inner.calls == 1
    assert notifier.breaker.state == CircuitState.CLOSED


async def test_cancelled_trial_does_not_count(notification: Notification, clock: FakeClock) -> None:
    inner = BlockingNotifier()
    notifier = _guarded(inner, clock, threshold=1, cooldown=1.0)
    notifier.breaker.record_failure()
    clock.advance(1.0)
    failures = notifier.breaker.failure_count

    trial = asyncio.create_task(notifier.send(notification))
    await inner.started.wait()
    trial.cancel()
    with pytest.raises(asyncio.CancelledError):
        await trial

    assert notifier.breaker.state == CircuitState.HALF_OPEN
    assert notifier.breaker.failure_count == failures
    notifier.breaker.acquire()


async def test_cancelled_closed_call_keeps_trial_exclusive(
    notification: Notification, clock: FakeClock
) -> None:
    """A call admitted while CLOSED and cancelled during the trial frees no slot."""
    inner = BlockingNotifier()
    notifier = _guarded(inner, clock, threshold=1, cooldown=1.0)

    early = asyncio.create_task(notifier.send(notification))
    await inner.started.wait()
    notifier.breaker.record_failure()
    clock.advance(1.0)

    trial = asyncio.create_task(notifier.send(notification))
    while inner.calls < 2:
        await asyncio.sleep(0)
    early.cancel()
    with pytest.raises(asyncio.CancelledError):
        await early

    with pytest.raises(CircuitBreakerOpenError):
        await notifier.send(notification)
    assert inner.calls == 2

    inner.release.set()
    await trial
    assert notifier.breaker.state == CircuitState.CLOSED


async def test_health_check_bypasses_breaker(clock: FakeClock) -> None:
    inner = FakeNotifier(health_error=ConfigurationError("bad key"))
    notifier = _guarded(inner, clock, threshold=1)
    for _ in range(3):
        with pytest.raises(ConfigurationError):
            await notifier.health_check()
    assert notifier.breaker.state == CircuitState.CLOSED
    assert inner.health_calls == 3


async def test_name_and_close_delegate() -> None:
    inner = FakeNotifier(name="webhook")
    notifier = CircuitBreakerNotifier(inner)
    assert notifier.name == "webhook"
    assert notifier.breaker.name == "webhook"
    await notifier.aclose()
    assert inner.closed

"""Circuit breaker pattern for notifiers."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from .exceptions import CircuitBreakerOpenError, RetryExhaustedError, is_retryable
from .metrics import circuit_breaker_transitions_total
from .models import Notification
from .notifier import Notifier

logger = structlog.get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration. ``cooldown`` is in seconds."""

    failure_threshold: int = 5
    cooldown: float = 60.0


@dataclass(frozen=True)
class Permit:
    """Admission ticket returned by ``CircuitBreaker.acquire``.

    ``generation`` is the breaker generation the call was admitted under;
    ``trial`` is set for the single call admitted while HALF_OPEN.
    """

    generation: int
    trial: bool = False


class CircuitBreaker:
    """Consecutive-failure circuit breaker.

    All transitions happen under a lock that is never held across an await,
    so one breaker can be shared by concurrent tasks (and threads). While
    HALF_OPEN exactly one trial call is admitted; other callers are rejected
    until the trial settles.

    Every state transition starts a new generation. Outcomes reported with a
    permit from an earlier generation are ignored, so a call admitted while
    CLOSED that settles after the circuit opened never drives the state.
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._generation = 0
        self._failure_count = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        """Current circuit state (may transition from OPEN to HALF_OPEN)."""
        with self._lock:
            self._refresh()
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    def acquire(self) -> Permit:
        """Admit a call or raise CircuitBreakerOpenError."""
        with self._lock:
            self._refresh()
            if self._state == CircuitState.OPEN:
                raise CircuitBreakerOpenError(self._name, self._remaining())
            if self._state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitBreakerOpenError(self._name, 0.0)
                self._trial_in_flight = True
                return Permit(self._generation, trial=True)
            return Permit(self._generation)

    def record_success(self, permit: Permit | None = None) -> None:
        """Record a successful call. Without a permit the current generation is assumed."""
        with self._lock:
            if not self._settle(permit):
                return
            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.CLOSED)
            elif self._state == CircuitState.CLOSED:
                self._failure_count = 0

    def record_failure(self, permit: Permit | None = None) -> None:
        """Record a failed call. Without a permit the current generation is assumed."""
        with self._lock:
            if not self._settle(permit):
                return
            if self._state == CircuitState.OPEN:
                return
            self._failure_count += 1
            if self._state == CircuitState.HALF_OPEN:
                self._open()
            elif self._failure_count >= self._config.failure_threshold:
                self._open()

    def release(self, permit: Permit) -> None:
        """Settle an admitted call without reporting an outcome."""
        with self._lock:
            self._settle(permit)

    def _settle(self, permit: Permit | None) -> bool:
        # True when the outcome belongs to the current generation
        if permit is None:
            return True
        if permit.trial and permit.generation == self._generation:
            self._trial_in_flight = False
        return permit.generation == self._generation

    def _open(self) -> None:
        self._opened_at = self._clock()
        self._transition(CircuitState.OPEN)

    def _refresh(self) -> None:
        if self._state == CircuitState.OPEN and self._remaining() <= 0.0:
            self._transition(CircuitState.HALF_OPEN)

    def _remaining(self) -> float:
        if self._opened_at is None:
            return 0.0
        return max(self._config.cooldown - (self._clock() - self._opened_at), 0.0)

    def _transition(self, state: CircuitState) -> None:
        previous = self._state
        self._state = state
        self._generation += 1
        self._trial_in_flight = False
        if state == CircuitState.CLOSED:
            self._failure_count = 0
        logger.info(
            "Circuit breaker state changed",
            adapter=self._name,
            previous=previous.value,
            state=state.value,
            failures=self._failure_count,
        )
        circuit_breaker_transitions_total.add(1, {"adapter": self._name, "state": state.value})


def counts_as_failure(error: BaseException) -> bool:
    """Whether an error that escaped the wrapped notifier should trip the breaker.

    Retryable errors and exhausted retries count. A 4xx means the channel
    answered, so a bad recipient never opens the circuit for everyone else.
    """
    return isinstance(error, RetryExhaustedError) or is_retryable(error)


class CircuitBreakerNotifier(Notifier):
    """Guards a notifier (normally a RetryNotifier) with a CircuitBreaker.

    Every outcome of the wrapped ``send`` is reported once, so retries inside
    the wrapped notifier do not count individually; see ``counts_as_failure``
    for which errors count. Health checks bypass the breaker entirely.
    """

    def __init__(
        self,
        inner: Notifier,
        config: CircuitBreakerConfig | None = None,
        *,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self._inner = inner
        self._breaker = breaker or CircuitBreaker(inner.name, config)

    @property
    def inner(self) -> Notifier:
        return self._inner

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def name(self) -> str:
        return self._inner.name

    async def send(self, notification: Notification) -> None:
        try:
            permit = self._breaker.acquire()
        except CircuitBreakerOpenError as e:
            logger.warning(
                "Circuit breaker is open, skipping notification",
                notification_id=str(notification.id),
                adapter=self.name,
                remaining=e.remaining_seconds,
            )
            raise

        settled = False
        try:
            await self._inner.send(notification)
            self._breaker.record_success(permit)
            settled = True
        except Exception as e:
            if counts_as_failure(e):
                self._breaker.record_failure(permit)
            else:
                self._breaker.release(permit)
            settled = True
            logger.warning(
                "Notification failed",
                notification_id=str(notification.id),
                adapter=self.name,
                error=str(e),
                circuit_state=self._breaker.state.value,
            )
            raise
        finally:
            if not settled:
                self._breaker.release(permit)


    async def health_check(self) -> None:
        await self._inner.health_check()

    async def aclose(self) -> None:
        await self._inner.aclose()

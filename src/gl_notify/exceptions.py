"""gl_notify error taxonomy."""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class NotificationErrorCodes:
    """NotificationError code constants."""

    TIMEOUT: str = "TIMEOUT"
    CONNECTION_ERROR: str = "CONNECTION_ERROR"
    TRANSPORT_ERROR: str = "TRANSPORT_ERROR"
    SERVICE_ERROR: str = "SERVICE_ERROR"
    CIRCUIT_BREAKER_OPEN: str = "CIRCUIT_BREAKER_OPEN"
    RETRY_EXHAUSTED: str = "RETRY_EXHAUSTED"
    CONFIGURATION_ERROR: str = "CONFIGURATION_ERROR"
    CONFIG_READ_ERROR: str = "CONFIG_READ_ERROR"
    CONFIG_PARSE_ERROR: str = "CONFIG_PARSE_ERROR"
    CONFIG_VALIDATION_ERROR: str = "CONFIG_VALIDATION_ERROR"
    PAYLOAD_ERROR: str = "PAYLOAD_ERROR"
    DISPATCH_TIMEOUT: str = "DISPATCH_TIMEOUT"
    DISPATCH_FAILED: str = "DISPATCH_FAILED"
    UNEXPECTED_ERROR: str = "UNEXPECTED_ERROR"


class NotificationError(Exception):
    """Base class for every delivery error raised by gl_notify."""

    def __init__(
        self,
        code: str,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class TransportError(NotificationError):
    """Network-level failure (timeout, refused connection, ...)."""


class ServiceError(NotificationError):
    """Non-success response from the remote channel."""

    def __init__(
        self,
        status: int,
        body: str,
        message: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.status = status
        self.body = body
        super().__init__(
            code=NotificationErrorCodes.SERVICE_ERROR,
            message=message or f"HTTP {status}: {body}",
            cause=cause,
        )

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600


class CircuitBreakerOpenError(NotificationError):
    """Raised without any I/O when the adapter's breaker rejects the call."""

    def __init__(self, adapter: str, remaining_seconds: float = 0.0) -> None:
        self.adapter = adapter
        self.remaining_seconds = remaining_seconds
        super().__init__(
            code=NotificationErrorCodes.CIRCUIT_BREAKER_OPEN,
            message=f"Circuit breaker open for {adapter}, remaining: {remaining_seconds:.1f}s",
        )


class RetryExhaustedError(NotificationError):
    """Raised when the retry budget of an adapter is spent."""

    def __init__(
        self,
        adapter: str,
        attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        self.adapter = adapter
        self.attempts = attempts
        self.last_error = last_error
        msg = f"{adapter} failed after {attempts} attempts"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(
            code=NotificationErrorCodes.RETRY_EXHAUSTED,
            message=msg,
            cause=last_error,
        )


class ConfigurationError(NotificationError):
    """Unusable configuration.

    Raised for malformed adapter credentials at health-check time, and by
    ``gl_notify.config.load`` with one of the ``CONFIG_*`` codes.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        *,
        code: str = NotificationErrorCodes.CONFIGURATION_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            cause=cause,
        )


class DispatchTimeoutError(NotificationError):
    """An adapter did not settle within the manager's per-unit timeout."""

    def __init__(self, adapter: str, timeout: float) -> None:
        self.adapter = adapter
        self.timeout = timeout
        super().__init__(
            code=NotificationErrorCodes.DISPATCH_TIMEOUT,
            message=f"{adapter} did not complete within {timeout:.1f}s",
        )


class DispatchError(NotificationError):
    """Aggregate failure naming every adapter that failed during a dispatch."""

    def __init__(
        self,
        failures: Mapping[str, NotificationError],
        succeeded: Sequence[str] = (),
    ) -> None:
        self.failures = dict(failures)
        self.succeeded = list(succeeded)
        details = ", ".join(f"{name}: {err}" for name, err in sorted(self.failures.items()))
        super().__init__(
            code=NotificationErrorCodes.DISPATCH_FAILED,
            message=f"{len(self.failures)} adapter(s) failed: {details}",
        )


def is_retryable(error: BaseException) -> bool:
    """Classify whether a failed delivery attempt is worth retrying.

    Transport failures and 5xx responses are retried, client-side (4xx)
    responses and open breakers are not. Every other error kind is retried
    until it is classified otherwise.
    """
    if isinstance(error, CircuitBreakerOpenError):
        return False
    if isinstance(error, ServiceError):
        return error.is_server_error
    return True

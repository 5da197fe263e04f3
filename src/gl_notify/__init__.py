"""gl_notify: multi-channel notification delivery."""

__version__ = "0.1.0"

from .adapters import PushoverAdapter, WebhookAdapter, WebPushAdapter
from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerNotifier,
    CircuitState,
)
from .exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    DispatchError,
    DispatchTimeoutError,
    NotificationError,
    NotificationErrorCodes,
    RetryExhaustedError,
    ServiceError,
    TransportError,
    is_retryable,
)
from .factory import build_manager, with_resilience
from .logger import new_logger
from .manager import NotificationManager
from .models import (
    AdapterOutcome,
    DispatchResult,
    Notification,
    NotificationChannel,
    NotificationKind,
    PushoverChannel,
    WebhookChannel,
    WebPushChannel,
)
from .notifier import Notifier
from .retry import RetryConfig, RetryNotifier

__all__ = [
    "AdapterOutcome",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerNotifier",
    "CircuitBreakerOpenError",
    "CircuitState",
    "ConfigurationError",
    "DispatchError",
    "DispatchResult",
    "DispatchTimeoutError",
    "Notification",
    "NotificationChannel",
    "NotificationError",
    "NotificationErrorCodes",
    "NotificationKind",
    "NotificationManager",
    "Notifier",
    "PushoverAdapter",
    "PushoverChannel",
    "RetryConfig",
    "RetryExhaustedError",
    "RetryNotifier",
    "ServiceError",
    "TransportError",
    "WebPushAdapter",
    "WebPushChannel",
    "WebhookAdapter",
    "WebhookChannel",
    "build_manager",
    "is_retryable",
    "new_logger",
    "with_resilience",
]

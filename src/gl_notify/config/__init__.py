"""Notification configuration."""

from .loader import apply_secrets, load
from .models import (
    AdapterSection,
    CircuitBreakerSection,
    LogSection,
    NotifyConfig,
    PushoverSection,
    RetrySection,
    WebhookSection,
    WebPushSection,
)

__all__ = [
    "AdapterSection",
    "CircuitBreakerSection",
    "LogSection",
    "NotifyConfig",
    "PushoverSection",
    "RetrySection",
    "WebPushSection",
    "WebhookSection",
    "apply_secrets",
    "load",
]

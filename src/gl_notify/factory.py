"""Wiring helpers: decorate adapters and build a manager from configuration."""

from __future__ import annotations

import httpx

from .adapters import PushoverAdapter, WebhookAdapter, WebPushAdapter
from .circuit_breaker import CircuitBreakerConfig, CircuitBreakerNotifier
from .config import AdapterSection, NotifyConfig
from .manager import NotificationManager
from .notifier import Notifier
from .retry import RetryConfig, RetryNotifier


def with_resilience(
    adapter: Notifier,
    retry_config: RetryConfig | None = None,
    circuit_breaker_config: CircuitBreakerConfig | None = None,
) -> CircuitBreakerNotifier:
    """Compose ``breaker(retry(adapter))``."""
    return CircuitBreakerNotifier(
        RetryNotifier(adapter, retry_config),
        circuit_breaker_config,
    )


def build_manager(
    config: NotifyConfig,
    client: httpx.AsyncClient | None = None,
) -> NotificationManager:
    """Create a manager with every enabled adapter registered and decorated.

    When ``client`` is given it is shared by all adapters and stays owned by
    the caller; otherwise each adapter creates (and closes) its own client.
    """
    manager = NotificationManager()
    adapters: list[tuple[Notifier, AdapterSection]] = []

    if config.webhook is not None and config.webhook.enabled:
        adapters.append(
            (
                WebhookAdapter(
                    client,
                    timeout=config.webhook.timeout,
                    headers=config.webhook.headers,
                ),
                config.webhook,
            )
        )
    if config.pushover is not None and config.pushover.enabled:
        adapters.append(
            (
                PushoverAdapter(
                    config.pushover.app_token,
                    client,
                    api_url=config.pushover.api_url,
                    timeout=config.pushover.timeout,
                ),
                config.pushover,
            )
        )
    if config.webpush is not None and config.webpush.enabled:
        adapters.append(
            (
                WebPushAdapter(
                    config.webpush.vapid_private_key,
                    client,
                    vapid_subject=config.webpush.vapid_subject,
                    ttl=config.webpush.ttl,
                    timeout=config.webpush.timeout,
                ),
                config.webpush,
            )
        )

    for adapter, section in adapters:
        manager.register(
            adapter.name,
            with_resilience(
                adapter,
                config.retry_for(section),
                config.circuit_breaker_for(section),
            ),
        )
    return manager

"""Notification settings (pydantic BaseModel)."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..circuit_breaker import CircuitBreakerConfig
from ..retry import RetryConfig


class RetrySection(BaseModel):
    """Retry policy. Delays are in seconds."""

    max_retries: int = Field(default=5, ge=1)
    initial_delay: float = Field(default=0.1, ge=0.0)
    max_delay: float = Field(default=30.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)

    def to_config(self) -> RetryConfig:
        return RetryConfig(**self.model_dump())


class CircuitBreakerSection(BaseModel):
    """Circuit breaker thresholds."""

    failure_threshold: int = Field(default=5, ge=1)
    cooldown: float = Field(default=60.0, ge=0.0)

    def to_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(**self.model_dump())


class AdapterSection(BaseModel):
    """Settings shared by every adapter section."""

    enabled: bool = True
    timeout: float = Field(default=10.0, gt=0.0)
    retry: RetrySection | None = None
    circuit_breaker: CircuitBreakerSection | None = None


class WebhookSection(AdapterSection):
    """Webhook adapter settings."""

    headers: dict[str, str] = Field(default_factory=dict)


class PushoverSection(AdapterSection):
    """Pushover adapter settings."""

    app_token: str
    api_url: str = "https://api.pushover.net/1/messages.json"


class WebPushSection(AdapterSection):
    """WebPush adapter settings."""

    vapid_private_key: str = ""
    vapid_subject: str = "mailto:alerts@example.com"
    ttl: int = Field(default=86400, ge=0)


class LogSection(BaseModel):
    """Log settings."""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class NotifyConfig(BaseModel):
    """Complete notification configuration.

    ``retry`` and ``circuit_breaker`` are the defaults for every adapter.
    An adapter section may override individual fields of either one.
    """

    retry: RetrySection = Field(default_factory=RetrySection)
    circuit_breaker: CircuitBreakerSection = Field(default_factory=CircuitBreakerSection)
    webhook: WebhookSection | None = None
    pushover: PushoverSection | None = None
    webpush: WebPushSection | None = None
    log: LogSection = Field(default_factory=LogSection)

    def retry_for(self, section: AdapterSection) -> RetryConfig:
        """Adapter retry policy; fields the override leaves unset come from ``retry``."""
        if section.retry is None:
            return self.retry.to_config()
        return self.retry.model_copy(update=section.retry.model_dump(exclude_unset=True)).to_config()

    def circuit_breaker_for(self, section: AdapterSection) -> CircuitBreakerConfig:
        if section.circuit_breaker is None:
            return self.circuit_breaker.to_config()
        override = section.circuit_breaker.model_dump(exclude_unset=True)
        return self.circuit_breaker.model_copy(update=override).to_config()

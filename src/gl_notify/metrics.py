"""OpenTelemetry delivery metrics."""

from __future__ import annotations

from opentelemetry import metrics

from . import __version__

_meter = metrics.get_meter("gl_notify", version=__version__)

notification_deliveries_total = _meter.create_counter(
    name="notification_deliveries_total",
    description="Total number of adapter deliveries by outcome",
    unit="1",
)

notification_delivery_duration_seconds = _meter.create_histogram(
    name="notification_delivery_duration_seconds",
    description="Adapter delivery duration in seconds",
    unit="s",
)

notification_retries_total = _meter.create_counter(
    name="notification_retries_total",
    description="Total number of delivery retries",
    unit="1",
)

circuit_breaker_transitions_total = _meter.create_counter(
    name="circuit_breaker_transitions_total",
    description="Total number of circuit breaker state transitions",
    unit="1",
)

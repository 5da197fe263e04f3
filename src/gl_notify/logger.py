"""structlog configuration for notification delivery logs."""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from .config import LogSection

# event keys whose values are credentials or recipient identifiers
SENSITIVE_KEYS = frozenset({"app_token", "token", "user_key", "authorization", "vapid_private_key"})


def mask_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Keep only the last four characters of sensitive values."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        value = str(event_dict[key])
        event_dict[key] = "****" + value[-4:] if len(value) > 8 else "****"
    return event_dict


def new_logger(settings: LogSection | None = None) -> structlog.stdlib.BoundLogger:
    """Configure structlog from the ``log`` section and return the gl_notify logger.

    Every record carries the log level, an ISO timestamp and the logger name;
    credentials bound to a logger are masked before rendering.
    """
    settings = settings or LogSection()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.level.upper(), logging.INFO),
    )

    renderer: structlog.types.Processor
    if settings.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            mask_credentials,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return structlog.stdlib.get_logger("gl_notify")

"""Channel adapters."""

from .pushover import PushoverAdapter
from .webhook import WebhookAdapter
from .webpush import WebPushAdapter

__all__ = [
    "PushoverAdapter",
    "WebPushAdapter",
    "WebhookAdapter",
]

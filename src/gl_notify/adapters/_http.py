"""Shared httpx plumbing for the HTTP based adapters."""

from __future__ import annotations

from collections.abc import Awaitable

import httpx

from ..exceptions import NotificationErrorCodes, ServiceError, TransportError
from ..notifier import Notifier


class HttpNotifier(Notifier):
    """Notifier that talks HTTP through a shared httpx.AsyncClient.

    The client is created here unless one is injected; only a client
    created here is closed by ``aclose``.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def raise_for_response(resp: httpx.Response, context: str) -> None:
    """Map a non-2xx response to ServiceError."""
    if not resp.is_success:
        raise ServiceError(
            status=resp.status_code,
            body=resp.text,
            message=f"{context}: HTTP {resp.status_code}: {resp.text}",
        )


async def perform(request: Awaitable[httpx.Response], context: str) -> httpx.Response:
    """Await an httpx call, mapping transport failures to TransportError."""
    try:
        resp = await request
    except httpx.TimeoutException as e:
        raise TransportError(
            code=NotificationErrorCodes.TIMEOUT,
            message=f"{context}: request timed out: {e}",
            cause=e,
        ) from e
    except httpx.ConnectError as e:
        raise TransportError(
            code=NotificationErrorCodes.CONNECTION_ERROR,
            message=f"{context}: connection failed: {e}",
            cause=e,
        ) from e
    except httpx.HTTPError as e:
        raise TransportError(
            code=NotificationErrorCodes.TRANSPORT_ERROR,
            message=f"{context}: {e}",
            cause=e,
        ) from e
    raise_for_response(resp, context)
    return resp

"""Transport adapter backed by :class:`httpx.AsyncClient`.

The composer is synchronous, so :meth:`AsyncHttpxTransport.send` drives
the coroutine to completion on an event loop owned by the adapter and
blocks until it resolves.  The loop lives as long as the adapter so the
async client's connection pool survives between requests.  Code already
running inside an event loop should ``await`` :meth:`~AsyncHttpxTransport.asend`
instead.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from httpcomposer.exceptions import TransportError, TransportStateError
from httpcomposer.output import get_output
from httpcomposer.transport.base import (
    DEFAULT_CONNECT_TIMEOUT_MS,
    TransportAdapter,
    TransportResponse,
    classify_exception,
)


class AsyncHttpxTransport(TransportAdapter):
    """Future-based adapter.

    Args:
        connect_timeout_ms: Connect timeout applied to every request.
        verify_ssl: Verify TLS certificates.
        client: Pre-built async client to use instead of creating one.
            The adapter closes it on :meth:`close`.
    """

    def __init__(
        self,
        connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
        verify_ssl: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(connect_timeout_ms=connect_timeout_ms, verify_ssl=verify_ssl)
        self._client = client
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
            )
        return self._client

    def _get_loop(self, hint: str = "await asend() instead") -> asyncio.AbstractEventLoop:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise TransportStateError(f"Cannot block inside a running event loop; {hint}")
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    async def _request(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> TransportResponse:
        get_output().debug(f"{method} {uri} (async)")
        response = await self._get_client().request(
            method,
            uri,
            headers=headers,
            content=body.encode("utf-8") if body is not None else None,
        )
        return TransportResponse.from_httpx(response)

    def _send(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> TransportResponse:
        loop = self._get_loop()
        return loop.run_until_complete(self._request(method, uri, headers, body))

    async def asend(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> TransportResponse:
        """Awaitable counterpart of :meth:`send` with the same error mapping."""
        try:
            response = await self._request(method, uri, headers, body)
        except TransportError:
            raise
        except Exception as exc:
            raise classify_exception(exc) from exc
        self._last_response = response
        return response

    async def aclose(self) -> None:
        """Close the client from inside the caller's event loop."""
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    def close(self) -> None:
        """Close the client and the adapter's own loop.

        Raises:
            TransportStateError: If called inside a running event loop;
                await :meth:`aclose` there instead.
        """
        if self._client is not None:
            loop = self._get_loop("await aclose() instead")
            loop.run_until_complete(self.aclose())
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()
        self._loop = None

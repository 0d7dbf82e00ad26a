"""Blocking transport adapter backed by :class:`httpx.Client`."""

from __future__ import annotations

from typing import Optional

import httpx

from httpcomposer.output import get_output
from httpcomposer.transport.base import (
    DEFAULT_CONNECT_TIMEOUT_MS,
    TransportAdapter,
    TransportResponse,
)


class HttpxTransport(TransportAdapter):
    """Synchronous adapter.

    The :class:`httpx.Client` is created on first use and reused for
    every request until :meth:`close`.  Redirects are followed.

    Args:
        connect_timeout_ms: Connect timeout applied to every request.
        verify_ssl: Verify TLS certificates.
        client: Pre-built client to use instead of creating one, e.g.
            one mounted on :class:`httpx.MockTransport` in tests.  The
            adapter closes it on :meth:`close`.
    """

    def __init__(
        self,
        connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
        verify_ssl: bool = True,
        client: Optional[httpx.Client] = None,
    ) -> None:
        super().__init__(connect_timeout_ms=connect_timeout_ms, verify_ssl=verify_ssl)
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
            )
        return self._client

    def _send(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> TransportResponse:
        get_output().debug(f"{method} {uri}")
        response = self._get_client().request(
            method,
            uri,
            headers=headers,
            content=body.encode("utf-8") if body is not None else None,
        )
        return TransportResponse.from_httpx(response)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

"""Transport adapter contract and error classification.

Every adapter subclasses :class:`TransportAdapter` and implements
:meth:`TransportAdapter._send`.  The base class owns two behaviours that
must not differ between implementations:

* **Error classification** -- any exception escaping ``_send`` is mapped
  by :func:`classify_exception`.
* **Last-response accessors** -- :meth:`~TransportAdapter.response_status_code`
  and friends read the most recent successful response and raise
  :class:`~httpcomposer.exceptions.TransportStateError` before the first
  send.

A non-2xx status is a successful transport outcome; only faults below
HTTP are errors.
"""

from __future__ import annotations

import json
import socket
import ssl
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from httpcomposer.exceptions import (
    FailureKind,
    PermanentTransportError,
    TransientTransportError,
    TransportError,
    TransportStateError,
)

DEFAULT_CONNECT_TIMEOUT_MS = 15000

_NAME_RESOLUTION_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "getaddrinfo failed",
    "name resolution",
)

_TLS_MARKERS = ("certificate_verify_failed", "tlsv1 alert", "wrong version number")


class TransportResponse:
    """Status, headers and body of one HTTP response.

    Header lookups are case-insensitive; when a header is repeated the
    first value wins.

    Args:
        status_code: HTTP status code.
        headers: Response headers as a mapping or list of pairs.
        content: Raw response body.
    """

    def __init__(
        self,
        status_code: int,
        headers: Any = None,
        content: bytes = b"",
    ) -> None:
        self.status_code = int(status_code)
        self.headers = httpx.Headers(headers or {})
        self.content = content

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> TransportResponse:
        return cls(response.status_code, response.headers.multi_items(), response.content)

    def json(self) -> Any:
        """Return the JSON-decoded body, or ``None`` if it is empty or not JSON."""
        if not self.content:
            return None
        try:
            return json.loads(self.content)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def header(self, name: str) -> Optional[str]:
        values = self.headers.get_list(name)
        return values[0] if values else None


def _chain_matches(
    exc: BaseException, error_type: type[BaseException], markers: tuple[str, ...]
) -> bool:
    """Walk the cause/context chain for *error_type* or a message marker."""
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, error_type):
            return True
        message = str(current).lower()
        if any(marker in message for marker in markers):
            return True
        current = current.__cause__ or current.__context__
    return False


def classify_exception(exc: BaseException) -> TransportError:
    """Map a transport library exception onto the composer's taxonomy.

    * timeouts -> transient (``timeout``)
    * TLS failures (certificate verification, handshake) -> permanent
    * name resolution failures -> transient (``dns``)
    * connection refused / reset and other socket errors -> transient
      (``socket``)
    * anything else -> permanent

    Args:
        exc: The exception raised while sending.

    Returns:
        A :class:`~httpcomposer.exceptions.TransportError` to raise in
        its place.  Existing transport errors are returned unchanged.
    """
    if isinstance(exc, TransportError):
        return exc

    message = str(exc) or type(exc).__name__

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return TransientTransportError(f"Timed out: {message}", kind=FailureKind.TIMEOUT)
    if _chain_matches(exc, ssl.SSLError, _TLS_MARKERS):
        return PermanentTransportError(f"TLS failure: {message}")
    if isinstance(exc, (httpx.ConnectError, socket.gaierror)):
        if _chain_matches(exc, socket.gaierror, _NAME_RESOLUTION_MARKERS):
            return TransientTransportError(
                f"Name resolution failed: {message}", kind=FailureKind.DNS
            )
        return TransientTransportError(f"Connection failed: {message}", kind=FailureKind.SOCKET)
    if isinstance(exc, (httpx.NetworkError, OSError)):
        return TransientTransportError(f"Socket error: {message}", kind=FailureKind.SOCKET)
    return PermanentTransportError(f"Transport failed: {message}")


class TransportAdapter(ABC):
    """Base class for transport adapters.

    Subclasses implement :meth:`_send`; callers use :meth:`send`.
    Adapters are context managers and should be closed when no longer
    needed.

    Args:
        connect_timeout_ms: Connect timeout applied to every request.
        verify_ssl: Verify TLS certificates.
    """

    def __init__(
        self,
        connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
        verify_ssl: bool = True,
    ) -> None:
        self._connect_timeout_ms = connect_timeout_ms
        self._verify_ssl = verify_ssl
        self._last_response: Optional[TransportResponse] = None

    def __enter__(self) -> TransportAdapter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def timeout(self) -> httpx.Timeout:
        """Per-attempt timeout: bounded connect, unbounded transfer."""
        return httpx.Timeout(None, connect=self._connect_timeout_ms / 1000)

    def send(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> TransportResponse:
        """Send one request.

        Args:
            method: HTTP method.
            uri: Absolute request URI.
            headers: Request headers.
            body: Request body, already encoded, or ``None``.

        Returns:
            The response, whatever its status code.

        Raises:
            TransientTransportError: On socket, DNS or timeout faults.
            PermanentTransportError: On any other fault.
        """
        try:
            response = self._send(method, uri, headers, body)
        except (TransportError, TransportStateError):
            raise
        except Exception as exc:
            raise classify_exception(exc) from exc
        self._last_response = response
        return response

    @abstractmethod
    def _send(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> TransportResponse:
        """Perform the request with the underlying library."""
        ...

    def close(self) -> None:
        """Release the underlying client.  The default does nothing."""

    # ------------------------------------------------------------------ #
    # Accessors on the last response
    # ------------------------------------------------------------------ #

    @property
    def last_response(self) -> TransportResponse:
        if self._last_response is None:
            raise TransportStateError("No request has been sent yet")
        return self._last_response

    def response_status_code(self) -> int:
        return self.last_response.status_code

    def response_body(self) -> Any:
        """JSON-decoded body of the last response."""
        return self.last_response.json()

    def has_response_header(self, name: str) -> bool:
        return self.last_response.has_header(name)

    def response_header(self, name: str) -> Optional[str]:
        return self.last_response.header(name)

"""Transport adapters for httpcomposer.

A transport adapter sends one HTTP request and hands back a
:class:`TransportResponse`.  Whatever the underlying library raises is
translated into :class:`~httpcomposer.exceptions.TransientTransportError`
(socket errors, DNS failures, timeouts) or
:class:`~httpcomposer.exceptions.PermanentTransportError` (everything
else), so the composer never needs to know which library is in use.

Classes:
    :class:`TransportAdapter` -- abstract base with the shared accessors.
    :class:`HttpxTransport` -- blocking adapter backed by :class:`httpx.Client`.
    :class:`AsyncHttpxTransport` -- adapter backed by :class:`httpx.AsyncClient`.

Example::

    from httpcomposer.transport import HttpxTransport

    with HttpxTransport() as transport:
        response = transport.send("GET", "https://httpbin.org/ip", {}, None)
        response.json()
"""

from httpcomposer.transport.async_transport import AsyncHttpxTransport
from httpcomposer.transport.base import TransportAdapter, TransportResponse, classify_exception
from httpcomposer.transport.factory import create_transport
from httpcomposer.transport.sync_transport import HttpxTransport

__all__ = [
    "TransportAdapter",
    "TransportResponse",
    "HttpxTransport",
    "AsyncHttpxTransport",
    "classify_exception",
    "create_transport",
]

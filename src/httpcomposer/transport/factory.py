"""Select a transport implementation from configuration."""

from __future__ import annotations

from httpcomposer.models import AdapterKind, ComposerConfig
from httpcomposer.transport.async_transport import AsyncHttpxTransport
from httpcomposer.transport.base import TransportAdapter
from httpcomposer.transport.sync_transport import HttpxTransport


def create_transport(config: ComposerConfig) -> TransportAdapter:
    """Build the adapter named by ``config.adapter``.

    Args:
        config: Composer configuration supplying the adapter kind,
            connect timeout and SSL setting.

    Returns:
        A new, unopened :class:`~httpcomposer.transport.base.TransportAdapter`.
    """
    if config.adapter == AdapterKind.ASYNC:
        return AsyncHttpxTransport(
            connect_timeout_ms=config.connect_timeout_ms,
            verify_ssl=config.verify_ssl,
        )
    return HttpxTransport(
        connect_timeout_ms=config.connect_timeout_ms,
        verify_ssl=config.verify_ssl,
    )

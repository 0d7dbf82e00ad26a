"""Optional load-time telemetry.

When a :class:`~httpcomposer.composer.Composer` is configured with
``telemetry_enabled`` and given a sink, it records one
:data:`LOAD_TIME_METRIC` sample (elapsed milliseconds) per transport
attempt.  A missing sink is tolerated, and a failing sink is logged and
ignored so that metrics can never break a request.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

LOAD_TIME_METRIC = "Custom/HttpComposer/Load_time"
"""Metric name used for per-attempt transport timings."""


@runtime_checkable
class TelemetrySink(Protocol):
    """Anything that accepts numeric metric samples."""

    def record(self, metric: str, value: float) -> None:
        ...


class LoggingTelemetrySink:
    """Sink that writes each sample to a logger at INFO level."""

    def __init__(self, name: str = __name__) -> None:
        self._logger = logging.getLogger(name)

    def record(self, metric: str, value: float) -> None:
        self._logger.info("metric %s=%.1f", metric, value)


class TelemetryRecorder:
    """Forwards samples to an optional sink.

    Args:
        sink: Destination for samples.  ``None`` turns every call into a
            no-op.
        enabled: Master switch from the composer configuration.
    """

    def __init__(self, sink: Optional[TelemetrySink], enabled: bool = True) -> None:
        self._sink = sink if enabled else None

    @property
    def active(self) -> bool:
        return self._sink is not None

    def load_time(self, elapsed_ms: float) -> None:
        """Record a transport attempt duration in milliseconds."""
        if self._sink is None:
            return
        try:
            self._sink.record(LOAD_TIME_METRIC, elapsed_ms)
        except Exception:
            logger.warning("Telemetry sink %r failed", self._sink, exc_info=True)

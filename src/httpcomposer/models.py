"""Canonical Pydantic models shared across all httpcomposer modules.

The models fall into two groups:

**Configuration models** -- loaded from JSON by :mod:`httpcomposer.config`
or built directly by the host application:
    :class:`AdapterKind`, :class:`SeedsConfig`, and :class:`ComposerConfig`.

**Request/response models** -- owned by a single
:class:`~httpcomposer.composer.Composer`:
    :class:`HTTPMethod`, :class:`ResultFormat`, :class:`RequestSpec`, and
    :class:`CanonicalResponse`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Enumerations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods a composed request may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class ResultFormat(str, enum.Enum):
    """Output shapes produced by :func:`~httpcomposer.formatter.format_response`.

    ``RAW`` is a plain ``dict``, ``STRUCTURED`` a read-only attribute view of
    the same data, and ``JSON`` its JSON text serialisation.
    """

    RAW = "raw"
    STRUCTURED = "structured"
    JSON = "json"


class AdapterKind(str, enum.Enum):
    """Selects which transport implementation a composer uses."""

    SYNC = "sync"
    ASYNC = "async"


# --- Configuration ---


class SeedsConfig(BaseModel):
    """Offline seed settings.

    When enabled, every successful response is written once to
    ``<directory>/<cache key>`` and read back when the network is
    unavailable.
    """

    enabled: bool = Field(default=False, description="Read and write seed files")
    directory: Optional[str] = Field(
        default=None, description="Directory holding one JSON file per cache key"
    )


class ComposerConfig(BaseModel):
    """Host-supplied configuration for a :class:`~httpcomposer.composer.Composer`.

    The cache backend is not part of this model; it is injected into the
    composer constructor alongside the transport and telemetry sink.

    Example::

        ComposerConfig(
            seeds=SeedsConfig(enabled=True, directory="/var/lib/app/seeds"),
            default_headers={"Accept": "application/json"},
        )
    """

    seeds: SeedsConfig = Field(default_factory=SeedsConfig)
    default_headers: dict[str, str] = Field(default_factory=dict)
    telemetry_enabled: bool = Field(
        default=False, description="Record a load-time sample per transport attempt"
    )
    adapter: AdapterKind = Field(
        default=AdapterKind.SYNC, description="Transport implementation: sync, async"
    )
    cache_ttl_seconds: int = Field(
        default=300, description="TTL used by use_cache() when none is given"
    )
    connect_timeout_ms: int = Field(
        default=15000, description="Connect timeout applied to every attempt"
    )
    max_attempts: int = Field(
        default=2, ge=1, description="Attempts per request for transient failures"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


# --- Request / response ---


class RequestSpec(BaseModel):
    """Mutable request-building state owned by one composer.

    Header names are unique case-insensitively; :meth:`set_header` replaces
    an existing entry whatever its spelling.
    """

    method: Optional[HTTPMethod] = HTTPMethod.GET
    uri: Optional[str] = None
    headers: dict[str, str] = Field(default_factory=dict)
    params: Optional[dict[str, Any]] = None
    result_format: ResultFormat = ResultFormat.RAW
    auth_token: Optional[str] = None
    cache_enabled: bool = False
    cache_ttl: Optional[int] = None
    headers_to_return: list[str] = Field(default_factory=list)
    debug: bool = False

    def set_header(self, name: str, value: str) -> None:
        for existing in list(self.headers):
            if existing.lower() == name.lower():
                del self.headers[existing]
        self.headers[name] = value


class CanonicalResponse(BaseModel):
    """The status, body and selected headers of one successful response.

    Produced once per transport success or seed/cache hit and never
    modified afterwards.  :meth:`to_raw` gives the dict that is cached,
    seeded and formatted.
    """

    model_config = ConfigDict(frozen=True)

    code: int
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)

    def to_raw(self) -> dict[str, Any]:
        """Return the response as a plain dict.

        The ``headers`` key is only present when at least one requested
        header was found on the response.
        """
        raw: dict[str, Any] = {"code": self.code, "body": self.body}
        if self.headers:
            raw["headers"] = dict(self.headers)
        return raw

    @classmethod
    def from_raw(cls, data: dict[str, Any]) -> CanonicalResponse:
        """Rebuild a response from a cached or seeded dict."""
        return cls(
            code=int(data["code"]),
            body=data.get("body"),
            headers=data.get("headers") or {},
        )

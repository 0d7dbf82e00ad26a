"""Request composer: fluent request building plus cached, seeded, retried execution.

This module provides :class:`Composer`, the single call-site application
code uses to turn a declared request into a parsed response.  A request
is built with chained setters and run with one terminal verb::

    composer = Composer(config, cache=DiskCache(cache_dir))
    result = composer.set_uri("https://api.example.com/x").use_cache().get()

:meth:`Composer.execute` answers from the first source that can, in this
order:

1. **Cache** -- when :meth:`~Composer.use_cache` is on and a cache port is
   configured.  A cache hit wins over everything else.
2. **Seed file** -- when seeds are enabled in the configuration.
3. **Transport** -- up to ``max_attempts`` attempts for transient faults
   (socket, DNS, timeout); permanent faults are not retried.
4. **Seed fallback** -- when the transient retry budget is exhausted.

A transport success is stored in the cache (with the requested TTL) and,
if no seed exists yet, written as a seed.  Every result, whatever its
source, goes through :func:`~httpcomposer.formatter.format_response`.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from typing import Any, Optional

from httpcomposer.cache import CachePort
from httpcomposer.exceptions import (
    MissingFieldError,
    MissingParameterError,
    PermanentTransportError,
    RequestError,
    TransientTransportError,
    TransportStateError,
)
from httpcomposer.formatter import format_response
from httpcomposer.keys import derive_cache_key
from httpcomposer.models import (
    CanonicalResponse,
    ComposerConfig,
    HTTPMethod,
    RequestSpec,
    ResultFormat,
)
from httpcomposer.output import get_output
from httpcomposer.seeds import SeedStore
from httpcomposer.telemetry import TelemetryRecorder, TelemetrySink
from httpcomposer.transport import TransportAdapter, TransportResponse, create_transport

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"


class Composer:
    """Fluent request builder and executor.

    One composer holds the state of one request at a time.  Setters
    return the composer so calls can be chained; :meth:`reset` returns it
    to its defaults for reuse.  Instances are not safe to share between
    threads, but any number of composers may share a cache and a seed
    directory.

    Args:
        config: Composer configuration.  Defaults to
            :class:`~httpcomposer.models.ComposerConfig` defaults.
        cache: Optional cache backend.  Without one, :meth:`use_cache`
            does nothing.
        transport: Optional transport adapter.  When omitted, one is
            built from ``config.adapter`` and closed with the composer.
        telemetry: Optional sink for per-attempt load-time samples, used
            only when ``config.telemetry_enabled`` is set.

    Raises:
        ConfigurationError: If seeds are enabled without a directory.
    """

    def __init__(
        self,
        config: Optional[ComposerConfig] = None,
        cache: Optional[CachePort] = None,
        transport: Optional[TransportAdapter] = None,
        telemetry: Optional[TelemetrySink] = None,
    ) -> None:
        self._config = config or ComposerConfig()
        self._cache = cache
        self._owns_transport = transport is None
        self._transport = transport or create_transport(self._config)
        self._telemetry = TelemetryRecorder(telemetry, enabled=self._config.telemetry_enabled)
        self._seeds: Optional[SeedStore] = None
        if self._config.seeds.enabled:
            self._seeds = SeedStore(self._config.seeds.directory or "")
        self._spec = RequestSpec()
        self.reset()

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Composer:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this composer created it."""
        if self._owns_transport:
            self._transport.close()

    @property
    def config(self) -> ComposerConfig:
        return self._config

    @property
    def spec(self) -> RequestSpec:
        """A copy of the current request-building state."""
        return self._spec.model_copy(deep=True)

    # ------------------------------------------------------------------ #
    # Builder
    # ------------------------------------------------------------------ #

    def set_uri(self, uri: Optional[str]) -> Composer:
        self._spec.uri = uri
        return self

    def set_method(self, method: HTTPMethod | str | None) -> Composer:
        if method is None or method == "":
            self._spec.method = None
        else:
            self._spec.method = HTTPMethod(method.upper() if isinstance(method, str) else method)
        return self

    def set_headers(self, headers: Mapping[str, str]) -> Composer:
        """Replace every request header, including the configured defaults."""
        self._spec.headers = {}
        for name, value in headers.items():
            self._spec.set_header(name, value)
        return self

    def add_header(self, name: str, value: str) -> Composer:
        """Add a header, replacing any existing header of the same name."""
        self._spec.set_header(name, value)
        return self

    def set_params(self, params: Optional[Mapping[str, Any]]) -> Composer:
        """Set the parameters sent as the JSON request body."""
        self._spec.params = dict(params) if params is not None else None
        return self

    def set_auth_token(self, token: str) -> Composer:
        """Authenticate with ``Authorization: Token token="<token>"``."""
        self._spec.auth_token = token
        self._spec.set_header(AUTHORIZATION_HEADER, _token_header(token))
        return self

    def with_headers(self, names: list[str]) -> Composer:
        """Declare which response headers to include in the result."""
        self._spec.headers_to_return = list(names)
        return self

    def use_cache(self, ttl: Optional[int] = None) -> Composer:
        """Read from and write to the cache for this request.

        Args:
            ttl: Entry lifetime in seconds, passed to the cache backend.
                Defaults to ``config.cache_ttl_seconds``.
        """
        if self._cache is None:
            return self
        self._spec.cache_enabled = True
        self._spec.cache_ttl = ttl if ttl is not None else self._config.cache_ttl_seconds
        return self

    def return_raw(self) -> Composer:
        self._spec.result_format = ResultFormat.RAW
        return self

    def return_structured(self) -> Composer:
        self._spec.result_format = ResultFormat.STRUCTURED
        return self

    def return_json(self) -> Composer:
        self._spec.result_format = ResultFormat.JSON
        return self

    def debug(self) -> Composer:
        """Make :meth:`execute` return a configuration snapshot instead of sending."""
        self._spec.debug = True
        return self

    def reset(self) -> Composer:
        """Forget the current request and re-apply the configured default headers."""
        self._spec = RequestSpec()
        for name, value in self._config.default_headers.items():
            self._spec.set_header(name, value)
        return self

    # ------------------------------------------------------------------ #
    # Terminal verbs
    # ------------------------------------------------------------------ #

    def get(self) -> Any:
        self._spec.method = HTTPMethod.GET
        return self.execute()

    def post(self) -> Any:
        """Send a POST request.

        Raises:
            MissingParameterError: If no parameters were set.
        """
        self._spec.method = HTTPMethod.POST
        if not self._spec.params:
            raise MissingParameterError("POST params are not defined")
        return self.execute()

    def put(self) -> Any:
        self._spec.method = HTTPMethod.PUT
        return self.execute()

    def delete(self) -> Any:
        self._spec.method = HTTPMethod.DELETE
        return self.execute()

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def cache_key(self) -> str:
        """Return the cache/seed key for the request as currently built.

        Raises:
            MissingFieldError: If the method or URI is unset.
        """
        self._require_fields()
        assert self._spec.method is not None and self._spec.uri is not None
        return derive_cache_key(
            self._spec.uri,
            self._spec.method.value,
            self._effective_headers(),
            self._spec.params,
        )

    def execute(self) -> Any:
        """Run the request and return the formatted result.

        Returns:
            The response in the selected result format, or the
            :meth:`debug_info` snapshot when debug mode is on.

        Raises:
            MissingFieldError: If the method or URI is unset.
            RequestError: If the transport failed and no seed could stand
                in.  ``cause`` holds the
                :class:`~httpcomposer.exceptions.PermanentTransportError`.
        """
        self._require_fields()
        if self._spec.debug:
            return self.debug_info()

        spec = self._spec
        assert spec.method is not None and spec.uri is not None
        output = get_output()
        headers = self._effective_headers()
        key = derive_cache_key(spec.uri, spec.method.value, headers, spec.params)

        # 1. Cache
        if spec.cache_enabled and self._cache is not None and self._cache.has(key):
            cached = self._cache.get(key)
            if cached is not None:
                output.debug(f"Cache hit: {spec.method.value} {spec.uri}")
                return self._format(CanonicalResponse.from_raw(cached))

        # 2. Seeds
        seeded = self._find_seed(key)
        if seeded is not None:
            output.debug(f"Seed hit: {spec.method.value} {spec.uri}")
            return self._format(seeded)

        # 3. Transport
        body = json.dumps(spec.params, default=str) if spec.params is not None else None
        try:
            response = self._send_with_retry(spec.method.value, spec.uri, headers, body)
        except TransientTransportError as exc:
            seeded = self._find_seed(key)
            if seeded is not None:
                output.debug(f"Offline, serving seed: {spec.method.value} {spec.uri}")
                return self._format(seeded)
            attempts = self._config.max_attempts
            failure = PermanentTransportError(
                f"{spec.method.value} {spec.uri} failed after {attempts} attempt(s): {exc}"
            )
            failure.__cause__ = exc
            raise RequestError(str(failure), cause=failure) from failure
        except (PermanentTransportError, TransportStateError) as exc:
            raise RequestError(f"{spec.method.value} {spec.uri} failed: {exc}", cause=exc) from exc

        # 4. Store
        canonical = self._canonicalise(response)
        raw = canonical.to_raw()
        if spec.cache_enabled and self._cache is not None:
            self._cache.set(key, raw, spec.cache_ttl)
        if self._seeds is not None:
            self._store_seed(key, raw)

        return self._format(canonical)

    def debug_info(self) -> dict[str, Any]:
        """Snapshot of the request configuration.  Performs no I/O."""
        spec = self._spec
        return {
            "method": spec.method.value if spec.method else None,
            "uri": spec.uri,
            "params": spec.params,
            "params_json": json.dumps(spec.params, default=str),
            "result_format": spec.result_format.value,
            "auth_token": spec.auth_token,
            "cache": self._cache is not None,
            "use_cache": spec.cache_enabled,
            "cache_ttl": spec.cache_ttl,
            "headers": dict(spec.headers),
            "headers_to_return": list(spec.headers_to_return),
        }

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _require_fields(self) -> None:
        if not self._spec.method:
            raise MissingFieldError("METHOD is not defined")
        if not self._spec.uri:
            raise MissingFieldError("URI is not defined")

    def _effective_headers(self) -> dict[str, str]:
        headers = dict(self._spec.headers)
        if self._spec.auth_token is not None and not any(
            name.lower() == AUTHORIZATION_HEADER.lower() for name in headers
        ):
            headers[AUTHORIZATION_HEADER] = _token_header(self._spec.auth_token)
        return headers

    def _find_seed(self, key: str) -> Optional[CanonicalResponse]:
        if self._seeds is None:
            return None
        data = self._seeds.get(key)
        if data is None:
            return None
        try:
            return CanonicalResponse.from_raw(data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed seed %s: %s", self._seeds.path_for(key), exc)
            return None

    def _store_seed(self, key: str, raw: dict[str, Any]) -> None:
        assert self._seeds is not None
        try:
            written = self._seeds.write(key, raw)
        except OSError as exc:
            logger.warning("Unable to write seed %s: %s", self._seeds.path_for(key), exc)
            return
        if written:
            get_output().debug(f"Seed written: {self._seeds.path_for(key)}")

    def _send_with_retry(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: Optional[str],
    ) -> TransportResponse:
        """Send with up to ``max_attempts`` tries for transient faults.

        Permanent faults propagate from the first attempt.  The last
        transient fault is re-raised once the budget is spent.
        """
        wire_headers = dict(headers)
        if body is not None and not any(name.lower() == "content-type" for name in wire_headers):
            wire_headers["Content-Type"] = "application/json"

        max_attempts = self._config.max_attempts
        output = get_output()
        last_error: Optional[TransientTransportError] = None

        for attempt in range(1, max_attempts + 1):
            started = time.perf_counter()
            try:
                response = self._transport.send(method, uri, wire_headers, body)
            except TransientTransportError as exc:
                last_error = exc
                output.debug(
                    f"Transient {exc.kind.value} failure: {exc} "
                    f"(attempt {attempt}/{max_attempts})"
                )
                continue
            self._telemetry.load_time((time.perf_counter() - started) * 1000)
            return response

        assert last_error is not None
        raise last_error

    def _canonicalise(self, response: TransportResponse) -> CanonicalResponse:
        selected: dict[str, str] = {}
        for name in self._spec.headers_to_return:
            value = response.header(name)
            if value is not None:
                selected[name] = value
        return CanonicalResponse(code=response.status_code, body=response.json(), headers=selected)

    def _format(self, response: CanonicalResponse) -> Any:
        return format_response(response, self._spec.result_format)


def _token_header(token: str) -> str:
    return f'Token token="{token}"'

"""Shared test fixtures for httpcomposer.

Provides an in-memory cache port, httpx-mock-backed transports, seed
configurations and isolated config directories.  These fixtures are
discovered by pytest and available to all test modules without imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from httpcomposer.models import ComposerConfig, SeedsConfig
from httpcomposer.output import OutputManager, reset_output, set_output
from httpcomposer.transport import HttpxTransport


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet manager for each test and drop it afterwards.

    Typer's CliRunner swaps sys.stdout/sys.stderr during a test; a manager
    created then would keep stale stream references.
    """
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Cache port fake
# ---------------------------------------------------------------------------


class MemoryCache:
    """Dict-backed cache port that records every call."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.ttls: dict[str, Optional[int]] = {}
        self.set_calls: list[tuple[str, Any, Optional[int]]] = []

    def has(self, key: str) -> bool:
        return key in self.data

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self.set_calls.append((key, value, ttl))
        self.data[key] = value
        self.ttls[key] = ttl


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------


class RecordingHandler:
    """httpx.MockTransport handler that counts requests.

    Args:
        responder: Called with each :class:`httpx.Request`; returns a
            response or raises.
    """

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self._responder = responder
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)


@pytest.fixture
def make_transport() -> Callable[..., tuple[HttpxTransport, RecordingHandler]]:
    """Factory building an HttpxTransport over httpx.MockTransport."""
    created: list[HttpxTransport] = []

    def _make(
        responder: Callable[[httpx.Request], httpx.Response],
    ) -> tuple[HttpxTransport, RecordingHandler]:
        handler = RecordingHandler(responder)
        transport = HttpxTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
        created.append(transport)
        return transport, handler

    yield _make
    for transport in created:
        transport.close()


def json_responder(
    data: Any, status_code: int = 200, headers: Optional[dict[str, str]] = None
) -> Callable[[httpx.Request], httpx.Response]:
    """Responder returning the same JSON payload every time."""

    def _respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=data, headers=headers)

    return _respond


def raising_responder(exc_factory: Callable[[httpx.Request], Exception]) -> Callable[[httpx.Request], httpx.Response]:
    """Responder raising the exception built by *exc_factory*."""

    def _respond(request: httpx.Request) -> httpx.Response:
        raise exc_factory(request)

    return _respond


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------


@pytest.fixture
def seeds_dir(tmp_path: Path) -> Path:
    return tmp_path / "seeds"


@pytest.fixture
def seeded_config(seeds_dir: Path) -> ComposerConfig:
    """Config with seeds enabled in a not-yet-created directory."""
    return ComposerConfig(seeds=SeedsConfig(enabled=True, directory=str(seeds_dir)))


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories into tmp_path, clears HTTPCOMPOSER_*
    variables and changes the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["HTTPCOMPOSER_CONFIG", "HTTPCOMPOSER_SEEDS_DIR", "HTTPCOMPOSER_ADAPTER"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path

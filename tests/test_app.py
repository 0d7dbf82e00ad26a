"""Tests for the CLI application."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import httpx
import pytest
from typer.testing import CliRunner

from conftest import RecordingHandler, json_responder, raising_responder
from httpcomposer import __version__
from httpcomposer.app import _parse_header, _parse_params, app
from httpcomposer.transport import HttpxTransport

runner = CliRunner()

URI = "https://api.example.com/x"


@pytest.fixture
def mock_network(
    monkeypatch: pytest.MonkeyPatch, isolated_config: Path
) -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingHandler]:
    """Route every transport the CLI builds through one recording handler."""

    def _install(responder: Callable[[httpx.Request], httpx.Response]) -> RecordingHandler:
        handler = RecordingHandler(responder)
        monkeypatch.setattr(
            "httpcomposer.composer.create_transport",
            lambda config: HttpxTransport(
                client=httpx.Client(transport=httpx.MockTransport(handler))
            ),
        )
        return handler

    return _install


class TestRequestCommand:
    def test_get(self, mock_network) -> None:
        handler = mock_network(json_responder({"a": 1}))

        result = runner.invoke(app, ["--json", "request", URI])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"code": 200, "body": {"a": 1}}
        assert handler.requests[0].method == "GET"

    def test_post_with_params_and_headers(self, mock_network) -> None:
        handler = mock_network(json_responder({"id": 1}, status_code=201))

        result = runner.invoke(
            app,
            [
                "--json",
                "request",
                URI,
                "-X",
                "post",
                "-d",
                "name=widget",
                "-d",
                "count=3",
                "-H",
                "X-Trace: abc",
                "--auth-token",
                "tok",
            ],
        )

        assert result.exit_code == 0
        request = handler.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"name": "widget", "count": 3}
        assert request.headers["x-trace"] == "abc"
        assert request.headers["authorization"] == 'Token token="tok"'

    def test_json_result_format(self, mock_network) -> None:
        mock_network(json_responder([1, 2]))

        result = runner.invoke(app, ["--json", "request", URI, "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"code": 200, "body": [1, 2]}

    def test_with_header(self, mock_network) -> None:
        mock_network(json_responder({}, headers={"ETag": "v1"}))

        result = runner.invoke(app, ["--json", "request", URI, "--with-header", "ETag"])

        assert json.loads(result.stdout)["headers"] == {"ETag": "v1"}

    def test_debug_request_sends_nothing(self, mock_network) -> None:
        handler = mock_network(json_responder({}))

        result = runner.invoke(app, ["--json", "request", URI, "-X", "PUT", "--debug-request"])

        assert result.exit_code == 0
        snapshot = json.loads(result.stdout)
        assert snapshot["method"] == "PUT"
        assert snapshot["uri"] == URI
        assert handler.calls == 0

    def test_cache_reused_between_runs(self, mock_network) -> None:
        handler = mock_network(json_responder({"a": 1}))

        first = runner.invoke(app, ["--json", "request", URI, "--cache", "--ttl", "60"])
        second = runner.invoke(app, ["--json", "request", URI, "--cache"])

        assert first.exit_code == second.exit_code == 0
        assert first.stdout == second.stdout
        assert handler.calls == 1

    def test_seeds_dir_writes_seed(self, mock_network, tmp_path: Path) -> None:
        mock_network(json_responder({"a": 1}))
        seeds = tmp_path / "seeds"

        result = runner.invoke(app, ["request", URI, "--seeds-dir", str(seeds)])

        assert result.exit_code == 0
        files = list(seeds.iterdir())
        assert len(files) == 1
        assert json.loads(files[0].read_text()) == {"code": 200, "body": {"a": 1}}


class TestErrors:
    def test_post_without_params(self, mock_network) -> None:
        handler = mock_network(json_responder({}))

        result = runner.invoke(app, ["--no-color", "request", URI, "-X", "POST"])

        assert result.exit_code == 2
        assert "POST params are not defined" in result.output
        assert handler.calls == 0

    def test_unknown_method(self, mock_network) -> None:
        mock_network(json_responder({}))
        result = runner.invoke(app, ["request", URI, "-X", "PATCH"])
        assert result.exit_code == 2

    def test_unknown_format(self, mock_network) -> None:
        mock_network(json_responder({}))
        result = runner.invoke(app, ["--no-color", "request", URI, "--format", "xml"])
        assert result.exit_code == 2
        assert "Unknown format" in result.output

    def test_transport_failure(self, mock_network) -> None:
        handler = mock_network(
            raising_responder(
                lambda request: httpx.ConnectError("Name or service not known", request=request)
            )
        )

        result = runner.invoke(app, ["--no-color", "request", URI])

        assert result.exit_code == 8
        assert handler.calls == 2
        assert "failed after 2 attempt(s)" in result.output

    def test_bad_config_file(self, mock_network, tmp_path: Path) -> None:
        mock_network(json_responder({}))
        missing = str(tmp_path / "missing.json")
        result = runner.invoke(app, ["--no-color", "request", URI, "--config", missing])
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestParsing:
    def test_parse_header(self) -> None:
        assert _parse_header("Accept:  application/json ") == ("Accept", "application/json")
        assert _parse_header("X-Url: http://a:1") == ("X-Url", "http://a:1")

    @pytest.mark.parametrize("raw", ["no-colon", ": value"])
    def test_parse_header_invalid(self, raw: str) -> None:
        with pytest.raises(ValueError):
            _parse_header(raw)

    def test_parse_params(self) -> None:
        assert _parse_params(["a=1", "b=text", "c={\"x\": true}", "d="]) == {
            "a": 1,
            "b": "text",
            "c": {"x": True},
            "d": "",
        }

    def test_parse_params_invalid(self) -> None:
        with pytest.raises(ValueError):
            _parse_params(["novalue"])

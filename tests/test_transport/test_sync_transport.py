"""Tests for the blocking transport adapter and error classification."""

from __future__ import annotations

import socket
import ssl

import httpx
import pytest

from conftest import json_responder, raising_responder
from httpcomposer.exceptions import (
    FailureKind,
    PermanentTransportError,
    TransientTransportError,
    TransportStateError,
)
from httpcomposer.transport import HttpxTransport, TransportResponse, classify_exception

URI = "https://api.example.com/x"


class TestClassifyException:
    def test_timeout(self) -> None:
        result = classify_exception(httpx.ConnectTimeout("timed out"))
        assert isinstance(result, TransientTransportError)
        assert result.kind == FailureKind.TIMEOUT

    def test_read_timeout(self) -> None:
        result = classify_exception(httpx.ReadTimeout("slow"))
        assert result.kind == FailureKind.TIMEOUT

    def test_dns_message(self) -> None:
        result = classify_exception(httpx.ConnectError("[Errno -2] Name or service not known"))
        assert isinstance(result, TransientTransportError)
        assert result.kind == FailureKind.DNS

    def test_dns_in_cause_chain(self) -> None:
        try:
            try:
                raise socket.gaierror(8, "lookup broke")
            except socket.gaierror as inner:
                raise httpx.ConnectError("connect failed") from inner
        except httpx.ConnectError as exc:
            result = classify_exception(exc)
        assert result.kind == FailureKind.DNS

    def test_connection_refused(self) -> None:
        result = classify_exception(httpx.ConnectError("[Errno 111] Connection refused"))
        assert isinstance(result, TransientTransportError)
        assert result.kind == FailureKind.SOCKET

    @pytest.mark.parametrize(
        "exc",
        [httpx.ReadError("reset"), httpx.WriteError("broken pipe"), ConnectionResetError("reset")],
    )
    def test_socket_errors(self, exc: Exception) -> None:
        result = classify_exception(exc)
        assert isinstance(result, TransientTransportError)
        assert result.kind == FailureKind.SOCKET

    @pytest.mark.parametrize(
        "exc",
        [httpx.UnsupportedProtocol("ftp://"), httpx.RemoteProtocolError("bad frame"), ValueError("x")],
    )
    def test_everything_else_is_permanent(self, exc: Exception) -> None:
        assert isinstance(classify_exception(exc), PermanentTransportError)

    def test_existing_transport_error_unchanged(self) -> None:
        err = PermanentTransportError("already classified")
        assert classify_exception(err) is err

    def test_certificate_failure_in_chain_is_permanent(self) -> None:
        try:
            try:
                raise ssl.SSLCertVerificationError(1, "certificate verify failed")
            except ssl.SSLError as inner:
                raise httpx.ConnectError("handshake failed") from inner
        except httpx.ConnectError as exc:
            result = classify_exception(exc)
        assert isinstance(result, PermanentTransportError)

    def test_certificate_failure_message_is_permanent(self) -> None:
        exc = httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed")
        assert isinstance(classify_exception(exc), PermanentTransportError)

    def test_tls_failure_not_retried(self, make_transport) -> None:
        transport, handler = make_transport(
            raising_responder(
                lambda request: httpx.ConnectError(
                    "[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed", request=request
                )
            )
        )

        with pytest.raises(PermanentTransportError, match="TLS failure"):
            transport.send("GET", URI, {}, None)
        assert handler.calls == 1


class TestHttpxTransport:
    def test_send_returns_response(self, make_transport) -> None:
        transport, handler = make_transport(json_responder({"a": 1}, headers={"X-Id": "9"}))

        response = transport.send("GET", URI, {"Accept": "application/json"}, None)

        assert response.status_code == 200
        assert response.json() == {"a": 1}
        assert handler.requests[0].headers["accept"] == "application/json"

    def test_body_sent_as_utf8(self, make_transport) -> None:
        transport, handler = make_transport(json_responder({}))

        transport.send("POST", URI, {}, '{"name": "café"}')

        assert handler.requests[0].content == '{"name": "café"}'.encode("utf-8")

    def test_non_2xx_is_not_an_error(self, make_transport) -> None:
        transport, _ = make_transport(json_responder({"error": "nope"}, status_code=503))

        response = transport.send("GET", URI, {}, None)

        assert response.status_code == 503

    def test_accessors_after_send(self, make_transport) -> None:
        transport, _ = make_transport(json_responder({"a": 1}, headers={"X-Id": "9"}))
        transport.send("GET", URI, {}, None)

        assert transport.response_status_code() == 200
        assert transport.response_body() == {"a": 1}
        assert transport.has_response_header("x-id") is True
        assert transport.has_response_header("X-Missing") is False
        assert transport.response_header("X-ID") == "9"
        assert transport.response_header("X-Missing") is None

    def test_accessors_before_send(self, make_transport) -> None:
        transport, _ = make_transport(json_responder({}))

        with pytest.raises(TransportStateError):
            transport.response_status_code()
        with pytest.raises(TransportStateError):
            transport.response_header("X-Id")

    def test_failure_keeps_previous_response(self, make_transport) -> None:
        calls = {"n": 0}

        def respond(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] > 1:
                raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
            return httpx.Response(201, json={})

        transport, _ = make_transport(respond)
        transport.send("GET", URI, {}, None)
        with pytest.raises(TransientTransportError):
            transport.send("GET", URI, {}, None)

        assert transport.response_status_code() == 201

    def test_failures_are_classified(self, make_transport) -> None:
        transport, _ = make_transport(
            raising_responder(lambda request: httpx.ConnectTimeout("slow", request=request))
        )

        with pytest.raises(TransientTransportError) as info:
            transport.send("GET", URI, {}, None)

        assert info.value.kind == FailureKind.TIMEOUT
        assert isinstance(info.value.__cause__, httpx.ConnectTimeout)

    def test_timeout_uses_connect_budget(self) -> None:
        transport = HttpxTransport(connect_timeout_ms=2500)
        assert transport.timeout.connect == 2.5
        assert transport.timeout.read is None

    def test_close_is_idempotent(self, make_transport) -> None:
        transport, _ = make_transport(json_responder({}))
        transport.close()
        transport.close()


class TestTransportResponse:
    def test_first_header_value_wins(self) -> None:
        response = TransportResponse(200, [("Link", "a"), ("link", "b")], b"")
        assert response.header("LINK") == "a"

    @pytest.mark.parametrize("content", [b"", b"not json", b"\xff\xfe"])
    def test_json_none_for_unparseable(self, content: bytes) -> None:
        assert TransportResponse(200, {}, content).json() is None

"""Tests for the HTTP transport."""

import pytest
import requests

from code_migration.exceptions import (
    BadResponseError,
    ServerUnavailableError,
    ServerUnreachableError,
    TransportError,
    TransportTimeoutError,
    ValidationError,
)
from code_migration.transport import CodeClient
from code_migration.types import Kind


class _FakeResponse:
    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _patch_get(monkeypatch, handler):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        return handler(url, params)

    monkeypatch.setattr("code_migration.transport.requests.get", fake_get)
    return calls


def test_full_response(monkeypatch):
    calls = _patch_get(
        monkeypatch,
        lambda url, params: _FakeResponse(
            200,
            {"code": "def fibonacci(n): ...", "call": "fibonacci(10)", "server": "s1", "version": "1.0.0", "cached": False},
        ),
    )

    artifact = CodeClient("http://lb:8080/", timeout=2.5).get_code("fib", 10)

    assert calls == [{"url": "http://lb:8080/fibonacci/10", "params": None, "timeout": 2.5}]
    assert artifact.kind is Kind.FIBONACCI
    assert artifact.n == 10
    assert artifact.cached is False
    assert artifact.source_text == "def fibonacci(n): ..."
    assert artifact.server == "s1"


def test_cached_response_sends_client_version(monkeypatch):
    calls = _patch_get(
        monkeypatch,
        lambda url, params: _FakeResponse(200, {"call": "printCountToN(3)", "version": "1.0.0", "cached": True}),
    )

    artifact = CodeClient().get_code(Kind.COUNT, 3, client_version="1.0.0")

    assert calls[0]["params"] == {"client_version": "1.0.0"}
    assert artifact.cached is True
    assert artifact.source_text is None


def test_400_raises_validation_error_with_server_message(monkeypatch):
    _patch_get(monkeypatch, lambda url, params: _FakeResponse(400, {"error": "Parameter n must be an integer between 0 and 10000"}))

    with pytest.raises(ValidationError, match="between 0 and 10000"):
        CodeClient().get_code(Kind.COUNT, 3)


@pytest.mark.parametrize("status", [502, 503])
def test_gateway_errors(monkeypatch, status):
    _patch_get(monkeypatch, lambda url, params: _FakeResponse(status))

    with pytest.raises(ServerUnavailableError) as exc_info:
        CodeClient().get_code(Kind.COUNT, 3)
    assert exc_info.value.status_code == status


def test_timeout(monkeypatch):
    def handler(url, params):
        raise requests.Timeout("slow")

    _patch_get(monkeypatch, handler)

    with pytest.raises(TransportTimeoutError) as exc_info:
        CodeClient(timeout=5).get_code(Kind.COUNT, 3)
    assert "5 seconds" in exc_info.value.user_message


def test_connection_refused(monkeypatch):
    def handler(url, params):
        raise requests.ConnectionError("refused")

    _patch_get(monkeypatch, handler)

    with pytest.raises(ServerUnreachableError):
        CodeClient("http://nowhere:1").get_code(Kind.COUNT, 3)


@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.InvalidSchema("No connection adapters"),
        requests.exceptions.TooManyRedirects("Exceeded 30 redirects"),
        requests.exceptions.ChunkedEncodingError("Connection broken"),
    ],
)
def test_other_request_errors_become_bad_response(monkeypatch, error):
    def handler(url, params):
        raise error

    _patch_get(monkeypatch, handler)

    client = CodeClient("http://lb:8080")
    with pytest.raises(BadResponseError) as exc_info:
        client.get_code(Kind.COUNT, 3)
    assert isinstance(exc_info.value, TransportError)
    assert client.last_elapsed_ms is not None


def test_url_without_scheme_is_a_transport_error():
    with pytest.raises(TransportError):
        CodeClient("localhost:3001").get_code(Kind.COUNT, 3)


def test_transport_errors_have_distinct_messages():
    messages = {
        TransportTimeoutError(5).user_message,
        ServerUnreachableError("http://x").user_message,
        ServerUnavailableError(503).user_message,
    }
    assert len(messages) == 3


def test_malformed_body(monkeypatch):
    _patch_get(monkeypatch, lambda url, params: _FakeResponse(200, {"version": "1.0.0"}))

    with pytest.raises(BadResponseError):
        CodeClient().get_code(Kind.COUNT, 3)


def test_inconsistent_cached_flag(monkeypatch):
    _patch_get(
        monkeypatch,
        lambda url, params: _FakeResponse(200, {"call": "printCountToN(3)", "version": "1", "cached": False}),
    )

    with pytest.raises(BadResponseError):
        CodeClient().get_code(Kind.COUNT, 3)


def test_other_status(monkeypatch):
    _patch_get(monkeypatch, lambda url, params: _FakeResponse(500, {"message": "boom"}))

    with pytest.raises(BadResponseError, match="boom") as exc_info:
        CodeClient().get_code(Kind.COUNT, 3)
    assert exc_info.value.status_code == 500


def test_health(monkeypatch):
    payload = {"status": "ok", "timestamp": 1, "server": "s1", "version": "1.0.0"}
    calls = _patch_get(monkeypatch, lambda url, params: _FakeResponse(200, payload))

    assert CodeClient("http://lb").health() == payload
    assert calls[0]["url"] == "http://lb/health"

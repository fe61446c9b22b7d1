"""Unit tests for shared HTTP client wrappers."""

from __future__ import annotations

import httpx
import pytest

from packages.newsdesk_shared.http import (
    HttpClient,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)


def _client(handler) -> HttpClient:
    return HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )


def test_http_client_request_json_returns_decoded_payload() -> None:
    """request_json should decode and return JSON content."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True}, request=request)

    with _client(handler) as client:
        assert client.request_json("GET", "/health") == {"ok": True}


def test_http_client_maps_status_failure_to_typed_error() -> None:
    """Non-2xx responses raise HttpStatusError."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            client.request("GET", "/health")

    error = exc_info.value
    assert error.method == "GET"
    assert error.status_code == 503
    assert error.retryable is True
    assert error.response_body == "unavailable"


def test_http_client_treats_client_errors_as_non_retryable() -> None:
    """4xx responses other than 429 are not retryable."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, request=request)

    with _client(handler) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            client.request("POST", "/delete")

    assert exc_info.value.retryable is False


def test_http_client_can_skip_status_check() -> None:
    """raise_for_status=False returns error responses unchanged."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, request=request)

    with _client(handler) as client:
        response = client.request("GET", "/missing", raise_for_status=False)

    assert response.status_code == 404


def test_http_client_maps_transport_failure_to_typed_error() -> None:
    """Transport failures raise HttpRequestError with the original cause."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection failed", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpRequestError) as exc_info:
            client.request("GET", "/health")

    error = exc_info.value
    assert error.url == "https://example.test/health"
    assert error.retryable is True
    assert error.timed_out is False
    assert isinstance(error.cause, httpx.ConnectError)


def test_http_client_flags_timeouts() -> None:
    """Timeouts are marked so callers can count them separately."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpRequestError) as exc_info:
            client.request("GET", "/")

    assert exc_info.value.timed_out is True


def test_http_client_maps_json_decode_failure_to_typed_error() -> None:
    """Invalid JSON bodies raise HttpJsonDecodeError."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not-json", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpJsonDecodeError) as exc_info:
            client.request_json("GET", "/health")

    assert exc_info.value.status_code == 200
    assert exc_info.value.response_body == "not-json"

"""Unit tests for the REST-backed blob store substrate."""

from __future__ import annotations

import json

import httpx
import pytest

from packages.newsdesk_shared.http import HttpRequestError, HttpStatusError
from resources.substrates.blob_store import BlobStoreSettings, HttpBlobStoreSubstrate

_URL = "https://store.public.blob.vercel-storage.com/images/a.png"


def _substrate(handler) -> HttpBlobStoreSubstrate:
    """Create one substrate routed through an in-process mock transport."""
    return HttpBlobStoreSubstrate(
        settings=BlobStoreSettings(backend="http", token="rw-token"),
        transport=httpx.MockTransport(handler),
    )


def test_list_sends_bearer_token_and_parses_page() -> None:
    """List should authenticate, pass prefix/cursor, and return urls plus cursor."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "blobs": [{"url": _URL, "pathname": "images/a.png"}],
                "cursor": "next-1",
                "hasMore": True,
            },
        )

    substrate = _substrate(handler)
    page = substrate.list_blobs(prefix="/images/", cursor="c-0", limit=50)

    assert page.urls == (_URL,)
    assert page.cursor == "next-1"
    request = seen[0]
    assert request.headers["authorization"] == "Bearer rw-token"
    assert request.url.params["prefix"] == "images/"
    assert request.url.params["cursor"] == "c-0"
    assert request.url.params["limit"] == "50"


def test_list_drops_cursor_when_no_more_pages() -> None:
    """A final page yields no cursor even if the API echoes one."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"blobs": [], "cursor": "x", "hasMore": False})

    assert _substrate(handler).list_blobs(prefix="images/").cursor is None


def test_delete_posts_url_batch() -> None:
    """Delete should POST the url inside a ``urls`` array."""
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/delete"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    assert _substrate(handler).delete_blob(url=_URL) is True
    assert bodies == [{"urls": [_URL]}]


def test_delete_treats_not_found_as_already_deleted() -> None:
    """A 404 means the object is already gone."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    assert _substrate(handler).delete_blob(url=_URL) is False


def test_delete_raises_typed_error_on_server_failure() -> None:
    """Server failures propagate as typed status errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(HttpStatusError) as exc_info:
        _substrate(handler).delete_blob(url=_URL)
    assert exc_info.value.retryable is True


def test_delete_timeout_is_marked_timed_out() -> None:
    """Timeouts surface as request errors flagged as timed out."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(HttpRequestError) as exc_info:
        _substrate(handler).delete_blob(url=_URL)
    assert exc_info.value.timed_out is True


def test_put_uploads_without_random_suffix() -> None:
    """Put should PUT the content at the key path and return the API url."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.url.path == "/images/a.png"
        assert request.headers["x-content-type"] == "image/png"
        assert request.headers["x-add-random-suffix"] == "0"
        assert request.content == b"png"
        return httpx.Response(200, json={"url": _URL, "pathname": "images/a.png"})

    url = _substrate(handler).put_blob(
        key="images/a.png", content=b"png", content_type="image/png"
    )

    assert url == _URL


def test_health_reports_probe_failure() -> None:
    """Unauthorized probes report not-ready instead of raising."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    status = _substrate(handler).health()

    assert status.ready is False
    assert status.detail == "blob store probe failed: HttpStatusError"

"""Blob store substrate backed by a Vercel-Blob-compatible REST API."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from packages.newsdesk_shared.http import HttpClient, HttpClientError, HttpStatusError
from packages.newsdesk_shared.logging import get_logger
from resources.substrates.blob_store.config import BlobStoreSettings
from resources.substrates.blob_store.substrate import (
    BlobListPage,
    BlobStoreHealthStatus,
    BlobStoreSubstrate,
)
from resources.substrates.blob_store.validation import (
    normalize_blob_key,
    normalize_prefix,
)

_LOGGER = get_logger(__name__)


class HttpBlobStoreSubstrate(BlobStoreSubstrate):
    """Talk to the blob REST API with bearer-token authentication.

    All calls are bounded by ``timeout_seconds``; transport and status failures
    surface as the shared typed HTTP errors.
    """

    def __init__(
        self,
        *,
        settings: BlobStoreSettings,
        client: HttpClient | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or HttpClient(
            base_url=settings.api_url,
            timeout_seconds=settings.timeout_seconds,
            headers={
                "authorization": f"Bearer {settings.token}",
                "x-api-version": settings.api_version,
            },
            transport=transport,
        )

    def close(self) -> None:
        """Release HTTP transport resources."""
        self._client.close()

    def health(self) -> BlobStoreHealthStatus:
        """Return readiness from a one-item list call."""
        try:
            self._client.request("GET", "/", params={"limit": 1})
        except HttpClientError as exc:
            return BlobStoreHealthStatus(
                ready=False,
                detail=f"blob store probe failed: {type(exc).__name__}",
            )
        return BlobStoreHealthStatus(ready=True, detail="ok")

    def put_blob(self, *, key: str, content: bytes, content_type: str) -> str:
        """Upload one public object without a random suffix and return its URL."""
        pathname = normalize_blob_key(key)
        body: dict[str, Any] = self._client.request_json(
            "PUT",
            f"/{quote(pathname)}",
            content=content,
            headers={
                "x-content-type": content_type or "application/octet-stream",
                "x-add-random-suffix": "0",
            },
        )
        url = body.get("url") if isinstance(body, dict) else None
        if not isinstance(url, str) or url == "":
            raise ValueError("blob store put response did not include a url")
        return url

    def delete_blob(self, *, url: str) -> bool:
        """Delete one object by URL, treating 404 as already deleted."""
        try:
            self._client.request("POST", "/delete", json={"urls": [url]})
        except HttpStatusError as exc:
            if exc.status_code == 404:
                _LOGGER.info("blob already absent: status_code=%s", exc.status_code)
                return False
            raise
        return True

    def list_blobs(
        self, *, prefix: str, cursor: str | None = None, limit: int | None = None
    ) -> BlobListPage:
        """List one page of object URLs under ``prefix``."""
        params: dict[str, str | int] = {
            "prefix": normalize_prefix(prefix),
            "limit": limit or self._settings.list_page_size,
        }
        if cursor:
            params["cursor"] = cursor
        body = self._client.request_json("GET", "/", params=params)
        if not isinstance(body, dict):
            raise ValueError("blob store list response must be an object")

        urls = tuple(
            item["url"]
            for item in body.get("blobs", [])
            if isinstance(item, dict) and isinstance(item.get("url"), str)
        )
        next_cursor = body.get("cursor")
        if body.get("hasMore") is False or not isinstance(next_cursor, str) or not next_cursor:
            next_cursor = None
        return BlobListPage(urls=urls, cursor=next_cursor)

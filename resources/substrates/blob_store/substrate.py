"""Transport-agnostic protocol for blob object-store operations."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict


class BlobStoreHealthStatus(BaseModel):
    """Blob store substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class BlobListPage(BaseModel):
    """One page of object URLs plus the continuation cursor, if any."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    urls: tuple[str, ...] = ()
    cursor: str | None = None


class BlobStoreSubstrate(Protocol):
    """Protocol for URL-addressed blob persistence operations."""

    def health(self) -> BlobStoreHealthStatus:
        """Probe blob store readiness."""

    def put_blob(self, *, key: str, content: bytes, content_type: str) -> str:
        """Store one object under ``key`` and return its public URL."""

    def delete_blob(self, *, url: str) -> bool:
        """Delete one object by URL; return ``False`` when it was already absent."""

    def list_blobs(
        self, *, prefix: str, cursor: str | None = None, limit: int | None = None
    ) -> BlobListPage:
        """List one page of object URLs under ``prefix``."""

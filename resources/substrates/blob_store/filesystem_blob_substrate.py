"""Directory-backed blob store substrate with atomic safe-write semantics."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path
from tempfile import NamedTemporaryFile

from resources.substrates.blob_store.config import BlobStoreSettings
from resources.substrates.blob_store.substrate import (
    BlobListPage,
    BlobStoreHealthStatus,
    BlobStoreSubstrate,
)
from resources.substrates.blob_store.validation import (
    key_from_url,
    normalize_blob_key,
    normalize_prefix,
)


class LocalFilesystemBlobStoreSubstrate(BlobStoreSubstrate):
    """Persist objects on local disk under their key, published at a base URL."""

    def __init__(self, *, settings: BlobStoreSettings) -> None:
        self._settings = settings
        self._root = settings.root_path()
        self._base_url = settings.public_base_url

    def health(self) -> BlobStoreHealthStatus:
        """Return readiness for root directory access."""
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            if not self._root.is_dir():
                return BlobStoreHealthStatus(
                    ready=False,
                    detail=f"root path is not a directory: {self._root}",
                )
        except Exception as exc:  # noqa: BLE001
            return BlobStoreHealthStatus(
                ready=False,
                detail=f"filesystem probe failed: {type(exc).__name__}",
            )
        return BlobStoreHealthStatus(ready=True, detail="ok")

    def url_for_key(self, key: str) -> str:
        """Return the public URL for one object key."""
        return f"{self._base_url}/{normalize_blob_key(key)}"

    def put_blob(self, *, key: str, content: bytes, content_type: str) -> str:
        """Write one object atomically, replacing any previous content."""
        del content_type
        normalized = normalize_blob_key(key)
        path = self._root / normalized
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="wb",
                prefix=f".{self._settings.temp_prefix}-",
                suffix=".tmp",
                dir=path.parent,
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(content)
                handle.flush()
                if self._settings.fsync_writes:
                    os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink(missing_ok=True)
        return self.url_for_key(normalized)

    def delete_blob(self, *, url: str) -> bool:
        """Delete one object by URL and return whether a file existed."""
        if not url.startswith(f"{self._base_url}/"):
            raise ValueError(f"url is outside this blob store: {url}")
        path = self._root / normalize_blob_key(key_from_url(url), field_name="url")
        if not path.is_file():
            return False
        path.unlink()
        return True

    def list_blobs(
        self, *, prefix: str, cursor: str | None = None, limit: int | None = None
    ) -> BlobListPage:
        """List object URLs in key order; the cursor is the last returned key."""
        page_size = limit or self._settings.list_page_size
        wanted = normalize_prefix(prefix)
        keys = sorted(
            key
            for key in self._iter_keys()
            if key.startswith(wanted) and (cursor is None or key > cursor)
        )
        page = keys[:page_size]
        next_cursor = page[-1] if len(keys) > page_size else None
        return BlobListPage(
            urls=tuple(self.url_for_key(key) for key in page),
            cursor=next_cursor,
        )

    def _iter_keys(self) -> Iterator[str]:
        """Yield keys of stored objects, skipping in-flight temp files."""
        if not self._root.is_dir():
            return
        for path in self._root.rglob("*"):
            if path.is_file() and not path.name.startswith("."):
                yield path.relative_to(self._root).as_posix()

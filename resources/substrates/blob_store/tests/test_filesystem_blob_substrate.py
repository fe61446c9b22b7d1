"""Unit tests for the directory-backed blob store substrate."""

from __future__ import annotations

from pathlib import Path

import pytest

import resources.substrates.blob_store.filesystem_blob_substrate as filesystem_module
from resources.substrates.blob_store import (
    BlobStoreSettings,
    LocalFilesystemBlobStoreSubstrate,
)

_BASE = "https://local.public.blob.vercel-storage.com"


def _substrate(tmp_path: Path, **overrides: object) -> LocalFilesystemBlobStoreSubstrate:
    """Create one substrate rooted in the test temp directory."""
    settings = BlobStoreSettings(
        backend="filesystem", root_dir=str(tmp_path), **overrides
    )
    return LocalFilesystemBlobStoreSubstrate(settings=settings)


def test_put_returns_public_url_and_writes_content(tmp_path: Path) -> None:
    """Put should store the object under its key and publish it at the base URL."""
    substrate = _substrate(tmp_path)

    url = substrate.put_blob(key="/images/a.png", content=b"png", content_type="image/png")

    assert url == f"{_BASE}/images/a.png"
    assert (tmp_path / "images" / "a.png").read_bytes() == b"png"


def test_delete_reports_whether_object_existed(tmp_path: Path) -> None:
    """Deleting twice succeeds both times; only the first removed a file."""
    substrate = _substrate(tmp_path)
    url = substrate.put_blob(key="images/a.png", content=b"x", content_type="image/png")

    assert substrate.delete_blob(url=url) is True
    assert substrate.delete_blob(url=url) is False


def test_delete_rejects_foreign_urls(tmp_path: Path) -> None:
    """URLs outside the configured base are never mapped onto local paths."""
    substrate = _substrate(tmp_path)

    with pytest.raises(ValueError, match="outside this blob store"):
        substrate.delete_blob(url="https://example.com/images/a.png")


def test_put_rejects_relative_segments(tmp_path: Path) -> None:
    """Keys may not escape the root directory."""
    substrate = _substrate(tmp_path)

    with pytest.raises(ValueError):
        substrate.put_blob(key="images/../../etc/passwd", content=b"", content_type="")


def test_list_paginates_by_key_under_prefix(tmp_path: Path) -> None:
    """Listing filters by prefix and pages in key order with a key cursor."""
    substrate = _substrate(tmp_path)
    for name in ("images/c.png", "images/a.png", "images/b.png", "docs/x.pdf"):
        substrate.put_blob(key=name, content=b"x", content_type="")

    first = substrate.list_blobs(prefix="images/", limit=2)
    second = substrate.list_blobs(prefix="images/", cursor=first.cursor, limit=2)

    assert first.urls == (f"{_BASE}/images/a.png", f"{_BASE}/images/b.png")
    assert first.cursor == "images/b.png"
    assert second.urls == (f"{_BASE}/images/c.png",)
    assert second.cursor is None


def test_list_on_missing_root_is_empty(tmp_path: Path) -> None:
    """A root that does not exist yet lists nothing."""
    substrate = _substrate(tmp_path / "missing")

    page = substrate.list_blobs(prefix="")

    assert page.urls == ()
    assert page.cursor is None


def test_put_failure_cleans_temp_files(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Temp files should be cleaned even when atomic replace fails."""
    substrate = _substrate(tmp_path)

    def _raise_replace(*args: object, **kwargs: object) -> object:
        del args, kwargs
        raise OSError("replace failed")

    monkeypatch.setattr(filesystem_module.os, "replace", _raise_replace)

    with pytest.raises(OSError, match="replace failed"):
        substrate.put_blob(key="images/a.png", content=b"payload", content_type="")

    assert list((tmp_path / "images").glob(".blobtmp-*.tmp")) == []


def test_health_reports_root_file_as_not_ready(tmp_path: Path) -> None:
    """A root path that is a regular file is reported as not ready."""
    root_file = tmp_path / "root-file"
    root_file.write_text("not-a-dir", encoding="utf-8")

    status = _substrate(root_file).health()

    assert status.ready is False

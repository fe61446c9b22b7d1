"""Construct the configured blob store substrate implementation."""

from __future__ import annotations

from resources.substrates.blob_store.config import BlobStoreSettings
from resources.substrates.blob_store.filesystem_blob_substrate import (
    LocalFilesystemBlobStoreSubstrate,
)
from resources.substrates.blob_store.http_blob_substrate import HttpBlobStoreSubstrate
from resources.substrates.blob_store.substrate import BlobStoreSubstrate


def build_blob_store(settings: BlobStoreSettings) -> BlobStoreSubstrate:
    """Return the blob store implementation selected by ``settings.backend``."""
    if settings.backend == "filesystem":
        return LocalFilesystemBlobStoreSubstrate(settings=settings)
    return HttpBlobStoreSubstrate(settings=settings)

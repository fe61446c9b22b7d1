"""Blob object-store substrate resource exports."""

from resources.substrates.blob_store.component import RESOURCE_COMPONENT_ID
from resources.substrates.blob_store.config import (
    BlobStoreSettings,
    resolve_blob_store_settings,
)
from resources.substrates.blob_store.factory import build_blob_store
from resources.substrates.blob_store.filesystem_blob_substrate import (
    LocalFilesystemBlobStoreSubstrate,
)
from resources.substrates.blob_store.http_blob_substrate import HttpBlobStoreSubstrate
from resources.substrates.blob_store.substrate import (
    BlobListPage,
    BlobStoreHealthStatus,
    BlobStoreSubstrate,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "BlobListPage",
    "BlobStoreHealthStatus",
    "BlobStoreSettings",
    "BlobStoreSubstrate",
    "HttpBlobStoreSubstrate",
    "LocalFilesystemBlobStoreSubstrate",
    "build_blob_store",
    "resolve_blob_store_settings",
]

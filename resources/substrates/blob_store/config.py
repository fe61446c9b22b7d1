"""Pydantic settings for the blob object-store substrate."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from packages.newsdesk_shared.config import NewsdeskSettings, resolve_component_settings
from resources.substrates.blob_store.component import RESOURCE_COMPONENT_ID


class BlobStoreSettings(BaseModel):
    """Blob store runtime settings.

    ``backend=http`` talks to a Vercel-Blob-compatible REST API with a bearer
    token. ``backend=filesystem`` keeps objects under ``root_dir`` and publishes
    them under ``public_base_url``; it exists for development and tests.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: Literal["http", "filesystem"] = "http"
    api_url: str = "https://blob.vercel-storage.com"
    api_version: str = "7"
    token: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0)
    list_page_size: int = Field(default=1000, gt=0, le=1000)
    public_base_url: str = "https://local.public.blob.vercel-storage.com"
    root_dir: str = "./var/blobs"
    temp_prefix: str = "blobtmp"
    fsync_writes: bool = True

    @field_validator("api_url", "public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        """Require a non-empty base URL and drop trailing slashes."""
        normalized = value.strip().rstrip("/")
        if normalized == "":
            raise ValueError("base url is required")
        return normalized

    @field_validator("root_dir", "temp_prefix")
    @classmethod
    def _require_non_empty(cls, value: str) -> str:
        """Require non-empty filesystem settings."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("value is required")
        return normalized

    @model_validator(mode="after")
    def _require_token_for_http(self) -> "BlobStoreSettings":
        """Reject an http backend without a read-write token."""
        if self.backend == "http" and self.token.strip() == "":
            raise ValueError("token is required when backend is http")
        return self

    def root_path(self) -> Path:
        """Return the expanded root path for filesystem operations."""
        return Path(self.root_dir).expanduser().resolve()


def resolve_blob_store_settings(settings: NewsdeskSettings) -> BlobStoreSettings:
    """Resolve blob store settings from ``components.substrate.blob_store``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(RESOURCE_COMPONENT_ID),
        model=BlobStoreSettings,
    )

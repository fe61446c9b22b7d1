"""Pydantic settings for Asset Authority Service behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.newsdesk_shared.config import NewsdeskSettings, resolve_component_settings
from services.state.asset_authority.component import SERVICE_COMPONENT_ID


class AssetAuthoritySettings(BaseModel):
    """Asset Authority Service runtime behavior settings.

    ``quarantine_seconds=0`` reclaims orphaned assets immediately. A positive
    window only marks zero-reference assets inline and leaves physical deletion
    to a later sweep once the window has elapsed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    managed_host_suffix: str = "public.blob.vercel-storage.com"
    default_prefix: str = "images/"
    sample_size: int = Field(default=10, ge=0)
    quarantine_seconds: int = Field(default=0, ge=0)
    registry_orphan_batch_limit: int = Field(default=1000, gt=0)
    resync_batch_limit: int = Field(default=10000, gt=0)
    max_upload_bytes: int = Field(default=20 * 1024 * 1024, gt=0)

    @field_validator("managed_host_suffix")
    @classmethod
    def _validate_host_suffix(cls, value: str) -> str:
        """Require a bare lowercase hostname suffix."""
        normalized = value.strip().strip(".").lower()
        if normalized == "":
            raise ValueError("managed_host_suffix is required")
        if "/" in normalized or ":" in normalized:
            raise ValueError("managed_host_suffix must be a hostname, not a URL")
        return normalized

    @field_validator("default_prefix")
    @classmethod
    def _validate_default_prefix(cls, value: str) -> str:
        """Normalize the default sweep prefix without leading slashes."""
        return value.strip().lstrip("/")


def resolve_asset_authority_settings(
    settings: NewsdeskSettings,
) -> AssetAuthoritySettings:
    """Resolve settings from ``components.service.asset_authority``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(SERVICE_COMPONENT_ID),
        model=AssetAuthoritySettings,
    )

"""Pydantic request-validation models for Asset Authority Service API."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from packages.newsdesk_shared.ids import ulid_str_to_bytes
from services.state.asset_authority.domain import (
    AssetEntityType,
    EntityFields,
    EntitySnapshot,
)


class _ValidationModel(BaseModel):
    """Base request model with strict shape semantics."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class EntityRefRequest(_ValidationModel):
    """Validated identity of one referencing entity."""

    entity_type: AssetEntityType
    entity_id: str

    @field_validator("entity_id")
    @classmethod
    def _validate_entity_id(cls, value: str, info: ValidationInfo) -> str:
        """Require a non-empty identifier that fits the reference column."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError(f"{info.field_name} is required")
        if len(normalized) > 191:
            raise ValueError(f"{info.field_name} must be at most 191 characters")
        return normalized


class SyncEntityRequest(EntityRefRequest):
    """Validated sync request for one entity."""

    fields: EntityFields = Field(default_factory=EntityFields)


class EnsureAssetRequest(_ValidationModel):
    """Validated request for registering one URL."""

    url: str

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        """Require a non-empty URL; namespace is checked by the service."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("url is required")
        return normalized


class CollectRequest(_ValidationModel):
    """Validated inline-collection request over explicit asset ids."""

    asset_ids: tuple[str, ...]

    @field_validator("asset_ids")
    @classmethod
    def _validate_asset_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Require canonical ULID strings and drop duplicates, keeping order."""
        normalized: list[str] = []
        for item in value:
            candidate = item.strip().upper()
            ulid_str_to_bytes(candidate)
            if candidate not in normalized:
                normalized.append(candidate)
        return tuple(normalized)


class SweepRequest(_ValidationModel):
    """Validated reconciliation sweep request."""

    prefix: str
    dry_run: bool = False
    include_registry_orphans: bool = False

    @field_validator("prefix")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        """Normalize the listing prefix and reject relative segments."""
        normalized = value.strip().lstrip("/")
        if ".." in normalized.split("/"):
            raise ValueError("prefix must not contain relative segments")
        return normalized


class ResyncRequest(_ValidationModel):
    """Validated bulk resync request."""

    snapshots: tuple[EntitySnapshot, ...]


class UploadAssetRequest(_ValidationModel):
    """Validated image upload request."""

    filename: str
    content: bytes
    content_type: str

    @field_validator("filename")
    @classmethod
    def _validate_filename(cls, value: str) -> str:
        """Reduce the client filename to a safe lowercase key segment."""
        name = value.strip().replace("\\", "/").rsplit("/", 1)[-1].lower()
        name = re.sub(r"[^a-z0-9._-]+", "-", name)
        name = re.sub(r"-+", "-", name).strip("-")
        return name or "upload.jpg"

    @field_validator("content")
    @classmethod
    def _validate_content(cls, value: bytes) -> bytes:
        """Reject empty uploads."""
        if not value:
            raise ValueError("content must not be empty")
        return value

    @field_validator("content_type")
    @classmethod
    def _validate_content_type(cls, value: str) -> str:
        """Accept image media types only."""
        normalized = value.strip().lower()
        if not normalized.startswith("image/"):
            raise ValueError("content_type must be an image type")
        return normalized

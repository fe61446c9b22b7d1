"""Domain contracts for Asset Authority Service payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AssetEntityType(str, Enum):
    """Entity kinds that may reference managed assets."""

    POST = "post"
    PAGE = "page"


class AssetRecord(BaseModel):
    """One registered blob URL."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    url: str
    key: str
    orphaned_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class EntityFields(BaseModel):
    """Reference-bearing fields of one entity; every field is optional."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cover_url: str | None = None
    content: str | None = None
    story_content: str | None = None


class EntitySnapshot(BaseModel):
    """Identity plus current fields of one entity, used for bulk resync."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entity_type: AssetEntityType
    entity_id: str
    fields: EntityFields = Field(default_factory=EntityFields)


class RefSyncDiff(BaseModel):
    """Committed row-level diff of one entity's references."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    touched_asset_ids: tuple[str, ...] = ()


class AssetDeletionOutcome(BaseModel):
    """Result of reclaiming one orphan candidate."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    asset_id: str
    url: str
    registry_deleted: bool = False
    quarantined: bool = False
    storage_deleted: bool = False
    error: str = ""


class CollectReport(BaseModel):
    """Aggregate result of one inline collection pass."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    examined: int = 0
    orphaned: int = 0
    deleted: int = 0
    quarantined: int = 0
    storage_failures: int = 0
    outcomes: tuple[AssetDeletionOutcome, ...] = ()


class SyncResult(BaseModel):
    """Result of synchronizing (or removing) one entity's references."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entity_type: AssetEntityType
    entity_id: str
    desired_urls: tuple[str, ...]
    added: tuple[str, ...]
    removed: tuple[str, ...]
    touched_asset_ids: tuple[str, ...]
    collect: CollectReport


class SweepReport(BaseModel):
    """Result of one reconciliation sweep.

    Registry fields are ``None`` when the registry pass was not requested.
    ``storage_pass_complete`` is ``False`` when a listing call failed and the
    storage pass stopped early.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    prefix: str
    dry_run: bool
    scanned: int = 0
    orphaned_in_storage: int = 0
    storage_deleted: int = 0
    storage_failures: int = 0
    storage_pass_complete: bool = True
    registry_orphans: int | None = None
    registry_orphans_deleted: int | None = None
    registry_orphans_deferred: int = 0
    sample: tuple[str, ...] = ()


class ResyncReport(BaseModel):
    """Result of re-synchronizing a batch of entity snapshots."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    requested: int = 0
    synced_by_type: dict[str, int] = Field(default_factory=dict)
    failed_by_type: dict[str, int] = Field(default_factory=dict)
    failed_entities: tuple[str, ...] = ()
    assets_deleted: int = 0


class HealthStatus(BaseModel):
    """Asset Authority and owned dependency readiness status payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_ready: bool
    registry_ready: bool
    blob_store_ready: bool
    detail: str

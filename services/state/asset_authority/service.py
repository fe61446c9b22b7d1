"""Authoritative in-process Python API for Asset Authority Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from packages.newsdesk_shared.config import NewsdeskSettings
from packages.newsdesk_shared.envelope import Envelope, EnvelopeMeta
from resources.substrates.blob_store.substrate import BlobStoreSubstrate
from services.state.asset_authority.domain import (
    AssetEntityType,
    AssetRecord,
    CollectReport,
    EntityFields,
    EntitySnapshot,
    HealthStatus,
    ResyncReport,
    SweepReport,
    SyncResult,
)


class AssetAuthorityService(ABC):
    """Public API for blob reference tracking and storage reclamation."""

    @abstractmethod
    def sync_entity(
        self,
        *,
        meta: EnvelopeMeta,
        entity_type: AssetEntityType,
        entity_id: str,
        fields: EntityFields,
    ) -> Envelope[SyncResult]:
        """Make one entity's references match its current fields, then collect."""

    @abstractmethod
    def remove_entity(
        self,
        *,
        meta: EnvelopeMeta,
        entity_type: AssetEntityType,
        entity_id: str,
    ) -> Envelope[SyncResult]:
        """Drop every reference held by one deleted entity, then collect."""

    @abstractmethod
    def ensure_asset(self, *, meta: EnvelopeMeta, url: str) -> Envelope[AssetRecord]:
        """Register one managed URL and return its registry record."""

    @abstractmethod
    def upload_asset(
        self,
        *,
        meta: EnvelopeMeta,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> Envelope[AssetRecord]:
        """Store one image under the default prefix and register its URL."""

    @abstractmethod
    def collect(
        self, *, meta: EnvelopeMeta, asset_ids: Sequence[str]
    ) -> Envelope[CollectReport]:
        """Reclaim the listed assets that have no remaining references."""

    @abstractmethod
    def sweep(
        self,
        *,
        meta: EnvelopeMeta,
        prefix: str | None = None,
        dry_run: bool = False,
        include_registry_orphans: bool = False,
    ) -> Envelope[SweepReport]:
        """Reconcile the object store under ``prefix`` against the registry."""

    @abstractmethod
    def resync_entities(
        self, *, meta: EnvelopeMeta, snapshots: Sequence[EntitySnapshot]
    ) -> Envelope[ResyncReport]:
        """Re-synchronize a batch of entities, isolating per-entity failures."""

    @abstractmethod
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return service and owned dependency readiness status."""


def build_asset_authority_service(
    *,
    settings: NewsdeskSettings,
    blob_store: BlobStoreSubstrate | None = None,
) -> AssetAuthorityService:
    """Build default Asset Authority implementation from typed settings."""
    from resources.substrates.blob_store import (
        build_blob_store,
        resolve_blob_store_settings,
    )
    from services.state.asset_authority.config import resolve_asset_authority_settings
    from services.state.asset_authority.data import (
        AssetPostgresRuntime,
        PostgresAssetRepository,
    )
    from services.state.asset_authority.implementation import (
        DefaultAssetAuthorityService,
    )

    runtime = AssetPostgresRuntime.from_settings(settings)
    return DefaultAssetAuthorityService(
        settings=resolve_asset_authority_settings(settings),
        repository=PostgresAssetRepository(runtime.schema_sessions),
        blob_store=blob_store
        or build_blob_store(resolve_blob_store_settings(settings)),
    )

"""Transport-neutral protocol interfaces used by Asset Authority Service."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import datetime
from typing import Protocol

from services.state.asset_authority.domain import (
    AssetEntityType,
    AssetRecord,
    RefSyncDiff,
)


class AssetRepository(Protocol):
    """Protocol for the authoritative asset registry and reference index."""

    def ensure_asset(self, *, url: str) -> AssetRecord:
        """Return the registry row for ``url``, creating it when missing."""

    def sync_entity_refs(
        self,
        *,
        entity_type: AssetEntityType,
        entity_id: str,
        desired_urls: Collection[str],
    ) -> RefSyncDiff:
        """Make one entity's references equal ``desired_urls`` in one transaction."""

    def count_refs(self, *, asset_ids: Sequence[str]) -> dict[str, int]:
        """Return reference counts for assets that still have at least one ref."""

    def get_assets(self, *, asset_ids: Sequence[str]) -> list[AssetRecord]:
        """Return registry rows that still exist for ``asset_ids``."""

    def delete_asset_if_unreferenced(
        self, *, asset_id: str, orphaned_before: datetime | None = None
    ) -> bool:
        """Delete one registry row only if no reference exists at delete time."""

    def mark_orphaned(self, *, asset_id: str, at: datetime) -> bool:
        """Stamp ``orphaned_at`` on one unreferenced, unmarked registry row."""

    def existing_urls(self, *, urls: Sequence[str]) -> set[str]:
        """Return the subset of ``urls`` present in the registry."""

    def list_unreferenced_assets(self, *, limit: int) -> list[AssetRecord]:
        """Return up to ``limit`` registry rows that have no references."""

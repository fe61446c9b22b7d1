"""Inline collection of assets that lost their last reference."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from packages.newsdesk_shared.logging import get_logger, log_context
from packages.newsdesk_shared.logging import fields as log_fields
from resources.substrates.blob_store.substrate import BlobStoreSubstrate
from services.state.asset_authority.domain import AssetDeletionOutcome, CollectReport
from services.state.asset_authority.interfaces import AssetRepository

_LOGGER = get_logger(__name__)


class InlineCollector:
    """Reclaim zero-reference assets from a touched set.

    Each candidate is claimed with a guarded registry delete before its object
    is removed, and object-store failures are logged and counted, never raised.
    With a quarantine window candidates are only marked and the sweep reclaims
    them later.
    """

    def __init__(
        self,
        *,
        repository: AssetRepository,
        blob_store: BlobStoreSubstrate,
        quarantine_seconds: int = 0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._blob_store = blob_store
        self._quarantine_seconds = quarantine_seconds
        self._clock = clock or _utc_now

    def collect(self, asset_ids: Iterable[str]) -> CollectReport:
        """Examine touched assets and reclaim the ones with no references."""
        touched = list(dict.fromkeys(asset_ids))
        if not touched:
            return CollectReport()

        try:
            counts = self._repository.count_refs(asset_ids=touched)
            candidates = [asset_id for asset_id in touched if counts.get(asset_id, 0) == 0]
            records = self._repository.get_assets(asset_ids=candidates)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "inline collection skipped: candidates=%d exception_type=%s",
                len(touched),
                type(exc).__name__,
                exc_info=exc,
            )
            return CollectReport(examined=len(touched))

        outcomes = [self._reclaim(record.id, record.url) for record in records]
        return CollectReport(
            examined=len(touched),
            orphaned=len(records),
            deleted=sum(1 for item in outcomes if item.registry_deleted),
            quarantined=sum(1 for item in outcomes if item.quarantined),
            storage_failures=sum(
                1 for item in outcomes if item.registry_deleted and not item.storage_deleted
            ),
            outcomes=tuple(outcomes),
        )

    def _reclaim(self, asset_id: str, url: str) -> AssetDeletionOutcome:
        """Process one candidate in isolation from the others."""
        with log_context({log_fields.ASSET_ID: asset_id, log_fields.BLOB_URL: url}):
            try:
                if self._quarantine_seconds > 0:
                    marked = self._repository.mark_orphaned(
                        asset_id=asset_id, at=self._clock()
                    )
                    return AssetDeletionOutcome(
                        asset_id=asset_id, url=url, quarantined=marked
                    )
                claimed = self._repository.delete_asset_if_unreferenced(
                    asset_id=asset_id
                )
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning(
                    "orphan candidate skipped: exception_type=%s",
                    type(exc).__name__,
                    exc_info=exc,
                )
                return AssetDeletionOutcome(
                    asset_id=asset_id, url=url, error=type(exc).__name__
                )

            if not claimed:
                return AssetDeletionOutcome(asset_id=asset_id, url=url)
            error = delete_blob_best_effort(self._blob_store, url=url)
            return AssetDeletionOutcome(
                asset_id=asset_id,
                url=url,
                registry_deleted=True,
                storage_deleted=error == "",
                error=error,
            )


def delete_blob_best_effort(blob_store: BlobStoreSubstrate, *, url: str) -> str:
    """Delete one object, returning an exception type name on failure or ``""``."""
    try:
        blob_store.delete_blob(url=url)
    except Exception as exc:  # noqa: BLE001
        _LOGGER.warning(
            "blob delete failed: exception_type=%s",
            type(exc).__name__,
            exc_info=exc,
        )
        return type(exc).__name__
    return ""


def _utc_now() -> datetime:
    """Return current UTC timestamp."""
    return datetime.now(UTC)

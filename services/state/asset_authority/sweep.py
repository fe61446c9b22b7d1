"""Reconciliation sweep between the object store and the asset registry."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from packages.newsdesk_shared.logging import get_logger
from resources.substrates.blob_store.substrate import BlobStoreSubstrate
from services.state.asset_authority.collector import delete_blob_best_effort
from services.state.asset_authority.domain import SweepReport
from services.state.asset_authority.interfaces import AssetRepository
from services.state.asset_authority.references import BlobUrlClassifier

_LOGGER = get_logger(__name__)


class ReconciliationSweep:
    """Find and reclaim objects unknown to the registry, and optionally the reverse.

    The storage pass pages through the object store under one prefix and deletes
    objects with no registry row. The registry pass finds zero-reference rows and
    reclaims them with the same guarded delete the inline collector uses. Both
    passes are safe to repeat and to run alongside live syncs.
    """

    def __init__(
        self,
        *,
        repository: AssetRepository,
        blob_store: BlobStoreSubstrate,
        classifier: BlobUrlClassifier,
        sample_size: int = 10,
        page_size: int | None = None,
        quarantine_seconds: int = 0,
        registry_orphan_batch_limit: int = 1000,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._blob_store = blob_store
        self._classifier = classifier
        self._sample_size = sample_size
        self._page_size = page_size
        self._quarantine = timedelta(seconds=quarantine_seconds)
        self._registry_orphan_batch_limit = registry_orphan_batch_limit
        self._clock = clock or (lambda: datetime.now(UTC))

    def run(
        self,
        *,
        prefix: str,
        dry_run: bool = False,
        include_registry_orphans: bool = False,
    ) -> SweepReport:
        """Run the storage pass, then the registry pass when requested."""
        scanned = 0
        orphaned = 0
        deleted = 0
        failures = 0
        complete = True
        sample: list[str] = []

        cursor: str | None = None
        while True:
            try:
                page = self._blob_store.list_blobs(
                    prefix=prefix, cursor=cursor, limit=self._page_size
                )
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning(
                    "storage listing failed; ending storage pass: prefix=%s exception_type=%s",
                    prefix,
                    type(exc).__name__,
                    exc_info=exc,
                )
                failures += 1
                complete = False
                break
            scanned += len(page.urls)
            # Listed URL -> registry form; lookups go by the canonical URL.
            listed: dict[str, str] = {}
            for item in page.urls:
                canonical = self._classifier.canonicalize(item)
                if canonical is not None:
                    listed[item] = canonical
            known = (
                self._repository.existing_urls(urls=sorted(set(listed.values())))
                if listed
                else set()
            )
            for item, canonical in listed.items():
                if canonical in known:
                    continue
                orphaned += 1
                if len(sample) < self._sample_size:
                    sample.append(item)
                if dry_run:
                    continue
                if delete_blob_best_effort(self._blob_store, url=item):
                    failures += 1
                else:
                    deleted += 1
            cursor = page.cursor
            if not cursor:
                break

        report = SweepReport(
            prefix=prefix,
            dry_run=dry_run,
            scanned=scanned,
            orphaned_in_storage=orphaned,
            storage_deleted=deleted,
            storage_failures=failures,
            storage_pass_complete=complete,
            sample=tuple(sample),
        )
        _LOGGER.info(
            "storage pass finished: prefix=%s complete=%s scanned=%d orphaned=%d "
            "deleted=%d failures=%d",
            prefix,
            complete,
            scanned,
            orphaned,
            deleted,
            failures,
        )
        if not include_registry_orphans:
            return report
        return self._registry_pass(report=report, dry_run=dry_run)

    def _registry_pass(self, *, report: SweepReport, dry_run: bool) -> SweepReport:
        """Reclaim one bounded batch of zero-reference registry rows."""
        records = self._repository.list_unreferenced_assets(
            limit=self._registry_orphan_batch_limit
        )
        now = self._clock()
        cutoff = now - self._quarantine
        deleted = 0
        deferred = 0
        failures = report.storage_failures

        for record in records:
            if self._quarantine and (
                record.orphaned_at is None or record.orphaned_at > cutoff
            ):
                deferred += 1
                if record.orphaned_at is None and not dry_run:
                    self._mark_best_effort(record.id, now)
                continue
            if dry_run:
                continue
            try:
                claimed = self._repository.delete_asset_if_unreferenced(
                    asset_id=record.id,
                    orphaned_before=cutoff if self._quarantine else None,
                )
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning(
                    "registry orphan skipped: asset_id=%s exception_type=%s",
                    record.id,
                    type(exc).__name__,
                    exc_info=exc,
                )
                continue
            if not claimed:
                continue
            deleted += 1
            if delete_blob_best_effort(self._blob_store, url=record.url):
                failures += 1

        _LOGGER.info(
            "registry pass finished: orphans=%d deleted=%d deferred=%d",
            len(records),
            deleted,
            deferred,
        )
        return report.model_copy(
            update={
                "registry_orphans": len(records),
                "registry_orphans_deleted": deleted,
                "registry_orphans_deferred": deferred,
                "storage_failures": failures,
            }
        )

    def _mark_best_effort(self, asset_id: str, at: datetime) -> None:
        """Start the quarantine clock for one row, logging failures."""
        try:
            self._repository.mark_orphaned(asset_id=asset_id, at=at)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "quarantine mark failed: asset_id=%s exception_type=%s",
                asset_id,
                type(exc).__name__,
                exc_info=exc,
            )

"""Concrete Asset Authority Service implementation."""

from __future__ import annotations

import hashlib
from collections import Counter
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from packages.newsdesk_shared.envelope import (
    Envelope,
    EnvelopeMeta,
    failure,
    success,
    validate_meta,
)
from packages.newsdesk_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    validation_error,
)
from packages.newsdesk_shared.logging import get_logger, log_context, public_api_instrumented
from packages.newsdesk_shared.logging import fields as log_fields
from resources.substrates.blob_store.substrate import BlobStoreSubstrate
from resources.substrates.postgres.errors import (
    is_postgres_error,
    normalize_postgres_error,
)
from services.state.asset_authority.collector import InlineCollector
from services.state.asset_authority.component import SERVICE_COMPONENT_ID
from services.state.asset_authority.config import AssetAuthoritySettings
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
from services.state.asset_authority.interfaces import AssetRepository
from services.state.asset_authority.references import (
    BlobUrlClassifier,
    extract_references,
)
from services.state.asset_authority.service import AssetAuthorityService
from services.state.asset_authority.sweep import ReconciliationSweep
from services.state.asset_authority.validation import (
    CollectRequest,
    EnsureAssetRequest,
    EntityRefRequest,
    ResyncRequest,
    SweepRequest,
    SyncEntityRequest,
    UploadAssetRequest,
)

_LOGGER = get_logger(__name__)
_HEALTH_PROBE_URL = "__newsdesk_health_check__"


class DefaultAssetAuthorityService(AssetAuthorityService):
    """Default implementation with a Postgres registry and a blob object store."""

    def __init__(
        self,
        *,
        settings: AssetAuthoritySettings,
        repository: AssetRepository,
        blob_store: BlobStoreSubstrate,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._repository = repository
        self._blob_store = blob_store
        self._clock = clock or (lambda: datetime.now(UTC))
        self._classifier = BlobUrlClassifier(settings.managed_host_suffix)
        self._collector = InlineCollector(
            repository=repository,
            blob_store=blob_store,
            quarantine_seconds=settings.quarantine_seconds,
            clock=clock,
        )
        self._sweep = ReconciliationSweep(
            repository=repository,
            blob_store=blob_store,
            classifier=self._classifier,
            sample_size=settings.sample_size,
            quarantine_seconds=settings.quarantine_seconds,
            registry_orphan_batch_limit=settings.registry_orphan_batch_limit,
            clock=clock,
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return readiness of the registry and the object store."""
        errors = validate_meta(meta)
        if errors:
            return failure(meta=meta, errors=errors)
        try:
            self._repository.existing_urls(urls=[_HEALTH_PROBE_URL])
        except Exception as exc:  # noqa: BLE001
            if is_postgres_error(exc):
                return failure(meta=meta, errors=[normalize_postgres_error(exc)])
            return self._dependency_failure(meta=meta, operation="health", exc=exc)

        blob_status = self._blob_store.health()
        return success(
            meta=meta,
            payload=HealthStatus(
                service_ready=blob_status.ready,
                registry_ready=True,
                blob_store_ready=blob_status.ready,
                detail="ok" if blob_status.ready else blob_status.detail,
            ),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
        id_fields=("entity_type", "entity_id"),
    )
    def sync_entity(
        self,
        *,
        meta: EnvelopeMeta,
        entity_type: AssetEntityType,
        entity_id: str,
        fields: EntityFields,
    ) -> Envelope[SyncResult]:
        """Commit the reference diff for one entity, then collect touched assets."""
        request, errors = self._validate_request(
            meta=meta,
            model=SyncEntityRequest,
            payload={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "fields": fields,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, SyncEntityRequest)

        try:
            result = self._sync_and_collect(
                entity_type=request.entity_type,
                entity_id=request.entity_id,
                fields=request.fields,
            )
        except Exception as exc:  # noqa: BLE001
            if is_postgres_error(exc):
                return failure(meta=meta, errors=[normalize_postgres_error(exc)])
            return self._dependency_failure(
                meta=meta,
                operation="sync_entity",
                exc=exc,
                code=codes.ENTITY_SYNC_FAILED,
            )
        return success(meta=meta, payload=result)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
        id_fields=("entity_type", "entity_id"),
    )
    def remove_entity(
        self,
        *,
        meta: EnvelopeMeta,
        entity_type: AssetEntityType,
        entity_id: str,
    ) -> Envelope[SyncResult]:
        """Delete all references of one entity, then collect touched assets."""
        request, errors = self._validate_request(
            meta=meta,
            model=EntityRefRequest,
            payload={"entity_type": entity_type, "entity_id": entity_id},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, EntityRefRequest)

        try:
            result = self._sync_and_collect(
                entity_type=request.entity_type,
                entity_id=request.entity_id,
                fields=EntityFields(),
            )
        except Exception as exc:  # noqa: BLE001
            if is_postgres_error(exc):
                return failure(meta=meta, errors=[normalize_postgres_error(exc)])
            return self._dependency_failure(
                meta=meta,
                operation="remove_entity",
                exc=exc,
                code=codes.ENTITY_SYNC_FAILED,
            )
        return success(meta=meta, payload=result)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def ensure_asset(self, *, meta: EnvelopeMeta, url: str) -> Envelope[AssetRecord]:
        """Register one managed URL without attaching any reference."""
        request, errors = self._validate_request(
            meta=meta,
            model=EnsureAssetRequest,
            payload={"url": url},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, EnsureAssetRequest)

        canonical = self._classifier.canonicalize(request.url)
        if canonical is None:
            return failure(
                meta=meta,
                errors=[
                    validation_error(
                        "url is not in the managed blob namespace",
                        code=codes.INVALID_ARGUMENT,
                        metadata={"field": "url"},
                    )
                ],
            )

        try:
            record = self._repository.ensure_asset(url=canonical)
        except Exception as exc:  # noqa: BLE001
            if is_postgres_error(exc):
                return failure(meta=meta, errors=[normalize_postgres_error(exc)])
            return self._dependency_failure(meta=meta, operation="ensure_asset", exc=exc)
        return success(meta=meta, payload=record)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def upload_asset(
        self,
        *,
        meta: EnvelopeMeta,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> Envelope[AssetRecord]:
        """Store one image and register its URL before any entity references it.

        A registry failure after a successful upload leaves an unregistered
        object behind; the storage pass of the next sweep reclaims it.
        """
        request, errors = self._validate_request(
            meta=meta,
            model=UploadAssetRequest,
            payload={
                "filename": filename,
                "content": content,
                "content_type": content_type,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, UploadAssetRequest)

        if len(request.content) > self._settings.max_upload_bytes:
            return failure(
                meta=meta,
                errors=[
                    validation_error(
                        "content exceeds max_upload_bytes",
                        code=codes.INVALID_ARGUMENT,
                        metadata={"limit": str(self._settings.max_upload_bytes)},
                    )
                ],
            )

        digest = hashlib.sha1(request.content).hexdigest()[:10]
        stamp = int(self._clock().timestamp() * 1000)
        key = f"{self._settings.default_prefix}{stamp}-{digest}-{request.filename}"
        try:
            uploaded = self._blob_store.put_blob(
                key=key, content=request.content, content_type=request.content_type
            )
        except Exception as exc:  # noqa: BLE001
            return self._dependency_failure(meta=meta, operation="upload_asset", exc=exc)

        canonical = self._classifier.canonicalize(uploaded)
        if canonical is None:
            _LOGGER.warning("uploaded url is outside the managed namespace: url=%s", uploaded)
            return failure(
                meta=meta,
                errors=[
                    dependency_error(
                        "blob store returned an unmanaged url",
                        code=codes.DEPENDENCY_FAILURE,
                        metadata={"url": uploaded},
                    )
                ],
            )

        try:
            record = self._repository.ensure_asset(url=canonical)
        except Exception as exc:  # noqa: BLE001
            if is_postgres_error(exc):
                return failure(meta=meta, errors=[normalize_postgres_error(exc)])
            return self._dependency_failure(meta=meta, operation="upload_asset", exc=exc)
        return success(meta=meta, payload=record)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def collect(
        self, *, meta: EnvelopeMeta, asset_ids: Sequence[str]
    ) -> Envelope[CollectReport]:
        """Run inline collection over an explicit set of asset ids."""
        request, errors = self._validate_request(
            meta=meta,
            model=CollectRequest,
            payload={"asset_ids": tuple(asset_ids)},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, CollectRequest)

        return success(meta=meta, payload=self._collector.collect(request.asset_ids))

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
        id_fields=("prefix",),
    )
    def sweep(
        self,
        *,
        meta: EnvelopeMeta,
        prefix: str | None = None,
        dry_run: bool = False,
        include_registry_orphans: bool = False,
    ) -> Envelope[SweepReport]:
        """Reconcile storage under ``prefix`` against the registry."""
        request, errors = self._validate_request(
            meta=meta,
            model=SweepRequest,
            payload={
                "prefix": self._settings.default_prefix if prefix is None else prefix,
                "dry_run": dry_run,
                "include_registry_orphans": include_registry_orphans,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, SweepRequest)

        try:
            report = self._sweep.run(
                prefix=request.prefix,
                dry_run=request.dry_run,
                include_registry_orphans=request.include_registry_orphans,
            )
        except Exception as exc:  # noqa: BLE001
            if is_postgres_error(exc):
                return failure(meta=meta, errors=[normalize_postgres_error(exc)])
            return self._dependency_failure(meta=meta, operation="sweep", exc=exc)
        return success(meta=meta, payload=report)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def resync_entities(
        self, *, meta: EnvelopeMeta, snapshots: Sequence[EntitySnapshot]
    ) -> Envelope[ResyncReport]:
        """Re-synchronize every snapshot; one entity's failure never stops the batch."""
        request, errors = self._validate_request(
            meta=meta,
            model=ResyncRequest,
            payload={"snapshots": tuple(snapshots)},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, ResyncRequest)

        if len(request.snapshots) > self._settings.resync_batch_limit:
            return failure(
                meta=meta,
                errors=[
                    validation_error(
                        "snapshots exceeds resync_batch_limit",
                        code=codes.INVALID_ARGUMENT,
                        metadata={"limit": str(self._settings.resync_batch_limit)},
                    )
                ],
            )

        synced: Counter[str] = Counter()
        failed: Counter[str] = Counter()
        failed_entities: list[str] = []
        assets_deleted = 0
        for snapshot in request.snapshots:
            label = f"{snapshot.entity_type.value}:{snapshot.entity_id}"
            try:
                entity = EntityRefRequest.model_validate(
                    {
                        "entity_type": snapshot.entity_type,
                        "entity_id": snapshot.entity_id,
                    }
                )
                result = self._sync_and_collect(
                    entity_type=entity.entity_type,
                    entity_id=entity.entity_id,
                    fields=snapshot.fields,
                )
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning(
                    "entity resync failed: entity=%s exception_type=%s",
                    label,
                    type(exc).__name__,
                    exc_info=exc,
                )
                failed[snapshot.entity_type.value] += 1
                failed_entities.append(label)
                continue
            synced[snapshot.entity_type.value] += 1
            assets_deleted += result.collect.deleted

        return success(
            meta=meta,
            payload=ResyncReport(
                requested=len(request.snapshots),
                synced_by_type=dict(synced),
                failed_by_type=dict(failed),
                failed_entities=tuple(failed_entities),
                assets_deleted=assets_deleted,
            ),
        )

    def _sync_and_collect(
        self,
        *,
        entity_type: AssetEntityType,
        entity_id: str,
        fields: EntityFields,
    ) -> SyncResult:
        """Commit one entity's reference diff, then collect outside the transaction."""
        desired = extract_references(fields, classifier=self._classifier)
        diff = self._repository.sync_entity_refs(
            entity_type=entity_type,
            entity_id=entity_id,
            desired_urls=desired,
        )
        report = self._collector.collect(diff.touched_asset_ids)
        with log_context(
            {
                log_fields.ENTITY_TYPE: entity_type.value,
                log_fields.ENTITY_ID: entity_id,
            }
        ):
            _LOGGER.info(
                "entity references synced: added=%d removed=%d collected=%d",
                len(diff.added),
                len(diff.removed),
                report.deleted,
            )
        return SyncResult(
            entity_type=entity_type,
            entity_id=entity_id,
            desired_urls=tuple(sorted(desired)),
            added=diff.added,
            removed=diff.removed,
            touched_asset_ids=diff.touched_asset_ids,
            collect=report,
        )

    def _validate_request(
        self,
        *,
        meta: EnvelopeMeta,
        model: type[BaseModel],
        payload: dict[str, Any] | None,
    ) -> tuple[BaseModel | None, list[ErrorDetail]]:
        """Validate envelope metadata and request payload model."""
        errors = validate_meta(meta)
        if errors:
            return None, errors

        try:
            request = model.model_validate(payload or {})
        except ValidationError as exc:
            return None, [
                validation_error(
                    f"request validation failed: {err['msg']}",
                    code=codes.INVALID_ARGUMENT,
                    metadata={"field": ".".join(str(p) for p in err["loc"])},
                )
                for err in exc.errors()
            ]

        return request, []

    def _dependency_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        exc: Exception,
        code: str = codes.DEPENDENCY_FAILURE,
    ) -> Envelope[Any]:
        """Map one dependency/runtime exception into structured envelope errors."""
        _LOGGER.warning(
            "%s failed due to dependency error: exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
        return failure(
            meta=meta,
            errors=[
                dependency_error(
                    f"{operation} failed",
                    code=code,
                    metadata={"exception_type": type(exc).__name__},
                )
            ],
        )

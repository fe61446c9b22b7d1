"""Authoritative Postgres repository for the asset registry and reference index."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import and_, delete, exists, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from packages.newsdesk_shared.ids import (
    generate_ulid_bytes,
    ulid_bytes_to_str,
    ulid_str_to_bytes,
)
from resources.substrates.blob_store.validation import key_from_url
from resources.substrates.postgres.schema_session import ServiceSchemaSessionProvider
from services.state.asset_authority.domain import (
    AssetEntityType,
    AssetRecord,
    RefSyncDiff,
)
from services.state.asset_authority.interfaces import AssetRepository

from .schema import asset_refs, assets


class PostgresAssetRepository(AssetRepository):
    """SQL repository over Asset Authority owned schema tables."""

    def __init__(self, sessions: ServiceSchemaSessionProvider) -> None:
        self._sessions = sessions

    def ensure_asset(self, *, url: str) -> AssetRecord:
        """Upsert one registry row by URL and return it."""
        with self._sessions.session() as session:
            return _ensure_asset(session, url=url)

    def sync_entity_refs(
        self,
        *,
        entity_type: AssetEntityType,
        entity_id: str,
        desired_urls: Collection[str],
    ) -> RefSyncDiff:
        """Apply the reference diff for one entity inside one transaction.

        A transaction-scoped advisory lock keyed by entity identity serializes
        concurrent syncs of the same entity.
        """
        desired = set(desired_urls)
        with self._sessions.session() as session:
            session.execute(
                select(
                    func.pg_advisory_xact_lock(
                        func.hashtext(f"{entity_type.value}:{entity_id}")
                    )
                )
            )
            rows = session.execute(
                select(asset_refs.c.id, asset_refs.c.asset_id, assets.c.url)
                .select_from(
                    asset_refs.join(assets, assets.c.id == asset_refs.c.asset_id)
                )
                .where(
                    asset_refs.c.entity_type == entity_type.value,
                    asset_refs.c.entity_id == entity_id,
                )
            ).mappings()
            current = {str(row["url"]): row for row in rows}

            added = sorted(desired - current.keys())
            removed = sorted(current.keys() - desired)
            touched: list[str] = []

            for url in added:
                record = _ensure_asset(session, url=url)
                touched.append(record.id)
                session.execute(
                    insert(asset_refs)
                    .values(
                        id=generate_ulid_bytes(),
                        asset_id=ulid_str_to_bytes(record.id),
                        entity_type=entity_type.value,
                        entity_id=entity_id,
                    )
                    .on_conflict_do_nothing(constraint="uq_asset_refs_asset_entity")
                )

            if removed:
                session.execute(
                    delete(asset_refs).where(
                        asset_refs.c.id.in_([current[url]["id"] for url in removed])
                    )
                )
                touched.extend(
                    ulid_bytes_to_str(bytes(current[url]["asset_id"])) for url in removed
                )

        return RefSyncDiff(
            added=tuple(added),
            removed=tuple(removed),
            touched_asset_ids=tuple(dict.fromkeys(touched)),
        )

    def count_refs(self, *, asset_ids: Sequence[str]) -> dict[str, int]:
        """Count references per asset with one grouped query."""
        if not asset_ids:
            return {}
        with self._sessions.session() as session:
            rows = session.execute(
                select(asset_refs.c.asset_id, func.count().label("ref_count"))
                .where(asset_refs.c.asset_id.in_(_to_bytes(asset_ids)))
                .group_by(asset_refs.c.asset_id)
            ).mappings()
            return {
                ulid_bytes_to_str(bytes(row["asset_id"])): int(row["ref_count"])
                for row in rows
            }

    def get_assets(self, *, asset_ids: Sequence[str]) -> list[AssetRecord]:
        """Read registry rows for the given ids, skipping ones already gone."""
        if not asset_ids:
            return []
        with self._sessions.session() as session:
            rows = session.execute(
                select(assets)
                .where(assets.c.id.in_(_to_bytes(asset_ids)))
                .order_by(assets.c.id)
            ).mappings()
            return [_to_asset(row) for row in rows]

    def delete_asset_if_unreferenced(
        self, *, asset_id: str, orphaned_before: datetime | None = None
    ) -> bool:
        """Compare-and-delete one registry row; ``False`` when a ref exists."""
        conditions = [
            assets.c.id == ulid_str_to_bytes(asset_id),
            ~exists().where(asset_refs.c.asset_id == assets.c.id),
        ]
        if orphaned_before is not None:
            conditions.append(assets.c.orphaned_at.is_not(None))
            conditions.append(assets.c.orphaned_at <= orphaned_before)
        try:
            with self._sessions.session() as session:
                result = session.execute(delete(assets).where(and_(*conditions)))
                return int(result.rowcount or 0) > 0
        except IntegrityError:
            # FK restriction: a reference committed between check and delete.
            return False

    def mark_orphaned(self, *, asset_id: str, at: datetime) -> bool:
        """Stamp ``orphaned_at`` when the row is unreferenced and unmarked."""
        with self._sessions.session() as session:
            result = session.execute(
                update(assets)
                .where(
                    assets.c.id == ulid_str_to_bytes(asset_id),
                    assets.c.orphaned_at.is_(None),
                    ~exists().where(asset_refs.c.asset_id == assets.c.id),
                )
                .values(orphaned_at=at)
            )
            return int(result.rowcount or 0) > 0

    def existing_urls(self, *, urls: Sequence[str]) -> set[str]:
        """Batch-check which URLs are registered."""
        if not urls:
            return set()
        with self._sessions.session() as session:
            rows = session.execute(
                select(assets.c.url).where(assets.c.url.in_(list(urls)))
            ).scalars()
            return {str(url) for url in rows}

    def list_unreferenced_assets(self, *, limit: int) -> list[AssetRecord]:
        """Return zero-reference assets via an outer join, oldest first."""
        with self._sessions.session() as session:
            rows = session.execute(
                select(assets)
                .select_from(
                    assets.outerjoin(asset_refs, asset_refs.c.asset_id == assets.c.id)
                )
                .where(asset_refs.c.id.is_(None))
                .order_by(assets.c.id)
                .limit(limit)
            ).mappings()
            return [_to_asset(row) for row in rows]


def _ensure_asset(session: Session, *, url: str) -> AssetRecord:
    """Insert-or-touch one asset row by URL within an open session.

    Re-ensuring clears any quarantine mark; the conflict update also row-locks
    the asset until the surrounding transaction ends.
    """
    stmt = insert(assets).values(
        id=generate_ulid_bytes(),
        url=url,
        key=key_from_url(url),
    )
    stmt = stmt.on_conflict_do_update(
        constraint="uq_assets_url",
        set_={"orphaned_at": None, "updated_at": func.now()},
    )
    session.execute(stmt)
    row = session.execute(select(assets).where(assets.c.url == url)).mappings().one()
    return _to_asset(row)


def _to_bytes(asset_ids: Sequence[str]) -> list[bytes]:
    """Convert canonical ULID strings into binary column values."""
    return [ulid_str_to_bytes(asset_id) for asset_id in asset_ids]


def _to_asset(row: Any) -> AssetRecord:
    """Map one SQL row to a strict domain asset record."""
    orphaned_at = row.get("orphaned_at")
    return AssetRecord(
        id=ulid_bytes_to_str(bytes(row["id"])),
        url=str(row["url"]),
        key=str(row["key"]),
        orphaned_at=None if orphaned_at is None else _normalize_dt(orphaned_at),
        created_at=_row_dt(row, "created_at"),
        updated_at=_row_dt(row, "updated_at"),
    )


def _row_dt(row: Any, column: str) -> datetime:
    """Read and normalize one timezone-aware datetime field from SQL row."""
    value = row.get(column)
    if not isinstance(value, datetime):
        raise ValueError(f"expected datetime column for {column}")
    return _normalize_dt(value)


def _normalize_dt(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

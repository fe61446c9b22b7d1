"""SQLAlchemy table definitions owned by Asset Authority Service."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import BYTEA

from packages.newsdesk_shared.ids import ulid_primary_key_column

metadata = MetaData()

assets = Table(
    "assets",
    metadata,
    ulid_primary_key_column("id", table_name="assets"),
    Column("url", String(2048), nullable=False),
    Column("key", String(1024), nullable=False),
    Column("orphaned_at", DateTime(timezone=True), nullable=True),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    ),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
    UniqueConstraint("url", name="uq_assets_url"),
)

asset_refs = Table(
    "asset_refs",
    metadata,
    ulid_primary_key_column("id", table_name="asset_refs"),
    Column(
        "asset_id",
        BYTEA,
        ForeignKey("assets.id", name="fk_asset_refs_asset_id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("entity_type", String(32), nullable=False),
    Column("entity_id", String(191), nullable=False),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    ),
    UniqueConstraint(
        "asset_id",
        "entity_type",
        "entity_id",
        name="uq_asset_refs_asset_entity",
    ),
    CheckConstraint(
        "entity_type IN ('post', 'page')",
        name="ck_asset_refs_entity_type",
    ),
    Index("ix_asset_refs_asset_id", "asset_id"),
    Index("ix_asset_refs_entity", "entity_type", "entity_id"),
)

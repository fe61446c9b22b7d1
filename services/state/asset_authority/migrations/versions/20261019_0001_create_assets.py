"""create asset registry and reference tables"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from services.state.asset_authority.data.runtime import asset_postgres_schema

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _schema() -> str:
    """Resolve canonical service-owned schema name."""
    return asset_postgres_schema()


def _ulid_pk(table: str) -> list[sa.SchemaItem]:
    """Return a 16-byte ULID primary key column and its length check."""
    return [
        sa.Column("id", postgresql.BYTEA(), primary_key=True, nullable=False),
        sa.CheckConstraint("octet_length(id) = 16", name=f"ck_{table}_id_ulid_16"),
    ]


def upgrade() -> None:
    """Create the asset registry and reference index."""
    schema = _schema()

    op.create_table(
        "assets",
        *_ulid_pk("assets"),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("key", sa.String(length=1024), nullable=False),
        sa.Column("orphaned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("url", name="uq_assets_url"),
        schema=schema,
    )

    op.create_table(
        "asset_refs",
        *_ulid_pk("asset_refs"),
        sa.Column("asset_id", postgresql.BYTEA(), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.String(length=191), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["asset_id"],
            [f"{schema}.assets.id"],
            name="fk_asset_refs_asset_id",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint(
            "asset_id",
            "entity_type",
            "entity_id",
            name="uq_asset_refs_asset_entity",
        ),
        sa.CheckConstraint(
            "entity_type IN ('post', 'page')",
            name="ck_asset_refs_entity_type",
        ),
        schema=schema,
    )
    op.create_index(
        "ix_asset_refs_asset_id", "asset_refs", ["asset_id"], schema=schema
    )
    op.create_index(
        "ix_asset_refs_entity",
        "asset_refs",
        ["entity_type", "entity_id"],
        schema=schema,
    )


def downgrade() -> None:
    """Drop the reference index and asset registry."""
    schema = _schema()
    op.drop_index("ix_asset_refs_entity", table_name="asset_refs", schema=schema)
    op.drop_index("ix_asset_refs_asset_id", table_name="asset_refs", schema=schema)
    op.drop_table("asset_refs", schema=schema)
    op.drop_table("assets", schema=schema)

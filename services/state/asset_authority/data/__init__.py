"""Data-layer exports for Asset Authority Service."""

from services.state.asset_authority.data.repository import PostgresAssetRepository
from services.state.asset_authority.data.runtime import (
    AssetPostgresRuntime,
    asset_postgres_schema,
)

__all__ = ["AssetPostgresRuntime", "PostgresAssetRepository", "asset_postgres_schema"]

"""Schema bootstrap and Alembic upgrade for Asset Authority owned tables."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from alembic import command
from alembic.config import Config

from resources.substrates.postgres import bootstrap_service_schemas
from services.state.asset_authority.data.runtime import (
    AssetPostgresRuntime,
    asset_postgres_schema,
)

ALEMBIC_CONFIG_PATH = Path(__file__).resolve().parents[1] / "migrations" / "alembic.ini"


class MigrationExecutionError(RuntimeError):
    """Raised when migration execution fails."""


@dataclass(frozen=True, slots=True)
class MigrationRunResult:
    """Summary of one migration pass."""

    provisioned_schemas: tuple[str, ...]
    executed_alembic_config: str
    revision: str


def run_asset_migrations(
    *,
    runtime: AssetPostgresRuntime,
    revision: str = "head",
    config_path: Path = ALEMBIC_CONFIG_PATH,
    upgrade_fn: Callable[[Config, str], None] = command.upgrade,
) -> MigrationRunResult:
    """Create the owned schema when missing, then upgrade it to ``revision``."""
    provisioned = bootstrap_service_schemas(
        engine=runtime.engine, schemas=(asset_postgres_schema(),)
    )
    config = Config(str(config_path))
    config.attributes["sqlalchemy_url"] = runtime.engine.url.render_as_string(
        hide_password=False
    )
    config.attributes["configure_logger"] = False
    try:
        upgrade_fn(config, revision)
    except Exception as exc:
        raise MigrationExecutionError(
            f"migration failed for config '{config_path}'"
        ) from exc
    return MigrationRunResult(
        provisioned_schemas=provisioned,
        executed_alembic_config=str(config_path),
        revision=revision,
    )

"""Alembic environment for Asset Authority Service schema migrations."""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool, text

from packages.newsdesk_shared.config import load_settings
from resources.substrates.postgres.config import resolve_postgres_settings
from services.state.asset_authority.data.runtime import asset_postgres_schema
from services.state.asset_authority.data.schema import metadata

config = context.config

if config.config_file_name is not None and config.attributes.get(
    "configure_logger", True
):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = metadata

sqlalchemy_url = config.attributes.get("sqlalchemy_url")
if not sqlalchemy_url:
    sqlalchemy_url = resolve_postgres_settings(load_settings()).url
if not sqlalchemy_url:
    raise ValueError("components.substrate.postgres.url is required for migrations")

schema_name = asset_postgres_schema()
config.set_main_option("sqlalchemy.url", str(sqlalchemy_url).replace("%", "%%"))


def run_migrations_offline() -> None:
    """Run migrations without a live DB connection."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        version_table_schema=schema_name,
    )

    with context.begin_transaction():
        context.execute(f"SET search_path TO {schema_name}, public")
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations using a live DB connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        connection.execute(text(f"SET search_path TO {schema_name}, public"))
        connection.commit()
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            version_table_schema=schema_name,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

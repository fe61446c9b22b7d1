"""Real-Postgres fixtures for integration tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import text

from packages.newsdesk_shared.config import NewsdeskSettings
from services.state.asset_authority.data.migrations import run_asset_migrations
from services.state.asset_authority.data.runtime import (
    AssetPostgresRuntime,
    asset_postgres_schema,
)
from tests.integration.helpers import (
    integration_postgres_url,
    real_provider_tests_enabled,
)


@pytest.fixture(scope="session")
def integration_settings() -> NewsdeskSettings:
    """Return settings pointing at the integration Postgres database."""
    if not real_provider_tests_enabled():
        pytest.skip("set NEWSDESK_RUN_INTEGRATION_REAL=1 to run integration tests")
    return NewsdeskSettings(
        components={
            "substrate": {"postgres": {"url": integration_postgres_url()}},
            "service": {"asset_authority": {"managed_host_suffix": "blob.example"}},
        }
    )


@pytest.fixture(scope="session")
def migrated_runtime(
    integration_settings: NewsdeskSettings,
) -> Iterator[AssetPostgresRuntime]:
    """Run migrations once against a clean schema and yield the runtime."""
    runtime = AssetPostgresRuntime.from_settings(integration_settings)
    if not runtime.is_healthy():
        runtime.dispose()
        pytest.skip("postgres unavailable for integration tests")
    with runtime.engine.begin() as connection:
        connection.execute(
            text(f"DROP SCHEMA IF EXISTS {asset_postgres_schema()} CASCADE")
        )
    run_asset_migrations(runtime=runtime)
    yield runtime
    runtime.dispose()


@pytest.fixture()
def clean_runtime(migrated_runtime: AssetPostgresRuntime) -> AssetPostgresRuntime:
    """Truncate owned tables before each test."""
    schema = asset_postgres_schema()
    with migrated_runtime.engine.begin() as connection:
        connection.execute(text(f"TRUNCATE {schema}.asset_refs, {schema}.assets"))
    return migrated_runtime

"""Pre-migration bootstrap for service-owned Postgres schemas."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import Engine, text

from resources.substrates.postgres.schema_session import _validate_schema


def bootstrap_service_schemas(*, engine: Engine, schemas: Iterable[str]) -> tuple[str, ...]:
    """Create every listed schema when missing and return the provisioned names."""
    provisioned: list[str] = []
    with engine.begin() as connection:
        for schema in schemas:
            _validate_schema(schema)
            connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
            provisioned.append(schema)
    return tuple(provisioned)

"""Tests for Postgres exception normalization into the shared error taxonomy."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

from packages.newsdesk_shared.errors import ErrorCategory, codes
from resources.substrates.postgres.errors import (
    is_postgres_error,
    normalize_postgres_error,
)


def test_unique_violation_maps_to_already_exists_conflict() -> None:
    """Duplicate-key failures should surface as non-retryable conflicts."""

    class UniqueViolation(Exception):
        """Synthetic unique-violation exception."""

    error = normalize_postgres_error(
        UniqueViolation('duplicate key value violates unique constraint "uq_assets_url"')
    )

    assert error.category == ErrorCategory.CONFLICT
    assert error.code == codes.ALREADY_EXISTS
    assert error.metadata == {"exception_type": "UniqueViolation"}


def test_operational_error_maps_to_retryable_dependency() -> None:
    """Connection loss is a retryable dependency failure."""
    exc = OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    error = normalize_postgres_error(exc)

    assert error.category == ErrorCategory.DEPENDENCY
    assert error.code == codes.DEPENDENCY_UNAVAILABLE
    assert error.retryable is True


def test_programming_error_maps_to_non_retryable_dependency() -> None:
    """Broken SQL is not worth retrying."""

    class ProgrammingError(Exception):
        """Synthetic programming exception."""

    error = normalize_postgres_error(ProgrammingError('relation "asset_refs" does not exist'))

    assert error.category == ErrorCategory.DEPENDENCY
    assert error.retryable is False


def test_unknown_exception_maps_to_internal() -> None:
    """Unexpected failures should map to internal/unexpected semantics."""
    error = normalize_postgres_error(RuntimeError("boom"))

    assert error.category == ErrorCategory.INTERNAL
    assert error.code == codes.UNEXPECTED_EXCEPTION


def test_is_postgres_error_checks_exception_module() -> None:
    """Only SQLAlchemy and psycopg exceptions count as Postgres errors."""
    exc = OperationalError("SELECT 1", {}, Exception("down"))

    assert is_postgres_error(exc) is True
    assert is_postgres_error(RuntimeError("boom")) is False

"""Shared fixtures for integration-oriented test modules."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.integration.fixtures import (  # noqa: F401
    clean_runtime,
    integration_settings,
    migrated_runtime,
)


@pytest.fixture(scope="function")
def tmp_blob_root(tmp_path: Path) -> Path:
    """Return function-scoped temporary blob root directory."""
    root = tmp_path / "blobs"
    root.mkdir(parents=True, exist_ok=True)
    return root

"""Tests for pydantic-settings-backed shared configuration loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from packages.newsdesk_shared.config import load_settings, resolve_component_settings
from resources.substrates.postgres.config import PostgresSettings
from services.state.asset_authority.component import SERVICE_COMPONENT_ID
from services.state.asset_authority.config import AssetAuthoritySettings


@pytest.fixture(autouse=True)
def _clear_newsdesk_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from ambient NEWSDESK_* variables."""
    for key in list(os.environ):
        if key.startswith("NEWSDESK_"):
            monkeypatch.delenv(key)


def test_load_settings_uses_newsdesk_precedence_cascade(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Init params override env, env overrides YAML, then defaults."""
    config_file = tmp_path / "newsdesk.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "components:",
                "  substrate:",
                "    postgres:",
                "      pool_size: 7",
                "  service:",
                "    asset_authority:",
                "      sample_size: 3",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("NEWSDESK_LOGGING__LEVEL", "ERROR")
    monkeypatch.setenv("NEWSDESK_COMPONENTS__SUBSTRATE__POSTGRES__POOL_SIZE", "9")

    settings = load_settings(
        config_path=config_file, logging={"level": "DEBUG"}
    )

    postgres = resolve_component_settings(
        settings=settings,
        component_id="substrate_postgres",
        model=PostgresSettings,
    )
    assets = resolve_component_settings(
        settings=settings,
        component_id=str(SERVICE_COMPONENT_ID),
        model=AssetAuthoritySettings,
    )

    assert settings.logging.level == "DEBUG"
    assert postgres.pool_size == 9
    assert assets.sample_size == 3


def test_load_settings_uses_model_defaults_when_sources_missing(tmp_path: Path) -> None:
    """Settings fall back to model defaults when env and YAML are absent."""
    settings = load_settings(config_path=tmp_path / "newsdesk.yaml")
    postgres = resolve_component_settings(
        settings=settings,
        component_id="substrate_postgres",
        model=PostgresSettings,
    )

    assert settings.logging.service == "newsdesk"
    assert settings.logging.level == "INFO"
    assert postgres.pool_size == 5


def test_flat_component_keys_are_rejected(tmp_path: Path) -> None:
    """Component settings must live under their kind namespace."""
    config_file = tmp_path / "newsdesk.yaml"
    config_file.write_text(
        "components:\n  service_asset_authority:\n    sample_size: 3\n",
        encoding="utf-8",
    )

    with pytest.raises(ValidationError):
        load_settings(config_path=config_file)


def test_resolve_component_settings_rejects_unknown_kind(tmp_path: Path) -> None:
    """Only service_* and substrate_* ids resolve."""
    settings = load_settings(config_path=tmp_path / "newsdesk.yaml")

    with pytest.raises(ValueError):
        resolve_component_settings(
            settings=settings, component_id="actor_cli", model=PostgresSettings
        )

"""CLI tests for the Newsdesk Typer commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from actors.cli import main as main_module
from packages.newsdesk_shared.config import NewsdeskSettings
from services.state.asset_authority.config import AssetAuthoritySettings
from services.state.asset_authority.data.migrations import MigrationRunResult
from services.state.asset_authority.implementation import (
    DefaultAssetAuthorityService,
)
from services.state.asset_authority.tests.fakes import (
    HOST,
    FakeBlobStore,
    FakeRepository,
    url,
)

_runner = CliRunner()


@pytest.fixture
def wired(monkeypatch: pytest.MonkeyPatch) -> tuple[FakeRepository, FakeBlobStore]:
    """Route CLI commands to a service over in-memory dependencies."""
    repo = FakeRepository()
    blob = FakeBlobStore()
    service = DefaultAssetAuthorityService(
        settings=AssetAuthoritySettings(managed_host_suffix=HOST),
        repository=repo,
        blob_store=blob,
    )
    monkeypatch.setattr(main_module, "_load_settings", lambda cfg: NewsdeskSettings())
    monkeypatch.setattr(main_module, "_build_service", lambda settings: service)
    monkeypatch.setattr(main_module, "configure_logging", lambda **kwargs: None)
    return repo, blob


def _invoke(*args: str) -> Any:
    return _runner.invoke(main_module.app, list(args))


def test_sweep_dry_run_reports_orphans_as_json(
    wired: tuple[FakeRepository, FakeBlobStore],
) -> None:
    """Dry-run sweep lists unregistered objects without deleting them."""
    repo, blob = wired
    repo.add_ref(url=url("images/kept.jpg"), entity_type="post", entity_id="1")
    blob.objects.update({url("images/kept.jpg"), url("images/stray.jpg")})

    result = _invoke("--json", "assets", "sweep", "--dry-run")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["prefix"] == "images/"
    assert payload["dry_run"] is True
    assert payload["orphaned_in_storage"] == 1
    assert payload["storage_deleted"] == 0
    assert payload["sample"] == [url("images/stray.jpg")]
    assert url("images/stray.jpg") in blob.objects


def test_sweep_human_output_includes_registry_pass(
    wired: tuple[FakeRepository, FakeBlobStore],
) -> None:
    """Human rendering summarizes both passes."""
    repo, blob = wired
    orphan = repo.ensure_asset(url=url("images/old.jpg"))
    blob.objects.add(orphan.url)

    result = _invoke("assets", "sweep", "--registry-orphans")

    assert result.exit_code == 0
    assert "Sweep of 'images/'" in result.stdout
    assert "registry orphans deleted: 1" in result.stdout
    assert orphan.url not in blob.objects


def test_collect_invalid_id_exits_with_domain_error(
    wired: tuple[FakeRepository, FakeBlobStore],
) -> None:
    """Validation failures map to the domain error exit code."""
    result = _invoke("assets", "collect", "not-a-ulid")

    assert result.exit_code == main_module.DOMAIN_ERROR_EXIT_CODE
    assert "error [" in result.output


def test_ensure_registers_managed_url(
    wired: tuple[FakeRepository, FakeBlobStore],
) -> None:
    """Ensure prints the registered asset."""
    repo, _blob = wired

    result = _invoke("--json", "assets", "ensure", url("images/new.jpg"))

    assert result.exit_code == 0
    assert json.loads(result.stdout)["key"] == "images/new.jpg"
    assert repo.asset_by_url(url("images/new.jpg")) is not None


def test_resync_reads_jsonl_in_batches(
    wired: tuple[FakeRepository, FakeBlobStore], tmp_path: Path
) -> None:
    """Resync folds per-batch reports into one summary."""
    repo, _blob = wired
    lines = [
        {"entity_type": "post", "entity_id": "1", "fields": {"cover_url": url("images/a.jpg")}},
        {"entity_type": "page", "entity_id": "2", "fields": {"content": f"<img src=\"{url('images/b.jpg')}\">"}},
        {"entity_type": "post", "entity_id": "3", "fields": {}},
    ]
    source = tmp_path / "entities.jsonl"
    source.write_text(
        "\n".join(json.dumps(line) for line in lines) + "\n\n", encoding="utf-8"
    )

    result = _invoke("--json", "assets", "resync", "--input", str(source), "--batch-size", "2")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["requested"] == 3
    assert payload["synced_by_type"] == {"post": 2, "page": 1}
    assert payload["failed_entities"] == []
    assert repo.refs_for("page", "2") == {url("images/b.jpg")}


def test_resync_rejects_malformed_lines(
    wired: tuple[FakeRepository, FakeBlobStore], tmp_path: Path
) -> None:
    """Malformed snapshot input exits before any service call."""
    source = tmp_path / "entities.jsonl"
    source.write_text('{"entity_type": "video", "entity_id": "1"}\n', encoding="utf-8")

    result = _invoke("assets", "resync", "--input", str(source))

    assert result.exit_code == main_module.INPUT_ERROR_EXIT_CODE
    assert "entities.jsonl:1" in result.output


def test_health_reports_blob_store_outage(
    wired: tuple[FakeRepository, FakeBlobStore],
) -> None:
    """Health reports blob store readiness in its payload."""
    _repo, blob = wired
    blob.ready = False

    result = _invoke("--json", "health")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["blob_store_ready"] is False
    assert payload["service_ready"] is False


def test_db_migrate_prints_result(monkeypatch: pytest.MonkeyPatch) -> None:
    """Migrate runs the migration runner with loaded settings."""
    monkeypatch.setattr(main_module, "_load_settings", lambda cfg: NewsdeskSettings())
    monkeypatch.setattr(main_module, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(
        main_module,
        "_run_migrations",
        lambda settings: MigrationRunResult(
            provisioned_schemas=("service_asset_authority",),
            executed_alembic_config="alembic.ini",
            revision="head",
        ),
    )

    result = _invoke("--json", "db", "migrate")

    assert result.exit_code == 0
    assert json.loads(result.stdout)["provisioned_schemas"] == [
        "service_asset_authority"
    ]


def test_db_migrate_failure_exits_with_dependency_code(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Migration errors map to the dependency exit code."""
    monkeypatch.setattr(main_module, "_load_settings", lambda cfg: NewsdeskSettings())
    monkeypatch.setattr(main_module, "configure_logging", lambda **kwargs: None)

    def _fail(settings: NewsdeskSettings) -> None:
        raise RuntimeError("connection refused")

    monkeypatch.setattr(main_module, "_run_migrations", _fail)

    result = _invoke("db", "migrate")

    assert result.exit_code == main_module.DEPENDENCY_ERROR_EXIT_CODE
    assert "connection refused" in result.output


def test_upload_registers_stored_image(
    wired: tuple[FakeRepository, FakeBlobStore], tmp_path: Path
) -> None:
    """Upload stores the file and prints its registered asset."""
    repo, blob = wired
    source = tmp_path / "Cover.PNG"
    source.write_bytes(b"png-bytes")

    result = _invoke("--json", "assets", "upload", str(source))

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["key"].startswith("images/")
    assert payload["key"].endswith("-cover.png")
    assert payload["url"] in blob.objects
    assert repo.asset_by_url(payload["url"]) is not None


def test_upload_rejects_non_image_file(
    wired: tuple[FakeRepository, FakeBlobStore], tmp_path: Path
) -> None:
    """Non-image uploads fail validation and store nothing."""
    _repo, blob = wired
    source = tmp_path / "notes.txt"
    source.write_text("hello", encoding="utf-8")

    result = _invoke("assets", "upload", str(source))

    assert result.exit_code == main_module.DOMAIN_ERROR_EXIT_CODE
    assert blob.objects == set()

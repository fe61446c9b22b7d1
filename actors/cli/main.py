"""Newsdesk operator CLI actor implemented with Typer."""

from __future__ import annotations

import dataclasses
import json
import mimetypes
import sys
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import typer
from pydantic import ValidationError

from packages.newsdesk_shared.config import NewsdeskSettings, load_settings
from packages.newsdesk_shared.envelope import (
    Envelope,
    EnvelopeKind,
    EnvelopeMeta,
    new_meta,
    success,
)
from packages.newsdesk_shared.errors import ErrorCategory, ErrorDetail
from packages.newsdesk_shared.logging import configure_logging
from services.state.asset_authority.domain import EntitySnapshot, ResyncReport
from services.state.asset_authority.service import (
    AssetAuthorityService,
    build_asset_authority_service,
)

SUCCESS_EXIT_CODE = 0
INPUT_ERROR_EXIT_CODE = 2
DOMAIN_ERROR_EXIT_CODE = 3
DEPENDENCY_ERROR_EXIT_CODE = 4


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to service calls."""

    config_path: Path | None
    principal: str
    source: str
    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if isinstance(value, Enum):
        return _serialize(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, Decimal, Path)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _serialize(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    rendered = _render_human(data)
    if rendered is not None:
        typer.echo(rendered)
        return
    typer.echo("ok" if data is None else str(data))


def _emit_error(message: str, as_json: bool, *, code: str = "") -> None:
    """Render one error to stderr."""

    if as_json:
        body = {"error": message} if code == "" else {"error": message, "code": code}
        typer.echo(json.dumps(body, sort_keys=True), err=True)
        return
    prefix = "error" if code == "" else f"error [{code}]"
    typer.echo(f"{prefix}: {message}", err=True)


def _render_human(data: Any) -> str | None:
    """Return human-oriented rendering for recognized response shapes."""
    if isinstance(data, dict) and _looks_like_sweep(data):
        return _render_sweep(data)
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2, sort_keys=True)
    return None


def _looks_like_sweep(value: dict[str, Any]) -> bool:
    """Return True for sweep report payloads."""
    return "orphaned_in_storage" in value and "sample" in value


def _render_sweep(data: dict[str, Any]) -> str:
    """Render sweep report payload."""
    mode = " (dry run)" if data.get("dry_run") else ""
    lines = [
        f"Sweep of '{data.get('prefix', '')}'{mode}",
        f"  scanned: {data.get('scanned', 0)}",
        f"  orphaned in storage: {data.get('orphaned_in_storage', 0)}",
        f"  deleted from storage: {data.get('storage_deleted', 0)}",
        f"  storage failures: {data.get('storage_failures', 0)}",
    ]
    if data.get("storage_pass_complete") is False:
        lines.append("  storage pass: incomplete (listing failed)")
    if data.get("registry_orphans") is not None:
        lines.append(f"  registry orphans: {data['registry_orphans']}")
        lines.append(f"  registry orphans deleted: {data.get('registry_orphans_deleted')}")
        lines.append(
            f"  registry orphans deferred: {data.get('registry_orphans_deferred', 0)}"
        )
    sample = data.get("sample") or []
    if sample:
        lines.append("  sample:")
        lines.extend(f"    - {url}" for url in sample)
    return "\n".join(lines)


def _exit_code_for(errors: list[ErrorDetail]) -> int:
    """Map envelope errors to a process exit code."""
    if any(error.category == ErrorCategory.DEPENDENCY for error in errors):
        return DEPENDENCY_ERROR_EXIT_CODE
    return DOMAIN_ERROR_EXIT_CODE


def _load_settings(cfg: CliConfig) -> NewsdeskSettings:
    """Load runtime settings for one CLI invocation."""
    return load_settings(config_path=cfg.config_path)


def _build_service(settings: NewsdeskSettings) -> AssetAuthorityService:
    """Return the Asset Authority service for one CLI invocation."""
    return build_asset_authority_service(settings=settings)


def _run_migrations(settings: NewsdeskSettings) -> Any:
    """Provision and upgrade the Asset Authority schema."""
    from services.state.asset_authority.data import AssetPostgresRuntime
    from services.state.asset_authority.data.migrations import run_asset_migrations

    runtime = AssetPostgresRuntime.from_settings(settings)
    try:
        return run_asset_migrations(runtime=runtime)
    finally:
        runtime.dispose()


def _prepare(cfg: CliConfig) -> NewsdeskSettings:
    """Load settings and configure stderr logging, or exit on bad config."""
    try:
        settings = _load_settings(cfg)
    except ValidationError as exc:
        _emit_error(f"invalid configuration: {exc}", cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
        stream=sys.stderr,
    )
    return settings


def _run_command(
    cfg: CliConfig,
    invoke: Callable[[AssetAuthorityService, EnvelopeMeta], Envelope[Any]],
) -> None:
    """Execute one service call and map outputs/errors to process semantics."""
    settings = _prepare(cfg)
    try:
        service = _build_service(settings)
    except ValidationError as exc:
        _emit_error(f"invalid configuration: {exc}", cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc

    result = invoke(service, _meta(cfg))
    if not result.ok:
        for error in result.errors:
            _emit_error(error.message, cfg.as_json, code=error.code)
        raise typer.Exit(code=_exit_code_for(result.errors))

    _emit_output(result.value, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _meta(cfg: CliConfig) -> EnvelopeMeta:
    """Build command envelope metadata from global CLI options."""
    return new_meta(
        kind=EnvelopeKind.COMMAND, source=cfg.source, principal=cfg.principal
    )


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


def _read_snapshots(path: Path) -> list[EntitySnapshot]:
    """Parse one JSON-lines file of entity snapshots; blank lines are skipped."""
    snapshots: list[EntitySnapshot] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if line.strip() == "":
                continue
            try:
                snapshots.append(EntitySnapshot.model_validate_json(line))
            except ValidationError as exc:
                raise ValueError(f"{path}:{line_number}: invalid snapshot") from exc
    return snapshots


def _merge_resync_reports(reports: list[ResyncReport]) -> ResyncReport:
    """Fold per-batch resync reports into one summary."""
    synced: Counter[str] = Counter()
    failed: Counter[str] = Counter()
    failed_entities: list[str] = []
    for report in reports:
        synced.update(report.synced_by_type)
        failed.update(report.failed_by_type)
        failed_entities.extend(report.failed_entities)
    return ResyncReport(
        requested=sum(report.requested for report in reports),
        synced_by_type=dict(synced),
        failed_by_type=dict(failed),
        failed_entities=tuple(failed_entities),
        assets_deleted=sum(report.assets_deleted for report in reports),
    )


app = typer.Typer(no_args_is_help=True, help="Newsdesk command-line interface")
assets_app = typer.Typer(help="Blob asset lifecycle commands")
db_app = typer.Typer(help="Database maintenance commands")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        envvar="NEWSDESK_CONFIG_PATH",
        help="YAML settings file (defaults to ~/.config/newsdesk/newsdesk.yaml)",
    ),
    principal: str = typer.Option("operator", help="Envelope principal"),
    source: str = typer.Option("cli", help="Envelope source"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Store global options for all commands."""

    ctx.obj = CliConfig(
        config_path=config,
        principal=principal,
        source=source,
        as_json=as_json,
    )


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Report registry and blob store readiness."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda service, meta: service.health(meta=meta))


@assets_app.command("sweep")
def assets_sweep_command(
    ctx: typer.Context,
    prefix: str | None = typer.Option(
        None, help="Object store key prefix (defaults to the configured prefix)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report orphans without deleting anything"
    ),
    registry_orphans: bool = typer.Option(
        False,
        "--registry-orphans",
        help="Also reclaim registry rows that no entity references",
    ),
) -> None:
    """Reconcile the object store against the asset registry."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda service, meta: service.sweep(
            meta=meta,
            prefix=prefix,
            dry_run=dry_run,
            include_registry_orphans=registry_orphans,
        ),
    )


@assets_app.command("collect")
def assets_collect_command(
    ctx: typer.Context,
    asset_ids: list[str] = typer.Argument(..., help="Asset ids to examine"),
) -> None:
    """Reclaim the listed assets when nothing references them."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda service, meta: service.collect(meta=meta, asset_ids=asset_ids),
    )


@assets_app.command("ensure")
def assets_ensure_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Managed blob URL to register"),
) -> None:
    """Register one uploaded blob URL in the asset registry."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda service, meta: service.ensure_asset(meta=meta, url=url))


@assets_app.command("upload")
def assets_upload_command(
    ctx: typer.Context,
    path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Image file to upload"
    ),
    content_type: str | None = typer.Option(
        None, "--content-type", help="Media type (guessed from the filename if omitted)"
    ),
) -> None:
    """Upload one image and register its URL in the asset registry."""
    cfg = _require_config(ctx)
    media_type = content_type or mimetypes.guess_type(path.name)[0] or ""
    content = path.read_bytes()
    _run_command(
        cfg,
        lambda service, meta: service.upload_asset(
            meta=meta, filename=path.name, content=content, content_type=media_type
        ),
    )


@assets_app.command("resync")
def assets_resync_command(
    ctx: typer.Context,
    input_path: Path = typer.Option(
        ...,
        "--input",
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON-lines file of {entity_type, entity_id, fields} snapshots",
    ),
    batch_size: int = typer.Option(500, min=1, help="Snapshots per service call"),
) -> None:
    """Re-synchronize references for every entity snapshot in a file."""
    cfg = _require_config(ctx)
    try:
        snapshots = _read_snapshots(input_path)
    except ValueError as exc:
        _emit_error(str(exc), cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc

    def _invoke(
        service: AssetAuthorityService, meta: EnvelopeMeta
    ) -> Envelope[ResyncReport]:
        reports: list[ResyncReport] = []
        for start in range(0, len(snapshots), batch_size):
            result = service.resync_entities(
                meta=meta, snapshots=snapshots[start : start + batch_size]
            )
            if not result.ok or result.value is None:
                return result
            reports.append(result.value)
        return success(meta=meta, payload=_merge_resync_reports(reports))

    _run_command(cfg, _invoke)


@db_app.command("migrate")
def db_migrate_command(ctx: typer.Context) -> None:
    """Create the owned schema and upgrade it to the latest revision."""
    cfg = _require_config(ctx)
    settings = _prepare(cfg)
    try:
        result = _run_migrations(settings)
    except Exception as exc:  # noqa: BLE001
        _emit_error(f"{exc} ({type(exc).__name__})", cfg.as_json)
        raise typer.Exit(code=DEPENDENCY_ERROR_EXIT_CODE) from exc
    _emit_output(result, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


app.add_typer(assets_app, name="assets")
app.add_typer(db_app, name="db")


if __name__ == "__main__":
    app()

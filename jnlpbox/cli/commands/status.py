"""Status command: report the processing state of every artifact."""

import json
from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from jnlpbox.archive.eclipse_inf import read_state_record
from jnlpbox.archive.store import open_archive
from jnlpbox.cli.app import AppContext
from jnlpbox.cli.decorators import handle_errors
from jnlpbox.cli.helpers.output import get_console
from jnlpbox.cli.helpers.parameters import (
    ArtifactsOption,
    OutputFormatOption,
    TargetArgument,
    resolve_artifacts,
)
from jnlpbox.config.models import SecurityAttributes
from jnlpbox.core.errors import ArchiveError, ConfigError
from jnlpbox.core.structlog_logger import get_struct_logger
from jnlpbox.models.artifact import Artifact
from jnlpbox.pipeline import PlatformTable, create_platform_table, infer_state


logger = get_struct_logger(__name__)


def _platforms(artifact: Artifact, platforms: PlatformTable) -> str:
    if not artifact.env_key:
        return "any"
    found = platforms.lookup(artifact.env_key)
    if not found:
        return f"{artifact.env_key} (unmapped)"
    return ", ".join(f"{p.os}/{p.arch}" for p in found)


def _collect_status_data(
    artifacts: list[Artifact],
    security: SecurityAttributes,
    platforms: PlatformTable,
) -> list[dict[str, Any]]:
    """One row per artifact; unreadable archives are reported, not raised."""
    rows: list[dict[str, Any]] = []
    for artifact in artifacts:
        row: dict[str, Any] = {
            "archive": str(artifact.archive_path),
            "kind": artifact.kind.value,
            "id": artifact.id,
            "version": artifact.version,
            "platform": _platforms(artifact, platforms),
            "state": None,
            "should_pack": None,
            "pack_normalized": None,
            "error": None,
        }
        try:
            state = infer_state(artifact.archive_path, security)
            row["state"] = state.value if state is not None else "missing"
            if artifact.archive_path.is_file():
                record = read_state_record(open_archive(artifact.archive_path).entries)
                row["should_pack"] = record.should_pack
                row["pack_normalized"] = record.pack_normalized
        except ArchiveError as e:
            logger.debug(
                "status_unreadable", archive=str(artifact.archive_path), error=str(e)
            )
            row["state"] = "unreadable"
            row["error"] = str(e)
        rows.append(row)
    return rows


def _flag(value: bool | None) -> str:
    if value is None:
        return "-"
    return "yes" if value else "no"


def _print_status_table(rows: list[dict[str, Any]]) -> None:
    table = Table(title="jnlpbox status", show_header=True, header_style="bold cyan")
    table.add_column("Archive", style="cyan", no_wrap=True)
    table.add_column("Kind", style="dim")
    table.add_column("State", style="bold")
    table.add_column("shouldPack")
    table.add_column("packNormalized")
    table.add_column("Platform", style="dim")

    for row in rows:
        state = row["state"]
        if state == "unreadable":
            state = f"[red]{state}[/red]"
        table.add_row(
            Path(row["archive"]).name,
            row["kind"],
            state,
            _flag(row["should_pack"]),
            _flag(row["pack_normalized"]),
            row["platform"],
        )
    get_console().print(table)


@handle_errors
def status(
    ctx: typer.Context,
    target: TargetArgument,
    artifacts_file: ArtifactsOption = None,
    output_format: OutputFormatOption = "table",
) -> None:
    """Show the processing state of each jar without modifying anything."""
    if output_format not in ("table", "json"):
        raise ConfigError(f"Unknown output format: {output_format}")

    app_ctx: AppContext = ctx.obj
    settings = app_ctx.settings
    artifacts = resolve_artifacts(target, artifacts_file)
    platforms = create_platform_table(settings.environments)
    rows = _collect_status_data(artifacts, settings.security, platforms)

    if output_format == "json":
        print(json.dumps(rows, indent=2))
    else:
        _print_status_table(rows)


def register_commands(app: typer.Typer) -> None:
    """Register status command with the main app.

    Args:
        app: The main Typer app
    """
    app.command(name="status")(status)

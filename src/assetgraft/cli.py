"""assetgraft CLI - typer application entry point."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from assetgraft.codec.json_codec import JsonPackageCodec
from assetgraft.graph.errors import AssetEditError
from assetgraft.inspection import dump_lines, summarize
from assetgraft.observability import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)
from assetgraft.pipeline.config import load_editor_config
from assetgraft.pipeline.orchestrator import EditRequest, run_edit

if TYPE_CHECKING:
    from assetgraft.pipeline.config import EditorConfig
    from assetgraft.pipeline.orchestrator import EditReport

app = typer.Typer(
    name="assetgraft",
    help="assetgraft: edit cooked asset packages and transplant actors between levels.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

log = get_logger(__name__)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Config file (default: ./assetgraft.yaml if present).",
        dir_okay=False,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_dir: Annotated[
        Path | None,
        typer.Option(
            "--log-dir",
            help="Also write every log event to {log_dir}/debug.jsonl.",
            file_okay=False,
        ),
    ] = None,
) -> None:
    """assetgraft: edit cooked asset packages and transplant actors between levels."""
    configure_logging(verbosity=verbose, log_to_file=log_dir is not None, log_dir=log_dir)
    if log_dir is not None:
        atexit.register(close_file_logging)


def _fail(error: AssetEditError) -> typer.Exit:
    """Print an error for the operator and return the exit to raise."""
    err_console.print(f"[red]Error:[/red] {escape(error.hint())}", soft_wrap=True)
    log.debug("run_failed", error_type=type(error).__name__, error=str(error))
    return typer.Exit(1)


def _load_config(path: Path | None) -> EditorConfig:
    try:
        return load_editor_config(path)
    except AssetEditError as e:
        raise _fail(e) from e


@app.command()
def version() -> None:
    """Show version information."""
    from assetgraft import __version__

    console.print(f"assetgraft v{__version__}")


@app.command()
def dump(
    input_path: Annotated[
        Path,
        typer.Argument(metavar="INPUT", help="Package container file to list."),
    ],
    summary: Annotated[
        bool,
        typer.Option("--summary", "-s", help="Show package statistics instead of a listing."),
    ] = False,
    config_path: ConfigOption = None,
) -> None:
    """List every import and export of a package, with properties."""
    config = _load_config(config_path)
    codec = JsonPackageCodec(config.payload_extension)
    try:
        graph = codec.load(input_path)
    except AssetEditError as e:
        raise _fail(e) from e

    if not summary:
        for line in dump_lines(graph):
            console.print(line, markup=False, highlight=False, soft_wrap=True)
        return

    stats = summarize(graph, config.level_root_name)
    table = Table(title=f"Package: {escape(input_path.name)}")
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Engine version", escape(stats.engine_version or "-"))
    table.add_row("Names", str(stats.names))
    table.add_row("Imports", str(stats.imports))
    table.add_row("Exports", str(stats.exports))
    table.add_row("Raw exports", str(stats.raw_exports))
    if stats.level_root is None:
        table.add_row("Level root", f"[yellow]no {escape(config.level_root_name)}[/yellow]")
    else:
        table.add_row("Level root", f"{stats.level_root} ({stats.actors} actors)")
    for kind, count in stats.property_kinds.items():
        table.add_row(f"  {escape(kind)}", str(count))
    console.print(table)

    if stats.violations:
        console.print(f"[red]{len(stats.violations)} integrity violation(s):[/red]")
        for violation in stats.violations:
            console.print(f"  {escape(violation)}")
        raise typer.Exit(1)


@app.command()
def edit(
    input_path: Annotated[
        Path,
        typer.Argument(metavar="INPUT", help="Package container file to edit."),
    ],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the edited package.", dir_okay=False),
    ],
    disable_import: Annotated[
        list[str] | None,
        typer.Option("--disable-import", help="Detach every import with this name from its outer."),
    ] = None,
    rename_import: Annotated[
        list[str] | None,
        typer.Option("--rename-import", help="Rename an import: OLD>NEW."),
    ] = None,
    disable_actor_by_name: Annotated[
        list[str] | None,
        typer.Option(
            "--disable-actor-by-name", help="Remove actors with this name from the level."
        ),
    ] = None,
    disable_actor_by_index: Annotated[
        list[str] | None,
        typer.Option(
            "--disable-actor-by-index", help="Remove the actor at this 1-based export index."
        ),
    ] = None,
    edit_export: Annotated[
        list[str] | None,
        typer.Option("--edit-export", help="Edit a property: EXPORT.FIELD[.NESTED]=VALUE."),
    ] = None,
    transplant_donor: Annotated[
        Path | None,
        typer.Option("--transplant-donor", help="Donor package to transplant actors from."),
    ] = None,
    actor_to_transplant: Annotated[
        list[int] | None,
        typer.Option("--actor-to-transplant", help="1-based donor export index to transplant."),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """Apply edits to a package and write the result.

    Nothing is written if any edit fails, except a missing import for
    --rename-import, which is reported as a warning.
    """
    if actor_to_transplant and transplant_donor is None:
        raise typer.BadParameter(
            "requires --transplant-donor", param_hint="'--actor-to-transplant'"
        )

    config = _load_config(config_path)
    request = EditRequest(
        disable_imports=disable_import or [],
        rename_imports=rename_import or [],
        disable_actor_names=disable_actor_by_name or [],
        disable_actor_indices=disable_actor_by_index or [],
        property_edits=edit_export or [],
        donor=transplant_donor,
        transplant_actors=actor_to_transplant or [],
    )

    try:
        report = run_edit(input_path, output, request, config=config)
    except AssetEditError as e:
        raise _fail(e) from e

    _print_report(report, config)
    console.print(f"[green]Wrote[/green] {escape(str(output))}")
    logs_dir = get_logs_dir()
    if logs_dir is not None:
        console.print(f"Log: {escape(str(logs_dir / 'debug.jsonl'))}", soft_wrap=True)


def _print_report(report: EditReport, config: EditorConfig) -> None:
    """Print each change in the order it was applied."""
    for change in report.renamed_names:
        _say(f"Updated FName: {change.old} -> {change.new}")
    for outer in report.disabled_imports:
        _say(f"Updated import: {outer.name}: {outer.old_outer.raw} -> {outer.new_outer.raw}")
    for rename in report.renamed_imports:
        _say(f"Renamed import: {rename.old_name} -> {rename.new_name}")
    for warning in report.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {escape(str(warning))}", soft_wrap=True)
    for removal in report.removed_actors:
        _say(
            f"Removed actor from {config.level_root_name}: "
            f"{removal.index.raw}: {removal.name}"
        )
    for prop in report.property_changes:
        _say(
            f"Edited export: {prop.export_index.raw}: {prop.export_name}.{prop.path} "
            f"= {prop.new_value} (was {prop.old_value})"
        )
    for result in report.transplants:
        for pair in result.exports:
            _say(
                f"Transplanting export: {pair.destination.raw} <- {pair.source.raw} "
                f'"{pair.name}"'
            )
        for pair in result.imports:
            _say(
                f"Transplanting import: {pair.destination.raw} <- {pair.source.raw} "
                f'"{pair.name}"'
            )


def _say(line: str) -> None:
    console.print(line, markup=False, highlight=False, soft_wrap=True)


if __name__ == "__main__":
    app()

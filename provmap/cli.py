"""Typer-based CLI for provenance tracking reports."""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from . import __version__, config
from .config_manager import (
    MARKER_FIELDS,
    clear_marker_config,
    load_full_config,
    load_markers,
    save_marker_config,
)
from .loader import ReportContext
from .models import Artifact, CodeVariant
from .report import line_mappings_json, write_report
from .resolver import resolve

console = Console()

app = typer.Typer(
    help="🔗 provmap: line-level provenance highlighting for compiler reports.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_ARTIFACT_ALIASES = {
    "pre": Artifact.PRE_GRAPH,
    "post": Artifact.POST_GRAPH,
    "code": Artifact.GENERATED_CODE,
}


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"provmap v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """provmap: map pre-grad graph, post-grad graph and generated code lines to each other."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_variant(value: str) -> Optional[CodeVariant]:
    value = value.lower()
    if value == "auto":
        return None
    try:
        return CodeVariant(value)
    except ValueError:
        raise typer.BadParameter("Variant must be one of: auto, python, cpp")


def _load_context(
    pre: Path,
    post: Path,
    code: Optional[Path],
    mappings: Optional[Path],
    variant: str,
) -> ReportContext:
    return ReportContext.from_files(
        pre,
        post,
        code,
        mappings,
        variant=_parse_variant(variant),
        markers=load_markers(),
    )


_PRE_ARG = typer.Argument(..., exists=True, dir_okay=False, help="Pre-grad graph dump.")
_POST_ARG = typer.Argument(..., exists=True, dir_okay=False, help="Post-grad graph dump.")
_CODE_OPT = typer.Option(None, "--code", "-c", exists=True, dir_okay=False, help="Generated code (Python or C++ wrapper).")
_MAPPINGS_OPT = typer.Option(None, "--mappings", "-m", exists=True, dir_okay=False, help="Node mappings JSON.")
_VARIANT_OPT = typer.Option("auto", "--variant", help="Generated code variant: auto, python, cpp.")


@app.command("render")
def render(
    pre: Path = _PRE_ARG,
    post: Path = _POST_ARG,
    code: Optional[Path] = _CODE_OPT,
    mappings: Optional[Path] = _MAPPINGS_OPT,
    variant: str = _VARIANT_OPT,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output HTML file."),
    title: str = typer.Option("Provenance Tracking", "--title", help="Report title."),
):
    """Render a standalone HTML provenance report."""
    context = _load_context(pre, post, code, mappings, variant)
    output = output or Path.cwd() / config.DEFAULT_OUTPUT_NAME
    write_report(context, output, title=title, markers=load_markers())
    typer.echo(f"Wrote provenance report to {output}")


@app.command("render-dir")
def render_dir(
    directory: Path = typer.Argument(..., exists=True, file_okay=False, help="Compile output directory."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output HTML file."),
):
    """Render a report from one compile's output directory."""
    markers = load_markers()
    context = ReportContext.from_directory(directory, markers=markers)
    if not context.pre_lines and not context.post_lines:
        raise typer.BadParameter(f"No graph dumps found in '{directory}'.")
    output = output or directory.parent / f"provenance_tracking_{directory.name}.html"
    write_report(context, output, title=f"Provenance Tracking: {directory.name}", markers=markers)
    typer.echo(f"Wrote provenance report to {output}")


@app.command("resolve")
def resolve_line(
    pre: Path = _PRE_ARG,
    post: Path = _POST_ARG,
    artifact: str = typer.Option(..., "--artifact", "-a", help="Source artifact: pre, post, code."),
    line: int = typer.Option(..., "--line", "-l", min=1, help="1-based line number in the source artifact."),
    code: Optional[Path] = _CODE_OPT,
    mappings: Optional[Path] = _MAPPINGS_OPT,
    variant: str = _VARIANT_OPT,
):
    """Show the lines corresponding to one line of an artifact."""
    source = _ARTIFACT_ALIASES.get(artifact.lower())
    if source is None:
        raise typer.BadParameter("Artifact must be one of: pre, post, code")

    context = _load_context(pre, post, code, mappings, variant)
    result = resolve(source, line, context.tables)

    table = Table(title=f"{source.value}:{line}")
    table.add_column("Artifact", style="cyan")
    table.add_column("Lines")
    table.add_column("First match", overflow="fold")
    for target, lines in result.items():
        target_lines = context.lines(target)
        first = target_lines[lines[0] - 1].strip() if lines and lines[0] <= len(target_lines) else ""
        table.add_row(target.value, ", ".join(str(n) for n in lines) or "-", Text(first))
    console.print(table)


@app.command("line-mappings")
def line_mappings(
    pre: Path = _PRE_ARG,
    post: Path = _POST_ARG,
    code: Optional[Path] = _CODE_OPT,
    mappings: Optional[Path] = _MAPPINGS_OPT,
    variant: str = _VARIANT_OPT,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout."),
):
    """Export the line-level mapping tables as JSON."""
    context = _load_context(pre, post, code, mappings, variant)
    payload = json.dumps(line_mappings_json(context.tables), indent=2)
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload, encoding="utf-8")
    typer.echo(f"Wrote line mappings to {output}")


@app.command("show-config")
def show_config():
    """Print the markers in effect and where they come from."""
    markers = load_markers()
    table = Table(title=f"Markers ({config.CONFIG_FILE})")
    table.add_column("Marker", style="cyan")
    table.add_column("Value")
    for key, value in vars(markers).items():
        table.add_row(key, Text(repr(value)))
    console.print(table)


@app.command("set-marker")
def set_marker(
    key: str = typer.Argument(..., help="Marker name, see 'provmap show-config'."),
    value: str = typer.Argument(..., help="New marker text."),
):
    """Override one textual marker in the config file."""
    if key not in MARKER_FIELDS:
        raise typer.BadParameter(f"Unknown marker '{key}'. Choose from: {', '.join(sorted(MARKER_FIELDS))}")
    if not value:
        raise typer.BadParameter("Marker value must not be empty.")

    markers = dataclasses.replace(load_markers(), **{key: value})
    if not save_marker_config(markers):
        typer.echo("Failed to save configuration!", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Marker {key} set to {value!r}")


@app.command("unset-markers")
def unset_markers():
    """Reset every marker to its default."""
    if "markers" not in load_full_config():
        typer.echo("No marker overrides found. Nothing to unset.")
        raise typer.Exit(code=0)

    if not clear_marker_config():
        typer.echo("Failed to reset configuration!", err=True)
        raise typer.Exit(code=1)
    typer.echo("Markers reset to defaults.")


if __name__ == "__main__":
    app()

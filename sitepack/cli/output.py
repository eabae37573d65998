"""Shared plumbing for the validating commands: logging, schema loading,
report output and exit codes."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from sitepack.config import config
from sitepack.core.schema_gate import JsonSchemaGate, SchemaLoadError, load_schema_gate
from sitepack.models.report import ValidationReport
from sitepack.reporting.renderer import ReportRenderer

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

EXIT_USAGE = 2


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def configure_logging(verbose: bool = False) -> None:
    """Route all logging to stderr through Rich, once per invocation."""
    level = logging.DEBUG if verbose else config.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def usage_error(message: str) -> typer.Exit:
    err_console.print(message, style="bold red", markup=False)
    return typer.Exit(code=EXIT_USAGE)


def require_path(path: Path, kind: str) -> Path:
    """Resolve *path*; exit 2 unless it exists and is a *kind* (``dir``/``file``)."""
    resolved = path.resolve()
    if not resolved.exists():
        raise usage_error(f"Path does not exist: {resolved}")
    if kind == "dir" and not resolved.is_dir():
        raise usage_error(f"Expected package directory: {resolved}")
    if kind == "file" and not resolved.is_file():
        raise usage_error(f"Expected a file: {resolved}")
    return resolved


def open_schema_gate(schemas: Optional[Path]) -> JsonSchemaGate:
    try:
        gate = load_schema_gate(schemas.resolve() if schemas else config.schemas_dir)
    except SchemaLoadError as exc:
        raise usage_error(str(exc)) from exc
    logger.debug("Schemas: %s", ", ".join(gate.names))
    return gate


def emit_report(report: ValidationReport, output_format: OutputFormat, quiet: bool) -> None:
    if output_format == OutputFormat.JSON:
        typer.echo(report.to_json())
    else:
        ReportRenderer(console=console).print(report, quiet=quiet)


def finish(report: ValidationReport, strict: bool) -> None:
    """Exit 0 when clean, 1 on errors (or warnings under ``--strict``)."""
    raise typer.Exit(code=report.exit_code(strict))

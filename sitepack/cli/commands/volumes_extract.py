"""``sitepack volumes-extract VOLUMES_JSON OUT_DIR``: overlay every volume
into a directory in ascending index order."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from sitepack.cli.output import configure_logging, err_console, require_path
from sitepack.volumes.builder import VolumeBuildError, extract_volumes

console = Console()


def volumes_extract_cmd(
    volumes_json: Path = typer.Argument(..., help="Path to sitepack.volumes.json."),
    out_dir: Path = typer.Argument(..., help="Directory to extract into."),
    overwrite: bool = typer.Option(
        False, "--overwrite", help="Allow extraction into a non-empty directory."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Extract a volume set into a directory."""
    configure_logging(verbose)
    descriptor = require_path(volumes_json, "file")

    try:
        output = extract_volumes(descriptor, out_dir.resolve(), overwrite=overwrite)
    except VolumeBuildError as exc:
        for problem in exc.problems:
            err_console.print(problem, style="bold red", markup=False)
        raise typer.Exit(code=1)

    console.print(f"Extracted volumes into {output}")

"""``sitepack volumes-create PACKAGE_DIR OUT_DIR``: split a package into
zip volumes plus a ``sitepack.volumes.json`` descriptor."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sitepack.cli.output import configure_logging, err_console, require_path
from sitepack.config import config
from sitepack.volumes.builder import VolumeBuildError, create_volumes

console = Console()


def volumes_create_cmd(
    package_dir: Path = typer.Argument(..., help="Path to the unpacked package."),
    out_dir: Path = typer.Argument(..., help="Directory for the volume set."),
    max_part_size: int = typer.Option(
        config.max_part_size,
        "--max-part-size",
        min=1,
        help="Maximum size per volume in bytes.",
    ),
    package_id: Optional[str] = typer.Option(
        None, "--package-id", help="Override packageId in sitepack.volumes.json."
    ),
    base_name: str = typer.Option(
        config.volume_base_name, "--base-name", help="Base filename for volume parts."
    ),
    overwrite: bool = typer.Option(
        False, "--overwrite", help="Overwrite existing output files."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Create a volume set from an unpacked package."""
    configure_logging(verbose)
    source = require_path(package_dir, "dir")

    try:
        result = create_volumes(
            source,
            out_dir.resolve(),
            max_part_size=max_part_size,
            package_id=package_id,
            base_name=base_name,
            overwrite=overwrite,
        )
    except VolumeBuildError as exc:
        for problem in exc.problems:
            err_console.print(problem, style="bold red", markup=False)
        raise typer.Exit(code=1)

    console.print(
        f"Created volume set for package [cyan]{result.package_id}[/cyan]."
    )
    console.print(f"Descriptor: {result.descriptor_path}")

    table = Table(header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("SHA-256", style="dim")
    for volume in result.volumes:
        table.add_row(str(volume.index), volume.file, str(volume.size), volume.sha256)
    console.print(table)

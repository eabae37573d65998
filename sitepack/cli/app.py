"""Main Typer application: imports and registers all CLI commands.

Entry point: ``sitepack`` (configured via pyproject.toml console_scripts).

Commands: validate, envelope, volumes, volumes-create, volumes-extract.
"""

from __future__ import annotations

import typer

from sitepack import __description__, __version__
from sitepack.cli.commands.envelope import envelope_cmd
from sitepack.cli.commands.validate import validate_cmd
from sitepack.cli.commands.volumes import volumes_cmd
from sitepack.cli.commands.volumes_create import volumes_create_cmd
from sitepack.cli.commands.volumes_extract import volumes_extract_cmd

app = typer.Typer(
    name="sitepack",
    help=f"Sitepack: {__description__}.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="validate", help="Validate an unpacked package directory.")(validate_cmd)
app.command(name="envelope", help="Validate an encrypted envelope header (.enc.json).")(
    envelope_cmd
)
app.command(name="volumes", help="Validate a volume set (sitepack.volumes.json).")(
    volumes_cmd
)
app.command(name="volumes-create", help="Create a volume set from a package.")(
    volumes_create_cmd
)
app.command(name="volumes-extract", help="Extract a volume set into a directory.")(
    volumes_extract_cmd
)


@app.command(name="version", help="Show the sitepack version.")
def version_cmd() -> None:
    """Print the installed sitepack version."""
    typer.echo(f"sitepack {__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

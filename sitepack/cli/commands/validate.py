"""``sitepack validate ROOT``: validate an unpacked package directory.

Writes ``ROOT/reports/validate.json`` and prints the report. Exit code is
0 when clean, 1 on errors (or on warnings with ``--strict``), 2 when the
target or schema directory is unusable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from sitepack.cli.output import (
    OutputFormat,
    configure_logging,
    emit_report,
    finish,
    open_schema_gate,
    require_path,
)
from sitepack.core.package_validator import PackageValidator


def validate_cmd(
    root: Path = typer.Argument(..., help="Path to the unpacked package."),
    profile: Optional[str] = typer.Option(
        None, "--profile", help="Validate only artifacts for the selected profile."
    ),
    digest: bool = typer.Option(
        True, "--digest/--no-digest", help="Verify artifact digests when declared."
    ),
    check_asset_blobs: bool = typer.Option(
        False,
        "--check-asset-blobs",
        help="Check files and chunks referenced by asset-index records.",
    ),
    schemas: Optional[Path] = typer.Option(
        None, "--schemas", help="Directory of JSON schemas (default: bundled)."
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT, "--format", "-f", help="Output format."
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Print the summary only."),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Validate an unpacked SitePack package."""
    configure_logging(verbose)
    package_root = require_path(root, "dir")
    gate = open_schema_gate(schemas)

    report = PackageValidator(gate=gate).validate(
        package_root,
        profile=profile,
        skip_digest=not digest,
        check_blobs=check_asset_blobs,
    )
    emit_report(report, output_format, quiet)
    finish(report, strict)

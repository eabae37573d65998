"""``sitepack volumes VOLUMES_JSON``: validate a volume set.

Shards are verified, extracted into a scratch directory and validated as
a package; the merged report is written next to the descriptor.
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
from sitepack.core.volume_set import VolumeSetValidator


def volumes_cmd(
    volumes_json: Path = typer.Argument(..., help="Path to sitepack.volumes.json."),
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
    """Validate a volume set and the package it reassembles to."""
    configure_logging(verbose)
    descriptor = require_path(volumes_json, "file")
    gate = open_schema_gate(schemas)

    report = VolumeSetValidator(gate=gate).validate(
        descriptor,
        profile=profile,
        skip_digest=not digest,
        check_blobs=check_asset_blobs,
    )
    emit_report(report, output_format, quiet)
    finish(report, strict)

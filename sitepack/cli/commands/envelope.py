"""``sitepack envelope ENC_JSON``: validate an encrypted envelope header."""

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
from sitepack.core.envelope_validator import EnvelopeValidator


def envelope_cmd(
    enc_json: Path = typer.Argument(..., help="Path to the .enc.json header."),
    check_payload_file: bool = typer.Option(
        False,
        "--check-payload-file",
        help="Check that payload.file exists next to the header.",
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
    """Validate an envelope header without touching the encrypted payload."""
    configure_logging(verbose)
    header = require_path(enc_json, "file")
    gate = open_schema_gate(schemas)

    report = EnvelopeValidator(gate=gate).validate(
        header, check_payload_file=check_payload_file
    )
    emit_report(report, output_format, quiet)
    finish(report, strict)

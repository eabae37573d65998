"""Envelope header validator.

Checks the ``*.enc.json`` header only. The encrypted payload is never
opened; at most its existence next to the header is confirmed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sitepack import __version__
from sitepack.config import SitepackConfig, config as default_config
from sitepack.core.documents import DocumentReadError, read_json_document
from sitepack.core.safe_path import SafePath
from sitepack.core.schema_gate import SchemaGate, load_schema_gate
from sitepack.models.documents import EnvelopeHeader, non_blank
from sitepack.models.report import ToolInfo, ValidationReport
from sitepack.reporting.builder import ReportBuilder
from sitepack.reporting.writer import write_report

logger = logging.getLogger(__name__)


class EnvelopeValidator:
    def __init__(
        self,
        gate: SchemaGate | None = None,
        settings: SitepackConfig | None = None,
    ) -> None:
        self.settings = settings or default_config
        self.gate = gate or load_schema_gate(self.settings.schemas_dir)
        self.tool = ToolInfo(name=self.settings.tool_name, version=__version__)

    def validate(
        self, enc_json_path: Path, check_payload_file: bool = False
    ) -> ValidationReport:
        """Validate the header; the report lands in the header's directory."""
        enc_json_path = Path(enc_json_path)
        builder = ReportBuilder(self.tool, "envelope", str(enc_json_path))
        self._check(builder, enc_json_path, check_payload_file)
        report = builder.close()
        write_report(report, enc_json_path.parent, self.settings)
        logger.info(
            "Envelope %s: %d error(s), %d warning(s)",
            enc_json_path,
            report.summary.errors,
            report.summary.warnings,
        )
        return report

    def _check(
        self, builder: ReportBuilder, path: Path, check_payload_file: bool
    ) -> None:
        try:
            raw = read_json_document(path)
        except FileNotFoundError:
            builder.error(
                "ENVELOPE_MISSING", "Envelope header file not found", path=str(path)
            )
            return
        except DocumentReadError as exc:
            builder.error(
                "ENVELOPE_PARSE_ERROR", f"Failed to read envelope: {exc}", path=str(path)
            )
            return

        for error in self.gate.validate("envelope", raw).errors:
            builder.error("ENVELOPE_SCHEMA_ERROR", error, path=str(path))

        if not check_payload_file:
            return

        payload_file = EnvelopeHeader.from_document(raw).payload_file
        if not non_blank(payload_file):
            builder.error(
                "ENVELOPE_PAYLOAD_FILE_MISSING",
                "payload.file is missing or not a string",
                path=str(path),
            )
            return

        resolution = SafePath.resolve(path.parent, payload_file)
        if not resolution.ok or resolution.resolved is None:
            builder.error(
                resolution.code or "PATH_INVALID",
                resolution.message or "Unsafe path",
                payloadFile=payload_file,
            )
        elif not resolution.resolved.exists():
            builder.error(
                "ENVELOPE_PAYLOAD_FILE_NOT_FOUND",
                "payload.file not found",
                payloadFile=payload_file,
            )

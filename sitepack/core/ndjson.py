"""Line-by-line validation of newline-delimited JSON record streams.

Lines are read and checked strictly in file order. Each successfully
parsed record is handed to an optional hook (the asset blob check for
asset-index streams) before it is checked against the stream's schema.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from sitepack.core.schema_gate import SchemaGate
from sitepack.models.report import Detail

logger = logging.getLogger(__name__)

RecordHook = Callable[[dict[str, Any], int], list[Detail]]


class RecordStreamOutcome(BaseModel):
    """Details found in one stream and the number of records that parsed."""

    model_config = ConfigDict(frozen=True)

    details: list[Detail] = []
    lines_validated: int = 0


class RecordStreamValidator:
    """Validates NDJSON files against a named schema.

    Parameters
    ----------
    gate:
        Schema capability used for every record.
    """

    def __init__(self, gate: SchemaGate) -> None:
        self._gate = gate

    def validate(
        self,
        path: Path,
        schema_name: str,
        warn_on_blank_line: bool = True,
        on_record: RecordHook | None = None,
    ) -> RecordStreamOutcome:
        """Validate every line of *path*.

        Blank lines warn (``EMPTY_LINE``) and are not counted. Lines that
        are not a single JSON object are ``NDJSON_PARSE_ERROR`` and are not
        counted. Every other line is counted, passed to *on_record*, then
        checked against *schema_name* with one ``NDJSON_SCHEMA_ERROR`` per
        violation. Hook details without a line number get the current one.
        """
        details: list[Detail] = []
        lines_validated = 0

        try:
            with open(path, "rb") as handle:
                for line_number, raw in enumerate(handle, start=1):
                    try:
                        text = raw.decode("utf-8").rstrip("\r\n")
                    except UnicodeDecodeError as exc:
                        details.append(self._parse_error(line_number, str(exc)))
                        continue

                    if text.strip() == "":
                        if warn_on_blank_line:
                            details.append(
                                Detail.warning(
                                    "EMPTY_LINE",
                                    "Empty NDJSON line skipped",
                                    line=line_number,
                                )
                            )
                        continue

                    try:
                        record = json.loads(text)
                    except (ValueError, RecursionError) as exc:
                        details.append(self._parse_error(line_number, str(exc)))
                        continue
                    if not isinstance(record, dict):
                        details.append(
                            self._parse_error(line_number, "record is not a JSON object")
                        )
                        continue

                    lines_validated += 1

                    if on_record is not None:
                        for extra in on_record(record, line_number):
                            if extra.line is None:
                                extra = extra.model_copy(update={"line": line_number})
                            details.append(extra)

                    verdict = self._gate.validate(schema_name, record)
                    for message in verdict.errors:
                        details.append(
                            Detail.error(
                                "NDJSON_SCHEMA_ERROR",
                                f"Schema violation on line {line_number}: {message}",
                                line=line_number,
                            )
                        )
        except OSError as exc:
            logger.warning("Failed to read NDJSON stream %s: %s", path, exc)
            details.append(
                Detail.error("NDJSON_READ_ERROR", f"Failed to read NDJSON file: {exc}")
            )

        logger.debug("%s: %d lines validated", path, lines_validated)
        return RecordStreamOutcome(details=details, lines_validated=lines_validated)

    @staticmethod
    def _parse_error(line_number: int, reason: str) -> Detail:
        return Detail.error(
            "NDJSON_PARSE_ERROR",
            f"Invalid JSON on line {line_number}: {reason}",
            line=line_number,
        )

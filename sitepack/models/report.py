"""Validation report models: the persisted outcome of one run.

Serialized with camelCase keys (``model_dump(by_alias=True)``) to match
the on-disk ``reports/validate.json`` layout. All models are frozen; the
only mutable view of a report in flight is ``ReportBuilder``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Level(str, Enum):
    """Severity of a detail or message."""

    ERROR = "error"
    WARNING = "warning"


class ArtifactStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"


class _ReportModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Detail(_ReportModel):
    """A finding attached to one artifact (optionally to one NDJSON line)."""

    level: Level
    code: str
    message: str
    line: int | None = None

    @classmethod
    def error(cls, code: str, message: str, line: int | None = None) -> Detail:
        return cls(level=Level.ERROR, code=code, message=message, line=line)

    @classmethod
    def warning(cls, code: str, message: str, line: int | None = None) -> Detail:
        return cls(level=Level.WARNING, code=code, message=message, line=line)


class Message(_ReportModel):
    """A run-level finding not tied to a single catalog artifact."""

    level: Level
    code: str
    message: str
    context: dict[str, Any] = {}

    @classmethod
    def error(cls, code: str, message: str, **context: Any) -> Message:
        return cls(level=Level.ERROR, code=code, message=message, context=context)

    @classmethod
    def warning(cls, code: str, message: str, **context: Any) -> Message:
        return cls(level=Level.WARNING, code=code, message=message, context=context)


class ArtifactResult(_ReportModel):
    """Per-catalog-artifact outcome: expected vs. actual size and digest."""

    id: str | None
    media_type: str | None = None
    path: str | None = None
    size_expected: int | None = None
    size_actual: int | None = None
    digest_expected: str | None = None
    digest_actual: str | None = None
    status: ArtifactStatus = ArtifactStatus.OK
    details: list[Detail] = []

    @staticmethod
    def derive_status(details: list[Detail]) -> ArtifactStatus:
        """``error`` if any error detail, else ``warning`` if any warning,
        else ``ok``."""
        levels = {d.level for d in details}
        if Level.ERROR in levels:
            return ArtifactStatus.ERROR
        if Level.WARNING in levels:
            return ArtifactStatus.WARNING
        return ArtifactStatus.OK


class ToolInfo(_ReportModel):
    name: str
    version: str


class ReportTarget(_ReportModel):
    type: str  # "package", "volume-set", "envelope"
    path: str


class ReportSummary(_ReportModel):
    errors: int = 0
    warnings: int = 0
    artifacts_total: int = 0
    artifacts_validated: int = 0
    artifacts_skipped: int = 0
    ndjson_lines_validated: int = 0


class ValidationReport(_ReportModel):
    """A closed report. ``finished_at`` is always set."""

    tool: ToolInfo
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    finished_at: datetime | None = None
    target: ReportTarget
    summary: ReportSummary = ReportSummary()
    artifacts: list[ArtifactResult] = []
    messages: list[Message] = []

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return json.dumps(self.to_document(), indent=2, ensure_ascii=False)

    def exit_code(self, strict: bool = False) -> int:
        """0 if clean, 1 on errors (or on warnings under *strict*)."""
        if self.summary.errors > 0:
            return 1
        if strict and self.summary.warnings > 0:
            return 1
        return 0

    def codes(self) -> list[str]:
        """Every message and artifact-detail code, in report order."""
        found = [m.code for m in self.messages]
        for artifact in self.artifacts:
            found.extend(d.code for d in artifact.details)
        return found

"""Report builder: the single owner of an in-flight report.

Validators return ``Detail``/``Message`` values; the orchestrator folds
them in here. ``close()`` stamps the finish time exactly once and hands
back an immutable ``ValidationReport``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from sitepack.models.report import (
    ArtifactResult,
    Level,
    Message,
    ReportSummary,
    ReportTarget,
    ToolInfo,
    ValidationReport,
)


class ReportClosedError(RuntimeError):
    """Raised when a closed report is mutated or closed again."""


class ReportBuilder:
    """Accumulates messages, artifact results and summary counters.

    Parameters
    ----------
    tool:
        Name and version recorded in the report.
    target_type:
        ``"package"``, ``"volume-set"`` or ``"envelope"``.
    target_path:
        The path being validated, as given by the caller.
    """

    def __init__(self, tool: ToolInfo, target_type: str, target_path: str) -> None:
        self._tool = tool
        self._target = ReportTarget(type=target_type, path=str(target_path))
        self._started_at = datetime.now(timezone.utc)
        self._messages: list[Message] = []
        self._artifacts: list[ArtifactResult] = []
        self._errors = 0
        self._warnings = 0
        self._artifacts_total = 0
        self._artifacts_validated = 0
        self._artifacts_skipped = 0
        self._ndjson_lines = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self.closed:
            raise ReportClosedError("Report is already closed")

    def _count(self, level: Level) -> None:
        if level == Level.ERROR:
            self._errors += 1
        elif level == Level.WARNING:
            self._warnings += 1

    def add(self, message: Message) -> None:
        self._check_open()
        self._messages.append(message)
        self._count(message.level)

    def extend(self, messages: Iterable[Message]) -> None:
        for message in messages:
            self.add(message)

    def error(self, code: str, message: str, **context: Any) -> None:
        self.add(Message.error(code, message, **context))

    def warning(self, code: str, message: str, **context: Any) -> None:
        self.add(Message.warning(code, message, **context))

    def add_artifact(self, result: ArtifactResult) -> None:
        """Append a finished artifact result and fold in its details."""
        self._check_open()
        self._artifacts.append(result)
        for detail in result.details:
            self._count(detail.level)

    def set_artifacts_total(self, count: int) -> None:
        self._check_open()
        self._artifacts_total = count

    def mark_validated(self) -> None:
        self._check_open()
        self._artifacts_validated += 1

    def mark_skipped(self) -> None:
        self._check_open()
        self._artifacts_skipped += 1

    def add_ndjson_lines(self, count: int) -> None:
        self._check_open()
        self._ndjson_lines += count

    def retarget(self, target_type: str, target_path: str) -> None:
        """Describe a different target (e.g. the volume set instead of the
        scratch directory it was reconstructed into)."""
        self._check_open()
        self._target = ReportTarget(type=target_type, path=str(target_path))

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def error_count(self) -> int:
        return self._errors

    @property
    def warning_count(self) -> int:
        return self._warnings

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    def close(self) -> ValidationReport:
        """Stamp ``finishedAt`` and return the immutable report."""
        self._check_open()
        self._closed = True
        return ValidationReport(
            tool=self._tool,
            started_at=self._started_at,
            finished_at=datetime.now(timezone.utc),
            target=self._target,
            summary=ReportSummary(
                errors=self._errors,
                warnings=self._warnings,
                artifacts_total=self._artifacts_total,
                artifacts_validated=self._artifacts_validated,
                artifacts_skipped=self._artifacts_skipped,
                ndjson_lines_validated=self._ndjson_lines,
            ),
            artifacts=list(self._artifacts),
            messages=list(self._messages),
        )

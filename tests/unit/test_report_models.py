"""Unit tests for the report models, the report builder and the writer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sitepack.config import SitepackConfig
from sitepack.models.report import (
    ArtifactResult,
    ArtifactStatus,
    Detail,
    Level,
    Message,
    ToolInfo,
)
from sitepack.reporting.builder import ReportBuilder, ReportClosedError
from sitepack.reporting.writer import report_path_for, write_report

TOOL = ToolInfo(name="sitepack-validate", version="0.4.0")


def _builder() -> ReportBuilder:
    return ReportBuilder(TOOL, "package", "/tmp/pkg")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestFindings:
    def test_detail_constructors(self):
        detail = Detail.error("SIZE_MISMATCH", "File size mismatch: 11 != 12")
        assert detail.level == Level.ERROR
        assert detail.line is None
        assert Detail.warning("EMPTY_LINE", "x", line=4).line == 4

    def test_message_context(self):
        message = Message.warning("CATALOG_ARTIFACT_EXTRA", "extra", artifactId="a")
        assert message.level == Level.WARNING
        assert message.context == {"artifactId": "a"}

    def test_findings_are_frozen(self):
        detail = Detail.error("X", "y")
        with pytest.raises(Exception):
            detail.code = "Z"

    def test_status_derivation(self):
        assert ArtifactResult.derive_status([]) == ArtifactStatus.OK
        assert (
            ArtifactResult.derive_status([Detail.warning("W", "w")])
            == ArtifactStatus.WARNING
        )
        assert (
            ArtifactResult.derive_status(
                [Detail.warning("W", "w"), Detail.error("E", "e")]
            )
            == ArtifactStatus.ERROR
        )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class TestReportBuilder:
    def test_counts_messages_and_details(self):
        builder = _builder()
        builder.error("MANIFEST_MISSING", "missing")
        builder.warning("CATALOG_ARTIFACT_EXTRA", "extra")
        builder.add_artifact(
            ArtifactResult(
                id="a",
                details=[Detail.error("E", "e"), Detail.warning("W", "w")],
                status=ArtifactStatus.ERROR,
            )
        )
        assert builder.error_count == 2
        assert builder.warning_count == 2

        report = builder.close()
        assert report.summary.errors == 2
        assert report.summary.warnings == 2
        assert len(report.artifacts) == 1
        assert [m.code for m in report.messages] == [
            "MANIFEST_MISSING",
            "CATALOG_ARTIFACT_EXTRA",
        ]

    def test_summary_counters(self):
        builder = _builder()
        builder.set_artifacts_total(3)
        builder.mark_validated()
        builder.mark_validated()
        builder.mark_skipped()
        builder.add_ndjson_lines(5)
        builder.add_ndjson_lines(2)
        summary = builder.close().summary
        assert summary.artifacts_total == 3
        assert summary.artifacts_validated == 2
        assert summary.artifacts_skipped == 1
        assert summary.ndjson_lines_validated == 7

    def test_close_stamps_finish_time(self):
        report = _builder().close()
        assert report.finished_at is not None
        assert report.finished_at >= report.started_at

    def test_close_twice_raises(self):
        builder = _builder()
        builder.close()
        assert builder.closed
        with pytest.raises(ReportClosedError):
            builder.close()

    def test_mutation_after_close_raises(self):
        builder = _builder()
        builder.close()
        with pytest.raises(ReportClosedError):
            builder.error("X", "y")
        with pytest.raises(ReportClosedError):
            builder.mark_validated()

    def test_retarget(self):
        builder = _builder()
        builder.retarget("volume-set", "/tmp/sitepack.volumes.json")
        target = builder.close().target
        assert target.type == "volume-set"
        assert target.path == "/tmp/sitepack.volumes.json"


# ---------------------------------------------------------------------------
# Serialization and exit codes
# ---------------------------------------------------------------------------


class TestReportDocument:
    def test_camel_case_keys(self):
        builder = _builder()
        builder.add_artifact(ArtifactResult(id="a", media_type="m", size_expected=1))
        document = builder.close().to_document()
        assert set(document) == {
            "tool",
            "startedAt",
            "finishedAt",
            "target",
            "summary",
            "artifacts",
            "messages",
        }
        assert set(document["summary"]) == {
            "errors",
            "warnings",
            "artifactsTotal",
            "artifactsValidated",
            "artifactsSkipped",
            "ndjsonLinesValidated",
        }
        artifact = document["artifacts"][0]
        assert artifact["mediaType"] == "m"
        assert artifact["sizeExpected"] == 1
        assert artifact["status"] == "ok"

    def test_to_json_round_trips_through_json(self):
        report = _builder().close()
        assert json.loads(report.to_json())["tool"]["name"] == "sitepack-validate"

    def test_exit_codes(self):
        clean = _builder().close()
        assert clean.exit_code() == 0

        warned = _builder()
        warned.warning("W", "w")
        warned_report = warned.close()
        assert warned_report.exit_code() == 0
        assert warned_report.exit_code(strict=True) == 1

        failed = _builder()
        failed.error("E", "e")
        assert failed.close().exit_code() == 1

    def test_codes_cover_messages_and_details(self):
        builder = _builder()
        builder.error("A", "a")
        builder.add_artifact(ArtifactResult(id="x", details=[Detail.error("B", "b")]))
        assert builder.close().codes() == ["A", "B"]


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class TestReportWriter:
    def test_writes_under_reports(self, tmp_path: Path, settings: SitepackConfig):
        report = _builder().close()
        written = write_report(report, tmp_path, settings)
        assert written == tmp_path / "reports" / "validate.json"
        assert json.loads(written.read_text(encoding="utf-8"))["target"]["type"] == "package"

    def test_overwrites_existing_report(self, tmp_path: Path, settings: SitepackConfig):
        path = report_path_for(tmp_path, settings)
        path.parent.mkdir(parents=True)
        path.write_text("stale", encoding="utf-8")
        write_report(_builder().close(), tmp_path, settings)
        assert path.read_text(encoding="utf-8") != "stale"

    def test_disabled_writes_nothing(self, tmp_path: Path):
        settings = SitepackConfig(_env_file=None, write_reports=False)
        assert write_report(_builder().close(), tmp_path, settings) is None
        assert not (tmp_path / "reports").exists()

"""Persist a closed report as ``<root>/reports/validate.json``."""

from __future__ import annotations

import logging
from pathlib import Path

from sitepack.config import SitepackConfig, config as default_config
from sitepack.models.report import ValidationReport

logger = logging.getLogger(__name__)


def report_path_for(target_root: Path, settings: SitepackConfig | None = None) -> Path:
    settings = settings or default_config
    return Path(target_root) / settings.report_dir_name / settings.report_file_name


def write_report(
    report: ValidationReport,
    target_root: Path,
    settings: SitepackConfig | None = None,
) -> Path | None:
    """Write *report* under *target_root*; returns the path written.

    Returns ``None`` without touching the disk when report writing is
    disabled in the configuration.
    """
    settings = settings or default_config
    if not settings.write_reports:
        return None
    path = report_path_for(target_root, settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.to_json(), encoding="utf-8")
    logger.debug("Report written to %s", path)
    return path

"""Rich terminal renderer for validation reports.

Color scheme
------------
- green     : ok
- yellow    : warning
- bold red  : error
- dim       : skipped
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sitepack.models.report import ArtifactStatus, Level, ValidationReport


# ---------------------------------------------------------------------------
# Level / status -> Rich style mapping
# ---------------------------------------------------------------------------

_STATUS_LABELS: dict[ArtifactStatus, str] = {
    ArtifactStatus.OK: "[green]ok[/green]",
    ArtifactStatus.WARNING: "[yellow]warning[/yellow]",
    ArtifactStatus.ERROR: "[bold red]error[/bold red]",
    ArtifactStatus.SKIPPED: "[dim]skipped[/dim]",
}

_LEVEL_STYLES: dict[Level, str] = {
    Level.ERROR: "bold red",
    Level.WARNING: "yellow",
}


class ReportRenderer:
    """Renders a ``ValidationReport`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print(self, report: ValidationReport, quiet: bool = False) -> None:
        """Print the summary; with *quiet* off, also messages and artifacts."""
        self.console.print(self.render_summary(report))
        if quiet:
            return
        if report.messages:
            self.console.print(self.render_messages(report))
        if report.artifacts:
            self.console.print(self.render_artifacts(report))

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def render_summary(self, report: ValidationReport) -> Panel:
        summary = report.summary
        errors = (
            f"[bold red]{summary.errors}[/bold red]"
            if summary.errors
            else "[green]0[/green]"
        )
        warnings = (
            f"[yellow]{summary.warnings}[/yellow]"
            if summary.warnings
            else "[green]0[/green]"
        )
        lines = [
            f"[bold]Errors:[/bold] {errors}  |  [bold]Warnings:[/bold] {warnings}",
            f"[bold]Artifacts:[/bold] total {summary.artifacts_total}, "
            f"validated {summary.artifacts_validated}, "
            f"skipped {summary.artifacts_skipped}",
            f"[bold]NDJSON lines validated:[/bold] {summary.ndjson_lines_validated}",
        ]
        border = "red" if summary.errors else ("yellow" if summary.warnings else "green")
        return Panel(
            Group(*(Text.from_markup(line) for line in lines)),
            title=f"[bold]{escape(report.tool.name)}[/bold] {report.tool.version}",
            subtitle=f"{report.target.type}: {escape(report.target.path)}",
            border_style=border,
            padding=(1, 2),
        )

    def render_messages(self, report: ValidationReport) -> Table:
        table = Table(title="Messages", header_style="bold cyan", expand=True)
        table.add_column("Level", width=9)
        table.add_column("Code", style="cyan", no_wrap=True)
        table.add_column("Message")

        for message in report.messages:
            style = _LEVEL_STYLES.get(message.level, "")
            table.add_row(
                f"[{style}]{message.level.value}[/{style}]",
                message.code,
                escape(message.message),
            )
        return table

    def render_artifacts(self, report: ValidationReport) -> Table:
        table = Table(
            title="Artifacts",
            header_style="bold cyan",
            expand=True,
            show_lines=True,
        )
        table.add_column("Artifact", style="cyan", min_width=12)
        table.add_column("Status", justify="center", width=9)
        table.add_column("Media type", style="dim")
        table.add_column("Details")

        for artifact in report.artifacts:
            detail_lines: list[str] = []
            for detail in artifact.details:
                style = _LEVEL_STYLES.get(detail.level, "")
                line_info = f" (line {detail.line})" if detail.line else ""
                detail_lines.append(
                    f"[{style}]{detail.code}[/{style}]: "
                    f"{escape(detail.message)}{line_info}"
                )
            table.add_row(
                escape(artifact.id or "-"),
                _STATUS_LABELS.get(artifact.status, artifact.status.value),
                escape(artifact.media_type or ""),
                "\n".join(detail_lines) if detail_lines else "[dim]-[/dim]",
            )
        return table

"""Shared rich rendering for CLI commands."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from stackpkg.models.report import RunReport, StepState

_STATE_STYLE: dict[StepState, str] = {
    StepState.PASSED: "[green]passed[/green]",
    StepState.FAILED: "[red]failed[/red]",
    StepState.SKIPPED: "[dim]skipped[/dim]",
}


def render_report(console: Console, report: RunReport) -> None:
    """Print the step table of a run report."""
    title = report.identifier or report.request.package
    table = Table(title=f"{report.request.command.value} {title}")
    table.add_column("Step", style="cyan")
    table.add_column("State", justify="center")
    table.add_column("Detail", overflow="fold")

    for record in report.steps:
        table.add_row(record.step.value, _STATE_STYLE[record.state], record.detail)

    console.print(table)

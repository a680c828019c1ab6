"""
Rich rendering of run reports for the CLI.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bugbot.schemas.models import RunStatus
from bugbot.schemas.report import RunReport

STATUS_STYLES = {
    RunStatus.REPRODUCED: ("✅", "green"),
    RunStatus.FAILED: ("❌", "red"),
    RunStatus.TIMED_OUT: ("⏱️", "yellow"),
}


def _truncate(text: Optional[str], limit: int = 80) -> str:
    if not text:
        return ""
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def display_report(report: RunReport, console: Console, show_steps: bool = True) -> None:
    """Print the summary panel and, optionally, the step table of a report."""
    icon, color = STATUS_STYLES[report.status]
    summary = (
        f"[bold]Bug:[/bold] {report.bug_description}\n"
        f"[bold]Target:[/bold] {report.target_url}\n"
        f"[bold]Run ID:[/bold] {report.run_id}\n"
        f"[bold]Status:[/bold] [{color}]{icon} {report.status.value}[/{color}]\n"
        f"[bold]Steps:[/bold] {report.steps_taken}\n"
        f"[bold]Duration:[/bold] {report.duration_seconds:.1f}s\n"
        f"[bold]Console errors:[/bold] {len(report.console_errors)}\n"
        f"[bold]Network requests:[/bold] {len(report.network_entries)}"
    )
    console.print(Panel(summary, title="🐛 BugBot Run", border_style=color))

    if show_steps and report.steps:
        table = Table(title="Execution Steps", show_lines=False)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Action", style="magenta")
        table.add_column("Status")
        table.add_column("Thought / Reason")
        table.add_column("Result")
        for step in report.steps:
            result = (
                f"[red]{_truncate(step.error, 60)}[/red]"
                if step.error
                else _truncate(step.outcome, 60)
            )
            table.add_row(
                str(step.step_number),
                step.action.summary(),
                step.status.value,
                _truncate(step.reason or step.thought),
                result,
            )
        console.print(table)

    artifacts = report.artifacts
    if artifacts.run_dir:
        console.print(f"📁 Artifacts: {artifacts.run_dir}")
    if artifacts.video_path:
        console.print(f"🎬 Video: {artifacts.video_path}")

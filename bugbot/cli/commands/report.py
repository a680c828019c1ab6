"""
Report command implementation for BugBot CLI.

This module implements the 'report' command which prints a saved run report.
"""

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from bugbot.cli.display import display_report
from bugbot.schemas.report import RunReport

console = Console()


def report(
    report_file: Path = typer.Argument(..., help="Path of a saved report.json"),
    steps: bool = typer.Option(True, "--steps/--no-steps", help="Show the step table"),
) -> None:
    """Show the summary of a saved run report."""
    if not report_file.exists():
        console.print(f"❌ File not found: {report_file}")
        raise typer.Exit(1)

    try:
        run_report = RunReport.load(report_file)
    except ValidationError as e:
        console.print(f"❌ Invalid report file: {e.error_count()} validation errors")
        raise typer.Exit(1)

    display_report(run_report, console, show_steps=steps)

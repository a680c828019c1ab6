"""
Main CLI entry point for BugBot.

This module provides the command-line interface of the BugBot bug
reproduction engine.
"""

import typer

from bugbot.cli.commands import report, run, serve

app = typer.Typer(
    name="bugbot",
    help="Autonomous bug reproduction against live web applications",
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="run", help="Reproduce a bug against a target URL")(run.run)
app.command(name="serve", help="Serve a browser session over HTTP")(serve.serve)
app.command(name="report", help="Show a saved run report")(report.report)


@app.callback()
def main() -> None:
    """BugBot - Autonomous bug reproduction.

    This CLI drives a browser through a live web application, letting a
    language model choose one UI action per step until the reported bug is
    reproduced or the run budget is exhausted.
    """
    pass


if __name__ == "__main__":
    app()

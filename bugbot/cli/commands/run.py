"""
Run command implementation for BugBot CLI.

This module implements the 'run' command which reproduces a described bug
against a live web application and prints the resulting report.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from bugbot.agents.policy import ReproductionPolicy
from bugbot.browser.session import BrowserSession, PlaywrightBrowserSession
from bugbot.cli.display import display_report
from bugbot.config.factory import ConfigurationFactory
from bugbot.config.settings import BugbotSettings, LLMProvider
from bugbot.exceptions import BugbotError, RunAbortedError
from bugbot.orchestration.orchestrator import RunConfig, RunOrchestrator
from bugbot.runner.client import HttpBrowserSession
from bugbot.schemas.models import RunStatus
from bugbot.schemas.report import RunReport
from bugbot.utils.logging_config import configure_logging

console = Console()


async def run_reproduction(settings: BugbotSettings, config: RunConfig) -> RunReport:
    """Execute one reproduction run.

    The browser is a local Playwright browser, or the runner at
    `settings.runner_url` when one is configured.

    Args:
        settings: Settings of the browser session and the decision policy
        config: Run parameters

    Returns:
        RunReport of the finished run

    Raises:
        RunAbortedError: If the browser could not be started or the target not opened
        ConfigurationError: If the LLM provider is not configured correctly
    """
    policy = ReproductionPolicy.from_settings(settings)
    session: BrowserSession
    if settings.runner_url:
        session = HttpBrowserSession(settings.runner_url, settings)
    else:
        session = PlaywrightBrowserSession(settings)
    orchestrator = RunOrchestrator(config, session, policy, settings=settings)
    return await orchestrator.run()


def run(
    target_url: str = typer.Argument(..., help="URL of the application under test"),
    bug_description: str = typer.Argument(..., help="Natural-language description of the bug"),
    max_steps: Optional[int] = typer.Option(None, "--max-steps", "-m", help="Override max steps"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Override the run timeout in seconds"
    ),
    headless: Optional[bool] = typer.Option(
        None, "--headless/--headed", help="Run the browser without a window"
    ),
    provider: Optional[LLMProvider] = typer.Option(
        None, "--provider", "-p", help="LLM provider of the decision policy"
    ),
    runner_url: Optional[str] = typer.Option(
        None, "--runner-url", "-r", help="Drive the browser of a `bugbot serve` runner"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path of the bugbot.toml configuration file"
    ),
) -> None:
    """Reproduce a bug against a live web application.

    The command opens TARGET_URL in a recorded browser session and lets the
    configured language model pick one UI action per step until the bug is
    reproduced, the policy gives up, or the step or time budget runs out.

    Exit code 0 means the bug was reproduced.
    """
    try:
        settings = ConfigurationFactory.get_settings(cli_mode=True, config_path=config_path)
        overrides = {"llm_provider": provider, "runner_url": runner_url}
        settings = settings.model_copy(
            update={k: v for k, v in overrides.items() if v is not None}
        )
        configure_logging(settings.log_level, settings.logging_enabled)

        config = RunConfig.from_settings(
            settings,
            target_url=target_url,
            bug_description=bug_description,
            max_steps=max_steps,
            timeout_seconds=timeout,
            headless=headless,
        )
    except BugbotError as e:
        console.print(f"❌ Invalid configuration: {e}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"❌ Invalid run parameters: {e}")
        raise typer.Exit(1)

    console.print("🚀 Starting reproduction run...")
    console.print(f"   Target: {config.target_url}")
    console.print(f"   Max Steps: {config.max_steps}")
    console.print(f"   Timeout: {config.timeout_seconds:.0f}s")
    console.print(f"   Provider: {settings.llm_provider.value}")
    if settings.runner_url:
        console.print(f"   Runner: {settings.runner_url}")

    try:
        result = asyncio.run(run_reproduction(settings, config))
    except RunAbortedError as e:
        console.print(f"❌ Run aborted: {e}")
        if e.report is not None:
            display_report(e.report, console, show_steps=False)
        raise typer.Exit(1)
    except BugbotError as e:
        console.print(f"❌ Run error: {e}")
        raise typer.Exit(1)

    display_report(result, console)
    if result.status is not RunStatus.REPRODUCED:
        raise typer.Exit(1)

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from bugbot.cli.main import app
from bugbot.config.factory import ConfigurationFactory
from bugbot.exceptions import RunAbortedError
from bugbot.schemas.models import RunStatus
from bugbot.utils.logging_config import configure_logging
from tests.fixtures.models.schema_factories import RunReportFactory

runner = CliRunner()

BUG = "cart count does not increase after clicking Add to Cart"


@pytest.fixture(autouse=True)
def reset_factory():
    ConfigurationFactory.reset()
    yield
    ConfigurationFactory.reset()
    configure_logging()


class TestReportCommand:
    """Test suite for `bugbot report`."""

    # ? VALID CASE
    def test_prints_summary(self, tmp_path: Path) -> None:
        """Test that a saved report is summarized."""
        path = RunReportFactory.custom_build().save(tmp_path / "report.json")

        result = runner.invoke(app, ["report", str(path)])

        assert result.exit_code == 0
        assert "reproduced" in result.output
        assert "run-test-1" in result.output

    # ! INVALID CASE
    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing report file exits with an error."""
        result = runner.invoke(app, ["report", str(tmp_path / "missing.json")])
        assert result.exit_code == 1

    # ! INVALID CASE
    def test_invalid_report(self, tmp_path: Path) -> None:
        """Test that a file that is not a report exits with an error."""
        path = tmp_path / "report.json"
        path.write_text('{"status": "reproduced"}', encoding="utf-8")

        result = runner.invoke(app, ["report", str(path)])
        assert result.exit_code == 1


class TestRunCommand:
    """Test suite for `bugbot run`.

    The reproduction itself is patched out; these tests cover argument
    handling and exit codes.
    """

    # ? VALID CASE
    def test_reproduced_exits_zero(self, tmp_path: Path) -> None:
        """Test that overrides reach the run config and a reproduced bug exits 0."""
        report = RunReportFactory.custom_build()
        with patch(
            "bugbot.cli.commands.run.run_reproduction", new=AsyncMock(return_value=report)
        ) as run_reproduction:
            result = runner.invoke(
                app,
                [
                    "run",
                    "http://localhost:3000",
                    BUG,
                    "--max-steps",
                    "7",
                    "--headless",
                    "--config",
                    str(tmp_path / "bugbot.toml"),
                ],
            )

        assert result.exit_code == 0, result.output
        settings, config = run_reproduction.await_args.args
        assert config.max_steps == 7
        assert config.headless is True
        assert config.bug_description == BUG

    # ! INVALID CASE
    def test_not_reproduced_exits_one(self, tmp_path: Path) -> None:
        """Test that a run without reproduction exits 1."""
        report = RunReportFactory.custom_build(status=RunStatus.TIMED_OUT)
        with patch(
            "bugbot.cli.commands.run.run_reproduction", new=AsyncMock(return_value=report)
        ):
            result = runner.invoke(
                app,
                ["run", "http://localhost:3000", BUG, "--config", str(tmp_path / "bugbot.toml")],
            )

        assert result.exit_code == 1

    # ! INVALID CASE
    def test_aborted_run(self, tmp_path: Path) -> None:
        """Test that an aborted run prints its report and exits 1."""
        error = RunAbortedError(
            "Run aborted during initialization: net::ERR_CONNECTION_REFUSED",
            report=RunReportFactory.custom_build(status=RunStatus.FAILED, steps=[]),
        )
        with patch(
            "bugbot.cli.commands.run.run_reproduction", new=AsyncMock(side_effect=error)
        ):
            result = runner.invoke(
                app,
                ["run", "http://localhost:3000", BUG, "--config", str(tmp_path / "bugbot.toml")],
            )

        assert result.exit_code == 1
        assert "Run aborted" in result.output

    # ! INVALID CASE
    def test_invalid_max_steps(self, tmp_path: Path) -> None:
        """Test that an invalid step budget is rejected before running."""
        with patch("bugbot.cli.commands.run.run_reproduction", new=AsyncMock()) as run_reproduction:
            result = runner.invoke(
                app,
                [
                    "run",
                    "http://localhost:3000",
                    BUG,
                    "--max-steps",
                    "0",
                    "--config",
                    str(tmp_path / "bugbot.toml"),
                ],
            )

        assert result.exit_code == 1
        run_reproduction.assert_not_awaited()

    # ? VALID CASE
    def test_runner_url_reaches_settings(self, tmp_path: Path) -> None:
        """Test that `--runner-url` selects the remote runner for the run."""
        report = RunReportFactory.custom_build()
        with patch(
            "bugbot.cli.commands.run.run_reproduction", new=AsyncMock(return_value=report)
        ) as run_reproduction:
            result = runner.invoke(
                app,
                [
                    "run",
                    "http://localhost:3000",
                    BUG,
                    "--runner-url",
                    "http://127.0.0.1:3001",
                    "--config",
                    str(tmp_path / "bugbot.toml"),
                ],
            )

        assert result.exit_code == 0, result.output
        settings, _ = run_reproduction.await_args.args
        assert settings.runner_url == "http://127.0.0.1:3001"
        assert "Runner: http://127.0.0.1:3001" in result.output

import json
import logging
from pathlib import Path
from typing import List
from unittest.mock import AsyncMock

import pytest

from bugbot.agents.policy import ReproductionPolicy
from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import BrowserSessionError, RunAbortedError
from bugbot.orchestration.orchestrator import RunConfig, RunOrchestrator, RunPhase
from bugbot.schemas.models import ClickAction, PolicyResponse, PolicyStatus, RunStatus
from bugbot.utils.logging_config import logger
from tests.fixtures.models.schema_factories import (
    BrowserStateFactory,
    PageElementFactory,
    PolicyResponseFactory,
)
from tests.mocks.agent_mocks import MockDecisionPolicy
from tests.mocks.browser_mocks import MockBrowserSession
from tests.mocks.model_mocks import MockChatModel

BUG = "cart count does not increase after clicking Add to Cart"
TARGET = "http://localhost:3000"


class FakeClock:
    """Monotonic clock advanced by the injected sleep."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.now += 10.0


def _click(selector: str = 'text="Add to Cart"') -> PolicyResponse:
    return PolicyResponseFactory.custom_build(action=ClickAction(selector=selector))


def _reproduced(reason: str = "Cart count stayed at 0") -> PolicyResponse:
    return PolicyResponseFactory.custom_build(status=PolicyStatus.REPRODUCED, reason=reason)


@pytest.fixture
def settings(tmp_path: Path) -> BugbotSettings:
    return BugbotSettings(runs_dir=tmp_path)


def _orchestrator(
    settings: BugbotSettings,
    session: MockBrowserSession,
    policy,
    max_steps: int = 20,
    timeout_seconds: float = 999999.0,
    **kwargs,
) -> RunOrchestrator:
    config = RunConfig(
        target_url=TARGET,
        bug_description=BUG,
        max_steps=max_steps,
        timeout_seconds=timeout_seconds,
        run_id="run-1",
    )
    kwargs.setdefault("sleep", AsyncMock())
    return RunOrchestrator(config, session, policy, settings=settings, **kwargs)


class TestRunConfig:
    """Test suite for `RunConfig`."""

    # ? VALID CASE
    def test_defaults_from_settings(self, settings: BugbotSettings) -> None:
        """Test that settings provide defaults and `None` overrides are ignored."""
        config = RunConfig.from_settings(
            settings, TARGET, BUG, max_steps=7, timeout_seconds=None, headless=None
        )

        assert config.max_steps == 7
        assert config.timeout_seconds == settings.timeout_seconds
        assert config.headless == settings.headless
        assert config.run_id

    # ! INVALID CASE
    @pytest.mark.parametrize(
        "overrides",
        [{"target_url": " "}, {"bug_description": ""}, {"max_steps": 0}, {"timeout_seconds": 0}],
    )
    def test_invalid_values(self, overrides: dict) -> None:
        """Test that invalid run parameters are rejected."""
        values = {"target_url": TARGET, "bug_description": BUG, **overrides}
        with pytest.raises(ValueError):
            RunConfig(**values)


class TestRunOrchestrator:
    """Test suite for `RunOrchestrator`.

    Runs are driven against the scripted mock session with scripted or
    LLM-mocked policies. Every run must end with a report that has a terminal
    status, whatever happens during the loop.
    """

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_step_budget_exhausted(self, settings: BugbotSettings) -> None:
        """Test that `max_steps=5` bounds the run to five decisions."""
        session = MockBrowserSession(dom=[PageElementFactory.custom_build()])
        policy = MockDecisionPolicy([_click()])
        orchestrator = _orchestrator(settings, session, policy, max_steps=5)

        report = await orchestrator.run()

        assert len(policy.calls) == 5
        assert report.status is RunStatus.TIMED_OUT
        assert report.steps_taken == 5
        assert [step.step_number for step in report.steps] == [1, 2, 3, 4, 5]
        assert orchestrator.phase is RunPhase.FINISHED

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_wall_clock_timeout(self, settings: BugbotSettings) -> None:
        """Test that the timeout is checked before every iteration."""
        clock = FakeClock()
        session = MockBrowserSession(dom=[PageElementFactory.custom_build()])
        policy = MockDecisionPolicy([_click()])
        orchestrator = _orchestrator(
            settings, session, policy, timeout_seconds=50, clock=clock, sleep=clock.sleep
        )

        report = await orchestrator.run()

        # each step advances the clock by 20s: click settle plus step delay
        assert len(policy.calls) == 3
        assert report.status is RunStatus.TIMED_OUT

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_action_error_does_not_stop_the_run(self, settings: BugbotSettings) -> None:
        """Test that a failed action is recorded and the next step still runs."""
        session = MockBrowserSession(
            dom=[PageElementFactory.custom_build()], failing_selectors=("#broken",)
        )
        policy = MockDecisionPolicy([_click("#broken"), _click(), _reproduced()])
        orchestrator = _orchestrator(settings, session, policy)

        report = await orchestrator.run()

        first, second, third = report.steps
        assert first.error is not None and "#broken" in first.error
        assert first.outcome is None
        assert second.outcome == 'Clicked text="Add to Cart"'
        assert second.error is None
        # the failed action was visible in the history of step 2
        assert policy.calls[1][2] == 1
        assert orchestrator.history.actions[0].selector == "#broken"  # type: ignore[union-attr]
        assert third.status is PolicyStatus.REPRODUCED
        assert report.status is RunStatus.REPRODUCED

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_action_error_is_logged(
        self, settings: BugbotSettings, caplog: pytest.LogCaptureFixture, monkeypatch
    ) -> None:
        """Test that a failed action is reported in the log, not only in the report."""
        monkeypatch.setattr(logger, "propagate", True)
        session = MockBrowserSession(failing_selectors=("#broken",))
        policy = MockDecisionPolicy([_click("#broken"), _reproduced()])
        orchestrator = _orchestrator(settings, session, policy)

        with caplog.at_level(logging.WARNING, logger="bugbot"):
            await orchestrator.run()

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("Action failed on step 1" in r.getMessage() for r in warnings)
        assert any("#broken" in r.getMessage() for r in warnings)

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_exception_mid_loop_still_reports(self, settings: BugbotSettings) -> None:
        """Test that an unexpected error ends the run as failed with a report."""
        session = MockBrowserSession(dom=[PageElementFactory.custom_build()])
        policy = MockDecisionPolicy([_click(), RuntimeError("policy crashed")])
        orchestrator = _orchestrator(settings, session, policy)

        report = await orchestrator.run()

        assert report.status is RunStatus.FAILED
        assert report.steps_taken == 1
        assert session.closed
        assert Path(report.artifacts.report_path).exists()  # type: ignore[arg-type]

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_policy_gives_up(self, settings: BugbotSettings) -> None:
        """Test that a `failed` decision ends the run as failed."""
        session = MockBrowserSession()
        decision = PolicyResponseFactory.custom_build(
            status=PolicyStatus.FAILED, reason="No cart on this page"
        )
        orchestrator = _orchestrator(settings, session, MockDecisionPolicy([decision]))

        report = await orchestrator.run()

        assert report.status is RunStatus.FAILED
        assert report.steps[0].reason == "No cart on this page"
        assert "click" not in session.operations()

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_cart_bug_reproduced_end_to_end(self, settings: BugbotSettings) -> None:
        """Test the cart scenario through the LLM-backed policy.

        The model clicks "Add to Cart", sees the cart count unchanged and
        declares the bug reproduced; the loop stops without another decision.
        """
        dom = [
            PageElementFactory.custom_build(),
            PageElementFactory.custom_build(
                text="Cart (0)",
                locator="/html[1]/body[1]/header[1]/span[1]",
                clickable=False,
                selector_hint='span.cart-count or text="Cart (0)"',
                role="span",
                tag_name="span",
            ),
        ]
        replies: List[str] = [
            json.dumps(
                {
                    "thought": "Click Add to Cart and watch the cart count",
                    "action": {"type": "click", "selector": 'text="Add to Cart"'},
                    "status": "in_progress",
                }
            ),
            json.dumps(
                {
                    "thought": "The cart count is still 0 after clicking Add to Cart",
                    "action": {"type": "wait"},
                    "status": "reproduced",
                    "reason": "Cart count stayed at 0 after clicking Add to Cart",
                }
            ),
        ]
        llm = MockChatModel(replies)
        session = MockBrowserSession(dom=dom)
        orchestrator = _orchestrator(
            settings, session, ReproductionPolicy(llm, settings)  # type: ignore[arg-type]
        )

        report = await orchestrator.run()

        assert report.status is RunStatus.REPRODUCED
        assert report.steps_taken == 2
        assert llm.ainvoke.await_count == 2
        assert session.operations().count("click") == 1
        assert report.steps[-1].reason == "Cart count stayed at 0 after clicking Add to Cart"
        assert report.bug_description == BUG

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_initialization_failure_aborts_with_report(
        self, settings: BugbotSettings
    ) -> None:
        """Test that a failed navigation aborts the run after finalization."""
        session = MockBrowserSession(
            failures={
                "navigate": BrowserSessionError(
                    "net::ERR_CONNECTION_REFUSED", operation="navigate"
                )
            }
        )
        policy = MockDecisionPolicy([_click()])
        orchestrator = _orchestrator(settings, session, policy)

        with pytest.raises(RunAbortedError) as exc_info:
            await orchestrator.run()

        report = exc_info.value.report
        assert report.status is RunStatus.FAILED
        assert report.steps == []
        assert policy.calls == []
        assert session.closed
        assert isinstance(exc_info.value.original_error, BrowserSessionError)

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_observation_reads_are_fault_isolated(self, settings: BugbotSettings) -> None:
        """Test that a failed screenshot degrades to `None` without failing the step."""
        session = MockBrowserSession(
            dom=[PageElementFactory.custom_build()],
            failures={"get_screenshot": RuntimeError("screenshot failed")},
        )
        orchestrator = _orchestrator(settings, session, MockDecisionPolicy([_reproduced()]))

        report = await orchestrator.run()

        assert report.status is RunStatus.REPRODUCED
        assert report.steps[0].observation.screenshot is None
        assert len(report.steps[0].observation.dom) == 1

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_finalization_artifacts(self, settings: BugbotSettings, tmp_path: Path) -> None:
        """Test that finalization stops tracing, closes the session and writes artifacts."""
        video = tmp_path / "source-video.webm"
        video.write_bytes(b"webm")
        state = BrowserStateFactory.custom_build(console_errors=["TypeError: cart is null"])
        session = MockBrowserSession(state=state, video_path=str(video))
        orchestrator = _orchestrator(settings, session, MockDecisionPolicy([_reproduced()]))

        report = await orchestrator.run()

        operations = session.operations()
        assert operations.index("stop") < operations.index("close")
        assert report.console_errors == ["TypeError: cart is null"]
        run_dir = tmp_path / "run-1"
        assert Path(report.artifacts.video_path) == run_dir / "videos" / video.name  # type: ignore[arg-type]
        assert (run_dir / "network.har").exists()
        assert (run_dir / "console.log").read_text() == "TypeError: cart is null"
        assert (run_dir / "report.json").exists()

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_runs_only_once(self, settings: BugbotSettings) -> None:
        """Test that an orchestrator cannot be reused."""
        orchestrator = _orchestrator(
            settings, MockBrowserSession(), MockDecisionPolicy([_reproduced()])
        )
        await orchestrator.run()

        with pytest.raises(RuntimeError):
            await orchestrator.run()

from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import httpx
import pytest

from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import ActionExecutionError, BrowserSessionError, SessionNotInitializedError
from bugbot.orchestration.orchestrator import RunConfig, RunOrchestrator
from bugbot.runner.client import HttpBrowserSession
from bugbot.runner.server import create_app
from bugbot.schemas.models import ClickAction, PolicyStatus, RunStatus
from tests.fixtures.models.schema_factories import (
    BrowserStateFactory,
    NetworkEntryFactory,
    PageElementFactory,
    PolicyResponseFactory,
)
from tests.mocks.agent_mocks import MockDecisionPolicy
from tests.mocks.browser_mocks import MockBrowserSession

RUNNER_URL = "http://runner"


@pytest.fixture
def settings(tmp_path: Path) -> BugbotSettings:
    return BugbotSettings(runs_dir=tmp_path)


@pytest.fixture
def session_kwargs() -> Dict[str, Any]:
    return {}


@pytest.fixture
def sessions() -> List[MockBrowserSession]:
    return []


@pytest.fixture
def remote(
    settings: BugbotSettings, session_kwargs: Dict[str, Any], sessions: List[MockBrowserSession]
) -> HttpBrowserSession:
    def factory() -> MockBrowserSession:
        session = MockBrowserSession(
            dom=[PageElementFactory.custom_build()],
            state=BrowserStateFactory.custom_build(console_errors=["boom"]),
            network=[NetworkEntryFactory.custom_build()],
            video_path="/tmp/videos/page.webm",
            failing_selectors=("#missing",),
            **session_kwargs,
        )
        sessions.append(session)
        return session

    app = create_app(session_factory=factory)
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=RUNNER_URL)
    return HttpBrowserSession(RUNNER_URL, settings, client=client)


class TestHttpBrowserSession:
    """Test suite for `HttpBrowserSession`.

    The client talks to a real runner app through `httpx.ASGITransport`; the
    runner serves scripted mock sessions.
    """

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_operations_round_trip(
        self, remote: HttpBrowserSession, sessions: List[MockBrowserSession]
    ) -> None:
        """Test that every operation reaches the served session and decodes its result."""
        await remote.init(headless=True)
        await remote.navigate("http://localhost:3000")
        dom = await remote.get_dom()
        state = await remote.get_state()
        network = await remote.get_network()
        screenshot = await remote.get_screenshot()
        await remote.click('text="Add to Cart"')
        await remote.input("#qty", "2")
        video_path = await remote.stop("runs/r1/trace.zip")
        await remote.close()

        assert [element.model_dump() for element in dom] == [
            PageElementFactory.custom_build().model_dump()
        ]
        assert state.console_errors == ["boom"]
        assert network[0].url == "http://localhost:3000/api/cart"
        assert network[0].status == 200
        assert screenshot == "c2NyZWVuc2hvdA=="
        assert video_path == "/tmp/videos/page.webm"

        (session,) = sessions
        assert session.calls == [
            ("init", True),
            ("navigate", "http://localhost:3000"),
            ("get_dom",),
            ("get_state",),
            ("get_network",),
            ("get_screenshot",),
            ("click", 'text="Add to Cart"'),
            ("input", "#qty", "2"),
            ("stop", "runs/r1/trace.zip"),
            ("close",),
        ]

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_close_is_idempotent(
        self, remote: HttpBrowserSession, sessions: List[MockBrowserSession]
    ) -> None:
        """Test that a second close does not reach the runner again."""
        await remote.init()
        await remote.close()
        await remote.close()

        assert sessions[0].operations().count("close") == 1

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_not_initialized(self, remote: HttpBrowserSession) -> None:
        """Test that the runner's 400 before init maps to `SessionNotInitializedError`."""
        with pytest.raises(SessionNotInitializedError) as exc_info:
            await remote.get_dom()

        assert exc_info.value.operation == "get_dom"

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_click_failure_is_action_error(self, remote: HttpBrowserSession) -> None:
        """Test that a failed click keeps the selector the policy produced."""
        await remote.init()

        with pytest.raises(ActionExecutionError) as exc_info:
            await remote.click("#missing")

        assert exc_info.value.action_type == "click"
        assert exc_info.value.selector == "#missing"
        assert "#missing" in str(exc_info.value)

    # ! INVALID CASE
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "session_kwargs",
        [{"failures": {"navigate": BrowserSessionError("net::ERR_CONNECTION_REFUSED")}}],
    )
    async def test_navigation_failure_is_session_error(self, remote: HttpBrowserSession) -> None:
        """Test that a 500 from the runner maps to `BrowserSessionError`."""
        await remote.init()

        with pytest.raises(BrowserSessionError) as exc_info:
            await remote.navigate("http://localhost:9")

        assert exc_info.value.operation == "navigate"
        assert "net::ERR_CONNECTION_REFUSED" in str(exc_info.value)
        assert exc_info.value.details == {"status_code": 500}

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_unreachable_runner(self, settings: BugbotSettings) -> None:
        """Test that a transport error maps to `BrowserSessionError`."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url=RUNNER_URL)
        remote = HttpBrowserSession(RUNNER_URL, settings, client=client)

        with pytest.raises(BrowserSessionError) as exc_info:
            await remote.init()

        assert exc_info.value.operation == "init"
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_backend_log_reaches_runner(self, remote: HttpBrowserSession) -> None:
        """Test that backend log lines are recorded by the runner."""
        await remote.record_backend_log("error", "cart update failed")

        response = await remote.client.get("/backend-logs")
        assert response.json() == {"backendLogs": ["[error] cart update failed"]}


class TestRemoteRun:
    """Test suite for a full run driven through the runner."""

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_orchestrator_over_http(
        self,
        settings: BugbotSettings,
        remote: HttpBrowserSession,
        sessions: List[MockBrowserSession],
    ) -> None:
        """Test that the orchestrator reproduces a bug with a remote session."""
        policy = MockDecisionPolicy(
            [
                PolicyResponseFactory.custom_build(action=ClickAction(selector='text="Add to Cart"')),
                PolicyResponseFactory.custom_build(
                    status=PolicyStatus.REPRODUCED, reason="Cart count stayed at 0"
                ),
            ]
        )
        config = RunConfig(target_url="http://localhost:3000", bug_description="cart stays empty")
        orchestrator = RunOrchestrator(config, remote, policy, sleep=AsyncMock(), settings=settings)

        report = await orchestrator.run()

        assert report.status is RunStatus.REPRODUCED
        assert report.steps_taken == 2
        assert report.console_errors == ["boom"]
        assert sessions[0].closed
        assert sessions[0].operations()[:2] == ["init", "navigate"]

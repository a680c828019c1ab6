"""
HTTP runner exposing one browser session.

The runner is the service boundary of the browser-control backend: a client
(e.g. an orchestrator in another process) drives the session through these
endpoints. Every operation except `/health`, `/init`, `/close` and the backend
log endpoints answers 400 while no session is initialized. Errors always have
the shape `{"error": "<message>"}`.

| Method | Path | Body | Response |
|---|---|---|---|
| GET | /health | - | `{status, initialized}` |
| POST | /init | `{headless}` | `{success}` |
| POST | /navigate | `{url}` | `{success}` |
| GET | /dom | - | `PageElement[]` |
| POST | /action/click | `{selector}` | `{success}` |
| POST | /action/input | `{selector, text}` | `{success}` |
| GET | /state | - | `BrowserState` |
| GET | /network | - | `NetworkEntry[]` |
| GET | /screenshot | - | `{screenshot, format}` |
| GET/POST | /backend-logs | `{level, message}` | `{backendLogs}` |
| POST | /stop | `{tracingPath}` | `{success, videoPath}` |
| POST | /close | - | `{success}` |
"""

from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bugbot.browser.recorders import BackendLogRecorder
from bugbot.browser.session import BrowserSession, PlaywrightBrowserSession
from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import SessionNotInitializedError
from bugbot.schemas.models import BugbotModel
from bugbot.utils.logging_config import logger

BACKEND_LOG_LIMIT = 50

SessionFactory = Callable[[], BrowserSession]


class InitRequest(BugbotModel):
    headless: bool = False


class NavigateRequest(BugbotModel):
    url: str


class ClickRequest(BugbotModel):
    selector: str


class InputRequest(BugbotModel):
    selector: str
    text: str


class StopRequest(BugbotModel):
    tracing_path: str


class BackendLogRequest(BugbotModel):
    level: str = "log"
    message: str


class RunnerState:
    """The single session served by a runner app."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory
        self.session: Optional[BrowserSession] = None
        self.backend_logs = BackendLogRecorder()

    @property
    def initialized(self) -> bool:
        return self.session is not None

    def require(self, operation: str) -> BrowserSession:
        if self.session is None:
            raise SessionNotInitializedError(operation=operation)
        return self.session

    async def init(self, headless: bool) -> None:
        if self.session is not None:
            await self.close()
        session = self.session_factory()
        await session.init(headless=headless)
        self.session = session

    async def close(self) -> None:
        session, self.session = self.session, None
        if session is not None:
            await session.close()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    session_factory: Optional[SessionFactory] = None,
    settings: Optional[BugbotSettings] = None,
) -> FastAPI:
    """Create the runner application.

    Args:
        session_factory (Optional[SessionFactory]): Creates the session on `/init`;
            a `PlaywrightBrowserSession` sharing the runner's backend log recorder by default
        settings (Optional[BugbotSettings]): Settings of the default session

    Returns:
        FastAPI: Configured application

    Example:
        ```python
        import uvicorn
        from bugbot.runner.server import create_app

        uvicorn.run(create_app(), host="127.0.0.1", port=3001)
        ```
    """
    app = FastAPI(
        title="BugBot Runner",
        description="Browser-control backend of BugBot",
        version="0.1.0",
    )

    if session_factory is None:
        runner_settings = settings or BugbotSettings()

        def default_factory() -> BrowserSession:
            return PlaywrightBrowserSession(runner_settings, backend_logs=state.backend_logs)

        session_factory = default_factory

    state = RunnerState(session_factory)
    app.state.runner = state

    @app.exception_handler(SessionNotInitializedError)
    async def not_initialized_handler(
        request: Request, exc: SessionNotInitializedError
    ) -> JSONResponse:
        return _error(400, "Browser not initialized. Call /init first.")

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, f"Invalid request: {exc.errors()}")

    @app.middleware("http")
    async def error_middleware(request: Request, call_next: Callable) -> Any:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
            return _error(500, str(e))

    #! Session lifecycle

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "initialized": state.initialized}

    @app.post("/init")
    async def init(body: InitRequest) -> Dict[str, Any]:
        logger.bugbot_log(f"🌐 Initializing browser (headless: {body.headless})")
        await state.init(body.headless)
        return {"success": True}

    @app.post("/stop")
    async def stop(body: StopRequest) -> Dict[str, Any]:
        video_path = await state.require("stop").stop(body.tracing_path)
        return {"success": True, "videoPath": video_path}

    @app.post("/close")
    async def close() -> Dict[str, Any]:
        await state.close()
        return {"success": True}

    #! Interaction

    @app.post("/navigate")
    async def navigate(body: NavigateRequest) -> Dict[str, Any]:
        await state.require("navigate").navigate(body.url)
        return {"success": True}

    @app.post("/action/click")
    async def click(body: ClickRequest) -> Dict[str, Any]:
        logger.debug(f"/action/click received selector: {body.selector!r}")
        await state.require("click").click(body.selector)
        return {"success": True}

    @app.post("/action/input")
    async def input_text(body: InputRequest) -> Dict[str, Any]:
        await state.require("input").input(body.selector, body.text)
        return {"success": True}

    #! Observation

    @app.get("/dom")
    async def dom() -> List[Dict[str, Any]]:
        elements = await state.require("get_dom").get_dom()
        return [element.model_dump(by_alias=True, mode="json") for element in elements]

    @app.get("/state")
    async def browser_state() -> Dict[str, Any]:
        snapshot = await state.require("get_state").get_state()
        return snapshot.model_dump(by_alias=True, mode="json")

    @app.get("/network")
    async def network() -> List[Dict[str, Any]]:
        entries = await state.require("get_network").get_network()
        return [entry.model_dump(by_alias=True, mode="json") for entry in entries]

    @app.get("/screenshot")
    async def screenshot() -> Dict[str, Any]:
        data = await state.require("get_screenshot").get_screenshot()
        return {"screenshot": data, "format": "base64"}

    @app.get("/backend-logs")
    async def backend_logs() -> Dict[str, Any]:
        return {"backendLogs": state.backend_logs.snapshot(BACKEND_LOG_LIMIT)}

    @app.post("/backend-logs")
    async def record_backend_log(body: BackendLogRequest) -> Dict[str, Any]:
        state.backend_logs.record(body.level, body.message)
        return {"success": True}

    return app

"""
Browser-control backend.

`BrowserSession` is the set of operations the reproduction engine needs from a
browser. `PlaywrightBrowserSession` implements it in-process with Playwright;
`bugbot.runner.server` exposes any implementation over HTTP.

One session is driven by exactly one orchestrator. Event listeners feed the
session-owned recorders, and state is read back as snapshots.

## Usage Examples

```python
from bugbot.browser.session import PlaywrightBrowserSession

session = PlaywrightBrowserSession()
await session.init(headless=True)
await session.navigate("http://localhost:3000")
elements = await session.get_dom()
await session.click('text="Add to Cart"')
video_path = await session.stop("runs/abc/trace.zip")
await session.close()
```
"""

import base64
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from playwright.async_api import (
    Browser,
    BrowserContext,
    ConsoleMessage,
    Locator,
    Page,
    Playwright,
    Request,
    Response,
    async_playwright,
)

from bugbot.browser.dom_extractor import extract_page_elements
from bugbot.browser.recorders import BackendLogRecorder, ConsoleRecorder, NetworkRecorder
from bugbot.browser.selectors import ResolvedSelector, resolve_selector
from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import ActionExecutionError, BrowserSessionError, SessionNotInitializedError
from bugbot.schemas.models import BrowserState, NetworkEntry, PageElement
from bugbot.utils.logging_config import logger

VIEWPORT = {"width": 1280, "height": 720}
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

STATE_NETWORK_LIMIT = 50
STATE_BACKEND_LOG_LIMIT = 50
NETWORK_LIMIT = 100


@runtime_checkable
class BrowserSession(Protocol):
    """Operations of the browser-control backend."""

    async def init(self, headless: bool = False) -> None: ...

    async def navigate(self, url: str) -> None: ...

    async def get_dom(self) -> List[PageElement]: ...

    async def click(self, selector: str) -> None: ...

    async def input(self, selector: str, text: str) -> None: ...

    async def get_state(self) -> BrowserState: ...

    async def get_network(self) -> List[NetworkEntry]: ...

    async def get_screenshot(self) -> str: ...

    async def stop(self, tracing_path: str) -> Optional[str]: ...

    async def close(self) -> None: ...


class PlaywrightBrowserSession:
    """`BrowserSession` backed by a local Chromium driven through Playwright.

    The browser context records a 1280x720 video and a trace with screenshots
    and snapshots. Console errors, network traffic and backend log lines are
    kept by recorders owned by this session.
    """

    def __init__(
        self,
        settings: Optional[BugbotSettings] = None,
        video_dir: Optional[Path] = None,
        backend_logs: Optional[BackendLogRecorder] = None,
    ) -> None:
        self.settings = settings or BugbotSettings()
        self.video_dir = Path(video_dir) if video_dir else self.settings.runs_dir / "videos"

        self.console = ConsoleRecorder()
        self.network = NetworkRecorder()
        self.backend_logs = backend_logs if backend_logs is not None else BackendLogRecorder()

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._tracing_active = False
        self._closed = False

    @property
    def is_initialized(self) -> bool:
        return self._page is not None

    def _require_page(self, operation: str) -> Page:
        if self._page is None:
            raise SessionNotInitializedError(operation=operation)
        return self._page

    #! Lifecycle

    async def init(self, headless: bool = False) -> None:
        """Launch the browser, open a recorded context and attach listeners.

        Raises:
            BrowserSessionError: If the browser or the context cannot be created
        """
        if self._page is not None:
            raise BrowserSessionError("Browser already initialized", operation="init")

        self._closed = False
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=headless, args=LAUNCH_ARGS
            )
        except Exception as e:
            await self._shutdown_driver()
            message = str(e)
            if "Executable doesn't exist" in message:
                message = "Chromium browser not installed. Run: playwright install chromium"
            raise BrowserSessionError(
                f"Failed to launch browser: {message}", operation="init", original_error=e
            )

        try:
            self.video_dir.mkdir(parents=True, exist_ok=True)
            self._context = await self._browser.new_context(
                viewport=VIEWPORT,  # type: ignore[arg-type]
                record_video_dir=str(self.video_dir),
                record_video_size=VIEWPORT,  # type: ignore[arg-type]
            )
            self._page = await self._context.new_page()
            self._attach_listeners(self._page)
            await self._context.tracing.start(screenshots=True, snapshots=True)
            self._tracing_active = True
        except Exception as e:
            self._page = None
            self._context = None
            await self._browser.close()
            await self._shutdown_driver()
            raise BrowserSessionError(
                f"Failed to create browser context: {e}", operation="init", original_error=e
            )

        logger.bugbot_log(f"🌐 Browser session started (headless={headless})")

    def _attach_listeners(self, page: Page) -> None:
        def on_console(message: ConsoleMessage) -> None:
            self.console.record(message.type, message.text)

        def on_request(request: Request) -> None:
            self.network.record_request(request.url, request.method, request.headers)

        def on_response(response: Response) -> None:
            self.network.record_response(
                response.request.url, response.status, response.headers
            )

        page.on("console", on_console)
        page.on("request", on_request)
        page.on("response", on_response)

    async def stop(self, tracing_path: str) -> Optional[str]:
        """Stop tracing into `tracing_path`.

        Returns:
            Optional[str]: Path of the page video, complete once the session is closed
        """
        if self._context is None:
            raise SessionNotInitializedError(operation="stop")

        if self._tracing_active:
            Path(tracing_path).parent.mkdir(parents=True, exist_ok=True)
            await self._context.tracing.stop(path=tracing_path)
            self._tracing_active = False

        if self._page is None or self._page.video is None:
            return None
        return str(await self._page.video.path())

    async def close(self) -> None:
        """Close page, context, browser and driver. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True

        if self._context is not None and self._tracing_active:
            try:
                await self._context.tracing.stop()
            except Exception as e:
                logger.warning(f"⚠️ Failed to stop tracing on close: {e}")
            self._tracing_active = False

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.warning(f"⚠️ Failed to close browser context: {e}")

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"⚠️ Failed to close browser: {e}")

        await self._shutdown_driver()
        self._page = None
        self._context = None
        self._browser = None
        logger.bugbot_log("🛑 Browser session closed")

    async def _shutdown_driver(self) -> None:
        if self._playwright is None:
            return
        try:
            await self._playwright.stop()
        except Exception as e:
            logger.warning(f"⚠️ Failed to stop Playwright driver: {e}")
        self._playwright = None

    #! Interaction

    async def navigate(self, url: str) -> None:
        """Navigate and wait for the configured load state.

        Raises:
            BrowserSessionError: If the navigation fails
        """
        page = self._require_page("navigate")
        logger.bugbot_log(f"🌐 Navigating to URL: {url}")
        try:
            await page.goto(url, wait_until=self.settings.navigation_wait_until)
        except Exception as e:
            raise BrowserSessionError(
                f"Failed to navigate to {url}: {e}", operation="navigate", original_error=e
            )

    def _locate(self, page: Page, resolved: ResolvedSelector) -> Locator:
        if resolved.is_text:
            return page.get_by_text(resolved.value).first
        return page.locator(resolved.value).first

    async def click(self, selector: str) -> None:
        """Click the first element matching the resolved selector.

        Raises:
            ActionExecutionError: If the selector cannot be resolved or clicked
        """
        page = self._require_page("click")
        resolved = self._resolve("click", selector)
        try:
            await self._locate(page, resolved).click()
        except Exception as e:
            raise ActionExecutionError(
                f'Failed to click selector "{selector}" (resolved: "{resolved.value}"): {e}',
                action_type="click",
                selector=selector,
                resolved_selector=resolved.value,
                original_error=e,
            )

    async def input(self, selector: str, text: str) -> None:
        """Fill the first element matching the resolved selector with `text`.

        Raises:
            ActionExecutionError: If the selector cannot be resolved or filled
        """
        page = self._require_page("input")
        resolved = self._resolve("input", selector)
        try:
            await self._locate(page, resolved).fill(text)
        except Exception as e:
            raise ActionExecutionError(
                f'Failed to input text to selector "{selector}" (resolved: "{resolved.value}"): {e}',
                action_type="input",
                selector=selector,
                resolved_selector=resolved.value,
                original_error=e,
            )

    def _resolve(self, action_type: str, selector: str) -> ResolvedSelector:
        try:
            resolved = resolve_selector(selector)
        except ValueError as e:
            raise ActionExecutionError(
                str(e), action_type=action_type, selector=selector, original_error=e
            )
        logger.debug(f"Resolved selector {selector!r} to {resolved.kind} {resolved.value!r}")
        return resolved

    #! Observation

    async def get_dom(self) -> List[PageElement]:
        return await extract_page_elements(self._require_page("get_dom"))

    async def get_state(self) -> BrowserState:
        page = self._require_page("get_state")
        return BrowserState(
            url=page.url,
            title=await page.title(),
            console_errors=self.console.snapshot(),
            network_entries=self.network.snapshot(STATE_NETWORK_LIMIT),
            backend_logs=self.backend_logs.snapshot(STATE_BACKEND_LOG_LIMIT),
        )

    async def get_network(self) -> List[NetworkEntry]:
        self._require_page("get_network")
        return self.network.snapshot(NETWORK_LIMIT)

    async def get_screenshot(self) -> str:
        page = self._require_page("get_screenshot")
        return base64.b64encode(await page.screenshot(full_page=False)).decode("ascii")

    def record_backend_log(self, level: str, message: str) -> None:
        self.backend_logs.record(level, message)

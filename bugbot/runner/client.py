"""
HTTP client of the runner.

`HttpBrowserSession` implements `BrowserSession` by calling the endpoints of a
runner started with `bugbot serve`, so an orchestrator can drive a browser that
lives in another process or on another machine. Paths returned by the runner
(`stop` video path) refer to the runner's file system.

Error responses (`{"error": "<message>"}`) are mapped back to the typed
exceptions the in-process session raises:

| Response | Exception |
|---|---|
| 400 "Browser not initialized..." | `SessionNotInitializedError` |
| any error of `/action/click`, `/action/input` | `ActionExecutionError` |
| any other error, unreachable runner | `BrowserSessionError` |

## Usage Examples

```python
from bugbot.runner.client import HttpBrowserSession

session = HttpBrowserSession("http://127.0.0.1:3001")
await session.init(headless=True)
await session.navigate("http://localhost:3000")
elements = await session.get_dom()
await session.close()
```
"""

from typing import Any, Dict, List, Optional

import httpx

from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import ActionExecutionError, BrowserSessionError, SessionNotInitializedError
from bugbot.schemas.models import BrowserState, NetworkEntry, PageElement
from bugbot.utils.logging_config import logger

NOT_INITIALIZED_MESSAGE = "Browser not initialized"

ACTION_OPERATIONS = {"click", "input"}


class HttpBrowserSession:
    """`BrowserSession` backed by a remote runner.

    Attributes:
        base_url (str): Base URL of the runner
        client (httpx.AsyncClient): Client used for every request
    """

    def __init__(
        self,
        base_url: str,
        settings: Optional[BugbotSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or BugbotSettings()
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.settings.runner_request_timeout_seconds),
        )
        self._closed = False

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        selector: Optional[str] = None,
    ) -> Any:
        try:
            response = await self.client.request(method, path, json=body)
        except httpx.HTTPError as e:
            raise BrowserSessionError(
                f"Runner at {self.base_url} unreachable during {operation}: {e}",
                operation=operation,
                original_error=e,
            )

        if response.is_success:
            return response.json()

        message = _error_message(response)
        if response.status_code == 400 and message.startswith(NOT_INITIALIZED_MESSAGE):
            raise SessionNotInitializedError(operation=operation)
        if operation in ACTION_OPERATIONS:
            raise ActionExecutionError(message, action_type=operation, selector=selector)
        raise BrowserSessionError(
            message, operation=operation, details={"status_code": response.status_code}
        )

    #! Lifecycle

    async def init(self, headless: bool = False) -> None:
        await self._request("init", "POST", "/init", {"headless": headless})
        logger.bugbot_log(f"🌐 Remote browser session started at {self.base_url}")

    async def stop(self, tracing_path: str) -> Optional[str]:
        data = await self._request("stop", "POST", "/stop", {"tracingPath": tracing_path})
        return data.get("videoPath")

    async def close(self) -> None:
        """Close the remote session and the HTTP client. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._request("close", "POST", "/close")
        finally:
            if self._owns_client:
                await self.client.aclose()

    #! Interaction

    async def navigate(self, url: str) -> None:
        await self._request("navigate", "POST", "/navigate", {"url": url})

    async def click(self, selector: str) -> None:
        await self._request(
            "click", "POST", "/action/click", {"selector": selector}, selector=selector
        )

    async def input(self, selector: str, text: str) -> None:
        await self._request(
            "input",
            "POST",
            "/action/input",
            {"selector": selector, "text": text},
            selector=selector,
        )

    #! Observation

    async def get_dom(self) -> List[PageElement]:
        data = await self._request("get_dom", "GET", "/dom")
        return [PageElement.model_validate(item) for item in data]

    async def get_state(self) -> BrowserState:
        return BrowserState.model_validate(await self._request("get_state", "GET", "/state"))

    async def get_network(self) -> List[NetworkEntry]:
        data = await self._request("get_network", "GET", "/network")
        return [NetworkEntry.model_validate(item) for item in data]

    async def get_screenshot(self) -> str:
        data = await self._request("get_screenshot", "GET", "/screenshot")
        return data["screenshot"]

    async def record_backend_log(self, level: str, message: str) -> None:
        await self._request(
            "record_backend_log", "POST", "/backend-logs", {"level": level, "message": message}
        )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"Runner answered {response.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Runner answered {response.status_code}"

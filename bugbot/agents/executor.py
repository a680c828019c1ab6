"""
Action execution against a browser session.

`ActionExecutor` turns a decided action into browser operations and returns a
short textual outcome. Every failure surfaces as `ActionExecutionError` carrying
the selector exactly as the decision policy produced it; whether the run goes on
is the orchestrator's call.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from bugbot.browser.session import BrowserSession
from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import ActionExecutionError
from bugbot.schemas.models import (
    BaseAction,
    ClickAction,
    InputAction,
    NavigateAction,
    QueryDatabaseAction,
    WaitAction,
)
from bugbot.utils.logging_config import logger

Sleep = Callable[[float], Awaitable[None]]


class ActionExecutor:
    """Executes actions against one browser session.

    Attributes:
        session (BrowserSession): Session the actions are performed on
        settings (BugbotSettings): Settle and wait timings

    Example:
        ```python
        executor = ActionExecutor(session, settings)
        outcome = await executor.execute(ClickAction(selector='text="Add to Cart"'))
        # 'Clicked text="Add to Cart"'
        ```
    """

    def __init__(
        self,
        session: BrowserSession,
        settings: Optional[BugbotSettings] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.session = session
        self.settings = settings or BugbotSettings()
        self._sleep = sleep

    async def execute(self, action: BaseAction) -> str:
        """Perform `action` and describe the outcome.

        Args:
            action (BaseAction): Any action variant

        Returns:
            str: Textual outcome of the action

        Raises:
            ActionExecutionError: If the action cannot be performed
        """
        logger.bugbot_log(f"⚡ Executing {action.summary()}")
        try:
            return await self._dispatch(action)
        except ActionExecutionError:
            raise
        except Exception as e:
            action_type = getattr(action, "type", type(action).__name__)
            raise ActionExecutionError(
                f"Failed to execute {action_type}: {e}",
                action_type=action_type,
                selector=getattr(action, "selector", None),
                original_error=e,
            )

    async def _dispatch(self, action: BaseAction) -> str:
        match action:
            case ClickAction():
                await self.session.click(action.selector)
                await self._sleep(self.settings.click_settle_seconds)
                return f"Clicked {action.selector}"
            case InputAction():
                await self.session.input(action.selector, action.text)
                await self._sleep(self.settings.input_settle_seconds)
                return f'Typed "{action.text}" into {action.selector}'
            case WaitAction():
                seconds = self.settings.wait_action_seconds
                await self._sleep(seconds)
                return f"Waited {seconds}s"
            case NavigateAction():
                await self.session.navigate(action.url)
                return f"Navigated to {action.url}"
            case QueryDatabaseAction():
                raise ActionExecutionError(
                    "Database queries are not available in this session",
                    action_type=action.type,
                    selector=action.selector,
                )
            case _:
                raise ActionExecutionError(
                    f"Unsupported action: {type(action).__name__}",
                    action_type=type(action).__name__,
                )

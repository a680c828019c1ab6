"""
Logging configuration utilities for BugBot.

This module provides the logging setup shared by every BugBot module: a custom
logging level for run-progress messages, a logger class exposing it, and
module-specific handler configuration so that the noisy third-party libraries
driving the browser and the language model stay quiet.

## Key Components

1. **BugbotLogger** - Custom logger class with the `bugbot_log` method
2. **configure_logging()** - Applies the configured level to the `bugbot` logger
3. **Custom Logging Level** - BUGBOT_LOGGING_LEVEL (35) for run-progress messages

## Usage Examples

```python
from bugbot.utils.logging_config import logger

logger.bugbot_log("🚀 Starting reproduction run")
```
"""

import logging
import os
from typing import Any, Optional, Union

os.environ.setdefault("LANGCHAIN_TRACING_V2", "false")
os.environ.setdefault("ANONYMIZED_TELEMETRY", "false")

# Custom BugBot logging level
BUGBOT_LOGGING_LEVEL: int = 35

LOGGING_ENABLED = os.getenv("BUGBOT_LOGGING_ENABLED", "true").lower() == "true"

DEFAULT_LEVEL: int = logging.WARNING
DISABLED_LEVEL: int = 999

FORMAT: str = "%(asctime)s - %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

logging.addLevelName(BUGBOT_LOGGING_LEVEL, "BUGBOT")

# Modules whose output would drown the run log
QUIET_MODULES = [
    "playwright",
    "langchain",
    "openai",
    "anthropic",
    "httpx",
    "httpcore",
    "urllib3",
]


class BugbotLogger(logging.Logger):
    """Custom logger class for BugBot with an additional run-progress method.

    Example:
        ```python
        from bugbot.utils.logging_config import logger

        logger.bugbot_log("🖱️ Clicking element: %s", selector)
        ```
    """

    def bugbot_log(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a message with the custom BugBot logging level.

        Args:
            msg (str): The message to log
            *args (Any): Additional arguments for string formatting
            **kwargs (Any): Additional keyword arguments for logging
        """
        if self.isEnabledFor(BUGBOT_LOGGING_LEVEL):
            self._log(BUGBOT_LOGGING_LEVEL, msg, args, **kwargs)


logging.setLoggerClass(BugbotLogger)


def configure_logging(
    level: Optional[Union[int, str]] = None, enabled: Optional[bool] = None
) -> None:
    """Configure the `bugbot` logger.

    1. Sets the `bugbot` logger to `level` (WARNING by default, so recoverable
       failures and run-progress messages are both shown) with a single stream handler
    2. Disables propagation so the root logger configuration of a host
       application does not duplicate the output
    3. Raises the level of the third-party modules in `QUIET_MODULES`

    The function is called with the environment defaults when the module is
    imported, and again by the CLI once the settings (`log_level`,
    `logging_enabled`) are loaded.

    Args:
        level (Optional[Union[int, str]]): Level name or number of the `bugbot` logger
        enabled (Optional[bool]): Whether BugBot logs at all; defaults to BUGBOT_LOGGING_ENABLED
    """
    if enabled is None:
        enabled = LOGGING_ENABLED
    if level is None:
        level = DEFAULT_LEVEL

    bugbot_logger = logging.getLogger("bugbot")
    bugbot_logger.setLevel(level if enabled else DISABLED_LEVEL)
    bugbot_logger.propagate = False

    for handler in bugbot_logger.handlers[:]:
        bugbot_logger.removeHandler(handler)

    if enabled:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FORMAT, datefmt=DATE_FORMAT))
        bugbot_logger.addHandler(handler)

    for module in QUIET_MODULES:
        logging.getLogger(module).setLevel(logging.WARNING)


configure_logging()

logger: BugbotLogger = logging.getLogger("bugbot")  # type: ignore

"""
Exception hierarchy for BugBot.

## Exception Hierarchy

```
BugbotError (base)
├── ConfigurationError
├── BrowserSessionError            - fatal, session level
│   └── SessionNotInitializedError
├── ActionExecutionError           - recoverable, step level
├── PolicyError                    - recoverable, step level
│   ├── MalformedPolicyResponseError
│   └── PolicyValidationError
└── RunAbortedError                - fatal error surfaced after finalization
```

Step-level errors never leave the step that raised them: the orchestrator logs
them and moves on. Session-level errors abort the run, but only after the
orchestrator finalized a `RunReport`, which `RunAbortedError` carries.

## Usage Examples

```python
from bugbot.exceptions import ActionExecutionError, RunAbortedError

try:
    report = await orchestrator.run()
except RunAbortedError as e:
    print(f"Run aborted: {e.message}")
    report = e.report
```
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from bugbot.schemas.report import RunReport


class BugbotError(Exception):
    """Base exception for all BugBot operations.

    Attributes:
        message (str): Human-readable error message
        details (Dict[str, Any]): Additional error details for debugging
        original_error (Optional[Exception]): Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(BugbotError):
    """Raised when configuration is invalid or incomplete.

    Attributes:
        config_field (Optional[str]): Name of the configuration field that is invalid
    """

    def __init__(
        self,
        message: str,
        config_field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, details, original_error)
        self.config_field = config_field


class BrowserSessionError(BugbotError):
    """Raised when the browser session itself fails.

    Failures of this kind (browser launch, context creation, the initial
    navigation) leave nothing to explore, so they abort the run.

    Attributes:
        operation (Optional[str]): Session operation that failed (e.g. "init", "navigate")
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, details, original_error)
        self.operation = operation


class SessionNotInitializedError(BrowserSessionError):
    """Raised when a session operation is attempted before `init()`."""

    def __init__(self, operation: Optional[str] = None) -> None:
        super().__init__("Browser not initialized", operation=operation)


class ActionExecutionError(BugbotError):
    """Raised when an action cannot be performed against the live page.

    The selector is always the one the decision policy produced, before any
    cleanup, so that a failure can be traced back to the decision that caused it.

    Attributes:
        action_type (str): Type of the action that failed
        selector (Optional[str]): Original selector as produced by the policy
        resolved_selector (Optional[str]): Selector after ambiguity resolution
    """

    def __init__(
        self,
        message: str,
        action_type: str,
        selector: Optional[str] = None,
        resolved_selector: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, details, original_error)
        self.action_type = action_type
        self.selector = selector
        self.resolved_selector = resolved_selector


class PolicyError(BugbotError):
    """Base class for decision policy adapter failures."""


class MalformedPolicyResponseError(PolicyError):
    """Raised when a policy reply cannot be parsed as JSON.

    Attributes:
        raw_response (str): The unparseable reply
    """

    def __init__(
        self,
        message: str,
        raw_response: str = "",
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.raw_response = raw_response


class PolicyValidationError(PolicyError):
    """Raised when a parsed policy reply violates the response contract."""


class RunAbortedError(BugbotError):
    """Raised by the orchestrator after a fatal error.

    Attributes:
        report (RunReport): The finalized report of the aborted run
    """

    def __init__(
        self,
        message: str,
        report: "RunReport",
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.report = report

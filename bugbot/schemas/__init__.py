"""
Pydantic models shared across BugBot.

## Key Components

1. **Observation models** - `PageElement`, `SelectorHint`, `BrowserState`, `NetworkEntry`, `Observation`
2. **Actions** - the `Action` tagged union over click/input/wait/navigate/query_database
3. **Decisions** - `PolicyResponse`, `PolicyStatus`, `History`
4. **Trace and report** - `ExecutionStep`, `ExecutionTrace`, `RunReport`, `RunStatus`
"""

from .models import (
    ACTION_TYPES,
    Action,
    BaseAction,
    BrowserState,
    ClickAction,
    ExecutionStep,
    History,
    InputAction,
    NavigateAction,
    NetworkEntry,
    Observation,
    PageElement,
    PolicyResponse,
    PolicyStatus,
    QueryDatabaseAction,
    RunStatus,
    SelectorHint,
    WaitAction,
)
from .report import ArtifactPaths, ExecutionTrace, RunReport

__all__ = [
    "ACTION_TYPES",
    "Action",
    "ArtifactPaths",
    "BaseAction",
    "BrowserState",
    "ClickAction",
    "ExecutionStep",
    "ExecutionTrace",
    "History",
    "InputAction",
    "NavigateAction",
    "NetworkEntry",
    "Observation",
    "PageElement",
    "PolicyResponse",
    "PolicyStatus",
    "QueryDatabaseAction",
    "RunReport",
    "RunStatus",
    "SelectorHint",
    "WaitAction",
]

"""
Agents driving a reproduction run.

## Key Components

1. **ReproductionPolicy** - LLM-backed decision policy adapter
2. **ActionExecutor** - Executes decided actions against a browser session
"""

from .executor import ActionExecutor
from .policy import (
    DecisionPolicy,
    ReproductionPolicy,
    build_fallback_response,
    parse_policy_reply,
)

__all__ = [
    "ActionExecutor",
    "DecisionPolicy",
    "ReproductionPolicy",
    "build_fallback_response",
    "parse_policy_reply",
]

"""
Browser-side components of BugBot.

## Key Components

1. **BrowserSession / PlaywrightBrowserSession** - The browser-control backend
2. **extract_page_elements / simplify_elements** - Observation extraction
3. **resolve_selector** - Selector ambiguity resolution
4. **ConsoleRecorder / NetworkRecorder / BackendLogRecorder** - Session-owned event recorders
"""

from .dom_extractor import (
    build_selector_hint,
    clickable_elements,
    extract_page_elements,
    simplify_elements,
)
from .recorders import BackendLogRecorder, ConsoleRecorder, NetworkRecorder
from .selectors import ResolvedSelector, resolve_selector
from .session import BrowserSession, PlaywrightBrowserSession

__all__ = [
    "BackendLogRecorder",
    "BrowserSession",
    "ConsoleRecorder",
    "NetworkRecorder",
    "PlaywrightBrowserSession",
    "ResolvedSelector",
    "build_selector_hint",
    "clickable_elements",
    "extract_page_elements",
    "resolve_selector",
    "simplify_elements",
]

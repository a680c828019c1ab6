"""
Utility functions and classes for BugBot.

## Key Components

1. **BugbotLogger** - Custom logging with a BugBot-specific level
2. **configure_logging()** - Logging configuration utility
"""

from .logging_config import BugbotLogger, configure_logging, logger

__all__ = [
    "logger",
    "configure_logging",
    "BugbotLogger",
]

"""
HTTP runner serving one browser session to out-of-process clients, and the
client session that drives it.
"""

from .client import HttpBrowserSession
from .server import RunnerState, create_app

__all__ = ["HttpBrowserSession", "RunnerState", "create_app"]

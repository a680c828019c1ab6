"""
BugBot CLI commands package.

This package provides the command-line commands of BugBot: reproducing a bug
against a live application, serving the browser runner, and inspecting saved
run reports.
"""

from . import report, run, serve

__all__ = ["report", "run", "serve"]

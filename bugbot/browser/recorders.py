"""
Session-owned recorders for console, network and backend log events.

The browser pushes events into these recorders through listeners attached by the
session; everything else reads them through snapshots. Each session owns its own
recorders, so concurrent runs against independent sessions never share state.
"""

import time
from typing import Callable, Dict, List, Optional

from bugbot.schemas.models import NetworkEntry


def _tail(items: List, limit: Optional[int]) -> List:
    if limit is None:
        return list(items)
    if limit <= 0:
        return []
    return items[-limit:]


class ConsoleRecorder:
    """Collects the text of console messages of type `error`."""

    def __init__(self) -> None:
        self._errors: List[str] = []

    def record(self, message_type: str, text: str) -> None:
        if message_type == "error":
            self._errors.append(text)

    def snapshot(self, limit: Optional[int] = None) -> List[str]:
        return _tail(self._errors, limit)

    def __len__(self) -> int:
        return len(self._errors)


class NetworkRecorder:
    """Tracks requests and attaches responses to them.

    A response completes the first entry with the same URL that has no status
    yet. Entries are never removed; snapshots return copies so that readers
    never observe a later mutation.
    """

    def __init__(self, clock_ms: Optional[Callable[[], int]] = None) -> None:
        self._entries: List[NetworkEntry] = []
        self._clock_ms = clock_ms or (lambda: int(time.time() * 1000))

    def record_request(
        self, url: str, method: str, headers: Optional[Dict[str, str]] = None
    ) -> NetworkEntry:
        entry = NetworkEntry(
            url=url,
            method=method,
            timestamp_ms=self._clock_ms(),
            request_headers=dict(headers) if headers is not None else None,
        )
        self._entries.append(entry)
        return entry

    def record_response(
        self, url: str, status: int, headers: Optional[Dict[str, str]] = None
    ) -> Optional[NetworkEntry]:
        """Complete the first pending entry for `url`.

        Returns:
            Optional[NetworkEntry]: The completed entry, None when no request matched
        """
        for entry in self._entries:
            if entry.url == url and entry.is_pending:
                entry.status = status
                entry.response_headers = dict(headers) if headers is not None else None
                return entry
        return None

    def snapshot(self, limit: Optional[int] = None) -> List[NetworkEntry]:
        return [entry.model_copy(deep=True) for entry in _tail(self._entries, limit)]

    def __len__(self) -> int:
        return len(self._entries)


class BackendLogRecorder:
    """Out-of-band log lines of the application under test."""

    def __init__(self) -> None:
        self._lines: List[str] = []

    def record(self, level: str, message: str) -> None:
        self._lines.append(f"[{level}] {message}")

    def snapshot(self, limit: Optional[int] = None) -> List[str]:
        return _tail(self._lines, limit)

    def __len__(self) -> int:
        return len(self._lines)

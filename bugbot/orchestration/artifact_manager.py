"""
Per-run artifact storage.

Every run writes into its own directory:

```
<runs_dir>/<run_id>/
├── videos/          # copy of the page recording
├── trace.zip        # Playwright trace
├── network.har      # HAR 1.2 dump of the network entries
├── console.log      # console errors, one per line
└── report.json      # the RunReport
```
"""

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from bugbot.schemas.models import NetworkEntry
from bugbot.schemas.report import ArtifactPaths, RunReport
from bugbot.utils.logging_config import logger

HAR_VERSION = "1.2"
HAR_CREATOR = {"name": "BugBot", "version": "1.0.0"}
HTTP_VERSION = "HTTP/1.1"


def _header_list(headers: Optional[Dict[str, str]]) -> List[Dict[str, str]]:
    return [{"name": name, "value": str(value)} for name, value in (headers or {}).items()]


def _status_text(status: Optional[int]) -> str:
    if not status:
        return "Pending"
    return "OK" if status < 400 else "Error"


def network_entries_to_har(entries: Iterable[NetworkEntry]) -> Dict[str, Any]:
    """Build a HAR 1.2 document; unanswered requests get status 0."""
    return {
        "log": {
            "version": HAR_VERSION,
            "creator": HAR_CREATOR,
            "entries": [
                {
                    "startedDateTime": datetime.fromtimestamp(
                        entry.timestamp_ms / 1000, tz=timezone.utc
                    ).isoformat(timespec="milliseconds"),
                    "request": {
                        "method": entry.method,
                        "url": entry.url,
                        "headers": _header_list(entry.request_headers),
                        "httpVersion": HTTP_VERSION,
                    },
                    "response": {
                        "status": entry.status or 0,
                        "statusText": _status_text(entry.status),
                        "headers": _header_list(entry.response_headers),
                        "httpVersion": HTTP_VERSION,
                    },
                    "timings": {"send": 0, "wait": 0, "receive": 0},
                }
                for entry in entries
            ],
        }
    }


class ArtifactManager:
    """Creates the run directory and writes the artifacts of one run.

    Example:
        ```python
        manager = ArtifactManager(run_id, runs_dir=Path("./runs"))
        paths = manager.initialize()
        manager.save_network_har(entries)
        manager.save_console_logs(errors)
        ```
    """

    def __init__(self, run_id: str, runs_dir: Path = Path("./runs")) -> None:
        self.run_id = run_id
        self.run_dir = Path(runs_dir) / run_id
        self.videos_dir = self.run_dir / "videos"
        self.tracing_path = self.run_dir / "trace.zip"
        self.har_path = self.run_dir / "network.har"
        self.logs_path = self.run_dir / "console.log"
        self.report_path = self.run_dir / "report.json"

    def initialize(self) -> ArtifactPaths:
        self.videos_dir.mkdir(parents=True, exist_ok=True)
        return self.paths()

    def paths(self, video_path: Optional[str] = None) -> ArtifactPaths:
        return ArtifactPaths(
            run_dir=str(self.run_dir),
            tracing_path=str(self.tracing_path),
            video_path=video_path,
            report_path=str(self.report_path),
            har_path=str(self.har_path),
            logs_path=str(self.logs_path),
        )

    def save_network_har(self, entries: Iterable[NetworkEntry]) -> Path:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        with open(self.har_path, "w", encoding="utf-8") as f:
            json.dump(network_entries_to_har(entries), f, indent=2)
        return self.har_path

    def save_console_logs(self, lines: Iterable[str]) -> Path:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.logs_path.write_text("\n".join(lines), encoding="utf-8")
        return self.logs_path

    def copy_video(self, source_path: Optional[str]) -> Optional[str]:
        """Copy the page recording into the run directory.

        Returns:
            Optional[str]: Path of the copy, None if there is no recording
        """
        if not source_path or not Path(source_path).exists():
            logger.debug(f"No video to copy at {source_path}")
            return None

        self.videos_dir.mkdir(parents=True, exist_ok=True)
        destination = self.videos_dir / Path(source_path).name
        shutil.copy2(source_path, destination)
        return str(destination)

    def save_report(self, report: RunReport) -> Path:
        return report.save(self.report_path)

"""
Execution trace and run report models.

The `RunReport` is the persisted artifact of a run. Downstream tooling parses
`report.json` back into this exact shape, so its wire names and field order are
part of the public contract.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import Field

from bugbot.schemas.models import (
    BugbotModel,
    ExecutionStep,
    FrozenBugbotModel,
    NetworkEntry,
    RunStatus,
)


class ArtifactPaths(BugbotModel):
    """Locations of the files written for one run."""

    run_dir: Optional[str] = None
    tracing_path: Optional[str] = None
    video_path: Optional[str] = None
    report_path: Optional[str] = None
    har_path: Optional[str] = None
    logs_path: Optional[str] = None


class ExecutionTrace:
    """Append-only, ordered collection of execution steps.

    Steps come back exactly as they were appended, in order. Step numbers must
    be strictly increasing.

    Example:
        ```python
        trace = ExecutionTrace()
        trace.append(step_1)
        trace.append(step_2)
        assert trace.steps == (step_1, step_2)
        ```
    """

    def __init__(self) -> None:
        self._steps: List[ExecutionStep] = []

    def append(self, step: ExecutionStep) -> None:
        if self._steps and step.step_number <= self._steps[-1].step_number:
            raise ValueError(
                f"Step {step.step_number} appended after step {self._steps[-1].step_number}"
            )
        self._steps.append(step)

    @property
    def steps(self) -> Tuple[ExecutionStep, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)


class RunReport(FrozenBugbotModel):
    """Finalized record of one reproduction run."""

    bug_description: str
    run_id: str
    target_url: str
    start_time: datetime
    end_time: datetime
    status: RunStatus
    steps: List[ExecutionStep] = Field(default_factory=list)
    console_errors: List[str] = Field(default_factory=list)
    network_entries: List[NetworkEntry] = Field(default_factory=list)
    artifacts: ArtifactPaths = Field(default_factory=ArtifactPaths)

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def steps_taken(self) -> int:
        return len(self.steps)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, data: str) -> "RunReport":
        return cls.model_validate_json(data)

    def save(self, path: Path) -> Path:
        """Write the report as JSON, creating parent directories as needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "RunReport":
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

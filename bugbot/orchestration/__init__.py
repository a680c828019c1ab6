"""
Run orchestration for BugBot.

## Key Components

1. **RunOrchestrator** - State machine driving one reproduction run
2. **RunConfig** - Parameters of a run
3. **RunPhase** - Phases of the state machine
4. **ArtifactManager** - Per-run artifact directory (trace, video, HAR, console log, report)
"""

from .artifact_manager import ArtifactManager, network_entries_to_har
from .orchestrator import RunConfig, RunOrchestrator, RunPhase

__all__ = [
    "ArtifactManager",
    "RunConfig",
    "RunOrchestrator",
    "RunPhase",
    "network_entries_to_har",
]

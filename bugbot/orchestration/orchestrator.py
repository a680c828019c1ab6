"""
Run orchestrator: the state machine of one reproduction run.

```
INITIALIZING ──> EXPLORING ──> FINALIZING ──> FINISHED
      │                            ▲
      └────── fatal error ─────────┘
```

`INITIALIZING` starts the browser session and opens the target URL; a failure
there is fatal. `EXPLORING` is the step loop: observe, decide, execute. It ends
when the policy declares a terminal status, when the step or time budget is
exhausted, or on an unexpected error. `FINALIZING` always runs exactly once and
always produces a `RunReport`.

Terminal status rules:

| Loop exit | RunStatus |
|---|---|
| policy status `reproduced` | `REPRODUCED` |
| policy status `failed` | `FAILED` |
| step or time budget exhausted | `TIMED_OUT` |
| unexpected exception in the loop | `FAILED` (report returned) |
| fatal initialization error | `FAILED` (report attached to `RunAbortedError`) |

## Usage Examples

```python
from bugbot.orchestration import RunConfig, RunOrchestrator

config = RunConfig(target_url="http://localhost:3000", bug_description="Cart count stays 0")
orchestrator = RunOrchestrator(config, session, policy)
report = await orchestrator.run()
print(report.status, report.steps_taken)
```
"""

import asyncio
import time
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar

from cuid2 import Cuid as CUID
from pydantic import BaseModel, Field, field_validator

from bugbot.agents.executor import ActionExecutor, Sleep
from bugbot.agents.policy import DecisionPolicy
from bugbot.browser.session import BrowserSession
from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import ActionExecutionError, RunAbortedError
from bugbot.orchestration.artifact_manager import ArtifactManager
from bugbot.schemas.models import (
    BrowserState,
    ExecutionStep,
    History,
    NetworkEntry,
    Observation,
    PolicyResponse,
    PolicyStatus,
    RunStatus,
)
from bugbot.schemas.report import ExecutionTrace, RunReport
from bugbot.utils.logging_config import logger

T = TypeVar("T")


class RunPhase(str, Enum):
    INITIALIZING = "initializing"
    EXPLORING = "exploring"
    FINALIZING = "finalizing"
    FINISHED = "finished"


class RunConfig(BaseModel):
    """Parameters of one reproduction run."""

    target_url: str
    bug_description: str
    max_steps: int = Field(default=20, ge=1)
    timeout_seconds: float = Field(default=300.0, gt=0)
    headless: bool = False
    step_delay_seconds: float = Field(default=1.0, ge=0)
    run_id: str = Field(default_factory=lambda: CUID().generate())

    @field_validator("target_url", "bug_description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @classmethod
    def from_settings(
        cls, settings: BugbotSettings, target_url: str, bug_description: str, **overrides: Any
    ) -> "RunConfig":
        """Create a config from the run defaults of `settings`; `None` overrides are ignored."""
        values = {
            "max_steps": settings.max_steps,
            "timeout_seconds": settings.timeout_seconds,
            "headless": settings.headless,
            "step_delay_seconds": settings.step_delay_seconds,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(target_url=target_url, bug_description=bug_description, **values)


class RunOrchestrator:
    """Drives one reproduction run against one browser session.

    Attributes:
        config (RunConfig): Run parameters
        session (BrowserSession): Session owned by this run
        policy (DecisionPolicy): Chooses the action of each step
        executor (ActionExecutor): Performs the chosen actions
        artifact_manager (ArtifactManager): Writes the run artifacts
        history (History): Everything observed and attempted so far
        trace (ExecutionTrace): Recorded steps
        phase (RunPhase): Current phase of the state machine
        status (Optional[RunStatus]): Terminal status, set once
    """

    def __init__(
        self,
        config: RunConfig,
        session: BrowserSession,
        policy: DecisionPolicy,
        executor: Optional[ActionExecutor] = None,
        artifact_manager: Optional[ArtifactManager] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        settings: Optional[BugbotSettings] = None,
    ) -> None:
        self.config = config
        self.session = session
        self.policy = policy
        self.settings = settings or BugbotSettings()
        self.executor = executor or ActionExecutor(session, self.settings, sleep=sleep)
        self.artifact_manager = artifact_manager or ArtifactManager(
            config.run_id, self.settings.runs_dir
        )

        self.history = History()
        self.trace = ExecutionTrace()
        self.phase = RunPhase.INITIALIZING
        self.status: Optional[RunStatus] = None
        self.step_number = 0
        self.report: Optional[RunReport] = None

        self._clock = clock
        self._sleep = sleep
        self._started_at: Optional[datetime] = None
        self._start_clock = 0.0

    #! Public

    async def run(self) -> RunReport:
        """Execute the run from initialization to the final report.

        Returns:
            RunReport: The finalized report

        Raises:
            RunAbortedError: If initialization failed; the exception carries the report
        """
        if self._started_at is not None:
            raise RuntimeError("A RunOrchestrator can only run once")

        self._started_at = datetime.now(UTC)
        self._start_clock = self._clock()
        logger.bugbot_log(f"🚀 Starting run {self.config.run_id} against {self.config.target_url}")
        logger.bugbot_log(f"🐛 Bug: {self.config.bug_description}")

        fatal_error: Optional[Exception] = None
        try:
            try:
                await self._initialize()
            except Exception as e:
                fatal_error = e
                logger.error(f"❌ Run initialization failed: {e}")
                self._set_status(RunStatus.FAILED)
            else:
                self.phase = RunPhase.EXPLORING
                try:
                    await self._explore()
                except Exception as e:
                    logger.error(f"❌ Run failed on step {self.step_number}: {e}")
                    self._set_status(RunStatus.FAILED)
        finally:
            report = await self._finalize()

        if fatal_error is not None:
            raise RunAbortedError(
                f"Run aborted during initialization: {fatal_error}",
                report=report,
                original_error=fatal_error,
            )
        return report

    @property
    def elapsed_seconds(self) -> float:
        return self._clock() - self._start_clock

    #! Phases

    async def _initialize(self) -> None:
        self.artifact_manager.initialize()
        await self.session.init(headless=self.config.headless)
        await self.session.navigate(self.config.target_url)

    async def _explore(self) -> None:
        while True:
            if self.step_number >= self.config.max_steps:
                logger.bugbot_log(f"⏱️ Step budget of {self.config.max_steps} exhausted")
                self._set_status(RunStatus.TIMED_OUT)
                return
            if self.elapsed_seconds >= self.config.timeout_seconds:
                logger.bugbot_log(f"⏱️ Timeout of {self.config.timeout_seconds}s reached")
                self._set_status(RunStatus.TIMED_OUT)
                return

            self.step_number += 1
            logger.bugbot_log(f"📍 Step {self.step_number}/{self.config.max_steps}")

            observation = await self._observe(self.step_number)
            self.history.add_observation(observation)

            decision = await self.policy.decide(
                self.config.bug_description, observation, self.history
            )

            if decision.status.is_terminal:
                self.trace.append(self._record(observation, decision))
                if decision.status is PolicyStatus.REPRODUCED:
                    logger.bugbot_log(f"✅ Bug reproduced: {decision.reason}")
                    self._set_status(RunStatus.REPRODUCED)
                else:
                    logger.bugbot_log(f"🚫 Policy gave up: {decision.reason}")
                    self._set_status(RunStatus.FAILED)
                return

            outcome: Optional[str] = None
            error: Optional[str] = None
            try:
                outcome = await self.executor.execute(decision.action)
            except ActionExecutionError as e:
                error = str(e)
                logger.warning(f"⚠️ Action failed on step {self.step_number}: {e}")

            self.history.add_action(decision.action)
            self.trace.append(self._record(observation, decision, outcome, error))

            if self.step_number < self.config.max_steps:
                await self._sleep(self.config.step_delay_seconds)

    async def _observe(self, step_number: int) -> Observation:
        dom, state, screenshot = await asyncio.gather(
            self._guarded("read DOM", self.session.get_dom(), []),
            self._guarded("read browser state", self.session.get_state(), BrowserState()),
            self._guarded("take screenshot", self.session.get_screenshot(), None),
        )
        return Observation(
            dom=dom,
            state=state,
            screenshot=screenshot,
            step_number=step_number,
        )

    async def _finalize(self) -> RunReport:
        if self.report is not None:
            return self.report
        self.phase = RunPhase.FINALIZING
        if self.status is None:
            self._set_status(RunStatus.FAILED)

        final_state, network_entries = await self._final_reads()
        console_errors = final_state.console_errors if final_state is not None else []

        manager = self.artifact_manager
        video_source = await self._guarded(
            "stop tracing", self.session.stop(str(manager.tracing_path)), None
        )
        await self._guarded("close browser session", self.session.close(), None)

        video_path = self._guarded_sync("copy video", lambda: manager.copy_video(video_source))
        self._guarded_sync("save network HAR", lambda: manager.save_network_har(network_entries))
        self._guarded_sync("save console log", lambda: manager.save_console_logs(console_errors))

        report = RunReport(
            bug_description=self.config.bug_description,
            run_id=self.config.run_id,
            target_url=self.config.target_url,
            start_time=self._started_at or datetime.now(UTC),
            end_time=datetime.now(UTC),
            status=self.status or RunStatus.FAILED,
            steps=list(self.trace.steps),
            console_errors=console_errors,
            network_entries=network_entries,
            artifacts=manager.paths(video_path=video_path),
        )
        self._guarded_sync("save report", lambda: manager.save_report(report))

        self.report = report
        self.phase = RunPhase.FINISHED
        logger.bugbot_log(
            f"🏁 Run {self.config.run_id} finished: {report.status.value} "
            f"after {report.steps_taken} steps ({report.duration_seconds:.1f}s)"
        )
        return report

    async def _final_reads(self) -> Tuple[Optional[BrowserState], List[NetworkEntry]]:
        return await asyncio.gather(
            self._guarded("read final browser state", self.session.get_state(), None),
            self._guarded("read network entries", self.session.get_network(), []),
        )

    #! Helpers

    def _set_status(self, status: RunStatus) -> None:
        if self.status is None:
            self.status = status

    def _record(
        self,
        observation: Observation,
        decision: PolicyResponse,
        outcome: Optional[str] = None,
        error: Optional[str] = None,
    ) -> ExecutionStep:
        return ExecutionStep(
            step_number=observation.step_number,
            action=decision.action,
            observation=observation,
            thought=decision.thought,
            status=decision.status,
            reason=decision.reason,
            outcome=outcome,
            error=error,
        )

    async def _guarded(self, label: str, awaitable: Awaitable[T], default: T) -> T:
        try:
            return await awaitable
        except Exception as e:
            logger.warning(f"⚠️ Failed to {label}: {e}")
            return default

    def _guarded_sync(self, label: str, action: Callable[[], T]) -> Optional[T]:
        try:
            return action()
        except Exception as e:
            logger.warning(f"⚠️ Failed to {label}: {e}")
            return None

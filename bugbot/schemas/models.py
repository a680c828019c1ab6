"""
Data models of a reproduction run.

Every model uses camelCase names on the wire (`selectorHint`, `stepNumber`,
`consoleErrors`, ...) and snake_case names in Python. Values produced during a
run (page elements, observations, actions, policy responses, steps) are frozen
once created; the only mutable record is `NetworkEntry`, which receives its
response status after the request was recorded.
"""

import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SELECTOR_DISJUNCTION = " or "
TEXT_SELECTOR_PATTERN = re.compile(r'^text=["\'](.*)["\']$', re.DOTALL)
# `[<structural> or ]text="<label>"`; the label may itself contain " or "
TEXT_ALTERNATIVE_PATTERN = re.compile(r'^(?:(.*?) or )?text=(["\'])(.*)\2$', re.DOTALL)


class BugbotModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenBugbotModel(BugbotModel):
    model_config = ConfigDict(frozen=True)


#! Observation


class SelectorHint(FrozenBugbotModel):
    """Two-field form of a selector hint.

    The decision policy sees the rendered string, where a structural and a text
    hint are joined by `" or "` with the text hint last:

    ```python
    hint = SelectorHint(structural="button.btn.primary", text="Add to Cart")
    hint.render()  # 'button.btn.primary or text="Add to Cart"'
    SelectorHint.parse(hint.render()) == hint  # True
    ```
    """

    structural: Optional[str] = None
    text: Optional[str] = None

    def render(self) -> str:
        text_hint = f'text="{self.text}"' if self.text else None
        if self.structural and text_hint:
            return f"{self.structural}{SELECTOR_DISJUNCTION}{text_hint}"
        return text_hint or self.structural or ""

    @classmethod
    def parse(cls, selector: str) -> "SelectorHint":
        """Split a rendered hint into its structural and text parts.

        A trailing `text="..."` alternative is matched first, so a label that
        contains `" or "` stays whole. Otherwise the last `" or "` separates
        the parts.
        """
        selector = selector.strip()
        alternative = TEXT_ALTERNATIVE_PATTERN.match(selector)
        if alternative is not None:
            return cls(structural=alternative.group(1) or None, text=alternative.group(3))

        structural: Optional[str] = selector
        tail = selector
        if SELECTOR_DISJUNCTION in selector:
            structural, tail = selector.rsplit(SELECTOR_DISJUNCTION, 1)

        match = TEXT_SELECTOR_PATTERN.match(tail.strip())
        if match is None:
            return cls(structural=selector or None)
        if structural == tail:
            structural = None
        return cls(structural=structural or None, text=match.group(1))


class PageElement(FrozenBugbotModel):
    """One interactive or visible DOM node as seen by the decision policy."""

    text: str = ""
    role: str
    locator: str = Field(min_length=1, description="Index-qualified tag path of the node")
    clickable: bool = False
    selector_hint: str = Field(description="Rendered selector hint the policy refers to")
    tag_name: str

    @property
    def hint(self) -> SelectorHint:
        return SelectorHint.parse(self.selector_hint)

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.locator, self.text)


class NetworkEntry(BugbotModel):
    """A request seen by the browser, completed once its response arrives."""

    url: str
    method: str
    status: Optional[int] = None
    timestamp_ms: int
    request_headers: Optional[Dict[str, str]] = None
    response_headers: Optional[Dict[str, str]] = None

    @property
    def is_pending(self) -> bool:
        return self.status is None


class BrowserState(FrozenBugbotModel):
    """Point-in-time snapshot of the browser, captured with each observation."""

    url: str = ""
    title: str = ""
    console_errors: List[str] = Field(default_factory=list)
    network_entries: List[NetworkEntry] = Field(default_factory=list)
    backend_logs: List[str] = Field(default_factory=list)

    def recent_console_errors(self, limit: int) -> List[str]:
        if limit <= 0:
            return []
        return self.console_errors[-limit:]


class Observation(FrozenBugbotModel):
    dom: List[PageElement] = Field(default_factory=list)
    state: BrowserState = Field(default_factory=BrowserState)
    screenshot: Optional[str] = Field(default=None, description="Base64 encoded PNG")
    step_number: int = Field(ge=1)

    @property
    def clickable(self) -> List[PageElement]:
        return [element for element in self.dom if element.clickable]


#! Actions


class BaseAction(FrozenBugbotModel):
    """Fields shared by every action variant."""

    target: Optional[str] = Field(
        default=None, description="Human-readable description of the target"
    )

    def summary(self) -> str:
        """Short form used in logs and in the recent actions of the prompt."""
        raise NotImplementedError


class ClickAction(BaseAction):
    type: Literal["click"] = "click"
    selector: str

    @field_validator("selector")
    @classmethod
    def selector_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("click requires a non-empty selector")
        return v

    def summary(self) -> str:
        return f"click({self.selector})"


class InputAction(BaseAction):
    type: Literal["input"] = "input"
    selector: str
    text: str

    @field_validator("selector")
    @classmethod
    def selector_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("input requires a non-empty selector")
        return v

    def summary(self) -> str:
        return f'input({self.selector}, "{self.text}")'


class WaitAction(BaseAction):
    """Fixed pause; the delay comes from the executor settings, never from the reply."""

    type: Literal["wait"] = "wait"
    selector: Optional[str] = None

    def summary(self) -> str:
        return "wait()"


class NavigateAction(BaseAction):
    type: Literal["navigate"] = "navigate"
    url: str
    selector: Optional[str] = None

    @field_validator("url")
    @classmethod
    def url_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("navigate requires a non-empty url")
        return v.strip()

    def summary(self) -> str:
        return f"navigate({self.url})"


class QueryDatabaseAction(BaseAction):
    """Database lookup requested by the policy; executed by an external bridge."""

    type: Literal["query_database"] = "query_database"
    selector: Optional[str] = None
    db_query: Optional[Dict[str, Any]] = None

    def summary(self) -> str:
        collection = (self.db_query or {}).get("collection", "?")
        return f"query_database({collection})"


Action = Annotated[
    Union[ClickAction, InputAction, WaitAction, NavigateAction, QueryDatabaseAction],
    Field(discriminator="type"),
]

ACTION_TYPES: Tuple[str, ...] = ("click", "input", "wait", "navigate", "query_database")


#! Decisions


class PolicyStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    REPRODUCED = "reproduced"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PolicyStatus.IN_PROGRESS


class PolicyResponse(FrozenBugbotModel):
    """Decision returned by the policy for one step.

    A terminal status (`reproduced` or `failed`) must come with a non-empty
    `reason`.
    """

    thought: str = ""
    action: Action
    status: PolicyStatus = PolicyStatus.IN_PROGRESS
    reason: Optional[str] = None

    @model_validator(mode="after")
    def reason_required_for_terminal_status(self) -> "PolicyResponse":
        if self.status.is_terminal and not (self.reason and self.reason.strip()):
            raise ValueError(f"status '{self.status.value}' requires a non-empty reason")
        return self


class History:
    """Append-only record of what a run observed and attempted.

    Owned by the orchestrator; the decision policy only reads it.
    """

    def __init__(self) -> None:
        self._observations: List[Observation] = []
        self._actions: List[BaseAction] = []

    def add_observation(self, observation: Observation) -> None:
        self._observations.append(observation)

    def add_action(self, action: BaseAction) -> None:
        self._actions.append(action)

    @property
    def observations(self) -> Tuple[Observation, ...]:
        return tuple(self._observations)

    @property
    def actions(self) -> Tuple[BaseAction, ...]:
        return tuple(self._actions)

    def recent_actions(self, n: int) -> Tuple[BaseAction, ...]:
        if n <= 0:
            return ()
        return tuple(self._actions[-n:])

    def __len__(self) -> int:
        return len(self._observations)


#! Execution


class ExecutionStep(FrozenBugbotModel):
    """One recorded step of a run: what was seen, decided and attempted."""

    step_number: int = Field(ge=1)
    action: Action
    observation: Observation
    thought: str = ""
    status: PolicyStatus
    reason: Optional[str] = None
    outcome: Optional[str] = Field(default=None, description="Executor result, if executed")
    error: Optional[str] = Field(default=None, description="Action error, if the action failed")


class RunStatus(str, Enum):
    """Terminal status of a run."""

    REPRODUCED = "reproduced"
    FAILED = "failed"
    TIMED_OUT = "timeout"

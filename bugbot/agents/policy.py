"""
Decision policy adapter.

`ReproductionPolicy` asks a language model for the next action of a run. Its
reply is expected, but not guaranteed, to be JSON in the `PolicyResponse` shape:
`parse_policy_reply` accepts plain JSON or JSON inside a fenced code block and
validates the result. Whatever goes wrong (transport, parsing, validation),
`decide` answers with a fallback decision instead of raising.

## Usage Examples

```python
from bugbot.agents.policy import ReproductionPolicy

policy = ReproductionPolicy.from_settings(settings)
decision = await policy.decide(bug_description, observation, history)
if decision.status.is_terminal:
    print(decision.reason)
```
"""

import json
import re
from typing import Any, Dict, Optional, Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError

from bugbot.config.llm_creator import create_llm_from_settings
from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import MalformedPolicyResponseError, PolicyValidationError
from bugbot.prompts.prompt_factory import DECISION_POLICY_SYSTEM_PROMPT, get_decision_prompt
from bugbot.schemas.models import (
    ACTION_TYPES,
    ClickAction,
    History,
    Observation,
    PolicyResponse,
    PolicyStatus,
)
from bugbot.utils.logging_config import logger

FENCED_JSON_PATTERN = re.compile(r"```json\s*([\s\S]*?)\s*```")
FENCED_BLOCK_PATTERN = re.compile(r"```\s*([\s\S]*?)\s*```")

FALLBACK_SELECTOR = "body"


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as direct_error:
        for pattern in (FENCED_JSON_PATTERN, FENCED_BLOCK_PATTERN):
            match = pattern.search(text)
            if match is None:
                continue
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError as e:
                raise MalformedPolicyResponseError(
                    f"Fenced block of policy reply is not valid JSON: {e}",
                    raw_response=text,
                    original_error=e,
                )
        raise MalformedPolicyResponseError(
            f"Policy reply is not valid JSON: {direct_error}",
            raw_response=text,
            original_error=direct_error,
        )


def parse_policy_reply(text: str) -> PolicyResponse:
    """Parse and validate a raw policy reply.

    Args:
        text (str): Reply of the language model

    Returns:
        PolicyResponse: Validated decision, `status` defaulting to `in_progress`

    Raises:
        MalformedPolicyResponseError: If no JSON can be extracted from the reply
        PolicyValidationError: If the JSON violates the response contract
    """
    data = _load_json(text)
    if not isinstance(data, dict):
        raise PolicyValidationError("Policy reply must be a JSON object")

    action = data.get("action")
    if not isinstance(action, dict) or not action.get("type"):
        raise PolicyValidationError("Invalid response: missing action.type")
    if action["type"] not in ACTION_TYPES:
        raise PolicyValidationError(
            f"Invalid response: unknown action type '{action['type']}'",
            details={"supported": list(ACTION_TYPES)},
        )

    normalized: Dict[str, Any] = dict(data)
    if not normalized.get("status"):
        normalized["status"] = PolicyStatus.IN_PROGRESS.value
    if normalized.get("thought") is None:
        normalized["thought"] = ""

    try:
        return PolicyResponse.model_validate(normalized)
    except ValidationError as e:
        raise PolicyValidationError(
            f"Invalid response: {e.error_count()} validation errors",
            details={"errors": [err["msg"] for err in e.errors(include_url=False)]},
            original_error=e,
        )


def build_fallback_response(observation: Optional[Observation], cause: str) -> PolicyResponse:
    """Decision used when the policy could not provide a valid one.

    Clicks the first clickable element of the observation, or the page body when
    there is none.
    """
    first_clickable = next(iter(observation.clickable), None) if observation else None
    selector = (first_clickable.selector_hint if first_clickable else "") or FALLBACK_SELECTOR
    target = (first_clickable.hint.text if first_clickable else None) or "First clickable element"
    return PolicyResponse(
        thought=f"Error occurred: {cause}. Will try a simple click action.",
        action=ClickAction(selector=selector, target=target),
        status=PolicyStatus.IN_PROGRESS,
    )


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text", "")))
        return "".join(parts)
    return str(content)


class DecisionPolicy(Protocol):
    """Anything that chooses the next action of a run."""

    async def decide(
        self, bug_description: str, observation: Observation, history: History
    ) -> PolicyResponse: ...


class ReproductionPolicy:
    """LLM-backed decision policy of a reproduction run.

    Attributes:
        llm (BaseChatModel): Chat model producing the decisions
        settings (BugbotSettings): Prompt bounds
        system_prompt (str): System message sent with every request
    """

    def __init__(self, llm: BaseChatModel, settings: Optional[BugbotSettings] = None) -> None:
        self.llm = llm
        self.settings = settings or BugbotSettings()
        self.system_prompt = DECISION_POLICY_SYSTEM_PROMPT

    @classmethod
    def from_settings(cls, settings: BugbotSettings) -> "ReproductionPolicy":
        return cls(create_llm_from_settings(settings), settings)

    def build_prompt(self, bug_description: str, observation: Observation, history: History) -> str:
        return get_decision_prompt(
            bug_description,
            observation,
            history,
            max_elements=self.settings.max_prompt_elements,
            max_recent_actions=self.settings.max_recent_actions,
            max_console_errors=self.settings.max_recent_console_errors,
        )

    async def decide(
        self, bug_description: str, observation: Observation, history: History
    ) -> PolicyResponse:
        """Decide the next action. Never raises.

        Args:
            bug_description (str): The bug to reproduce
            observation (Observation): Observation of the current step
            history (History): Read-only view of the run so far

        Returns:
            PolicyResponse: The policy decision, or the fallback decision on failure
        """
        try:
            prompt = self.build_prompt(bug_description, observation, history)
            logger.debug(f"Decision prompt for step {observation.step_number}:\n{prompt}")

            response = await self.llm.ainvoke(
                [SystemMessage(content=self.system_prompt), HumanMessage(content=prompt)]
            )
            content = _content_text(response.content)
            if not content.strip():
                raise MalformedPolicyResponseError("No response from LLM", raw_response=content)

            decision = parse_policy_reply(content)
        except Exception as e:
            logger.warning(f"⚠️ Decision policy failed on step {observation.step_number}: {e}")
            return build_fallback_response(observation, str(e))

        logger.bugbot_log(f"🧠 Thought: {decision.thought}")
        logger.bugbot_log(f"🎯 Decision: {decision.action.summary()} [{decision.status.value}]")
        if decision.reason:
            logger.bugbot_log(f"📝 Reason: {decision.reason}")
        return decision

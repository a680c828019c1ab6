"""
Prompt factory for BugBot.

This module loads the markdown prompt templates shipped with the package and
fills them for one decision. Templates use `[[VARIABLE_NAME]]` placeholders.

## Key Functions

1. **get_system_prompt()** - System message of the decision policy
2. **get_decision_prompt()** - Bounded decision request for one step

## Usage Examples

```python
from bugbot.prompts.prompt_factory import get_decision_prompt

prompt = get_decision_prompt(bug_description, observation, history)
```
"""

import importlib.resources
import re
from pathlib import Path
from typing import Dict, Iterable

from bugbot.browser.dom_extractor import clickable_elements
from bugbot.schemas.models import BaseAction, History, Observation, PageElement

SYSTEM_PROMPT_FILE = "system_prompt.md"
DECISION_PROMPT_FILE = "decision_prompt.md"
PLACEHOLDER_PATTERN = re.compile(r"\[\[([A-Z_]+)\]\]")


def __get_raw_prompt(prompt_markdown_name: str) -> str:
    """Load raw markdown prompt from the package, or from the source tree.

    Raises:
        FileNotFoundError: If the markdown file is not found
    """
    try:
        with (
            importlib.resources.files("bugbot.prompts")
            .joinpath(prompt_markdown_name)
            .open("r", encoding="utf-8") as file
        ):
            return file.read()
    except (FileNotFoundError, ImportError):
        prompt_file = Path(__file__).parent / prompt_markdown_name
        try:
            return prompt_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise FileNotFoundError(f"Markdown file not found: {prompt_file}")


def __parsed_prompt(prompt_markdown_name: str, key_value_pairs: Dict[str, str]) -> str:
    raw_prompt: str = __get_raw_prompt(prompt_markdown_name)
    values = {k.upper(): v for k, v in key_value_pairs.items()}

    # single pass, so substituted values are never scanned for placeholders
    return PLACEHOLDER_PATTERN.sub(lambda m: values.get(m.group(1), m.group(0)), raw_prompt)


#! -------------------------


def format_elements(elements: Iterable[PageElement]) -> str:
    lines = [
        f"- {element.text or '(no text)'} [{element.selector_hint}] [role: {element.role}]"
        for element in elements
    ]
    return "\n".join(lines) or "(none found)"


def format_actions(actions: Iterable[BaseAction]) -> str:
    lines = [f"{idx}. {action.summary()}" for idx, action in enumerate(actions, start=1)]
    return "\n".join(lines) or "None yet"


def format_console_errors(errors: Iterable[str]) -> str:
    lines = [f"- {error}" for error in errors]
    return "\n".join(lines) or "None"


def get_system_prompt() -> str:
    return __get_raw_prompt(SYSTEM_PROMPT_FILE).strip()


def get_decision_prompt(
    bug_description: str,
    observation: Observation,
    history: History,
    max_elements: int = 30,
    max_recent_actions: int = 5,
    max_console_errors: int = 5,
) -> str:
    """Build the decision request for the current step.

    The request is bounded: at most `max_elements` clickable elements, the last
    `max_recent_actions` actions and the last `max_console_errors` console errors.

    Args:
        bug_description (str): The bug to reproduce
        observation (Observation): Observation of the current step
        history (History): Everything observed and attempted so far
        max_elements (int): Clickable elements presented
        max_recent_actions (int): Recent actions presented
        max_console_errors (int): Recent console errors presented

    Returns:
        str: The filled decision prompt
    """
    return __parsed_prompt(
        DECISION_PROMPT_FILE,
        {
            "BUG_DESCRIPTION": bug_description,
            "URL": observation.state.url,
            "TITLE": observation.state.title,
            "STEP_NUMBER": str(observation.step_number),
            "CLICKABLE_ELEMENTS": format_elements(
                clickable_elements(observation.dom, max_elements)
            ),
            "RECENT_ACTIONS": format_actions(history.recent_actions(max_recent_actions)),
            "CONSOLE_ERRORS": format_console_errors(
                observation.state.recent_console_errors(max_console_errors)
            ),
        },
    )


DECISION_POLICY_SYSTEM_PROMPT: str = get_system_prompt()

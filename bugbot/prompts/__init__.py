"""
BugBot prompt templates and factory.

This package contains the markdown prompt templates of the decision policy and
the functions that fill them.

## Usage Examples

```python
from bugbot.prompts import DECISION_POLICY_SYSTEM_PROMPT, get_decision_prompt

prompt = get_decision_prompt(bug_description, observation, history, max_elements=30)
```
"""

from .prompt_factory import (
    DECISION_POLICY_SYSTEM_PROMPT,
    get_decision_prompt,
    get_system_prompt,
)

__all__ = [
    "DECISION_POLICY_SYSTEM_PROMPT",
    "get_decision_prompt",
    "get_system_prompt",
]

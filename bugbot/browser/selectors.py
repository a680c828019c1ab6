"""
Selector ambiguity resolution.

Selectors arrive from the decision policy, which copies them from the selector
hints of the observed page elements. A hint may be a single structural or text
selector, or a disjunction `<structural> or text="<text>"`. `resolve_selector`
turns any of these into one concrete strategy: match by visible text, or match
by a Playwright locator.

Example:
    ```python
    resolve_selector('div.card or text="Add to Cart"')
    # ResolvedSelector(kind='text', value='Add to Cart', original='div.card or text="Add to Cart"')

    resolve_selector("#checkout")
    # ResolvedSelector(kind='locator', value='#checkout', original='#checkout')
    ```
"""

import re
from dataclasses import dataclass
from typing import Literal

from bugbot.schemas.models import (
    SELECTOR_DISJUNCTION,
    TEXT_ALTERNATIVE_PATTERN,
    TEXT_SELECTOR_PATTERN,
)

QUOTED_LITERAL_PATTERN = re.compile(r'["\']([^"\']+)["\']')
AMBIGUOUS_WORD_PATTERN = re.compile(r"\bor\b")

STRUCTURAL_MARKERS = ("[", "#", ".")
ROOT_SELECTORS = frozenset({"body", "html"})
XPATH_PREFIX = "xpath="


@dataclass(frozen=True)
class ResolvedSelector:
    """Concrete strategy for finding an element.

    Attributes:
        kind: "text" for a substring match on visible text, "locator" for a Playwright selector
        value: Text to match or selector to locate
        original: Selector as received, before any cleanup
    """

    kind: Literal["text", "locator"]
    value: str
    original: str

    @property
    def is_text(self) -> bool:
        return self.kind == "text"


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1].strip()
    return value


def _is_ambiguous(value: str) -> bool:
    if AMBIGUOUS_WORD_PATTERN.search(value) or "text=" in value:
        return True
    # a bare `=` outside an attribute selector
    return "=" in value and "[" not in value and not value.startswith(XPATH_PREFIX)


def _classify(value: str, original: str) -> ResolvedSelector:
    if value.startswith(XPATH_PREFIX):
        return ResolvedSelector(kind="locator", value=value, original=original)
    if value.startswith("/"):
        return ResolvedSelector(kind="locator", value=f"{XPATH_PREFIX}{value}", original=original)
    if value.lower() in ROOT_SELECTORS:
        return ResolvedSelector(kind="locator", value=value.lower(), original=original)
    if any(marker in value for marker in STRUCTURAL_MARKERS):
        return ResolvedSelector(kind="locator", value=value, original=original)
    return ResolvedSelector(kind="text", value=value, original=original)


def resolve_selector(selector: str) -> ResolvedSelector:
    """Resolve a possibly disjunctive selector into one concrete strategy.

    1. A trailing `text="..."` alternative wins, even when its label contains `" or "`;
       any other disjunction keeps only its last alternative
    2. Surrounding quotes are stripped; `text="..."` resolves to a text match
    3. Leftover ambiguous tokens (`or`, `text=`, a bare `=`) trigger one more
       extraction of a quoted literal, falling back to the raw string
    4. A string without structural markers (`[`, `#`, `.`) is literal visible text,
       anything else is a structural locator; index paths (`/html[1]/...`) are XPath

    Args:
        selector (str): Selector as produced by the decision policy

    Returns:
        ResolvedSelector: The strategy, carrying the original selector

    Raises:
        ValueError: If the selector is empty
    """
    original = selector
    candidate = selector.strip()
    if not candidate:
        raise ValueError("Cannot resolve an empty selector")

    alternative = TEXT_ALTERNATIVE_PATTERN.match(candidate)
    if alternative and alternative.group(3).strip():
        return ResolvedSelector(kind="text", value=alternative.group(3).strip(), original=original)

    if SELECTOR_DISJUNCTION in candidate:
        candidate = candidate.rsplit(SELECTOR_DISJUNCTION, 1)[1].strip()

    candidate = _strip_quotes(candidate)

    match = TEXT_SELECTOR_PATTERN.match(candidate)
    if match and match.group(1).strip():
        return ResolvedSelector(kind="text", value=match.group(1).strip(), original=original)

    if _is_ambiguous(candidate):
        literal = QUOTED_LITERAL_PATTERN.search(candidate)
        if literal and literal.group(1).strip():
            candidate = literal.group(1).strip()
        elif candidate.startswith("text=") and candidate[len("text=") :].strip():
            return ResolvedSelector(
                kind="text", value=candidate[len("text=") :].strip(), original=original
            )

    return _classify(candidate, original)

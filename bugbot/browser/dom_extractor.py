"""
Observation extraction: the simplified, decision-ready view of a page.

The allow-list query and the hidden-style filter run inside the page and return
raw candidate descriptors. Classification (selector hints, noise filtering and
de-duplication) happens in Python in `simplify_elements`, so that it can be
exercised without a browser.

## Usage Examples

```python
from bugbot.browser.dom_extractor import clickable_elements, extract_page_elements

elements = await extract_page_elements(page)
for element in clickable_elements(elements, limit=30):
    print(element.text, element.selector_hint)
```
"""

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from playwright.async_api import Page
from pydantic import ValidationError

from bugbot.schemas.models import PageElement, SelectorHint
from bugbot.utils.logging_config import logger

MAX_TEXT_HINT_LENGTH = 50
MAX_HINT_CLASSES = 2

INTERACTIVE_SELECTORS: Tuple[str, ...] = (
    "button",
    "a",
    'input[type="button"]',
    'input[type="submit"]',
    '[role="button"]',
    "[onclick]",
    '[tabindex="0"]',
    "select",
    "textarea",
    'input[type="text"]',
    'input[type="email"]',
    'input[type="password"]',
    'input[type="search"]',
    '[contenteditable="true"]',
)

CLICKABLE_SELECTORS: Tuple[str, ...] = (
    "button",
    "a",
    'input[type="button"]',
    'input[type="submit"]',
    '[role="button"]',
)

#! Runs in the page, receives [interactiveSelectors, clickableSelectors]
CANDIDATES_SCRIPT = """
([interactiveSelectors, clickableSelectors]) => {
  const indexPath = (node) => {
    const parts = [];
    let current = node;
    while (current && current.nodeType === Node.ELEMENT_NODE) {
      let index = 1;
      let sibling = current.previousElementSibling;
      while (sibling) {
        if (sibling.nodeName === current.nodeName) index++;
        sibling = sibling.previousElementSibling;
      }
      parts.unshift(current.nodeName.toLowerCase() + '[' + index + ']');
      current = current.parentNode;
    }
    return '/' + parts.join('/');
  };

  const result = [];
  document.querySelectorAll(interactiveSelectors.join(', ')).forEach((element) => {
    try {
      const style = window.getComputedStyle(element);
      if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') {
        return;
      }
      const text = (element.textContent || '').trim()
        || element.getAttribute('aria-label')
        || element.getAttribute('title')
        || '';
      result.push({
        text: text,
        role: element.getAttribute('role') || element.tagName.toLowerCase(),
        locator: indexPath(element),
        clickable: clickableSelectors.some((sel) => element.matches(sel))
          || element.onclick !== null
          || element.getAttribute('tabindex') === '0',
        id: element.id || '',
        classes: typeof element.className === 'string' ? element.className : '',
        tagName: element.tagName.toLowerCase(),
      });
    } catch (e) {
      // node that cannot be classified is skipped
    }
  });
  return result;
}
"""


def _normalize_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return " ".join(value.split())


def build_selector_hint(
    tag_name: str, text: str, clickable: bool, element_id: str = "", classes: str = ""
) -> SelectorHint:
    """Build the best-effort selector hint of an element.

    The structural part prefers `#id`, then `tag.class1.class2`, then the tag
    name. Short visible text adds a text hint: for clickable elements it
    replaces the structural part, otherwise both are kept.
    """
    if element_id:
        structural = f"#{element_id}"
    else:
        class_names = [c for c in classes.split() if c][:MAX_HINT_CLASSES]
        structural = f"{tag_name}.{'.'.join(class_names)}" if class_names else tag_name

    if text and len(text) < MAX_TEXT_HINT_LENGTH:
        if clickable:
            return SelectorHint(text=text)
        return SelectorHint(structural=structural, text=text)

    return SelectorHint(structural=structural)


def _to_page_element(raw: Dict[str, Any]) -> Optional[PageElement]:
    tag_name = raw.get("tagName")
    if not isinstance(tag_name, str) or not tag_name:
        return None

    text = _normalize_text(raw.get("text"))
    clickable = bool(raw.get("clickable"))
    hint = build_selector_hint(
        tag_name=tag_name,
        text=text,
        clickable=clickable,
        element_id=str(raw.get("id") or ""),
        classes=str(raw.get("classes") or ""),
    )
    return PageElement(
        text=text,
        role=str(raw.get("role") or tag_name),
        locator=raw.get("locator"),
        clickable=clickable,
        selector_hint=hint.render(),
        tag_name=tag_name,
    )


def simplify_elements(raw_candidates: Iterable[Any]) -> List[PageElement]:
    """Turn raw candidate descriptors into page elements.

    Elements without text that are not clickable are dropped as layout noise.
    The result is unique by `(locator, text)` and keeps document order.
    A candidate that cannot be classified is skipped.

    Args:
        raw_candidates (Iterable[Any]): Descriptors returned by the in-page script

    Returns:
        List[PageElement]: De-duplicated page elements
    """
    seen: Set[Tuple[str, str]] = set()
    elements: List[PageElement] = []

    for raw in raw_candidates:
        if not isinstance(raw, dict):
            logger.debug(f"Skipping non-object DOM candidate: {raw!r}")
            continue
        try:
            element = _to_page_element(raw)
        except ValidationError as e:
            logger.debug(f"Skipping unclassifiable DOM candidate: {e.error_count()} errors")
            continue

        if element is None or element.dedup_key in seen:
            continue
        seen.add(element.dedup_key)

        if element.text or element.clickable:
            elements.append(element)

    return elements


async def extract_page_elements(page: Page) -> List[PageElement]:
    """Extract the simplified element list of the current page.

    Never raises: a page that cannot be evaluated yields an empty list.
    """
    try:
        raw = await page.evaluate(
            CANDIDATES_SCRIPT, [list(INTERACTIVE_SELECTORS), list(CLICKABLE_SELECTORS)]
        )
    except Exception as e:
        logger.warning(f"⚠️ Failed to extract page elements: {e}")
        return []

    if not isinstance(raw, list):
        logger.warning(f"⚠️ Unexpected DOM extraction result: {type(raw).__name__}")
        return []

    return simplify_elements(raw)


def clickable_elements(elements: Iterable[PageElement], limit: int) -> List[PageElement]:
    """Bounded prefix of the clickable elements, as presented to the policy."""
    if limit <= 0:
        return []
    return [element for element in elements if element.clickable][:limit]

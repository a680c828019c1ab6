from bugbot.prompts.prompt_factory import (
    DECISION_POLICY_SYSTEM_PROMPT,
    format_actions,
    format_console_errors,
    format_elements,
    get_decision_prompt,
)
from bugbot.schemas.models import ClickAction, History, InputAction
from tests.fixtures.models.schema_factories import (
    BrowserStateFactory,
    ObservationFactory,
    PageElementFactory,
)

BUG = "cart count does not increase after clicking Add to Cart"


class TestFormatting:
    """Test suite for the prompt section formatters."""

    # ? VALID CASE
    def test_format_elements(self) -> None:
        """Test the element line format."""
        element = PageElementFactory.custom_build()
        assert format_elements([element]) == '- Add to Cart [text="Add to Cart"] [role: button]'

    # ? VALID CASE
    def test_empty_sections(self) -> None:
        """Test the placeholders used for empty sections."""
        assert format_elements([]) == "(none found)"
        assert format_actions([]) == "None yet"
        assert format_console_errors([]) == "None"

    # ? VALID CASE
    def test_format_actions_numbered(self) -> None:
        """Test that actions are numbered from one."""
        actions = [ClickAction(selector="#a"), InputAction(selector="#q", text="hat")]
        assert format_actions(actions) == '1. click(#a)\n2. input(#q, "hat")'


class TestGetDecisionPrompt:
    """Test suite for `get_decision_prompt`.

    The decision request must stay bounded no matter how large the page or
    the history grows.
    """

    # ? VALID CASE
    def test_placeholders_filled(self) -> None:
        """Test that every placeholder is replaced."""
        observation = ObservationFactory.custom_build(step_number=3)
        prompt = get_decision_prompt(BUG, observation, History())

        assert "[[" not in prompt
        assert BUG in prompt
        assert "- URL: http://localhost:3000" in prompt
        assert "- Step: 3" in prompt

    # ? VALID CASE
    def test_placeholder_text_in_values_kept_literal(self) -> None:
        """Test that values containing placeholder syntax are not filled again."""
        state = BrowserStateFactory.custom_build(title="Shop [[CLICKABLE_ELEMENTS]]")
        observation = ObservationFactory.custom_build(state=state)
        bug = "the banner shows [[URL]] instead of the page address"

        prompt = get_decision_prompt(bug, observation, History())

        assert bug in prompt
        assert "Shop [[CLICKABLE_ELEMENTS]]" in prompt
        assert prompt.count("http://localhost:3000") == 1

    # ? VALID CASE
    def test_bounded_sections(self) -> None:
        """Test the element, action and console error bounds."""
        dom = [
            PageElementFactory.custom_build(
                locator=f"/html[1]/body[1]/button[{i}]", text=f"Item {i:02d}", selector_hint=f"#item-{i:02d}"
            )
            for i in range(1, 41)
        ]
        state = BrowserStateFactory.custom_build(
            console_errors=[f"console error {i:02d}" for i in range(1, 9)]
        )
        observation = ObservationFactory.custom_build(dom=dom, state=state)
        history = History()
        for i in range(1, 8):
            history.add_action(ClickAction(selector=f"#action-{i}"))

        prompt = get_decision_prompt(BUG, observation, history)

        assert "#item-30" in prompt
        assert "#item-31" not in prompt
        assert "#action-3" in prompt
        assert "#action-2" not in prompt
        assert "console error 04" in prompt
        assert "console error 03" not in prompt

    # ? VALID CASE
    def test_system_prompt_loaded(self) -> None:
        """Test that the packaged system prompt is available."""
        assert "JSON" in DECISION_POLICY_SYSTEM_PROMPT

"""Tests for prompt templates."""

import pytest

from tagcaster.prompts import PromptTemplates, render
from tagcaster.types import DecodeError, DecodeIssue, ExtractionError, TemplateError

SCHEMA = "<Point>\n  <x>integer</x>\n</Point>"


class TestRender:
    """Tests for the render helper."""

    def test_render_variables(self) -> None:
        assert render("Hello {{ name }}!", name="Ada") == "Hello Ada!"

    def test_missing_variable(self) -> None:
        with pytest.raises(TemplateError, match="Missing template variable"):
            render("Hello {{ name }}!")

    def test_invalid_template(self) -> None:
        with pytest.raises(TemplateError, match="Invalid template"):
            render("{% if %}")

    def test_markup_is_not_escaped(self) -> None:
        assert render("{{ schema }}", schema="<a>&</a>") == "<a>&</a>"


class TestPromptTemplates:
    """Tests for instruction and feedback rendering."""

    def test_instructions(self) -> None:
        text = PromptTemplates().render_instructions("Point", SCHEMA)

        assert "root element is <Point>" in text
        assert SCHEMA in text
        assert "<![CDATA[...]]>" in text
        assert "valid example" not in text

    def test_instructions_with_example(self) -> None:
        example = "<Point>\n  <x>1</x>\n</Point>"
        text = PromptTemplates().render_instructions("Point", SCHEMA, example)

        assert text.endswith("Here is a valid example for your reference:\n" + example)

    def test_feedback_lists_issues(self) -> None:
        error = DecodeError(
            [
                DecodeIssue(("Point", "x"), "one", "can not parse 'one' as an integer value"),
                DecodeIssue(("Point", "y"), "", "missing element <y>"),
            ]
        )
        text = PromptTemplates().render_feedback(error, "Point", SCHEMA)

        assert "- Point.x: can not parse 'one' as an integer value (got 'one')" in text
        assert "- Point.y: missing element <y>" in text
        assert "The error was" not in text
        assert text.rstrip().endswith(SCHEMA)

    def test_feedback_for_extraction_error(self) -> None:
        error = ExtractionError("cannot find the root <Point> of the structure", root_name="Point")
        text = PromptTemplates().render_feedback(error, "Point", SCHEMA)

        assert (
            "The error was: cannot find the root <Point> of the structure. "
            "Your answer must contain <Point> and </Point>"
        ) in text

    def test_custom_templates(self) -> None:
        templates = PromptTemplates(
            instructions="Reply as <{{ root_name }}>:\n{{ schema }}",
            feedback="Wrong: {{ error }}",
        )

        assert templates.render_instructions("Point", SCHEMA) == f"Reply as <Point>:\n{SCHEMA}"
        error = ExtractionError("no root", root_name="Point")
        assert templates.render_feedback(error, "Point", SCHEMA).startswith("Wrong: no root.")

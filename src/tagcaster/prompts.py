"""Jinja templates for the schema instructions and the retry feedback."""

from dataclasses import dataclass
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError

from .types import CasterError, DecodeError, ExtractionError, TemplateError

INSTRUCTIONS_TEMPLATE = """\
You must respond with a valid XML document whose root element is <{{ root_name }}>, \
following this schema:

{{ schema }}

Rules:
- Put the whole answer between <{{ root_name }}> and </{{ root_name }}>.
- Write every string value as <![CDATA[...]]>, without any escaping inside.
- Wrap each element of a list in <item></item>, even when there is only one.
- Leave out optional elements that have no value.
- The comments in the schema are guidance only; do not repeat them.
{% if example %}

Here is a valid example for your reference:
{{ example }}
{% endif %}
"""

FEEDBACK_TEMPLATE = """\
Your previous response could not be used.
{% if issues %}
The following elements were invalid:
{% for issue in issues %}
- {{ issue }}
{% endfor %}
{% else %}
The error was: {{ error }}
{% endif %}

Please respond again with a complete XML document whose root element is <{{ root_name }}>, \
strictly following the required format:
{{ schema }}
{% if example %}

Here is a valid example for your reference:
{{ example }}
{% endif %}
"""

_env = Environment(
    undefined=StrictUndefined,
    autoescape=False,  # Prompts, not HTML
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
)


@dataclass
class PromptTemplates:
    """
    Templates used by the orchestrator.

    ``instructions`` receives ``root_name``, ``schema`` and ``example``;
    ``feedback`` additionally receives ``error`` and ``issues``.
    """

    instructions: str = INSTRUCTIONS_TEMPLATE
    feedback: str = FEEDBACK_TEMPLATE

    def render_instructions(
        self,
        root_name: str,
        schema: str,
        example: str | None = None,
    ) -> str:
        """Render the system instructions describing the expected document."""
        return render(
            self.instructions,
            root_name=root_name,
            schema=schema,
            example=example,
        )

    def render_feedback(
        self,
        error: CasterError,
        root_name: str,
        schema: str,
        example: str | None = None,
    ) -> str:
        """Render the message explaining why the previous response was rejected."""
        issues = error.issues if isinstance(error, DecodeError) else []
        if isinstance(error, ExtractionError):
            message = f"{error}. Your answer must contain <{root_name}> and </{root_name}>"
        else:
            message = str(error)
        return render(
            self.feedback,
            error=message,
            issues=issues,
            root_name=root_name,
            schema=schema,
            example=example,
        )


def render(source: str, **variables: Any) -> str:
    """
    Render a template string.

    Raises:
        TemplateError: If the template is invalid or a variable is missing
    """
    try:
        return _env.from_string(source).render(**variables).strip()
    except UndefinedError as e:
        raise TemplateError(f"Missing template variable: {e}") from e
    except TemplateSyntaxError as e:
        raise TemplateError(f"Invalid template: {e}") from e

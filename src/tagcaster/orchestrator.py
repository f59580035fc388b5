"""Request, extract, decode and retry until the model produces a valid document."""

import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, TypeVar, overload

from .core.messages import (
    assistant_message,
    format_messages,
    user_message,
    validate_messages,
    with_instructions,
)
from .decoding.decoder import Decoder, default_decoder
from .markup.encoder import to_markup
from .markup.parser import extract_root
from .observability.callbacks import CallbackManager
from .prompts import PromptTemplates
from .schema.cache import SchemaCache, default_schema_cache
from .types import (
    DecodeError,
    ExtractionError,
    GenerateFn,
    Message,
    Messages,
    RequestError,
    RetryLimitExceeded,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3


@dataclass
class ConversationContext:
    """
    Message history owned by one in-flight cast.

    The generation function only ever receives snapshots, so it cannot
    alter the history the retry loop builds on.
    """

    messages: list[Message] = field(default_factory=list)

    @classmethod
    def start(cls, messages: Messages | str, instructions: str) -> "ConversationContext":
        """
        Begin a conversation with the schema instructions in the system message.

        Raises:
            ValueError: If a message is malformed
        """
        formatted = format_messages(messages)
        errors = validate_messages(formatted)
        if errors:
            raise ValueError("Invalid messages: " + "; ".join(errors))
        return cls(with_instructions(formatted, instructions))

    def append_assistant(self, content: str) -> None:
        self.messages.append(assistant_message(content))

    def append_user(self, content: str) -> None:
        self.messages.append(user_message(content))

    def snapshot(self) -> list[Message]:
        """Copy of the history safe to hand to the generation function."""
        return [dict(msg) for msg in self.messages]

    def __len__(self) -> int:
        return len(self.messages)


@overload
async def generate_as(
    generate: GenerateFn,
    response_model: type[T],
    messages: Messages | str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    schema_cache: SchemaCache | None = None,
    decoder: Decoder | None = None,
    example: Any = None,
    templates: PromptTemplates | None = None,
    callbacks: CallbackManager | None = None,
) -> T: ...


@overload
async def generate_as(
    generate: GenerateFn,
    response_model: Any,
    messages: Messages | str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    schema_cache: SchemaCache | None = None,
    decoder: Decoder | None = None,
    example: Any = None,
    templates: PromptTemplates | None = None,
    callbacks: CallbackManager | None = None,
) -> Any: ...


async def generate_as(
    generate: GenerateFn,
    response_model: Any,
    messages: Messages | str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    schema_cache: SchemaCache | None = None,
    decoder: Decoder | None = None,
    example: Any = None,
    templates: PromptTemplates | None = None,
    callbacks: CallbackManager | None = None,
) -> Any:
    """
    Ask a model for a value of ``response_model`` and decode its answer.

    The schema instructions are merged into the leading system message and
    the conversation is sent to ``generate``. When the reply has no usable
    root element or fails to decode, the raw reply and an explanation of
    what went wrong are appended to the conversation and the model is asked
    again, up to ``max_retries`` more times.

    Args:
        generate: Function taking the message list and returning the raw
            reply text; may be sync or async
        response_model: Type to produce (pydantic model, Enum, leaf,
            container, union, or an Annotated type carrying a Tag)
        messages: Conversation so far, or a single user prompt
        max_retries: Additional attempts after the first one (>= 0)
        schema_cache: Schema cache (defaults to the process-wide one)
        decoder: Decoder (defaults to the process-wide one)
        example: Optional valid instance shown to the model
        templates: Prompt templates for instructions and feedback
        callbacks: Lifecycle callbacks

    Returns:
        The decoded value

    Raises:
        RequestError: If ``generate`` fails; never retried here
        RetryLimitExceeded: If every attempt produced an invalid response
        ValueError: If ``max_retries`` is negative
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")

    cache = schema_cache or default_schema_cache
    decoder = decoder or default_decoder
    templates = templates or PromptTemplates()

    schema = cache.schema_for(response_model)
    root_name = cache.descriptor_for(response_model).root_name
    example_text = to_markup(example, response_model) if example is not None else None

    context = ConversationContext.start(
        messages,
        templates.render_instructions(root_name, schema, example_text),
    )

    attempts = 1 + max_retries
    errors: list[ExtractionError | DecodeError] = []

    for attempt in range(1, attempts + 1):
        snapshot = context.snapshot()
        if callbacks:
            await callbacks.emit_attempt(root_name, attempt, snapshot)

        raw = await _call_generate(generate, snapshot)

        try:
            document = extract_root(raw, root_name)
            value = decoder.decode(document, response_model)
        except (ExtractionError, DecodeError) as e:
            errors.append(e)
            logger.warning(f"Attempt {attempt}/{attempts} for <{root_name}> was invalid: {e}")
            if callbacks:
                await callbacks.emit_invalid(root_name, attempt, raw, e)
            if attempt < attempts:
                logger.info(f"Retrying <{root_name}> with feedback ({attempt + 1}/{attempts})")
                context.append_assistant(raw)
                context.append_user(templates.render_feedback(e, root_name, schema, example_text))
            continue

        if callbacks:
            await callbacks.emit_success(root_name, attempt, value)
        return value

    raise RetryLimitExceeded(errors, attempts)


async def _call_generate(generate: GenerateFn, messages: list[Message]) -> str:
    try:
        result = generate(messages)
        if isinstance(result, Awaitable):
            result = await result
    except RequestError:
        raise
    except Exception as e:
        raise RequestError(f"Generation failed: {e}", response=e) from e

    if not isinstance(result, str):
        raise RequestError(
            f"Generation function returned {type(result).__name__}, expected str",
            response=result,
        )
    return result

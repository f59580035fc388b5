"""Core generation functionality."""

from .completion import LiteLLMGenerator, complete, should_retry
from .messages import (
    assistant_message,
    extract_content,
    format_messages,
    system_message,
    user_message,
    validate_messages,
    with_instructions,
)

__all__ = [
    "LiteLLMGenerator",
    "complete",
    "should_retry",
    "format_messages",
    "with_instructions",
    "extract_content",
    "validate_messages",
    "user_message",
    "system_message",
    "assistant_message",
]

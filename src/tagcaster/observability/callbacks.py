"""Callback system for the cast lifecycle."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..types import CasterError, Message

# Callback type definitions
OnAttemptCallback = Callable[[str, int, list[Message]], Awaitable[None] | None]
OnInvalidCallback = Callable[[str, int, str, CasterError], Awaitable[None] | None]
OnSuccessCallback = Callable[[str, int, Any], Awaitable[None] | None]


@dataclass
class CallbackManager:
    """
    Manages callbacks for attempt lifecycle events.

    Every callback receives the root name of the requested type and the
    1-based attempt number first.

    Example:
        callbacks = CallbackManager()

        @callbacks.on_attempt
        async def log_attempt(root_name, attempt, messages):
            print(f"<{root_name}> attempt {attempt}")

        @callbacks.on_invalid
        def log_invalid(root_name, attempt, raw, error):
            print(f"<{root_name}> rejected: {error}")

        # Or register directly
        callbacks.add_on_success(my_callback)
    """

    _on_attempt: list[OnAttemptCallback] = field(default_factory=list)
    _on_invalid: list[OnInvalidCallback] = field(default_factory=list)
    _on_success: list[OnSuccessCallback] = field(default_factory=list)

    def add_on_attempt(self, callback: OnAttemptCallback) -> None:
        """Add a callback to be called before each generation attempt."""
        self._on_attempt.append(callback)

    def add_on_invalid(self, callback: OnInvalidCallback) -> None:
        """Add a callback to be called when a response is rejected."""
        self._on_invalid.append(callback)

    def add_on_success(self, callback: OnSuccessCallback) -> None:
        """Add a callback to be called with the decoded value."""
        self._on_success.append(callback)

    def on_attempt(self, callback: OnAttemptCallback) -> OnAttemptCallback:
        """Decorator to register an attempt callback."""
        self.add_on_attempt(callback)
        return callback

    def on_invalid(self, callback: OnInvalidCallback) -> OnInvalidCallback:
        """Decorator to register an invalid-response callback."""
        self.add_on_invalid(callback)
        return callback

    def on_success(self, callback: OnSuccessCallback) -> OnSuccessCallback:
        """Decorator to register a success callback."""
        self.add_on_success(callback)
        return callback

    async def emit_attempt(
        self,
        root_name: str,
        attempt: int,
        messages: list[Message],
    ) -> None:
        """Emit an attempt event to all registered callbacks."""
        for callback in self._on_attempt:
            result = callback(root_name, attempt, messages)
            if isinstance(result, Awaitable):
                await result

    async def emit_invalid(
        self,
        root_name: str,
        attempt: int,
        raw: str,
        error: CasterError,
    ) -> None:
        """Emit an invalid-response event to all registered callbacks."""
        for callback in self._on_invalid:
            result = callback(root_name, attempt, raw, error)
            if isinstance(result, Awaitable):
                await result

    async def emit_success(self, root_name: str, attempt: int, value: Any) -> None:
        """Emit a success event to all registered callbacks."""
        for callback in self._on_success:
            result = callback(root_name, attempt, value)
            if isinstance(result, Awaitable):
                await result


def create_logging_callbacks(
    logger: Any,
    level: str = "INFO",
) -> CallbackManager:
    """
    Create a CallbackManager with standard logging callbacks.

    Args:
        logger: A logging.Logger instance
        level: Log level to use for attempts and successes

    Returns:
        A configured CallbackManager
    """
    import logging as stdlib_logging

    log_level = getattr(stdlib_logging, level.upper())
    callbacks = CallbackManager()

    @callbacks.on_attempt
    def log_attempt(root_name: str, attempt: int, messages: list[Message]) -> None:
        logger.log(
            log_level,
            f"[{root_name}] Attempt {attempt}: {len(messages)} messages",
        )

    @callbacks.on_invalid
    def log_invalid(root_name: str, attempt: int, raw: str, error: CasterError) -> None:
        logger.warning(f"[{root_name}] Attempt {attempt} rejected: {error}")

    @callbacks.on_success
    def log_success(root_name: str, attempt: int, value: Any) -> None:
        logger.log(
            log_level,
            f"[{root_name}] Decoded on attempt {attempt}",
        )

    return callbacks

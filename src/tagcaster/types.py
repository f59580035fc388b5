"""Shared types and exceptions for tagcaster."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, TypedDict

# Type aliases for messages
Role = Literal["system", "user", "assistant"]


class MessageDict(TypedDict, total=False):
    """A chat message in dictionary form."""

    role: Role
    content: str
    name: str


Message = MessageDict | dict[str, Any]
Messages = Sequence[Message]

# The external generation function: receives the conversation so far and
# returns the model's raw text. May be sync or async.
GenerateFn = Callable[[list[Message]], Awaitable[str] | str]


@dataclass
class GenerationRequest:
    """A request sent to the generation backend."""

    model: str
    messages: Messages = field(default_factory=list)
    temperature: float | None = None
    max_tokens: int | None = None
    timeout: float | None = None
    # Additional kwargs passed through to litellm
    extra_kwargs: dict[str, Any] = field(default_factory=dict)

    def to_litellm_kwargs(self) -> dict[str, Any]:
        """Convert to kwargs dict for litellm.acompletion()."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": list(self.messages),
        }

        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if self.max_tokens is not None:
            kwargs["max_tokens"] = self.max_tokens
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        kwargs.update(self.extra_kwargs)

        return kwargs


# Configuration types
@dataclass
class RetryConfig:
    """Configuration for transport-level retries inside the generation adapter."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    # HTTP status codes to retry on
    retry_on_status: tuple[int, ...] = (429, 500, 502, 503, 504)


# Exceptions
class CasterError(Exception):
    """Base exception for tagcaster errors."""

    pass


class RequestError(CasterError):
    """The generation function failed (transport or service error)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ExtractionError(CasterError):
    """The root element could not be located in the raw response."""

    def __init__(self, message: str, raw_content: str | None = None, root_name: str = ""):
        super().__init__(message)
        self.raw_content = raw_content
        self.root_name = root_name


@dataclass(frozen=True)
class DecodeIssue:
    """A single member that failed to decode."""

    path: tuple[str | int, ...]
    raw: str
    cause: str

    @property
    def location(self) -> str:
        """Render the path as ``Root.field[2].name``."""
        return format_path(self.path)

    def __str__(self) -> str:
        return f"{self.location}: {self.cause} (got {_shorten(self.raw)!r})"


class DecodeError(CasterError):
    """One or more members of the document could not be decoded."""

    def __init__(self, issues: list[DecodeIssue], raw_content: str | None = None):
        self.issues = list(issues)
        self.raw_content = raw_content
        lines = [str(issue) for issue in self.issues]
        if len(lines) == 1:
            message = f"Decode failed at {lines[0]}"
        else:
            message = "Decode failed:\n" + "\n".join(f"  - {line}" for line in lines)
        super().__init__(message)

    @property
    def path(self) -> tuple[str | int, ...]:
        return self.issues[0].path if self.issues else ()

    @property
    def raw(self) -> str:
        return self.issues[0].raw if self.issues else ""

    @property
    def cause(self) -> str:
        return self.issues[0].cause if self.issues else ""


class RetryLimitExceeded(CasterError):
    """Every attempt produced an invalid response."""

    def __init__(self, errors: list[ExtractionError | DecodeError], attempts: int):
        self.errors = list(errors)
        self.attempts = attempts
        detail = f": {self.errors[-1]}" if self.errors else ""
        super().__init__(f"Retry limit exceeded after {attempts} attempt(s){detail}")

    @property
    def last_error(self) -> ExtractionError | DecodeError | None:
        """The error observed on the final attempt."""
        return self.errors[-1] if self.errors else None


class TemplateError(CasterError):
    """Prompt template rendering error."""

    pass


class ConfigError(CasterError):
    """Configuration error."""

    pass


def format_path(path: Sequence[str | int]) -> str:
    """Format a member path, using ``[i]`` for positional segments."""
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        elif out:
            out += f".{part}"
        else:
            out = part
    return out or "<root>"


def _shorten(text: str, limit: int = 80) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."

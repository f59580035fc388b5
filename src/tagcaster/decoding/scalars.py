"""Lenient coercion of leaf text into Python values.

Models are told to write plain literals, but they routinely quote numbers,
answer "yes" instead of "true", or change the case of enum values. These
parsers accept those variations and raise ``ValueError`` with a short cause
for anything else.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..markup.convention import choice_text

DEFAULT_TRUE_VALUES = frozenset(
    {"true", "1", "yes", "y", "t", "on", "checked", "selected", "真", "是", "对"}
)
DEFAULT_FALSE_VALUES = frozenset(
    {"false", "0", "no", "n", "f", "off", "null", "none", "", "假", "否", "错"}
)

_QUOTES = "\"'`"


@dataclass(frozen=True)
class BooleanSynonyms:
    """
    Case-insensitive table of words accepted as booleans.

    The empty string counts as false by default, matching how models tend
    to leave a flag empty when it does not apply.
    """

    true_values: frozenset[str] = DEFAULT_TRUE_VALUES
    false_values: frozenset[str] = DEFAULT_FALSE_VALUES

    def __post_init__(self) -> None:
        true_values = frozenset(v.strip().lower() for v in self.true_values)
        false_values = frozenset(v.strip().lower() for v in self.false_values)
        overlap = true_values & false_values
        if overlap:
            raise ValueError(f"Words cannot be both true and false: {sorted(overlap)}")
        object.__setattr__(self, "true_values", true_values)
        object.__setattr__(self, "false_values", false_values)

    def extend(
        self,
        true_values: Iterable[str] = (),
        false_values: Iterable[str] = (),
    ) -> "BooleanSynonyms":
        """Return a copy accepting additional words."""
        return BooleanSynonyms(
            true_values=self.true_values | frozenset(true_values),
            false_values=self.false_values | frozenset(false_values),
        )

    def parse(self, text: str) -> bool:
        word = unquote(text).lower()
        if word in self.true_values:
            return True
        if word in self.false_values:
            return False
        raise ValueError(f"can not parse {text.strip()!r} as a boolean value")


def unquote(text: str) -> str:
    """Strip whitespace and one pair of matching quotes."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in _QUOTES:
        text = text[1:-1].strip()
    return text


def parse_integer(text: str) -> int:
    literal = unquote(text)
    if not literal:
        raise ValueError("expected an integer value, got empty text")
    try:
        return int(literal)
    except ValueError:
        pass
    try:
        number = float(literal)
    except ValueError:
        raise ValueError(f"can not parse {literal!r} as an integer value") from None
    if not number.is_integer():
        raise ValueError(f"{literal!r} is not a whole number")
    return int(number)


def parse_float(text: str) -> float:
    literal = unquote(text)
    if not literal:
        raise ValueError("expected a number, got empty text")
    try:
        return float(literal)
    except ValueError:
        raise ValueError(f"can not parse {literal!r} as a number") from None


def parse_choice(text: str, choices: tuple[Any, ...]) -> Any:
    """Match text against enum members or literal values."""
    literal = unquote(text)
    for choice in choices:
        if choice_text(choice) == literal:
            return choice
    folded = literal.casefold()
    for choice in choices:
        if choice_text(choice).casefold() == folded:
            return choice
        if isinstance(choice, Enum) and choice.name.casefold() == folded:
            return choice
    allowed = ", ".join(choice_text(c) for c in choices)
    raise ValueError(f"{literal!r} is not one of: {allowed}")

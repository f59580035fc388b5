"""Tolerant decoding of tagged markup into typed values."""

from .decoder import Decoder, decode, default_decoder
from .scalars import (
    DEFAULT_FALSE_VALUES,
    DEFAULT_TRUE_VALUES,
    BooleanSynonyms,
    parse_choice,
    parse_float,
    parse_integer,
)

__all__ = [
    "Decoder",
    "decode",
    "default_decoder",
    "BooleanSynonyms",
    "DEFAULT_TRUE_VALUES",
    "DEFAULT_FALSE_VALUES",
    "parse_integer",
    "parse_float",
    "parse_choice",
]

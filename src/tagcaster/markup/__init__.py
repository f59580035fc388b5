"""Tag convention and tolerant markup reading."""

from . import convention
from .parser import Element, extract_root, parse_markup

__all__ = [
    "convention",
    "Element",
    "extract_root",
    "parse_markup",
]

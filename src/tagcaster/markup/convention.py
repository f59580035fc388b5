"""The fixed textual conventions shared by every type.

A value is wrapped in its root element. Inside it:

- strings live in ``<![CDATA[...]]>`` sections
- sequence elements are each wrapped in ``<item>``
- map pairs are ``<entry><key>..</key><value>..</value></entry>``
- an absent optional member has no element at all
- a union holds exactly one element named after the active variant
"""

ITEM_TAG = "item"
ENTRY_TAG = "entry"
KEY_TAG = "key"
VALUE_TAG = "value"

CDATA_OPEN = "<![CDATA["
CDATA_CLOSE = "]]>"

# Root names for values that are not declared classes
INTEGER_ROOT = "integer"
FLOAT_ROOT = "number"
BOOLEAN_ROOT = "boolean"
STRING_ROOT = "string"
CHOICE_ROOT = "choice"
SEQUENCE_ROOT = "list"
MAP_ROOT = "map"
UNION_ROOT = "OneOf"

INDENT = "  "


def open_tag(name: str) -> str:
    return f"<{name}>"


def close_tag(name: str) -> str:
    return f"</{name}>"


def empty_tag(name: str) -> str:
    return f"<{name}/>"


def wrap_cdata(text: str) -> str:
    """
    Wrap text in a CDATA section.

    A literal ``]]>`` cannot appear inside CDATA, so it is split across two
    adjacent sections. Decoding concatenates every section of an element.
    """
    escaped = text.replace(CDATA_CLOSE, "]]" + CDATA_CLOSE + CDATA_OPEN + ">")
    return f"{CDATA_OPEN}{escaped}{CDATA_CLOSE}"


def comment(*parts: str | None) -> str:
    """Build an inline ``<!-- ... -->`` comment from the non-empty parts."""
    text = "; ".join(p.strip() for p in parts if p and p.strip())
    if not text:
        return ""
    # "--" is not allowed inside a comment
    while "--" in text:
        text = text.replace("--", "- -")
    return f" <!-- {text} -->"


def indent(lines: list[str], depth: int = 1) -> list[str]:
    prefix = INDENT * depth
    return [f"{prefix}{line}" for line in lines]


def is_valid_tag_name(name: str) -> bool:
    """Whether ``name`` can be used as an element name."""
    if not name or not (name[0].isalpha() or name[0] == "_"):
        return False
    return all(ch.isalnum() or ch in "_-." for ch in name)


def choice_text(choice: object) -> str:
    """Text form of an enum member or literal value."""
    value = getattr(choice, "value", choice)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)

"""Tolerant reader for the tagged markup produced by language models.

This is not a general XML parser. It understands elements, CDATA sections
and comments, ignores attributes and processing instructions, and recovers
from the usual model mistakes: unclosed elements are closed at their
parent's end, stray closing tags and lone ``<`` characters are kept as text.
"""

import html
import re
from dataclasses import dataclass, field

from ..types import ExtractionError

_NAME = r"[^\W\d][\w.\-]*"

_TOKEN_RE = re.compile(
    r"(?P<cdata><!\[CDATA\[(?P<cdata_body>.*?)\]\]>)"
    r"|(?P<comment><!--.*?-->)"
    r"|(?P<pi><\?.*?\?>|<!DOCTYPE[^>]*>)"
    rf"|(?P<close></\s*(?P<close_name>{_NAME})\s*>)"
    rf"|(?P<open><(?P<open_name>{_NAME})(?:\s+[^<>]*?)?\s*(?P<self_closing>/)?>)",
    re.DOTALL,
)


@dataclass(eq=False)
class Element:
    """An element of a parsed document."""

    tag: str
    source: str
    start: int
    end: int = -1
    self_closing: bool = False
    children: list["Element"] = field(default_factory=list)
    text_parts: list[str] = field(default_factory=list)
    cdata_parts: list[str] = field(default_factory=list)

    @property
    def raw(self) -> str:
        """The element's inner markup exactly as it appeared."""
        end = self.end if self.end >= 0 else len(self.source)
        return self.source[self.start : end]

    @property
    def text(self) -> str:
        """Character data outside of CDATA sections, entities unescaped."""
        return "".join(self.text_parts)

    @property
    def has_cdata(self) -> bool:
        return bool(self.cdata_parts)

    @property
    def cdata(self) -> str:
        return "".join(self.cdata_parts)

    @property
    def value_text(self) -> str:
        """CDATA content when present, otherwise plain text."""
        return self.cdata if self.has_cdata else self.text

    def find_all(self, tag: str) -> list["Element"]:
        """Direct children with the given tag, in document order."""
        return [child for child in self.children if child.tag == tag]

    def find(self, tag: str) -> "Element | None":
        for child in self.children:
            if child.tag == tag:
                return child
        return None


def parse_markup(text: str) -> Element:
    """
    Parse markup into a tree.

    Returns a synthetic ``#document`` element whose children are the
    top-level elements of ``text``.
    """
    document = Element(tag="#document", source=text, start=0, end=len(text))
    stack: list[Element] = [document]
    pos = 0

    for match in _TOKEN_RE.finditer(text):
        if match.start() > pos:
            stack[-1].text_parts.append(html.unescape(text[pos : match.start()]))
        pos = match.end()

        if match.group("cdata") is not None:
            stack[-1].cdata_parts.append(match.group("cdata_body"))
        elif match.group("open") is not None:
            element = Element(
                tag=match.group("open_name"),
                source=text,
                start=match.end(),
                self_closing=match.group("self_closing") is not None,
            )
            stack[-1].children.append(element)
            if element.self_closing:
                element.end = match.end()
            else:
                stack.append(element)
        elif match.group("close") is not None:
            name = match.group("close_name")
            index = _find_open(stack, name)
            if index is None:
                # Closing tag with no matching open element
                stack[-1].text_parts.append(match.group(0))
                continue
            while len(stack) > index:
                stack.pop().end = match.start()
        # Comments and processing instructions are dropped

    if pos < len(text):
        stack[-1].text_parts.append(html.unescape(text[pos:]))
    while len(stack) > 1:
        stack.pop().end = len(text)

    return document


def _find_open(stack: list[Element], name: str) -> int | None:
    for index in range(len(stack) - 1, 0, -1):
        if stack[index].tag == name:
            return index
    return None


def extract_root(content: str, root_name: str) -> str:
    """
    Extract the ``<root_name>...</root_name>`` substring from a response.

    The first opening tag is matched with its own closing tag, counting
    nested elements of the same name and skipping CDATA and comments, so
    surrounding prose, code fences or a second echoed document are ignored.

    Raises:
        ExtractionError: If the opening or the closing tag is missing
    """
    start: int | None = None
    depth = 0

    for match in _TOKEN_RE.finditer(content):
        if match.group("open") is not None and match.group("open_name") == root_name:
            if match.group("self_closing") is not None:
                if depth == 0:
                    return content[match.start() : match.end()]
                continue
            if depth == 0:
                start = match.start()
            depth += 1
        elif match.group("close") is not None and match.group("close_name") == root_name:
            if depth == 0:
                continue
            depth -= 1
            if depth == 0 and start is not None:
                return content[start : match.end()]

    if start is None:
        raise ExtractionError(
            f"cannot find the root <{root_name}> of the structure",
            raw_content=content,
            root_name=root_name,
        )
    raise ExtractionError(
        f"the root <{root_name}> is never closed with </{root_name}>",
        raw_content=content,
        root_name=root_name,
    )

"""Decode tagged markup into typed values."""

import logging
from typing import Any

from pydantic import ValidationError

from ..markup import convention
from ..markup.parser import Element, parse_markup
from ..schema.descriptor import (
    DescriptorRegistry,
    Kind,
    MemberDescriptor,
    TypeDescriptor,
    descriptor_of,
)
from ..types import DecodeError, DecodeIssue
from .scalars import BooleanSynonyms, parse_choice, parse_float, parse_integer

logger = logging.getLogger(__name__)

Path = tuple[str | int, ...]

# Marks a value that failed; the reason is already recorded as an issue
_INVALID = object()


class Decoder:
    """
    Tolerant decoder for documents following the tag convention.

    Problems are collected per member rather than stopping at the first
    one, so a single DecodeError reports every malformed field with its
    path from the root.

    Example:
        decoder = Decoder()
        person = decoder.decode("<Person><age>42</age></Person>", Person)
    """

    def __init__(
        self,
        booleans: BooleanSynonyms | None = None,
        registry: DescriptorRegistry | None = None,
    ):
        """
        Initialize the decoder.

        Args:
            booleans: Words accepted as true/false
            registry: Descriptor registry used to resolve types
        """
        self.booleans = booleans or BooleanSynonyms()
        self._registry = registry

    def decode(self, text: str, tp: Any) -> Any:
        """
        Decode a document whose root element is the type's root tag.

        Args:
            text: Markup containing the root element
            tp: Target type (annotation, pydantic model or TypeDescriptor)

        Returns:
            The decoded value

        Raises:
            DecodeError: If the root is missing or any member is malformed
        """
        descriptor = descriptor_of(tp, self._registry)
        if descriptor.kind is Kind.OPTIONAL:
            assert descriptor.inner is not None
            descriptor = descriptor.inner

        root_name = descriptor.root_name
        root = _find_root(parse_markup(text), root_name)
        if root is None:
            issue = DecodeIssue((root_name,), text, f"missing root element <{root_name}>")
            raise DecodeError([issue], raw_content=text)

        issues: list[DecodeIssue] = []
        value = self.decode_element(root, descriptor, (root_name,), issues)
        if issues:
            logger.debug(f"Decoding <{root_name}> produced {len(issues)} issue(s)")
            raise DecodeError(issues, raw_content=text)
        return value

    def decode_element(
        self,
        element: Element,
        descriptor: TypeDescriptor,
        path: Path,
        issues: list[DecodeIssue],
    ) -> Any:
        """Decode one element, appending any problems to ``issues``."""
        kind = descriptor.kind

        if kind is Kind.OPTIONAL:
            # Present element: the inner type decides, even for empty content
            assert descriptor.inner is not None
            return self.decode_element(element, descriptor.inner, path, issues)

        if kind is Kind.STRING:
            if not element.has_cdata:
                issues.append(
                    DecodeIssue(
                        path,
                        element.raw,
                        "string value must be wrapped in <![CDATA[...]]>",
                    )
                )
                return _INVALID
            return element.cdata

        if descriptor.is_leaf:
            if element.children:
                issues.append(
                    DecodeIssue(path, element.raw, "expected a plain value, found nested elements")
                )
                return _INVALID
            try:
                return self._coerce_leaf(descriptor, element.value_text)
            except ValueError as e:
                issues.append(DecodeIssue(path, element.raw, str(e)))
                return _INVALID

        if kind is Kind.RECORD:
            return self._decode_record(element, descriptor, path, issues)
        if kind is Kind.SEQUENCE:
            return self._decode_sequence(element, descriptor, path, issues)
        if kind is Kind.MAP:
            return self._decode_map(element, descriptor, path, issues)
        if kind is Kind.UNION:
            return self._decode_union(element, descriptor, path, issues)

        raise TypeError(f"Cannot decode descriptor of kind {kind}")

    def _coerce_leaf(self, descriptor: TypeDescriptor, text: str) -> Any:
        kind = descriptor.kind
        if kind is Kind.INTEGER:
            return parse_integer(text)
        if kind is Kind.FLOAT:
            return parse_float(text)
        if kind is Kind.BOOLEAN:
            return self.booleans.parse(text)
        return parse_choice(text, descriptor.choices)

    def _decode_record(
        self,
        element: Element,
        descriptor: TypeDescriptor,
        path: Path,
        issues: list[DecodeIssue],
    ) -> Any:
        start = len(issues)
        data: dict[str, Any] = {}

        for member in descriptor.members:
            member_path = path + (member.name,)
            matches = _find_member(element, member)
            assert member.field_name is not None

            if not matches:
                # Absent members fall back to the field default when there is one
                if member.descriptor.kind is Kind.OPTIONAL and member.required:
                    data[member.field_name] = None
                elif member.required:
                    issues.append(
                        DecodeIssue(member_path, element.raw, f"missing element <{member.name}>")
                    )
                continue

            if len(matches) > 1:
                issues.append(
                    DecodeIssue(
                        member_path,
                        "".join(m.raw for m in matches),
                        f"element <{member.name}> appears {len(matches)} times; "
                        "exactly one is allowed",
                    )
                )
                continue

            value = self.decode_element(matches[0], member.descriptor, member_path, issues)
            if value is not _INVALID:
                data[member.field_name] = value

        if len(issues) > start:
            return _INVALID

        try:
            return descriptor.python_type.model_validate(data)
        except ValidationError as e:
            for err in e.errors():
                loc = tuple(err["loc"])
                child = element.find(loc[0]) if loc and isinstance(loc[0], str) else None
                raw = child.raw if child is not None else element.raw
                issues.append(DecodeIssue(path + loc, raw, err["msg"]))
            return _INVALID

    def _decode_sequence(
        self,
        element: Element,
        descriptor: TypeDescriptor,
        path: Path,
        issues: list[DecodeIssue],
    ) -> Any:
        assert descriptor.inner is not None
        start = len(issues)
        values = [
            self.decode_element(item, descriptor.inner, path + (index,), issues)
            for index, item in enumerate(element.find_all(convention.ITEM_TAG))
        ]
        if len(issues) > start:
            return _INVALID
        container = descriptor.python_type or list
        if container is list:
            return values
        try:
            return container(values)
        except TypeError as e:
            issues.append(DecodeIssue(path, element.raw, f"elements cannot be collected: {e}"))
            return _INVALID

    def _decode_map(
        self,
        element: Element,
        descriptor: TypeDescriptor,
        path: Path,
        issues: list[DecodeIssue],
    ) -> Any:
        assert descriptor.key_type is not None and descriptor.value_type is not None
        start = len(issues)
        result: dict[Any, Any] = {}

        for index, entry in enumerate(element.find_all(convention.ENTRY_TAG)):
            entry_path = path + (index,)
            key_element = entry.find(convention.KEY_TAG)
            value_element = entry.find(convention.VALUE_TAG)
            if key_element is None or value_element is None:
                issues.append(
                    DecodeIssue(
                        entry_path,
                        entry.raw,
                        "each <entry> must contain one <key> and one <value>",
                    )
                )
                continue
            key = self.decode_element(
                key_element, descriptor.key_type, entry_path + (convention.KEY_TAG,), issues
            )
            value = self.decode_element(
                value_element, descriptor.value_type, entry_path + (convention.VALUE_TAG,), issues
            )
            if key is _INVALID or value is _INVALID:
                continue
            try:
                # Duplicate keys: the last entry wins
                result[key] = value
            except TypeError as e:
                issues.append(DecodeIssue(entry_path, entry.raw, f"key cannot be used: {e}"))

        if len(issues) > start:
            return _INVALID
        return result

    def _decode_union(
        self,
        element: Element,
        descriptor: TypeDescriptor,
        path: Path,
        issues: list[DecodeIssue],
    ) -> Any:
        present = [child for child in element.children if descriptor.member(child.tag)]
        names = ", ".join(f"<{v.name}>" for v in descriptor.members)

        if not present:
            issues.append(DecodeIssue(path, element.raw, f"expected exactly one of {names}"))
            return _INVALID
        if len(present) > 1:
            found = ", ".join(f"<{child.tag}>" for child in present)
            issues.append(
                DecodeIssue(
                    path,
                    element.raw,
                    f"found {len(present)} alternatives ({found}); exactly one of {names} is allowed",
                )
            )
            return _INVALID

        child = present[0]
        variant = descriptor.member(child.tag)
        assert variant is not None
        return self.decode_element(child, variant.descriptor, path + (variant.name,), issues)


def _find_root(document: Element, name: str) -> Element | None:
    """First element named ``name``, searching breadth-first."""
    queue = list(document.children)
    while queue:
        element = queue.pop(0)
        if element.tag == name:
            return element
        queue.extend(element.children)
    return None


def _find_member(element: Element, member: MemberDescriptor) -> list[Element]:
    matches = element.find_all(member.name)
    if matches:
        return matches
    folded = member.name.casefold()
    return [child for child in element.children if child.tag.casefold() == folded]


default_decoder = Decoder()


def decode(text: str, tp: Any) -> Any:
    """Decode ``text`` into ``tp`` with the default decoder."""
    return default_decoder.decode(text, tp)

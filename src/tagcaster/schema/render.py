"""Render type descriptors as annotated markup schemas for prompts."""

from collections.abc import Hashable, Mapping
from typing import Any

from ..markup import convention
from ..markup.convention import close_tag, comment, empty_tag, indent, open_tag
from .descriptor import DescriptorRegistry, Kind, TypeDescriptor, descriptor_of

# Placeholder shown inside the element, and a note on accepted formats
_LEAF_FORMATS: dict[Kind, tuple[str, str]] = {
    Kind.INTEGER: (
        "integer",
        "integer value, a whole number without a fractional part, e.g. 42, -7 or 0",
    ),
    Kind.FLOAT: (
        "number",
        "float value, a number that can have a fractional part, e.g. 3.14, -0.001 or 2.0",
    ),
    Kind.BOOLEAN: (
        "true or false",
        "boolean value: true/false, yes/no or 1/0 (是/否 and 真/假 are also accepted)",
    ),
    Kind.STRING: (
        "<![CDATA[text]]>",
        "string value written exactly as <![CDATA[actual text without any escaping]]>; "
        "an empty string is <![CDATA[]]>",
    ),
}


def render_schema(tp: Any, registry: DescriptorRegistry | None = None) -> str:
    """
    Render the schema text for a type.

    The result is one root element whose children document every member
    in declaration order. Each line carries the member description and the
    accepted format as an inline comment. Types already being expanded
    higher up the same branch are rendered as a short reference instead
    of being expanded again, so recursive types terminate.

    Args:
        tp: A pydantic model, supported annotation, or a TypeDescriptor
        registry: Descriptor registry (defaults to the process-wide one)

    Returns:
        The schema markup
    """
    descriptor = descriptor_of(tp, registry)
    if descriptor.kind is Kind.OPTIONAL and descriptor.inner is not None:
        descriptor = descriptor.inner
    lines = _render_element(descriptor.root_name, descriptor, descriptor.description, {})
    return "\n".join(lines)


def _render_element(
    tag: str,
    descriptor: TypeDescriptor,
    note: str | None,
    expanding: Mapping[Hashable, str],
) -> list[str]:
    notes: list[str | None] = [note]

    if descriptor.kind is Kind.OPTIONAL:
        notes.append(f"optional: omit the <{tag}> element entirely when there is no value")
        assert descriptor.inner is not None
        descriptor = descriptor.inner

    if descriptor.is_composite and descriptor.identity in expanding:
        descriptor = descriptor.shadow(expanding[descriptor.identity])

    kind = descriptor.kind

    if kind is Kind.SHADOW:
        return [f"{open_tag(tag)}...{close_tag(tag)}" + comment(*notes, descriptor.reference_text())]

    if descriptor.is_leaf:
        placeholder, hint = _leaf_format(descriptor)
        return [f"{open_tag(tag)}{placeholder}{close_tag(tag)}" + comment(*notes, hint)]

    if kind is Kind.RECORD:
        if not descriptor.members:
            return [f"{open_tag(tag)}{close_tag(tag)}" + comment(*notes)]
        nested = {**expanding, descriptor.identity: tag}
        body: list[str] = []
        for member in descriptor.members:
            body.extend(_render_element(member.name, member.descriptor, member.description, nested))
        return [open_tag(tag) + comment(*notes)] + indent(body) + [close_tag(tag)]

    if kind is Kind.SEQUENCE:
        assert descriptor.inner is not None
        body = _render_element(convention.ITEM_TAG, descriptor.inner, None, expanding)
        hint = (
            "zero or more <item> elements; "
            "wrap every element in <item></item>, even when there is only one"
        )
        return [open_tag(tag) + comment(*notes, hint)] + indent(body) + [close_tag(tag)]

    if kind is Kind.MAP:
        assert descriptor.key_type is not None and descriptor.value_type is not None
        entry = (
            _render_element(convention.KEY_TAG, descriptor.key_type, None, expanding)
            + _render_element(convention.VALUE_TAG, descriptor.value_type, None, expanding)
        )
        body = [open_tag(convention.ENTRY_TAG)] + indent(entry) + [close_tag(convention.ENTRY_TAG)]
        hint = "zero or more <entry> elements, each holding one <key> and one <value>"
        return [open_tag(tag) + comment(*notes, hint)] + indent(body) + [close_tag(tag)]

    if kind is Kind.UNION:
        nested = {**expanding, descriptor.identity: tag}
        body = []
        for number, variant in enumerate(descriptor.members, start=1):
            label = f"option {number}: {variant.name}"
            if variant.description:
                label = f"{label}. {variant.description}"
            body.append(comment(label).strip())
            body.extend(_render_variant(variant.name, variant.descriptor, nested))
        hint = "exactly one of the following alternatives"
        return [open_tag(tag) + comment(*notes, hint)] + indent(body) + [close_tag(tag)]

    raise TypeError(f"Cannot render descriptor of kind {kind}")


def _render_variant(
    tag: str, descriptor: TypeDescriptor, expanding: Mapping[Hashable, str]
) -> list[str]:
    if descriptor.kind is Kind.RECORD and not descriptor.members:
        return [empty_tag(tag)]
    return _render_element(tag, descriptor, None, expanding)


def _leaf_format(descriptor: TypeDescriptor) -> tuple[str, str]:
    if descriptor.kind is Kind.CHOICE:
        values = [convention.choice_text(choice) for choice in descriptor.choices]
        return " | ".join(values), "exactly one of the listed values"
    return _LEAF_FORMATS[descriptor.kind]

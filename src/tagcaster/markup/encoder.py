"""Render typed values as tagged markup."""

from typing import Any

from pydantic import BaseModel

from ..schema.descriptor import (
    DescriptorRegistry,
    Kind,
    MemberDescriptor,
    TypeDescriptor,
    descriptor_of,
)
from . import convention
from .convention import close_tag, empty_tag, indent, open_tag


def to_markup(value: Any, tp: Any = None, registry: DescriptorRegistry | None = None) -> str:
    """
    Render a value under the tag convention.

    The output is what a well-behaved model is expected to produce, so it
    doubles as a valid example for prompts.

    Args:
        value: The value to render
        tp: Its type; defaults to ``type(value)`` (enough for pydantic models)
        registry: Descriptor registry (defaults to the process-wide one)

    Returns:
        The markup document
    """
    descriptor = descriptor_of(tp if tp is not None else type(value), registry)
    if descriptor.kind is Kind.OPTIONAL:
        if value is None:
            raise ValueError("A missing value has no markup representation")
        assert descriptor.inner is not None
        descriptor = descriptor.inner
    return "\n".join(_encode_element(descriptor.root_name, descriptor, value))


def _encode_element(tag: str, descriptor: TypeDescriptor, value: Any) -> list[str]:
    """Lines for one element, or no lines for an absent optional."""
    if descriptor.kind is Kind.OPTIONAL:
        if value is None:
            return []
        assert descriptor.inner is not None
        descriptor = descriptor.inner

    kind = descriptor.kind

    if descriptor.is_leaf:
        return [f"{open_tag(tag)}{encode_leaf(descriptor, value)}{close_tag(tag)}"]

    if kind is Kind.RECORD:
        body = _encode_members(descriptor.members, value)
        if not body:
            return [f"{open_tag(tag)}{close_tag(tag)}"]
        return [open_tag(tag)] + indent(body) + [close_tag(tag)]

    if kind is Kind.SEQUENCE:
        assert descriptor.inner is not None
        body = []
        for element in value:
            if element is None:
                raise ValueError(f"None cannot be written as an <item> of <{tag}>")
            body.extend(_encode_element(convention.ITEM_TAG, descriptor.inner, element))
        if not body:
            return [f"{open_tag(tag)}{close_tag(tag)}"]
        return [open_tag(tag)] + indent(body) + [close_tag(tag)]

    if kind is Kind.MAP:
        assert descriptor.key_type is not None and descriptor.value_type is not None
        body = []
        for key, item in value.items():
            entry = _encode_element(convention.KEY_TAG, descriptor.key_type, key)
            entry += _encode_element(convention.VALUE_TAG, descriptor.value_type, item)
            body.extend(
                [open_tag(convention.ENTRY_TAG)]
                + indent(entry)
                + [close_tag(convention.ENTRY_TAG)]
            )
        if not body:
            return [f"{open_tag(tag)}{close_tag(tag)}"]
        return [open_tag(tag)] + indent(body) + [close_tag(tag)]

    if kind is Kind.UNION:
        variant = _select_variant(descriptor, value)
        if not variant.descriptor.members:
            body = [empty_tag(variant.name)]
        else:
            body = _encode_element(variant.name, variant.descriptor, value)
        return [open_tag(tag)] + indent(body) + [close_tag(tag)]

    raise TypeError(f"Cannot encode descriptor of kind {kind}")


def _encode_members(members: list[MemberDescriptor], model: BaseModel) -> list[str]:
    lines: list[str] = []
    for member in members:
        assert member.attribute is not None
        lines.extend(_encode_element(member.name, member.descriptor, getattr(model, member.attribute)))
    return lines


def _select_variant(descriptor: TypeDescriptor, value: Any) -> MemberDescriptor:
    for variant in descriptor.members:
        if type(value) is variant.descriptor.python_type:
            return variant
    for variant in descriptor.members:
        if isinstance(value, variant.descriptor.python_type):
            return variant
    names = ", ".join(v.name for v in descriptor.members)
    raise TypeError(f"{type(value).__name__} is not one of the variants: {names}")


def encode_leaf(descriptor: TypeDescriptor, value: Any) -> str:
    """Text content for a leaf value."""
    kind = descriptor.kind
    if kind is Kind.BOOLEAN:
        return "true" if value else "false"
    if kind is Kind.INTEGER:
        return str(int(value))
    if kind is Kind.FLOAT:
        return repr(float(value))
    if kind is Kind.STRING:
        return convention.wrap_cdata(str(value))
    if kind is Kind.CHOICE:
        return convention.choice_text(value)
    raise TypeError(f"{kind} is not a leaf kind")

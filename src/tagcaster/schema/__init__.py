"""Schema model: type descriptors, schema rendering and the schema cache."""

from .cache import SchemaCache, default_schema_cache, schema_for
from .descriptor import (
    DescriptorRegistry,
    Kind,
    MemberDescriptor,
    ShadowDescriptor,
    Tag,
    TypeDescriptor,
    default_registry,
    descriptor_of,
)
from .render import render_schema

__all__ = [
    # Descriptors
    "Kind",
    "Tag",
    "TypeDescriptor",
    "MemberDescriptor",
    "ShadowDescriptor",
    "DescriptorRegistry",
    "default_registry",
    "descriptor_of",
    # Rendering and caching
    "render_schema",
    "SchemaCache",
    "default_schema_cache",
    "schema_for",
]

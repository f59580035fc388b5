"""Process-wide memoization of rendered schema text."""

import logging
import threading
from collections.abc import Callable, Hashable
from typing import Any

from .descriptor import DescriptorRegistry, TypeDescriptor, default_registry, descriptor_of
from .render import render_schema

logger = logging.getLogger(__name__)

SchemaRenderer = Callable[[TypeDescriptor], str]


class SchemaCache:
    """
    Write-once cache of schema text keyed by type identity.

    The first request for a type renders and stores its schema; every later
    request, including concurrent first requests that lost the race, reads
    the stored text. Entries are never evicted or replaced.

    Example:
        cache = SchemaCache()
        schema = cache.schema_for(Person)
        assert cache.schema_for(Person) is schema
    """

    def __init__(
        self,
        registry: DescriptorRegistry | None = None,
        renderer: SchemaRenderer | None = None,
    ):
        """
        Initialize the schema cache.

        Args:
            registry: Descriptor registry used to resolve types
            renderer: Function turning a descriptor into schema text
        """
        self._registry = registry or default_registry
        self._renderer = renderer or render_schema
        self._schemas: dict[Hashable, str] = {}
        self._lock = threading.Lock()
        # Guards the counters; never held while rendering
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def schema_for(self, tp: Any) -> str:
        """Get the schema text for ``tp``, rendering it on first use."""
        descriptor = descriptor_of(tp, self._registry)
        key = descriptor.key

        schema = self._schemas.get(key)
        if schema is not None:
            self._count(hit=True)
            return schema

        with self._lock:
            schema = self._schemas.get(key)
            if schema is not None:
                self._count(hit=True)
                return schema
            self._count(hit=False)
            schema = self._renderer(descriptor)
            self._schemas[key] = schema
            logger.debug(f"Cached schema for <{descriptor.root_name}> ({len(schema)} chars)")
            return schema

    def _count(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def descriptor_for(self, tp: Any) -> TypeDescriptor:
        """Resolve ``tp`` through this cache's registry."""
        return descriptor_of(tp, self._registry)

    def __contains__(self, tp: Any) -> bool:
        return descriptor_of(tp, self._registry).key in self._schemas

    def size(self) -> int:
        """Get the number of cached schemas."""
        return len(self._schemas)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def stats(self) -> dict[str, int]:
        """Get cache statistics."""
        with self._stats_lock:
            return {
                "size": len(self._schemas),
                "hits": self._hits,
                "misses": self._misses,
            }


default_schema_cache = SchemaCache()


def schema_for(tp: Any, cache: SchemaCache | None = None) -> str:
    """Cached schema text for ``tp``."""
    return (cache or default_schema_cache).schema_for(tp)

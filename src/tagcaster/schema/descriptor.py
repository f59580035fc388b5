"""Type descriptors derived from Python annotations and pydantic models."""

import inspect
import logging
import threading
import types
from collections.abc import Hashable, Mapping, MutableSequence, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum, StrEnum
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel

from ..markup import convention

logger = logging.getLogger(__name__)


class Kind(StrEnum):
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    CHOICE = "choice"
    OPTIONAL = "optional"
    SEQUENCE = "sequence"
    MAP = "map"
    RECORD = "record"
    UNION = "union"
    SHADOW = "shadow"


LEAF_KINDS = frozenset({Kind.INTEGER, Kind.FLOAT, Kind.BOOLEAN, Kind.STRING, Kind.CHOICE})


@dataclass(frozen=True)
class Tag:
    """
    Name the root element of a type that is not a declared class.

    Example:
        Shape = Annotated[Circle | Square, Tag("Shape", "A drawable shape")]
    """

    name: str
    description: str | None = None


@dataclass(eq=False)
class MemberDescriptor:
    """A record field or a union variant."""

    name: str
    descriptor: "TypeDescriptor"
    description: str | None = None
    # Key used when validating the record (the field alias or name)
    field_name: str | None = None
    # Python attribute holding the value on model instances
    attribute: str | None = None
    required: bool = True


@dataclass(eq=False)
class TypeDescriptor:
    """Static description of the shape of a type."""

    kind: Kind
    root_name: str
    key: Hashable
    python_type: Any = None
    description: str | None = None
    members: list[MemberDescriptor] = field(default_factory=list)
    inner: "TypeDescriptor | None" = None
    key_type: "TypeDescriptor | None" = None
    value_type: "TypeDescriptor | None" = None
    choices: tuple[Any, ...] = ()
    # Key of the underlying type when this is a renamed (tagged) copy
    base_key: Hashable | None = None

    @property
    def identity(self) -> Hashable:
        """Key shared by a type and every tagged copy of it."""
        return self.base_key if self.base_key is not None else self.key

    @property
    def is_leaf(self) -> bool:
        return self.kind in LEAF_KINDS

    @property
    def is_composite(self) -> bool:
        """Records and unions; the only kinds that can form cycles."""
        return self.kind in (Kind.RECORD, Kind.UNION)

    def member(self, name: str) -> MemberDescriptor | None:
        for member in self.members:
            if member.name == name:
                return member
        return None

    def shadow(self, enclosing_tag: str | None = None) -> "ShadowDescriptor":
        """
        A non-expanding placeholder for this descriptor.

        Args:
            enclosing_tag: Tag of the element that already expands this type;
                defaults to the root name
        """
        return ShadowDescriptor(
            kind=Kind.SHADOW,
            root_name=self.root_name,
            key=self.key,
            python_type=self.python_type,
            description=self.description,
            base_key=self.identity,
            target=self,
            enclosing_tag=enclosing_tag or self.root_name,
        )


@dataclass(eq=False)
class ShadowDescriptor(TypeDescriptor):
    """Stands in for a type already being expanded further up the schema."""

    target: TypeDescriptor | None = None
    enclosing_tag: str | None = None

    def reference_text(self) -> str:
        tag = self.enclosing_tag or self.root_name
        return f"recursive: same structure as the enclosing <{tag}> element"


class DescriptorRegistry:
    """
    Arena of descriptors addressed by type identity.

    Descriptors of a single build are published together once the whole
    graph is complete, so concurrent readers never observe a record whose
    members are still being resolved.
    """

    def __init__(self) -> None:
        self._descriptors: dict[Hashable, TypeDescriptor] = {}
        self._lock = threading.Lock()

    def get(self, tp: Any) -> TypeDescriptor:
        """Get (building on first use) the descriptor for ``tp``."""
        key = _identity(tp)
        descriptor = self._descriptors.get(key)
        if descriptor is not None:
            return descriptor

        with self._lock:
            descriptor = self._descriptors.get(key)
            if descriptor is not None:
                return descriptor
            pending: dict[Hashable, TypeDescriptor] = {}
            descriptor = self._resolve(tp, pending)
            self._descriptors.update(pending)
            logger.debug(f"Built descriptor for {descriptor.root_name} ({len(pending)} new)")
            return descriptor

    def __contains__(self, tp: Any) -> bool:
        return _identity(tp) in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def _resolve(self, tp: Any, pending: dict[Hashable, TypeDescriptor]) -> TypeDescriptor:
        key = _identity(tp)
        existing = self._descriptors.get(key) or pending.get(key)
        if existing is not None:
            return existing
        descriptor = self._build(tp, key, pending)
        pending[key] = descriptor
        return descriptor

    def _build(
        self, tp: Any, key: Hashable, pending: dict[Hashable, TypeDescriptor]
    ) -> TypeDescriptor:
        origin = get_origin(tp)
        args = get_args(tp)

        if origin is Annotated:
            base, *metadata = args
            tag = next((m for m in metadata if isinstance(m, Tag)), None)
            inner = self._resolve(base, pending)
            if tag is None:
                return inner
            if not convention.is_valid_tag_name(tag.name):
                raise ValueError(f"Invalid root tag name: {tag.name!r}")
            return replace(
                inner,
                root_name=tag.name,
                key=key,
                description=tag.description or inner.description,
                base_key=inner.identity,
            )

        # bool before int: bool is an int subclass
        if tp is bool:
            return TypeDescriptor(Kind.BOOLEAN, convention.BOOLEAN_ROOT, key, bool)
        if tp is int:
            return TypeDescriptor(Kind.INTEGER, convention.INTEGER_ROOT, key, int)
        if tp is float:
            return TypeDescriptor(Kind.FLOAT, convention.FLOAT_ROOT, key, float)
        if tp is str:
            return TypeDescriptor(Kind.STRING, convention.STRING_ROOT, key, str)

        if isinstance(tp, type) and issubclass(tp, Enum):
            return TypeDescriptor(Kind.CHOICE, tp.__name__, key, tp, choices=tuple(tp))
        if origin is Literal:
            return TypeDescriptor(Kind.CHOICE, convention.CHOICE_ROOT, key, tp, choices=args)

        if origin is Union or origin is types.UnionType:
            return self._build_union(tp, key, args, pending)

        if origin in (list, tuple, set, frozenset, Sequence, MutableSequence):
            if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
                raise TypeError(f"Only homogeneous tuples (tuple[X, ...]) are supported: {tp!r}")
            if not args:
                raise TypeError(f"Sequence annotation needs an element type: {tp!r}")
            container = origin if origin in (list, tuple, set, frozenset) else list
            inner = self._resolve(args[0], pending)
            if container in (set, frozenset) and not _hashable(inner):
                raise TypeError(f"Set elements must be hashable: {tp!r}")
            return TypeDescriptor(
                Kind.SEQUENCE,
                convention.SEQUENCE_ROOT,
                key,
                container,
                inner=inner,
            )

        if origin in (dict, Mapping):
            if len(args) != 2:
                raise TypeError(f"Map annotation needs key and value types: {tp!r}")
            key_type = self._resolve(args[0], pending)
            if not _hashable(key_type):
                raise TypeError(f"Map keys must be hashable: {tp!r}")
            return TypeDescriptor(
                Kind.MAP,
                convention.MAP_ROOT,
                key,
                dict,
                key_type=key_type,
                value_type=self._resolve(args[1], pending),
            )

        if isinstance(tp, type) and issubclass(tp, BaseModel):
            return self._build_record(tp, key, pending)

        raise TypeError(f"Unsupported annotation for tagged output: {tp!r}")

    def _build_union(
        self,
        tp: Any,
        key: Hashable,
        args: tuple[Any, ...],
        pending: dict[Hashable, TypeDescriptor],
    ) -> TypeDescriptor:
        present = tuple(a for a in args if a is not type(None))
        if len(present) < len(args):
            inner_tp = present[0] if len(present) == 1 else Union[present]
            inner = self._resolve(inner_tp, pending)
            return TypeDescriptor(
                Kind.OPTIONAL,
                inner.root_name,
                key,
                tp,
                description=inner.description,
                inner=inner,
            )

        for variant in present:
            if not (isinstance(variant, type) and issubclass(variant, BaseModel)):
                raise TypeError(
                    f"Union variants must be pydantic models, got {variant!r} in {tp!r}"
                )

        descriptor = TypeDescriptor(Kind.UNION, convention.UNION_ROOT, key, tp)
        # Registered before the variants so recursive references resolve here
        pending[key] = descriptor
        seen: set[str] = set()
        for variant in present:
            name = variant.__name__
            if name in seen:
                raise ValueError(f"Duplicate variant name {name!r} in {tp!r}")
            seen.add(name)
            descriptor.members.append(
                MemberDescriptor(
                    name=name,
                    descriptor=self._resolve(variant, pending),
                    description=_summary(variant),
                )
            )
        return descriptor

    def _build_record(
        self,
        model: type[BaseModel],
        key: Hashable,
        pending: dict[Hashable, TypeDescriptor],
    ) -> TypeDescriptor:
        if not model.__pydantic_complete__:
            model.model_rebuild()

        descriptor = TypeDescriptor(
            Kind.RECORD,
            model.__name__,
            key,
            model,
            description=_summary(model),
        )
        pending[key] = descriptor

        for name, info in model.model_fields.items():
            tag = info.alias or name
            if not convention.is_valid_tag_name(tag):
                raise ValueError(f"Field {model.__name__}.{name} cannot be used as a tag: {tag!r}")
            if info.annotation is None:
                raise TypeError(f"Field {model.__name__}.{name} has no annotation")
            descriptor.members.append(
                MemberDescriptor(
                    name=tag,
                    descriptor=self._resolve(info.annotation, pending),
                    description=info.description,
                    field_name=tag,
                    attribute=name,
                    required=info.is_required(),
                )
            )
        return descriptor


def _hashable(descriptor: TypeDescriptor) -> bool:
    """Whether decoded values of this type can be set elements or map keys."""
    if descriptor.is_leaf:
        return True
    if descriptor.kind is Kind.OPTIONAL:
        return descriptor.inner is not None and _hashable(descriptor.inner)
    if descriptor.kind is Kind.SEQUENCE and descriptor.python_type in (tuple, frozenset):
        return descriptor.inner is not None and _hashable(descriptor.inner)
    if descriptor.kind is Kind.RECORD:
        return bool(descriptor.python_type.model_config.get("frozen"))
    return False


def _identity(tp: Any) -> Hashable:
    try:
        hash(tp)
    except TypeError:
        return repr(tp)
    return tp


def _summary(obj: Any) -> str | None:
    """First paragraph of an object's own docstring."""
    doc = obj.__dict__.get("__doc__") if hasattr(obj, "__dict__") else None
    if not doc:
        return None
    return inspect.cleandoc(doc).split("\n\n", 1)[0].replace("\n", " ")


default_registry = DescriptorRegistry()


def descriptor_of(tp: Any, registry: DescriptorRegistry | None = None) -> TypeDescriptor:
    """Get the type descriptor for an annotation."""
    if isinstance(tp, TypeDescriptor):
        return tp
    return (registry or default_registry).get(tp)

"""Tests for type descriptors, schema rendering and the schema cache."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from enum import StrEnum
from typing import Annotated, Literal

import pytest
from pydantic import BaseModel, Field

from tagcaster.schema import (
    DescriptorRegistry,
    Kind,
    SchemaCache,
    ShadowDescriptor,
    Tag,
    TypeDescriptor,
    descriptor_of,
    render_schema,
)


# Test models
class Color(StrEnum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"


class Person(BaseModel):
    """A person mentioned in the text."""

    name: str = Field(description="Full name")
    age: int
    tags: list[str] = Field(default_factory=list)
    email: str | None = None


class TreeNode(BaseModel):
    """A node of a tree."""

    label: str
    children: list["TreeNode"] = Field(default_factory=list)


class Department(BaseModel):
    name: str
    staff: list["Employee"]


class Employee(BaseModel):
    name: str
    department: Department | None = None


class Circle(BaseModel):
    """A round shape."""

    radius: float


class Square(BaseModel):
    side: float


class Nothing(BaseModel):
    """No shape at all."""


class Inventory(BaseModel):
    counts: dict[str, int]
    color: Color
    size: Literal["S", "M", "L"]


class Catalog(BaseModel):
    """A product catalog."""

    title: str
    tree: TreeNode


class TestDescriptors:
    """Tests for descriptor construction."""

    def test_leaf_root_names(self, registry: DescriptorRegistry) -> None:
        assert descriptor_of(int, registry).root_name == "integer"
        assert descriptor_of(float, registry).root_name == "number"
        assert descriptor_of(bool, registry).root_name == "boolean"
        assert descriptor_of(str, registry).root_name == "string"
        assert descriptor_of(list[int], registry).root_name == "list"
        assert descriptor_of(dict[str, int], registry).root_name == "map"

    def test_bool_is_not_integer(self, registry: DescriptorRegistry) -> None:
        assert descriptor_of(bool, registry).kind is Kind.BOOLEAN

    def test_record_members_in_declaration_order(self, registry: DescriptorRegistry) -> None:
        descriptor = descriptor_of(Person, registry)

        assert descriptor.kind is Kind.RECORD
        assert descriptor.root_name == "Person"
        assert descriptor.description == "A person mentioned in the text."
        assert [m.name for m in descriptor.members] == ["name", "age", "tags", "email"]
        assert descriptor.members[0].description == "Full name"
        assert descriptor.members[1].required is True
        assert descriptor.members[2].required is False
        assert descriptor.members[3].descriptor.kind is Kind.OPTIONAL

    def test_enum_and_literal_choices(self, registry: DescriptorRegistry) -> None:
        descriptor = descriptor_of(Inventory, registry)
        color = descriptor.member("color")
        size = descriptor.member("size")

        assert color is not None and color.descriptor.kind is Kind.CHOICE
        assert color.descriptor.choices == (Color.RED, Color.GREEN, Color.BLUE)
        assert size is not None and size.descriptor.choices == ("S", "M", "L")

    def test_recursive_descriptor_is_cyclic(self, registry: DescriptorRegistry) -> None:
        descriptor = descriptor_of(TreeNode, registry)
        children = descriptor.member("children")

        assert children is not None
        assert children.descriptor.kind is Kind.SEQUENCE
        assert children.descriptor.inner is descriptor

    def test_mutual_recursion(self, registry: DescriptorRegistry) -> None:
        department = descriptor_of(Department, registry)
        staff = department.member("staff")
        assert staff is not None and staff.descriptor.inner is not None

        employee = staff.descriptor.inner
        back = employee.member("department")
        assert back is not None and back.descriptor.inner is department

    def test_descriptor_is_memoized(self, registry: DescriptorRegistry) -> None:
        assert descriptor_of(Person, registry) is descriptor_of(Person, registry)
        assert Person in registry

    def test_union_of_models(self, registry: DescriptorRegistry) -> None:
        descriptor = descriptor_of(Circle | Square, registry)

        assert descriptor.kind is Kind.UNION
        assert descriptor.root_name == "OneOf"
        assert [v.name for v in descriptor.members] == ["Circle", "Square"]
        assert descriptor.members[0].description == "A round shape."

    def test_tag_names_root(self, registry: DescriptorRegistry) -> None:
        shape = Annotated[Circle | Square, Tag("Shape", "Something to draw")]
        descriptor = descriptor_of(shape, registry)

        assert descriptor.kind is Kind.UNION
        assert descriptor.root_name == "Shape"
        assert descriptor.description == "Something to draw"

    def test_optional_keeps_inner_root_name(self, registry: DescriptorRegistry) -> None:
        descriptor = descriptor_of(Person | None, registry)

        assert descriptor.kind is Kind.OPTIONAL
        assert descriptor.root_name == "Person"

    def test_descriptor_passthrough(self, registry: DescriptorRegistry) -> None:
        descriptor = descriptor_of(Person, registry)
        assert descriptor_of(descriptor) is descriptor

    def test_unsupported_annotations(self, registry: DescriptorRegistry) -> None:
        with pytest.raises(TypeError):
            descriptor_of(complex, registry)
        with pytest.raises(TypeError, match="homogeneous"):
            descriptor_of(tuple[int, str], registry)
        with pytest.raises(TypeError, match="pydantic models"):
            descriptor_of(int | str, registry)

    def test_unhashable_set_elements_and_map_keys(self, registry: DescriptorRegistry) -> None:
        with pytest.raises(TypeError, match="Set elements must be hashable"):
            descriptor_of(set[Circle], registry)
        with pytest.raises(TypeError, match="Set elements must be hashable"):
            descriptor_of(frozenset[list[int]], registry)
        with pytest.raises(TypeError, match="Map keys must be hashable"):
            descriptor_of(dict[Circle, int], registry)

        assert descriptor_of(set[tuple[int, ...]], registry).kind is Kind.SEQUENCE
        assert descriptor_of(dict[Color | None, str], registry).kind is Kind.MAP

    def test_tagged_copy_shares_identity(self, registry: DescriptorRegistry) -> None:
        plain = descriptor_of(TreeNode, registry)
        tagged = descriptor_of(Annotated[TreeNode, Tag("Tree")], registry)

        assert tagged.root_name == "Tree"
        assert tagged.key != plain.key
        assert tagged.identity == plain.identity

    def test_invalid_tag_name(self, registry: DescriptorRegistry) -> None:
        with pytest.raises(ValueError, match="Invalid root tag name"):
            descriptor_of(Annotated[int, Tag("1st")], registry)


class TestRenderSchema:
    """Tests for schema text rendering."""

    def test_leaf_root(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(int, registry)
        assert schema.startswith("<integer>integer</integer> <!-- integer value")

    def test_record_has_one_root_and_ordered_members(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Person, registry)
        lines = schema.splitlines()

        assert lines[0] == "<Person> <!-- A person mentioned in the text. -->"
        assert lines[-1] == "</Person>"
        assert schema.count("<Person>") == 1
        positions = [schema.index(f"<{tag}>") for tag in ("name", "age", "tags", "email")]
        assert positions == sorted(positions)

    def test_member_lines(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Person, registry)

        assert "  <name><![CDATA[text]]></name> <!-- Full name; string value" in schema
        assert "  <age>integer</age>" in schema
        assert "zero or more <item> elements" in schema
        assert "    <item><![CDATA[text]]></item>" in schema
        assert "optional: omit the <email> element entirely when there is no value" in schema

    def test_choices_and_map(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Inventory, registry)

        assert "<color>red | green | blue</color>" in schema
        assert "<size>S | M | L</size>" in schema
        assert "<entry>" in schema
        assert "<key><![CDATA[text]]></key>" in schema
        assert "<value>integer</value>" in schema

    def test_recursive_schema_terminates(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(TreeNode, registry)

        roots = [line for line in schema.splitlines() if line.startswith("<TreeNode>")]
        assert len(roots) == 1
        assert (
            "<item>...</item> <!-- recursive: same structure as the enclosing "
            "<TreeNode> element -->" in schema
        )

    def test_tagged_recursive_root_expands_once(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Annotated[TreeNode, Tag("Tree")], registry)

        assert schema.splitlines()[0] == "<Tree> <!-- A node of a tree. -->"
        assert schema.count("<label>") == 1
        assert "enclosing <Tree> element" in schema
        assert "<TreeNode>" not in schema

    def test_recursion_below_the_root(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Catalog, registry)

        assert schema.count("<label>") == 1
        assert (
            "<item>...</item> <!-- recursive: same structure as the enclosing "
            "<tree> element -->" in schema
        )
        assert "<TreeNode>" not in schema

    def test_mutual_recursion_terminates(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Department, registry)

        roots = [line for line in schema.splitlines() if line.startswith("<Department>")]
        assert len(roots) == 1
        assert "<department>...</department>" in schema
        assert "enclosing <Department> element" in schema

    def test_union_schema(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Circle | Square | Nothing, registry)

        assert schema.splitlines()[0] == (
            "<OneOf> <!-- exactly one of the following alternatives -->"
        )
        assert "<!-- option 1: Circle. A round shape. -->" in schema
        assert "<!-- option 2: Square -->" in schema
        assert "<!-- option 3: Nothing. No shape at all. -->" in schema
        assert "<Nothing/>" in schema
        assert "<radius>number</radius>" in schema

    def test_empty_record(self, registry: DescriptorRegistry) -> None:
        schema = render_schema(Nothing, registry)
        assert schema == "<Nothing></Nothing> <!-- No shape at all. -->"

    def test_comments_never_contain_double_dash(self, registry: DescriptorRegistry) -> None:
        class Flagged(BaseModel):
            flag: bool = Field(description="set with --force")

        schema = render_schema(Flagged, registry)
        for line in schema.splitlines():
            if "<!--" in line:
                body = line.split("<!--", 1)[1].rsplit("-->", 1)[0]
                assert "--" not in body

    def test_shadow_descriptor(self, registry: DescriptorRegistry) -> None:
        descriptor = descriptor_of(TreeNode, registry)
        shadow = descriptor.shadow()

        assert isinstance(shadow, ShadowDescriptor)
        assert shadow.kind is Kind.SHADOW
        assert shadow.target is descriptor
        assert "<TreeNode>" in shadow.reference_text()
        assert "<tree>" in descriptor.shadow("tree").reference_text()


class TestSchemaCache:
    """Tests for SchemaCache."""

    def test_schema_computed_once(self, schema_cache: SchemaCache) -> None:
        first = schema_cache.schema_for(Person)
        second = schema_cache.schema_for(Person)

        assert first is second
        assert schema_cache.stats() == {"size": 1, "hits": 1, "misses": 1}
        assert Person in schema_cache

    def test_concurrent_first_requests(self, registry: DescriptorRegistry) -> None:
        calls: list[TypeDescriptor] = []

        def slow_renderer(descriptor: TypeDescriptor) -> str:
            calls.append(descriptor)
            time.sleep(0.05)
            return render_schema(descriptor)

        cache = SchemaCache(registry=registry, renderer=slow_renderer)
        workers = 8
        barrier = threading.Barrier(workers)

        def request() -> str:
            barrier.wait()
            return cache.schema_for(TreeNode)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda _: request(), range(workers)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)
        assert cache.size() == 1

    def test_distinct_types_get_distinct_entries(self, schema_cache: SchemaCache) -> None:
        schema_cache.schema_for(Person)
        schema_cache.schema_for(list[Person])

        assert schema_cache.size() == 2
        assert schema_cache.schema_for(list[Person]).startswith("<list>")

    def test_concurrent_hits_all_counted(self, schema_cache: SchemaCache) -> None:
        schema_cache.schema_for(Person)
        workers, calls = 8, 250

        def request() -> None:
            for _ in range(calls):
                schema_cache.schema_for(Person)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            for future in [executor.submit(request) for _ in range(workers)]:
                future.result()

        assert schema_cache.stats() == {"size": 1, "hits": workers * calls, "misses": 1}

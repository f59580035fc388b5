"""Tests for the tag convention, the markup reader and extraction."""

import pytest
from pydantic import BaseModel

from tagcaster.markup import convention, extract_root, parse_markup
from tagcaster.markup.encoder import to_markup
from tagcaster.types import ExtractionError


class Point(BaseModel):
    x: int
    y: int
    label: str | None = None


class TestConvention:
    """Tests for convention helpers."""

    def test_wrap_cdata(self) -> None:
        assert convention.wrap_cdata("a < b & c") == "<![CDATA[a < b & c]]>"

    def test_wrap_cdata_splits_terminator(self) -> None:
        assert convention.wrap_cdata("x]]>y") == "<![CDATA[x]]]]><![CDATA[>y]]>"

    def test_comment(self) -> None:
        assert convention.comment("first", None, " second ") == " <!-- first; second -->"
        assert convention.comment(None, "") == ""
        assert convention.comment("a--b") == " <!-- a- -b -->"

    def test_tag_names(self) -> None:
        assert convention.is_valid_tag_name("first_name")
        assert convention.is_valid_tag_name("x-y.z")
        assert not convention.is_valid_tag_name("1st")
        assert not convention.is_valid_tag_name("has space")
        assert not convention.is_valid_tag_name("")


class TestParseMarkup:
    """Tests for the tolerant reader."""

    def test_nested_elements(self) -> None:
        document = parse_markup("<Point><x>1</x><y> 2 </y></Point>")
        point = document.find("Point")

        assert point is not None
        assert [child.tag for child in point.children] == ["x", "y"]
        assert point.find("y").text == " 2 "  # type: ignore[union-attr]

    def test_cdata_sections_are_concatenated(self) -> None:
        document = parse_markup("<s><![CDATA[x]]]]><![CDATA[>y]]></s>")
        element = document.find("s")

        assert element is not None
        assert element.has_cdata
        assert element.cdata == "x]]>y"

    def test_cdata_hides_markup(self) -> None:
        document = parse_markup("<s><![CDATA[<b>not a tag</b>]]></s>")
        element = document.find("s")

        assert element is not None
        assert element.children == []
        assert element.cdata == "<b>not a tag</b>"

    def test_entities_unescaped_in_text(self) -> None:
        element = parse_markup("<v>a &lt; b &amp; c</v>").find("v")
        assert element is not None and element.text == "a < b & c"

    def test_attributes_comments_and_declarations_ignored(self) -> None:
        text = '<?xml version="1.0"?><Point kind="2d"><!-- note --><x>1</x></Point>'
        point = parse_markup(text).find("Point")

        assert point is not None
        assert [child.tag for child in point.children] == ["x"]
        assert point.text == ""

    def test_self_closing(self) -> None:
        element = parse_markup("<Shape><Nothing/></Shape>").find("Shape")

        assert element is not None
        assert element.children[0].tag == "Nothing"
        assert element.children[0].self_closing

    def test_unclosed_element_closed_by_parent(self) -> None:
        point = parse_markup("<Point><x>1<y>2</y></Point>").find("Point")

        assert point is not None
        x = point.find("x")
        assert x is not None
        assert [child.tag for child in x.children] == ["y"]

    def test_stray_close_tag_kept_as_text(self) -> None:
        element = parse_markup("<v>1</w></v>").find("v")
        assert element is not None and element.text == "1</w>"

    def test_raw_is_inner_markup(self) -> None:
        element = parse_markup("<v><![CDATA[hi]]></v>").find("v")
        assert element is not None and element.raw == "<![CDATA[hi]]>"


class TestExtractRoot:
    """Tests for isolating the root element in a response."""

    def test_surrounding_prose_ignored(self) -> None:
        content = "Sure! Here it is:\n```xml\n<Point><x>1</x><y>2</y></Point>\n```\nDone."
        assert extract_root(content, "Point") == "<Point><x>1</x><y>2</y></Point>"

    def test_first_root_wins(self) -> None:
        content = "<Point><x>1</x></Point> or maybe <Point><x>2</x></Point>"
        assert extract_root(content, "Point") == "<Point><x>1</x></Point>"

    def test_nested_same_name(self) -> None:
        content = "<Node><Node>inner</Node></Node> tail </Node>"
        assert extract_root(content, "Node") == "<Node><Node>inner</Node></Node>"

    def test_closing_tag_inside_cdata_skipped(self) -> None:
        content = "<Note><text><![CDATA[write </Note> here]]></text></Note>"
        assert extract_root(content, "Note") == content

    def test_attributes_tolerated(self) -> None:
        content = '<Point version="1"><x>1</x></Point>'
        assert extract_root(content, "Point") == content

    def test_self_closing_root(self) -> None:
        assert extract_root("answer: <Nothing/>", "Nothing") == "<Nothing/>"

    def test_missing_root(self) -> None:
        with pytest.raises(ExtractionError, match="cannot find the root <Point>") as exc_info:
            extract_root("I could not find any point.", "Point")

        assert exc_info.value.root_name == "Point"
        assert exc_info.value.raw_content == "I could not find any point."

    def test_unclosed_root(self) -> None:
        with pytest.raises(ExtractionError, match="never closed with </Point>"):
            extract_root("<Point><x>1</x>", "Point")


class TestToMarkup:
    """Tests for the encoder."""

    def test_record(self) -> None:
        assert to_markup(Point(x=1, y=2, label="origin")) == (
            "<Point>\n"
            "  <x>1</x>\n"
            "  <y>2</y>\n"
            "  <label><![CDATA[origin]]></label>\n"
            "</Point>"
        )

    def test_absent_optional_omitted(self) -> None:
        assert "<label>" not in to_markup(Point(x=1, y=2))

    def test_sequence_and_map(self) -> None:
        assert to_markup([1, 2], list[int]) == (
            "<list>\n  <item>1</item>\n  <item>2</item>\n</list>"
        )
        assert to_markup({}, dict[str, int]) == "<map></map>"
        assert to_markup({"a": True}, dict[str, bool]) == (
            "<map>\n"
            "  <entry>\n"
            "    <key><![CDATA[a]]></key>\n"
            "    <value>true</value>\n"
            "  </entry>\n"
            "</map>"
        )

    def test_none_item_rejected(self) -> None:
        with pytest.raises(ValueError, match="<item>"):
            to_markup([1, None], list[int | None])

    def test_missing_root_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            to_markup(None, Point | None)

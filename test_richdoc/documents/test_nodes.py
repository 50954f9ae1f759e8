"""Test suite for `richdoc.documents.nodes` module."""

from __future__ import annotations

from lxml import etree

from richdoc.documents.nodes import (
    ElementLike,
    ElementNode,
    TextLike,
    TextNode,
    is_element,
    is_text,
    nodes_from_lxml,
    tag_name_of,
)


class DescribeElementNode:
    """Unit-test suite for `richdoc.documents.nodes.ElementNode` objects."""

    def it_lower_cases_its_tag_name(self):
        assert ElementNode("DIV").tag_name == "div"

    def it_accepts_attributes_as_pairs_or_as_a_mapping(self):
        assert ElementNode("a", [("href", "/x")]).attributes == [("href", "/x")]
        assert ElementNode("a", {"href": "/x"}).attributes == [("href", "/x")]

    def it_takes_the_last_value_of_a_repeated_attribute(self):
        element = ElementNode("a", [("href", "/first"), ("title", "t"), ("href", "/last")])

        assert element.get_attribute("href") == "/last"

    def but_it_returns_None_for_an_attribute_it_does_not_have(self):
        assert ElementNode("a").get_attribute("href") is None

    def it_knows_its_class_name(self):
        assert ElementNode("span", {"class": "bold"}).class_name == "bold"
        assert ElementNode("span").class_name == ""

    def it_can_have_children_appended(self):
        element = ElementNode("p", child_nodes=[TextNode("a")])

        element.append_child(TextNode("b"))

        assert len(element) == 2
        assert [child.value for child in element] == ["a", "b"]  # pyright: ignore

    def it_satisfies_the_element_interface(self):
        element = ElementNode("p")

        assert isinstance(element, ElementLike)
        assert is_element(element)
        assert not is_text(element)


class DescribeTextNode:
    """Unit-test suite for `richdoc.documents.nodes.TextNode` objects."""

    def it_satisfies_the_text_interface(self):
        text = TextNode("Hello")

        assert isinstance(text, TextLike)
        assert is_text(text)
        assert not is_element(text)
        assert text.value == "Hello"


def test_tag_name_of_lower_cases_the_tag_name_reported_by_the_element(mocker):
    element = mocker.Mock(spec=ElementLike, tag_name="BLOCKQUOTE")

    assert tag_name_of(element) == "blockquote"


class Describe_nodes_from_lxml:
    """Unit-test suite for `richdoc.documents.nodes.nodes_from_lxml()`."""

    def it_turns_element_text_and_child_tails_into_sibling_text_nodes(self):
        p = etree.fromstring("<p>Text <b>bold child</b> tail of child</p>")

        node = nodes_from_lxml(p)

        assert node.tag_name == "p"
        children = node.child_nodes
        assert len(children) == 3
        assert children[0].value == "Text "  # pyright: ignore
        assert children[1].tag_name == "b"  # pyright: ignore
        assert children[1].child_nodes[0].value == "bold child"  # pyright: ignore
        assert children[2].value == " tail of child"  # pyright: ignore

    def it_keeps_the_attributes_in_document_order(self):
        a = etree.fromstring('<a href="/x" title="T" data-id="7">link</a>')

        assert nodes_from_lxml(a).attributes == [("href", "/x"), ("title", "T"), ("data-id", "7")]

    def it_skips_comments_but_keeps_their_tails(self):
        p = etree.fromstring("<p>a<!-- note -->b</p>")

        node = nodes_from_lxml(p)

        assert [child.value for child in node.child_nodes] == ["a", "b"]  # pyright: ignore

    def it_strips_the_namespace_from_tag_names(self):
        div = etree.fromstring('<div xmlns="http://www.w3.org/1999/xhtml"><p>x</p></div>')

        node = nodes_from_lxml(div)

        assert node.tag_name == "div"
        assert node.child_nodes[0].tag_name == "p"  # pyright: ignore

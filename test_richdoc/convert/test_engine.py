"""Test suite for `richdoc.convert.engine` module."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from richdoc.convert.classifiers import InlineCreators, PartialBlock, Style
from richdoc.convert.engine import ContentGenerator, ConversionOptions, convert
from richdoc.documents.model import BlockType, Document, Entity, EntityType, InlineStyle
from richdoc.documents.nodes import ElementLike, ElementNode, TextNode
from richdoc.errors import TreeDepthExceededError
from test_richdoc.unit_utils import LogCaptureFixture, MonkeyPatch, el

# ================================================================================================
# END-TO-END SCENARIOS
# ================================================================================================


def test_a_plain_div_converts_to_one_unstyled_block():
    document = convert(el("div", "Hello World"))

    assert len(document) == 1
    block = document.blocks[0]
    assert block.type == BlockType.UNSTYLED
    assert block.text == "Hello World"
    assert block.inline_style_ranges() == []
    assert block.entity_ranges() == []
    assert document.entity_map == {}


def test_a_block_classifier_can_set_block_data_without_changing_the_type():
    def block_classifier(element: ElementLike) -> Optional[dict[str, Any]]:
        if element.tag_name == "p":
            return {"data": {"textAlign": element.get_attribute("align")}}
        return None

    document = convert(el("p", "Right", align="right"), block_classifier=block_classifier)

    block = document.blocks[0]
    assert block.type == BlockType.UNSTYLED
    assert block.data == {"textAlign": "right"}


def test_an_inline_classifier_can_set_a_style_or_an_entity():
    def inline_classifier(element: ElementLike, creators: InlineCreators):
        class_name = element.get_attribute("class")
        if class_name == "bold":
            return creators.style(InlineStyle.BOLD)
        if class_name == "link":
            return creators.entity(EntityType.LINK, {"url": "/abc"})
        return None

    root = el("div", el("span", "Hello", class_="bold"), el("span", "World", class_="link"))

    document = convert(root, inline_classifier=inline_classifier)

    block = document.blocks[0]
    assert block.text == "HelloWorld"
    assert block.inline_style_ranges() == [{"offset": 0, "length": 5, "style": "BOLD"}]
    assert block.entity_ranges() == [{"offset": 5, "length": 5, "key": 0}]
    assert document.get_entity(0).type == EntityType.LINK
    assert document.get_entity(0).data == {"url": "/abc"}


def test_a_lone_img_converts_to_a_single_character_covered_by_an_image_entity():
    document = convert(el("img", src="x.jpg"))

    assert len(document) == 1
    block = document.blocks[0]
    assert block.text == "\u00a0"
    assert block.entity_ranges() == [{"offset": 0, "length": 1, "key": 0}]
    assert document.get_entity(0) == Entity(EntityType.IMAGE, data={"src": "x.jpg"})


def test_a_link_with_a_data_url_creates_no_entity():
    document = convert(el("a", "text", href="data:text/html;base64,xx"))

    block = document.blocks[0]
    assert block.text == "text"
    assert block.entity_ranges() == []
    assert document.entity_map == {}


def test_list_items_convert_to_list_item_blocks_at_depth_zero():
    document = convert(el("ul", el("li", "a"), el("li", "b")))

    assert [(b.type, b.text, b.depth) for b in document] == [
        (BlockType.UNORDERED_LIST_ITEM, "a", 0),
        (BlockType.UNORDERED_LIST_ITEM, "b", 0),
    ]


# ================================================================================================
# UNIT TESTS
# ================================================================================================


def _summary(document: Document) -> list[tuple[str, str]]:
    return [(block.type, block.text) for block in document]


class DescribeConvert:
    """Unit-test suite for `richdoc.convert.engine.convert()`."""

    def it_accepts_options_as_keyword_arguments(self):
        document = convert(el("mark", "x"), element_styles={"mark": "HIGHLIGHT"})

        assert document.blocks[0].inline_style_ranges()[0]["style"] == "HIGHLIGHT"

    def and_it_accepts_an_options_object(self):
        options = ConversionOptions(element_styles={"mark": "HIGHLIGHT"})

        document = convert(el("mark", "x"), options)

        assert document.blocks[0].inline_style_ranges()[0]["style"] == "HIGHLIGHT"

    def and_keyword_arguments_override_fields_of_the_options_object(self):
        options = ConversionOptions(element_styles={"mark": "HIGHLIGHT"})

        document = convert(el("mark", "x"), options, element_styles={"mark": "MARKED"})

        assert document.blocks[0].inline_style_ranges()[0]["style"] == "MARKED"

    def it_uses_a_fresh_entity_key_space_for_each_conversion(self):
        root = el("a", "link", href="/x")

        assert convert(root).entity_map.keys() == {0}
        assert convert(root).entity_map.keys() == {0}


class DescribeContentGenerator:
    """Unit-test suite for `richdoc.convert.engine.ContentGenerator` objects."""

    # -- block structure ---------------------------------------------

    def it_never_produces_a_document_without_blocks(self):
        document = ContentGenerator().process(el("body"))

        assert _summary(document) == [(BlockType.UNSTYLED, "")]

    def and_it_drops_blocks_that_are_empty_after_whitespace_normalization(self):
        root = el("body", "\n  ", el("p", "One"), "\n  ", el("div", " \t "), el("p", "Two"), "\n")

        document = ContentGenerator().process(root)

        assert _summary(document) == [(BlockType.UNSTYLED, "One"), (BlockType.UNSTYLED, "Two")]

    def it_splits_a_nested_block_out_after_its_parent(self):
        root = el("div", "before ", el("p", "inner"), " after")

        document = ContentGenerator().process(root)

        assert _summary(document) == [
            (BlockType.UNSTYLED, "before after"),
            (BlockType.UNSTYLED, "inner"),
        ]

    @pytest.mark.parametrize(
        ("tag_name", "expected_type"),
        [
            ("h1", BlockType.HEADER_ONE),
            ("h6", BlockType.HEADER_SIX),
            ("blockquote", BlockType.BLOCKQUOTE),
            ("figure", BlockType.ATOMIC),
            ("section", BlockType.UNSTYLED),
        ],
    )
    def it_types_a_block_by_its_tag(self, tag_name: str, expected_type: str):
        document = ContentGenerator().process(el("body", el(tag_name, "x")))

        assert _summary(document) == [(expected_type, "x")]

    def it_gives_an_unstyled_wrapper_the_type_of_its_enclosing_block(self):
        root = el("blockquote", el("div", "quoted"), el("p", "also quoted"))

        document = ContentGenerator().process(root)

        assert _summary(document) == [
            (BlockType.BLOCKQUOTE, "quoted"),
            (BlockType.BLOCKQUOTE, "also quoted"),
        ]

    def but_not_when_the_block_classifier_chose_the_unstyled_type(self):
        def block_classifier(element: ElementLike):
            return PartialBlock(type=BlockType.UNSTYLED) if element.tag_name == "p" else None

        root = el("blockquote", el("p", "not quoted"))

        document = convert(root, block_classifier=block_classifier)

        assert _summary(document) == [(BlockType.UNSTYLED, "not quoted")]

    def it_lets_the_block_classifier_override_the_built_in_type(self):
        document = convert(el("h1", "x"), block_classifier=lambda e: {"type": "atomic"})

        assert _summary(document) == [(BlockType.ATOMIC, "x")]

    def it_applies_block_type_overrides_before_the_built_in_tag_table(self):
        root = el("body", el("div", "a"), el("h1", "b"))

        document = convert(
            root, block_type_overrides={"div": BlockType.HEADER_TWO, "h1": BlockType.BLOCKQUOTE}
        )

        assert _summary(document) == [(BlockType.HEADER_TWO, "a"), (BlockType.BLOCKQUOTE, "b")]

    def it_renders_no_block_for_a_special_element_but_does_render_its_children(self):
        root = el("table", el("tr", "stray", el("td", "cell")))

        document = ContentGenerator().process(root)

        assert _summary(document) == [(BlockType.UNSTYLED, "cell")]

    # -- lists -------------------------------------------------------

    def it_types_a_list_item_by_the_list_that_contains_it(self):
        root = el("body", el("ol", el("li", "first")), el("ul", el("li", "bullet")))

        document = ContentGenerator().process(root)

        assert _summary(document) == [
            (BlockType.ORDERED_LIST_ITEM, "first"),
            (BlockType.UNORDERED_LIST_ITEM, "bullet"),
        ]

    def it_gives_a_nested_list_item_a_greater_depth(self):
        root = el(
            "ul",
            el("li", "a", el("ol", el("li", "a.1", el("ul", el("li", "a.1.i"))))),
            el("li", "b"),
        )

        document = ContentGenerator().process(root)

        assert [(b.type, b.text, b.depth) for b in document] == [
            (BlockType.UNORDERED_LIST_ITEM, "a", 0),
            (BlockType.ORDERED_LIST_ITEM, "a.1", 1),
            (BlockType.UNORDERED_LIST_ITEM, "a.1.i", 2),
            (BlockType.UNORDERED_LIST_ITEM, "b", 0),
        ]

    def it_matches_tag_names_without_regard_to_case(self):
        root = _UpperCaseElement(
            "DIV",
            _UpperCaseElement(
                "OL",
                _UpperCaseElement(
                    "LI",
                    _UpperCaseElement("B", TextNode("x")),
                    _UpperCaseElement("A", TextNode("y"), href="/y"),
                ),
            ),
        )

        document = ContentGenerator().process(root)

        block = document.blocks[0]
        assert (block.type, block.text, block.depth) == (BlockType.ORDERED_LIST_ITEM, "xy", 0)
        assert block.inline_style_ranges() == [{"offset": 0, "length": 1, "style": "BOLD"}]
        assert block.entity_ranges() == [{"offset": 1, "length": 1, "key": 0}]
        assert document.get_entity(0).data == {"url": "/y"}

    def it_gives_depth_zero_to_a_block_that_is_not_a_list_item(self):
        root = el("ul", el("li", "a", el("div", "continued")))

        document = ContentGenerator().process(root)

        # -- the div inherits the list-item type, but not a list-item depth --
        assert [(b.type, b.text, b.depth) for b in document] == [
            (BlockType.UNORDERED_LIST_ITEM, "a", 0),
            (BlockType.UNORDERED_LIST_ITEM, "continued", 0),
        ]

    # -- code blocks -------------------------------------------------

    def it_preserves_whitespace_in_a_code_block(self):
        root = el("pre", "\ndef f():\n    return  1")

        document = ContentGenerator().process(root)

        assert _summary(document) == [(BlockType.CODE, "def f():\n    return  1")]

    def it_records_the_language_of_a_code_block(self):
        document = ContentGenerator().process(el("pre", "x = 1", data_language="python"))

        assert document.blocks[0].data == {"language": "python"}

    def but_not_the_language_of_a_block_of_another_type(self):
        document = ContentGenerator().process(el("div", "x = 1", data_language="python"))

        assert document.blocks[0].data == {}

    # -- text --------------------------------------------------------

    def it_collapses_whitespace_across_inline_boundaries(self):
        root = el("p", "  Hello \n", el("b", "  big  "), "\t world  ")

        document = ContentGenerator().process(root)

        block = document.blocks[0]
        assert block.text == "Hello big world"
        assert block.inline_style_ranges() == [{"offset": 6, "length": 4, "style": "BOLD"}]

    def it_normalizes_carriage_returns_in_source_text(self):
        document = ContentGenerator().process(el("pre", "a\r\nb\rc"))

        assert document.blocks[0].text == "a\nb\nc"

    def it_turns_a_br_into_a_soft_line_break(self):
        document = ContentGenerator().process(el("p", "one ", el("br"), " two"))

        assert document.blocks[0].text == "one\ntwo"

    def and_it_turns_a_zero_width_space_into_a_soft_line_break(self):
        document = ContentGenerator().process(el("p", "one\u200btwo"))

        assert document.blocks[0].text == "one\ntwo"

    def it_keeps_a_block_that_holds_only_a_br(self):
        root = el("body", el("p", "a"), el("p", el("br")), el("p", "b"))

        document = ContentGenerator().process(root)

        assert _summary(document) == [
            (BlockType.UNSTYLED, "a"),
            (BlockType.UNSTYLED, ""),
            (BlockType.UNSTYLED, "b"),
        ]

    def it_converts_a_bare_text_root(self):
        document = ContentGenerator().process(TextNode("  just text "))

        assert _summary(document) == [(BlockType.UNSTYLED, "just text")]

    # -- inline styles and entities ----------------------------------

    def it_accumulates_nested_inline_styles(self):
        root = el("p", el("b", "bold ", el("i", "both")), " plain")

        document = ContentGenerator().process(root)

        block = document.blocks[0]
        assert block.text == "bold both plain"
        assert block.inline_style_ranges() == [
            {"offset": 0, "length": 9, "style": "BOLD"},
            {"offset": 5, "length": 4, "style": "ITALIC"},
        ]

    def it_does_not_carry_inline_styles_into_a_nested_block(self):
        root = el("div", el("b", "bold", el("p", "inner")))

        document = ContentGenerator().process(root)

        assert [b.inline_style_ranges() for b in document] == [
            [{"offset": 0, "length": 4, "style": "BOLD"}],
            [],
        ]

    def it_creates_a_link_entity_with_the_anchor_attributes(self):
        root = el("p", "see ", el("a", "here", href="/x", title="X", data_id="7"))

        document = ContentGenerator().process(root)

        assert document.blocks[0].entity_ranges() == [{"offset": 4, "length": 4, "key": 0}]
        assert document.get_entity(0) == Entity(
            EntityType.LINK, data={"url": "/x", "title": "X", "data-id": "7"}
        )

    def it_creates_one_entity_per_link_even_when_the_links_are_identical(self):
        root = el("p", el("a", "a", href="/x"), " ", el("a", "b", href="/x"))

        document = ContentGenerator().process(root)

        assert document.blocks[0].entity_ranges() == [
            {"offset": 0, "length": 1, "key": 0},
            {"offset": 2, "length": 1, "key": 1},
        ]
        assert document.get_entity(0) == document.get_entity(1)

    def it_lets_an_inner_entity_replace_an_outer_one(self):
        root = el("p", el("a", "out ", el("img", src="x.jpg"), href="/x"))

        document = ContentGenerator().process(root)

        assert document.blocks[0].entity_ranges() == [
            {"offset": 0, "length": 4, "key": 0},
            {"offset": 4, "length": 1, "key": 1},
        ]

    def it_styles_an_inline_tag_from_element_styles(self):
        document = convert(el("p", el("mark", "hi")), element_styles={"mark": "HIGHLIGHT"})

        assert document.blocks[0].inline_style_ranges() == [
            {"offset": 0, "length": 2, "style": "HIGHLIGHT"}
        ]

    def but_the_built_in_style_wins_over_element_styles(self):
        document = convert(el("p", el("b", "hi")), element_styles={"b": "HEAVY"})

        assert document.blocks[0].inline_style_ranges()[0]["style"] == InlineStyle.BOLD

    def it_lets_the_inline_classifier_replace_the_built_in_handling(self):
        def inline_classifier(element: ElementLike, creators: InlineCreators):
            return creators.style("LOUD") if element.tag_name == "b" else None

        document = convert(el("p", el("b", "hi")), inline_classifier=inline_classifier)

        assert document.blocks[0].inline_style_ranges() == [
            {"offset": 0, "length": 2, "style": "LOUD"}
        ]

    def and_the_inline_classifier_can_return_directive_objects(self):
        registry_keys: list[int] = []

        def inline_classifier(element: ElementLike, creators: InlineCreators):
            if element.tag_name == "span":
                ref = creators.entity("MENTION", {"user": element.get_attribute("data-user")})
                registry_keys.append(ref.entity_key)
                return ref
            return Style("X") if element.tag_name == "kbd" else None

        root = el("p", el("span", "@bob", data_user="bob"), el("kbd", "k"))

        document = convert(root, inline_classifier=inline_classifier)

        assert registry_keys == [0]
        assert document.get_entity(0) == Entity("MENTION", data={"user": "bob"})
        assert document.blocks[0].inline_style_ranges() == [
            {"offset": 4, "length": 1, "style": "X"}
        ]

    # -- safety ------------------------------------------------------

    def it_raises_when_the_tree_is_nested_deeper_than_the_maximum(self):
        root = el("p", "deep")
        for _ in range(9):
            root = el("div", root)

        with pytest.raises(TreeDepthExceededError, match="depth=6, maximum=5"):
            convert(root, max_tree_depth=5)

    def and_it_takes_the_maximum_from_the_environment_by_default(self, monkeypatch: MonkeyPatch):
        monkeypatch.setenv("RICHDOC_MAX_TREE_DEPTH", "3")
        root = el("div", el("div", el("div", el("p", "deep"))))

        with pytest.raises(TreeDepthExceededError):
            convert(root)

    def and_it_reads_the_maximum_from_the_environment_once_per_conversion(
        self, monkeypatch: MonkeyPatch
    ):
        monkeypatch.setenv("RICHDOC_MAX_TREE_DEPTH", "3")
        generator = ContentGenerator()
        assert generator._max_tree_depth == 3

        monkeypatch.setenv("RICHDOC_MAX_TREE_DEPTH", "300")

        assert generator._max_tree_depth == 3
        assert ContentGenerator()._max_tree_depth == 300

    def but_it_converts_a_tree_exactly_as_deep_as_the_maximum(self):
        root = el("div", el("div", el("p", "deep")))

        assert _summary(convert(root, max_tree_depth=3)) == [(BlockType.UNSTYLED, "deep")]

    def it_leaves_the_caller_tree_unmodified(self):
        root = ElementNode("p", child_nodes=[TextNode("  x  ")])

        convert(root)

        assert len(root) == 1
        assert root.child_nodes[0].value == "  x  "  # pyright: ignore

    def it_logs_a_conversion_summary(self, caplog: LogCaptureFixture):
        caplog.set_level("DEBUG", logger="richdoc")

        convert(el("p", el("a", "x", href="/x")))

        assert "converted 1 parsed blocks into 1 blocks with 1 entities" in caplog.text


class _UpperCaseElement:
    """Element adapter reporting tag names the way a browser DOM does, e.g. "DIV"."""

    def __init__(self, tag_name: str, *child_nodes: Any, **attributes: str):
        self.tag_name = tag_name
        self.attributes = list(attributes.items())
        self.child_nodes = list(child_nodes)

    def get_attribute(self, name: str) -> Optional[str]:
        return dict(self.attributes).get(name)

"""Minimal element-tree interface consumed by the converter.

The converter never touches a concrete DOM. Anything shaped like the `ElementLike` and `TextLike`
protocols below can be converted: the synthetic `ElementNode`/`TextNode` classes defined here, an
lxml tree adapted with `nodes_from_lxml()`, or a Markdown AST mapped onto the same shape.

Attribute lists are ordered and may contain the same name more than once. In that case the *last*
occurrence wins, both for `get_attribute()` and when attributes are collected into entity data.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from lxml import etree
from typing_extensions import Protocol, TypeAlias, runtime_checkable

Attribute: TypeAlias = Tuple[str, str]


@runtime_checkable
class TextLike(Protocol):
    """A text node; `value` is its (un-normalized) character data."""

    @property
    def value(self) -> str: ...


@runtime_checkable
class ElementLike(Protocol):
    """An element node with a tag name, ordered attributes, and ordered children."""

    @property
    def tag_name(self) -> str: ...

    @property
    def attributes(self) -> Sequence[Attribute]: ...

    @property
    def child_nodes(self) -> Sequence[Union[ElementLike, TextLike]]: ...

    def get_attribute(self, name: str) -> Optional[str]: ...


Node: TypeAlias = Union[ElementLike, TextLike]


class TextNode:
    """Hand-buildable text node."""

    def __init__(self, value: str):
        self._value = value

    def __repr__(self) -> str:
        return f"TextNode({self._value!r})"

    @property
    def value(self) -> str:
        return self._value


class ElementNode:
    """Hand-buildable element node.

    The tag name is lower-cased. Attributes may be given as `(name, value)` pairs or as a mapping.
    """

    def __init__(
        self,
        tag_name: str,
        attributes: Optional[Union[Iterable[Attribute], dict[str, str]]] = None,
        child_nodes: Optional[Iterable[Node]] = None,
    ):
        self._tag_name = tag_name.lower()
        if isinstance(attributes, dict):
            attributes = attributes.items()
        self._attributes: list[Attribute] = [(str(k), str(v)) for k, v in attributes or ()]
        self._child_nodes: list[Node] = list(child_nodes or ())

    def __repr__(self) -> str:
        return f"ElementNode({self._tag_name!r}, {self._attributes!r}, <{len(self)} children>)"

    def __len__(self) -> int:
        return len(self._child_nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._child_nodes)

    @property
    def tag_name(self) -> str:
        return self._tag_name

    @property
    def attributes(self) -> list[Attribute]:
        return self._attributes

    @property
    def child_nodes(self) -> list[Node]:
        return self._child_nodes

    @property
    def class_name(self) -> str:
        return self.get_attribute("class") or ""

    def append_child(self, node: Node) -> None:
        self._child_nodes.append(node)

    def get_attribute(self, name: str) -> Optional[str]:
        """Value of the last attribute named `name`, or None when there is no such attribute."""
        value = None
        for attr_name, attr_value in self._attributes:
            if attr_name == name:
                value = attr_value
        return value


def is_element(node: object) -> bool:
    return isinstance(node, ElementLike)


def is_text(node: object) -> bool:
    return isinstance(node, TextLike) and not isinstance(node, ElementLike)


def tag_name_of(element: ElementLike) -> str:
    """Lower-cased tag name of `element`; DOM-style trees report upper-case names like "DIV"."""
    return element.tag_name.lower()


# ------------------------------------------------------------------------------------------------
# LXML ADAPTER
# ------------------------------------------------------------------------------------------------


def nodes_from_lxml(element: etree._Element) -> ElementNode:
    """Adapt an lxml element (and its subtree) to an `ElementNode` tree.

    lxml stores character data as the `text` of an element (before its first child) and the
    `tail` of each child (after that child's closing tag, before the next sibling). Consider:

        <p>Text <b>bold child</b> tail of child</p>

    `p.text` is "Text " and `b.tail` is " tail of child". These become sibling text nodes around
    the adapted `b` element, which is the DOM's view of the same content.

    Comments and processing instructions are skipped but their tails are kept.
    """
    node = ElementNode(
        _local_name(element.tag),
        [(_local_name(name), value) for name, value in element.attrib.items()],
    )

    if element.text:
        node.append_child(TextNode(element.text))

    for child in element:
        if isinstance(child.tag, str):
            node.append_child(nodes_from_lxml(child))
        if child.tail:
            node.append_child(TextNode(child.tail))

    return node


def _local_name(name: object) -> str:
    """`name` stripped of any `{namespace}` prefix."""
    text = str(name)
    return text.rsplit("}", 1)[-1] if text.startswith("{") else text

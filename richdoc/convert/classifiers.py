"""Block and inline classification strategies.

Each conversion assembles two chains of strategies:

- Block chain: `CallbackBlockClassifier` (caller's `block_classifier`), then
  `TagTableBlockClassifier` (caller's `block_type_overrides`), then `DefaultBlockClassifier`.
- Inline chain: `CallbackInlineClassifier` (caller's `inline_classifier`), then
  `DefaultInlineClassifier` (built-in styles and entities), then `TagTableInlineClassifier`
  (caller's `element_styles`).

A strategy returns None when it has no opinion about an element. A result from a *custom*
strategy (a caller callback) is used outright; results from the others are merged, the earliest
strategy winning for each field.
"""

from __future__ import annotations

import abc
import re
from typing import Any, Callable, Mapping, NamedTuple, Optional, Sequence, Union

from typing_extensions import TypeAlias

from richdoc.convert.constants import (
    BLOCK_TYPE_BY_TAG,
    ENTITY_ATTRIBUTE_MAP,
    INLINE_STYLE_BY_TAG,
    LIST_ITEM_TAG,
    ORDERED_LIST_TAG,
)
from richdoc.convert.entities import EntityRegistry, is_allowed_href, to_string_map
from richdoc.documents.model import BlockType, EntityKey, EntityType, Mutability
from richdoc.documents.nodes import ElementLike, tag_name_of
from richdoc.logger import logger

DATA_ATTRIBUTE = re.compile(r"^data-([a-z0-9-]+)$")

# ------------------------------------------------------------------------------------------------
# DIRECTIVES
# ------------------------------------------------------------------------------------------------


class PartialBlock(NamedTuple):
    """What a block classifier knows about an element; either field may be missing."""

    type: Optional[str] = None
    data: Optional[Mapping[str, Any]] = None


class Style(NamedTuple):
    """Inline directive: add `style` to the styles in effect."""

    style: str


class EntityRef(NamedTuple):
    """Inline directive: make the (already created) entity `entity_key` the one in effect."""

    entity_key: EntityKey


InlineDirective: TypeAlias = Union[Style, EntityRef]


class InlineEffect(NamedTuple):
    """Styles added and entity set by an inline element."""

    styles: tuple[str, ...] = ()
    entity: Optional[EntityKey] = None


class BlockClassification(NamedTuple):
    type: str
    data: Optional[dict[str, Any]]
    is_custom: bool


class InlineCreators:
    """Handed to an inline-classifier callback so it can build its directive.

    `entity()` allocates the entity in this conversion's registry immediately.
    """

    def __init__(self, registry: EntityRegistry):
        self._registry = registry

    def style(self, style: str) -> Style:
        return Style(style)

    def entity(
        self, type: str, data: Mapping[str, Any], mutability: str = Mutability.MUTABLE
    ) -> EntityRef:
        return EntityRef(self._registry.create(type, to_string_map(data), mutability))


BlockClassifierFn: TypeAlias = Callable[
    [ElementLike], Optional[Union[PartialBlock, Mapping[str, Any]]]
]
InlineClassifierFn: TypeAlias = Callable[[ElementLike, InlineCreators], Optional[InlineDirective]]


# ------------------------------------------------------------------------------------------------
# BLOCK CLASSIFIERS
# ------------------------------------------------------------------------------------------------


class BlockClassifier(abc.ABC):
    """Proposes a block type and/or block data for a block element."""

    is_custom = False

    @abc.abstractmethod
    def classify(self, element: ElementLike, parent_tag: Optional[str]) -> Optional[PartialBlock]:
        """`parent_tag` is the tag of the nearest open block context, None at the root."""


class CallbackBlockClassifier(BlockClassifier):
    is_custom = True

    def __init__(self, fn: BlockClassifierFn):
        self._fn = fn

    def classify(self, element: ElementLike, parent_tag: Optional[str]) -> Optional[PartialBlock]:
        result = self._fn(element)
        if result is None or isinstance(result, PartialBlock):
            return result
        if isinstance(result, Mapping):
            return PartialBlock(type=result.get("type"), data=result.get("data"))
        raise TypeError(
            f"block classifier must return a PartialBlock, mapping or None, got {result!r}"
        )


class TagTableBlockClassifier(BlockClassifier):
    def __init__(self, block_types: Mapping[str, str]):
        self._block_types = block_types

    def classify(self, element: ElementLike, parent_tag: Optional[str]) -> Optional[PartialBlock]:
        block_type = self._block_types.get(tag_name_of(element))
        return PartialBlock(type=block_type) if block_type else None


class DefaultBlockClassifier(BlockClassifier):
    """Built-in tag table; always has an answer, `unstyled` for unrecognized tags."""

    def classify(self, element: ElementLike, parent_tag: Optional[str]) -> Optional[PartialBlock]:
        tag_name = tag_name_of(element)
        if tag_name == LIST_ITEM_TAG:
            if parent_tag is None:
                logger.debug("list item has no enclosing block, treating it as unordered")
            return PartialBlock(
                type=(
                    BlockType.ORDERED_LIST_ITEM
                    if parent_tag == ORDERED_LIST_TAG
                    else BlockType.UNORDERED_LIST_ITEM
                )
            )
        return PartialBlock(type=BLOCK_TYPE_BY_TAG.get(tag_name, BlockType.UNSTYLED))


class BlockClassifierChain:
    """Resolves a block element's type and data through `classifiers`, in order."""

    def __init__(self, classifiers: Sequence[BlockClassifier]):
        self._classifiers = tuple(classifiers)

    def classify(self, element: ElementLike, parent_tag: Optional[str]) -> BlockClassification:
        data: Optional[dict[str, Any]] = None
        for classifier in self._classifiers:
            partial = classifier.classify(element, parent_tag)
            if partial is None:
                continue
            if data is None and partial.data is not None:
                data = dict(partial.data)
            if partial.type is not None:
                return BlockClassification(partial.type, data, classifier.is_custom)
        return BlockClassification(BlockType.UNSTYLED, data, False)


# ------------------------------------------------------------------------------------------------
# INLINE CLASSIFIERS
# ------------------------------------------------------------------------------------------------


class InlineClassifier(abc.ABC):
    """Proposes the styles and entity an inline element applies to its contents."""

    is_custom = False

    @abc.abstractmethod
    def classify(self, element: ElementLike, creators: InlineCreators) -> Optional[InlineEffect]:
        """None when this classifier has nothing to say about `element`."""


class CallbackInlineClassifier(InlineClassifier):
    is_custom = True

    def __init__(self, fn: InlineClassifierFn):
        self._fn = fn

    def classify(self, element: ElementLike, creators: InlineCreators) -> Optional[InlineEffect]:
        directive = self._fn(element, creators)
        if directive is None:
            return None
        if isinstance(directive, Style):
            return InlineEffect(styles=(directive.style,))
        if isinstance(directive, EntityRef):
            return InlineEffect(entity=directive.entity_key)
        raise TypeError(
            f"inline classifier must return a Style, EntityRef or None, got {directive!r}"
        )


class DefaultInlineClassifier(InlineClassifier):
    """Built-in emphasis styles plus link and image entities."""

    def classify(self, element: ElementLike, creators: InlineCreators) -> Optional[InlineEffect]:
        tag_name = tag_name_of(element)
        style = INLINE_STYLE_BY_TAG.get(tag_name)
        entity = self._entity(element, creators)
        if style is None and entity is None:
            return None
        return InlineEffect(styles=(style,) if style else (), entity=entity)

    def _entity(self, element: ElementLike, creators: InlineCreators) -> Optional[EntityKey]:
        tag_name = tag_name_of(element)
        if tag_name not in ENTITY_ATTRIBUTE_MAP:
            return None

        data = get_entity_data(element)
        if tag_name == "a":
            if not is_allowed_href(data.get("url")):
                logger.debug(f"skipping link entity for disallowed href {data.get('url')!r}")
                return None
            return creators.entity(EntityType.LINK, data).entity_key

        # -- `img` without a src is not an image --
        if data.get("src") is None:
            return None
        return creators.entity(EntityType.IMAGE, data).entity_key


class TagTableInlineClassifier(InlineClassifier):
    def __init__(self, element_styles: Mapping[str, str]):
        self._element_styles = element_styles

    def classify(self, element: ElementLike, creators: InlineCreators) -> Optional[InlineEffect]:
        style = self._element_styles.get(tag_name_of(element))
        return InlineEffect(styles=(style,)) if style else None


class InlineClassifierChain:
    """Resolves the inline effect of an element through `classifiers`, in order."""

    def __init__(self, classifiers: Sequence[InlineClassifier]):
        self._classifiers = tuple(classifiers)

    def classify(self, element: ElementLike, creators: InlineCreators) -> InlineEffect:
        styles: tuple[str, ...] = ()
        entity: Optional[EntityKey] = None
        for classifier in self._classifiers:
            effect = classifier.classify(element, creators)
            if effect is None:
                continue
            if classifier.is_custom:
                return effect
            styles = styles or effect.styles
            entity = entity if entity is not None else effect.entity
        return InlineEffect(styles, entity)


def get_entity_data(element: ElementLike) -> dict[str, str]:
    """Entity data from the attributes of an `a` or `img` element.

    Recognized attributes are renamed per `ENTITY_ATTRIBUTE_MAP`; `data-*` attributes are copied
    verbatim. A repeated attribute name takes its last value.
    """
    attribute_map = ENTITY_ATTRIBUTE_MAP.get(tag_name_of(element))
    if attribute_map is None:
        return {}

    data: dict[str, str] = {}
    for name, value in element.attributes:
        if not isinstance(value, str):
            continue
        if name in attribute_map:
            data[attribute_map[name]] = value
        elif DATA_ATTRIBUTE.match(name):
            data[name] = value
    return data

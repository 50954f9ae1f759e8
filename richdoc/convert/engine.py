# pyright: reportPrivateUsage=false

"""Provides `convert()`, the element-tree to document-model conversion engine.

PRINCIPLES

- _Blocks are paragraphs._ Every element that is not a recognized inline (phrasing) element opens
  a block context. Text reached while that context is the innermost open one becomes the text of
  that block. A block nested in another block is a separate, later block in the output; the outer
  block's text from before and after the nested one is concatenated.

- _Inline formatting never crosses a block boundary._ Each block context carries its own style
  stack and entity stack, both starting empty. An inline element pushes onto the stacks of the
  block that is open when it is entered and pops on exit.

- _Wrappers inherit meaning._ A block element that resolves to the generic `unstyled` type (and
  was not typed by a caller's block classifier) takes the type of its enclosing block, so a
  `<div>` inside a `<blockquote>` continues the quote.

- _List items know their depth._ Only list-item blocks advance the depth counter for their
  subtree, so a `<li>` inside one `<ul>` has depth 0, inside two has depth 1.

- _Whitespace is normalized per block, after traversal._ See `richdoc.convert.normalize`.

Every push onto the block stack, the depth counter, and the style/entity stacks is done in a
context manager, so the matching pop happens on every exit path.
"""

from __future__ import annotations

import dataclasses
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional

from richdoc.convert.classifiers import (
    BlockClassifier,
    BlockClassifierChain,
    BlockClassifierFn,
    CallbackBlockClassifier,
    CallbackInlineClassifier,
    DefaultBlockClassifier,
    DefaultInlineClassifier,
    InlineClassifier,
    InlineClassifierChain,
    InlineClassifierFn,
    InlineCreators,
    InlineEffect,
    TagTableBlockClassifier,
    TagTableInlineClassifier,
)
from richdoc.convert.config import env_config
from richdoc.convert.constants import (
    INLINE_ELEMENTS,
    NO_BREAK_SPACE,
    SELF_CLOSING_ELEMENTS,
    SOFT_BREAK_PLACEHOLDER,
    SPECIAL_ELEMENTS,
    ZERO_WIDTH_SPACE,
)
from richdoc.convert.entities import EntityRegistry
from richdoc.convert.normalize import TextFragment, concat_fragments, normalize_block_text
from richdoc.documents.model import (
    Block,
    BlockType,
    CharacterMetadata,
    Document,
    EntityKey,
)
from richdoc.documents.nodes import (
    ElementLike,
    ElementNode,
    Node,
    TextLike,
    is_element,
    is_text,
    tag_name_of,
)
from richdoc.errors import TreeDepthExceededError
from richdoc.logger import logger, trace_logger
from richdoc.utils import lazyproperty

LINE_BREAKS = re.compile(r"\r\n|\r|\n")
NO_STYLE: frozenset[str] = frozenset()
NO_ENTITY: Optional[EntityKey] = None
LINE_BREAK_TAG = "br"
IMPLICIT_ROOT_TAG = "body"


@dataclass(frozen=True)
class ConversionOptions:
    """Caller customizations for one conversion.

    block_classifier
        Called with each block element; may return a `PartialBlock` (or a mapping with `type`
        and/or `data` keys) to set the block type and/or block data. A returned type wins over
        every built-in rule.
    inline_classifier
        Called with each inline element and an `InlineCreators`; may return `creators.style(...)`
        or `creators.entity(...)` to replace the built-in inline handling of that element.
    element_styles
        Tag name -> style, for inline tags that carry no built-in style.
    block_type_overrides
        Tag name -> block type, consulted before the built-in tag table.
    max_tree_depth
        Deepest element nesting to descend into; defaults to `env_config.MAX_TREE_DEPTH`.
    """

    block_classifier: Optional[BlockClassifierFn] = None
    inline_classifier: Optional[InlineClassifierFn] = None
    element_styles: Mapping[str, str] = field(default_factory=dict)
    block_type_overrides: Mapping[str, str] = field(default_factory=dict)
    max_tree_depth: Optional[int] = None


def convert(
    root: ElementLike, options: Optional[ConversionOptions] = None, **kwargs: Any
) -> Document:
    """Convert the element tree under `root` into a `Document`.

    Options may be given as a `ConversionOptions` object, as keyword arguments with the same
    names, or both (keyword arguments override fields of `options`).
    """
    if options is None:
        options = ConversionOptions(**kwargs)
    elif kwargs:
        options = dataclasses.replace(options, **kwargs)
    return ContentGenerator(options).process(root)


# ------------------------------------------------------------------------------------------------
# BLOCK CONTEXT
# ------------------------------------------------------------------------------------------------


class _ParsedBlock:
    """A block under construction, and the parsing state scoped to it.

    The last item of the style stack and of the entity stack apply to any text added to the block.
    """

    def __init__(
        self, tag_name: str, type: str, depth: int, data: Optional[dict[str, Any]] = None
    ):
        self.tag_name = tag_name
        self.type = type
        self.depth = depth
        self.data = data
        self.fragments: list[TextFragment] = []
        self.style_stack: list[frozenset[str]] = [NO_STYLE]
        self.entity_stack: list[Optional[EntityKey]] = [NO_ENTITY]

    def add_text(self, text: str) -> None:
        meta = CharacterMetadata(styles=self.style_stack[-1], entity=self.entity_stack[-1])
        self.fragments.append(TextFragment(text, [meta] * len(text)))

    @contextmanager
    def inline_context(self, effect: InlineEffect) -> Iterator[None]:
        """Apply `effect` on top of the current styles and entity for the duration."""
        styles = self.style_stack[-1].union(effect.styles)
        entity = effect.entity if effect.entity is not None else self.entity_stack[-1]
        self.style_stack.append(styles)
        self.entity_stack.append(entity)
        try:
            yield
        finally:
            self.entity_stack.pop()
            self.style_stack.pop()


# ------------------------------------------------------------------------------------------------
# CONTENT GENERATOR
# ------------------------------------------------------------------------------------------------


class ContentGenerator:
    """Walks one element tree and assembles the `Document` for it.

    All state lives on this object and a new one is used for every conversion, so conversions are
    independent and need no synchronization.
    """

    def __init__(self, options: Optional[ConversionOptions] = None):
        self._options = options or ConversionOptions()
        # -- open block contexts as we descend, e.g. [body, ul, li]; `li` needs its parent tag --
        self._block_stack: list[_ParsedBlock] = []
        # -- blocks that form the output, in document order, e.g. [p, li, li, blockquote] --
        self._block_list: list[_ParsedBlock] = []
        self._list_depth = 0
        self._tree_depth = 0
        self._registry = EntityRegistry()
        self._creators = InlineCreators(self._registry)

    def process(self, root: Node) -> Document:
        """Convert `root` and everything below it."""
        # -- an inline root (like a lone `<img>`) or a bare text node still needs a block --
        if not is_element(root) or tag_name_of(root) in INLINE_ELEMENTS:  # pyright: ignore
            root = ElementNode(IMPLICIT_ROOT_TAG, child_nodes=[root])
        self._process_node(root)
        return self._assemble()

    @lazyproperty
    def _block_classifier(self) -> BlockClassifierChain:
        classifiers: list[BlockClassifier] = []
        if self._options.block_classifier is not None:
            classifiers.append(CallbackBlockClassifier(self._options.block_classifier))
        if self._options.block_type_overrides:
            classifiers.append(TagTableBlockClassifier(self._options.block_type_overrides))
        classifiers.append(DefaultBlockClassifier())
        return BlockClassifierChain(classifiers)

    @lazyproperty
    def _inline_classifier(self) -> InlineClassifierChain:
        classifiers: list[InlineClassifier] = []
        if self._options.inline_classifier is not None:
            classifiers.append(CallbackInlineClassifier(self._options.inline_classifier))
        classifiers.append(DefaultInlineClassifier())
        if self._options.element_styles:
            classifiers.append(TagTableInlineClassifier(self._options.element_styles))
        return InlineClassifierChain(classifiers)

    @lazyproperty
    def _max_tree_depth(self) -> int:
        max_depth = self._options.max_tree_depth
        return env_config.MAX_TREE_DEPTH if max_depth is None else max_depth

    # -- traversal ------------------------------------------------------------

    def _process_node(self, node: Node) -> None:
        if is_element(node):
            element: ElementLike = node  # pyright: ignore
            tag_name = tag_name_of(element)
            with self._descend():
                if tag_name in INLINE_ELEMENTS:
                    self._process_inline_element(element, tag_name)
                else:
                    self._process_block_element(element, tag_name)
        elif is_text(node):
            self._process_text_node(node)  # pyright: ignore

    def _process_block_element(self, element: ElementLike, tag_name: str) -> None:
        parent = self._block_stack[-1] if self._block_stack else None

        classification = self._block_classifier.classify(
            element, parent.tag_name if parent else None
        )
        block_type, data = classification.type, classification.data

        if block_type == BlockType.CODE:
            language = element.get_attribute("data-language")
            if language:
                data = {**(data or {}), "language": language}

        has_depth = block_type in BlockType.list_item_types()
        allow_render = tag_name not in SPECIAL_ELEMENTS

        if not classification.is_custom and block_type == BlockType.UNSTYLED and parent:
            block_type = parent.type

        block = _ParsedBlock(tag_name, block_type, self._list_depth if has_depth else 0, data)
        if allow_render:
            self._block_list.append(block)

        trace_logger.debug(f"<{tag_name}> opens {block_type} block, render={allow_render}")
        with self._block_context(block, increments_depth=allow_render and has_depth):
            for child in element.child_nodes:
                self._process_node(child)

    def _process_inline_element(self, element: ElementLike, tag_name: str) -> None:
        if tag_name == LINE_BREAK_TAG:
            self._process_text(SOFT_BREAK_PLACEHOLDER)
            return

        block = self._block_stack[-1]
        effect = self._inline_classifier.classify(element, self._creators)
        with block.inline_context(effect):
            for child in element.child_nodes:
                self._process_node(child)
            # -- give an element that has no text of its own a character its entity can cover --
            if tag_name in SELF_CLOSING_ELEMENTS:
                self._process_text(NO_BREAK_SPACE)

    def _process_text_node(self, node: TextLike) -> None:
        # -- `\r` is reserved as the soft-break placeholder from here on --
        text = LINE_BREAKS.sub("\n", node.value)
        text = text.replace(ZERO_WIDTH_SPACE, SOFT_BREAK_PLACEHOLDER)
        self._process_text(text)

    def _process_text(self, text: str) -> None:
        self._block_stack[-1].add_text(text)

    @contextmanager
    def _block_context(self, block: _ParsedBlock, increments_depth: bool) -> Iterator[None]:
        self._block_stack.append(block)
        if increments_depth:
            self._list_depth += 1
        try:
            yield
        finally:
            if increments_depth:
                self._list_depth -= 1
            self._block_stack.pop()

    @contextmanager
    def _descend(self) -> Iterator[None]:
        self._tree_depth += 1
        try:
            if self._tree_depth > self._max_tree_depth:
                raise TreeDepthExceededError(self._tree_depth, self._max_tree_depth)
            yield
        finally:
            self._tree_depth -= 1

    # -- assembly -------------------------------------------------------------

    def _assemble(self) -> Document:
        """Normalize each parsed block and form the document from those that are not empty."""
        blocks: list[Block] = []
        for parsed in self._block_list:
            fragment, keep_when_empty = normalize_block_text(
                concat_fragments(parsed.fragments), is_code=parsed.type == BlockType.CODE
            )
            if not fragment.text and not keep_when_empty:
                trace_logger.detail(  # type: ignore
                    f"dropping empty {parsed.type} block <{parsed.tag_name}>"
                )
                continue
            blocks.append(
                Block(
                    type=parsed.type,
                    text=fragment.text,
                    depth=parsed.depth,
                    data=dict(parsed.data or {}),
                    character_list=list(fragment.meta),
                )
            )

        if not blocks:
            blocks = [Block(type=BlockType.UNSTYLED)]

        if env_config.LOG_CONVERSION_SUMMARY:
            logger.debug(
                f"converted {len(self._block_list)} parsed blocks into {len(blocks)} blocks with"
                f" {len(self._registry)} entities"
            )
        return Document(blocks=blocks, entity_map=dict(self._registry.entity_map))

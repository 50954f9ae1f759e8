"""Rich-text document model produced by `richdoc.convert`.

A `Document` is an ordered list of `Block` objects plus an entity map. Each block carries one
`CharacterMetadata` per character of its text, recording the inline styles and entity that apply
to that character. Adjacent characters with equal metadata form a "run", but runs are only
materialized when the block is serialized (see `Block.inline_style_ranges()` and
`Block.entity_ranges()`).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Sequence

from typing_extensions import TypeAlias

EntityKey: TypeAlias = int
"""Opaque entity identifier, unique within a single conversion."""


class BlockType:
    UNSTYLED = "unstyled"
    HEADER_ONE = "header-one"
    HEADER_TWO = "header-two"
    HEADER_THREE = "header-three"
    HEADER_FOUR = "header-four"
    HEADER_FIVE = "header-five"
    HEADER_SIX = "header-six"
    UNORDERED_LIST_ITEM = "unordered-list-item"
    ORDERED_LIST_ITEM = "ordered-list-item"
    BLOCKQUOTE = "blockquote"
    CODE = "code-block"
    ATOMIC = "atomic"

    @classmethod
    def list_item_types(cls) -> frozenset[str]:
        return frozenset((cls.UNORDERED_LIST_ITEM, cls.ORDERED_LIST_ITEM))


class InlineStyle:
    BOLD = "BOLD"
    ITALIC = "ITALIC"
    UNDERLINE = "UNDERLINE"
    CODE = "CODE"
    STRIKETHROUGH = "STRIKETHROUGH"


class EntityType:
    LINK = "LINK"
    IMAGE = "IMAGE"


class Mutability:
    IMMUTABLE = "IMMUTABLE"
    MUTABLE = "MUTABLE"
    SEGMENTED = "SEGMENTED"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return (cls.IMMUTABLE, cls.MUTABLE, cls.SEGMENTED)


@dataclass(frozen=True)
class CharacterMetadata:
    """Styles and entity applied to a single character."""

    styles: frozenset[str] = frozenset()
    entity: Optional[EntityKey] = None

    def has_style(self, style: str) -> bool:
        return style in self.styles


EMPTY_CHARACTER = CharacterMetadata()


@dataclass
class Entity:
    """A typed, attributed annotation (link, image, ...) referenced from characters by key."""

    type: str
    mutability: str = Mutability.MUTABLE
    data: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible (str keys) dict."""
        return {"type": self.type, "mutability": self.mutability, "data": dict(self.data)}


@dataclass
class Block:
    """One paragraph-like unit of the document."""

    type: str
    text: str = ""
    depth: int = 0
    data: dict[str, Any] = field(default_factory=dict)
    character_list: list[CharacterMetadata] = field(default_factory=list)

    def __post_init__(self):
        if len(self.character_list) != len(self.text):
            raise ValueError(
                f"character_list length {len(self.character_list)} does not match text length"
                f" {len(self.text)}"
            )
        if self.depth < 0:
            raise ValueError(f"depth must be non-negative, got {self.depth}")

    def __str__(self):
        return self.text

    @property
    def entity_keys(self) -> list[EntityKey]:
        """Distinct entity keys referenced by this block, in order of first appearance."""
        keys: list[EntityKey] = []
        for meta in self.character_list:
            if meta.entity is not None and meta.entity not in keys:
                keys.append(meta.entity)
        return keys

    def inline_style_ranges(self) -> list[dict[str, Any]]:
        """One `{offset, length, style}` range per maximal run of a style.

        Styles are reported in order of their first appearance in the block, and ranges for the
        same style in offset order.
        """
        styles: list[str] = []
        for meta in self.character_list:
            styles.extend(s for s in sorted(meta.styles) if s not in styles)

        return [
            {"offset": offset, "length": length, "style": style}
            for style in styles
            for offset, length in _iter_runs([m.has_style(style) for m in self.character_list])
        ]

    def entity_ranges(self) -> list[dict[str, Any]]:
        """One `{offset, length, key}` range per maximal run of a non-null entity key."""
        ranges: list[dict[str, Any]] = []
        start = 0
        keys = [m.entity for m in self.character_list]
        for i in range(1, len(keys) + 1):
            if i == len(keys) or keys[i] != keys[start]:
                if keys[start] is not None:
                    ranges.append({"offset": start, "length": i - start, "key": keys[start]})
                start = i
        return ranges

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the raw interchange form used by rich-text editors."""
        return {
            "type": self.type,
            "text": self.text,
            "depth": self.depth,
            "data": dict(self.data),
            "inlineStyleRanges": self.inline_style_ranges(),
            "entityRanges": self.entity_ranges(),
        }


def _iter_runs(flags: Sequence[bool]) -> Iterator[tuple[int, int]]:
    """Generate `(offset, length)` for each maximal run of True values in `flags`."""
    start: Optional[int] = None
    for i, flag in enumerate(flags):
        if flag and start is None:
            start = i
        elif not flag and start is not None:
            yield start, i - start
            start = None
    if start is not None:
        yield start, len(flags) - start


@dataclass
class Document:
    """Ordered blocks plus the entities they reference. Never contains zero blocks."""

    blocks: list[Block]
    entity_map: dict[EntityKey, Entity] = field(default_factory=dict)

    def __post_init__(self):
        if not self.blocks:
            raise ValueError("a Document must contain at least one block")

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    @property
    def plain_text(self) -> str:
        return "\n".join(block.text for block in self.blocks)

    def get_entity(self, key: EntityKey) -> Entity:
        """The entity stored under `key`; raises `KeyError` when there is none."""
        return self.entity_map[key]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible (str keys) dict."""
        return {
            "blocks": [block.to_dict() for block in self.blocks],
            "entityMap": {str(key): entity.to_dict() for key, entity in self.entity_map.items()},
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

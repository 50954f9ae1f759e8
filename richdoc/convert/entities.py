"""Conversion-scoped entity allocation."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping, Optional

from richdoc.documents.model import Entity, EntityKey, Mutability
from richdoc.logger import logger

DATA_URL = re.compile(r"^data:", re.IGNORECASE)


def is_allowed_href(href: Optional[str]) -> bool:
    """False for a missing href or a `data:` URI, True for anything else.

    Relative paths, fragments and arbitrary schemes are all allowed.
    """
    return href is not None and not DATA_URL.match(href)


def to_string_map(data: Any) -> dict[str, str]:
    """Only the `str`-valued items of `data`, which must be a mapping to contribute anything."""
    if not isinstance(data, Mapping):
        return {}
    return {str(k): v for k, v in data.items() if isinstance(v, str)}


class EntityRegistry:
    """Allocates entity keys and stores entity records for one conversion.

    Keys start at 0 and increase by one per `create()` call. Entities are never deduplicated;
    two identical links produce two entities.
    """

    def __init__(self):
        self._entities: dict[EntityKey, Entity] = {}

    def __len__(self) -> int:
        return len(self._entities)

    @property
    def entity_map(self) -> Mapping[EntityKey, Entity]:
        return MappingProxyType(self._entities)

    @property
    def last_created_key(self) -> Optional[EntityKey]:
        return len(self._entities) - 1 if self._entities else None

    def create(
        self, type: str, data: Mapping[str, str], mutability: str = Mutability.MUTABLE
    ) -> EntityKey:
        """Store a new entity and return its key."""
        if mutability not in Mutability.values():
            raise ValueError(
                f"mutability must be one of {', '.join(Mutability.values())}, got {mutability!r}"
            )
        key = len(self._entities)
        self._entities[key] = Entity(type=type, mutability=mutability, data=dict(data))
        logger.debug(f"created {type} entity {key}")
        return key

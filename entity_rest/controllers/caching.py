"""
Caching decorator: keeps fetched entities by (type, id).
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence, Tuple, Type

from entity_rest.controllers.abstract import (
    AbstractControllerDecorator,
    EntityT,
    ModelController,
)
from entity_rest.domain.models import Entity
from entity_rest.utils.logging import get_logger

log = get_logger(__name__)

_Key = Tuple[Type[Entity], int]


class CachingController(AbstractControllerDecorator):
    """
    Serves `get_by_id` / `get_by_ids` from a cache, refreshes cached entries
    after a successful `update` and drops them after a successful `delete`.

    All other operations, and all failures, pass through unchanged. The cache
    is guarded by a lock; the wrapped controller is called outside of it.
    """

    name: str = "caching"

    def __init__(self, controller: ModelController, max_entries: Optional[int] = None) -> None:
        super().__init__(controller)
        self.max_entries = max_entries
        self._entries: Dict[_Key, Entity] = {}
        self._lock = threading.Lock()

    def _lookup(self, entity_type: Type[Entity], entity_id: int) -> Optional[Entity]:
        with self._lock:
            return self._entries.get((entity_type, entity_id))

    def _store(self, entities: Sequence[Entity]) -> None:
        with self._lock:
            for entity in entities:
                if not entity.is_persisted():
                    continue
                self._entries[(type(entity), entity.id)] = entity
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    # dicts keep insertion order: evict the oldest
                    del self._entries[next(iter(self._entries))]

    def get_by_id(self, entity_type: Type[EntityT], entity_id: int) -> EntityT:
        cached = self._lookup(entity_type, entity_id)
        if cached is not None:
            log.debug(
                f"[CACHE HIT] {entity_type.get_entity_name()} {entity_id}",
                extra={"entity_type": entity_type.get_entity_name(), "entity_id": entity_id},
            )
            return cached  # type: ignore[return-value]
        entity = self.controller.get_by_id(entity_type, entity_id)
        self._store([entity])
        return entity

    def get_by_ids(
        self, entity_type: Type[EntityT], entity_ids: Sequence[int]
    ) -> List[EntityT]:
        found: Dict[int, Entity] = {}
        missing: List[int] = []
        for entity_id in entity_ids:
            cached = self._lookup(entity_type, entity_id)
            if cached is not None:
                found[entity_id] = cached
            elif entity_id not in missing:
                missing.append(entity_id)
        if missing:
            fetched = self.controller.get_by_ids(entity_type, missing)
            self._store(fetched)
            for entity in fetched:
                found[entity.id] = entity
        return [found[i] for i in entity_ids if i in found]  # type: ignore[misc]

    def update(self, *entities: Entity) -> None:
        self.controller.update(*entities)
        self._store(entities)

    def delete(self, entity: Entity) -> None:
        self.controller.delete(entity)
        self.invalidate(type(entity), entity.id)

    def invalidate(self, entity_type: Type[Entity], entity_id: int) -> None:
        with self._lock:
            self._entries.pop((entity_type, entity_id), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["CachingController"]

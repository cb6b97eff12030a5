"""
Registry mapping entity type names to entity classes and back.
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional, Type, TypeVar

from entity_rest.domain.models import Entity

EntityT = TypeVar("EntityT", bound=Entity)


class EntityDirectory:
    """
    Resolves the `type` value of a flat record to an entity class.

    Names are case-insensitive; the canonical (lower-case) name is the one used
    in request paths.
    """

    def __init__(self, entity_types: Iterable[Type[Entity]] = ()) -> None:
        self._types: Dict[str, Type[Entity]] = {}
        for entity_type in entity_types:
            self.register(entity_type)

    def register(self, entity_type: Type[EntityT]) -> Type[EntityT]:
        """
        Add an entity class. Returns the class so this can be used as a decorator.
        """
        name = self.name_by_type(entity_type)
        existing = self._types.get(name)
        if existing is not None and existing is not entity_type:
            raise ValueError(
                f"Entity name '{name}' already registered for {existing.__name__}"
            )
        self._types[name] = entity_type
        return entity_type

    def type_by_name(self, name: Optional[str]) -> Optional[Type[Entity]]:
        if not name:
            return None
        return self._types.get(name.lower())

    def name_by_type(self, entity_type: Type[Entity]) -> str:
        return entity_type.get_entity_name().lower()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.type_by_name(name) is not None

    def __len__(self) -> int:
        return len(self._types)


__all__ = ["EntityDirectory"]

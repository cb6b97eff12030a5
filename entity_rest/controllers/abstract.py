"""
Controller capability set and the pass-through decorator base.

A ModelController is the full set of CRUD operations callers use. The remote
controller implements it over the REST client; decorators implement it by
forwarding to a wrapped controller and override only the operations they
exist to augment.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, Type, TypeVar, runtime_checkable

from entity_rest.domain.models import Entity

EntityT = TypeVar("EntityT", bound=Entity)


@runtime_checkable
class ModelController(Protocol):
    """
    CRUD capability set every controller layer implements.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier of the layer.
    """

    name: str

    def list(self, entity_type: Type[EntityT]) -> List[EntityT]: ...

    def count(self, entity_type: Type[Entity]) -> int: ...

    def get_by_id(self, entity_type: Type[EntityT], entity_id: int) -> EntityT: ...

    def get_by_ids(
        self, entity_type: Type[EntityT], entity_ids: Sequence[int]
    ) -> List[EntityT]: ...

    def create_new(self, entity_type: Type[EntityT]) -> EntityT: ...

    def copy(self, entity: EntityT) -> EntityT: ...

    def update(self, *entities: Entity) -> None: ...

    def delete(self, entity: Entity) -> None: ...

    def close(self) -> None: ...


class AbstractControllerDecorator:
    """
    Forwards every operation unchanged to the wrapped controller.

    Subclasses set `name` and override only the operations they augment;
    failures from the wrapped controller propagate as they are.
    """

    name: str = "decorator"

    def __init__(self, controller: ModelController) -> None:
        self.controller = controller

    def list(self, entity_type: Type[EntityT]) -> List[EntityT]:
        return self.controller.list(entity_type)

    def count(self, entity_type: Type[Entity]) -> int:
        return self.controller.count(entity_type)

    def get_by_id(self, entity_type: Type[EntityT], entity_id: int) -> EntityT:
        return self.controller.get_by_id(entity_type, entity_id)

    def get_by_ids(
        self, entity_type: Type[EntityT], entity_ids: Sequence[int]
    ) -> List[EntityT]:
        return self.controller.get_by_ids(entity_type, entity_ids)

    def create_new(self, entity_type: Type[EntityT]) -> EntityT:
        return self.controller.create_new(entity_type)

    def copy(self, entity: EntityT) -> EntityT:
        return self.controller.copy(entity)

    def update(self, *entities: Entity) -> None:
        self.controller.update(*entities)

    def delete(self, entity: Entity) -> None:
        self.controller.delete(entity)

    def close(self) -> None:
        self.controller.close()


__all__ = [
    "AbstractControllerDecorator",
    "ModelController",
]

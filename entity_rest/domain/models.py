"""
Entity model for the entity REST client.

Every entity type declares, once, an ordered table of its scalar fields and an
ordered table of its relations. The wire encoding addresses fields and
relations by their position in these tables (`f<i>` / `e<i>`), so reordering
a table is a wire-format change.

Example:
    class Book(Entity):
        entity_name = "book"
        field_names = ("title", "published")
        relations = (Relation("author", "author"), Relation("tags", "tag", many=True))

        title: Optional[str] = None
        published: Optional[date] = None
        author: Optional[Entity] = to_one()
        tags: List[Entity] = to_many()
"""
from __future__ import annotations

from datetime import datetime
from typing import (
    Any,
    ClassVar,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

from pydantic import BaseModel, ConfigDict, Field


class Relation(NamedTuple):
    """
    One entry of an entity type's relation table.

    `target` is the directory name of the related entity type.
    """

    name: str
    target: str
    many: bool = False


@runtime_checkable
class Readable(Protocol):
    """
    What the flat record encoder needs to read from an entity.
    """

    id: int

    def get_entity_name(self) -> str: ...

    def has_timestamp(self) -> bool: ...

    def get_timestamp(self) -> Optional[datetime]: ...

    def field_count(self) -> int: ...

    def field_value(self, index: int) -> Any: ...

    def relation_count(self) -> int: ...

    def is_relation_many(self, index: int) -> bool: ...

    def relation_one(self, index: int) -> Optional["Readable"]: ...

    def relation_many(self, index: int) -> Iterable["Readable"]: ...


def to_one() -> Any:
    """Declare a to-one relation attribute."""
    return Field(default=None, repr=False)


def to_many() -> Any:
    """Declare a to-many relation attribute."""
    return Field(default_factory=list, repr=False)


class Entity(BaseModel):
    """
    Base class for entity types.

    An entity with a negative id has not been persisted yet. Persisted entities
    compare and hash by (entity name, id); unpersisted ones by identity, so do
    not keep an unpersisted entity in a set across its creation on the server.
    """

    entity_name: ClassVar[str] = ""
    field_names: ClassVar[Tuple[str, ...]] = ()
    relations: ClassVar[Tuple[Relation, ...]] = ()
    timestamped: ClassVar[bool] = False

    id: int = -1

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def get_entity_name(cls) -> str:
        return cls.entity_name or cls.__name__.lower()

    def is_persisted(self) -> bool:
        return self.id >= 0

    # Scalar fields

    def field_count(self) -> int:
        return len(self.field_names)

    def field_value(self, index: int) -> Any:
        return getattr(self, self.field_names[index])

    def set_field_value(self, index: int, value: Any) -> None:
        setattr(self, self.field_names[index], value)

    # Relations

    def relation_count(self) -> int:
        return len(self.relations)

    def is_relation_many(self, index: int) -> bool:
        return self.relations[index].many

    def relation_one(self, index: int) -> Optional["Entity"]:
        return getattr(self, self.relations[index].name)

    def relation_many(self, index: int) -> List["Entity"]:
        return list(getattr(self, self.relations[index].name) or [])

    def set_relation(self, index: int, value: Any) -> None:
        relation = self.relations[index]
        if relation.many:
            value = list(value or [])
        setattr(self, relation.name, value)

    # Timestamp

    def has_timestamp(self) -> bool:
        return self.timestamped

    def get_timestamp(self) -> Optional[datetime]:
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        if self.is_persisted() and other.is_persisted():
            return (self.get_entity_name(), self.id) == (other.get_entity_name(), other.id)
        return self is other

    def __hash__(self) -> int:
        if self.is_persisted():
            return hash((self.get_entity_name(), self.id))
        return object.__hash__(self)


class TimestampedEntity(Entity):
    """Entity type whose server keeps a last-modified timestamp."""

    timestamped: ClassVar[bool] = True

    timestamp: Optional[datetime] = None

    def get_timestamp(self) -> Optional[datetime]:
        return self.timestamp


__all__ = [
    "Entity",
    "Readable",
    "Relation",
    "TimestampedEntity",
    "to_many",
    "to_one",
]

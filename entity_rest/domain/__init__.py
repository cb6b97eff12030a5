"""
Domain package for the entity REST client.

Exports the entity model, the entity directory, and the flat record encoding.
Keep this package focused on data definitions and validation concerns.
"""

from entity_rest.domain.directory import EntityDirectory
from entity_rest.domain.models import (
    Entity,
    Readable,
    Relation,
    TimestampedEntity,
    to_many,
    to_one,
)
from entity_rest.domain.record import FlatRecord

__all__ = [
    "Entity",
    "EntityDirectory",
    "FlatRecord",
    "Readable",
    "Relation",
    "TimestampedEntity",
    "to_many",
    "to_one",
]

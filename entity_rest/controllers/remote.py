"""
Base controller backed by the REST client.

Fetched records are turned into entities and their relations linked to other
entities. Within one call every persisted (type, id) is materialized once, so
related entities shared by several records are the same object and cyclic
graphs terminate. Missing related entities are fetched with one request per
relation. A record that cannot be materialized fails with the operation that
returned it.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple, Type

from entity_rest.controllers.abstract import EntityT
from entity_rest.domain.directory import EntityDirectory
from entity_rest.domain.models import Entity
from entity_rest.domain.record import FlatRecord
from entity_rest.errors import ClientError, EncodingError, ShapeError, ValidationError
from entity_rest.infrastructure.rest_client import RestClient, entity_path
from entity_rest.utils.logging import get_logger

log = get_logger(__name__)

_Loaded = Dict[Tuple[Type[Entity], int], Entity]
_Pending = List[Tuple[Entity, FlatRecord, str]]


def _get_operation(type_name: str, entity_ids: Iterable[int]) -> str:
    return f"GET@{entity_path(type_name, ','.join(str(i) for i in entity_ids))}"


@contextmanager
def _decoding(operation: str) -> Iterator[None]:
    """Attach `operation` to decode failures that carry none yet."""
    try:
        yield
    except ClientError as exc:
        if exc.operation is not None:
            raise
        raise ClientError.wrap(exc, operation) from exc


class RemoteController:
    """
    ModelController over a RestClient.

    `copy` creates a new entity on the server with the source's scalar fields
    and to-one relations; to-many relations are not copied.
    """

    name: str = "remote"

    def __init__(self, client: RestClient, directory: EntityDirectory) -> None:
        self.client = client
        self.directory = directory

    def _type_name(self, entity_type: Type[Entity]) -> str:
        return self.directory.name_by_type(entity_type)

    def list(self, entity_type: Type[EntityT]) -> List[EntityT]:
        type_name = self._type_name(entity_type)
        ids = self.client.get_ids(type_name)
        records = self.client.get_dtos_by_ids(type_name, ids)
        return self._materialize(records, _get_operation(type_name, ids))

    def count(self, entity_type: Type[Entity]) -> int:
        return self.client.get_count(self._type_name(entity_type))

    def get_by_id(self, entity_type: Type[EntityT], entity_id: int) -> EntityT:
        type_name = self._type_name(entity_type)
        record = self.client.get_dto(type_name, entity_id)
        return self._materialize([record], _get_operation(type_name, [entity_id]))[0]

    def get_by_ids(
        self, entity_type: Type[EntityT], entity_ids: Sequence[int]
    ) -> List[EntityT]:
        type_name = self._type_name(entity_type)
        records = self.client.get_dtos_by_ids(type_name, entity_ids)
        return self._materialize(records, _get_operation(type_name, entity_ids))

    def create_new(self, entity_type: Type[EntityT]) -> EntityT:
        return self._create(entity_type())

    def copy(self, entity: EntityT) -> EntityT:
        duplicate = type(entity)()
        for index in range(entity.field_count()):
            duplicate.set_field_value(index, entity.field_value(index))
        for index in range(entity.relation_count()):
            if not entity.is_relation_many(index):
                duplicate.set_relation(index, entity.relation_one(index))
        return self._create(duplicate)

    def update(self, *entities: Entity) -> None:
        for entity in entities:
            self.client.put_dto(FlatRecord.from_entity(entity, self.directory))

    def delete(self, entity: Entity) -> None:
        if not entity.is_persisted():
            raise ValidationError(
                f"cannot delete unpersisted {entity.get_entity_name()} (id {entity.id})"
            )
        self.client.delete_by_id(self._type_name(type(entity)), entity.id)

    def close(self) -> None:
        self.client.close()

    def _create(self, entity: EntityT) -> EntityT:
        type_name = self._type_name(type(entity))
        stored = self.client.post_dto(FlatRecord.from_entity(entity, self.directory))
        created = self._materialize([stored], f"POST@{entity_path(type_name)}")[0]
        log.debug(
            f"Created {created.get_entity_name()} {created.id}",
            extra={"entity_type": created.get_entity_name(), "entity_id": created.id},
        )
        return created

    def _materialize(self, records: Sequence[FlatRecord], operation: str) -> List:
        loaded: _Loaded = {}
        pending: _Pending = []
        roots = [self._load(record, operation, loaded, pending) for record in records]
        while pending:
            entity, record, source = pending.pop()
            with _decoding(source):
                self._link(entity, record, loaded, pending)
        return roots

    def _load(
        self, record: FlatRecord, operation: str, loaded: _Loaded, pending: _Pending
    ) -> Entity:
        with _decoding(operation):
            entity = record.build_entity()
        if entity.is_persisted():
            key = (type(entity), entity.id)
            existing = loaded.get(key)
            if existing is not None:
                return existing
            loaded[key] = entity
        pending.append((entity, record, operation))
        return entity

    def _link(
        self, entity: Entity, record: FlatRecord, loaded: _Loaded, pending: _Pending
    ) -> None:
        for index, relation in enumerate(entity.relations):
            target = self.directory.type_by_name(relation.target)
            if target is None:
                raise EncodingError(
                    f"unknown relation target '{relation.target}' "
                    f"on {entity.get_entity_name()}.{relation.name}"
                )
            if relation.many:
                ids = record.to_many_ids(index)
            else:
                related_id = record.to_one_id(index)
                ids = [] if related_id is None else [related_id]

            missing = list(dict.fromkeys(i for i in ids if (target, i) not in loaded))
            if missing:
                type_name = self._type_name(target)
                fetched = self.client.get_dtos_by_ids(type_name, missing)
                operation = _get_operation(type_name, missing)
                for related_record in fetched:
                    self._load(related_record, operation, loaded, pending)

            related = []
            for related_id in ids:
                if (target, related_id) not in loaded:
                    raise ShapeError(
                        f"{entity.get_entity_name()} {entity.id} references "
                        f"{relation.target} {related_id}, which the server did not return",
                        operation=_get_operation(self._type_name(target), missing),
                    )
                related.append(loaded[(target, related_id)])
            if relation.many:
                entity.set_relation(index, related)
            else:
                entity.set_relation(index, related[0] if related else None)


__all__ = ["RemoteController"]

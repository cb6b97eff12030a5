"""
Flat record encoding of entities.

A FlatRecord is the wire form of one entity: an ordered string-to-string
mapping with the reserved keys

    type        entity type name (resolved through an EntityDirectory)
    id          entity id, only once the entity is persisted
    timestamp   last-modified epoch millis, only for timestamped types
    f<N>        scalar field N, absent when the value is None
    e<N>        relation N: a JSON array of ascending ids (to-many) or a
                single id, absent when unset (to-one)

Records built from an entity are valid by construction. Records built from
external input (HTTP responses, form parameters) go through `from_mapping`,
which validates every entry before the record exists.
"""
from __future__ import annotations

import json
import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from types import UnionType
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Type,
    Union,
    get_args,
    get_origin,
)

from pydantic import ValidationError as PydanticValidationError

from entity_rest.domain.models import Entity, Readable
from entity_rest.errors import EncodingError, ValidationError

if TYPE_CHECKING:
    from entity_rest.domain.directory import EntityDirectory

TYPE_KEY = "type"
ID_KEY = "id"
TIMESTAMP_KEY = "timestamp"

DATE_FORMAT = "%d.%m.%Y"

_ID_PATTERN = re.compile(r"-?[0-9]*")
_INDEX_KEY_PATTERN = re.compile(r"[ef][0-9]+")
_INTEGER_PATTERN = re.compile(r"-?[0-9]+")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def field_key(index: int) -> str:
    return f"f{index}"


def relation_key(index: int) -> str:
    return f"e{index}"


def to_millis(moment: datetime) -> int:
    """Epoch milliseconds; naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def from_millis(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)


def format_value(value: Any) -> Optional[str]:
    """Wire text of a scalar field value."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def parse_value(text: str, annotation: Any) -> Any:
    """
    Inverse of `format_value` for the declared field type.

    Numbers and strings are returned as text and left to pydantic coercion.
    """
    target = _unwrap_optional(annotation)
    if target is datetime:
        return datetime.strptime(text, DATE_FORMAT)
    if target is date:
        return datetime.strptime(text, DATE_FORMAT).date()
    if target is bool:
        lowered = text.strip().lower()
        if lowered not in ("true", "false"):
            raise ValueError(f"not a boolean: '{text}'")
        return lowered == "true"
    if isinstance(target, type) and issubclass(target, Enum):
        return target[text]
    return text


def scalar_text(value: Any) -> str:
    """Text of a decoded JSON scalar; strings pass through unchanged."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _parse_id_array(text: str) -> Optional[List[int]]:
    try:
        ids = json.loads(text)
    except ValueError:
        return None
    if not isinstance(ids, list):
        return None
    if not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        return None
    return ids


class FlatRecord(Mapping[str, str]):
    """
    Immutable, ordered wire form of one entity.

    Construct through `from_entity` or `from_mapping`; the constructor itself
    trusts its entries.
    """

    __slots__ = ("_entries", "_directory")

    def __init__(self, entries: Mapping[str, str], directory: "EntityDirectory") -> None:
        self._entries: Dict[str, str] = dict(entries)
        self._directory = directory

    @classmethod
    def from_entity(cls, entity: Readable, directory: "EntityDirectory") -> "FlatRecord":
        """Encode an entity. Always succeeds."""
        entries: Dict[str, str] = {TYPE_KEY: entity.get_entity_name()}
        if entity.id >= 0:
            entries[ID_KEY] = str(entity.id)
        if entity.has_timestamp():
            moment = entity.get_timestamp()
            if moment is not None:
                entries[TIMESTAMP_KEY] = str(to_millis(moment))
        for index in range(entity.field_count()):
            text = format_value(entity.field_value(index))
            if text is not None:
                entries[field_key(index)] = text
        for index in range(entity.relation_count()):
            if entity.is_relation_many(index):
                ids = sorted(related.id for related in entity.relation_many(index))
                entries[relation_key(index)] = json.dumps(ids, separators=(",", ":"))
            else:
                related = entity.relation_one(index)
                if related is not None:
                    entries[relation_key(index)] = str(related.id)
        return cls(entries, directory)

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, Any], directory: "EntityDirectory"
    ) -> "FlatRecord":
        """
        Decode and validate external input.

        Values may be scalars or single-element sequences (form parameters).
        A relation value given as a JSON array of integers is the to-many id
        list itself. None values are treated as absent. Raises ValidationError
        naming the first offending entry; no record is returned unless every
        entry is valid.
        """
        entries: Dict[str, str] = {}
        for key, value in raw.items():
            if not isinstance(key, str):
                raise ValidationError(f"unknown key {key!r}")
            if _is_id_list(key, value):
                value = json.dumps(list(value), separators=(",", ":"))
            elif isinstance(value, (list, tuple)):
                if len(value) != 1:
                    raise ValidationError(
                        f"array value {key}={list(value)!r} has no unique element"
                    )
                value = value[0]
            if value is None:
                continue
            if isinstance(value, (dict, list, tuple)):
                raise ValidationError(f"malformed value for '{key}': {value!r}")
            text = scalar_text(value)
            _check_entry(key, text, directory)
            entries[key] = text
        return cls(entries, directory)

    # Mapping protocol

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FlatRecord({self._entries!r})"

    def as_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    # Typed accessors

    def id(self) -> int:
        value = self._entries.get(ID_KEY)
        if value is None:
            raise ValidationError(f"missing id in {self!r}")
        if not _INTEGER_PATTERN.fullmatch(value):
            raise ValidationError(f"not matching an id value: '{value}'")
        return int(value)

    def type_name(self) -> Optional[str]:
        return self._entries.get(TYPE_KEY)

    def type(self) -> Optional[Type[Entity]]:
        return self._directory.type_by_name(self.type_name())

    def has_timestamp(self) -> bool:
        return TIMESTAMP_KEY in self._entries

    def timestamp_millis(self) -> int:
        value = self._entries.get(TIMESTAMP_KEY)
        if value is None or not _INTEGER_PATTERN.fullmatch(value):
            raise ValidationError(f"missing or malformed timestamp in {self!r}")
        return int(value)

    def timestamp(self) -> datetime:
        return from_millis(self.timestamp_millis())

    def field(self, index: int) -> Optional[str]:
        return self._entries.get(field_key(index))

    def to_one_id(self, index: int) -> Optional[int]:
        """Related id, or None when the relation is unset."""
        value = self._entries.get(relation_key(index))
        if value is None:
            return None
        if not _INTEGER_PATTERN.fullmatch(value):
            raise ValidationError(f"not a to-one relation value: e{index}='{value}'")
        return int(value)

    def to_many_ids(self, index: int) -> List[int]:
        """Related ids in the order the record lists them."""
        value = self._entries.get(relation_key(index))
        if value is None:
            return []
        ids = _parse_id_array(value)
        if ids is None:
            raise ValidationError(f"not a to-many relation value: e{index}='{value}'")
        return ids

    def build_entity(self) -> Entity:
        """
        Create an entity of the record's type carrying its id, timestamp and
        scalar fields. Relations are left unset.
        """
        entity_type = self.type()
        if entity_type is None:
            raise EncodingError(f"unknown type '{self.type_name()}' in {self!r}")
        try:
            data: Dict[str, Any] = {}
            if ID_KEY in self._entries:
                data["id"] = self.id()
            if entity_type.timestamped and self.has_timestamp():
                data["timestamp"] = self.timestamp()
            for index, name in enumerate(entity_type.field_names):
                text = self.field(index)
                if text is not None:
                    annotation = entity_type.model_fields[name].annotation
                    data[name] = parse_value(text, annotation)
            return entity_type.model_validate(data)
        except (PydanticValidationError, ValidationError, ValueError, KeyError) as exc:
            raise EncodingError(
                f"cannot build {entity_type.get_entity_name()} from {self!r}", cause=exc
            ) from exc


def _check_entry(key: str, value: str, directory: "EntityDirectory") -> None:
    if key in (ID_KEY, TIMESTAMP_KEY):
        if not _ID_PATTERN.fullmatch(value):
            raise ValidationError(f"not matching an id value: {key}='{value}'")
        return
    if key == TYPE_KEY:
        if directory.type_by_name(value) is None:
            raise ValidationError(f"unknown type '{value}'")
        return
    if _INDEX_KEY_PATTERN.fullmatch(key):
        if key.startswith("e") and not _is_relation_value(value):
            raise ValidationError(f"not a relation value: {key}='{value}'")
        return
    raise ValidationError(f"unknown key '{key}'")


def _is_id_list(key: str, value: Any) -> bool:
    # form parameters are always strings, so integer elements mean a JSON array
    return (
        isinstance(value, (list, tuple))
        and key.startswith("e")
        and bool(_INDEX_KEY_PATTERN.fullmatch(key))
        and all(isinstance(i, int) and not isinstance(i, bool) for i in value)
    )


def _is_relation_value(value: str) -> bool:
    return bool(_INTEGER_PATTERN.fullmatch(value)) or _parse_id_array(value) is not None


__all__ = [
    "DATE_FORMAT",
    "FlatRecord",
    "format_value",
    "from_millis",
    "parse_value",
    "scalar_text",
    "to_millis",
]

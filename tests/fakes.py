"""
Sample entity types and fake transports shared by the test suite.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import quote_plus, unquote_plus

from entity_rest.domain import (
    Entity,
    EntityDirectory,
    Relation,
    TimestampedEntity,
    to_many,
    to_one,
)


class Genre(Enum):
    FICTION = 1
    SCIENCE = 2


class Author(Entity):
    entity_name = "author"
    field_names = ("name", "born")
    relations = (Relation("books", "book", many=True),)

    name: Optional[str] = None
    born: Optional[date] = None
    books: List[Entity] = to_many()


class Tag(Entity):
    entity_name = "tag"
    field_names = ("label",)

    label: Optional[str] = None


class Book(TimestampedEntity):
    entity_name = "book"
    field_names = ("title", "pages", "price", "available", "genre")
    relations = (Relation("author", "author"), Relation("tags", "tag", many=True))

    title: Optional[str] = None
    pages: Optional[int] = None
    price: Optional[Decimal] = None
    available: bool = False
    genre: Optional[Genre] = None
    author: Optional[Entity] = to_one()
    tags: List[Entity] = to_many()


def make_directory() -> EntityDirectory:
    return EntityDirectory([Author, Book, Tag])


def encode_body(payload: Any) -> str:
    """Server-side body encoding: JSON, then percent-encoded."""
    return quote_plus(json.dumps(payload))


Call = Tuple[str, str, Optional[str]]


class RecordingTransport:
    """
    Transport returning scripted bodies and recording every call.

    GET and POST need a scripted response; PUT and DELETE default to "".
    """

    def __init__(self) -> None:
        self.responses: Dict[Tuple[str, str], Union[str, BaseException]] = {}
        self.calls: List[Call] = []
        self.closed = False

    def respond_json(self, method: str, path: str, payload: Any) -> None:
        self.responses[(method, path)] = encode_body(payload)

    def respond_raw(self, method: str, path: str, body: str) -> None:
        self.responses[(method, path)] = body

    def fail(self, method: str, path: str, exc: BaseException) -> None:
        self.responses[(method, path)] = exc

    def _call(self, method: str, path: str, body: Optional[str] = None) -> str:
        self.calls.append((method, path, body))
        response = self.responses.get((method, path))
        if isinstance(response, BaseException):
            raise response
        if response is None:
            if method in ("PUT", "DELETE"):
                return ""
            raise ConnectionError(f"no response scripted for {method} {path}")
        return response

    def get(self, path: str) -> str:
        return self._call("GET", path)

    def post(self, path: str, body: str) -> str:
        return self._call("POST", path, body)

    def put(self, path: str, body: str) -> str:
        return self._call("PUT", path, body)

    def delete(self, path: str) -> str:
        return self._call("DELETE", path)

    def close(self) -> None:
        self.closed = True


class InMemoryServer:
    """
    Transport that behaves like the entity REST server over in-memory tables.
    """

    def __init__(self, next_id: int = 100) -> None:
        self.tables: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self.calls: List[Call] = []
        self.next_id = next_id
        self.closed = False

    def seed(self, type_name: str, **record: Any) -> None:
        entry = {"type": type_name}
        entry.update(record)
        self.tables.setdefault(type_name, {})[int(record["id"])] = entry

    def requests(self, method: Optional[str] = None) -> List[Call]:
        return [call for call in self.calls if method is None or call[0] == method]

    def get(self, path: str) -> str:
        self.calls.append(("GET", path, None))
        if path == "/server/status":
            return encode_body({"state": "running", "uptime": 42})
        _, _, type_name, selector = path.split("/", 3)
        table = self.tables.get(type_name, {})
        if selector == "id":
            return encode_body([str(entity_id) for entity_id in sorted(table)])
        if selector == "count":
            return quote_plus(str(len(table)))
        ids = [int(entity_id) for entity_id in selector.split(",")]
        return encode_body([table[entity_id] for entity_id in ids if entity_id in table])

    def post(self, path: str, body: str) -> str:
        self.calls.append(("POST", path, body))
        type_name = path.split("/")[2]
        record = json.loads(unquote_plus(body))
        record["id"] = str(self.next_id)
        self.next_id += 1
        self.tables.setdefault(type_name, {})[int(record["id"])] = record
        return encode_body(record)

    def put(self, path: str, body: str) -> str:
        self.calls.append(("PUT", path, body))
        _, _, type_name, entity_id = path.split("/")
        self.tables.setdefault(type_name, {})[int(entity_id)] = json.loads(unquote_plus(body))
        return ""

    def delete(self, path: str) -> str:
        self.calls.append(("DELETE", path, None))
        _, _, type_name, entity_id = path.split("/")
        self.tables.get(type_name, {}).pop(int(entity_id), None)
        return ""

    def close(self) -> None:
        self.closed = True

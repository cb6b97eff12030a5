"""
REST protocol client for entity CRUD.

Path scheme, relative to the server's API prefix:

    GET     /entity/{type}/{id}          one record
    GET     /entity/{type}/{id1,id2,..}  several records
    GET     /entity/{type}/id            all ids
    GET     /entity/{type}/count         number of entities
    POST    /entity/{type}               create, returns the stored record
    PUT     /entity/{type}/{id}          update
    DELETE  /entity/{type}/{id}          delete
    GET     /server/status               string-to-string status map

Request and response bodies are percent-encoded JSON. Every failure is raised
as a ClientError naming the operation ("GET@/entity/book/7").
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional
from urllib.parse import quote_plus, unquote_plus

from entity_rest.config import Settings, get_settings
from entity_rest.domain.directory import EntityDirectory
from entity_rest.domain.record import FlatRecord, scalar_text
from entity_rest.errors import ClientError, ShapeError, ValidationError
from entity_rest.infrastructure.json_codec import JsonCodec
from entity_rest.infrastructure.transport import HttpTransport, RequestsTransport
from entity_rest.utils.logging import get_logger

log = get_logger(__name__)

ENTITY_ROOT = "/entity"
STATUS_PATH = "/server/status"


def entity_path(type_name: str, selector: Optional[object] = None) -> str:
    if selector is None:
        return f"{ENTITY_ROOT}/{type_name}"
    return f"{ENTITY_ROOT}/{type_name}/{selector}"


class RestClient:
    """
    Stateless request/response client; holds only the transport handle.
    """

    def __init__(
        self,
        transport: HttpTransport,
        directory: EntityDirectory,
        codec: Optional[JsonCodec] = None,
        charset: str = "utf-8",
    ) -> None:
        self.transport = transport
        self.directory = directory
        self.codec = codec if codec is not None else JsonCodec()
        self.charset = charset

    @classmethod
    def from_settings(
        cls, directory: EntityDirectory, settings: Optional[Settings] = None
    ) -> "RestClient":
        """Build a client over RequestsTransport from configuration."""
        settings = settings or get_settings()
        transport = RequestsTransport(
            settings.base_url,
            timeout=settings.request_timeout_seconds,
            charset=settings.charset,
        )
        return cls(transport, directory, codec=JsonCodec(), charset=settings.charset)

    @contextmanager
    def _operation(self, method: str, path: str) -> Iterator[str]:
        operation = f"{method}@{path}"
        log.debug(f"[REQUEST] {operation}", extra={"method": method, "path": path})
        try:
            yield operation
        except Exception as exc:
            error = ClientError.wrap(exc, operation)
            log.warning(
                f"[REQUEST FAILED] {operation}: {error.message}",
                extra={"method": method, "path": path, "kind": error.kind.value},
            )
            raise error from exc

    def _decode_body(self, body: str) -> str:
        return unquote_plus(body, encoding=self.charset)

    def _encode_body(self, record: FlatRecord) -> str:
        return quote_plus(self.codec.encode(record.as_dict()), encoding=self.charset)

    def _records(self, payload: Iterable[Dict[str, object]]) -> List[FlatRecord]:
        return [FlatRecord.from_mapping(raw, self.directory) for raw in payload]

    def _fetch(self, path: str) -> List[FlatRecord]:
        with self._operation("GET", path):
            body = self._decode_body(self.transport.get(path))
            return self._records(self.codec.decode(body, JsonCodec.RECORD_LIST))

    def _type_path(self, record: FlatRecord) -> str:
        entity_type = record.type()
        if entity_type is None:
            raise ValidationError(f"missing type in {record!r}")
        return entity_path(self.directory.name_by_type(entity_type))

    def _id_path(self, record: FlatRecord) -> str:
        entity_id = record.id()
        if entity_id < 0:
            raise ValidationError(f"invalid id {entity_id}")
        return f"{self._type_path(record)}/{entity_id}"

    def get_dto(self, type_name: str, entity_id: int) -> FlatRecord:
        """Fetch exactly one record."""
        path = entity_path(type_name, entity_id)
        records = self._fetch(path)
        if len(records) != 1:
            raise ShapeError(
                f"expected one record, found {len(records)}: {records!r}",
                operation=f"GET@{path}",
            )
        return records[0]

    def get_dtos_by_ids(self, type_name: str, entity_ids: Iterable[int]) -> List[FlatRecord]:
        """Fetch several records; no request is made for an empty id list."""
        ids = list(entity_ids)
        if not ids:
            return []
        return self._fetch(entity_path(type_name, ",".join(str(i) for i in ids)))

    def get_ids(self, type_name: str) -> List[int]:
        path = entity_path(type_name, "id")
        with self._operation("GET", path):
            body = self._decode_body(self.transport.get(path))
            ids = self.codec.decode(body, JsonCodec.STRING_LIST)
            try:
                return [int(str(entity_id).strip()) for entity_id in ids]
            except ValueError as exc:
                raise ValidationError(f"not an id list: {ids!r}", cause=exc) from exc

    def get_count(self, type_name: str) -> int:
        path = entity_path(type_name, "count")
        with self._operation("GET", path):
            body = self._decode_body(self.transport.get(path)).strip()
            try:
                return int(body)
            except ValueError as exc:
                raise ValidationError(f"not a count: {body!r}", cause=exc) from exc

    def post_dto(self, record: FlatRecord) -> FlatRecord:
        """Create an entity; returns the record as stored by the server."""
        path = self._type_path(record)
        with self._operation("POST", path):
            body = self._decode_body(self.transport.post(path, self._encode_body(record)))
            return FlatRecord.from_mapping(
                self.codec.decode(body, JsonCodec.RECORD), self.directory
            )

    def put_dto(self, record: FlatRecord) -> None:
        """Update a persisted entity. Fails before sending if the record has no valid id."""
        path = self._id_path(record)
        with self._operation("PUT", path):
            self.transport.put(path, self._encode_body(record))

    def delete_by_id(self, type_name: str, entity_id: int) -> None:
        path = entity_path(type_name, entity_id)
        with self._operation("DELETE", path):
            self.transport.delete(path)

    def get_server_status(self) -> Dict[str, str]:
        with self._operation("GET", STATUS_PATH):
            body = self._decode_body(self.transport.get(STATUS_PATH))
            status = self.codec.decode(body, JsonCodec.STRING_MAP)
            return {key: scalar_text(value) for key, value in status.items()}

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["RestClient", "ENTITY_ROOT", "STATUS_PATH", "entity_path"]

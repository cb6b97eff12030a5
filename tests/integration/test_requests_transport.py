"""
Integration tests for the REST client over real HTTP.

These tests start a local HTTP server in a background thread and verify that:
1. RequestsTransport sends verbs, paths and percent-encoded bodies unchanged
2. The REST client decodes real responses into records and entities
3. HTTP error statuses surface as TransportError with the operation named
"""

from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Tuple
from urllib.parse import quote_plus, unquote_plus

import pytest
import requests

from entity_rest.config import Settings
from entity_rest.domain import FlatRecord
from entity_rest.errors import TransportError
from entity_rest.infrastructure import RequestsTransport, RestClient
from entity_rest.pipeline import create_controller
from tests.fakes import Book, Tag

API_PREFIX = "/api"
HTTP_NOT_FOUND = 404
CREATED_ID = 77


class _EntityHandler(BaseHTTPRequestHandler):
    books: Dict[str, Dict[str, str]] = {}
    received: List[Tuple[str, str, str]] = []

    def _reply(self, status: int, body: str = "") -> None:
        data = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _body(self) -> str:
        length = int(self.headers.get("Content-Length", 0))
        return self.rfile.read(length).decode("utf-8")

    def do_GET(self) -> None:  # noqa: N802
        self.received.append(("GET", self.path, ""))
        if self.path == f"{API_PREFIX}/entity/book/count":
            self._reply(200, str(len(self.books)))
        elif self.path == f"{API_PREFIX}/entity/book/id":
            self._reply(200, quote_plus(json.dumps(sorted(self.books))))
        elif self.path.startswith(f"{API_PREFIX}/entity/book/"):
            ids = self.path.rsplit("/", 1)[1].split(",")
            records = [self.books[i] for i in ids if i in self.books]
            self._reply(200, quote_plus(json.dumps(records)))
        elif self.path.startswith(f"{API_PREFIX}/entity/tag/"):
            self._reply(200, quote_plus(json.dumps([])))
        else:
            self._reply(HTTP_NOT_FOUND, "no such resource")

    def do_POST(self) -> None:  # noqa: N802
        body = self._body()
        self.received.append(("POST", self.path, body))
        record = json.loads(unquote_plus(body))
        record["id"] = str(CREATED_ID)
        self.books[record["id"]] = record
        self._reply(200, quote_plus(json.dumps(record)))

    def do_PUT(self) -> None:  # noqa: N802
        body = self._body()
        self.received.append(("PUT", self.path, body))
        self.books[self.path.rsplit("/", 1)[1]] = json.loads(unquote_plus(body))
        self._reply(204)

    def do_DELETE(self) -> None:  # noqa: N802
        self.received.append(("DELETE", self.path, ""))
        self.books.pop(self.path.rsplit("/", 1)[1], None)
        self._reply(204)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        pass


@pytest.fixture
def http_server():
    _EntityHandler.books = {
        "5": {"type": "book", "id": "5", "f0": "Always Coming Home", "e1": "[]"},
    }
    _EntityHandler.received = []
    server = ThreadingHTTPServer(("127.0.0.1", 0), _EntityHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}{API_PREFIX}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join()


@pytest.fixture
def http_client(http_server, directory):
    with RestClient(RequestsTransport(http_server, timeout=5.0), directory) as client:
        yield client


class TestRequestsTransport:
    """RestClient over RequestsTransport against a live server."""

    def test_get_dto_round_trips_over_http(self, http_client: RestClient):
        """A fetched record carries the server's entries."""
        record = http_client.get_dto("book", 5)

        assert record.id() == 5
        assert record.field(0) == "Always Coming Home"

    def test_get_ids_and_count(self, http_client: RestClient):
        """Id listing and count use their dedicated paths."""
        assert http_client.get_ids("book") == [5]
        assert http_client.get_count("book") == 1

    def test_post_sends_percent_encoded_body(self, http_client: RestClient, directory):
        """The request body is percent-encoded JSON; the response is the stored record."""
        record = FlatRecord.from_entity(Book(title="Ça & ça"), directory)

        created = http_client.post_dto(record)

        method, path, body = _EntityHandler.received[-1]
        assert (method, path) == ("POST", f"{API_PREFIX}/entity/book")
        assert json.loads(unquote_plus(body))["f0"] == "Ça & ça"
        assert created.id() == CREATED_ID
        assert created.field(0) == "Ça & ça"

    def test_http_error_status_is_a_transport_error(self, http_client: RestClient):
        """Non-success statuses are wrapped with the operation and the HTTP error as cause."""
        with pytest.raises(TransportError) as excinfo:
            http_client.get_server_status()

        error = excinfo.value
        assert error.operation == "GET@/server/status"
        assert isinstance(error.cause, requests.HTTPError)
        assert error.cause.response.status_code == HTTP_NOT_FOUND

    def test_unreachable_server_is_a_transport_error(self, directory):
        """Connection failures are wrapped like any other transport failure."""
        transport = RequestsTransport("http://127.0.0.1:9", timeout=1.0)

        with RestClient(transport, directory) as client:
            with pytest.raises(TransportError) as excinfo:
                client.get_count("book")

        assert isinstance(excinfo.value.cause, requests.ConnectionError)


class TestControllerOverHttp:
    """Full controller pipeline built from settings against a live server."""

    def test_update_and_delete_through_decorated_controller(self, http_server, directory):
        """Writes pass through every decorator and reach the server."""
        settings = Settings(base_url=http_server, controller_decorators=["caching", "auditing"])
        controller = create_controller(directory, settings)

        book = controller.get_by_id(Book, 5)
        book.title = "Always Coming Home (revised)"
        controller.update(book)
        controller.delete(book)
        controller.close()

        writes = [(m, p) for m, p, _ in _EntityHandler.received if m in ("PUT", "DELETE")]
        assert writes == [
            ("PUT", f"{API_PREFIX}/entity/book/5"),
            ("DELETE", f"{API_PREFIX}/entity/book/5"),
        ]
        assert [entry.operation for entry in controller.trail] == ["update", "delete"]

    def test_list_over_http(self, http_server, directory):
        """Listing fetches ids, then the records for those ids."""
        settings = Settings(base_url=http_server)
        controller = create_controller(directory, settings, decorators=[])

        assert [book.id for book in controller.list(Book)] == [5]
        assert controller.list(Tag) == []
        controller.close()

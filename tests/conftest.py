"""
Pytest configuration for the entity REST client.

Provides fixtures for:
- The sample entity directory
- A recording transport and a REST client on top of it
- An in-memory server and a remote controller on top of it
- Settings with test-specific overrides
"""

from __future__ import annotations

import pytest

from entity_rest.config import Settings
from entity_rest.controllers import RemoteController
from entity_rest.domain import EntityDirectory
from entity_rest.infrastructure import JsonCodec, RestClient
from tests.fakes import InMemoryServer, RecordingTransport, make_directory


@pytest.fixture
def directory() -> EntityDirectory:
    return make_directory()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def client(transport: RecordingTransport, directory: EntityDirectory) -> RestClient:
    return RestClient(transport, directory, codec=JsonCodec())


@pytest.fixture
def server() -> InMemoryServer:
    """
    Server seeded with a small library:

    author 1 wrote books 10 and 11; book 10 is tagged 2 and 3.
    """
    server = InMemoryServer()
    server.seed("author", id="1", f0="Ursula K. Le Guin", f1="21.10.1929", e0="[10,11]")
    server.seed(
        "book",
        id="10",
        timestamp="1600000000000",
        f0="The Dispossessed",
        f1="387",
        f2="9.99",
        f3="true",
        f4="FICTION",
        e0="1",
        e1="[2,3]",
    )
    server.seed("book", id="11", f0="The Lathe of Heaven", f3="false", e0="1", e1="[]")
    server.seed("tag", id="2", f0="anarchism")
    server.seed("tag", id="3", f0="utopia")
    return server


@pytest.fixture
def remote(server: InMemoryServer, directory: EntityDirectory) -> RemoteController:
    return RemoteController(RestClient(server, directory), directory)


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.
    """
    return Settings(
        base_url="http://entities.test/api",
        request_timeout_seconds=5.0,
        controller_decorators=[],
        log_level="DEBUG",
    )

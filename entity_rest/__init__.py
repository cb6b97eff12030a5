"""
entity-rest - generic remote-entity access over a REST backend.

This package lets a typed entity model be persisted and retrieved through a
REST server without per-type serialization code:

- A flat, string-keyed wire encoding of any entity and its validating decode
- A REST protocol client implementing CRUD over a fixed URL scheme
- A controller capability set with stackable caching, validating and
  auditing decorators
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from entity_rest.config import Settings, get_settings
from entity_rest.controllers import (
    AbstractControllerDecorator,
    AuditingController,
    CachingController,
    ModelController,
    RemoteController,
    ValidatingController,
)
from entity_rest.domain import (
    Entity,
    EntityDirectory,
    FlatRecord,
    Readable,
    Relation,
    TimestampedEntity,
    to_many,
    to_one,
)
from entity_rest.errors import (
    ClientError,
    EncodingError,
    ErrorKind,
    ShapeError,
    TransportError,
    ValidationError,
)
from entity_rest.infrastructure import HttpTransport, JsonCodec, RequestsTransport, RestClient
from entity_rest.pipeline import available_decorators, build_pipeline, create_controller
from entity_rest.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Entity",
    "EntityDirectory",
    "FlatRecord",
    "Readable",
    "Relation",
    "TimestampedEntity",
    "to_many",
    "to_one",
    # Errors
    "ClientError",
    "EncodingError",
    "ErrorKind",
    "ShapeError",
    "TransportError",
    "ValidationError",
    # Infrastructure
    "HttpTransport",
    "JsonCodec",
    "RequestsTransport",
    "RestClient",
    # Controllers
    "AbstractControllerDecorator",
    "AuditingController",
    "CachingController",
    "ModelController",
    "RemoteController",
    "ValidatingController",
    "available_decorators",
    "build_pipeline",
    "create_controller",
    # Logging
    "configure_logging",
    "get_logger",
]

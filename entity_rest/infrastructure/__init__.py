"""
Infrastructure package for the entity REST client.

Centralizes I/O concerns: the HTTP transport, the JSON codec, and the REST
protocol client built on both. Keep this layer focused on requests and
responses, decoupled from controller logic.
"""

from entity_rest.infrastructure.json_codec import JsonCodec
from entity_rest.infrastructure.rest_client import RestClient
from entity_rest.infrastructure.transport import HttpTransport, RequestsTransport

__all__ = [
    "HttpTransport",
    "JsonCodec",
    "RequestsTransport",
    "RestClient",
]

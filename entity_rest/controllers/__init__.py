"""
Controllers package for the entity REST client.

This module re-exports the controller capability set, the remote base
controller and the decorators so downstream code can import from
`entity_rest.controllers` directly.
"""

from entity_rest.controllers.abstract import AbstractControllerDecorator, ModelController
from entity_rest.controllers.auditing import AuditEntry, AuditingController
from entity_rest.controllers.caching import CachingController
from entity_rest.controllers.remote import RemoteController
from entity_rest.controllers.validating import ValidatingController, Validator

__all__ = [
    # Abstracts
    "AbstractControllerDecorator",
    "ModelController",
    # Base controller
    "RemoteController",
    # Decorators
    "AuditEntry",
    "AuditingController",
    "CachingController",
    "ValidatingController",
    "Validator",
]

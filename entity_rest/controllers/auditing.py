"""
Auditing decorator: records every write operation, successful or not.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type

from entity_rest.controllers.abstract import (
    AbstractControllerDecorator,
    EntityT,
    ModelController,
)
from entity_rest.domain.models import Entity
from entity_rest.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class AuditEntry:
    """
    One audited operation.
    """

    operation: str
    entity_type: str
    entity_id: Optional[int] = field(default=None)
    succeeded: bool = field(default=True)
    error: Optional[str] = field(default=None)
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_log_extra(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "succeeded": self.succeeded,
        }


class AuditingController(AbstractControllerDecorator):
    """
    Logs and keeps an AuditEntry for `create_new`, `copy`, `update` and `delete`.

    Failures are recorded and then re-raised unchanged.
    """

    name: str = "auditing"

    def __init__(self, controller: ModelController) -> None:
        super().__init__(controller)
        self._trail: List[AuditEntry] = []
        self._lock = threading.Lock()

    @property
    def trail(self) -> List[AuditEntry]:
        with self._lock:
            return list(self._trail)

    def _record(self, entry: AuditEntry) -> None:
        with self._lock:
            self._trail.append(entry)
        if entry.succeeded:
            log.info(f"[AUDIT] {entry.operation} {entry.entity_type}", extra=entry.as_log_extra())
        else:
            log.warning(
                f"[AUDIT] {entry.operation} {entry.entity_type} failed: {entry.error}",
                extra=entry.as_log_extra(),
            )

    def _failed(
        self, operation: str, entity_type: str, entity_id: Optional[int], exc: Exception
    ) -> None:
        self._record(
            AuditEntry(operation, entity_type, entity_id, succeeded=False, error=str(exc))
        )

    def create_new(self, entity_type: Type[EntityT]) -> EntityT:
        try:
            entity = self.controller.create_new(entity_type)
        except Exception as exc:
            self._failed("create_new", entity_type.get_entity_name(), None, exc)
            raise
        self._record(AuditEntry("create_new", entity.get_entity_name(), entity.id))
        return entity

    def copy(self, entity: EntityT) -> EntityT:
        try:
            duplicate = self.controller.copy(entity)
        except Exception as exc:
            self._failed("copy", entity.get_entity_name(), entity.id, exc)
            raise
        self._record(AuditEntry("copy", duplicate.get_entity_name(), duplicate.id))
        return duplicate

    def update(self, *entities: Entity) -> None:
        try:
            self.controller.update(*entities)
        except Exception as exc:
            for entity in entities:
                self._failed("update", entity.get_entity_name(), entity.id, exc)
            raise
        for entity in entities:
            self._record(AuditEntry("update", entity.get_entity_name(), entity.id))

    def delete(self, entity: Entity) -> None:
        try:
            self.controller.delete(entity)
        except Exception as exc:
            self._failed("delete", entity.get_entity_name(), entity.id, exc)
            raise
        self._record(AuditEntry("delete", entity.get_entity_name(), entity.id))


__all__ = ["AuditEntry", "AuditingController"]

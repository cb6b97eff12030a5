"""
Validating decorator: checks entities before they are written.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Type

from entity_rest.controllers.abstract import AbstractControllerDecorator, ModelController
from entity_rest.domain.models import Entity
from entity_rest.errors import ValidationError

# A validator returns the problems it found; an empty result means valid.
Validator = Callable[[Entity], Iterable[str]]


class ValidatingController(AbstractControllerDecorator):
    """
    Runs the validators registered for an entity's type before `update`.

    If any entity has problems, a ValidationError listing them is raised and
    nothing is forwarded. Other operations pass through unchanged.
    """

    name: str = "validating"

    def __init__(
        self,
        controller: ModelController,
        validators: Optional[Mapping[Type[Entity], Iterable[Validator]]] = None,
    ) -> None:
        super().__init__(controller)
        self._validators: Dict[Type[Entity], List[Validator]] = {}
        for entity_type, type_validators in (validators or {}).items():
            for validator in type_validators:
                self.register(entity_type, validator)

    def register(self, entity_type: Type[Entity], validator: Validator) -> None:
        self._validators.setdefault(entity_type, []).append(validator)

    def problems(self, entity: Entity) -> List[str]:
        found: List[str] = []
        for entity_type, validators in self._validators.items():
            if isinstance(entity, entity_type):
                for validator in validators:
                    found.extend(validator(entity))
        return found

    def update(self, *entities: Entity) -> None:
        messages = []
        for entity in entities:
            for problem in self.problems(entity):
                messages.append(f"{entity.get_entity_name()} {entity.id}: {problem}")
        if messages:
            raise ValidationError("; ".join(messages))
        self.controller.update(*entities)


__all__ = ["ValidatingController", "Validator"]

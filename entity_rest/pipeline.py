"""
Builds controller chains: a remote base controller wrapped by decorators.

Usage:
    from entity_rest.pipeline import create_controller

    controller = create_controller(directory, decorators=["caching", "auditing"])
    book = controller.get_by_id(Book, 7)

Decorators are applied in order, the first one wrapping the base controller
directly; the last one is what callers talk to.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Union

from entity_rest.config import Settings, get_settings
from entity_rest.controllers.abstract import ModelController
from entity_rest.controllers.auditing import AuditingController
from entity_rest.controllers.caching import CachingController
from entity_rest.controllers.remote import RemoteController
from entity_rest.controllers.validating import ValidatingController
from entity_rest.domain.directory import EntityDirectory
from entity_rest.infrastructure.json_codec import JsonCodec
from entity_rest.infrastructure.rest_client import RestClient
from entity_rest.infrastructure.transport import HttpTransport, RequestsTransport
from entity_rest.utils.logging import configure_logging, get_logger

log = get_logger(__name__)

DecoratorFactory = Callable[[ModelController], ModelController]


def _decorator_factories() -> Dict[str, DecoratorFactory]:
    """Registry of available decorators."""
    return {
        "auditing": lambda inner: AuditingController(inner),
        "caching": lambda inner: CachingController(inner),
        "validating": lambda inner: ValidatingController(inner),
    }


def available_decorators() -> List[str]:
    """List available decorator names."""
    return sorted(_decorator_factories().keys())


def _resolve_decorator(name: str) -> DecoratorFactory:
    factories = _decorator_factories()
    if name not in factories:
        raise ValueError(f"Unknown decorator '{name}'. Available: {', '.join(factories)}")
    return factories[name]


def build_pipeline(
    base: ModelController,
    decorators: Iterable[Union[str, DecoratorFactory]] = (),
) -> ModelController:
    """
    Wrap `base` with each decorator in turn.

    Parameters
    ----------
    base : ModelController
        Innermost controller, usually a RemoteController.
    decorators : iterable[str | callable]
        Registered decorator names, or factories taking the controller to wrap.

    Returns
    -------
    ModelController
        The outermost layer.
    """
    controller = base
    layers = [getattr(base, "name", type(base).__name__)]
    for decorator in decorators:
        factory = _resolve_decorator(decorator) if isinstance(decorator, str) else decorator
        controller = factory(controller)
        layers.append(getattr(controller, "name", type(controller).__name__))
    log.debug(f"[PIPELINE] {' <- '.join(reversed(layers))}", extra={"layers": layers})
    return controller


def create_controller(
    directory: EntityDirectory,
    settings: Optional[Settings] = None,
    transport: Optional[HttpTransport] = None,
    decorators: Optional[Iterable[Union[str, DecoratorFactory]]] = None,
) -> ModelController:
    """
    Assemble transport, REST client, remote controller and decorators.

    Logging is configured from the settings unless the application has
    already installed root handlers.

    Parameters
    ----------
    directory : EntityDirectory
        Entity types the server knows about.
    settings : Settings | None
        Defaults to `get_settings()`.
    transport : HttpTransport | None
        Defaults to a RequestsTransport on `settings.base_url`.
    decorators : iterable | None
        Defaults to `settings.controller_decorators`.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json, force=False)
    if transport is None:
        transport = RequestsTransport(
            settings.base_url,
            timeout=settings.request_timeout_seconds,
            charset=settings.charset,
        )
    client = RestClient(transport, directory, codec=JsonCodec(), charset=settings.charset)
    base = RemoteController(client, directory)
    chosen = settings.controller_decorators if decorators is None else decorators
    return build_pipeline(base, chosen)


__all__ = [
    "available_decorators",
    "build_pipeline",
    "create_controller",
]

"""Service plugin registry.

Maps service names to factories that build a client from
:class:`~cloudhub.base.settings.ServiceSettings`.  Service packages register
themselves at import time; :class:`cloudhub.facade.CloudHub` looks factories
up by name whenever an accessor is called.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterator

from cloudhub.base.exceptions import (
    ServiceAlreadyRegisteredError,
    ServiceError,
    ServiceNotFoundError,
)
from cloudhub.base.logger import hub_logger

_log = hub_logger.bind("register")

ServiceFactory = Callable[..., Any]


def _is_reserved(name: str) -> bool:
    """True if *name* is not a valid accessor name on the facade."""
    from cloudhub.facade import CloudHub  # lazy import, facade depends on this module

    return not name.isidentifier() or name.startswith("_") or hasattr(CloudHub, name)


class ServiceRegistry:
    """Thread-safe mapping of service name -> client factory."""

    def __init__(self) -> None:
        self._factories: dict[str, ServiceFactory] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: ServiceFactory, *, replace: bool = False) -> None:
        """Register *factory* under *name*.

        Raises:
            ServiceAlreadyRegisteredError: If *name* is taken and *replace* is False.
            ServiceError: If *name* would shadow an attribute of the facade.
        """
        if not callable(factory):
            raise TypeError(f"Factory for service '{name}' must be callable")
        if _is_reserved(name):
            raise ServiceError(f"Reserved service name: '{name}'")
        with self._lock:
            if name in self._factories and not replace:
                raise ServiceAlreadyRegisteredError(f"Service already registered: '{name}'")
            self._factories[name] = factory
        _log.debug("Registered service factory", service=name)

    def unregister(self, name: str) -> None:
        with self._lock:
            if self._factories.pop(name, None) is None:
                raise ServiceNotFoundError(f"Service not registered: '{name}'")

    def get(self, name: str) -> ServiceFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise ServiceNotFoundError(f"Service not registered: '{name}'") from None

    def names(self) -> list[str]:
        return sorted(self._factories)

    def clear(self) -> None:
        with self._lock:
            self._factories.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._factories)


# Process-wide registry used by cloudhub.new() unless another is given
service_registry = ServiceRegistry()


def register_service(
    name: str,
    factory: ServiceFactory | None = None,
    *,
    replace: bool = False,
    registry: ServiceRegistry | None = None,
) -> Any:
    """Register a service factory, directly or as a decorator.

    Usage::

        @register_service("storage")
        def storage(settings):
            return StorageClient(project=settings.project_id, ...)
    """
    target = registry if registry is not None else service_registry

    if factory is None:
        def decorator(fn: ServiceFactory) -> ServiceFactory:
            target.register(name, fn, replace=replace)
            return fn

        return decorator

    target.register(name, factory, replace=replace)
    return factory

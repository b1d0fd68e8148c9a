"""Cloudhub facade.

Provides :func:`new`, the single entry-point for obtaining a configured
facade, and :class:`CloudHub`, whose per-service accessors are looked up in
the service registry by name::

    hub = cloudhub.new("my-project", retries=5)
    storage = hub.storage()
    pubsub = hub.service("pubsub", timeout=10)
"""

from __future__ import annotations

import functools
import uuid
from typing import Any

from cloudhub.base.config import Config
from cloudhub.base.defaults import configure
from cloudhub.base.logger import hub_logger
from cloudhub.base.services import ServiceRegistry, service_registry
from cloudhub.base.settings import ServiceSettings

_SETTINGS_KEYS = ("project_id", "credentials", "retries", "timeout")

_log = hub_logger.bind("service")


class CloudHub:
    """Entry point to every registered service client.

    The constructor arguments are stored as given.  They are merged with the
    shared configuration only when a service client is requested: explicit
    values win, then the service's sub-configuration, then the top-level
    configuration.
    """

    def __init__(
        self,
        project_id: str | None = None,
        credentials: Any = None,
        *,
        retries: int | None = None,
        timeout: float | None = None,
        config: Config | None = None,
        services: ServiceRegistry | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._retries = retries
        self._timeout = timeout
        self._config = config
        self._services = services

    @property
    def project_id(self) -> str | None:
        return self._project_id

    @property
    def credentials(self) -> Any:
        return self._credentials

    @property
    def retries(self) -> int | None:
        return self._retries

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def config(self) -> Config:
        """The configuration this facade falls back to."""
        return self._config if self._config is not None else configure()

    @property
    def registry(self) -> ServiceRegistry:
        return self._services if self._services is not None else service_registry

    def settings_for(self, service_name: str, **overrides: Any) -> ServiceSettings:
        """Resolve the settings a *service_name* client would be built with.

        Args:
            service_name: Registered service name (e.g. 'storage').
            **overrides: Per-call values; ``project_id``, ``credentials``,
                ``retries`` and ``timeout`` take precedence over the facade's
                own values, anything else is passed through as an option.

        Raises:
            pydantic.ValidationError: If a resolved value is invalid.
        """
        explicit = {
            "project_id": self._project_id,
            "credentials": self._credentials,
            "retries": self._retries,
            "timeout": self._timeout,
        }
        values: dict[str, Any] = {}
        for key in _SETTINGS_KEYS:
            value = overrides.pop(key, None)
            if value is None:
                value = explicit[key]
            if value is None:
                value = _config_value(self.config, service_name, key)
            values[key] = value
        return ServiceSettings(**values, **overrides)

    def service(self, service_name: str, **overrides: Any) -> Any:
        """Create a client for *service_name*.

        Raises:
            ServiceNotFoundError: If no factory is registered for the name.
        """
        factory = self.registry.get(service_name)
        settings = self.settings_for(service_name, **overrides)
        request_id = uuid.uuid4().hex[:12]
        _log.debug("Creating service client", service=service_name, request_id=request_id)
        client = factory(settings)
        _log.debug("Created service client", service=service_name, request_id=request_id)
        return client

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self.registry:
            return functools.partial(self.service, name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self.registry.names()))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(project_id={self._project_id!r}, "
            f"retries={self._retries!r}, timeout={self._timeout!r})"
        )


def _config_value(config: Config, service_name: str, key: str) -> Any:
    """First non-None *key* from the service's sub-config, then the top level."""
    scopes = [config]
    if config.is_subconfig(service_name):
        scopes.insert(0, config[service_name])
    for scope in scopes:
        if key in scope and not scope.is_subconfig(key):
            value = scope.get(key)
            if value is not None:
                return value
    return None


def new(
    project_id: str | None = None,
    credentials: Any = None,
    *,
    retries: int | None = None,
    timeout: float | None = None,
    config: Config | None = None,
    services: ServiceRegistry | None = None,
) -> CloudHub:
    """Create a new facade for connecting to cloud services.

    Args:
        project_id: Project identifier for the services you connect to.
        credentials: Path to a keyfile, keyfile contents as a dict, or a
            credentials object.
        retries: Number of times service clients retry on server error.
        timeout: Default request timeout for service clients.
        config: Configuration to fall back to; defaults to :func:`configure`.
        services: Service registry; defaults to the process-wide one.

    Returns:
        A :class:`CloudHub` holding the given values verbatim.
    """
    return CloudHub(
        project_id,
        credentials,
        retries=retries,
        timeout=timeout,
        config=config,
        services=services,
    )


__all__ = ["CloudHub", "new"]

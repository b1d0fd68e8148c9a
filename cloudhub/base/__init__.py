"""Configuration, service registry and loader internals.

Everything a service package needs to plug into Cloudhub is re-exported
here; the most common names are also exported from :mod:`cloudhub`.
"""

from .autoload import AUTOLOAD_PATTERN, ServiceLoader, auto_load_files, auto_load_packages, loaded_files
from .config import Computed, Config, Default, Static, credentials_from_env, deferred
from .defaults import configure, init_configuration
from .runtime import warn_on_old_runtime_version
from .services import ServiceRegistry, register_service, service_registry
from .settings import ServiceSettings


__all__ = [
    "AUTOLOAD_PATTERN",
    "Computed",
    "Config",
    "Default",
    "ServiceLoader",
    "ServiceRegistry",
    "ServiceSettings",
    "Static",
    "auto_load_files",
    "auto_load_packages",
    "configure",
    "credentials_from_env",
    "deferred",
    "init_configuration",
    "loaded_files",
    "register_service",
    "service_registry",
    "warn_on_old_runtime_version",
]

"""Cloudhub: one entry point for every installed cloud service client.

Importing the package sets up the shared configuration, warns when the
interpreter is old, and loads every installed ``cloudhub_*`` service
package.  Then create a facade and ask it for clients::

    import cloudhub

    hub = cloudhub.new("my-project", retries=5)
    storage = hub.storage()

Defaults shared by all services are set through :func:`configure`::

    cloudhub.configure().project_id = "my-project"
"""

from .base import (
    Computed,
    Config,
    ServiceSettings,
    Static,
    auto_load_packages,
    configure,
    deferred,
    register_service,
    warn_on_old_runtime_version,
)
from .base.exceptions import CloudhubError
from .facade import CloudHub, new

__all__ = [
    "CloudHub",
    "CloudhubError",
    "Computed",
    "Config",
    "ServiceSettings",
    "Static",
    "auto_load_packages",
    "configure",
    "deferred",
    "new",
    "register_service",
    "warn_on_old_runtime_version",
]

# Set the default top-level configuration
configure()

# Emit a warning if the current Python is at or nearing end-of-life
warn_on_old_runtime_version()

# Load all installed Cloudhub service packages
auto_load_packages()

"""
Process-wide configuration and its default fields.

:func:`configure` returns the one :class:`~cloudhub.base.config.Config`
shared by every service package, creating it on first use with the
top-level fields below.  Defaults are resolved from the environment each
time a field is read unset:

* ``project_id`` (alias ``project``): ``GOOGLE_CLOUD_PROJECT``, then
  ``GCLOUD_PROJECT``.
* ``credentials`` (alias ``keyfile``): the first non-blank variable in
  :data:`CREDENTIALS_ENV_VARS`.
"""

from __future__ import annotations

import os
import threading
from typing import Any, Callable

from cloudhub.base.config import Config, credentials_from_env, deferred

PROJECT_ENV_VARS: tuple[str, ...] = ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")

# Checked in order; the first variable with content wins.
CREDENTIALS_ENV_VARS: tuple[str, ...] = (
    "GOOGLE_CLOUD_CREDENTIALS",
    "GOOGLE_CLOUD_CREDENTIALS_JSON",
    "GOOGLE_CLOUD_KEYFILE",
    "GOOGLE_CLOUD_KEYFILE_JSON",
    "GCLOUD_KEYFILE",
    "GCLOUD_KEYFILE_JSON",
)

_config: Config | None = None
_config_lock = threading.Lock()


def default_project_id() -> str | None:
    """First non-empty project id from :data:`PROJECT_ENV_VARS`."""
    for name in PROJECT_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def default_credentials() -> dict[str, Any] | str | None:
    return credentials_from_env(*CREDENTIALS_ENV_VARS)


def init_configuration(config: Config) -> Config:
    """Add the top-level ``project_id`` and ``credentials`` fields.

    Safe to call more than once: a config that already has the fields is
    returned unchanged.
    """
    if config.is_field("project_id"):
        return config
    config.add_field(
        "project_id", deferred(default_project_id), match=str, allow_nil=True
    )
    config.add_alias("project", "project_id")
    config.add_field("credentials", deferred(default_credentials), match=object)
    config.add_alias("keyfile", "credentials")
    return config


def configure(block: Callable[[Config], Any] | None = None) -> Config:
    """Return the shared top-level config, applying *block* to it if given.

    Values set here are shared across all Cloudhub service packages, which
    may also add their own fields or sub-configurations::

        cloudhub.configure(lambda c: c.set("project_id", "my-project"))
    """
    global _config
    with _config_lock:
        if _config is None:
            _config = init_configuration(Config())
        config = _config
    if block is not None:
        block(config)
    return config

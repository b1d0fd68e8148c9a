"""
Cloudhub exception hierarchy.

Configuration and service-registry failures each have a top-level error
that inherits from :class:`CloudhubError`, with sub-exceptions for the
common failure modes (duplicate, unknown, wrong type, missing value).
"""


# ── Base ──────────────────────────────────────────────────────────────
class CloudhubError(Exception):
    """Root exception for all Cloudhub errors."""


# ── Configuration ─────────────────────────────────────────────────────
class ConfigError(CloudhubError):
    """Base exception for configuration registry operations."""


class FieldAlreadyExistsError(ConfigError):
    """A field, alias or sub-configuration with that name already exists."""


class UnknownFieldError(ConfigError, AttributeError):
    """No field, alias or sub-configuration with that name."""


class ConfigTypeError(ConfigError, TypeError):
    """Value does not satisfy the field's match or enum constraint."""


class ConfigValueMissingError(ConfigError):
    """Field resolved to None but does not allow nil values."""


# ── Services ──────────────────────────────────────────────────────────
class ServiceError(CloudhubError):
    """Base exception for service registry operations."""


class ServiceAlreadyRegisteredError(ServiceError):
    """A factory is already registered under that service name."""


class ServiceNotFoundError(ServiceError, LookupError):
    """No factory is registered under that service name."""

"""
Pydantic model for the settings handed to service factories.

Built by :meth:`cloudhub.facade.CloudHub.settings_for` from the facade's
own values and the shared configuration.  Validates retry and timeout
values at client-creation time instead of silently passing bad values to
service SDKs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cloudhub.base.exceptions import ConfigError


class ServiceSettings(BaseModel):
    """Resolved settings for one service client.

    Any keyword that is not one of the declared fields (``scope``,
    ``endpoint``, ...) is kept and available through :attr:`options`.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    project_id: str | None = Field(default=None, description="Project identifier")
    credentials: Any | None = Field(
        default=None,
        description="Keyfile path, keyfile contents as a dict, or a credentials object",
    )
    retries: int | None = Field(default=None, ge=0, description="Retries on server error")
    timeout: float | None = Field(default=None, ge=0, description="Request timeout in seconds")

    @property
    def options(self) -> dict[str, Any]:
        """Extra service-specific keyword arguments."""
        return dict(self.model_extra or {})

    def load_credentials(self) -> Any:
        """Return a credentials object for :attr:`credentials`.

        Keyfile paths and keyfile dicts are loaded as service-account
        credentials; anything else (including None) is returned unchanged.

        Raises:
            ConfigError: If a keyfile path does not exist.
        """
        if not isinstance(self.credentials, (str, dict)):
            return self.credentials

        from google.oauth2 import service_account  # lazy import

        if isinstance(self.credentials, dict):
            return service_account.Credentials.from_service_account_info(self.credentials)
        path = Path(self.credentials).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credentials file not found: {self.credentials}")
        return service_account.Credentials.from_service_account_file(str(path))


__all__ = ["ServiceSettings"]

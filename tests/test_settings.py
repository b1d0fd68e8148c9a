from unittest.mock import patch, MagicMock
import pytest
from pydantic import ValidationError

from cloudhub.base.exceptions import ConfigError
from cloudhub.base.settings import ServiceSettings


class TestServiceSettings:
    def test_defaults(self):
        settings = ServiceSettings()
        assert settings.project_id is None
        assert settings.credentials is None
        assert settings.retries is None
        assert settings.timeout is None
        assert settings.options == {}

    def test_extra_options(self):
        settings = ServiceSettings(project_id="p", scope=["read"], endpoint="localhost:8085")
        assert settings.options == {"scope": ["read"], "endpoint": "localhost:8085"}

    @pytest.mark.parametrize("field", ["retries", "timeout"])
    def test_negative_rejected(self, field):
        with pytest.raises(ValidationError):
            ServiceSettings(**{field: -1})

    def test_project_id_must_be_string(self):
        with pytest.raises(ValidationError):
            ServiceSettings(project_id=["p"])


class TestLoadCredentials:
    def test_none(self):
        assert ServiceSettings().load_credentials() is None

    def test_object_passthrough(self):
        creds = MagicMock()
        assert ServiceSettings(credentials=creds).load_credentials() is creds

    @patch("google.oauth2.service_account.Credentials")
    def test_from_info(self, mock_creds):
        mock_creds.from_service_account_info.return_value = "creds"
        info = {"type": "service_account", "client_email": "a@b"}
        assert ServiceSettings(credentials=info).load_credentials() == "creds"
        mock_creds.from_service_account_info.assert_called_once_with(info)

    @patch("google.oauth2.service_account.Credentials")
    def test_from_file(self, mock_creds, tmp_path):
        keyfile = tmp_path / "key.json"
        keyfile.write_text("{}")
        mock_creds.from_service_account_file.return_value = "creds"
        assert ServiceSettings(credentials=str(keyfile)).load_credentials() == "creds"
        mock_creds.from_service_account_file.assert_called_once_with(str(keyfile))

    def test_missing_file(self, tmp_path):
        settings = ServiceSettings(credentials=str(tmp_path / "nope.json"))
        with pytest.raises(ConfigError, match="not found"):
            settings.load_credentials()

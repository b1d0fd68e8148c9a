import pytest

from cloudhub.base.config import Config
from cloudhub.base.defaults import CREDENTIALS_ENV_VARS, PROJECT_ENV_VARS, init_configuration
from cloudhub.base.runtime import SUPPRESS_ENV_VAR
from cloudhub.base.services import ServiceRegistry


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (*PROJECT_ENV_VARS, *CREDENTIALS_ENV_VARS, SUPPRESS_ENV_VAR):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    return init_configuration(Config())


@pytest.fixture
def registry():
    return ServiceRegistry()

"""Pytest fixtures for testing cluster blueprints."""

import pytest

from blueprints.addons.base import AddonEnvironment
from blueprints.config import BlueprintsConfig
from blueprints.core.readiness import ReadinessGate
from tests.mocks import FakeClock, FakeInstaller, FakeRoles, MappedStatusReader, RecordingApplier

_ENV_VARS = [
    "BLUEPRINTS_DATA_DIR",
    "BLUEPRINTS_KUBECONFIG",
    "BLUEPRINTS_POLL_INTERVAL",
    "BLUEPRINTS_READINESS_TIMEOUT",
    "BLUEPRINTS_MAX_POLL_ERRORS",
    "BLUEPRINTS_PARALLEL",
    "BLUEPRINTS_HELM_TIMEOUT",
    "BLUEPRINTS_KUBECTL_TIMEOUT",
    "AWS_ACCOUNT_ID",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment and .env files out of configuration."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("blueprints.config.load_dotenv", lambda *args, **kwargs: False)


@pytest.fixture
def clock() -> FakeClock:
    """Manual clock for readiness gates."""
    return FakeClock()


@pytest.fixture
def mock_config() -> BlueprintsConfig:
    """Create a configuration with short readiness settings.

    Returns:
        BlueprintsConfig with test values
    """
    return BlueprintsConfig(poll_interval=0.01, readiness_timeout=0.5, max_poll_errors=2)


@pytest.fixture
def applier() -> RecordingApplier:
    return RecordingApplier()


@pytest.fixture
def installer() -> FakeInstaller:
    return FakeInstaller()


@pytest.fixture
def roles() -> FakeRoles:
    return FakeRoles()


@pytest.fixture
def status_reader() -> MappedStatusReader:
    """Status reader that reports every object ready."""
    return MappedStatusReader()


@pytest.fixture
def addon_env(applier, installer, roles, mock_config) -> AddonEnvironment:
    """Add-on environment wired to test doubles."""
    return AddonEnvironment(
        cluster_name="test-cluster",
        applier=applier,
        installer=installer,
        roles=roles,
        config=mock_config,
    )


@pytest.fixture
def gate(status_reader, clock) -> ReadinessGate:
    """Readiness gate with a fake clock."""
    return ReadinessGate(status_reader, clock=clock, sleep=clock.sleep)

"""Shared fixtures: a simulated device and the objects driving it."""
import pytest

from junos_config_sync.config.settings import ProviderConfig
from junos_config_sync.config_engine import ConfigEngine, NoopReadCoordinator, Orchestrator
from junos_config_sync.devices.client import Client
from junos_config_sync.utils.audit_log import ChangeTracker

from fake_device import FakeDevice, FakeSession


@pytest.fixture
def device():
    """Empty SRX-like simulated device."""
    return FakeDevice()


@pytest.fixture
def client(device):
    """Client whose sessions talk to the simulated device."""
    settings = ProviderConfig(ip="192.0.2.1")
    return Client(settings, device_id="fake", session_factory=lambda: FakeSession(device))


@pytest.fixture
def orchestrator(client):
    return Orchestrator(client, NoopReadCoordinator(), ChangeTracker("fake"))


@pytest.fixture
def engine(client):
    return ConfigEngine(client, NoopReadCoordinator(), ChangeTracker("fake"))

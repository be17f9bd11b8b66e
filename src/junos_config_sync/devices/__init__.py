"""Device sessions for Junos configuration access."""
import os

from .base import (
    DeviceSession,
    DeviceError,
    SessionOpenError,
    SessionLostError,
    CommandError,
    LockError,
    LoadConfigError,
    CommitError,
    SystemInformation,
)
from .client import Client
from .netconf import NetconfSession
from .setfile import SetFileSession
from ..config.settings import ProviderConfig

__all__ = [
    "DeviceSession",
    "DeviceError",
    "SessionOpenError",
    "SessionLostError",
    "CommandError",
    "LockError",
    "LoadConfigError",
    "CommitError",
    "SystemInformation",
    "Client",
    "NetconfSession",
    "SetFileSession",
    "create_client",
]


def create_client(device_id: str, config: dict) -> Client:
    """Factory function to create a client from an inventory entry.

    ``password_env`` names an environment variable holding the password
    when ``password`` is not given.
    """
    values = dict(config)
    password_env = values.pop("password_env", None)
    if not values.get("password") and password_env:
        values["password"] = os.environ.get(password_env) or None
    return Client(ProviderConfig.from_env(**values), device_id=device_id)

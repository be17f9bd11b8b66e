"""Base device session abstraction for Junos configuration access."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Junos CLI vocabulary shared by every resource
ID_SEPARATOR = "_-_"
DEFAULT_W = "default"
SET_LS = "set "
DELETE_LS = "delete "
ROUTING_INSTANCES_WS = "routing-instances "
CMD_SHOW_CONFIG = "show configuration "
PIPE_DISPLAY_SET = " | display set"
PIPE_DISPLAY_SET_RELATIVE = " | display set relative"
XML_START_TAG_CONFIG_OUT = "<configuration-output>"
XML_END_TAG_CONFIG_OUT = "</configuration-output>"


class DeviceError(Exception):
    """Error reported by a device session."""
    pass


class SessionOpenError(DeviceError):
    """The session could not be established."""
    pass


class SessionLostError(DeviceError):
    """The transport failed or the device closed the session mid-operation."""
    pass


class CommandError(DeviceError):
    """An operational command returned rpc-errors."""
    pass


class LockError(DeviceError):
    """The candidate configuration could not be locked."""
    pass


class LoadConfigError(DeviceError):
    """The device rejected set/delete lines loaded into the candidate."""
    pass


class CommitError(DeviceError):
    """Commit failed. Warnings seen before the failure are kept."""

    def __init__(self, message: str, warnings: Optional[list[str]] = None):
        super().__init__(message)
        self.warnings = list(warnings or [])


@dataclass
class SystemInformation:
    """Facts gathered from get-system-information when a session opens."""
    hardware_model: str = ""
    os_name: str = ""
    os_version: str = ""
    serial_number: str = ""
    host_name: str = ""
    cluster_node: Optional[bool] = None

    def check_compatibility_security(self) -> bool:
        """True for devices running the security (SRX) feature set."""
        model = self.hardware_model.lower()
        return model.startswith("srx") or model.startswith("vsrx")

    def not_compatible_msg(self) -> str:
        return f" not compatible with Junos device {self.hardware_model!r}"


class DeviceSession(ABC):
    """One owned session on a Junos device.

    Opened explicitly, closed explicitly (or through ``async with``), and
    holding at most one candidate configuration lock at a time.
    """

    def __init__(self, device_id: str):
        self.device_id = device_id
        self.system_information = SystemInformation()

    @property
    def is_fake(self) -> bool:
        """True when lines are not sent to a real device."""
        return False

    async def open(self) -> None:
        """Establish the session. Sessions without transport have nothing to do."""
        return None

    @abstractmethod
    async def command(self, cli: str) -> str:
        """Run an operational command and return its text output.

        Returns an empty string when the device has nothing to show.
        """
        pass

    @abstractmethod
    async def config_set(self, lines: list[str]) -> None:
        """Load set/delete lines into the candidate configuration.

        Raises:
            LoadConfigError: if the device rejects any line
        """
        pass

    @abstractmethod
    async def config_lock(self) -> None:
        """Lock the candidate configuration.

        Raises:
            LockError: if the lock is held elsewhere or the RPC fails
        """
        pass

    @abstractmethod
    async def config_unlock(self) -> list[str]:
        """Release the candidate lock. Returns non-fatal error messages."""
        pass

    @abstractmethod
    async def config_clear(self) -> list[str]:
        """Discard uncommitted changes then unlock. Returns non-fatal error messages."""
        pass

    @abstractmethod
    async def commit_conf(self, message: str) -> list[str]:
        """Commit the candidate configuration.

        Returns:
            Warning messages reported by the commit

        Raises:
            CommitError: if any rpc-error has severity "error"
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the session."""
        pass

    async def __aenter__(self) -> "DeviceSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

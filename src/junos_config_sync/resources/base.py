"""Base classes shared by every resource type."""
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from ..config_engine.errors import ImportIdError
from ..config_engine.reader import is_empty_output
from ..config_engine.schema import Diagnostic, error
from ..devices.base import (
    DeviceSession,
    ID_SEPARATOR,
    CMD_SHOW_CONFIG,
    PIPE_DISPLAY_SET,
    PIPE_DISPLAY_SET_RELATIVE,
)

logger = logging.getLogger(__name__)

COMPATIBILITY_ERR = "Compatibility Error"
DUPLICATE_CONFIG_ERR = "Duplicate Configuration Error"
MISSING_CONFIG_ERR = "Missing Configuration Error"
NOT_FOUND_ERR = "Not Found Error"


def q(value: Any) -> str:
    """Double-quoted value for user-facing messages."""
    return f'"{value}"'


async def show_config(session: DeviceSession, path: str) -> str:
    """``display set relative`` output of one configuration stanza."""
    return await session.command(CMD_SHOW_CONFIG + path + PIPE_DISPLAY_SET_RELATIVE)


async def config_exists(session: DeviceSession, path: str) -> bool:
    """True when the device has configuration below ``path``."""
    output = await session.command(CMD_SHOW_CONFIG + path + PIPE_DISPLAY_SET)
    return not is_empty_output(output)


class Resource(ABC):
    """One managed unit of Junos configuration.

    Subclasses are dataclasses declaring the configuration tree plus an
    ``id`` field. The class attributes describe how the resource is
    addressed and named in messages.
    """
    type_name: ClassVar[str]
    junos_name: ClassVar[str]
    key_fields: ClassVar[tuple[str, ...]] = ("name",)
    id_format: ClassVar[str] = "<name>"
    security_only: ClassVar[bool] = False
    # Fields only known to the declaration; reads copy them from state
    config_only_fields: ClassVar[tuple[str, ...]] = ()

    id: Optional[str]

    def validate(self) -> list[Diagnostic]:
        """Structural checks run before any device interaction."""
        return []

    @abstractmethod
    def config_set(self) -> list[str]:
        """Set lines for the whole resource.

        Raises:
            ConfigSetError: on a structural error, with its attribute path
        """
        pass

    @abstractmethod
    def config_delete(self) -> list[str]:
        """Delete lines removing the whole resource."""
        pass

    def config_delete_opts(self, plan: "Resource") -> list[str]:
        """Delete lines run before an update re-applies ``plan``."""
        return self.config_delete()

    def update_diagnostics(self, state: "Resource") -> list[Diagnostic]:
        """Warnings about changing from ``state`` to this plan."""
        return []

    def fill_id(self) -> None:
        self.id = ID_SEPARATOR.join(self.key_from_state())

    def key_from_state(self) -> tuple[str, ...]:
        return tuple(getattr(self, f) for f in self.key_fields)

    @classmethod
    def key_from_import_id(cls, import_id: str) -> tuple[str, ...]:
        """Split an import identifier into key components.

        Raises:
            ImportIdError: if there are fewer components than key fields
        """
        if len(cls.key_fields) <= 1:
            return (import_id,) if cls.key_fields else ()
        parts = import_id.split(ID_SEPARATOR)
        if len(parts) < len(cls.key_fields):
            raise ImportIdError(f'missing element(s) in id with separator "{ID_SEPARATOR}"')
        return tuple(parts[: len(cls.key_fields)])

    @classmethod
    @abstractmethod
    async def read(cls, session: DeviceSession, *key: str) -> "Resource":
        """Read the resource from the device.

        Returns an object whose ``id`` is None when nothing is configured.
        """
        pass

    def after_read(self, state: "Resource") -> None:
        """Carry declaration-only fields over from the previous state."""
        for name in self.config_only_fields:
            setattr(self, name, getattr(state, name))

    def skip_delete(self) -> bool:
        """True when destroying the resource leaves the device untouched."""
        return False

    # --- existence checks ---

    def describe(self) -> str:
        return f"{self.junos_name} {q(self.key_from_state()[0])}"

    def location(self) -> str:
        """Suffix naming the parent object, if any."""
        return ""

    async def exists(self, session: DeviceSession) -> Optional[bool]:
        """Whether the object is on the device. None when there is no natural check."""
        return None

    async def compatibility_check(self, session: DeviceSession) -> list[Diagnostic]:
        if self.security_only and not session.system_information.check_compatibility_security():
            return [error(
                COMPATIBILITY_ERR,
                self.type_name + session.system_information.not_compatible_msg(),
            )]
        return []

    async def pre_create_check(self, session: DeviceSession) -> list[Diagnostic]:
        """Errors when the object (or a conflicting one) is already there."""
        if await self.exists(session):
            return [error(DUPLICATE_CONFIG_ERR, f"{self.describe()} already exists{self.location()}")]
        return []

    async def post_create_check(self, session: DeviceSession) -> list[Diagnostic]:
        """Errors when a committed object cannot be found on the device."""
        if await self.exists(session) is False:
            return [error(
                NOT_FOUND_ERR,
                f"{self.describe()} does not exists{self.location()} after commit "
                "=> check your config",
            )]
        return []

    @classmethod
    def not_found_detail(cls, import_id: str) -> str:
        return f"don't find {cls.junos_name} with id {q(import_id)} (id must be {cls.id_format})"

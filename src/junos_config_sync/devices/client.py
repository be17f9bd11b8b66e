"""Per-device client handing out sessions to resource operations."""
import logging
from typing import TYPE_CHECKING, Callable, Optional

from .base import DeviceSession
from .netconf import NetconfSession
from .setfile import SetFileSession
from ..utils.logging_config import setup_netconf_trace

if TYPE_CHECKING:
    from ..config.settings import ProviderConfig

logger = logging.getLogger(__name__)


class Client:
    """Opens sessions on one device according to its provider settings.

    Args:
        settings: Provider settings for the device
        device_id: Name used in logs and audit records
        session_factory: Builds the session returned by start_new_session,
            in place of a NETCONF session
    """

    def __init__(
        self,
        settings: "ProviderConfig",
        device_id: Optional[str] = None,
        session_factory: Optional[Callable[[], DeviceSession]] = None,
    ):
        self.settings = settings
        self.device_id = device_id or settings.ip or "junos"
        self._session_factory = session_factory
        if settings.debug_netconf_log_path:
            setup_netconf_trace(settings.debug_netconf_log_path, settings.file_mode)

    @property
    def fake_create_setfile(self) -> bool:
        return bool(self.settings.fake_create_with_setfile)

    @property
    def fake_update_also(self) -> bool:
        return self.fake_create_setfile and self.settings.fake_update_also

    @property
    def fake_delete_also(self) -> bool:
        return self.fake_create_setfile and self.settings.fake_delete_also

    async def start_new_session(self) -> DeviceSession:
        """Open a new session on the device.

        Raises:
            SessionOpenError: if the session cannot be established
        """
        if self._session_factory is not None:
            session = self._session_factory()
        else:
            session = NetconfSession(self.settings, self.device_id)
        await session.open()
        return session

    def new_session_without_netconf(self) -> SetFileSession:
        """Session appending lines to the configured set file."""
        return SetFileSession(
            self.settings.fake_create_with_setfile,
            file_permission=self.settings.file_mode,
            device_id=self.device_id,
        )

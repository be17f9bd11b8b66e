"""Session that appends set/delete lines to a local file instead of a device."""
import asyncio
import logging
import os

from .base import DeviceSession, CommandError

logger = logging.getLogger(__name__)


class SetFileSession(DeviceSession):
    """Fake session used when resources are created with a set file.

    Every loaded line is appended to ``path``, one per line. The file is
    created with ``file_permission`` when missing. Nothing is read back, so
    operational commands are refused.
    """

    def __init__(self, path: str, file_permission: int = 0o644, device_id: str = "setfile"):
        super().__init__(device_id)
        self.path = os.path.expanduser(path)
        self.file_permission = file_permission

    @property
    def is_fake(self) -> bool:
        return True

    def _append(self, lines: list[str]) -> None:
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, self.file_permission)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")

    async def command(self, cli: str) -> str:
        raise CommandError(f"no device behind set file {self.path}: cannot run {cli!r}")

    async def config_set(self, lines: list[str]) -> None:
        if not lines:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._append, lines)
        logger.debug(f"Appended {len(lines)} lines to {self.path}")

    async def config_lock(self) -> None:
        return None

    async def config_unlock(self) -> list[str]:
        return []

    async def config_clear(self) -> list[str]:
        return []

    async def commit_conf(self, message: str) -> list[str]:
        return []

    async def close(self) -> None:
        return None

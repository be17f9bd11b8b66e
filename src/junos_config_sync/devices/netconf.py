"""NETCONF session to a Junos device through ncclient.

ncclient owns the SSH transport, hello exchange and message framing. Its
manager is synchronous, so every call runs in the default executor. The
manager never raises on rpc-error: replies are parsed with lxml and split
by severity so that warnings never abort a transaction.
"""
import asyncio
import functools
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import paramiko
from lxml import etree
from ncclient import NCClientError, manager
from ncclient.operations import RaiseMode
from ncclient.transport.errors import SSHError

from .base import (
    DeviceError,
    DeviceSession,
    SessionOpenError,
    SessionLostError,
    CommandError,
    LockError,
    LoadConfigError,
    CommitError,
    SystemInformation,
)
from ..utils.connection import RETRYABLE_EXCEPTIONS, establish
from ..utils.logging_config import netconf_logger, timed

if TYPE_CHECKING:
    from ..config.settings import ProviderConfig

logger = logging.getLogger(__name__)

RPC_SYSTEM_INFORMATION = "<get-system-information/>"
RPC_COMMIT_CHECK = "<commit-configuration><check/></commit-configuration>"
CANDIDATE = "candidate"

# Transport failures surfaced by ncclient and the SSH layer below it
TRANSPORT_ERRORS = (NCClientError, paramiko.SSHException, OSError, EOFError)

# Socket-level failures are worth another connection attempt, bad credentials are not
CONNECT_RETRYABLE = RETRYABLE_EXCEPTIONS + (SSHError,)


@dataclass
class RpcError:
    """One rpc-error element of a reply."""
    severity: str
    message: str
    path: str = ""
    bad_element: str = ""

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"path: {self.path}")
        if self.bad_element:
            parts.append(f"element: {self.bad_element}")
        return " | ".join(parts)


class RpcReply:
    """rpc-reply document with namespaces removed from element tags."""

    def __init__(self, raw: str):
        self.raw = raw
        try:
            self.root = etree.fromstring(raw.encode("utf-8"))
        except etree.XMLSyntaxError as e:
            raise CommandError(f"malformed rpc-reply: {e}") from e
        _strip_namespaces(self.root)
        self.rpc_errors = [_parse_rpc_error(el) for el in self.root.iter("rpc-error")]

    @property
    def errors(self) -> list[str]:
        return [str(e) for e in self.rpc_errors if e.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [str(e) for e in self.rpc_errors if e.severity != "error"]

    def find_text(self, tag: str) -> str:
        """Text of the first descendant element named ``tag``."""
        el = self.root.find(f".//{tag}")
        if el is None or el.text is None:
            return ""
        return el.text.strip()

    def data(self) -> str:
        """Content of the first data element as plain text.

        Nested elements keep their start and end tags so readers can find
        the ``<configuration-output>`` markers; entities are decoded.
        """
        for child in self.root:
            if not isinstance(child.tag, str) or child.tag == "rpc-error":
                continue
            return (child.text or "") + "".join(_render(sub) for sub in child)
        return ""


def _render(el: etree._Element) -> str:
    if not isinstance(el.tag, str):
        return el.tail or ""
    inner = (el.text or "") + "".join(_render(sub) for sub in el)
    return f"<{el.tag}>{inner}</{el.tag}>{el.tail or ''}"


def _strip_namespaces(root: etree._Element) -> None:
    for el in root.iter():
        if isinstance(el.tag, str):
            el.tag = etree.QName(el).localname
    etree.cleanup_namespaces(root)


def _parse_rpc_error(el: etree._Element) -> RpcError:
    def text(tag: str) -> str:
        found = el.find(f".//{tag}")
        return found.text.strip() if found is not None and found.text else ""

    return RpcError(
        severity=text("error-severity") or "error",
        message=text("error-message"),
        path=text("error-path"),
        bad_element=text("bad-element"),
    )


def _write_key_file(pem: str) -> str:
    """Write PEM key text to a private temporary file and return its path."""
    fd, path = tempfile.mkstemp(prefix="junos-config-sync-", suffix=".pem")
    with os.fdopen(fd, "w") as f:
        f.write(pem if pem.endswith("\n") else pem + "\n")
    return path


class NetconfSession(DeviceSession):
    """NETCONF session backed by an ncclient manager."""

    def __init__(self, settings: "ProviderConfig", device_id: Optional[str] = None):
        super().__init__(device_id or settings.ip)
        self.settings = settings
        self._manager: Optional[Any] = None
        self._rpc_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._manager is not None and bool(self._manager.connected)

    def _connect(self):
        s = self.settings
        key_file = s.sshkeyfile or None
        temp_key = _write_key_file(s.sshkey_pem) if s.sshkey_pem else None
        using_key = bool(temp_key or key_file)
        try:
            conn = manager.connect(
                host=s.ip,
                port=s.port,
                username=s.username,
                # ncclient tries the key passphrase and the password from one argument
                password=(s.keypass if using_key and s.keypass else s.password) or None,
                key_filename=temp_key or key_file,
                hostkey_verify=False,
                allow_agent=False,
                look_for_keys=False,
                timeout=s.ssh_timeout_to_establish or None,
                device_params={"name": "junos"},
            )
        finally:
            if temp_key:
                os.unlink(temp_key)
        conn.raise_mode = RaiseMode.NONE
        return conn

    @timed("open")
    async def open(self) -> None:
        """Connect, then gather system facts."""
        logger.info(f"Opening NETCONF session to {self.device_id} at {self.settings.ip}:{self.settings.port}")
        try:
            self._manager = await establish(
                self._connect,
                self.settings.ssh_retry_to_establish,
                self.device_id,
                exceptions=CONNECT_RETRYABLE,
            )
            await self._gather_facts()
        except TRANSPORT_ERRORS + (DeviceError,) as e:
            await self._teardown()
            raise SessionOpenError(f"failed to open NETCONF session to {self.settings.ip}: {e}") from e

        logger.info(
            f"Connected to {self.device_id} ({self.system_information.hardware_model} "
            f"{self.system_information.os_version})"
        )

    async def _gather_facts(self) -> None:
        reply = await self._call("rpc", RPC_SYSTEM_INFORMATION)
        if reply.errors:
            raise CommandError("\n".join(reply.errors))
        cluster = reply.find_text("cluster-node")
        self.system_information = SystemInformation(
            hardware_model=reply.find_text("hardware-model"),
            os_name=reply.find_text("os-name"),
            os_version=reply.find_text("os-version"),
            serial_number=reply.find_text("serial-number"),
            host_name=reply.find_text("host-name"),
            cluster_node=(cluster == "true") if cluster else None,
        )

    async def _call(self, operation: str, *args: Any, **kwargs: Any) -> RpcReply:
        """Run one manager operation in the executor.

        Raises:
            SessionLostError: if the session is closed or the transport fails
        """
        if self._manager is None:
            raise SessionLostError(f"{operation}: NETCONF session is not open")
        loop = asyncio.get_running_loop()
        call = functools.partial(getattr(self._manager, operation), *args, **kwargs)
        async with self._rpc_lock:
            netconf_logger.debug(f"[{self.device_id}] {operation} -> {args or ''} {kwargs or ''}")
            try:
                reply = await loop.run_in_executor(None, call)
            except TRANSPORT_ERRORS as e:
                raise SessionLostError(f"{operation}: {e}") from e
        netconf_logger.debug(f"[{self.device_id}] {operation} <- {reply.xml}")
        return RpcReply(reply.xml)

    async def _sleep_short(self) -> None:
        if self.settings.cmd_sleep_short:
            await asyncio.sleep(self.settings.cmd_sleep_short / 1000)

    @timed("command")
    async def command(self, cli: str) -> str:
        reply = await self._call("command", command=cli, format="text")
        await self._sleep_short()
        if reply.errors:
            raise CommandError(f"command {cli!r} failed: " + "\n".join(reply.errors))
        for warning in reply.warnings:
            logger.warning(f"[{self.device_id}] {cli}: {warning}")
        return reply.data()

    @timed("config_set")
    async def config_set(self, lines: list[str]) -> None:
        if not lines:
            return
        reply = await self._call("load_configuration", action="set", config=list(lines))
        await self._sleep_short()
        if reply.errors:
            raise LoadConfigError("\n".join(reply.errors))
        for warning in reply.warnings:
            logger.warning(f"[{self.device_id}] load-configuration: {warning}")

    @timed("lock")
    async def config_lock(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.cmd_sleep_lock
        while True:
            reply = await self._call("lock", target=CANDIDATE)
            if not reply.errors:
                await self._sleep_short()
                return
            if loop.time() >= deadline:
                raise LockError("\n".join(reply.errors))
            logger.info(f"[{self.device_id}] candidate configuration locked, waiting")
            await asyncio.sleep(1)

    async def config_unlock(self) -> list[str]:
        try:
            reply = await self._call("unlock", target=CANDIDATE)
        except DeviceError as e:
            return [f"config unlock: {e}"]
        await self._sleep_short()
        return [f"config unlock: {msg}" for msg in reply.errors]

    async def config_clear(self) -> list[str]:
        errors = []
        try:
            reply = await self._call("discard_changes")
            errors.extend(f"config clear: {msg}" for msg in reply.errors)
        except DeviceError as e:
            errors.append(f"config clear: {e}")
        errors.extend(await self.config_unlock())
        return errors

    @timed("commit")
    async def commit_conf(self, message: str) -> list[str]:
        confirmed = self.settings.commit_confirmed
        if confirmed:
            reply = await self._call("commit", confirmed=True, timeout=str(confirmed), comment=message)
        else:
            reply = await self._call("commit", comment=message)
        warnings = reply.warnings
        if reply.errors:
            raise CommitError("\n".join(reply.errors), warnings=warnings)

        if confirmed:
            wait = confirmed * 60 * self.settings.commit_confirmed_wait_percent / 100
            logger.info(f"[{self.device_id}] commit confirmed, checking again in {wait:.0f}s")
            await asyncio.sleep(wait)
            reply = await self._call("rpc", RPC_COMMIT_CHECK)
            warnings.extend(reply.warnings)
            if reply.errors:
                raise CommitError("\n".join(reply.errors), warnings=warnings)

        await self._sleep_short()
        return warnings

    async def _teardown(self) -> None:
        conn, self._manager = self._manager, None
        if conn is None or not conn.connected:
            return
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, conn.close_session)
        except TRANSPORT_ERRORS as e:
            logger.debug(f"[{self.device_id}] transport close: {e}")

    async def close(self) -> None:
        """End the NETCONF session and drop the SSH connection."""
        if self._manager is None:
            return
        try:
            reply = await self._call("close_session")
            for msg in reply.errors:
                logger.warning(f"[{self.device_id}] close-session: {msg}")
        except DeviceError as e:
            logger.warning(f"[{self.device_id}] close-session failed: {e}")
        await self._teardown()
        if self.settings.ssh_sleep_closed:
            await asyncio.sleep(self.settings.ssh_sleep_closed)
        logger.info(f"Disconnected from {self.device_id}")

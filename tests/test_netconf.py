"""Tests for NETCONF reply parsing and the ncclient-backed session."""
import os
from typing import Optional

import pytest
from ncclient.operations import RaiseMode
from ncclient.transport.errors import AuthenticationError, SSHError

from junos_config_sync.config.settings import ProviderConfig
from junos_config_sync.devices import netconf
from junos_config_sync.devices.base import (
    CommandError,
    CommitError,
    LoadConfigError,
    LockError,
    SessionLostError,
    SessionOpenError,
)
from junos_config_sync.devices.netconf import NetconfSession, RpcReply
from junos_config_sync.resources.vlan import Vlan

from fake_netconf import SYSTEM_INFORMATION, FakeManager, reply, rpc_error


def session_with(*replies: str, drop_after: Optional[int] = None, **settings) -> tuple[NetconfSession, FakeManager]:
    session = NetconfSession(ProviderConfig(ip="192.0.2.1", cmd_sleep_short=0, **settings), "srx-edge")
    conn = FakeManager(list(replies), drop_after)
    session._manager = conn
    return session, conn


class TestRpcReply:
    """Tests for RpcReply."""

    def test_errors_and_warnings_split(self):
        """Only error severity counts as an error."""
        parsed = RpcReply(reply(
            rpc_error("warning", "statement not found", path="[edit vlans]")
            + rpc_error("error", "syntax error", element="vlan-idd")
            + "<ok/>"
        ))
        assert parsed.warnings == ["statement not found | path: [edit vlans]"]
        assert parsed.errors == ["syntax error | element: vlan-idd"]

    def test_find_text(self):
        parsed = RpcReply(reply(SYSTEM_INFORMATION))
        assert parsed.find_text("hardware-model") == "srx345"
        assert parsed.find_text("serial-number") == ""

    def test_data_keeps_markers_and_decodes_entities(self):
        """Markers survive as tags, entities come back as plain characters."""
        parsed = RpcReply(reply(
            "<output>\n<configuration-output>\n"
            'set apply-path "interfaces &lt;*&gt;"\n'
            "</configuration-output>\n</output>"
        ))
        assert parsed.data() == (
            "\n<configuration-output>\n"
            'set apply-path "interfaces <*>"\n'
            "</configuration-output>\n"
        )

    def test_entity_reaches_reader_unescaped(self):
        """A description containing & reads back as written."""
        parsed = RpcReply(reply(
            "<configuration-output>\n"
            'set description "a &amp; b"\n'
            "set vlan-id 10\n"
            "</configuration-output>"
        ))
        vlan = Vlan.parse("v10", "default", parsed.data())
        assert vlan.description == "a & b"
        assert vlan.vlan_id == "10"

    def test_data_empty(self):
        assert RpcReply(reply("<ok/>")).data() == ""

    def test_malformed(self):
        with pytest.raises(CommandError, match="malformed rpc-reply"):
            RpcReply("<rpc-reply>")


class TestNetconfSession:
    """Tests for the session operations over a canned manager."""

    @pytest.mark.asyncio
    async def test_command(self):
        """show configuration output feeds straight into the readers."""
        session, conn = session_with(reply(
            "<output>\n<configuration-output>\nset vlan-id 10\n</configuration-output>\n</output>"
        ))
        output = await session.command("show configuration vlans v10 | display set relative")
        assert Vlan.parse("v10", "default", output).vlan_id == "10"
        assert conn.calls[0] == (
            "command", (), {"command": "show configuration vlans v10 | display set relative", "format": "text"},
        )

    @pytest.mark.asyncio
    async def test_command_error(self):
        session, _ = session_with(reply(rpc_error("error", "syntax error")))
        with pytest.raises(CommandError, match="syntax error"):
            await session.command("show configuration nonsense")

    @pytest.mark.asyncio
    async def test_config_set(self):
        """Lines go in one load-configuration call with action set."""
        session, conn = session_with(reply("<load-configuration-results><ok/></load-configuration-results>"))
        lines = ["set vlans v10 vlan-id 10", 'set vlans v10 description "x"']
        await session.config_set(lines)
        assert conn.calls[0] == ("load_configuration", (), {"action": "set", "config": lines})

    @pytest.mark.asyncio
    async def test_config_set_empty(self):
        """Nothing is sent for no lines."""
        session, conn = session_with()
        await session.config_set([])
        assert conn.calls == []

    @pytest.mark.asyncio
    async def test_config_set_error(self):
        session, _ = session_with(reply(rpc_error("error", "syntax error")))
        with pytest.raises(LoadConfigError):
            await session.config_set(["set vlans v10 bogus"])

    @pytest.mark.asyncio
    async def test_lock_busy(self):
        """With no lock wait a busy lock fails at once."""
        session, conn = session_with(reply(rpc_error("error", "configuration database locked by: admin")))
        with pytest.raises(LockError, match="locked by"):
            await session.config_lock()
        assert conn.calls[0] == ("lock", (), {"target": "candidate"})

    @pytest.mark.asyncio
    async def test_commit_warnings(self):
        """Warnings are returned, not raised."""
        session, conn = session_with(reply(rpc_error("warning", "statement has no effect") + "<ok/>"))
        warnings = await session.commit_conf("create resource junos_vlan")
        assert warnings == ["statement has no effect"]
        assert conn.calls[0] == ("commit", (), {"comment": "create resource junos_vlan"})

    @pytest.mark.asyncio
    async def test_commit_confirmed_then_check(self, monkeypatch):
        """A confirmed commit is confirmed by a commit check."""
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr(netconf.asyncio, "sleep", fake_sleep)
        session, conn = session_with(commit_confirmed=2, commit_confirmed_wait_percent=50)
        await session.commit_conf("update resource junos_vlan")
        assert conn.calls[0] == (
            "commit", (), {"confirmed": True, "timeout": "2", "comment": "update resource junos_vlan"},
        )
        assert conn.calls[1] == ("rpc", (netconf.RPC_COMMIT_CHECK,), {})
        assert sleeps == [60.0]

    @pytest.mark.asyncio
    async def test_commit_error_keeps_warnings(self):
        session, _ = session_with(reply(
            rpc_error("warning", "statement has no effect") + rpc_error("error", "commit failed")
        ))
        with pytest.raises(CommitError) as exc:
            await session.commit_conf("update resource junos_vlan")
        assert str(exc.value) == "commit failed"
        assert exc.value.warnings == ["statement has no effect"]

    @pytest.mark.asyncio
    async def test_clear_collects_errors(self):
        """Discard and unlock problems come back as messages."""
        session, conn = session_with(
            reply(rpc_error("error", "discard failed")),
            reply(rpc_error("error", "not locked")),
        )
        errors = await session.config_clear()
        assert errors == ["config clear: discard failed", "config unlock: not locked"]
        assert conn.names() == ["discard_changes", "unlock"]

    @pytest.mark.asyncio
    async def test_unlock_without_session(self):
        """A session that is not open turns into an unlock message."""
        session = NetconfSession(ProviderConfig(ip="192.0.2.1"), "srx-edge")
        assert (await session.config_unlock())[0].startswith("config unlock: ")

    @pytest.mark.asyncio
    async def test_close(self):
        session, conn = session_with()
        await session.close()
        assert conn.names() == ["close_session"]
        assert not session.is_connected
        await session.close()  # second close is a no-op
        assert conn.names() == ["close_session"]


class TestTransportLoss:
    """A device dropping the session mid-operation."""

    @pytest.mark.asyncio
    async def test_operations_raise_session_lost(self):
        """Transport errors surface as device errors, not raw exceptions."""
        session, _ = session_with(drop_after=1)
        await session.config_lock()
        with pytest.raises(SessionLostError, match="command: Not connected"):
            await session.command("show configuration vlans v10 | display set")
        with pytest.raises(SessionLostError):
            await session.config_set(["set vlans v10 vlan-id 10"])
        with pytest.raises(SessionLostError):
            await session.commit_conf("create resource junos_vlan")

    @pytest.mark.asyncio
    async def test_clear_after_drop_reports(self):
        """Clearing a dropped session yields messages, never an exception."""
        session, conn = session_with(drop_after=0)
        errors = await session.config_clear()
        assert len(errors) == 2
        assert errors[0].startswith("config clear: discard_changes:")
        assert errors[1].startswith("config unlock: unlock:")
        assert conn.names() == ["discard_changes", "unlock"]

    @pytest.mark.asyncio
    async def test_close_after_drop(self):
        session, _ = session_with(drop_after=0)
        await session.close()
        assert not session.is_connected


class TestOpen:
    """Tests for connecting through ncclient.manager.connect."""

    @pytest.fixture
    def connect_calls(self, monkeypatch):
        calls = []
        outcomes: list = []

        def fake_connect(**kwargs):
            calls.append(kwargs)
            outcome = outcomes.pop(0) if outcomes else FakeManager([reply(SYSTEM_INFORMATION)])
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        monkeypatch.setattr(netconf.manager, "connect", fake_connect)
        return calls, outcomes

    @pytest.mark.asyncio
    async def test_open_gathers_facts(self, connect_calls):
        calls, _ = connect_calls
        session = NetconfSession(ProviderConfig(ip="192.0.2.1", password="secret"), "srx-edge")
        await session.open()
        assert calls[0]["device_params"] == {"name": "junos"}
        assert calls[0]["host"] == "192.0.2.1"
        assert calls[0]["port"] == 830
        assert calls[0]["password"] == "secret"
        assert calls[0]["key_filename"] is None
        assert session._manager.raise_mode == RaiseMode.NONE
        assert session.system_information.hardware_model == "srx345"
        assert session.system_information.check_compatibility_security()

    @pytest.mark.asyncio
    async def test_pem_key_written_then_removed(self, connect_calls, monkeypatch):
        """Key text goes through a private temporary file that is removed after connecting."""
        calls, _ = connect_calls
        seen = {}
        real_connect = netconf.manager.connect

        def inspecting_connect(**kwargs):
            path = kwargs["key_filename"]
            with open(path) as f:
                seen["content"] = f.read()
            seen["mode"] = os.stat(path).st_mode & 0o777
            seen["path"] = path
            return real_connect(**kwargs)

        monkeypatch.setattr(netconf.manager, "connect", inspecting_connect)
        settings = ProviderConfig(ip="192.0.2.1", sshkey_pem="-----BEGIN KEY-----", keypass="phrase")
        await NetconfSession(settings, "srx-edge").open()
        assert seen["content"] == "-----BEGIN KEY-----\n"
        assert seen["mode"] == 0o600
        assert not os.path.exists(seen["path"])
        assert calls[0]["password"] == "phrase"

    @pytest.mark.asyncio
    async def test_auth_failure_not_retried(self, connect_calls):
        calls, outcomes = connect_calls
        outcomes.append(AuthenticationError("bad credentials"))
        session = NetconfSession(ProviderConfig(ip="192.0.2.1", ssh_retry_to_establish=3), "srx-edge")
        with pytest.raises(SessionOpenError, match="bad credentials"):
            await session.open()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_socket_failure_retried(self, connect_calls):
        calls, outcomes = connect_calls
        outcomes.append(SSHError("Could not open socket to 192.0.2.1:830"))
        session = NetconfSession(ProviderConfig(ip="192.0.2.1", ssh_retry_to_establish=2), "srx-edge")
        await session.open()
        assert len(calls) == 2
        assert session.is_connected

    @pytest.mark.asyncio
    async def test_facts_error_closes(self, connect_calls):
        """A failed get-system-information closes the session."""
        _, outcomes = connect_calls
        conn = FakeManager([reply(rpc_error("error", "permission denied"))])
        outcomes.append(conn)
        with pytest.raises(SessionOpenError, match="permission denied"):
            await NetconfSession(ProviderConfig(ip="192.0.2.1"), "srx-edge").open()
        assert conn.names() == ["rpc", "close_session"]

"""junos_snmp_community: an SNMP community with optional per-instance clients."""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..config_engine.reader import (
    ConfigReader,
    LineRules,
    append_str,
    is_empty_output,
    keyed_block,
    set_str,
    set_true,
)
from ..config_engine.schema import AttrPath, Diagnostic
from ..config_engine.serializer import SetBuilder, delete_lines, quote
from ..config_engine.validator import ConfigValidator, CONFLICT_CONFIG
from ..devices.base import DeviceSession
from .base import Resource, config_exists, show_config


@dataclass
class CommunityRoutingInstance:
    name: str
    client_list_name: Optional[str] = None
    clients: Optional[list[str]] = None


ROUTING_INSTANCE_RULES = (
    LineRules("routing_instance")
    .prefix("client-list-name ", set_str("client_list_name", quoted=True))
    .prefix("clients ", append_str("clients"))
)

SNMP_COMMUNITY_RULES = (
    LineRules("junos_snmp_community")
    .exact("authorization read-only", set_true("authorization_read_only"))
    .exact("authorization read-write", set_true("authorization_read_write"))
    .prefix("client-list-name ", set_str("client_list_name", quoted=True))
    .prefix("clients ", append_str("clients"))
    .prefix("view ", set_str("view", quoted=True))
    .prefix("routing-instance ", keyed_block("routing_instance", CommunityRoutingInstance, ROUTING_INSTANCE_RULES))
)


@dataclass
class SnmpCommunity(Resource):
    type_name: ClassVar[str] = "junos_snmp_community"
    junos_name: ClassVar[str] = "snmp community"

    name: str = ""
    id: Optional[str] = None
    authorization_read_only: Optional[bool] = None
    authorization_read_write: Optional[bool] = None
    client_list_name: Optional[str] = None
    clients: Optional[list[str]] = None
    view: Optional[str] = None
    routing_instance: Optional[list[CommunityRoutingInstance]] = None

    @property
    def stanza(self) -> str:
        return f"snmp community {quote(self.name)} "

    def _check(self, v: ConfigValidator) -> None:
        v.conflict(
            AttrPath.root("client_list_name"), self.client_list_name,
            AttrPath.root("clients"), self.clients,
        )
        seen: set[str] = set()
        for i, block in enumerate(self.routing_instance or []):
            path = AttrPath.root("routing_instance").at_index(i)
            if block.name in seen:
                v.error(
                    "Duplicate Configuration Error",
                    f"multiple routing_instance blocks with the same name {quote(block.name)}",
                    path.at_name("name"),
                )
            seen.add(block.name)
            if block.client_list_name and block.clients:
                v.error(
                    CONFLICT_CONFIG,
                    "client_list_name and clients cannot be configured together"
                    f" in routing_instance block {quote(block.name)}",
                    path.at_name("client_list_name"),
                )

    def validate(self) -> list[Diagnostic]:
        v = ConfigValidator()
        v.conflict(
            AttrPath.root("authorization_read_only"), self.authorization_read_only or None,
            AttrPath.root("authorization_read_write"), self.authorization_read_write or None,
        )
        self._check(v)
        return v.diagnostics

    def config_set(self) -> list[str]:
        v = ConfigValidator()
        self._check(v)
        v.raise_on_error()

        b = SetBuilder(self.stanza)
        b.flag("authorization read-only", self.authorization_read_only)
        b.flag("authorization read-write", self.authorization_read_write)
        b.value("client-list-name", self.client_list_name, quoted=True)
        b.values("clients", self.clients)
        b.value("view", self.view, quoted=True)
        for block in self.routing_instance or []:
            ri = b.child(f"routing-instance {block.name} ")
            ri.base()
            ri.value("client-list-name", block.client_list_name, quoted=True)
            ri.values("clients", block.clients)
        return b.lines

    def config_delete(self) -> list[str]:
        return delete_lines(self.stanza.rstrip())

    async def exists(self, session: DeviceSession) -> Optional[bool]:
        return await config_exists(session, self.stanza.rstrip())

    @classmethod
    def parse(cls, name: str, output: str) -> "SnmpCommunity":
        community = cls()
        if is_empty_output(output):
            return community
        community.name = name
        community.fill_id()
        return ConfigReader(SNMP_COMMUNITY_RULES).read(community, output)

    @classmethod
    async def read(cls, session: DeviceSession, *key: str) -> "SnmpCommunity":
        name = key[0]
        return cls.parse(name, await show_config(session, f"snmp community {quote(name)}"))

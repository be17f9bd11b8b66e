"""junos_vlan: a VLAN in the default or a named routing instance."""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..config_engine.reader import (
    ConfigReader,
    LineRules,
    append_str,
    config_lines,
    in_block,
    is_empty_output,
    set_int,
    set_str,
    set_true,
)
from ..config_engine.schema import AttrPath, Diagnostic, error
from ..config_engine.serializer import SetBuilder, delete_lines
from ..config_engine.validator import ConfigValidator
from ..devices.base import DeviceSession, DEFAULT_W, ID_SEPARATOR, ROUTING_INSTANCES_WS
from .base import Resource, MISSING_CONFIG_ERR, config_exists, q, show_config


@dataclass
class Vxlan:
    vni: Optional[int] = None
    vni_extend_evpn: Optional[bool] = None
    encapsulate_inner_vlan: Optional[bool] = None
    ingress_node_replication: Optional[bool] = None
    multicast_group: Optional[str] = None
    ovsdb_managed: Optional[bool] = None
    static_remote_vtep_list: Optional[list[str]] = None
    translation_vni: Optional[int] = None
    unreachable_vtep_aging_timer: Optional[int] = None

    def is_empty(self) -> bool:
        return (
            self.vni is None
            and self.vni_extend_evpn is None
            and self.encapsulate_inner_vlan is None
            and self.ingress_node_replication is None
            and not self.multicast_group
            and self.ovsdb_managed is None
            and not self.static_remote_vtep_list
            and self.translation_vni is None
            and self.unreachable_vtep_aging_timer is None
        )


VXLAN_RULES = (
    LineRules("vxlan")
    .prefix("vni ", set_int("vni"))
    .exact("encapsulate-inner-vlan", set_true("encapsulate_inner_vlan"))
    .exact("ingress-node-replication", set_true("ingress_node_replication"))
    .prefix("multicast-group ", set_str("multicast_group"))
    .exact("ovsdb-managed", set_true("ovsdb_managed"))
    .prefix("static-remote-vtep-list ", append_str("static_remote_vtep_list"))
    .prefix("translation-vni ", set_int("translation_vni"))
    .prefix("unreachable-vtep-aging-timer ", set_int("unreachable_vtep_aging_timer"))
)

VLAN_RULES = (
    LineRules("junos_vlan")
    .prefix("community-vlans ", append_str("community_vlans"))
    .prefix("description ", set_str("description", quoted=True))
    .prefix("forwarding-options filter input ", set_str("forward_filter_input", quoted=True))
    .prefix("forwarding-options filter output ", set_str("forward_filter_output", quoted=True))
    .prefix("forwarding-options flood input ", set_str("forward_flood_input", quoted=True))
    .prefix("isolated-vlan ", set_str("isolated_vlan"))
    .prefix("l3-interface ", set_str("l3_interface"))
    .exact("no-arp-suppression", set_true("no_arp_suppression"))
    .prefix("private-vlan ", set_str("private_vlan"))
    .prefix("service-id ", set_int("service_id"))
    .prefix("vlan-id ", set_str("vlan_id"))
    .prefix("vlan-id-list ", append_str("vlan_id_list"))
    .prefix("vxlan ", in_block("vxlan", Vxlan, VXLAN_RULES))
)


def instance_prefix(routing_instance: Optional[str]) -> str:
    """Configuration prefix of a routing instance, empty for the default one."""
    if routing_instance and routing_instance != DEFAULT_W:
        return f"{ROUTING_INSTANCES_WS}{routing_instance} "
    return ""


@dataclass
class Vlan(Resource):
    """VLAN with optional VXLAN mapping."""
    type_name: ClassVar[str] = "junos_vlan"
    junos_name: ClassVar[str] = "vlans"
    key_fields: ClassVar[tuple[str, ...]] = ("name", "routing_instance")
    id_format: ClassVar[str] = f"<name> or <name>{ID_SEPARATOR}<routing_instance>"

    name: str = ""
    routing_instance: str = DEFAULT_W
    id: Optional[str] = None
    community_vlans: Optional[list[str]] = None
    description: Optional[str] = None
    forward_filter_input: Optional[str] = None
    forward_filter_output: Optional[str] = None
    forward_flood_input: Optional[str] = None
    isolated_vlan: Optional[str] = None
    l3_interface: Optional[str] = None
    no_arp_suppression: Optional[bool] = None
    private_vlan: Optional[str] = None
    service_id: Optional[int] = None
    vlan_id: Optional[str] = None
    vlan_id_list: Optional[list[str]] = None
    vxlan: Optional[Vxlan] = None

    @property
    def instance(self) -> str:
        return instance_prefix(self.routing_instance)

    @property
    def stanza(self) -> str:
        return f"{self.instance}vlans {self.name} "

    def _has_arguments(self) -> bool:
        return any((
            self.community_vlans,
            self.description,
            self.forward_filter_input,
            self.forward_filter_output,
            self.forward_flood_input,
            self.isolated_vlan,
            self.l3_interface,
            self.no_arp_suppression is not None,
            self.private_vlan,
            self.service_id is not None,
            self.vlan_id,
            self.vlan_id_list,
            self.vxlan is not None,
        ))

    def validate(self) -> list[Diagnostic]:
        v = ConfigValidator()
        if not self._has_arguments():
            v.error(
                MISSING_CONFIG_ERR,
                "at least one of arguments need to be set (in addition to `name` and `routing_instance`)",
                AttrPath.root("name"),
            )
        v.conflict(AttrPath.root("vlan_id"), self.vlan_id, AttrPath.root("vlan_id_list"), self.vlan_id_list)
        if self.vxlan is not None:
            path = AttrPath.root("vxlan")
            if self.vxlan.vni is None:
                v.error(MISSING_CONFIG_ERR, "vni must be specified in vxlan block", path.at_name("vni"))
            exclusive = (
                ("ingress_node_replication", self.vxlan.ingress_node_replication or None),
                ("multicast_group", self.vxlan.multicast_group),
                ("ovsdb_managed", self.vxlan.ovsdb_managed or None),
            )
            for i, (name_a, a) in enumerate(exclusive):
                for name_b, b in exclusive[i + 1:]:
                    v.conflict(path.at_name(name_a), a, path.at_name(name_b), b)
        return v.diagnostics

    def config_set(self) -> list[str]:
        b = SetBuilder(self.stanza)
        b.values("community-vlans", self.community_vlans)
        b.value("description", self.description, quoted=True)
        b.value("forwarding-options filter input", self.forward_filter_input, quoted=True)
        b.value("forwarding-options filter output", self.forward_filter_output, quoted=True)
        b.value("forwarding-options flood input", self.forward_flood_input, quoted=True)
        b.value("isolated-vlan", self.isolated_vlan)
        b.value("l3-interface", self.l3_interface)
        b.flag("no-arp-suppression", self.no_arp_suppression)
        b.value("private-vlan", self.private_vlan)
        b.number("service-id", self.service_id)
        b.value("vlan-id", self.vlan_id)
        b.values("vlan-id-list", self.vlan_id_list)
        vxlan = self.vxlan
        if vxlan is not None:
            v = ConfigValidator()
            v.required(AttrPath.root("vxlan").at_name("vni"), vxlan.vni)
            v.raise_on_error()
            b.number("vxlan vni", vxlan.vni)
            if vxlan.vni_extend_evpn:
                SetBuilder(self.instance + "protocols evpn ", b.lines).number("extended-vni-list", vxlan.vni)
            b.flag("vxlan encapsulate-inner-vlan", vxlan.encapsulate_inner_vlan)
            b.flag("vxlan ingress-node-replication", vxlan.ingress_node_replication)
            b.value("vxlan multicast-group", vxlan.multicast_group)
            b.flag("vxlan ovsdb-managed", vxlan.ovsdb_managed)
            b.values("vxlan static-remote-vtep-list", vxlan.static_remote_vtep_list)
            b.number("vxlan translation-vni", vxlan.translation_vni)
            b.number("vxlan unreachable-vtep-aging-timer", vxlan.unreachable_vtep_aging_timer)
        return b.lines

    def config_delete(self) -> list[str]:
        lines = delete_lines(self.stanza.rstrip())
        if self.vxlan is not None and self.vxlan.vni_extend_evpn:
            lines += delete_lines(self.instance, [f"protocols evpn extended-vni-list {self.vxlan.vni}"])
        return lines

    @classmethod
    def key_from_import_id(cls, import_id: str) -> tuple[str, ...]:
        parts = import_id.split(ID_SEPARATOR)
        if len(parts) > 1:
            return parts[0], parts[1]
        return parts[0], DEFAULT_W

    def location(self) -> str:
        if self.instance:
            return f" in routing-instance {q(self.routing_instance)}"
        return ""

    async def exists(self, session: DeviceSession) -> Optional[bool]:
        return await config_exists(session, self.stanza.rstrip())

    async def pre_create_check(self, session: DeviceSession) -> list[Diagnostic]:
        if self.instance and not await config_exists(session, self.instance.rstrip()):
            return [error(
                MISSING_CONFIG_ERR,
                f"routing instance {q(self.routing_instance)} doesn't exist",
                AttrPath.root("routing_instance"),
            )]
        return await super().pre_create_check(session)

    @classmethod
    def parse(cls, name: str, routing_instance: str, output: str, evpn_output: str = "") -> "Vlan":
        vlan = cls()
        if is_empty_output(output):
            return vlan
        vlan.name = name
        vlan.routing_instance = routing_instance or DEFAULT_W
        vlan.fill_id()
        ConfigReader(VLAN_RULES).read(vlan, output)
        if vlan.vxlan is not None and vlan.vxlan.vni is not None:
            wanted = f"extended-vni-list {vlan.vxlan.vni}"
            if any(item == wanted for item in config_lines(evpn_output)):
                vlan.vxlan.vni_extend_evpn = True
        return vlan

    @classmethod
    async def read(cls, session: DeviceSession, *key: str) -> "Vlan":
        name, routing_instance = key
        instance = instance_prefix(routing_instance)
        output = await show_config(session, f"{instance}vlans {name}")
        evpn_output = ""
        if "vxlan vni " in output:
            evpn_output = await show_config(session, f"{instance}protocols evpn")
        return cls.parse(name, routing_instance, output, evpn_output)

"""junos_routing_options: the singleton ``routing-options`` stanza."""
from dataclasses import dataclass, field
from typing import ClassVar, Optional

from ..config_engine.reader import (
    ConfigReader,
    LineRules,
    append_str,
    in_block,
    set_int,
    set_str,
    set_true,
)
from ..config_engine.schema import AttrPath, Diagnostic, warning
from ..config_engine.serializer import SetBuilder, delete_lines
from ..config_engine.validator import ConfigValidator
from ..devices.base import DeviceSession
from .base import Resource, show_config

ROUTING_OPTIONS_ID = "routing_options"


@dataclass
class AutonomousSystem:
    number: Optional[str] = None
    asdot_notation: Optional[bool] = None
    loops: Optional[int] = None

    def is_empty(self) -> bool:
        return self.number is None and self.asdot_notation is None and self.loops is None


@dataclass
class ForwardingTable:
    chain_composite_max_label_count: Optional[int] = None
    chained_composite_next_hop_ingress: Optional[list[str]] = None
    chained_composite_next_hop_transit: Optional[list[str]] = None
    dynamic_list_next_hop: Optional[bool] = None
    ecmp_fast_reroute: Optional[bool] = None
    no_ecmp_fast_reroute: Optional[bool] = None
    export: Optional[list[str]] = None
    indirect_next_hop: Optional[bool] = None
    no_indirect_next_hop: Optional[bool] = None
    indirect_next_hop_change_acknowledgements: Optional[bool] = None
    no_indirect_next_hop_change_acknowledgements: Optional[bool] = None
    krt_nexthop_ack_timeout: Optional[int] = None
    remnant_holdtime: Optional[int] = None
    unicast_reverse_path: Optional[str] = None

    def is_empty(self) -> bool:
        return (
            self.chain_composite_max_label_count is None
            and not self.chained_composite_next_hop_ingress
            and not self.chained_composite_next_hop_transit
            and self.dynamic_list_next_hop is None
            and self.ecmp_fast_reroute is None
            and self.no_ecmp_fast_reroute is None
            and not self.export
            and self.indirect_next_hop is None
            and self.no_indirect_next_hop is None
            and self.indirect_next_hop_change_acknowledgements is None
            and self.no_indirect_next_hop_change_acknowledgements is None
            and self.krt_nexthop_ack_timeout is None
            and self.remnant_holdtime is None
            and not self.unicast_reverse_path
        )

    def config_set(self, builder: SetBuilder) -> None:
        b = builder.child("forwarding-table ")
        b.number("chain-composite-max-label-count", self.chain_composite_max_label_count)
        b.values("chained-composite-next-hop ingress", self.chained_composite_next_hop_ingress)
        b.values("chained-composite-next-hop transit", self.chained_composite_next_hop_transit)
        b.flag("dynamic-list-next-hop", self.dynamic_list_next_hop)
        b.flag("ecmp-fast-reroute", self.ecmp_fast_reroute)
        b.flag("no-ecmp-fast-reroute", self.no_ecmp_fast_reroute)
        b.values("export", self.export, quoted=True)
        b.flag("indirect-next-hop", self.indirect_next_hop)
        b.flag("no-indirect-next-hop", self.no_indirect_next_hop)
        b.flag("indirect-next-hop-change-acknowledgements", self.indirect_next_hop_change_acknowledgements)
        b.flag("no-indirect-next-hop-change-acknowledgements", self.no_indirect_next_hop_change_acknowledgements)
        b.number("krt-nexthop-ack-timeout", self.krt_nexthop_ack_timeout)
        b.number("remnant-holdtime", self.remnant_holdtime)
        b.value("unicast-reverse-path", self.unicast_reverse_path)


@dataclass
class GracefulRestart:
    disable: Optional[bool] = None
    restart_duration: Optional[int] = None

    def is_empty(self) -> bool:
        return self.disable is None and self.restart_duration is None


AUTONOMOUS_SYSTEM_RULES = (
    LineRules("autonomous-system")
    .prefix("loops ", set_int("loops"))
    .exact("asdot-notation", set_true("asdot_notation"))
    .fallback(set_str("number"))
)

FORWARDING_TABLE_RULES = (
    LineRules("forwarding-table")
    .prefix("chain-composite-max-label-count ", set_int("chain_composite_max_label_count"))
    .prefix("chained-composite-next-hop ingress ", append_str("chained_composite_next_hop_ingress"))
    .prefix("chained-composite-next-hop transit ", append_str("chained_composite_next_hop_transit"))
    .exact("dynamic-list-next-hop", set_true("dynamic_list_next_hop"))
    .exact("ecmp-fast-reroute", set_true("ecmp_fast_reroute"))
    .exact("no-ecmp-fast-reroute", set_true("no_ecmp_fast_reroute"))
    .prefix("export ", append_str("export", quoted=True))
    .exact("indirect-next-hop", set_true("indirect_next_hop"))
    .exact("no-indirect-next-hop", set_true("no_indirect_next_hop"))
    .exact("indirect-next-hop-change-acknowledgements", set_true("indirect_next_hop_change_acknowledgements"))
    .exact("no-indirect-next-hop-change-acknowledgements", set_true("no_indirect_next_hop_change_acknowledgements"))
    .prefix("krt-nexthop-ack-timeout ", set_int("krt_nexthop_ack_timeout"))
    .prefix("remnant-holdtime ", set_int("remnant_holdtime"))
    .prefix("unicast-reverse-path ", set_str("unicast_reverse_path"))
)

GRACEFUL_RESTART_RULES = (
    LineRules("graceful-restart")
    .exact("disable", set_true("disable"))
    .prefix("restart-duration ", set_int("restart_duration"))
)

ROUTING_OPTIONS_RULES = (
    LineRules("junos_routing_options")
    .prefix("autonomous-system ", in_block("autonomous_system", AutonomousSystem, AUTONOMOUS_SYSTEM_RULES))
    .prefix("forwarding-table ", in_block("forwarding_table", ForwardingTable, FORWARDING_TABLE_RULES))
    .prefix("graceful-restart", in_block("graceful_restart", GracefulRestart, GRACEFUL_RESTART_RULES))
    .prefix("instance-export ", append_str("instance_export", quoted=True))
    .prefix("instance-import ", append_str("instance_import", quoted=True))
    .prefix("ipv6-router-id ", set_str("ipv6_router_id"))
    .prefix("router-id ", set_str("router_id"))
)

DELETE_OPTS = (
    "autonomous-system",
    "graceful-restart",
    "instance-export",
    "instance-import",
    "ipv6-router-id",
    "router-id",
)

# Everything in forwarding-table except the export list
DELETE_FORWARDING_TABLE_SINGLY = (
    "forwarding-table chain-composite-max-label-count",
    "forwarding-table chained-composite-next-hop",
    "forwarding-table dynamic-list-next-hop",
    "forwarding-table ecmp-fast-reroute",
    "forwarding-table no-ecmp-fast-reroute",
    "forwarding-table indirect-next-hop",
    "forwarding-table no-indirect-next-hop",
    "forwarding-table indirect-next-hop-change-acknowledgements",
    "forwarding-table no-indirect-next-hop-change-acknowledgements",
    "forwarding-table krt-nexthop-ack-timeout",
    "forwarding-table remnant-holdtime",
    "forwarding-table unicast-reverse-path",
)


@dataclass
class RoutingOptions(Resource):
    """Global routing options.

    A singleton: the identifier is always ``routing_options`` and destroying
    it only touches the device when ``clean_on_destroy`` is set. Export
    policies of the forwarding table can be left to other tools with
    ``forwarding_table_export_configure_singly``.
    """
    type_name: ClassVar[str] = "junos_routing_options"
    junos_name: ClassVar[str] = "routing-options"
    key_fields: ClassVar[tuple[str, ...]] = ()
    id_format: ClassVar[str] = ROUTING_OPTIONS_ID
    config_only_fields: ClassVar[tuple[str, ...]] = (
        "clean_on_destroy",
        "forwarding_table_export_configure_singly",
    )

    id: Optional[str] = None
    clean_on_destroy: Optional[bool] = None
    forwarding_table_export_configure_singly: Optional[bool] = None
    instance_export: Optional[list[str]] = None
    instance_import: Optional[list[str]] = None
    ipv6_router_id: Optional[str] = None
    router_id: Optional[str] = None
    autonomous_system: Optional[AutonomousSystem] = None
    forwarding_table: Optional[ForwardingTable] = None
    graceful_restart: Optional[GracefulRestart] = None

    def validate(self) -> list[Diagnostic]:
        v = ConfigValidator()
        if self.autonomous_system is not None:
            path = AttrPath.root("autonomous_system")
            v.required(path.at_name("number"), self.autonomous_system.number)
        ft = self.forwarding_table
        if ft is not None:
            path = AttrPath.root("forwarding_table")
            v.not_empty(path, ft)
            v.conflict_flags(
                path.at_name("ecmp_fast_reroute"), ft.ecmp_fast_reroute,
                path.at_name("no_ecmp_fast_reroute"), ft.no_ecmp_fast_reroute,
            )
            v.conflict_flags(
                path.at_name("indirect_next_hop"), ft.indirect_next_hop,
                path.at_name("no_indirect_next_hop"), ft.no_indirect_next_hop,
            )
            v.conflict_flags(
                path.at_name("indirect_next_hop_change_acknowledgements"),
                ft.indirect_next_hop_change_acknowledgements,
                path.at_name("no_indirect_next_hop_change_acknowledgements"),
                ft.no_indirect_next_hop_change_acknowledgements,
            )
            if self.forwarding_table_export_configure_singly:
                v.conflict(
                    path.at_name("export"), ft.export,
                    AttrPath.root("forwarding_table_export_configure_singly"), True,
                )
        if self.graceful_restart is not None:
            v.not_empty(AttrPath.root("graceful_restart"), self.graceful_restart)
        return v.diagnostics

    def config_set(self) -> list[str]:
        b = SetBuilder("routing-options ")
        b.values("instance-export", self.instance_export, quoted=True)
        b.values("instance-import", self.instance_import, quoted=True)
        b.value("ipv6-router-id", self.ipv6_router_id)
        b.value("router-id", self.router_id)

        if self.autonomous_system is not None:
            b.value("autonomous-system", self.autonomous_system.number)
            b.flag("autonomous-system asdot-notation", self.autonomous_system.asdot_notation)
            b.number("autonomous-system loops", self.autonomous_system.loops)
        if self.forwarding_table is not None:
            v = ConfigValidator()
            path = AttrPath.root("forwarding_table")
            v.not_empty(path, self.forwarding_table)
            if self.forwarding_table_export_configure_singly:
                v.conflict(
                    path.at_name("export"), self.forwarding_table.export,
                    AttrPath.root("forwarding_table_export_configure_singly"), True,
                )
            v.raise_on_error()
            self.forwarding_table.config_set(b)
        if self.graceful_restart is not None:
            b.line("graceful-restart")
            b.flag("graceful-restart disable", self.graceful_restart.disable)
            b.number("graceful-restart restart-duration", self.graceful_restart.restart_duration)
        return b.lines

    def _delete_lines(self, configure_singly: bool) -> list[str]:
        statements = list(DELETE_OPTS)
        if configure_singly:
            statements.extend(DELETE_FORWARDING_TABLE_SINGLY)
        else:
            statements.append("forwarding-table")
        return delete_lines("routing-options ", statements)

    def config_delete(self) -> list[str]:
        return self._delete_lines(bool(self.forwarding_table_export_configure_singly))

    def config_delete_opts(self, plan: "RoutingOptions") -> list[str]:
        # A state configured singly never removes the export list
        singly = bool(self.forwarding_table_export_configure_singly or plan.forwarding_table_export_configure_singly)
        return self._delete_lines(singly)

    def update_diagnostics(self, state: "RoutingOptions") -> list[Diagnostic]:
        before = bool(state.forwarding_table_export_configure_singly)
        after = bool(self.forwarding_table_export_configure_singly)
        if before == after:
            return []
        path = AttrPath.root("forwarding_table_export_configure_singly")
        if before:
            return [warning(
                "Disable forwarding_table_export_configure_singly on resource already created",
                "It's doesn't delete export list already configured. "
                "So refresh resource after apply to detect export list entries that need to be deleted",
                path,
            )]
        return [warning(
            "Enable forwarding_table_export_configure_singly on resource already created",
            "It's doesn't delete export list already configured. "
            "So add each element of the export list with its own resource to be able to manage it",
            path,
        )]

    def fill_id(self) -> None:
        self.id = ROUTING_OPTIONS_ID

    def describe(self) -> str:
        return self.junos_name

    def skip_delete(self) -> bool:
        return not self.clean_on_destroy

    def after_read(self, state: "RoutingOptions") -> None:
        super().after_read(state)
        if self.forwarding_table_export_configure_singly and self.forwarding_table is not None:
            self.forwarding_table.export = None
            if self.forwarding_table.is_empty():
                self.forwarding_table = None

    @classmethod
    def parse(cls, output: str) -> "RoutingOptions":
        options = cls()
        ConfigReader(ROUTING_OPTIONS_RULES).read(options, output)
        options.fill_id()
        return options

    @classmethod
    async def read(cls, session: DeviceSession, *key: str) -> "RoutingOptions":
        return cls.parse(await show_config(session, "routing-options"))

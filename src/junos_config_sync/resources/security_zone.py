"""junos_security_zone resource and data source."""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..config_engine.errors import ReadError
from ..config_engine.reader import (
    ConfigReader,
    LineRules,
    append_str,
    find_or_create,
    is_empty_output,
    keyed_block,
    set_str,
    set_true,
    trim_quotes,
)
from ..config_engine.schema import AttrPath, Diagnostic, warning
from ..config_engine.serializer import SetBuilder, delete_lines
from ..config_engine.validator import ConfigValidator, CONFLICT_CONFIG
from ..devices.base import DeviceSession
from .base import Resource, config_exists, show_config

ADDRESS_BOOK_KINDS = (
    "address_book",
    "address_book_dns",
    "address_book_range",
    "address_book_set",
    "address_book_wildcard",
)


@dataclass
class AddressBookAddress:
    name: str
    network: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.network and not self.description


@dataclass
class AddressBookDns:
    name: str
    fqdn: Optional[str] = None
    description: Optional[str] = None
    ipv4_only: Optional[bool] = None
    ipv6_only: Optional[bool] = None

    def is_empty(self) -> bool:
        return (
            not self.fqdn and not self.description
            and self.ipv4_only is None and self.ipv6_only is None
        )


@dataclass
class AddressBookRange:
    name: str
    from_: Optional[str] = None
    to: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.from_ and not self.to and not self.description


@dataclass
class AddressBookSet:
    name: str
    address: Optional[list[str]] = None
    address_set: Optional[list[str]] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.address and not self.address_set and not self.description


@dataclass
class AddressBookWildcard:
    name: str
    network: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.network and not self.description


@dataclass
class ZoneInterface:
    name: str
    inbound_protocols: Optional[list[str]] = None
    inbound_services: Optional[list[str]] = None

    def is_empty(self) -> bool:
        return not self.inbound_protocols and not self.inbound_services


ADDRESS_SET_RULES = (
    LineRules("address-book address-set")
    .prefix("description ", set_str("description", quoted=True))
    .prefix("address ", append_str("address"))
    .prefix("address-set ", append_str("address_set"))
)

INTERFACE_RULES = (
    LineRules("interfaces")
    .prefix("host-inbound-traffic protocols ", append_str("inbound_protocols"))
    .prefix("host-inbound-traffic system-services ", append_str("inbound_services"))
)


def _address_reader(descriptions: dict[str, str]):
    """Handler for ``address-book address NAME ...`` statements.

    The kind of address is only known from its value, and descriptions
    arrive on their own statements, so they are collected by name and
    attached once every statement is read.
    """
    def handler(zone: "SecurityZone", rest: str) -> None:
        name, _, rest = rest.partition(" ")
        if rest.startswith("description "):
            descriptions[name] = trim_quotes(rest[len("description "):])
        elif rest.startswith("dns-name "):
            value = rest[len("dns-name "):]
            zone.address_book_dns = zone.address_book_dns or []
            entry = find_or_create(zone.address_book_dns, name, AddressBookDns)
            if value.endswith(" ipv4-only"):
                entry.ipv4_only = True
                value = value[: -len(" ipv4-only")]
            elif value.endswith(" ipv6-only"):
                entry.ipv6_only = True
                value = value[: -len(" ipv6-only")]
            entry.fqdn = value
        elif rest.startswith("range-address "):
            fields = rest[len("range-address "):].split(" ")
            if len(fields) < 3:  # <from> to <to>
                raise ReadError(f"can't read values for range-address in {rest!r}: not enough fields")
            zone.address_book_range = zone.address_book_range or []
            entry = find_or_create(zone.address_book_range, name, AddressBookRange)
            entry.from_ = fields[0]
            entry.to = fields[2]
        elif rest.startswith("wildcard-address "):
            zone.address_book_wildcard = zone.address_book_wildcard or []
            entry = find_or_create(zone.address_book_wildcard, name, AddressBookWildcard)
            entry.network = rest[len("wildcard-address "):]
        else:
            zone.address_book = zone.address_book or []
            entry = find_or_create(zone.address_book, name, AddressBookAddress)
            entry.network = rest
    return handler


def zone_rules(descriptions: dict[str, str], with_interfaces: bool = False) -> LineRules:
    rules = (
        LineRules("junos_security_zone")
        .prefix("address-book address ", _address_reader(descriptions))
        .prefix("address-book address-set ", keyed_block("address_book_set", AddressBookSet, ADDRESS_SET_RULES))
        .prefix("advance-policy-based-routing-profile ", set_str("advance_policy_based_routing_profile", quoted=True))
        .prefix("description ", set_str("description", quoted=True))
        .exact("application-tracking", set_true("application_tracking"))
        .prefix("host-inbound-traffic protocols ", append_str("inbound_protocols", quoted=True))
        .prefix("host-inbound-traffic system-services ", append_str("inbound_services", quoted=True))
        .exact("enable-reverse-reroute", set_true("reverse_reroute"))
        .prefix("screen ", set_str("screen", quoted=True))
        .exact("source-identity-log", set_true("source_identity_log"))
        .exact("tcp-rst", set_true("tcp_rst"))
    )
    if with_interfaces:
        rules.prefix("interfaces ", keyed_block("interface", ZoneInterface, INTERFACE_RULES))
    return rules


@dataclass
class SecurityZone(Resource):
    """Security zone with its inline address book."""
    type_name: ClassVar[str] = "junos_security_zone"
    junos_name: ClassVar[str] = "security zone"
    security_only: ClassVar[bool] = True
    config_only_fields: ClassVar[tuple[str, ...]] = ("address_book_configure_singly",)

    name: str = ""
    id: Optional[str] = None
    address_book_configure_singly: Optional[bool] = None
    advance_policy_based_routing_profile: Optional[str] = None
    application_tracking: Optional[bool] = None
    description: Optional[str] = None
    inbound_protocols: Optional[list[str]] = None
    inbound_services: Optional[list[str]] = None
    reverse_reroute: Optional[bool] = None
    screen: Optional[str] = None
    source_identity_log: Optional[bool] = None
    tcp_rst: Optional[bool] = None
    address_book: Optional[list[AddressBookAddress]] = None
    address_book_dns: Optional[list[AddressBookDns]] = None
    address_book_range: Optional[list[AddressBookRange]] = None
    address_book_set: Optional[list[AddressBookSet]] = None
    address_book_wildcard: Optional[list[AddressBookWildcard]] = None

    @property
    def prefix(self) -> str:
        return f"security zones security-zone {self.name} "

    def _has_address_book(self) -> bool:
        return any(getattr(self, kind) for kind in ADDRESS_BOOK_KINDS)

    def _check_address_book(self, v: ConfigValidator) -> None:
        seen: set[str] = set()
        for kind in ADDRESS_BOOK_KINDS:
            path = AttrPath.root(kind)
            for i, block in enumerate(getattr(self, kind) or []):
                item_path = path.at_index(i)
                if block.name in seen:
                    what = "addresses or address-sets" if kind == "address_book_set" else "addresses"
                    v.error(
                        "Duplicate Configuration Error",
                        f"multiple {what} with the same name {block.name!r}",
                        item_path.at_name("name"),
                    )
                seen.add(block.name)
                if kind == "address_book_set" and not block.address and not block.address_set:
                    v.error(
                        "Missing Configuration Error",
                        "at least one of address or address_set must be specified "
                        f"in address_book_set {block.name!r}",
                        item_path,
                    )
                if kind == "address_book_dns":
                    v.conflict_flags(
                        item_path.at_name("ipv4_only"), block.ipv4_only,
                        item_path.at_name("ipv6_only"), block.ipv6_only,
                    )

    def validate(self) -> list[Diagnostic]:
        v = ConfigValidator()
        if self.address_book_configure_singly and self._has_address_book():
            v.error(
                CONFLICT_CONFIG,
                "cannot have address_book_configure_singly and want to configure address book at the same time",
                AttrPath.root("address_book_configure_singly"),
            )
        self._check_address_book(v)
        return v.diagnostics

    def config_set(self) -> list[str]:
        b = SetBuilder(self.prefix)
        b.base()
        if not self.address_book_configure_singly:
            v = ConfigValidator()
            self._check_address_book(v)
            v.raise_on_error()
            for block in self.address_book or []:
                b.line(f"address-book address {block.name} {block.network}")
                b.value(f"address-book address {block.name} description", block.description, quoted=True)
            for block in self.address_book_dns or []:
                statement = f"address-book address {block.name} dns-name {block.fqdn}"
                b.line(statement)
                b.flag(f"{statement} ipv4-only", block.ipv4_only)
                b.flag(f"{statement} ipv6-only", block.ipv6_only)
                b.value(f"address-book address {block.name} description", block.description, quoted=True)
            for block in self.address_book_range or []:
                b.line(f"address-book address {block.name} range-address {block.from_} to {block.to}")
                b.value(f"address-book address {block.name} description", block.description, quoted=True)
            for block in self.address_book_set or []:
                b.values(f"address-book address-set {block.name} address", block.address)
                b.values(f"address-book address-set {block.name} address-set", block.address_set)
                b.value(f"address-book address-set {block.name} description", block.description, quoted=True)
            for block in self.address_book_wildcard or []:
                b.line(f"address-book address {block.name} wildcard-address {block.network}")
                b.value(f"address-book address {block.name} description", block.description, quoted=True)
        b.value("advance-policy-based-routing-profile", self.advance_policy_based_routing_profile, quoted=True)
        b.flag("application-tracking", self.application_tracking)
        b.value("description", self.description, quoted=True)
        b.values("host-inbound-traffic protocols", self.inbound_protocols, quoted=True)
        b.values("host-inbound-traffic system-services", self.inbound_services, quoted=True)
        b.flag("enable-reverse-reroute", self.reverse_reroute)
        b.value("screen", self.screen, quoted=True)
        b.flag("source-identity-log", self.source_identity_log)
        b.flag("tcp-rst", self.tcp_rst)
        return b.lines

    def config_delete(self) -> list[str]:
        return delete_lines(self.prefix.rstrip())

    def config_delete_opts(self, plan: "SecurityZone") -> list[str]:
        # The zone itself stays: policies and interfaces may reference it
        statements = [
            "advance-policy-based-routing-profile",
            "description",
            "application-tracking",
            "host-inbound-traffic",
            "enable-reverse-reroute",
            "screen",
            "source-identity-log",
            "tcp-rst",
        ]
        if not (self.address_book_configure_singly or plan.address_book_configure_singly):
            statements.append("address-book")
        return delete_lines(self.prefix, statements)

    def update_diagnostics(self, state: "SecurityZone") -> list[Diagnostic]:
        before = bool(state.address_book_configure_singly)
        after = bool(self.address_book_configure_singly)
        if before == after:
            return []
        path = AttrPath.root("address_book_configure_singly")
        if before:
            return [warning(
                "Disable address_book_configure_singly on resource already created",
                "It's doesn't delete addresses and address-sets already configured. "
                "So refresh resource after apply to detect address-book entries that need to be deleted",
                path,
            )]
        return [warning(
            "Enable address_book_configure_singly on resource already created",
            "It's doesn't delete addresses and address-sets already configured. "
            "So import address-book entries in dedicated resource(s) to be able to manage them",
            path,
        )]

    def after_read(self, state: "SecurityZone") -> None:
        super().after_read(state)
        if self.address_book_configure_singly:
            for kind in ADDRESS_BOOK_KINDS:
                setattr(self, kind, None)

    async def exists(self, session: DeviceSession) -> Optional[bool]:
        return await config_exists(session, self.prefix.rstrip())

    @classmethod
    def parse(cls, name: str, output: str, with_interfaces: bool = False) -> "SecurityZone":
        zone = cls()
        if is_empty_output(output):
            return zone
        zone.name = name
        zone.fill_id()
        descriptions: dict[str, str] = {}
        ConfigReader(zone_rules(descriptions, with_interfaces)).read(zone, output)
        for kind in ("address_book", "address_book_dns", "address_book_range", "address_book_wildcard"):
            for block in getattr(zone, kind) or []:
                if block.name in descriptions:
                    block.description = descriptions[block.name]
        return zone

    @classmethod
    async def read(cls, session: DeviceSession, *key: str) -> "SecurityZone":
        name = key[0]
        return cls.parse(name, await show_config(session, f"security zones security-zone {name}"))


@dataclass
class SecurityZoneInfo(SecurityZone):
    """Read-only view of a zone, including its interfaces."""
    type_name: ClassVar[str] = "junos_security_zone"

    interface: Optional[list[ZoneInterface]] = None

    @classmethod
    async def read(cls, session: DeviceSession, *key: str) -> "SecurityZoneInfo":
        name = key[0]
        output = await show_config(session, f"security zones security-zone {name}")
        return cls.parse(name, output, with_interfaces=True)

"""junos_security_zone_book_address: one address in a zone's address book."""
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..config_engine.errors import ReadError
from ..config_engine.reader import (
    ConfigReader,
    LineRules,
    is_empty_output,
    set_str,
)
from ..config_engine.schema import AttrPath, Diagnostic, error
from ..config_engine.validator import ConfigValidator
from ..config_engine.serializer import SetBuilder, delete_lines
from ..devices.base import DeviceSession, ID_SEPARATOR
from .base import Resource, MISSING_CONFIG_ERR, config_exists, q, show_config


def _read_dns_name(address: "SecurityZoneBookAddress", rest: str) -> None:
    if rest.endswith(" ipv4-only"):
        address.dns_ipv4_only = True
        rest = rest[: -len(" ipv4-only")]
    elif rest.endswith(" ipv6-only"):
        address.dns_ipv6_only = True
        rest = rest[: -len(" ipv6-only")]
    address.dns_name = rest


def _read_range(address: "SecurityZoneBookAddress", rest: str) -> None:
    fields = rest.split(" ")
    if len(fields) < 3:  # <from> to <to>
        raise ReadError(f"can't read values for range-address in {rest!r}: not enough fields")
    address.range_from = fields[0]
    address.range_to = fields[2]


def _read_cidr(address: "SecurityZoneBookAddress", rest: str) -> bool:
    if "/" not in rest:
        return False
    address.cidr = rest
    return True


BOOK_ADDRESS_RULES = (
    LineRules("junos_security_zone_book_address")
    .prefix("description ", set_str("description", quoted=True))
    .prefix("dns-name ", _read_dns_name)
    .prefix("range-address ", _read_range)
    .prefix("wildcard-address ", set_str("wildcard"))
    .fallback(_read_cidr)
)


@dataclass
class SecurityZoneBookAddress(Resource):
    """Address of a zone address book managed on its own."""
    type_name: ClassVar[str] = "junos_security_zone_book_address"
    junos_name: ClassVar[str] = "security zone address-book address"
    key_fields: ClassVar[tuple[str, ...]] = ("zone", "name")
    id_format: ClassVar[str] = f"<zone>{ID_SEPARATOR}<name>"
    security_only: ClassVar[bool] = True

    zone: str = ""
    name: str = ""
    id: Optional[str] = None
    cidr: Optional[str] = None
    description: Optional[str] = None
    dns_name: Optional[str] = None
    dns_ipv4_only: Optional[bool] = None
    dns_ipv6_only: Optional[bool] = None
    range_from: Optional[str] = None
    range_to: Optional[str] = None
    wildcard: Optional[str] = None

    @property
    def prefix(self) -> str:
        return f"security zones security-zone {self.zone} address-book address {self.name} "

    def validate(self) -> list[Diagnostic]:
        v = ConfigValidator()
        v.requires(AttrPath.root("dns_ipv4_only"), self.dns_ipv4_only or None, AttrPath.root("dns_name"), self.dns_name)
        v.requires(AttrPath.root("dns_ipv6_only"), self.dns_ipv6_only or None, AttrPath.root("dns_name"), self.dns_name)
        v.conflict_flags(
            AttrPath.root("dns_ipv4_only"), self.dns_ipv4_only,
            AttrPath.root("dns_ipv6_only"), self.dns_ipv6_only,
        )
        v.requires(AttrPath.root("range_from"), self.range_from, AttrPath.root("range_to"), self.range_to)
        v.requires(AttrPath.root("range_to"), self.range_to, AttrPath.root("range_from"), self.range_from)
        v.exactly_one(
            AttrPath.root("cidr"),
            cidr=self.cidr,
            dns_name=self.dns_name,
            range_from=self.range_from,
            wildcard=self.wildcard,
        )
        return v.diagnostics

    def config_set(self) -> list[str]:
        b = SetBuilder(self.prefix)
        if self.cidr:
            b.line(self.cidr)
        b.value("description", self.description, quoted=True)
        if self.dns_name:
            b.line(f"dns-name {self.dns_name}")
            b.flag(f"dns-name {self.dns_name} ipv4-only", self.dns_ipv4_only)
            b.flag(f"dns-name {self.dns_name} ipv6-only", self.dns_ipv6_only)
        if self.range_from:
            b.line(f"range-address {self.range_from} to {self.range_to}")
        b.value("wildcard-address", self.wildcard)
        return b.lines

    def config_delete(self) -> list[str]:
        return delete_lines(self.prefix.rstrip())

    def describe(self) -> str:
        return f"{self.junos_name} {q(self.name)}"

    def location(self) -> str:
        return f" in zone {q(self.zone)}"

    async def exists(self, session: DeviceSession) -> Optional[bool]:
        return await config_exists(session, self.prefix.rstrip())

    async def pre_create_check(self, session: DeviceSession) -> list[Diagnostic]:
        if not await config_exists(session, f"security zones security-zone {self.zone}"):
            return [error(MISSING_CONFIG_ERR, f"security zone {q(self.zone)} doesn't exist", AttrPath.root("zone"))]
        return await super().pre_create_check(session)

    @classmethod
    def parse(cls, zone: str, name: str, output: str) -> "SecurityZoneBookAddress":
        address = cls()
        if is_empty_output(output):
            return address
        address.zone = zone
        address.name = name
        address.fill_id()
        return ConfigReader(BOOK_ADDRESS_RULES).read(address, output)

    @classmethod
    async def read(cls, session: DeviceSession, *key: str) -> "SecurityZoneBookAddress":
        zone, name = key
        output = await show_config(session, f"security zones security-zone {zone} address-book address {name}")
        return cls.parse(zone, name, output)

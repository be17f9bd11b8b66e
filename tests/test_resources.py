"""Tests for the zone, address, policy-options, VLAN and SNMP resources."""
import pytest

from junos_config_sync.config_engine.errors import ConfigSetError, ImportIdError
from junos_config_sync.resources import (
    AsPath,
    Community,
    PrefixList,
    SecurityZone,
    SecurityZoneBookAddress,
    SecurityZoneInfo,
    SnmpCommunity,
    Vlan,
    get_resource_class,
)
from junos_config_sync.resources.security_zone import (
    AddressBookAddress,
    AddressBookDns,
    AddressBookRange,
    AddressBookSet,
    ZoneInterface,
)
from junos_config_sync.resources.snmp_community import CommunityRoutingInstance
from junos_config_sync.resources.vlan import Vxlan

from fake_device import FakeDevice, FakeSession


def wrap(*lines: str) -> str:
    return "<configuration-output>\n" + "\n".join(f"set {l}" for l in lines) + "\n</configuration-output>"


class TestRegistry:
    """Tests for resource type lookup."""

    def test_known_types(self):
        """Resource and data source names resolve to their classes."""
        assert get_resource_class("junos_vlan") is Vlan
        assert get_resource_class("junos_security_zone") is SecurityZone
        assert get_resource_class("junos_security_zone", data_source=True) is SecurityZoneInfo

    def test_unknown_type(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown resource type: junos_bgp_group"):
            get_resource_class("junos_bgp_group")


class TestSecurityZone:
    """Tests for junos_security_zone."""

    def test_config_set(self):
        """The zone statement comes first, then its address book and options."""
        zone = SecurityZone(
            name="trust",
            address_book=[AddressBookAddress("lan", "192.0.2.0/24", "office")],
            address_book_dns=[AddressBookDns("web", "www.example.com", ipv4_only=True)],
            address_book_range=[AddressBookRange("pool", "192.0.2.10", "192.0.2.20")],
            inbound_services=["ssh"],
            tcp_rst=True,
        )
        assert zone.config_set() == [
            "set security zones security-zone trust",
            "set security zones security-zone trust address-book address lan 192.0.2.0/24",
            'set security zones security-zone trust address-book address lan description "office"',
            "set security zones security-zone trust address-book address web dns-name www.example.com",
            "set security zones security-zone trust address-book address web dns-name www.example.com ipv4-only",
            "set security zones security-zone trust address-book address pool range-address 192.0.2.10 to 192.0.2.20",
            'set security zones security-zone trust host-inbound-traffic system-services "ssh"',
            "set security zones security-zone trust tcp-rst",
        ]

    def test_configure_singly_skips_address_book(self):
        """Address book entries are left to dedicated resources."""
        zone = SecurityZone(name="trust", address_book_configure_singly=True, description="inside")
        assert zone.config_set() == [
            "set security zones security-zone trust",
            'set security zones security-zone trust description "inside"',
        ]

    def test_validate_singly_conflict(self):
        """An inline address book conflicts with configure singly."""
        zone = SecurityZone(
            name="trust",
            address_book_configure_singly=True,
            address_book=[AddressBookAddress("lan", "192.0.2.0/24")],
        )
        errors = zone.validate()
        assert len(errors) == 1
        assert str(errors[0].path) == "address_book_configure_singly"

    def test_validate_duplicate_across_kinds(self):
        """Address names are unique across every kind of address."""
        zone = SecurityZone(
            name="trust",
            address_book=[AddressBookAddress("lan", "192.0.2.0/24")],
            address_book_set=[AddressBookSet("lan", address=["lan"])],
        )
        errors = zone.validate()
        assert errors[0].summary == "Duplicate Configuration Error"
        assert str(errors[0].path) == "address_book_set[0].name"

    def test_validate_empty_set(self):
        """An address set needs members."""
        zone = SecurityZone(name="trust", address_book_set=[AddressBookSet("empty")])
        assert "address_book_set 'empty'" in zone.validate()[0].detail

    def test_serializer_rechecks_address_book(self):
        """The serializer refuses an invalid address book too."""
        zone = SecurityZone(name="trust", address_book_set=[AddressBookSet("empty")])
        with pytest.raises(ConfigSetError):
            zone.config_set()

    def test_parse_address_kinds(self):
        """Address kinds are told apart by their value."""
        zone = SecurityZone.parse("dmz", wrap(
            "address-book address a 192.0.2.1/32",
            'address-book address a description "host a"',
            "address-book address d dns-name example.com ipv6-only",
            "address-book address r range-address 192.0.2.1 to 192.0.2.9",
            "address-book address w wildcard-address 10.0.0.1/255.0.0.255",
            "address-book address-set s address a",
            "address-book address-set s address-set other",
            "application-tracking",
        ))
        assert zone.id == "dmz"
        assert zone.address_book == [AddressBookAddress("a", "192.0.2.1/32", "host a")]
        assert zone.address_book_dns == [AddressBookDns("d", "example.com", ipv6_only=True)]
        assert zone.address_book_range == [AddressBookRange("r", "192.0.2.1", "192.0.2.9")]
        assert zone.address_book_wildcard[0].network == "10.0.0.1/255.0.0.255"
        assert zone.address_book_set == [AddressBookSet("s", address=["a"], address_set=["other"])]
        assert zone.application_tracking is True

    def test_parse_empty(self):
        """No output means no zone."""
        assert SecurityZone.parse("dmz", "").id is None

    def test_delete_opts_keeps_zone(self):
        """Updates delete the options, never the zone statement."""
        lines = SecurityZone(name="dmz").config_delete_opts(SecurityZone(name="dmz"))
        assert "delete security zones security-zone dmz" not in lines
        assert "delete security zones security-zone dmz address-book" in lines
        singly = SecurityZone(name="dmz", address_book_configure_singly=True)
        assert "delete security zones security-zone dmz address-book" not in singly.config_delete_opts(singly)

    def test_after_read_hides_address_book(self):
        """A zone configured singly reports no inline addresses."""
        zone = SecurityZone.parse("dmz", wrap("address-book address a 192.0.2.1/32"))
        zone.after_read(SecurityZone(name="dmz", address_book_configure_singly=True))
        assert zone.address_book is None

    @pytest.mark.asyncio
    async def test_round_trip(self, device):
        """Serializer -> device -> reader gives the original zone."""
        zone = SecurityZone(
            name="trust",
            description="inside",
            inbound_services=["ping", "ssh"],
            address_book=[AddressBookAddress("lan", "192.0.2.0/24", "office")],
            address_book_set=[AddressBookSet("all", address=["lan"])],
        )
        device.load(zone.config_set())
        read = await SecurityZone.read(FakeSession(device), "trust")
        zone.fill_id()
        assert read == zone

    @pytest.mark.asyncio
    async def test_data_source_reads_interfaces(self, device):
        """The data source also lists the zone interfaces."""
        device.load([
            "security zones security-zone trust interfaces ge-0/0/1.0 host-inbound-traffic system-services ssh",
            "security zones security-zone trust interfaces ge-0/0/2.0",
        ])
        info = await SecurityZoneInfo.read(FakeSession(device), "trust")
        assert info.interface == [
            ZoneInterface("ge-0/0/1.0", inbound_services=["ssh"]),
            ZoneInterface("ge-0/0/2.0"),
        ]

    @pytest.mark.asyncio
    async def test_compatibility_check(self):
        """Zones need a security platform."""
        session = FakeSession(FakeDevice(model="ex4300-48t"))
        errors = await SecurityZone(name="trust").compatibility_check(session)
        assert errors[0].summary == "Compatibility Error"
        assert errors[0].detail.startswith("junos_security_zone")
        assert await SecurityZone(name="trust").compatibility_check(FakeSession(FakeDevice())) == []


class TestSecurityZoneBookAddress:
    """Tests for junos_security_zone_book_address."""

    def test_config_set_cidr(self):
        """A CIDR address is a bare value below the name."""
        address = SecurityZoneBookAddress(zone="trust", name="lan", cidr="192.0.2.0/24", description="office")
        assert address.config_set() == [
            "set security zones security-zone trust address-book address lan 192.0.2.0/24",
            'set security zones security-zone trust address-book address lan description "office"',
        ]

    def test_validate_exactly_one_value(self):
        """Exactly one kind of address value is required."""
        assert SecurityZoneBookAddress(zone="z", name="a").validate()[0].detail.startswith("exactly one of")
        both = SecurityZoneBookAddress(zone="z", name="a", cidr="192.0.2.0/24", wildcard="10.0.0.1/255.0.0.255")
        assert len(both.validate()) == 1

    def test_validate_range_pair(self):
        """range_from and range_to go together."""
        errors = SecurityZoneBookAddress(zone="z", name="a", range_from="192.0.2.1").validate()
        assert [d.detail for d in errors] == ["range_to must be specified with range_from"]

    def test_validate_dns_flags(self):
        """DNS flags need a DNS name."""
        errors = SecurityZoneBookAddress(zone="z", name="a", cidr="192.0.2.0/24", dns_ipv4_only=True).validate()
        assert errors[0].detail == "dns_name must be specified with dns_ipv4_only"

    def test_import_id(self):
        """The import id joins zone and name."""
        assert SecurityZoneBookAddress.key_from_import_id("trust_-_lan") == ("trust", "lan")
        with pytest.raises(ImportIdError):
            SecurityZoneBookAddress.key_from_import_id("trust")

    @pytest.mark.asyncio
    async def test_pre_create_check_missing_zone(self, device):
        """The zone has to exist first."""
        address = SecurityZoneBookAddress(zone="trust", name="lan", cidr="192.0.2.0/24")
        errors = await address.pre_create_check(FakeSession(device))
        assert errors[0].detail == 'security zone "trust" doesn\'t exist'
        assert str(errors[0].path) == "zone"

    @pytest.mark.asyncio
    async def test_pre_create_check_duplicate(self, device):
        """An existing address is reported with its zone."""
        device.load(["security zones security-zone trust address-book address lan 192.0.2.0/24"])
        address = SecurityZoneBookAddress(zone="trust", name="lan", cidr="192.0.2.0/24")
        errors = await address.pre_create_check(FakeSession(device))
        assert errors[0].detail == (
            'security zone address-book address "lan" already exists in zone "trust"'
        )

    @pytest.mark.asyncio
    async def test_round_trip_dns(self, device):
        """A DNS address with its flag reads back."""
        address = SecurityZoneBookAddress(zone="trust", name="web", dns_name="www.example.com", dns_ipv6_only=True)
        device.load(address.config_set())
        read = await SecurityZoneBookAddress.read(FakeSession(device), "trust", "web")
        address.fill_id()
        assert read == address
        assert read.id == "trust_-_web"


class TestPolicyOptions:
    """Tests for prefix lists, AS paths and communities."""

    def test_prefix_list_apply_path_escaped(self):
        """Angle brackets are sent as entities."""
        pl = PrefixList(name="mgmt", apply_path="interfaces <*> unit <*> family inet address <*>")
        assert pl.config_set() == [
            'set policy-options prefix-list "mgmt" apply-path '
            '"interfaces &lt;*&gt; unit &lt;*&gt; family inet address &lt;*&gt;"'
        ]

    @pytest.mark.asyncio
    async def test_prefix_list_round_trip(self, device):
        """Prefixes and the apply-path read back unescaped."""
        pl = PrefixList(name="mgmt", apply_path="interfaces <*>", prefix=["192.0.2.0/24", "2001:db8::/32"])
        device.load(pl.config_set())
        read = await PrefixList.read(FakeSession(device), "mgmt")
        pl.fill_id()
        assert read == pl

    def test_as_path_requires_value(self):
        """An AS path needs a path or dynamic-db."""
        assert AsPath(name="p").validate()[0].detail == "at least one of path or dynamic_db must be specified"
        assert AsPath(name="p", dynamic_db=True).validate() == []

    def test_as_path_quoted(self):
        """The path regex is quoted."""
        assert AsPath(name="p", path="65000 .*").config_set() == [
            'set policy-options as-path "p" "65000 .*"'
        ]

    def test_as_path_parse(self):
        """The quoted path reads back without quotes."""
        path = AsPath.parse("p", wrap('"65000 .*"'))
        assert path.path == "65000 .*"

    def test_community_members_or_dynamic_db(self):
        """Communities need exactly one of members and dynamic-db."""
        assert Community(name="c").validate()[0].summary == "Missing Configuration Error"
        both = Community(name="c", members=["65000:1"], dynamic_db=True)
        assert both.validate()[0].summary == "Conflict Configuration Error"

    @pytest.mark.asyncio
    async def test_community_round_trip(self, device):
        """Members keep their order."""
        community = Community(name="c", members=["65000:2", "65000:1"], invert_match=True)
        device.load(community.config_set())
        read = await Community.read(FakeSession(device), "c")
        community.fill_id()
        assert read == community

    @pytest.mark.asyncio
    async def test_exists(self, device):
        """Existence checks look at the quoted stanza."""
        device.load(['policy-options community "c" members "65000:1"'])
        session = FakeSession(device)
        assert await Community(name="c").exists(session) is True
        assert await Community(name="d").exists(session) is False

    def test_not_found_detail(self):
        """Import failures name the expected id format."""
        assert PrefixList.not_found_detail("x") == (
            "don't find policy-options prefix-list with id \"x\" (id must be <name>)"
        )


class TestVlan:
    """Tests for junos_vlan."""

    def test_config_set_vxlan_evpn(self):
        """The EVPN extended VNI follows the VNI statement."""
        vlan = Vlan(name="v10", vlan_id="10", vxlan=Vxlan(vni=10010, vni_extend_evpn=True, ingress_node_replication=True))
        assert vlan.config_set() == [
            "set vlans v10 vlan-id 10",
            "set vlans v10 vxlan vni 10010",
            "set protocols evpn extended-vni-list 10010",
            "set vlans v10 vxlan ingress-node-replication",
        ]

    def test_config_set_routing_instance(self):
        """Non-default instances prefix every statement."""
        vlan = Vlan(name="v10", routing_instance="tenant", vlan_id="10", description="web")
        assert vlan.config_set() == [
            'set routing-instances tenant vlans v10 description "web"',
            "set routing-instances tenant vlans v10 vlan-id 10",
        ]

    def test_config_delete_evpn(self):
        """Deleting an EVPN-extended VLAN removes its VNI from the list."""
        vlan = Vlan(name="v10", routing_instance="tenant", vxlan=Vxlan(vni=10010, vni_extend_evpn=True))
        assert vlan.config_delete() == [
            "delete routing-instances tenant vlans v10",
            "delete routing-instances tenant protocols evpn extended-vni-list 10010",
        ]

    def test_validate_needs_an_argument(self):
        """A VLAN with only its key is rejected."""
        errors = Vlan(name="v10").validate()
        assert errors[0].detail == (
            "at least one of arguments need to be set (in addition to `name` and `routing_instance`)"
        )

    def test_validate_vlan_id_conflict(self):
        """vlan_id and vlan_id_list are exclusive."""
        errors = Vlan(name="v10", vlan_id="10", vlan_id_list=["11-12"]).validate()
        assert errors[0].detail == "vlan_id and vlan_id_list cannot be configured together"

    def test_validate_vxlan(self):
        """The vxlan block needs a VNI and one replication mode."""
        vlan = Vlan(name="v10", vxlan=Vxlan(ingress_node_replication=True, multicast_group="239.0.0.1"))
        details = [d.detail for d in vlan.validate()]
        assert "vni must be specified in vxlan block" in details
        assert "ingress_node_replication and multicast_group cannot be configured together" in details

    def test_serializer_requires_vni(self):
        """The serializer refuses a vxlan block without VNI."""
        with pytest.raises(ConfigSetError) as exc:
            Vlan(name="v10", vxlan=Vxlan(encapsulate_inner_vlan=True)).config_set()
        assert str(exc.value.path) == "vxlan.vni"

    def test_import_id(self):
        """The routing instance defaults to default."""
        assert Vlan.key_from_import_id("v10") == ("v10", "default")
        assert Vlan.key_from_import_id("v10_-_tenant") == ("v10", "tenant")

    def test_fill_id(self):
        vlan = Vlan(name="v10", vlan_id="10")
        vlan.fill_id()
        assert vlan.id == "v10_-_default"

    @pytest.mark.asyncio
    async def test_round_trip_with_evpn(self, device):
        """The EVPN flag is recovered from protocols evpn."""
        vlan = Vlan(name="v10", vlan_id="10", l3_interface="irb.10", vxlan=Vxlan(vni=10010, vni_extend_evpn=True))
        device.load(vlan.config_set())
        read = await Vlan.read(FakeSession(device), "v10", "default")
        vlan.fill_id()
        assert read == vlan

    @pytest.mark.asyncio
    async def test_read_skips_evpn_without_vxlan(self, device):
        """No VNI means no extra EVPN query."""
        device.load(["vlans v10 vlan-id 10"])
        await Vlan.read(FakeSession(device), "v10", "default")
        commands = [c[1] for c in device.calls if c[0] == "command"]
        assert commands == ["show configuration vlans v10 | display set relative"]

    @pytest.mark.asyncio
    async def test_pre_create_check_missing_instance(self, device):
        """The routing instance has to exist first."""
        vlan = Vlan(name="v10", routing_instance="tenant", vlan_id="10")
        errors = await vlan.pre_create_check(FakeSession(device))
        assert errors[0].detail == 'routing instance "tenant" doesn\'t exist'

    @pytest.mark.asyncio
    async def test_pre_create_check_duplicate_in_instance(self, device):
        """Duplicates name the routing instance."""
        device.load(["routing-instances tenant instance-type virtual-switch", "routing-instances tenant vlans v10 vlan-id 10"])
        vlan = Vlan(name="v10", routing_instance="tenant", vlan_id="10")
        errors = await vlan.pre_create_check(FakeSession(device))
        assert errors[0].detail == 'vlans "v10" already exists in routing-instance "tenant"'


class TestSnmpCommunity:
    """Tests for junos_snmp_community."""

    def test_config_set(self):
        """Routing instance blocks emit their own statement first."""
        community = SnmpCommunity(
            name="public",
            authorization_read_only=True,
            view="all",
            routing_instance=[CommunityRoutingInstance("mgmt", clients=["192.0.2.0/24"])],
        )
        assert community.config_set() == [
            'set snmp community "public" authorization read-only',
            'set snmp community "public" view "all"',
            'set snmp community "public" routing-instance mgmt',
            'set snmp community "public" routing-instance mgmt clients 192.0.2.0/24',
        ]

    def test_validate(self):
        """Authorization modes and client sources are exclusive."""
        community = SnmpCommunity(
            name="public",
            authorization_read_only=True,
            authorization_read_write=True,
            client_list_name="list",
            clients=["192.0.2.0/24"],
        )
        details = [d.detail for d in community.validate()]
        assert details == [
            "authorization_read_only and authorization_read_write cannot be configured together",
            "client_list_name and clients cannot be configured together",
        ]

    def test_validate_routing_instances(self):
        """Routing instance blocks are unique and self-consistent."""
        community = SnmpCommunity(
            name="public",
            routing_instance=[
                CommunityRoutingInstance("mgmt", client_list_name="l", clients=["192.0.2.0/24"]),
                CommunityRoutingInstance("mgmt"),
            ],
        )
        details = [d.detail for d in community.validate()]
        assert details == [
            'client_list_name and clients cannot be configured together in routing_instance block "mgmt"',
            'multiple routing_instance blocks with the same name "mgmt"',
        ]

    def test_serializer_rechecks_blocks(self):
        with pytest.raises(ConfigSetError):
            SnmpCommunity(name="p", routing_instance=[CommunityRoutingInstance("a"), CommunityRoutingInstance("a")]).config_set()

    @pytest.mark.asyncio
    async def test_round_trip(self, device):
        """Bare routing instance blocks survive the device."""
        community = SnmpCommunity(
            name="public",
            authorization_read_write=True,
            client_list_name="allowed",
            routing_instance=[
                CommunityRoutingInstance("mgmt"),
                CommunityRoutingInstance("tenant", clients=["192.0.2.0/24", "198.51.100.0/24"]),
            ],
        )
        device.load(community.config_set())
        read = await SnmpCommunity.read(FakeSession(device), "public")
        community.fill_id()
        assert read == community

"""Managed Junos configuration resources."""
from .base import Resource
from .policyoptions import AsPath, Community, PrefixList
from .routing_options import RoutingOptions
from .security_zone import SecurityZone, SecurityZoneInfo
from .security_zone_book_address import SecurityZoneBookAddress
from .snmp_community import SnmpCommunity
from .vlan import Vlan

__all__ = [
    "Resource",
    "AsPath",
    "Community",
    "PrefixList",
    "RoutingOptions",
    "SecurityZone",
    "SecurityZoneInfo",
    "SecurityZoneBookAddress",
    "SnmpCommunity",
    "Vlan",
]

# Resource type registry
RESOURCE_TYPES: dict[str, type[Resource]] = {
    cls.type_name: cls
    for cls in (
        AsPath,
        Community,
        PrefixList,
        RoutingOptions,
        SecurityZone,
        SecurityZoneBookAddress,
        SnmpCommunity,
        Vlan,
    )
}

# Read-only data sources
DATA_SOURCE_TYPES: dict[str, type[Resource]] = {
    "junos_security_zone": SecurityZoneInfo,
}


def get_resource_class(type_name: str, data_source: bool = False) -> type[Resource]:
    """Look up a resource (or data source) class by its type name."""
    registry = DATA_SOURCE_TYPES if data_source else RESOURCE_TYPES
    if type_name not in registry:
        kind = "data source" if data_source else "resource"
        raise ValueError(f"Unknown {kind} type: {type_name}")
    return registry[type_name]

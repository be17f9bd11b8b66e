"""Declarative Junos configuration resources synchronised over NETCONF."""

__version__ = "0.1.0"

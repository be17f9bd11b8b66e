"""Config Engine - declarative Junos configuration management.

The Config Engine keeps one resource at a time in sync with a device:
- Declare the desired configuration, not the set/delete lines
- Validation with attribute paths before any device interaction
- Create, update or no-op decided from the configuration read back
- Lock/commit transactions that always release the candidate lock

Usage:
    from junos_config_sync.config_engine import ConfigEngine

    engine = ConfigEngine(inventory.get_client("srx-edge"))
    result = await engine.apply({
        "type": "junos_security_zone",
        "config": {"name": "trust", "inbound_services": ["ssh"]},
    }, dry_run=True)
"""

from .schema import (
    AttrPath,
    Diagnostic,
    Severity,
    ChangeType,
    OperationResult,
    ApplyResult,
)
from .errors import ConfigSetError, ReadError, ImportIdError
from .validator import ConfigValidator
from .parser import ConfigParser, ParseError, parse_resource
from .diff import DiffEngine, normalize
from .orchestrator import Orchestrator, ReadCoordinator, NoopReadCoordinator
from .engine import ConfigEngine

__all__ = [
    # Main engine
    "ConfigEngine",
    "Orchestrator",
    "ReadCoordinator",
    "NoopReadCoordinator",
    # Schema classes
    "AttrPath",
    "Diagnostic",
    "Severity",
    "ChangeType",
    "OperationResult",
    "ApplyResult",
    # Errors
    "ConfigSetError",
    "ReadError",
    "ImportIdError",
    # Parser
    "ConfigParser",
    "ParseError",
    "parse_resource",
    # Components (for advanced use)
    "ConfigValidator",
    "DiffEngine",
    "normalize",
]

#!/usr/bin/env python3
"""junos-config-sync command line.

Usage:
    junos-config-sync [--inventory FILE] --device NAME show TYPE ID [--data-source]
    junos-config-sync [--inventory FILE] --device NAME apply FILE [--dry-run]
    junos-config-sync [--inventory FILE] --device NAME destroy TYPE ID
    junos-config-sync [--device NAME] history [--type TYPE] [--limit N]

The apply file is YAML:

    device: srx-edge          # optional, --device wins
    resources:
      - type: junos_security_zone
        config:
          name: trust
          inbound_services: [ssh]

Environment variables:
    JUNOS_SYNC_LOG_LEVEL      Log level (default: INFO)
    JUNOS_SYNC_AUDIT_DIR      Audit log directory (default: ~/.junos-config-sync)
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from typing import Optional

import yaml

from .config.inventory import DeviceInventory
from .config.settings import ConfigError
from .config_engine import ConfigEngine, ParseError, normalize
from .config_engine.schema import OperationResult
from .utils.audit_log import DEFAULT_AUDIT_DIR, get_recent_changes, setup_audit_logging
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, sort_keys=False))


def _operation_to_dict(result: OperationResult) -> dict:
    return {
        "success": not result.has_error,
        "removed": result.removed,
        "id": result.data.id if result.data is not None else None,
        "data": normalize(result.data) if result.data is not None else None,
        "diagnostics": [d.to_dict() for d in result.diagnostics],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="junos-config-sync",
        description="Keep Junos configuration resources in sync over NETCONF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Show a zone as the device has it
    junos-config-sync --device srx-edge show junos_security_zone trust

    # Preview the lines an apply would send
    junos-config-sync --device srx-edge apply site.yaml --dry-run

    # Remove a VLAN from a routing instance
    junos-config-sync --device ex-access destroy junos_vlan prod_-_tenant1
""",
    )
    parser.add_argument(
        "--inventory",
        type=str,
        default=None,
        help="Device inventory YAML (default: ./configs/devices.yaml)",
    )
    parser.add_argument(
        "--device",
        type=str,
        help="Device name from the inventory",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Read one resource by its import id")
    show.add_argument("type", help="Resource type, e.g. junos_vlan")
    show.add_argument("id", help="Import id, e.g. name or name_-_routing_instance")
    show.add_argument(
        "--data-source",
        action="store_true",
        help="Read the type as a data source",
    )

    apply = sub.add_parser("apply", help="Create or update the resources of a YAML file")
    apply.add_argument("file", help="YAML file with a resources list")
    apply.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the delete/set lines without changing the device",
    )

    destroy = sub.add_parser("destroy", help="Delete one resource by its import id")
    destroy.add_argument("type", help="Resource type")
    destroy.add_argument("id", help="Import id")

    history = sub.add_parser("history", help="List recent changes from the audit log")
    history.add_argument("--type", dest="resource_type", help="Only this resource type")
    history.add_argument("--limit", type=int, default=20, help="Maximum number of records (default: 20)")

    return parser


def _load_declarations(path: str) -> tuple[Optional[str], list[dict]]:
    with open(path) as f:
        document = yaml.safe_load(f) or {}
    if not isinstance(document, dict):
        raise ParseError(f"{path}: expected a mapping with a resources list")
    resources = document.get("resources") or []
    if not isinstance(resources, list):
        raise ParseError(f"{path}: resources must be a list")
    return document.get("device"), resources


async def run(args: argparse.Namespace) -> int:
    if args.command == "history":
        audit_dir = os.path.expanduser(os.environ.get("JUNOS_SYNC_AUDIT_DIR") or DEFAULT_AUDIT_DIR)
        records = get_recent_changes(
            os.path.join(audit_dir, "audit.log"),
            device_id=args.device,
            resource_type=args.resource_type,
            limit=args.limit,
        )
        _print_json([asdict(r) for r in records])
        return 0

    device_id = args.device
    declarations: list[dict] = []
    if args.command == "apply":
        file_device, declarations = _load_declarations(args.file)
        device_id = device_id or file_device
    if not device_id:
        logger.error("No device given: use --device or set device: in the apply file")
        return 2

    inventory = DeviceInventory(args.inventory)
    engine = ConfigEngine(inventory.get_client(device_id))

    if args.command == "show":
        result = await engine.import_resource(args.type, args.id, data_source=args.data_source)
        _print_json(_operation_to_dict(result))
        return 1 if result.has_error else 0

    if args.command == "destroy":
        result = await engine.destroy(args.type, args.id)
        _print_json(_operation_to_dict(result))
        return 1 if result.has_error else 0

    results = await engine.apply_all(declarations, dry_run=args.dry_run)
    _print_json([r.to_dict() for r in results])
    return 0 if all(r.success for r in results) else 1


def main() -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args()

    setup_logging("DEBUG" if args.verbose else None)
    setup_audit_logging(os.environ.get("JUNOS_SYNC_AUDIT_DIR"))

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except (ConfigError, ParseError, KeyError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Audit logging for configuration changes.

Every orchestrated create, update or delete produces one JSON line:
- Timestamped entry with resource type, operation and identifier
- The exact set/delete lines sent to the candidate configuration
- Commit warnings and the primary error, if any
"""
import json
import logging
import os
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Dedicated audit logger
audit_logger = logging.getLogger("junos_config_sync.audit")

DEFAULT_AUDIT_DIR = "~/.junos-config-sync"


def setup_audit_logging(log_dir: Optional[str] = None) -> Path:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to ~/.junos-config-sync/

    Returns:
        Path of the audit log file
    """
    log_dir = os.path.expanduser(log_dir or DEFAULT_AUDIT_DIR)
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    audit_file = Path(log_dir) / "audit.log"

    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding="utf-8",
    )
    # One JSON document per line
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)
    audit_logger.propagate = False

    return audit_file


@dataclass
class ChangeRecord:
    """Record of a configuration change."""
    timestamp: str
    device_id: str
    resource_type: str
    operation: str  # create, update, delete
    resource_id: str
    fake: bool
    success: bool
    lines: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(asdict(self), indent=None)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        """Parse from JSON string."""
        data = json.loads(json_str)
        return cls(**data)


class ChangeTracker:
    """Track and log configuration changes for one device."""

    def __init__(self, device_id: str):
        self.device_id = device_id

    def log_change(
        self,
        resource_type: str,
        operation: str,
        resource_id: str,
        success: bool,
        lines: Optional[list[str]] = None,
        warnings: Optional[list[str]] = None,
        error: Optional[str] = None,
        fake: bool = False,
    ) -> ChangeRecord:
        """Log a configuration change.

        Args:
            resource_type: Resource type name (e.g. "junos_vlan")
            operation: create, update or delete
            resource_id: Identifier of the resource
            success: Whether the transaction committed
            lines: Lines loaded into the candidate configuration
            warnings: Non-fatal diagnostics collected during the transaction
            error: Primary error message if the transaction failed
            fake: Whether lines went to a set file instead of a device

        Returns:
            The ChangeRecord that was logged
        """
        record = ChangeRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            device_id=self.device_id,
            resource_type=resource_type,
            operation=operation,
            resource_id=resource_id,
            fake=fake,
            success=success,
            lines=list(lines or []),
            warnings=list(warnings or []),
            error=error,
        )

        audit_logger.info(record.to_json())

        return record


def get_recent_changes(
    log_file: Optional[str] = None,
    device_id: Optional[str] = None,
    resource_type: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent changes from audit log.

    Args:
        log_file: Path to audit log. Defaults to ~/.junos-config-sync/audit.log
        device_id: Filter by device ID
        resource_type: Filter by resource type
        limit: Maximum number of records to return

    Returns:
        List of ChangeRecords, most recent first
    """
    if log_file is None:
        log_file = os.path.join(os.path.expanduser(DEFAULT_AUDIT_DIR), "audit.log")

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if device_id and record.device_id != device_id:
                continue
            if resource_type and record.resource_type != resource_type:
                continue

            records.append(record)

    return list(reversed(records[-limit:]))

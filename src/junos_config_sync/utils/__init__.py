"""Utility modules for logging, auditing and connection retries."""
from .connection import establish, retry_policy, with_retry, RETRYABLE_EXCEPTIONS
from .logging_config import (
    setup_logging,
    setup_netconf_trace,
    timed,
    timed_section,
    perf_line,
    perf_logger,
    netconf_logger,
)
from .audit_log import ChangeRecord, ChangeTracker, setup_audit_logging, get_recent_changes

__all__ = [
    "establish",
    "retry_policy",
    "with_retry",
    "RETRYABLE_EXCEPTIONS",
    "setup_logging",
    "setup_netconf_trace",
    "timed",
    "timed_section",
    "perf_line",
    "perf_logger",
    "netconf_logger",
    "ChangeRecord",
    "ChangeTracker",
    "setup_audit_logging",
    "get_recent_changes",
]

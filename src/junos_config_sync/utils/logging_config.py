"""Logging configuration for junos-config-sync.

Three loggers are configured:

* ``junos_config_sync``: console plus a rotating file holding everything
* ``junos_config_sync.perf``: one line per timed device operation, own file only
* ``junos_config_sync.netconf``: raw RPC/reply trace, enabled per device
  through ``junos_log_path``

Environment Variables:
    JUNOS_SYNC_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    JUNOS_SYNC_LOG_FILE: Path to log file (default: ~/.junos-config-sync/junos-config-sync.log)
    JUNOS_SYNC_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    JUNOS_SYNC_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    setup_logging()  # once at startup

    @timed("commit")
    async def commit_conf(self, message):
        ...

    async with timed_section("create", device_id="srx-edge", resource="junos_vlan"):
        ...
"""
import asyncio
import functools
import logging
import os
import time
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

perf_logger = logging.getLogger("junos_config_sync.perf")
main_logger = logging.getLogger("junos_config_sync")
netconf_logger = logging.getLogger("junos_config_sync.netconf")

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(name)-32s | %(levelname)-7s | %(message)s"
PERF_FORMAT = "%(asctime)s.%(msecs)03d | PERF | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marks handlers installed by setup_logging so a second call replaces them
_OWNED = "_junos_config_sync_handler"


def get_log_level(override: Optional[str] = None) -> int:
    """Resolve a level name, falling back to JUNOS_SYNC_LOG_LEVEL then INFO."""
    name = (override or os.environ.get("JUNOS_SYNC_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def get_log_file() -> Path:
    default_path = Path.home() / ".junos-config-sync" / "junos-config-sync.log"
    return Path(os.environ.get("JUNOS_SYNC_LOG_FILE", str(default_path))).expanduser()


def _rotating(path: Path, fmt: str) -> RotatingFileHandler:
    max_size_mb = int(os.environ.get("JUNOS_SYNC_LOG_MAX_SIZE", "10"))
    handler = RotatingFileHandler(
        path,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=int(os.environ.get("JUNOS_SYNC_LOG_BACKUPS", "5")),
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def _replace_handlers(target: logging.Logger, *handlers: logging.Handler) -> None:
    for old in [h for h in target.handlers if getattr(h, _OWNED, False)]:
        target.removeHandler(old)
        old.close()
    for handler in handlers:
        setattr(handler, _OWNED, True)
        target.addHandler(handler)


def setup_logging(level: Optional[str] = None) -> Path:
    """Configure console, file and performance logging.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Console level name; overrides JUNOS_SYNC_LOG_LEVEL when given

    Returns:
        The main log file path.
    """
    console_level = get_log_level(level)
    log_file = get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    perf_log_file = log_file.parent / "junos-config-sync-perf.log"

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    main_logger.setLevel(logging.DEBUG)  # handlers filter
    _replace_handlers(main_logger, console, _rotating(log_file, LOG_FORMAT))

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False
    _replace_handlers(perf_logger, _rotating(perf_log_file, PERF_FORMAT))

    main_logger.info(f"Logging initialized: level={logging.getLevelName(console_level)}, file={log_file}")
    perf_logger.info(f"Performance logging to: {perf_log_file}")
    return log_file


def setup_netconf_trace(log_path: str, file_permission: int = 0o644) -> None:
    """Attach a file handler receiving every NETCONF RPC and reply.

    Attaching the same path twice is a no-op.

    Args:
        log_path: File that receives the trace
        file_permission: Mode applied to the file once created
    """
    path = Path(log_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    for handler in netconf_logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path.resolve():
            return

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    netconf_logger.addHandler(handler)
    netconf_logger.setLevel(logging.DEBUG)
    os.chmod(path, file_permission)


def perf_line(
    operation: str,
    device_id: Optional[str],
    started: float,
    error: Optional[BaseException] = None,
    **extra: Any,
) -> None:
    """Write one timing record to the perf logger.

    Failures are logged at WARNING with the exception text.
    """
    elapsed = (time.perf_counter() - started) * 1000
    status = f"FAIL: {error}" if error is not None else "OK"
    msg = f"{operation:20s} | {device_id or 'N/A':15s} | {elapsed:8.2f}ms | {status}"
    if extra:
        msg += " | " + " | ".join(f"{k}={v}" for k, v in extra.items())
    perf_logger.log(logging.WARNING if error is not None else logging.INFO, msg)


def timed(operation: str, device_id: Optional[str] = None):
    """Decorator logging the run time of a sync or async function.

    Args:
        operation: Name of the operation (e.g., "lock", "commit", "config_set")
        device_id: Device identifier; defaults to ``self.device_id`` of the bound object
    """
    def decorator(func: Callable) -> Callable:
        def resolve(args: tuple) -> Optional[str]:
            if device_id is None and args:
                return getattr(args[0], "device_id", None)
            return device_id

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    perf_line(operation, resolve(args), started, e)
                    raise
                perf_line(operation, resolve(args), started)
                return result
            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                perf_line(operation, resolve(args), started, e)
                raise
            perf_line(operation, resolve(args), started)
            return result
        return sync_wrapper

    return decorator


@asynccontextmanager
async def timed_section(operation: str, device_id: Optional[str] = None, **extra):
    """Async context manager timing a whole code section.

    Args:
        operation: Name of the operation
        device_id: Device identifier
        **extra: Additional context appended to the record
    """
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        perf_line(operation, device_id, started, e, **extra)
        raise
    perf_line(operation, device_id, started, **extra)

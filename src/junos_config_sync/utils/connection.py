"""Connection establishment helpers with retry and backoff."""
import asyncio
import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Transient socket failures worth another SSH attempt. Authentication and
# NETCONF protocol errors are absent.
RETRYABLE_EXCEPTIONS = (
    ConnectionRefusedError,
    ConnectionResetError,
    TimeoutError,
    OSError,
    EOFError,
)


def _log_attempt(label: str) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        wait = state.next_action.sleep if state.next_action else 0
        logger.warning(
            f"{label}: attempt {state.attempt_number} failed ({error!r}), retrying in {wait:.1f}s"
        )
    return before_sleep


def retry_policy(
    max_attempts: int,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    label: str = "connect",
) -> dict[str, Any]:
    """Keyword arguments for a tenacity retrying object.

    A ``max_attempts`` below one is treated as a single attempt.
    """
    return dict(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=_log_attempt(label),
        reraise=True,
    )


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    label: Optional[str] = None,
) -> Callable:
    """Decorator factory retrying a sync or async callable with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between attempts (seconds)
        max_wait: Maximum wait time between attempts (seconds)
        exceptions: Tuple of exception types to retry on
        label: Name used in retry warnings, defaults to the function name
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        policy = retry_policy(max_attempts, min_wait, max_wait, exceptions, label=label or func.__name__)

        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> T:
                async for attempt in AsyncRetrying(**policy):
                    with attempt:
                        return await func(*args, **kwargs)  # type: ignore[misc]
                raise AssertionError("unreachable")
            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            return Retrying(**policy)(func, *args, **kwargs)
        return sync_wrapper

    return decorator


async def establish(
    connect: Callable[[], T],
    attempts: int,
    device_id: str,
    max_wait: float = 10,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> T:
    """Run a blocking connect callable in the default executor until it succeeds.

    Args:
        connect: Blocking callable opening the transport (the ncclient manager is synchronous)
        attempts: Number of tries, from ``ssh_retry_to_establish``
        device_id: Used in log messages
        max_wait: Upper bound of the backoff between tries (seconds)
        exceptions: Exception types that warrant another try

    Returns:
        Whatever ``connect`` returns.
    """
    loop = asyncio.get_running_loop()

    @with_retry(
        max_attempts=attempts,
        min_wait=min(1, max_wait),
        max_wait=max_wait,
        exceptions=exceptions,
        label=f"ssh {device_id}",
    )
    async def connect_in_executor() -> T:
        return await loop.run_in_executor(None, connect)

    return await connect_in_executor()

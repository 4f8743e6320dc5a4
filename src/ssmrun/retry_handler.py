"""Retry logic with exponential backoff for transient control-plane failures.

Read-only SSM calls can fail transiently (throttling, 5xx responses,
dropped connections). This module retries them so that one throttled
ListCommands call does not abort a long wait.

Usage:
    @retry_with_exponential_backoff(max_attempts=3)
    def list_commands():
        return client.list_commands(CommandId=command_id)

    # Retry an ad-hoc call with the configured defaults
    response = call_with_retry(client.get_command_invocation, CommandId=cid, InstanceId=iid)
"""

import functools
import logging
import random
import time
from typing import Any, Callable, TypeVar

from botocore.exceptions import ClientError, ConnectionError as BotocoreConnectionError

from ssmrun.retry_config import get_retry_config

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

THROTTLING_ERROR_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "ThrottledException",
        "RequestThrottledException",
        "TooManyRequestsException",
        "RequestLimitExceeded",
    }
)


def retry_with_exponential_backoff(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    is_retryable: Callable[[Exception], bool] | None = None,
) -> Callable[[F], F]:
    """Decorator for retrying operations with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        initial_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay between retries in seconds (default: 30.0)
        jitter: Add random jitter to delays (default: True)
        is_retryable: Predicate deciding whether an exception is transient
            (default: is_transient_error)

    Returns:
        Decorated function that will retry on transient failures
    """
    if is_retryable is None:
        is_retryable = is_transient_error

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            name = getattr(func, "__name__", "operation")

            for attempt in range(1, max_attempts + 1):
                try:
                    result = func(*args, **kwargs)
                    if attempt > 1:
                        logger.info(f"{name} succeeded on attempt {attempt}/{max_attempts}")
                    return result

                except Exception as e:
                    if not is_retryable(e):
                        raise

                    if attempt >= max_attempts:
                        logger.error(f"{name} failed after {max_attempts} attempts: {e}")
                        raise

                    actual_delay = delay
                    if jitter:
                        # ±25% of delay
                        jitter_amount = delay * 0.25
                        actual_delay = delay + random.uniform(-jitter_amount, jitter_amount)
                    actual_delay = min(actual_delay, max_delay)

                    logger.warning(
                        f"{name} failed on attempt {attempt}/{max_attempts}, "
                        f"retrying in {actual_delay:.2f}s: {_safe_error_message(e)}"
                    )
                    time.sleep(actual_delay)
                    delay *= 2

            raise RuntimeError(f"{name} failed with unknown error")

        return wrapper  # type: ignore

    return decorator


def call_with_retry(operation: Callable[..., Any], **kwargs: Any) -> Any:
    """Call a control-plane operation with the configured retry policy.

    Args:
        operation: Bound client method, e.g. client.list_commands
        **kwargs: Keyword arguments for the operation

    Returns:
        The operation's response
    """
    config = get_retry_config()
    wrapped = retry_with_exponential_backoff(
        max_attempts=config.control_plane_max_attempts,
        initial_delay=config.control_plane_initial_delay,
        max_delay=config.control_plane_max_delay,
        jitter=config.jitter_enabled,
    )(operation)
    return wrapped(**kwargs)


def is_transient_error(exception: Exception) -> bool:
    """Decide whether an exception from a control-plane call is transient.

    Retryable:
        - botocore connection errors (endpoint unreachable, connection closed)
        - ClientError with a throttling error code
        - ClientError with a retryable HTTP status (see should_retry_http_error)
        - Built-in TimeoutError / ConnectionError
    """
    if isinstance(exception, (BotocoreConnectionError, TimeoutError, ConnectionError)):
        return True
    if isinstance(exception, ClientError):
        error = exception.response.get("Error", {})
        if error.get("Code") in THROTTLING_ERROR_CODES:
            return True
        status_code = exception.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return status_code is not None and should_retry_http_error(int(status_code))
    return False


def _safe_error_message(exception: Exception) -> str:
    """Create a log-safe, bounded error message."""
    error_str = str(exception)
    if len(error_str) > 200:
        error_str = error_str[:200] + "..."
    return error_str


def should_retry_http_error(status_code: int) -> bool:
    """Determine if HTTP status code should trigger retry.

    Retryable status codes:
        - 408: Request Timeout
        - 429: Too Many Requests (throttling)
        - 500: Internal Server Error
        - 502: Bad Gateway
        - 503: Service Unavailable
        - 504: Gateway Timeout
    """
    retryable_codes = {408, 429, 500, 502, 503, 504}
    return status_code in retryable_codes


__all__ = [
    "call_with_retry",
    "is_transient_error",
    "retry_with_exponential_backoff",
    "should_retry_http_error",
]

"""Wait for a whole SSM command to finish.

boto3 ships a ``command_executed`` waiter, but it polls GetCommandInvocation
and therefore needs an instance id. SendCommand with a target selector does
not know its instance ids yet when it returns, so this module polls
ListCommands instead: the command record carries the aggregate status of all
of its invocations, including the ones not dispatched yet.

Flow:
    wait_until_command_executed()
        -> check_command_state()       one ListCommands call
            -> evaluate_command_result()   first record -> status
                -> classify_status()           status -> RETRY/SUCCESS/FAILURE

Backoff follows the AWS SDK waiter algorithm: exponential with full jitter
between min_delay and the attempt's ceiling, capped at max_delay, and never
sleeping past the max_wait_time deadline.
"""

import logging
import math
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ssmrun.command_status import WaiterState, classify_status
from ssmrun.exceptions import WaiterConfigurationError, WaitFailureError, WaitTimeoutError
from ssmrun.retry_handler import call_with_retry

logger = logging.getLogger(__name__)

DEFAULT_MIN_DELAY = 5.0
DEFAULT_MAX_DELAY = 120.0


@dataclass(frozen=True)
class WaitOutcome:
    """Result of one poll check, or of a whole wait.

    reason is the raw ListCommands response that produced the state.
    """

    state: WaiterState
    reason: Any = None


@dataclass(frozen=True)
class WaitConfiguration:
    """Bounds for a single wait.

    Attributes:
        client: boto3 SSM client used for polling
        max_wait_time: Ceiling on total wait duration in seconds
        min_delay: Lower bound of the delay between polls in seconds
        max_delay: Upper bound of the delay between polls in seconds
    """

    client: Any
    max_wait_time: float
    min_delay: float = DEFAULT_MIN_DELAY
    max_delay: float = DEFAULT_MAX_DELAY

    def __post_init__(self) -> None:
        if self.min_delay <= 0:
            raise WaiterConfigurationError(
                f"min_delay must be greater than 0, got {self.min_delay}"
            )
        if self.max_delay <= 0:
            raise WaiterConfigurationError(
                f"max_delay must be greater than 0, got {self.max_delay}"
            )
        if self.max_wait_time <= 0:
            raise WaiterConfigurationError(
                f"max_wait_time must be greater than 0, got {self.max_wait_time}"
            )
        if self.max_delay < self.min_delay:
            raise WaiterConfigurationError(
                f"max_delay ({self.max_delay}) must be greater than or equal to "
                f"min_delay ({self.min_delay})"
            )
        if self.max_wait_time <= self.min_delay:
            raise WaiterConfigurationError(
                f"max_wait_time ({self.max_wait_time}) must be greater than "
                f"min_delay ({self.min_delay})"
            )


def evaluate_command_result(result: dict[str, Any]) -> WaitOutcome:
    """Derive the wait state from a ListCommands response.

    Only the first command record is inspected; a query by CommandId returns
    at most one. A missing or empty Commands list, or a record with no
    Status yet, means the command is not visible yet and polling continues.

    Args:
        result: ListCommands response

    Returns:
        WaitOutcome whose reason is result itself
    """
    commands = result.get("Commands") or []
    if not commands:
        return WaitOutcome(WaiterState.RETRY, result)

    status = commands[0].get("Status")
    if not status:
        return WaitOutcome(WaiterState.RETRY, result)

    return WaitOutcome(classify_status(status), result)


def check_command_state(client: Any, query: dict[str, Any]) -> WaitOutcome:
    """Query ListCommands once and evaluate the response.

    Args:
        client: boto3 SSM client
        query: ListCommands keyword arguments, e.g. {"CommandId": "..."}

    Returns:
        WaitOutcome for this check
    """
    result = call_with_retry(client.list_commands, **query)
    return evaluate_command_result(result)


def backoff_delay(min_delay: float, max_delay: float, attempt: int) -> float:
    """Delay before poll number attempt + 1.

    Args:
        min_delay: Lower bound in seconds
        max_delay: Upper bound in seconds
        attempt: 1-based number of the check that just returned RETRY

    Returns:
        Delay in seconds, always within [min_delay, max_delay]
    """
    attempt_ceiling = math.log(max_delay / min_delay) / math.log(2) + 1
    if attempt > attempt_ceiling:
        return max_delay
    ceiling = min(min_delay * 2 ** (attempt - 1), max_delay)
    return random.uniform(min_delay, ceiling)


def wait_until_command_executed(
    config: WaitConfiguration,
    query: dict[str, Any],
    *,
    sleep: Callable[[float], None] | None = None,
    clock: Callable[[], float] | None = None,
) -> WaitOutcome:
    """Poll ListCommands until the command succeeds, fails, or time runs out.

    Args:
        config: Wait bounds and the client to poll with
        query: ListCommands keyword arguments, normally {"CommandId": command_id}
        sleep: Sleep function (default: time.sleep)
        clock: Monotonic clock in seconds (default: time.monotonic)

    Returns:
        The SUCCESS outcome

    Raises:
        WaitFailureError: The command reached a terminal non-success status
        WaitTimeoutError: max_wait_time elapsed first
    """
    sleep = sleep or time.sleep
    clock = clock or time.monotonic
    deadline: float | None = None
    attempt = 0

    while True:
        attempt += 1
        outcome = check_command_state(config.client, query)
        if deadline is None:
            # The wait window opens once the first check has returned
            deadline = clock() + config.max_wait_time
        logger.debug(f"Check {attempt} for {query}: {outcome.state.value}")

        if outcome.state == WaiterState.SUCCESS:
            return outcome
        if outcome.state == WaiterState.FAILURE:
            raise WaitFailureError(outcome)

        delay = backoff_delay(config.min_delay, config.max_delay, attempt)
        now = clock()
        if now >= deadline or now + delay > deadline:
            logger.debug(f"Giving up after {attempt} checks, deadline reached")
            raise WaitTimeoutError(WaitOutcome(WaiterState.TIMEOUT, outcome.reason))

        logger.debug(f"Command still running, next check in {delay:.1f}s")
        sleep(delay)


__all__ = [
    "DEFAULT_MAX_DELAY",
    "DEFAULT_MIN_DELAY",
    "WaitConfiguration",
    "WaitOutcome",
    "backoff_delay",
    "check_command_state",
    "evaluate_command_result",
    "wait_until_command_executed",
]

"""Send a command, optionally wait for it, and report failed targets.

This is the glue between the pipeline step (inputs, outputs, log groups) and
the polling core:

    run_dispatch()
        -> send_command()                  SendCommand, once
        -> wait_until_command_executed()   poll ListCommands
        -> collect_failed_invocations()    only when the wait failed
"""

import logging
from dataclasses import dataclass
from typing import Any

from ssmrun.command_sender import SendCommandRequest, send_command
from ssmrun.command_waiter import (
    DEFAULT_MAX_DELAY,
    DEFAULT_MIN_DELAY,
    WaitConfiguration,
    WaitOutcome,
    wait_until_command_executed,
)
from ssmrun.exceptions import DetailFetchError, WaitError
from ssmrun.failed_invocations import (
    FanoutPolicy,
    InvocationDetail,
    collect_failed_invocations,
)
from ssmrun.reporters import Reporter

logger = logging.getLogger(__name__)

COMMAND_ID_OUTPUT = "command-id"


@dataclass
class DispatchRequest:
    """Everything one dispatch needs besides the client."""

    command: SendCommandRequest
    wait_until_executed: bool = False
    log_failed_invocations: bool = False
    max_wait_time: float = 600
    min_delay: float = DEFAULT_MIN_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    fanout_policy: FanoutPolicy = FanoutPolicy.FAIL_FAST
    max_workers: int = 1


@dataclass
class DispatchResult:
    """Outcome of a dispatch that did not raise."""

    command_id: str
    outcome: WaitOutcome | None = None


def run_dispatch(client: Any, request: DispatchRequest, reporter: Reporter) -> DispatchResult:
    """Send the command and, if requested, wait for it to finish.

    Args:
        client: boto3 SSM client
        request: Command and wait options
        reporter: Receives the command-id output and diagnostic groups

    Returns:
        DispatchResult with the command id and, when waited, the SUCCESS outcome

    Raises:
        WaiterConfigurationError: The wait bounds are invalid; nothing is sent
        SubmissionError: SendCommand failed
        WaitFailureError: The command failed on the control plane
        WaitTimeoutError: The command did not finish within max_wait_time
    """
    # Invalid wait bounds must fail before anything is sent to the fleet
    config = None
    if request.wait_until_executed:
        config = WaitConfiguration(
            client=client,
            max_wait_time=request.max_wait_time,
            min_delay=request.min_delay,
            max_delay=request.max_delay,
        )

    command_id = send_command(client, request.command)
    logger.info(f"Sent command {command_id}")
    reporter.set_output(COMMAND_ID_OUTPUT, command_id)

    if config is None:
        return DispatchResult(command_id=command_id)

    logger.info(f"Waiting for command {command_id} to complete")
    try:
        outcome = wait_until_command_executed(config, {"CommandId": command_id})
    except WaitError as e:
        if request.log_failed_invocations:
            e.failed_invocations = report_failed_invocations(
                client, command_id, request, reporter
            )
        raise

    logger.info(f"Command {command_id} completed successfully")
    return DispatchResult(command_id=command_id, outcome=outcome)


def report_failed_invocations(
    client: Any, command_id: str, request: DispatchRequest, reporter: Reporter
) -> list[InvocationDetail]:
    """Collect failed invocations and write one group per instance.

    A DetailFetchError is logged after the invocations it did collect have
    been reported; the wait error stays the one the caller sees.
    """
    try:
        details = collect_failed_invocations(
            client,
            command_id,
            policy=request.fanout_policy,
            max_workers=request.max_workers,
        )
    except DetailFetchError as e:
        write_invocation_groups(e.collected, reporter)
        logger.error(f"Could not collect all failed invocations of {command_id}: {e}")
        return e.collected

    write_invocation_groups(details, reporter)
    return details


def write_invocation_groups(details: list[InvocationDetail], reporter: Reporter) -> None:
    """Write stdout and stderr of each invocation in a group titled by instance."""
    for detail in details:
        if not detail.instance_id:
            continue
        reporter.start_group(f"Output of {detail.instance_id}")
        if detail.standard_output:
            reporter.info(detail.standard_output)
        if detail.standard_error:
            reporter.info(detail.standard_error)
        reporter.end_group()


__all__ = [
    "COMMAND_ID_OUTPUT",
    "DispatchRequest",
    "DispatchResult",
    "report_failed_invocations",
    "run_dispatch",
    "write_invocation_groups",
]

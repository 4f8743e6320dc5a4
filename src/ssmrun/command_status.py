"""Command status vocabulary and its mapping to waiter states.

SSM reports the same status vocabulary for a whole command (ListCommands)
and for a single instance invocation (GetCommandInvocation). This module
only answers one question: does a given status mean keep polling, done, or
failed.
"""

from enum import Enum


class CommandStatus(str, Enum):
    """Status of an SSM command or command invocation."""

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    SUCCESS = "Success"
    CANCELLING = "Cancelling"
    CANCELLED = "Cancelled"
    FAILED = "Failed"
    TIMED_OUT = "TimedOut"


class WaiterState(str, Enum):
    """State of a single poll check.

    TIMEOUT is never produced by a check; the waiter reports it when it
    gives up.
    """

    RETRY = "RETRY"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    TIMEOUT = "TIMEOUT"


_STATUS_TO_STATE: dict[CommandStatus, WaiterState] = {
    CommandStatus.PENDING: WaiterState.RETRY,
    CommandStatus.IN_PROGRESS: WaiterState.RETRY,
    CommandStatus.SUCCESS: WaiterState.SUCCESS,
    CommandStatus.CANCELLING: WaiterState.FAILURE,
    CommandStatus.CANCELLED: WaiterState.FAILURE,
    CommandStatus.FAILED: WaiterState.FAILURE,
    CommandStatus.TIMED_OUT: WaiterState.FAILURE,
}


def classify_status(status: CommandStatus | str) -> WaiterState:
    """Map a command status to the waiter state it implies.

    Args:
        status: CommandStatus or its raw string value ("InProgress", ...)

    Returns:
        WaiterState.RETRY, WaiterState.SUCCESS or WaiterState.FAILURE

    Raises:
        ValueError: If status is not a known command status
    """
    return _STATUS_TO_STATE[CommandStatus(status)]


__all__ = ["CommandStatus", "WaiterState", "classify_status"]

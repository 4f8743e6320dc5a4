"""Custom exceptions for ssmrun."""

import json
from typing import Any


class SsmrunError(Exception):
    """Base exception for ssmrun errors."""

    pass


class SubmissionError(SsmrunError):
    """SendCommand failed or did not return a command id."""

    pass


class WaiterConfigurationError(SsmrunError, ValueError):
    """Wait bounds are inconsistent (delays, max wait time)."""

    pass


class WaitError(SsmrunError):
    """Base exception for a wait that ended without success.

    The message is the JSON rendering of the outcome so that the last
    control-plane response ends up in the pipeline log. failed_invocations
    is filled in by the dispatcher when diagnostics were collected.
    """

    def __init__(self, outcome: Any, message: str | None = None):
        self.outcome = outcome
        self.failed_invocations: list[Any] = []
        super().__init__(message or _render_outcome(outcome))


class WaitTimeoutError(WaitError):
    """max_wait_time elapsed before the command reached a terminal state."""

    def __init__(self, outcome: Any):
        super().__init__(
            outcome,
            _render_outcome(outcome, reason="Waiter has timed out"),
        )


class WaitFailureError(WaitError):
    """The control plane reported a terminal non-success status."""

    pass


class DetailFetchError(SsmrunError):
    """Fetching invocation detail for one or more failed targets failed.

    Attributes:
        collected: Details fetched successfully before/around the failure
        failed_instance_ids: Instances whose detail could not be fetched
    """

    def __init__(
        self,
        message: str,
        collected: list[Any] | None = None,
        failed_instance_ids: list[str] | None = None,
    ):
        super().__init__(message)
        self.collected = collected or []
        self.failed_instance_ids = failed_instance_ids or []


class InputError(SsmrunError):
    """A pipeline step input is missing or malformed."""

    pass


class ConfigError(SsmrunError):
    """Raised when configuration operations fail."""

    pass


def _render_outcome(outcome: Any, reason: Any = None) -> str:
    state = getattr(outcome, "state", None)
    if reason is None:
        reason = getattr(outcome, "reason", None)
    payload = {"state": getattr(state, "value", state), "reason": reason}
    return json.dumps(payload, default=str)

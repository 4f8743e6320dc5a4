"""Unit tests for command_status module."""

import pytest

from ssmrun.command_status import CommandStatus, WaiterState, classify_status


class TestClassifyStatus:
    """Test mapping of command statuses to waiter states."""

    @pytest.mark.parametrize("status", [CommandStatus.PENDING, CommandStatus.IN_PROGRESS])
    def test_running_statuses_retry(self, status):
        """Pending and InProgress keep the waiter polling."""
        assert classify_status(status) == WaiterState.RETRY

    def test_success_is_success(self):
        """Success ends the wait successfully."""
        assert classify_status(CommandStatus.SUCCESS) == WaiterState.SUCCESS

    @pytest.mark.parametrize(
        "status",
        [
            CommandStatus.CANCELLING,
            CommandStatus.CANCELLED,
            CommandStatus.FAILED,
            CommandStatus.TIMED_OUT,
        ],
    )
    def test_terminal_non_success_statuses_fail(self, status):
        """Cancelling, Cancelled, Failed and TimedOut end the wait as failed."""
        assert classify_status(status) == WaiterState.FAILURE

    def test_accepts_raw_status_strings(self):
        """Raw strings from API responses are accepted."""
        assert classify_status("InProgress") == WaiterState.RETRY
        assert classify_status("TimedOut") == WaiterState.FAILURE

    def test_every_status_is_mapped(self):
        """No status falls through the mapping."""
        for status in CommandStatus:
            assert classify_status(status) in (
                WaiterState.RETRY,
                WaiterState.SUCCESS,
                WaiterState.FAILURE,
            )

    def test_unknown_status_raises(self):
        """An unknown status is a defect and fails immediately."""
        with pytest.raises(ValueError):
            classify_status("Delayed")

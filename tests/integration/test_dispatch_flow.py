"""Integration tests for the dispatch flow.

Runs run_dispatch with the real waiter, collector and workflow-command
reporter; only the SSM client is mocked.
"""

import pytest

from conftest import invocation_detail_response, list_commands_response
from ssmrun.command_sender import SendCommandRequest
from ssmrun.command_status import WaiterState
from ssmrun.dispatcher import DispatchRequest, run_dispatch
from ssmrun.exceptions import WaitFailureError, WaitTimeoutError
from ssmrun.failed_invocations import FanoutPolicy
from ssmrun.reporters import ActionsReporter

pytestmark = pytest.mark.integration


def _request(**kwargs):
    return DispatchRequest(
        command=SendCommandRequest(
            document_name="name", targets=[{"Key": "key", "Values": ["value"]}]
        ),
        **kwargs,
    )


@pytest.fixture
def failing_fleet(ssm_client):
    """Command fails on two instances with distinct stderr."""
    ssm_client.list_commands.return_value = list_commands_response("Failed")
    ssm_client.list_command_invocations.return_value = {
        "CommandInvocations": [{"InstanceId": "i-123"}, {"InstanceId": "i-456"}]
    }
    ssm_client.get_command_invocation.side_effect = lambda CommandId, InstanceId: (
        invocation_detail_response(
            InstanceId,
            stderr="no such file or directory" if InstanceId == "i-123" else "no connection",
        )
    )
    return ssm_client


@pytest.fixture
def fake_waiter_time(monkeypatch, fake_clock):
    monkeypatch.setattr("ssmrun.command_waiter.time.monotonic", fake_clock)
    monkeypatch.setattr("ssmrun.command_waiter.time.sleep", fake_clock.sleep)
    return fake_clock


class TestDispatchFlow:
    """End-to-end dispatch against a mocked control plane."""

    def test_fire_and_forget(self, ssm_client, capsys):
        result = run_dispatch(ssm_client, _request(), ActionsReporter())

        assert result.command_id == "3"
        assert capsys.readouterr().out.splitlines() == ["::set-output name=command-id::3"]
        ssm_client.list_commands.assert_not_called()

    def test_immediate_success(self, ssm_client, capsys):
        result = run_dispatch(
            ssm_client,
            _request(wait_until_executed=True, log_failed_invocations=True),
            ActionsReporter(),
        )

        assert result.outcome.state == WaiterState.SUCCESS
        ssm_client.list_commands.assert_called_once_with(CommandId="3")
        ssm_client.list_command_invocations.assert_not_called()
        assert "::group::" not in capsys.readouterr().out

    def test_polls_until_success(self, ssm_client, fake_waiter_time):
        ssm_client.list_commands.side_effect = [
            list_commands_response("Pending"),
            list_commands_response("InProgress"),
            list_commands_response("Success"),
        ]

        result = run_dispatch(ssm_client, _request(wait_until_executed=True), ActionsReporter())

        assert result.outcome.state == WaiterState.SUCCESS
        assert ssm_client.list_commands.call_count == 3
        assert len(fake_waiter_time.sleeps) == 2

    def test_failure_prints_each_failed_instance(self, failing_fleet, capsys):
        with pytest.raises(WaitFailureError) as exc_info:
            run_dispatch(
                failing_fleet,
                _request(wait_until_executed=True, log_failed_invocations=True),
                ActionsReporter(),
            )

        lines = capsys.readouterr().out.splitlines()
        assert lines[lines.index("::group::Output of i-123") + 2] == "no such file or directory"
        assert lines[lines.index("::group::Output of i-456") + 2] == "no connection"
        assert [d.instance_id for d in exc_info.value.failed_invocations] == ["i-123", "i-456"]
        failing_fleet.list_command_invocations.assert_called_once_with(
            CommandId="3", Filters=[{"key": "Status", "value": "Failed"}]
        )

    def test_parallel_fetch_keeps_listing_order(self, failing_fleet, capsys):
        with pytest.raises(WaitFailureError):
            run_dispatch(
                failing_fleet,
                _request(
                    wait_until_executed=True,
                    log_failed_invocations=True,
                    fanout_policy=FanoutPolicy.BEST_EFFORT,
                    max_workers=4,
                ),
                ActionsReporter(),
            )

        groups = [
            line for line in capsys.readouterr().out.splitlines() if line.startswith("::group::")
        ]
        assert groups == ["::group::Output of i-123", "::group::Output of i-456"]

    def test_timeout_still_reports_failed_invocations(self, ssm_client, fake_waiter_time, capsys):
        """A timed out wait still prints failed invocations when asked."""
        ssm_client.list_commands.return_value = list_commands_response("InProgress")
        ssm_client.list_command_invocations.return_value = {
            "CommandInvocations": [{"InstanceId": "i-123"}]
        }
        ssm_client.get_command_invocation.return_value = invocation_detail_response(
            "i-123", stderr="stuck"
        )

        with pytest.raises(WaitTimeoutError) as exc_info:
            run_dispatch(
                ssm_client,
                _request(
                    wait_until_executed=True,
                    log_failed_invocations=True,
                    max_wait_time=30,
                    min_delay=5,
                    max_delay=10,
                ),
                ActionsReporter(),
            )

        assert exc_info.value.outcome.state == WaiterState.TIMEOUT
        assert fake_waiter_time.elapsed <= 30
        assert "::group::Output of i-123" in capsys.readouterr().out.splitlines()

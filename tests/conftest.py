"""
Shared test fixtures for ssmrun tests.

This module provides common fixtures used across all test types:
- Mock SSM clients with canned ListCommands / invocation responses
- A fake clock for driving the command waiter without sleeping
- Isolation from the user's config file and retry environment
"""

from typing import Any
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from ssmrun.retry_config import reset_retry_config

# ============================================================================
# ISOLATION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from real config, retry settings and runner files."""
    from ssmrun.config_manager import ConfigManager

    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", tmp_path / "missing" / "config.toml")
    for name in (
        "SSMRUN_RETRY_MAX_ATTEMPTS",
        "SSMRUN_RETRY_INITIAL_DELAY",
        "SSMRUN_RETRY_MAX_DELAY",
        "SSMRUN_RETRY_JITTER_ENABLED",
        "GITHUB_OUTPUT",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_retry_config()
    yield
    reset_retry_config()


@pytest.fixture
def no_retry_sleep(monkeypatch):
    """Make transport retries instant; returns the recorded delays."""
    delays: list[float] = []
    monkeypatch.setattr("ssmrun.retry_handler.time.sleep", delays.append)
    return delays


# ============================================================================
# CLOCK FIXTURES
# ============================================================================


class FakeClock:
    """Monotonic clock that only moves when sleep() is called."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.start = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    @property
    def elapsed(self) -> float:
        return self.now - self.start


@pytest.fixture
def fake_clock():
    """Fake clock to pass as both clock= and sleep= to the waiter."""
    return FakeClock()


# ============================================================================
# SSM FIXTURES
# ============================================================================


def list_commands_response(status: str | None = None) -> dict[str, Any]:
    """Build a ListCommands response with one command record."""
    command: dict[str, Any] = {"CommandId": "3", "DocumentName": "AWS-RunShellScript"}
    if status is not None:
        command["Status"] = status
    return {"Commands": [command], "ResponseMetadata": {"HTTPStatusCode": 200}}


def invocation_detail_response(instance_id: str, stderr: str = "", stdout: str = "output") -> dict:
    """Build a GetCommandInvocation response for a failed invocation."""
    return {
        "CommandId": "3",
        "InstanceId": instance_id,
        "Status": "Failed",
        "StatusDetails": "Failed",
        "StandardOutputContent": stdout,
        "StandardErrorContent": stderr,
    }


def client_error(code: str, status: int = 400, operation: str = "GetCommandInvocation"):
    """Build a botocore ClientError."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} happened"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def ssm_client():
    """Mock SSM client; SendCommand returns command id "3"."""
    client = Mock()
    client.send_command.return_value = {"Command": {"CommandId": "3"}}
    client.list_commands.return_value = list_commands_response("Success")
    client.list_command_invocations.return_value = {"CommandInvocations": []}
    return client


class RecordingReporter:
    """Reporter that records every call as a tuple."""

    def __init__(self):
        self.events: list[tuple] = []

    def set_output(self, name: str, value: str) -> None:
        self.events.append(("output", name, value))

    def info(self, message: str) -> None:
        self.events.append(("info", message))

    def start_group(self, title: str) -> None:
        self.events.append(("start_group", title))

    def end_group(self) -> None:
        self.events.append(("end_group",))

    @property
    def groups(self) -> list[str]:
        return [event[1] for event in self.events if event[0] == "start_group"]


@pytest.fixture
def reporter():
    """Reporter recording outputs and diagnostic groups."""
    return RecordingReporter()

"""Submit an SSM Run Command document.

SendCommand is the only mutating call ssmrun makes. It is never retried:
a timed-out SendCommand may still have started the command on the fleet.
"""

import logging
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ssmrun.exceptions import InputError, SubmissionError

logger = logging.getLogger(__name__)


@dataclass
class SendCommandRequest:
    """Parameters of a SendCommand call.

    targets is a list of {"Key": ..., "Values": [...]} selectors, e.g.
    [{"Key": "tag:role", "Values": ["web"]}] or
    [{"Key": "InstanceIds", "Values": ["i-123"]}].
    """

    document_name: str
    targets: list[dict[str, Any]]
    parameters: dict[str, list[str]] | None = None
    comment: str | None = None
    timeout_seconds: int | None = None

    def to_api_kwargs(self) -> dict[str, Any]:
        """Build SendCommand keyword arguments, omitting unset fields."""
        kwargs: dict[str, Any] = {
            "DocumentName": self.document_name,
            "Targets": self.targets,
        }
        if self.parameters is not None:
            kwargs["Parameters"] = self.parameters
        if self.comment:
            kwargs["Comment"] = self.comment
        if self.timeout_seconds is not None:
            kwargs["TimeoutSeconds"] = self.timeout_seconds
        return kwargs


def send_command(client: Any, request: SendCommandRequest) -> str:
    """Send a command and return its id.

    Args:
        client: boto3 SSM client
        request: What to send and where

    Returns:
        CommandId assigned by the control plane

    Raises:
        SubmissionError: If the call fails or returns no command id
    """
    logger.debug(f"Sending {request.document_name} to {request.targets}")
    try:
        response = client.send_command(**request.to_api_kwargs())
    except (ClientError, BotoCoreError) as e:
        raise SubmissionError(f"Failed to send command {request.document_name}: {e}") from e

    command_id = (response.get("Command") or {}).get("CommandId")
    if not command_id:
        raise SubmissionError("No command ID returned")
    return command_id


def validate_targets(targets: Any) -> list[dict[str, Any]]:
    """Check a decoded targets value has the SendCommand shape.

    Raises:
        InputError: If targets is not a non-empty list of {Key, Values}
    """
    if not isinstance(targets, list) or not targets:
        raise InputError("targets must be a non-empty list of {Key, Values} objects")
    for target in targets:
        if not isinstance(target, dict) or "Key" not in target or "Values" not in target:
            raise InputError(f"Invalid target {target!r}: expected {{Key, Values}}")
        if not isinstance(target["Values"], list):
            raise InputError(f"Invalid target {target!r}: Values must be a list")
    return targets


def validate_parameters(parameters: Any) -> dict[str, list[str]] | None:
    """Check a decoded parameters value maps names to lists of strings.

    Raises:
        InputError: If parameters is not a mapping of name -> list
    """
    if parameters is None:
        return None
    if not isinstance(parameters, dict):
        raise InputError("parameters must be an object mapping names to lists of strings")
    for name, values in parameters.items():
        if not isinstance(values, list):
            raise InputError(f"Parameter {name} must be a list of strings")
    return parameters


def parse_target(spec: str) -> dict[str, Any]:
    """Parse a Key=v1,v2 target selector.

    >>> parse_target("tag:role=web,worker")
    {'Key': 'tag:role', 'Values': ['web', 'worker']}
    """
    if "=" not in spec:
        raise InputError(f"Invalid target format: {spec} (expected Key=value[,value...])")
    key, values = spec.split("=", 1)
    key = key.strip()
    parsed = [value.strip() for value in values.split(",") if value.strip()]
    if not key or not parsed:
        raise InputError(f"Invalid target format: {spec} (expected Key=value[,value...])")
    return {"Key": key, "Values": parsed}


def parse_parameters(specs: tuple[str, ...] | list[str]) -> dict[str, list[str]] | None:
    """Parse repeated name=value options into SendCommand Parameters.

    Repeating a name appends to its list, so
    ("commands=uptime", "commands=df -h") gives {"commands": ["uptime", "df -h"]}.
    """
    if not specs:
        return None
    parameters: dict[str, list[str]] = {}
    for spec in specs:
        if "=" not in spec:
            raise InputError(f"Invalid parameter format: {spec} (expected name=value)")
        name, value = spec.split("=", 1)
        name = name.strip()
        if not name:
            raise InputError(f"Invalid parameter format: {spec} (expected name=value)")
        parameters.setdefault(name, []).append(value)
    return parameters


__all__ = [
    "SendCommandRequest",
    "parse_parameters",
    "parse_target",
    "send_command",
    "validate_parameters",
    "validate_targets",
]

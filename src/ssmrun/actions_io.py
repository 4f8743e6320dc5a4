"""Pipeline step I/O for GitHub Actions.

Implements the small part of the Actions runner protocol ssmrun needs:
- Inputs arrive as INPUT_<NAME> environment variables
- Outputs are appended to the file named by GITHUB_OUTPUT
- Log groups and error annotations are ::workflow-commands:: on stdout
"""

import json
import os
import uuid
from typing import Any

import click

from ssmrun.exceptions import InputError

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


def _input_env_name(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(name: str, required: bool = False) -> str:
    """Read an input value, stripped of surrounding whitespace.

    Raises:
        InputError: If required and the input is empty or unset
    """
    value = os.environ.get(_input_env_name(name), "")
    if required and not value:
        raise InputError(f"Input required and not supplied: {name}")
    return value.strip()


def get_json_input(name: str, required: bool = False) -> Any:
    """Read an input holding JSON.

    Returns:
        Decoded value, or None if the input is empty

    Raises:
        InputError: If the input is not valid JSON
    """
    value = get_input(name, required=required)
    if value == "":
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise InputError(f"Input {name} is not a valid JSON: {e}") from e


def get_boolean_input(name: str, default: bool = False) -> bool:
    """Read a boolean input following the YAML 1.2 core schema.

    Raises:
        InputError: If the value is set but is not a YAML boolean
    """
    value = get_input(name)
    if value == "":
        return default
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise InputError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def get_int_input(name: str, default: int) -> int:
    """Read a positive integer input.

    Raises:
        InputError: If the value is set but is not a positive integer
    """
    value = get_input(name)
    if value == "":
        return default
    try:
        parsed = int(value)
    except ValueError as e:
        raise InputError(f"Input {name} is not an integer: {value}") from e
    if parsed <= 0:
        raise InputError(f"Input {name} must be greater than 0, got {parsed}")
    return parsed


def escape_data(value: str) -> str:
    """Escape a workflow command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    """Escape a workflow command property value."""
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def issue_command(command: str, message: str = "", **properties: str) -> None:
    """Print a ::command prop=value::message line."""
    props = ",".join(f"{key}={escape_property(value)}" for key, value in properties.items())
    prefix = f"::{command} {props}::" if props else f"::{command}::"
    click.echo(f"{prefix}{escape_data(message)}")


def set_output(name: str, value: str) -> None:
    """Set a step output.

    Appends a heredoc entry to $GITHUB_OUTPUT; falls back to the legacy
    ::set-output command when the runner does not provide the file.
    """
    output_file = os.environ.get("GITHUB_OUTPUT")
    if not output_file:
        issue_command("set-output", value, name=name)
        return

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise InputError(f"Unexpected input: output {name} contains the delimiter")
    with open(output_file, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}{os.linesep}{value}{os.linesep}{delimiter}{os.linesep}")


def info(message: str) -> None:
    """Write a plain log line."""
    click.echo(message)


def start_group(title: str) -> None:
    """Begin a collapsible log group."""
    issue_command("group", title)


def end_group() -> None:
    """End the current log group."""
    issue_command("endgroup")


def set_failed(message: str) -> None:
    """Annotate the step as failed. The caller is responsible for exiting 1."""
    issue_command("error", message)


__all__ = [
    "end_group",
    "escape_data",
    "escape_property",
    "get_boolean_input",
    "get_input",
    "get_int_input",
    "get_json_input",
    "info",
    "issue_command",
    "set_failed",
    "set_output",
    "start_group",
]

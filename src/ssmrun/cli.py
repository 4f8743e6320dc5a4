"""CLI entry point for ssmrun.

Commands:
    ssmrun send DOCUMENT --target KEY=VALUES   # Send a command from a terminal
    ssmrun action                              # Run as a GitHub Actions step
"""

import logging
import sys

import click
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.markup import escape

from ssmrun import __version__, actions_io
from ssmrun.command_sender import (
    SendCommandRequest,
    parse_parameters,
    parse_target,
    validate_parameters,
    validate_targets,
)
from ssmrun.click_group import SsmrunGroup
from ssmrun.config_manager import DEFAULT_MAX_WAIT_TIME, ConfigManager
from ssmrun.dispatcher import DispatchRequest, run_dispatch
from ssmrun.exceptions import SsmrunError, WaitError
from ssmrun.failed_invocations import FanoutPolicy
from ssmrun.reporters import ActionsReporter, ConsoleReporter
from ssmrun.ssm_client import create_ssm_client

logger = logging.getLogger(__name__)
console = Console()


@click.group(cls=SsmrunGroup, context_settings={"help_option_names": ["--help", "-h"]})
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
def main(verbose: bool) -> None:
    """ssmrun - send SSM Run Command documents to a fleet of instances.

    Sends a command document to every instance matched by the target
    selectors, optionally waits for the whole command to finish, and prints
    the output of each instance that failed.

    \b
    EXAMPLES:
        # Run a shell command on all web servers and wait
        $ ssmrun send AWS-RunShellScript --target tag:role=web \\
            --parameter commands="systemctl restart nginx" --wait

        # Inside a GitHub Actions workflow step
        $ ssmrun action

    \b
    CONFIGURATION:
        Config file: ~/.ssmrun/config.toml
        Defaults: region, profile, max_wait_time, min_delay, max_delay
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")


@main.command(name="send")
@click.argument("document_name")
@click.option(
    "--target",
    "targets",
    multiple=True,
    required=True,
    help="Target selector KEY=VALUE[,VALUE...] (e.g. tag:role=web, InstanceIds=i-123)",
)
@click.option(
    "--parameter",
    "parameters",
    multiple=True,
    help="Document parameter NAME=VALUE (repeat to build a list)",
)
@click.option("--comment", help="Comment stored with the command")
@click.option("--wait/--no-wait", default=False, help="Wait until the command finishes")
@click.option(
    "--log-failed/--no-log-failed",
    "log_failed",
    default=None,
    help="Print output of failed instances when the wait fails",
)
@click.option("--max-wait-time", type=click.IntRange(min=1), help="Max seconds to wait")
@click.option("--min-delay", type=click.FloatRange(min=0, min_open=True), help="Min seconds between polls")
@click.option("--max-delay", type=click.FloatRange(min=0, min_open=True), help="Max seconds between polls")
@click.option("--best-effort", is_flag=True, help="Keep collecting output if one instance fetch fails")
@click.option("--workers", type=click.IntRange(min=1), help="Concurrent output fetches")
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile")
@click.option("--config", "config_path", type=click.Path(), help="Config file path")
def send_command(
    document_name: str,
    targets: tuple[str, ...],
    parameters: tuple[str, ...],
    comment: str | None,
    wait: bool,
    log_failed: bool | None,
    max_wait_time: int | None,
    min_delay: float | None,
    max_delay: float | None,
    best_effort: bool,
    workers: int | None,
    region: str | None,
    profile: str | None,
    config_path: str | None,
):
    """Send DOCUMENT_NAME to the instances matched by --target.

    \b
    Examples:
      # Fire and forget
      $ ssmrun send AWS-RunShellScript --target InstanceIds=i-123,i-456 \\
          --parameter commands=uptime

      # Wait up to 15 minutes, show output of failed instances
      $ ssmrun send Deploy-App --target tag:env=staging --wait --max-wait-time 900
    """
    try:
        config = ConfigManager.load_config(config_path)

        request = DispatchRequest(
            command=SendCommandRequest(
                document_name=document_name,
                targets=[parse_target(spec) for spec in targets],
                parameters=parse_parameters(parameters),
                comment=comment,
            ),
            wait_until_executed=wait,
            log_failed_invocations=(
                config.log_failed_invocations if log_failed is None else log_failed
            ),
            max_wait_time=max_wait_time or config.max_wait_time,
            min_delay=min_delay or config.min_delay,
            max_delay=max_delay or config.max_delay,
            fanout_policy=FanoutPolicy.BEST_EFFORT if best_effort else FanoutPolicy.FAIL_FAST,
            max_workers=workers or config.fanout_workers,
        )

        client = create_ssm_client(region=region or config.region, profile=profile or config.profile)
        result = run_dispatch(client, request, ConsoleReporter(console))

        if wait:
            console.print(f"[green]Command {result.command_id} completed successfully[/green]")

    except WaitError as e:
        console.print(f"[red]Command did not complete successfully: {escape(str(e))}[/red]")
        sys.exit(1)
    except (SsmrunError, BotoCoreError, ClientError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error in send")
        console.print(f"[red]Unexpected error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command(name="action")
def action_command():
    """Run as a GitHub Actions step.

    \b
    Inputs (INPUT_* environment variables):
      document-name                   SSM document to run (required)
      targets                         JSON list of {Key, Values} (required)
      parameters                      JSON object of string lists
      comment                         Comment stored with the command
      wait-until-command-executed     true/false (default: false)
      log-failed-command-invocations  true/false (default: false)
      max-wait-time                   Seconds (default: 600)
      aws-region                      AWS region

    \b
    Outputs:
      command-id                      Id of the sent command
    """
    try:
        request = read_action_inputs()
        client = create_ssm_client(region=actions_io.get_input("aws-region") or None)
        run_dispatch(client, request, ActionsReporter())
    except Exception as e:
        logger.debug("Step failed", exc_info=True)
        actions_io.set_failed(str(e))
        sys.exit(1)


def read_action_inputs() -> DispatchRequest:
    """Build a DispatchRequest from the step inputs.

    Raises:
        InputError: If an input is missing or malformed
    """
    command = SendCommandRequest(
        document_name=actions_io.get_input("document-name", required=True),
        targets=validate_targets(actions_io.get_json_input("targets", required=True)),
        parameters=validate_parameters(actions_io.get_json_input("parameters")),
        comment=actions_io.get_input("comment") or None,
    )
    return DispatchRequest(
        command=command,
        wait_until_executed=actions_io.get_boolean_input("wait-until-command-executed"),
        log_failed_invocations=actions_io.get_boolean_input("log-failed-command-invocations"),
        max_wait_time=actions_io.get_int_input("max-wait-time", DEFAULT_MAX_WAIT_TIME),
    )


if __name__ == "__main__":
    main()

"""Custom Click group with automatic help display on errors.

When a subcommand is misused (missing argument, bad option value), the error
is followed by that subcommand's help instead of the bare usage line.
"""

from typing import Any

import click


class SsmrunGroup(click.Group):
    """Click group that shows contextual help on usage errors."""

    def invoke(self, ctx: click.Context) -> Any:
        """Invoke the subcommand; on a usage error print it with the help text."""
        try:
            return super().invoke(ctx)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            # Most specific context: the subcommand's, when it got that far
            error_ctx = e.ctx if getattr(e, "ctx", None) else ctx

            click.echo("")
            click.echo(error_ctx.get_help())
            error_ctx.exit(e.exit_code)
            return None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Override to show help when command is not found."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if isinstance(e, click.exceptions.MissingParameter | click.exceptions.BadParameter):
                raise
            click.echo(f"Error: {e.format_message()}", err=True)
            click.echo("")
            click.echo(ctx.get_help())
            ctx.exit(2)
            return None, None, []


SsmrunGroup.group_class = SsmrunGroup


__all__ = ["SsmrunGroup"]

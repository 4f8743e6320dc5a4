"""Where dispatch results and diagnostics are written.

The dispatcher talks to a Reporter; which one is used depends on how ssmrun
was started:
- ActionsReporter: step outputs and ::group:: blocks for a CI runner
- ConsoleReporter: rich-formatted terminal output
"""

from typing import Protocol

from rich.console import Console
from rich.text import Text

from ssmrun import actions_io


class Reporter(Protocol):
    """Sink for dispatch outputs and per-target diagnostic groups."""

    def set_output(self, name: str, value: str) -> None: ...

    def info(self, message: str) -> None: ...

    def start_group(self, title: str) -> None: ...

    def end_group(self) -> None: ...


class ActionsReporter:
    """Report through the GitHub Actions workflow-command protocol."""

    def set_output(self, name: str, value: str) -> None:
        actions_io.set_output(name, value)

    def info(self, message: str) -> None:
        actions_io.info(message)

    def start_group(self, title: str) -> None:
        actions_io.start_group(title)

    def end_group(self) -> None:
        actions_io.end_group()


class ConsoleReporter:
    """Report to a terminal with rich formatting."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def set_output(self, name: str, value: str) -> None:
        self.console.print(f"[cyan]{name}:[/cyan] {value}")

    def info(self, message: str) -> None:
        # Command output is printed verbatim, never parsed as markup
        self.console.print(Text(message))

    def start_group(self, title: str) -> None:
        self.console.rule(f"[bold red]{title}[/bold red]", align="left")

    def end_group(self) -> None:
        self.console.rule(style="dim")


__all__ = ["ActionsReporter", "ConsoleReporter", "Reporter"]

"""Tests for the custom Click group."""

import click
from click.testing import CliRunner

from ssmrun.click_group import SsmrunGroup


@click.group(cls=SsmrunGroup)
def app():
    """Test application."""


@app.command()
@click.argument("name")
@click.option("--count", type=int, default=1)
def greet(name, count):
    """Greet NAME."""
    click.echo(f"hello {name} x{count}")


class TestSsmrunGroup:
    """Test help display on usage errors."""

    def test_valid_invocation(self):
        result = CliRunner().invoke(app, ["greet", "world"])

        assert result.exit_code == 0
        assert "hello world x1" in result.output

    def test_missing_argument_shows_subcommand_help(self):
        result = CliRunner().invoke(app, ["greet"])

        assert result.exit_code == 2
        assert "Greet NAME." in result.output

    def test_bad_option_value_shows_help(self):
        result = CliRunner().invoke(app, ["greet", "world", "--count", "many"])

        assert result.exit_code == 2
        assert "--count" in result.output

    def test_unknown_command_shows_group_help(self):
        result = CliRunner().invoke(app, ["wave"])

        assert result.exit_code == 2
        assert "greet" in result.output

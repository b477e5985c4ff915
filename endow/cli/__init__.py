"""Endow CLI Package - command group for evaluation and module records."""

import logging

import click

from endow import __version__
from endow.cli.evaluate import evaluate_command
from endow.cli.compile import compile_command
from endow.cli.registry import registry_group


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log evaluator and pipeline steps')
def main(verbose):
    """Endow CLI - capability-scoped evaluation of Python source."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )


@click.command()
def version_command():
    """Show version info."""
    click.echo(f"endow {__version__}")


main.add_command(evaluate_command, "eval")
main.add_command(compile_command, "compile")
main.add_command(registry_group, "registry")
main.add_command(version_command, "version")

__all__ = [
    "main",
    "evaluate_command",
    "compile_command",
    "registry_group",
    "version_command",
]

"""Registry commands for endow CLI - parser registry configuration."""

import json
import sys

import click

from endow.config import EvaluatorConfig, load_config, registry_from_config
from endow.errors import ConfigurationError


@click.group()
def registry_group():
    """Parser registry commands."""
    pass


@registry_group.command('validate')
@click.argument('config', type=click.Path(exists=True, dir_okay=False))
@click.option('--json', '-j', 'json_output', is_flag=True, help='Output as JSON')
def validate_command(config, json_output):
    """Build the registry declared in CONFIG and report every invalid entry."""
    try:
        registry = registry_from_config(load_config(config))
    except ConfigurationError as e:
        output = {
            "valid": False,
            "errors": [str(e)],
            "invalid": [list(pair) for pair in e.invalid],
        }
        click.echo(json.dumps(output, indent=2), err=True)
        sys.exit(1)

    output = {"valid": True, "extensions": registry.to_dict()}
    if json_output:
        click.echo(json.dumps(output, indent=2))
    else:
        click.echo("✓ Registry valid")
        for extension, dialect in output["extensions"].items():
            click.echo(f"  .{extension} -> {dialect}")


@registry_group.command('show')
@click.option('--config', type=click.Path(exists=True, dir_okay=False), help='Path to endow config')
def show_command(config):
    """Show the extension to dialect mapping in effect."""
    try:
        settings = load_config(config) if config else EvaluatorConfig()
        registry = registry_from_config(settings)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(registry.to_dict(), indent=2))

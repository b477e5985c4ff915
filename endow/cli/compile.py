"""Compile command for endow CLI - module records without execution."""

import json
import sys
from pathlib import Path

import click

from endow.config import EvaluatorConfig, load_config, registry_from_config
from endow.modules.extension import parse_extension


@click.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--config', type=click.Path(exists=True, dir_okay=False), help='Path to endow config')
@click.option('--json', '-j', 'json_output', is_flag=True, help='Output as JSON')
def compile_command(path, config, json_output):
    """Compile the module at PATH and list its imports. Nothing is executed."""
    try:
        settings = load_config(config) if config else EvaluatorConfig()
        registry = registry_from_config(settings)

        location = str(Path(path))
        source = Path(path).read_text()
        record = registry.parse(source, location)
        dialect = registry.dialect_for(parse_extension(location))
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    output = {
        "location": location,
        "dialect": dialect.value,
        "imports": list(record.imports),
    }

    if json_output:
        click.echo(json.dumps(output, indent=2))
    else:
        click.echo(f"Module: {location}")
        click.echo(f"  Dialect: {dialect.value}")
        click.echo(f"  Imports: {len(record.imports)}")
        for specifier in record.imports:
            click.echo(f"    {specifier}")

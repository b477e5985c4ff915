"""Eval command for endow CLI."""

import json
import sys
from typing import Any, Dict, Tuple

import click

from endow.config import EvaluatorConfig, family_from_config, load_config
from endow.render import to_jsonable
from endow.runtime.family import EvaluateOptions
from endow.runtime.settings import EvaluationMode


def _parse_capabilities(ctx, param, values: Tuple[str, ...]) -> Dict[str, Any]:
    """Parse NAME=JSON pairs; a value that is not JSON is taken as a string."""
    capabilities = {}
    for text in values:
        name, sep, raw = text.partition("=")
        if not sep or not name.isidentifier():
            raise click.BadParameter(f"expected NAME=VALUE, got {text!r}", ctx=ctx, param=param)
        try:
            capabilities[name] = json.loads(raw)
        except json.JSONDecodeError:
            capabilities[name] = raw
    return capabilities


@click.command()
@click.argument('source')
@click.option('--capability', '-c', 'capabilities', multiple=True, metavar='NAME=JSON',
              callback=_parse_capabilities, help='Grant a capability (repeatable)')
@click.option('--mode', '-m', type=click.Choice([mode.value for mode in EvaluationMode]),
              default=EvaluationMode.EXPRESSION.value, show_default=True, help='Evaluation mode')
@click.option('--program', '-p', is_flag=True, help='Shorthand for --mode program')
@click.option('--safe-builtins', 'use_safe_builtins', is_flag=True, help='Grant side-effect-free builtins')
@click.option('--config', type=click.Path(exists=True, dir_okay=False), help='Path to endow config')
@click.option('--json', '-j', 'json_output', is_flag=True, help='Output as JSON')
def evaluate_command(source, capabilities, mode, program, use_safe_builtins, config, json_output):
    """Evaluate SOURCE with only the granted capabilities ("-" reads stdin)."""
    try:
        if source == "-":
            with click.open_file("-") as stream:
                source = stream.read()

        settings = load_config(config) if config else EvaluatorConfig()
        if use_safe_builtins:
            settings.safe_builtins = True

        family = family_from_config(settings)
        evaluation_mode = EvaluationMode.PROGRAM if program else EvaluationMode(mode)
        value = family.run(
            evaluation_mode,
            source,
            capabilities,
            EvaluateOptions(location=settings.location),
        )
    except Exception as e:
        if json_output:
            output = {"success": False, "error": str(e), "error_type": type(e).__name__}
            click.echo(json.dumps(output, indent=2), err=True)
        else:
            click.echo(f"Error: {type(e).__name__}: {e}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(json.dumps({"success": True, "value": to_jsonable(value)}, indent=2))
    else:
        click.echo(repr(value))

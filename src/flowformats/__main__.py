"""CLI entry point for flowformats."""

import logging
import sys

import click

from flowformats.formats.flowjson import JsonFlowFormatter
from flowformats.ir.flow import FlowDefinition
from flowformats.registry import FormatRegistry, create_registry
from flowformats.types import ParseResult

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _read_input(input: str | None) -> str:
    if input:
        try:
            with open(input, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    return sys.stdin.read()


def _write_output(output: str | None, text: str) -> None:
    if output:
        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(text)


def _parse_or_exit(registry: FormatRegistry, text: str, format_id: str | None) -> FlowDefinition:
    result: ParseResult = registry.parse(text) if format_id is None else registry.parse_with_format(text, format_id)
    if not result.success or result.flowchart is None:
        click.echo(f"parse error:\n{result.error}", err=True)
        sys.exit(1)
    for warning in result.warnings:
        click.echo(f"warning: {warning}", err=True)
    return result.flowchart


def _format_choice(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    registry: FormatRegistry = ctx.find_root().obj["registry"]
    if value is not None and not registry.has_format(value):
        known = ", ".join(registry.get_registered_formats())
        raise click.BadParameter(f"unknown format '{value}'; use one of {known}")
    return value


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity (written to stderr)",
)
@click.pass_context
def main(ctx: click.Context, log_level: str) -> None:
    """Detect, parse and convert flowchart diagrams (DOT, Mermaid, PlantUML, JSON)."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    obj = ctx.ensure_object(dict)
    if "registry" not in obj:
        obj["registry"] = create_registry()


@main.command()
@click.argument("input", required=False, type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def detect(ctx: click.Context, input: str | None) -> None:
    """Print the detected format and its confidence."""
    registry: FormatRegistry = ctx.obj["registry"]
    result = registry.detect_format(_read_input(input))
    click.echo(f"{result.format} {result.confidence:.2f}")
    if result.is_unknown:
        for indicator in result.indicators:
            click.echo(f"error: {indicator}", err=True)
        sys.exit(1)


@main.command()
@click.argument("input", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--from", "-f", "from_format", default=None, callback=_format_choice, help="Source format (detected when omitted)"
)
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--sort-keys", is_flag=True, help="Sort JSON object keys")
@click.pass_context
def parse(ctx: click.Context, input: str | None, from_format: str | None, output: str | None, sort_keys: bool) -> None:
    """Parse a diagram and print its flow definition as JSON."""
    registry: FormatRegistry = ctx.obj["registry"]
    flow = _parse_or_exit(registry, _read_input(input), from_format)
    _write_output(output, JsonFlowFormatter().format(flow, sort_keys=sort_keys))


@main.command()
@click.argument("input", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--to", "-t", "to_format", required=True, callback=_format_choice, help="Target format")
@click.option(
    "--from", "-f", "from_format", default=None, callback=_format_choice, help="Source format (detected when omitted)"
)
@click.option(
    "--direction", "-d", "direction", type=str, default=None, help="Layout direction for DOT/Mermaid (LR, RL, TD, BT)"
)
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.pass_context
def convert(
    ctx: click.Context,
    input: str | None,
    to_format: str,
    from_format: str | None,
    direction: str | None,
    output: str | None,
) -> None:
    """Convert a diagram into another format."""
    registry: FormatRegistry = ctx.obj["registry"]
    flow = _parse_or_exit(registry, _read_input(input), from_format)

    options = {}
    if direction is not None:
        options["direction"] = direction
    result = registry.format(flow, to_format, **options)
    if not result.success or result.output is None:
        click.echo(f"error: {result.error}", err=True)
        sys.exit(1)
    _write_output(output, result.output)


@main.command()
@click.argument("input", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "-f",
    "format_id",
    default=None,
    callback=_format_choice,
    help="Format to validate against (detected when omitted)",
)
@click.pass_context
def validate(ctx: click.Context, input: str | None, format_id: str | None) -> None:
    """Check that a diagram parses into a sound flow; exits 1 when invalid."""
    registry: FormatRegistry = ctx.obj["registry"]
    result = registry.validate(_read_input(input), format_id)
    for warning in result.warnings:
        click.echo(f"warning: {warning}", err=True)
    if not result.is_valid:
        for error in result.errors:
            click.echo(f"error: {error}", err=True)
        sys.exit(1)
    click.echo("valid")


@main.command()
@click.pass_context
def formats(ctx: click.Context) -> None:
    """List the registered formats."""
    registry: FormatRegistry = ctx.obj["registry"]
    for entry in registry.get_all_formats():
        implementation = entry.implementation
        exports = "parse+format" if implementation.formatter is not None else "parse"
        click.echo(f"{implementation.format_id:<10} {implementation.format_name} ({exports})")


if __name__ == "__main__":
    main()

"""CLI entry point for cloudnode-gen."""

import logging
from pathlib import Path

import click

from cloudnode.gen.config import load_config
from cloudnode.gen.source import SourceGenerator
from cloudnode.gen.validator import GenerationError
from cloudnode.schema.base import Schema
from cloudnode.schema.loader import iter_operations, load_bundled_schema, load_schema


def _load(schema_path: Path | None) -> Schema:
    if schema_path is None:
        return load_bundled_schema()
    return load_schema(schema_path)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Cloudnode client generator: typed Python clients from the API schema."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("schema_path", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(file_okay=False, path_type=Path), help="Output directory for the generated client.")
@click.option("-c", "--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Generator config (JSON or YAML).")
def gen_source(schema_path: Path | None, output: Path, config_path: Path | None):
    """Generate a typed client module from an API schema.

    Without SCHEMA_PATH the schema bundled with the package is used.
    """
    click.echo(f"Loading schema from {schema_path or 'bundled schema'}...")
    schema = _load(schema_path)
    config = load_config(config_path)

    gen = SourceGenerator(schema, config)
    click.echo(f"Found {len(gen.namespaces)} namespaces and {len(gen.operations)} top-level operations.")

    click.echo(f"Generating {config.name} client...")
    try:
        files = gen.generate()
    except GenerationError as e:
        raise click.ClickException(str(e)) from e

    output.mkdir(parents=True, exist_ok=True)
    for filename, content in files.items():
        file_path = output / filename
        file_path.write_text(content, encoding="utf-8")
        click.echo(f"  Created {file_path}")

    click.echo(f"Generated {len(files)} files in {output}")


@main.command()
@click.argument("schema_path", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def list_ops(schema_path: Path | None):
    """List every operation in an API schema."""
    schema = _load(schema_path)
    for name, operation in iter_operations(schema):
        line = f"{operation.method:<6} {operation.path} {name}"
        if operation.scope:
            line += f" [{operation.scope}]"
        click.echo(line)

"""contractcore CLI - validate data sets against contract schemas."""

from __future__ import annotations

import json
import logging
import sys
import traceback
from pathlib import Path

import click

from contractcore import __version__
from contractcore.ast import SchemaLoadError, load_schema
from contractcore.config import ValidationConfig
from contractcore.contracts.directives import Attachment, DirectiveRegistry
from contractcore.contracts.registry import ContractRegistry
from contractcore.security import SecurityError, load_json_file
from contractcore.validate.engine import validate_set
from contractcore.validate.records import validate_arguments


def handle_error(error: Exception, debug: bool) -> None:
    """Report an error and exit 1; full traceback with --debug."""
    if debug:
        traceback.print_exc()
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _load_config(
    config_path: Path | None,
    strict: bool | None = None,
    id_field: str | None = None,
    workers: int | None = None,
) -> ValidationConfig:
    config = ValidationConfig.from_yaml(config_path) if config_path else ValidationConfig.from_env()
    return config.with_overrides(strict=strict, id_field=id_field, max_workers=workers)


def _load_registry(schema_path: Path, config: ValidationConfig) -> ContractRegistry:
    contracts = load_schema(load_json_file(schema_path))
    if not contracts:
        raise SchemaLoadError(f"no contracts found in {schema_path}")
    return ContractRegistry(contracts, directives=DirectiveRegistry.default(), config=config)


@click.group()
@click.version_option(version=__version__, prog_name="contractcore")
@click.option('--log-level', default='WARNING', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False))
@click.option('--debug', is_flag=True, help='Enable debug mode (show full tracebacks)')
@click.pass_context
def cli(ctx: click.Context, log_level: str, debug: bool):
    """contractcore - structural and referential validation of contract data."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug


@cli.command()
@click.option('--schema', '-s', 'schema_path', required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path), help='Contract AST (JSON)')
@click.option('--data', '-d', 'data_path', required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Data set: object of contract name to list of records (JSON)')
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML configuration file')
@click.option('--strict/--no-strict', default=None, help='Reject undeclared fields')
@click.option('--id-field', default=None, help='Identifier field used for record references')
@click.option('--workers', type=click.IntRange(min=1), default=None, help='Worker threads')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']), default='text')
@click.option('--out', '-o', type=click.Path(path_type=Path), help='Write the JSON report to this file')
@click.pass_context
def validate(
    ctx: click.Context,
    schema_path: Path,
    data_path: Path,
    config_path: Path | None,
    strict: bool | None,
    id_field: str | None,
    workers: int | None,
    output_format: str,
    out: Path | None,
):
    """Validate a data set against a contract schema."""
    debug = ctx.obj.get('debug', False)
    try:
        config = _load_config(config_path, strict, id_field, workers)
        registry = _load_registry(schema_path, config)
        data_set = load_json_file(data_path)
        if not isinstance(data_set, dict):
            raise SchemaLoadError("data set must be a JSON object of contract name to records", str(data_path))

        report = validate_set(registry, data_set, config=config)
    except (SchemaLoadError, SecurityError, ValueError, OSError) as e:
        handle_error(e, debug)
        return

    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2, sort_keys=True)

    if output_format == 'json':
        click.echo(json.dumps(report.to_dict(), indent=2, sort_keys=True))
    elif report.ok:
        records = sum(len(v) for v in data_set.values() if isinstance(v, list))
        click.echo(f"Valid: {records} record(s) across {len(data_set)} contract(s)")
    else:
        click.echo(f"Invalid: {report.error_count} error(s)", err=True)
        for line in report.summary_lines():
            click.echo(f"  - {line}", err=True)

    if not report.ok:
        sys.exit(1)


@cli.command(name="check-schema")
@click.option('--schema', '-s', 'schema_path', required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path), help='Contract AST (JSON)')
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML configuration file')
@click.pass_context
def check_schema(ctx: click.Context, schema_path: Path, config_path: Path | None):
    """Check a contract schema without any data."""
    try:
        registry = _load_registry(schema_path, _load_config(config_path))
    except (SchemaLoadError, SecurityError, ValueError, OSError) as e:
        handle_error(e, ctx.obj.get('debug', False))
        return

    if registry.ok:
        click.echo(f"Schema OK: {', '.join(registry.list_contracts())}")
        return

    for name, errors in registry.schema_errors().items():
        click.echo(f"{name}:", err=True)
        for error in errors:
            click.echo(f"  - {error}", err=True)
    sys.exit(1)


@cli.command(name="check-call")
@click.option('--schema', '-s', 'schema_path', required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path), help='Contract AST (JSON)')
@click.option('--contract', required=True, help='Contract name')
@click.option('--method', required=True, help='Method name')
@click.option('--args', 'args_json', default='[]', show_default=True, help='Arguments as a JSON array')
@click.pass_context
def check_call(ctx: click.Context, schema_path: Path, contract: str, method: str, args_json: str):
    """Check call arguments against a method signature."""
    try:
        registry = _load_registry(schema_path, _load_config(None))
        args = json.loads(args_json)
        if not isinstance(args, list):
            raise ValueError("--args must be a JSON array")
        errors = validate_arguments(registry.get(contract), method, args, registry.contracts, registry.config)
    except (SchemaLoadError, SecurityError, ValueError, OSError) as e:
        handle_error(e, ctx.obj.get('debug', False))
        return

    if not errors:
        click.echo(f"Arguments OK for {contract}.{method}")
        return
    for error in errors:
        click.echo(f"  - {error}", err=True)
    sys.exit(1)


@cli.command(name="directives")
def list_directives():
    """List the known directives and where they may be attached."""
    registry = DirectiveRegistry.default()
    for name in registry.names():
        spec = registry.get(name)
        places = []
        for attachment in spec.attachments:
            limit = spec.max_arguments(attachment)
            args = "any args" if limit is None else f"{limit} arg(s)"
            places.append(f"{attachment.value} ({args})")
        click.echo(f"@{name}: {', '.join(places)}")
        if spec.description:
            click.echo(f"    {spec.description}")
    click.echo(f"\nAttachment points: {', '.join(a.value for a in Attachment)}")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == '__main__':
    main()

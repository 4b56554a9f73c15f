"""
Command Line Interface for the Rule Content Service
"""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.json import JSON
from rich.table import Table

from .config import auto_load_config, load_config
from .encoding import encode_catalog
from .errors import ContentLoadError, EncodingError
from .loader import load_groups, load_rule_content

console = Console()


@click.group()
@click.option('--config', '-c', help='Configuration file path')
@click.option('--debug', '-d', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, config, debug):
    """Rule Content Service CLI - serve and inspect rule content"""
    ctx.ensure_object(dict)

    try:
        if config:
            ctx.obj['config'] = load_config(config)
        else:
            ctx.obj['config'] = auto_load_config()
    except (ValueError, FileNotFoundError) as e:
        console.print(f"\n[red]Configuration Error:[/red] {e}")
        sys.exit(1)

    if debug:
        ctx.obj['config'].debug = True


def _load_catalog(config):
    try:
        return load_rule_content(config.content.path)
    except ContentLoadError as e:
        console.print(f"[red]Cannot load rule content:[/red] {e}")
        sys.exit(1)


@cli.command()
@click.option('--host', default=None, help='Server host (overrides configuration)')
@click.option('--port', default=None, type=int, help='Server port (overrides configuration)')
@click.option('--reload', is_flag=True, help='Enable auto-reload')
@click.pass_context
def serve(ctx, host, port, reload):
    """Start the API server"""
    from .api import run_api_server

    config = ctx.obj['config']
    if host:
        config.server.host = host
    if port:
        config.server.port = port

    console.print(f"[green]Starting {config.app_name} on {config.server.host}:{config.server.port}[/green]")
    console.print(f"[dim]API prefix: {config.server.api_prefix}[/dim]")

    try:
        config.validate_and_fail_on_errors()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    sys.exit(run_api_server(config, reload=reload))


@cli.command('validate-config')
@click.option('--strict', is_flag=True, help='Treat warnings as errors')
@click.pass_context
def validate_config_cmd(ctx, strict):
    """Validate configuration and display a report"""
    cfg = ctx.obj['config']

    console.print("\n[bold blue]Configuration Validation Report[/bold blue]\n")

    summary = cfg.get_validation_summary()

    for title, style, key in (
        ("CRITICAL ISSUES", "red", "critical"),
        ("ERRORS", "red", "errors"),
        ("WARNINGS", "yellow", "warnings"),
        ("INFO", "cyan", "info"),
    ):
        if summary[key]:
            console.print(f"[{style}]{title}:[/{style}]")
            for issue in summary[key]:
                console.print(f"  {issue}")
            console.print()

    if not any(summary.values()):
        console.print("[green]Configuration validation passed with no issues![/green]")

    if summary["critical"] or summary["errors"]:
        console.print(f"\n[red]Validation failed with {len(summary['critical']) + len(summary['errors'])} critical issues.[/red]")
        sys.exit(1)
    elif strict and summary["warnings"]:
        console.print(f"\n[yellow]Validation failed in strict mode with {len(summary['warnings'])} warnings.[/yellow]")
        sys.exit(1)

    console.print("\n[green]Validation passed.[/green]")


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.pass_context
def rules(ctx, as_json):
    """List the plugin identifiers of the loaded rules"""
    catalog = _load_catalog(ctx.obj['config'])

    if as_json:
        console.print(JSON(json.dumps({"rules": catalog.rule_ids()})))
        return

    if not len(catalog):
        console.print("[yellow]No rules found[/yellow]")
        return

    table = Table(title=f"Rules ({len(catalog)})")
    table.add_column("Plugin", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Error Keys", style="yellow")

    for rule in catalog.all_rules():
        plugin = rule.body.get("plugin") or {}
        error_keys = rule.body.get("error_keys") or {}
        table.add_row(
            rule.plugin,
            str(plugin.get("name") or "[dim]N/A[/dim]"),
            ", ".join(error_keys) or "[dim]None[/dim]",
        )

    console.print(table)


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.pass_context
def groups(ctx, as_json):
    """List the configured rule groups"""
    config = ctx.obj['config']
    try:
        group_set = load_groups(config.content.groups_path)
    except ContentLoadError as e:
        console.print(f"[red]Cannot load groups:[/red] {e}")
        sys.exit(1)

    if as_json:
        console.print(JSON(json.dumps({"groups": [group.to_dict() for group in group_set.all_groups()]})))
        return

    table = Table(title=f"Groups ({len(group_set)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Tags", style="yellow")

    for group in group_set.all_groups():
        table.add_row(group.id, group.name, ", ".join(group.tags or []))

    console.print(table)


@cli.command('dump-content')
@click.argument('output', type=click.Path(dir_okay=False, writable=True))
@click.pass_context
def dump_content(ctx, output):
    """Write the encoded content catalog to OUTPUT"""
    catalog = _load_catalog(ctx.obj['config'])

    try:
        encoded = encode_catalog(catalog)
    except EncodingError as e:
        console.print(f"[red]Cannot encode rule content:[/red] {e}")
        sys.exit(1)

    Path(output).write_bytes(encoded)
    console.print(f"[green]Wrote {len(catalog)} rules ({len(encoded)} bytes) to {output}[/green]")


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()

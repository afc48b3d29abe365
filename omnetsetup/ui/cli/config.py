"""
CLI commands for inspecting the setup configuration.
"""

from __future__ import annotations

import json
import sys

import click
import yaml

from omnetsetup.ui.cli.helpers import load_config_or_exit


@click.group()
def config() -> None:
    """Setup configuration — check, show."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate omnet-setup.yml (or report that defaults are used)."""
    from omnetsetup.core.config.loader import ConfigError, find_config_file, load_config

    path = ctx.obj.get("config_path") or find_config_file()
    try:
        cfg = load_config(path, search=False)
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"valid": False, "errors": [str(e)]}, indent=2))
        else:
            click.secho("❌ Configuration errors:", fg="red", bold=True)
            click.echo(f"   • {e}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({
            "valid": True,
            "path": str(path) if path else None,
            "release": cfg.release.version,
            "environment": cfg.environment.name,
        }, indent=2))
        return

    click.secho("✅ Configuration is valid", fg="green", bold=True)
    click.echo(f"   File:        {path if path else '(none, using defaults)'}")
    click.echo(f"   Release:     OMNeT++ {cfg.release.version} ({cfg.release.platform})")
    click.echo(f"   Environment: {cfg.environment.name} via {cfg.environment.manager}")
    click.echo(f"   Patch rules: {len(cfg.patch.rules)} on {cfg.patch.target}")


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Print the effective configuration, defaults included."""
    cfg = load_config_or_exit(ctx)
    data = cfg.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(yaml.safe_dump(data, sort_keys=False), nl=False)

"""Shared helpers for CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from omnetsetup.adapters.shell.command import CommandRunner
from omnetsetup.core.config.loader import ConfigError, find_config_file, load_config
from omnetsetup.core.models.setup import SetupConfig


def load_config_or_exit(
    ctx: click.Context,
    start_dir: Path | None = None,
) -> SetupConfig:
    """Load the setup config, exit 1 if invalid.

    ``--config`` wins; otherwise omnet-setup.yml is searched upward
    from ``start_dir`` (the run directory) or the cwd.
    """
    config_path: Path | None = ctx.obj.get("config_path")
    try:
        if config_path is None and start_dir is not None:
            return load_config(find_config_file(start_dir), search=False)
        return load_config(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def get_runner(ctx: click.Context) -> CommandRunner:
    """Command runner for this invocation (tests inject one via ``obj``)."""
    runner = ctx.obj.get("runner")
    if runner is None:
        runner = CommandRunner()
        ctx.obj["runner"] = runner
    return runner

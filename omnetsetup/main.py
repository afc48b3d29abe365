"""
OMNeT++ setup — CLI entrypoint.

Usage:
    omnet-setup                 # run the whole setup
    omnet-setup run --jobs 8
    omnet-setup plan
    omnet-setup patch omnetpp-6.2.0/Makefile.inc
    python -m omnetsetup.main --help
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from omnetsetup import __version__
from omnetsetup.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    resolve_level,
    setup_logging,
)
from omnetsetup.ui.cli.helpers import get_runner, load_config_or_exit


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="omnet-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to omnet-setup.yml (default: auto-detect, else built-in defaults).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """OMNeT++ setup — download, provision, patch and build OMNeT++.

    Without a command, runs the whole setup in the current directory.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None,
              help="Parallel make jobs (default: logical core count).")
@click.option("--workdir", "-w", type=click.Path(file_okay=False, path_type=Path),
              default=None, help="Directory to work in (default: cwd).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(ctx: click.Context, jobs: int | None, workdir: Path | None, as_json: bool) -> None:
    """Download, provision, unpack, configure, patch and build OMNeT++."""
    from omnetsetup.core.engine.context import BuildContext
    from omnetsetup.core.engine.pipeline import run_pipeline

    work_dir = workdir or Path.cwd()
    work_dir.mkdir(parents=True, exist_ok=True)
    config = load_config_or_exit(ctx, workdir)

    context = BuildContext(
        config=config,
        work_dir=work_dir,
        runner=get_runner(ctx),
        jobs=jobs,
    )
    quiet = ctx.obj.get("quiet", False) or as_json

    def on_start(step) -> None:
        if quiet:
            return
        click.secho(f"\n➡️  {step.label}...", fg="yellow")
        if step.name == "build":
            click.echo(f"   Using {context.effective_jobs} cores. This may take a while... ☕")

    def on_done(step, receipt) -> None:
        if receipt.failed:
            click.secho(f"❌ {receipt.error}", fg="red", err=as_json)
        elif not quiet:
            click.secho(f"✅ {receipt.output}", fg="green")

    report = run_pipeline(context, on_start=on_start, on_done=on_done)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(report.exit_code)

    failed = report.failed_step
    if failed is not None:
        click.echo()
        click.secho(f"   Setup stopped at '{failed.step}'", fg="red", bold=True)
        if report.not_run:
            click.echo(f"   Not run: {', '.join(report.not_run)}")
        sys.exit(report.exit_code)

    if not quiet:
        _print_next_steps(context)


def _print_next_steps(context) -> None:
    click.echo()
    click.secho("🎉 Installation Complete! 🎉", fg="yellow", bold=True)
    click.echo()
    click.echo("To use OMNeT++:")
    click.echo("1. Activate the environment:")
    click.secho(f"   {context.config.environment.manager} activate {context.env_name}", fg="green")
    click.echo("2. Go to your OMNeT++ directory:")
    click.secho(f"   cd {context.source_dir}", fg="green")
    click.echo("3. Source the environment script (in every new terminal):")
    click.secho("   source setenv", fg="green")
    click.echo("4. Verify the installation with a sample simulation:")
    click.secho("   cd samples/aloha && ./run", fg="green")
    click.echo("5. Launch the OMNeT++ IDE:")
    click.secho("   omnetpp", fg="green")
    click.echo()


@cli.command()
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None,
              help="Parallel make jobs (default: logical core count).")
@click.option("--workdir", "-w", type=click.Path(file_okay=False, path_type=Path),
              default=None, help="Directory to work in (default: cwd).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, jobs: int | None, workdir: Path | None, as_json: bool) -> None:
    """Show what a run would do, without executing anything."""
    from omnetsetup.core.engine.context import BuildContext
    from omnetsetup.core.engine.plan import describe_plan

    config = load_config_or_exit(ctx, workdir)
    context = BuildContext(
        config=config,
        work_dir=workdir or Path.cwd(),
        runner=get_runner(ctx),
        jobs=jobs,
    )
    steps = describe_plan(context)

    if as_json:
        click.echo(json.dumps(steps, indent=2))
        return

    click.secho(
        f"\n📋 OMNeT++ {config.release.version} → {context.source_dir}",
        fg="cyan",
        bold=True,
    )
    for index, entry in enumerate(steps, start=1):
        click.secho(f"   {index}. {entry['step']}", fg="white", bold=True, nl=False)
        click.echo(f"  {entry['detail']}")
        for command in entry["commands"]:
            click.echo(f"      $ {command}")
    click.echo()


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check that the required tools are installed."""
    from omnetsetup.core.engine.context import BuildContext
    from omnetsetup.core.services.preflight import run_preflight

    config = load_config_or_exit(ctx)
    context = BuildContext(config=config, work_dir=Path.cwd(), runner=get_runner(ctx))
    receipt = run_preflight(context)

    if receipt.failed:
        click.secho(f"❌ {receipt.error}", fg="red")
        sys.exit(receipt.exit_code)
    click.secho(f"✅ {receipt.output}", fg="green")


# ── Register sub-commands from omnetsetup/ui/cli/ ────────────────

from omnetsetup.ui.cli.config import config
from omnetsetup.ui.cli.patch import patch

cli.add_command(config)
cli.add_command(patch)


if __name__ == "__main__":
    cli()

"""
CLI command for applying the makefile patch rules to any file.

Thin wrapper over ``omnetsetup.core.services.patcher``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from omnetsetup.ui.cli.helpers import load_config_or_exit


@click.command("patch")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--strict", is_flag=True, help="Fail if any pattern is not found.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def patch(ctx: click.Context, file: Path, strict: bool, as_json: bool) -> None:
    """Apply the configured patch rules to FILE (keeps a backup copy)."""
    from omnetsetup.core.services.patcher import PatchError, patch_file

    config = load_config_or_exit(ctx)
    strict = strict or config.patch.strict

    try:
        report = patch_file(
            file, config.patch.rules, backup_suffix=config.patch.backup_suffix,
        )
    except PatchError as e:
        if as_json:
            click.echo(json.dumps({"ok": False, "error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    failed = strict and bool(report.unmatched)

    if as_json:
        click.echo(json.dumps({"ok": not failed, **report.to_dict()}, indent=2))
        sys.exit(1 if failed else 0)

    for outcome in report.outcomes:
        rule = outcome.rule
        label = rule.description or rule.pattern
        if outcome.matched:
            click.secho(f"   ✓ {label} ", fg="green", nl=False)
            click.echo(f"({outcome.replacements} replaced)")
        else:
            color = "red" if strict else "yellow"
            click.secho(f"   ⚠️  {label} ", fg=color, nl=False)
            click.echo(f"(pattern {rule.pattern!r} not found)")

    click.echo(f"   Original saved as {report.backup.name}.")
    if failed:
        sys.exit(1)

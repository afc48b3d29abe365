"""
Plan — describe what a run would do, without doing any of it.

Used by ``omnet-setup plan``. Only read-only questions are asked
(which tools are on PATH, whether the archive is already here);
no command is executed, so the environment prefix shows as the
``$CONDA_PREFIX`` reference.
"""

from __future__ import annotations

import shlex
from typing import Any

from omnetsetup.adapters.shell.download import Downloader, download_command
from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.services.build import build_command
from omnetsetup.core.services.configure import configure_command


def describe_plan(ctx: BuildContext) -> list[dict[str, Any]]:
    """One entry per pipeline step: name, what it does, and its commands."""
    cfg = ctx.config
    env = cfg.environment
    mamba = ctx.mamba
    release = cfg.release

    if ctx.archive_path.is_file():
        fetch: dict[str, Any] = {
            "detail": f"{release.archive_name} already present, no download",
            "commands": [],
        }
    else:
        backend = Downloader(ctx.runner).select_backend()
        commands = (
            [] if backend == "urllib"
            else [shlex.join(download_command(backend, release.url, ctx.archive_path))]
        )
        fetch = {"detail": f"download {release.url} via {backend}", "commands": commands}

    specs = [d.spec for d in env.resolved_dependencies()]
    provision_cmds = [
        shlex.join([mamba.executable, "env", "remove", "--name", env.name, "-y"])
        + "   # only if it exists",
        shlex.join(mamba.create_command(env.name, specs, env.channels)),
    ]
    if env.pip_packages:
        provision_cmds.append(
            shlex.join(mamba.run_command(
                env.name, ["pip", "install", "--no-input", *env.pip_packages],
            ))
        )

    requirements_cmds = []
    if env.requirements_file:
        requirements_cmds.append(
            shlex.join(mamba.run_command(
                env.name, ["pip", "install", "--no-input", "-r", env.requirements_file],
            ))
        )

    return [
        {
            "step": "preflight",
            "detail": f"require on PATH: {', '.join(cfg.required_tools)}",
            "commands": [],
        },
        {"step": "fetch", **fetch},
        {
            "step": "provision",
            "detail": f"recreate environment '{env.name}' ({len(specs)} packages)",
            "commands": provision_cmds,
        },
        {
            "step": "unpack",
            "detail": f"{release.archive_name} → {ctx.source_dir} (old directory removed)",
            "commands": [],
        },
        {
            "step": "requirements",
            "detail": env.requirements_file or "no manifest configured",
            "commands": requirements_cmds,
        },
        {
            "step": "configure",
            "detail": f"in {ctx.source_dir}",
            "commands": [shlex.join(configure_command(ctx))],
        },
        {
            "step": "patch",
            "detail": (
                f"{cfg.patch.target}: "
                + "; ".join(
                    f"{r.pattern!r} → {r.replacement!r}" for r in cfg.patch.rules
                )
                + f" (backup {cfg.patch.target}{cfg.patch.backup_suffix})"
            ),
            "commands": [],
        },
        {
            "step": "build",
            "detail": f"{ctx.effective_jobs} parallel jobs",
            "commands": [shlex.join(build_command(ctx))],
        },
    ]

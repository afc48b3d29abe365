"""
Environment provisioner — tear down and recreate the named environment.

The outcome must not depend on what a previous run left behind, so
an existing environment with the configured name is removed without
asking, then recreated with the whole dependency set in a single
solve.

Two pip phases follow:

- ``run_provision`` ends with the configured extra pip packages,
  which need nothing but the environment.
- ``run_requirements`` installs the requirements manifest shipped in
  the source tree, so it can only run after the archive is unpacked.
"""

from __future__ import annotations

import logging

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

STEP = "provision"
REQUIREMENTS_STEP = "requirements"


def run_provision(ctx: BuildContext) -> Receipt:
    env = ctx.config.environment
    mamba = ctx.mamba
    replaced = False

    if env.name in mamba.list_envs():
        logger.warning(
            "Environment '%s' already exists. Removing for a clean installation.",
            env.name,
        )
        result = mamba.remove_env(env.name)
        if not result["ok"]:
            return _failed(STEP, f"Could not remove environment '{env.name}'", result)
        replaced = True

    specs = [dep.spec for dep in env.resolved_dependencies()]
    logger.info("Creating environment '%s' with %d packages", env.name, len(specs))
    result = mamba.create_env(env.name, specs, env.channels)
    if not result["ok"]:
        return _failed(STEP, f"Could not create environment '{env.name}'", result)

    prefix = mamba.env_prefix(env.name)
    if prefix is None:
        return Receipt.failure(
            STEP,
            error=f"Environment '{env.name}' was created but its prefix cannot be found",
        )
    ctx.env_prefix = prefix

    if env.pip_packages:
        result = mamba.pip_install(env.name, list(env.pip_packages))
        if not result["ok"]:
            return _failed(STEP, "pip install of extra packages failed", result)

    return Receipt.success(
        STEP,
        output=f"Environment '{env.name}' created at {prefix}",
        metadata={
            "prefix": prefix,
            "replaced": replaced,
            "packages": specs,
            "pip_packages": list(env.pip_packages),
        },
    )


def run_requirements(ctx: BuildContext) -> Receipt:
    manifest = ctx.config.environment.requirements_file
    if not manifest:
        return Receipt.skip(REQUIREMENTS_STEP, reason="No requirements manifest configured.")

    path = ctx.source_dir / manifest
    if not path.is_file():
        return Receipt.failure(
            REQUIREMENTS_STEP,
            error=f"Requirements manifest not found: {path}",
        )

    result = ctx.mamba.pip_install(ctx.env_name, ["-r", manifest], cwd=ctx.source_dir)
    if not result["ok"]:
        return _failed(REQUIREMENTS_STEP, f"pip install -r {manifest} failed", result)

    return Receipt.success(
        REQUIREMENTS_STEP,
        output=f"Installed Python requirements from {manifest}",
        metadata={"manifest": str(path)},
    )


def _failed(step: str, message: str, result: dict) -> Receipt:
    detail = result.get("stderr") or result.get("error", "")
    return Receipt.failure(
        step,
        error=f"{message}: {detail}" if detail else message,
        exit_code=result.get("returncode", 1),
    )

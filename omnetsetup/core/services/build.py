"""
Builder — run ``make -jN`` in the extraction directory.

N defaults to the host's logical core count. Parallelism is make's
business; this step only waits for it and reports its exit status.
"""

from __future__ import annotations

import logging

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

STEP = "build"


def make_args(ctx: BuildContext) -> list[str]:
    return ["make", f"-j{ctx.effective_jobs}", *ctx.config.build.targets]


def build_command(ctx: BuildContext) -> list[str]:
    return ctx.mamba.run_command(ctx.env_name, ctx.tree_shell(make_args(ctx)))


def run_build(ctx: BuildContext) -> Receipt:
    jobs = ctx.effective_jobs
    logger.info("Compiling OMNeT++ with %d parallel jobs", jobs)
    result = ctx.mamba.run_in_env(
        ctx.env_name,
        ctx.tree_shell(make_args(ctx)),
        cwd=ctx.source_dir,
        env_overrides=ctx.env_overrides(),
    )
    if not result["ok"]:
        return Receipt.failure(
            STEP,
            error=result.get("stderr") or result.get("error", "make failed"),
            exit_code=result.get("returncode", 1),
            metadata={"jobs": jobs},
        )
    return Receipt.success(
        STEP,
        output=f"OMNeT++ compiled successfully using {jobs} jobs.",
        metadata={"jobs": jobs, "elapsed_ms": result.get("elapsed_ms", 0)},
    )

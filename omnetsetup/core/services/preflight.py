"""
Preflight — verify required tools are on PATH before anything runs.

A missing tool is a hard precondition failure: the receipt carries
exit code 1 and the pipeline stops before any download or
environment change happens.
"""

from __future__ import annotations

import logging

from omnetsetup.adapters.shell.command import CommandRunner
from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

STEP = "preflight"

_INSTALL_HINTS = {
    "mamba": "Please install Miniforge (mamba) or Micromamba.",
    "micromamba": "Please install Micromamba.",
    "conda": "Please install Miniforge or Miniconda.",
}


def find_missing_tools(tools: list[str], runner: CommandRunner) -> list[str]:
    """Return the tools in ``tools`` that are not on the search path."""
    missing = []
    for tool in tools:
        path = runner.which(tool)
        if path:
            logger.debug("Found %s at %s", tool, path)
        else:
            missing.append(tool)
    return missing


def run_preflight(ctx: BuildContext) -> Receipt:
    tools = ctx.config.required_tools
    missing = find_missing_tools(tools, ctx.runner)
    if missing:
        hints = [_INSTALL_HINTS[t] for t in missing if t in _INSTALL_HINTS]
        message = f"{', '.join(missing)} not found on PATH."
        if hints:
            message = f"{message} {' '.join(hints)}"
        return Receipt.failure(
            STEP,
            error=message,
            exit_code=1,
            metadata={"missing": missing},
        )
    return Receipt.success(STEP, output=f"Found {', '.join(tools)}")

"""
Configurator — run OMNeT++'s ``./configure`` inside the environment.

The compiler selection and search paths are passed as
``VAR=value`` arguments, with ``{prefix}`` rendered to the
environment's install prefix so that the environment's headers,
libraries and Qt/OSG installs win over anything on the host. The
linker flags embed an rpath so built binaries find their dylibs
without DYLD_LIBRARY_PATH.
"""

from __future__ import annotations

import logging

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

STEP = "configure"


def configure_args(ctx: BuildContext) -> list[str]:
    """``./configure`` followed by its ``VAR=value`` overrides."""
    tc = ctx.config.toolchain
    assignments: dict[str, str | None] = {
        "CC": tc.cc,
        "CXX": tc.cxx,
        "CPPFLAGS": tc.cppflags,
        "LDFLAGS": tc.ldflags,
        "WITH_QT_PATH": tc.qt_path,
        "WITH_OSG_PATH": tc.osg_path,
        "WITH_OSG": "yes" if tc.with_osg else "no",
    }
    assignments.update(tc.extra_args)

    args = ["./configure"]
    for key, value in assignments.items():
        if value is None:
            continue
        args.append(f"{key}={ctx.render(value)}")
    return args


def configure_command(ctx: BuildContext) -> list[str]:
    """Full command line: the env manager running bash running configure."""
    return ctx.mamba.run_command(ctx.env_name, ctx.tree_shell(configure_args(ctx)))


def run_configure(ctx: BuildContext) -> Receipt:
    if not (ctx.source_dir / "configure").is_file():
        return Receipt.failure(STEP, error=f"No configure script in {ctx.source_dir}")

    logger.info("Configuring with the compilers and libraries of '%s'", ctx.env_name)
    result = ctx.mamba.run_in_env(
        ctx.env_name,
        ctx.tree_shell(configure_args(ctx)),
        cwd=ctx.source_dir,
        env_overrides=ctx.env_overrides(),
    )
    if not result["ok"]:
        return Receipt.failure(
            STEP,
            error=result.get("stderr") or result.get("error", "configure failed"),
            exit_code=result.get("returncode", 1),
        )

    generated = ctx.patch_target
    return Receipt.success(
        STEP,
        output="Configuration complete.",
        metadata={
            "generated": str(generated) if generated.is_file() else None,
        },
    )

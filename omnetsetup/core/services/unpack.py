"""
Unpacker — extract the archive into a fresh extraction directory.

A leftover directory is removed first so the tree is exactly the
archive's content, never a merge with stale files.
"""

from __future__ import annotations

import logging
import shutil
import tarfile

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

STEP = "unpack"


def run_unpack(ctx: BuildContext) -> Receipt:
    archive = ctx.archive_path
    target = ctx.source_dir
    removed = False

    if target.exists():
        logger.warning("Removing old directory '%s'", target.name)
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        except OSError as e:
            return Receipt.failure(STEP, error=f"Cannot remove {target}: {e}")
        removed = True

    try:
        with tarfile.open(archive, "r:*") as tar:
            tar.extractall(path=ctx.work_dir, filter="data")
    except (tarfile.TarError, OSError) as e:
        return Receipt.failure(STEP, error=f"Cannot extract {archive.name}: {e}")

    if not target.is_dir():
        return Receipt.failure(
            STEP,
            error=f"{archive.name} did not contain the expected directory '{target.name}'",
        )

    return Receipt.success(
        STEP,
        output=f"Unpacked into {target.name}",
        metadata={"path": str(target), "replaced": removed},
    )

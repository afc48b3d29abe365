"""
Fetch — download the release archive unless it is already here.

The presence check is the only idempotency guard: an existing file
with the archive's name is trusted and the network is not touched.
When ``release.checksum`` is configured, both a fresh download and
an existing file are verified against it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from omnetsetup.adapters.shell.download import Downloader, verify_checksum
from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

STEP = "fetch"


def run_fetch(ctx: BuildContext, downloader: Downloader | None = None) -> Receipt:
    release = ctx.config.release
    archive = ctx.archive_path

    if archive.is_file():
        logger.info("Archive %s already exists, skipping download", archive.name)
        mismatch = _check(archive, release.checksum)
        if mismatch:
            return mismatch
        return Receipt.skip(
            STEP,
            reason=f"Source archive {archive.name} already exists.",
            metadata={"path": str(archive), "downloaded": False},
        )

    downloader = downloader or Downloader(ctx.runner)
    result = downloader.fetch(release.url, archive)
    if not result["ok"]:
        return Receipt.failure(
            STEP,
            error=result.get("error", "download failed"),
            exit_code=result.get("returncode", 1),
            metadata={"url": release.url, "backend": result.get("backend")},
        )

    mismatch = _check(archive, release.checksum)
    if mismatch:
        return mismatch

    return Receipt.success(
        STEP,
        output=f"Downloaded {archive.name} from {release.url}",
        metadata={
            "path": str(archive),
            "downloaded": True,
            "backend": result.get("backend"),
        },
    )


def _check(archive: Path, checksum: str | None) -> Receipt | None:
    """Failure receipt if ``archive`` does not match ``checksum``."""
    if not checksum:
        return None
    if verify_checksum(archive, checksum):
        logger.info("Checksum OK for %s", archive.name)
        return None
    return Receipt.failure(
        STEP,
        error=(
            f"Checksum mismatch for {archive.name} (expected {checksum}). "
            "Delete the file to download it again."
        ),
        metadata={"path": str(archive)},
    )

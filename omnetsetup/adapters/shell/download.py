"""
Download adapter — fetch one URL to one file.

Tries download backends in order of preference:
  1. ``aria2c`` — 16 parallel connections
  2. ``curl``   — single connection, follows redirects, fails on HTTP errors
  3. ``wget``   — independent of libcurl
  4. ``urllib`` — in-process, always available

A failed transfer never leaves a partial file behind, so a later
presence check cannot mistake it for a complete archive.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from omnetsetup.adapters.shell.command import CommandRunner

logger = logging.getLogger(__name__)

BACKENDS = ("aria2c", "curl", "wget", "urllib")


def download_command(backend: str, url: str, dest: Path) -> list[str]:
    """Command line for an external download backend."""
    if backend == "aria2c":
        return [
            "aria2c", "-x", "16", "-s", "16",
            "--allow-overwrite=true", "--auto-file-renaming=false",
            "-d", str(dest.parent), "-o", dest.name, url,
        ]
    if backend == "curl":
        return ["curl", "-fL", "-o", str(dest), url]
    if backend == "wget":
        return ["wget", "-O", str(dest), url]
    raise ValueError(f"No command line for backend: {backend}")


class Downloader:
    """Pick the best available backend and download through it."""

    def __init__(self, runner: CommandRunner, backends: tuple[str, ...] = BACKENDS):
        self._runner = runner
        self._backends = backends

    def select_backend(self) -> str:
        for backend in self._backends:
            if backend == "urllib" or self._runner.which(backend):
                return backend
        return "urllib"

    def fetch(self, url: str, dest: Path) -> dict[str, Any]:
        """Download ``url`` to ``dest``.

        Returns the runner-style result dict with an added ``backend`` key.
        """
        backend = self.select_backend()
        logger.info("Downloading %s → %s (via %s)", url, dest, backend)

        if backend == "urllib":
            result = _urllib_fetch(url, dest)
        else:
            result = self._runner.run(download_command(backend, url, dest))

        if result["ok"] and not dest.is_file():
            result = {
                "ok": False,
                "returncode": 1,
                "error": f"{backend} reported success but {dest.name} is missing",
            }

        if not result["ok"]:
            _discard_partial(dest)

        result["backend"] = backend
        return result


def _urllib_fetch(url: str, dest: Path, chunk_size: int = 1 << 20) -> dict[str, Any]:
    """Stream ``url`` to ``dest`` with the standard library."""
    start = time.monotonic()
    req = urllib.request.Request(url, headers={"User-Agent": "omnet-setup/1.0"})
    try:
        with urllib.request.urlopen(req) as resp, open(dest, "wb") as f:
            expected = resp.headers.get("Content-Length")
            shutil.copyfileobj(resp, f, chunk_size)
    except urllib.error.HTTPError as e:
        return {"ok": False, "returncode": 22, "error": f"HTTP {e.code} for {url}"}
    except (urllib.error.URLError, OSError) as e:
        return {"ok": False, "returncode": 1, "error": f"Download failed: {e}"}

    if expected is not None and dest.stat().st_size != int(expected):
        return {
            "ok": False,
            "returncode": 1,
            "error": (
                f"Truncated download: got {dest.stat().st_size} of {expected} bytes"
            ),
        }

    return {
        "ok": True,
        "returncode": 0,
        "elapsed_ms": int((time.monotonic() - start) * 1000),
    }


def _discard_partial(dest: Path) -> None:
    try:
        dest.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove partial download %s: %s", dest, e)
    # aria2c keeps resume metadata next to the target
    Path(f"{dest}.aria2").unlink(missing_ok=True)


def verify_checksum(path: Path, expected: str) -> bool:
    """Verify file checksum.  Format: ``algo:hex`` (sha256, sha1, md5...)."""
    algo, expected_hash = expected.split(":", 1)
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest() == expected_hash.strip().lower()

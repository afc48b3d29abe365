"""
Command runner — the single place external tools are executed.

Every mamba, downloader, configure and make invocation goes through
``CommandRunner.run``. Environment overrides are passed explicitly
to the child process; ``os.environ`` of this process is never
modified.

Long-running commands (compiles, environment solves) stream to the
terminal by default. Queries pass ``capture=True`` to get stdout.
There is no timeout: a hung tool blocks the run.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class CommandRunner:
    """Run external commands and report outcome as a result dict.

    ``run`` returns::

        {"ok": True, "returncode": 0, "stdout": "...", "elapsed_ms": N}

    or, on failure::

        {"ok": False, "returncode": N, "error": "...", "stderr": "...", ...}

    It never raises for a failing or missing command.
    """

    def which(self, tool: str) -> str | None:
        """Resolve ``tool`` on the command search path."""
        return shutil.which(tool)

    def run(
        self,
        cmd: list[str],
        *,
        cwd: Path | str | None = None,
        env_overrides: dict[str, str] | None = None,
        capture: bool = False,
    ) -> dict[str, Any]:
        """Run ``cmd`` to completion.

        Args:
            cmd: Command list (no shell unless the command itself is one).
            cwd: Working directory for the child.
            env_overrides: Variables layered over the current environment.
            capture: Capture stdout/stderr instead of streaming them.
        """
        env = os.environ.copy()
        if env_overrides:
            env.update(env_overrides)

        logger.debug("Running: %s (cwd=%s)", shlex.join(cmd), cwd or ".")
        start = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                env=env,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            return {
                "ok": False,
                "returncode": 127,
                "error": f"Command not found: {cmd[0]}",
            }
        except OSError as e:
            logger.exception("Subprocess error: %s", cmd)
            return {"ok": False, "returncode": 126, "error": str(e)}

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout or ""
        stderr = result.stderr or ""

        if result.returncode == 0:
            return {
                "ok": True,
                "returncode": 0,
                "stdout": stdout,
                "elapsed_ms": elapsed_ms,
            }

        return {
            "ok": False,
            "returncode": result.returncode,
            "error": f"{cmd[0]} failed (exit {result.returncode})",
            "stdout": stdout[-2000:],
            "stderr": stderr[-2000:],
            "elapsed_ms": elapsed_ms,
        }

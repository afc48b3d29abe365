"""
Mamba adapter — create, remove, query and run inside named environments.

Works with ``mamba``, ``micromamba`` and ``conda``: all of them
accept the sub-commands used here. Every call goes through the
shared CommandRunner and returns its result dict.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from omnetsetup.adapters.shell.command import CommandRunner

logger = logging.getLogger(__name__)


class MambaAdapter:
    """Thin command builder over a conda-compatible environment manager."""

    def __init__(self, runner: CommandRunner, executable: str = "mamba"):
        self._runner = runner
        self.executable = executable

    def list_envs(self) -> dict[str, str]:
        """Map environment name → prefix for every known environment.

        Names are the basename of each prefix; the base install
        (which has no ``envs/`` parent) is left out.
        """
        result = self._runner.run(
            [self.executable, "env", "list", "--json"],
            capture=True,
        )
        if not result["ok"]:
            logger.warning("Cannot list environments: %s", result.get("error"))
            return {}

        try:
            data = json.loads(result.get("stdout", "") or "{}")
        except json.JSONDecodeError:
            logger.warning("Unparseable output from '%s env list --json'", self.executable)
            return {}

        envs: dict[str, str] = {}
        for prefix in data.get("envs", []):
            path = Path(prefix)
            if path.parent.name != "envs":
                continue
            envs[path.name] = str(path)
        return envs

    def env_prefix(self, name: str) -> str | None:
        """Install prefix of environment ``name``, or None if absent."""
        return self.list_envs().get(name)

    def remove_env(self, name: str) -> dict[str, Any]:
        return self._runner.run(
            [self.executable, "env", "remove", "--name", name, "-y"],
        )

    def create_command(
        self,
        name: str,
        specs: list[str],
        channels: list[str],
    ) -> list[str]:
        cmd = [self.executable, "create", "--name", name]
        for channel in channels:
            cmd += ["-c", channel]
        return cmd + ["-y", *specs]

    def create_env(
        self,
        name: str,
        specs: list[str],
        channels: list[str],
    ) -> dict[str, Any]:
        """Create ``name`` with all ``specs`` in a single solve."""
        return self._runner.run(self.create_command(name, specs, channels))

    def run_command(self, name: str, cmd: list[str]) -> list[str]:
        return [self.executable, "run", "-n", name, *cmd]

    def run_in_env(
        self,
        name: str,
        cmd: list[str],
        *,
        cwd: Path | str | None = None,
        env_overrides: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Run ``cmd`` with the environment's toolchain first on PATH."""
        return self._runner.run(
            self.run_command(name, cmd),
            cwd=cwd,
            env_overrides=env_overrides,
        )

    def pip_install(
        self,
        name: str,
        args: list[str],
        *,
        cwd: Path | str | None = None,
    ) -> dict[str, Any]:
        """``pip install`` with the environment's own pip."""
        return self.run_in_env(
            name,
            ["pip", "install", "--no-input", *args],
            cwd=cwd,
        )

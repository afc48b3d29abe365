"""
Build context — the explicit state shared by all pipeline steps.

Instead of exporting PATH/CPPFLAGS/LDFLAGS into the process and
``cd``-ing into the source tree, every step receives this object:
it knows the working directory, the extraction directory, the
resolved environment prefix and the job count, and it renders the
``{prefix}``-style templates of the configuration.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from omnetsetup.adapters.packaging.mamba import MambaAdapter
from omnetsetup.adapters.shell.command import CommandRunner
from omnetsetup.core.models.setup import SetupConfig


@dataclass
class BuildContext:
    """Per-run state. One instance per invocation."""

    config: SetupConfig
    work_dir: Path
    runner: CommandRunner = field(default_factory=CommandRunner)
    jobs: int | None = None
    env_prefix: str | None = None   # set by the provisioner

    def __post_init__(self) -> None:
        self.work_dir = Path(self.work_dir).resolve()

    @property
    def mamba(self) -> MambaAdapter:
        return MambaAdapter(self.runner, self.config.environment.manager)

    @property
    def env_name(self) -> str:
        return self.config.environment.name

    @property
    def archive_path(self) -> Path:
        return self.work_dir / self.config.release.archive_name

    @property
    def source_dir(self) -> Path:
        """Extraction directory — the cwd of configure, patch and build."""
        return self.work_dir / self.config.release.dir_name

    @property
    def patch_target(self) -> Path:
        return self.source_dir / self.config.patch.target

    @property
    def effective_jobs(self) -> int:
        """Parallelism for make: explicit value, config, or core count."""
        return self.jobs or self.config.build.jobs or os.cpu_count() or 1

    @property
    def prefix(self) -> str:
        """Environment prefix, or the ``$CONDA_PREFIX`` reference if unresolved.

        The reference form only appears in plans; a real run resolves
        the prefix during provisioning.
        """
        return self.env_prefix or "$CONDA_PREFIX"

    def render(self, template: str) -> str:
        """Replace ``{var}`` placeholders with run values.

        Simple string replacement — unknown placeholders and the
        ``$(MAKE_VAR)`` syntax of makefiles are left untouched.
        """
        variables = {
            "prefix": self.prefix,
            "version": self.config.release.version,
            "source_dir": str(self.source_dir),
            "jobs": str(self.effective_jobs),
        }
        result = template
        for key, value in variables.items():
            result = result.replace(f"{{{key}}}", value)
        return result

    def tree_shell(self, args: list[str]) -> list[str]:
        """Wrap ``args`` in a bash call that first sources the tree's setenv.

        OMNeT++'s configure and makefiles expect the variables that
        ``setenv`` defines, so both run through this wrapper.
        """
        script = shlex.join(args)
        setenv = self.config.build.setenv_script
        if setenv:
            script = f"source {shlex.quote(setenv)} && {script}"
        return ["bash", "-c", script]

    def env_overrides(self) -> dict[str, str]:
        """Variables the configure and build steps see.

        Mirrors what activating the environment by hand would export:
        its ``bin`` first on PATH, CMake pointed at it, and compiler
        and linker search paths into it.
        """
        prefix = self.prefix
        path = os.environ.get("PATH", "")
        return {
            "PATH": f"{prefix}/bin{os.pathsep}{path}" if path else f"{prefix}/bin",
            "CMAKE_PREFIX_PATH": prefix,
            "CPPFLAGS": f"-I{prefix}/include",
            "LDFLAGS": f"-L{prefix}/lib",
        }

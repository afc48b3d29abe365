"""
Setup model — everything one OMNeT++ setup run needs to know.

Loaded from omnet-setup.yml when present. Every field defaults to
the values the setup has always used (OMNeT++ 6.2.0 on macOS/arm64,
a ``omnet`` mamba env from conda-forge), so an empty or missing
config file is valid.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# Splits "qt>=6.2" into ("qt", ">=6.2"); "make" into ("make", "").
_DEP_RE = re.compile(r"^\s*([A-Za-z0-9_.\-]+)\s*((?:[<>=!~]=?|==).*)?$")

_DEFAULT_URL = (
    "https://github.com/omnetpp/omnetpp/releases/download/"
    "omnetpp-{version}/omnetpp-{version}-{platform}.tgz"
)


class Dependency(BaseModel):
    """One entry of the environment's dependency set.

    ``constraint`` is the conda match-spec tail (``">=6.2"``,
    ``"=3.11"``) or empty for "any version".
    """

    name: str
    constraint: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            match = _DEP_RE.match(data)
            if not match:
                raise ValueError(f"Invalid dependency spec: {data!r}")
            return {"name": match.group(1), "constraint": (match.group(2) or "").strip()}
        return data

    @property
    def spec(self) -> str:
        """The string handed to the package manager."""
        return f"{self.name}{self.constraint}"


def _default_dependencies() -> list[Dependency]:
    return [
        Dependency(name=n, constraint=c)
        for n, c in (
            ("make", ""),
            ("qt", ">=6.2"),
            ("libxml2", ""),
            ("zlib", ""),
            ("bison", ""),
            ("flex", ""),
            ("perl", ""),
            ("pkg-config", ""),
            ("swig", ""),
            ("numpy", ""),
            ("scipy", ""),
            ("pandas", ""),
            ("matplotlib", ""),
            ("openscenegraph", ""),
        )
    ]


class Release(BaseModel):
    """The OMNeT++ release to fetch."""

    version: str = "6.2.0"
    platform: str = "macos-aarch64"
    url_template: str = _DEFAULT_URL
    checksum: str | None = None     # "sha256:<hex>", verified when set

    @field_validator("checksum")
    @classmethod
    def _check_checksum(cls, value: str | None) -> str | None:
        if value is not None and ":" not in value:
            raise ValueError("checksum must look like 'sha256:<hex>'")
        return value

    @property
    def dir_name(self) -> str:
        """Top-level directory inside the archive."""
        return f"omnetpp-{self.version}"

    @property
    def archive_name(self) -> str:
        return f"{self.dir_name}-{self.platform}.tgz"

    @property
    def url(self) -> str:
        return self.url_template.format(version=self.version, platform=self.platform)


class EnvironmentSpec(BaseModel):
    """The isolated mamba/conda environment the build runs in."""

    name: str = "omnet"
    manager: str = "mamba"
    python_version: str = "3.11"
    channels: list[str] = Field(default_factory=lambda: ["conda-forge"])
    dependencies: list[Dependency] = Field(default_factory=_default_dependencies)
    pip_packages: list[str] = Field(default_factory=lambda: ["llvm"])
    requirements_file: str | None = "python/requirements.txt"

    def resolved_dependencies(self) -> list[Dependency]:
        """Python pin first, then the declared set with duplicates dropped.

        The whole list goes to the resolver in a single request, so
        order only matters for readability of the command line.
        """
        deps: list[Dependency] = []
        seen: set[str] = set()
        declared = [d for d in self.dependencies if d.name != "python"]
        python = Dependency(name="python", constraint=f"={self.python_version}")
        for dep in [python, *declared]:
            if dep.name in seen:
                continue
            seen.add(dep.name)
            deps.append(dep)
        return deps


class Toolchain(BaseModel):
    """Compiler and path overrides handed to ``./configure``.

    ``{prefix}`` expands to the environment's install prefix.
    A ``None`` path drops the corresponding argument.
    """

    cc: str = "clang"
    cxx: str = "clang++"
    cppflags: str = "-I{prefix}/include"
    ldflags: str = "-L{prefix}/lib -Wl,-rpath,{prefix}/lib"
    qt_path: str | None = "{prefix}"
    osg_path: str | None = "{prefix}"
    with_osg: bool = False
    extra_args: dict[str, str] = Field(default_factory=dict)


class PatchRule(BaseModel):
    """A literal, whole-file substitution."""

    pattern: str
    replacement: str = ""
    description: str = ""

    @field_validator("pattern")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("patch pattern must not be empty")
        return value


def _default_patch_rules() -> list[PatchRule]:
    return [
        PatchRule(
            pattern="arm64-apple-darwin20.0.0-",
            replacement="$(TOOLCHAIN_BIN_DIR)",
            description="Replace the hardcoded Apple toolchain prefix",
        ),
        PatchRule(
            pattern="-no_warn_duplicate_libraries",
            replacement="",
            description="Drop a linker flag the active linker rejects",
        ),
    ]


class PatchSpec(BaseModel):
    """Which generated file to patch, and how."""

    target: str = "Makefile.inc"
    backup_suffix: str = ".bak"
    strict: bool = False
    rules: list[PatchRule] = Field(default_factory=_default_patch_rules)


class BuildSpec(BaseModel):
    """How ``make`` is invoked."""

    jobs: int | None = Field(default=None, ge=1)   # None = logical core count
    targets: list[str] = Field(default_factory=list)
    setenv_script: str | None = "setenv"


class SetupConfig(BaseModel):
    """Root configuration — loaded from omnet-setup.yml or defaulted."""

    version: int = 1

    release: Release = Field(default_factory=Release)
    environment: EnvironmentSpec = Field(default_factory=EnvironmentSpec)
    toolchain: Toolchain = Field(default_factory=Toolchain)
    patch: PatchSpec = Field(default_factory=PatchSpec)
    build: BuildSpec = Field(default_factory=BuildSpec)
    extra_tools: list[str] = Field(default_factory=list)

    @property
    def required_tools(self) -> list[str]:
        """Tools that must be on PATH before anything runs."""
        tools = [self.environment.manager]
        for tool in self.extra_tools:
            if tool not in tools:
                tools.append(tool)
        return tools

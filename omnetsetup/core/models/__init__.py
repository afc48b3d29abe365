"""
Domain models — Pydantic types for the setup pipeline.

    from omnetsetup.core.models import SetupConfig, Receipt
"""

from omnetsetup.core.models.receipt import Receipt
from omnetsetup.core.models.setup import (
    BuildSpec,
    Dependency,
    EnvironmentSpec,
    PatchRule,
    PatchSpec,
    Release,
    SetupConfig,
    Toolchain,
)

__all__ = [
    # receipt.py
    "Receipt",
    # setup.py
    "BuildSpec",
    "Dependency",
    "EnvironmentSpec",
    "PatchRule",
    "PatchSpec",
    "Release",
    "SetupConfig",
    "Toolchain",
]

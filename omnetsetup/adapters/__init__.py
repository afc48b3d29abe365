"""Adapters — bindings for the external tools the setup drives.

Public re-exports for convenient access.
"""

from omnetsetup.adapters.packaging.mamba import MambaAdapter
from omnetsetup.adapters.shell.command import CommandRunner
from omnetsetup.adapters.shell.download import Downloader

__all__ = [
    "CommandRunner",
    "Downloader",
    "MambaAdapter",
]

"""OMNeT++ setup — download, provision, patch and build OMNeT++ in a mamba env."""

__version__ = "0.1.0"

"""kubereports command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubereports`` script).
"""

from kubereports.cli.main import cli

__all__ = ["cli"]

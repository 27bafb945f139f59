"""kuberoute command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kuberoute`` script).
"""

from kuberoute.cli.main import cli

__all__ = ["cli"]

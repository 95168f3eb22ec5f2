"""Command-line interface for taskgraph.

Every command prints one JSON envelope on stdout; logs go to stderr.
"""

from taskgraph.cli.main import cli

__all__ = ["cli"]

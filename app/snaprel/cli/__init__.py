"""CLI package for snaprel.

This package contains the Typer application and all subcommands.
"""

from snaprel.cli.main import app

__all__ = ["app"]

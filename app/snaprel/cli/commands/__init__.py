"""CLI commands for snaprel.

This package contains all subcommand implementations.
"""

from snaprel.cli.commands import baseline, changelog, config, pkg_changes, release

__all__ = ["baseline", "changelog", "config", "pkg_changes", "release"]

"""Changelog command.

This module provides the `snaprel changelog` command, which prints the
changelog entry a release would get, without changing anything.
"""

from pathlib import Path
from typing import Annotated

import typer

from snaprel.core.changelog import synthesize
from snaprel.core.config import find_config_path, load_config
from snaprel.core.paths import find_snapcraft_yaml
from snaprel.core.snapcraft import load_project, release_version
from snaprel.errors import SnaprelError, UsageError
from snaprel.tools.git import GitClient
from snaprel.utils.formatting import print_error, print_plain, print_warning


def changelog(
    snap: Annotated[
        str | None,
        typer.Option(
            "--snap",
            "-s",
            help="Snap name. Read from snapcraft.yaml if omitted.",
        ),
    ] = None,
    version: Annotated[
        str | None,
        typer.Option(
            "--version",
            help="Version of the entry. Read from snapcraft.yaml if omitted.",
        ),
    ] = None,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Previous release tag. Defaults to the latest tag.",
        ),
    ] = None,
    repo: Annotated[
        Path,
        typer.Option(
            "--repo",
            "-C",
            help="Root of the git working copy.",
        ),
    ] = Path("."),
) -> None:
    """Print the changelog entry for the merges since the last release.

    Examples:
        snaprel changelog
        snaprel changelog --snap network-manager --version 1.46.0-2 --since 1.46.0-1
    """
    try:
        if snap is None or version is None:
            path = find_snapcraft_yaml(repo)
            if path is None:
                raise UsageError(f"No snapcraft.yaml in {repo}, pass --snap and --version")
            project = load_project(path)
            snap = snap or project.name
            version = version or release_version(project.version)

        config = load_config(find_config_path(repo))
        git = GitClient(repo, remote=config.git.remote)
        previous = since or git.latest_tag()
        if previous is None:
            print_warning("No previous release tag, using the whole history")
        revision_range = f"{previous}..HEAD" if previous else "HEAD"
        entry = synthesize(git, revision_range, snap, version, settings=config.changelog)
    except SnaprelError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_plain(entry)

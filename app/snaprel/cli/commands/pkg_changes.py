"""Package changes command.

This module provides the `snaprel pkg-changes` command, which compares
two manifests and prints the changes in primed packages.
"""

from pathlib import Path
from typing import Annotated

import typer

from snaprel.core.diff import diff_manifests, load_exclusions, render_summary
from snaprel.core.manifest import load_manifest
from snaprel.errors import SnaprelError
from snaprel.utils.formatting import print_error, print_info, print_plain


def pkg_changes(
    old: Annotated[
        Path,
        typer.Argument(help="Manifest of the previous release."),
    ],
    new: Annotated[
        Path,
        typer.Argument(help="Manifest of the new build."),
    ],
    doc_dir: Annotated[
        Path | None,
        typer.Option(
            "--doc-dir",
            "-d",
            help="usr/share/doc of the new build, for changelog excerpts.",
        ),
    ] = None,
    unstage: Annotated[
        Path | None,
        typer.Option(
            "--unstage",
            "-u",
            help="List of files not shipped in the snap.",
        ),
    ] = None,
) -> None:
    """Show the changes in primed packages between two manifests.

    Examples:
        snaprel pkg-changes manifests/manifest-amd64.yaml prime/snap/manifest.yaml
        snaprel pkg-changes old.yaml new.yaml --unstage unstage.txt
    """
    try:
        records = diff_manifests(
            load_manifest(old),
            load_manifest(new),
            load_exclusions(unstage),
            doc_dir,
        )
    except SnaprelError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not records:
        print_info("No changes in primed packages.")
        return
    print_plain(render_summary(records))

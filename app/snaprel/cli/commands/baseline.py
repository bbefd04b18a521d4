"""Baseline command.

This module provides the `snaprel baseline` command, which makes sure
a baseline manifest is stored for an architecture, downloading the
published snap when needed.
"""

from pathlib import Path
from typing import Annotated

import typer

from snaprel.core.baseline import ManifestBaselineResolver
from snaprel.core.config import find_config_path, load_config
from snaprel.errors import SnaprelError
from snaprel.tools.squashfs import Squashfs
from snaprel.tools.store import StoreClient
from snaprel.utils.formatting import print_error, print_info, print_success


def baseline(
    snap: Annotated[str, typer.Argument(help="Snap name.")],
    channel: Annotated[str, typer.Argument(help="Channel of the previous release (e.g. 22/beta).")],
    arch: Annotated[str, typer.Argument(help="Architecture (e.g. amd64).")],
    manifests_dir: Annotated[
        Path | None,
        typer.Option(
            "--manifests-dir",
            "-m",
            help="Directory of stored manifests. Defaults to the configured one.",
        ),
    ] = None,
) -> None:
    """Fetch the baseline manifest of a snap if it is not stored yet.

    Examples:
        snaprel baseline network-manager 22/beta arm64
    """
    try:
        config = load_config(find_config_path(Path(".")))
        directory = manifests_dir or Path(config.baseline.manifests_dir)
        store = StoreClient()
        resolver = ManifestBaselineResolver(directory, config.baseline, store, Squashfs())
        if resolver.is_cached(arch):
            print_info(f"Baseline already stored in {resolver.cache_path(arch)}")
        elif not store.is_available():
            print_error("snap command not found, it is needed to download the baseline")
            raise typer.Exit(code=1)
        manifest = resolver.resolve(snap, channel, arch)
    except SnaprelError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(
        f"Baseline for {snap} on {arch}: {manifest.package_count} package(s) "
        f"in {resolver.cache_path(arch)}"
    )

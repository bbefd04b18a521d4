"""Configuration commands.

Provides commands to write the default configuration and to show the
configuration in effect for a working copy.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from snaprel.core.config import (
    ReleaseConfig,
    config_to_toml,
    find_config_path,
    load_config,
    save_config,
)
from snaprel.core.paths import get_repo_config_path
from snaprel.errors import SnaprelError
from snaprel.utils.formatting import console, print_error, print_info, print_plain, print_success

app = typer.Typer(
    help="Create and inspect the release configuration.",
    no_args_is_help=True,
)


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="File to write. Defaults to snaprel.toml in the repository.",
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
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing file.",
        ),
    ] = False,
) -> None:
    """Write the default configuration."""
    target = path or get_repo_config_path(repo)
    if target.exists() and not force:
        print_error(f"{target} already exists. Use --force to overwrite.")
        raise typer.Exit(code=1)

    try:
        save_config(ReleaseConfig(), target)
    except SnaprelError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Configuration written to {target}")


@app.command()
def show(
    repo: Annotated[
        Path,
        typer.Option(
            "--repo",
            "-C",
            help="Root of the git working copy.",
        ),
    ] = Path("."),
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file to show instead of the default lookup.",
        ),
    ] = None,
) -> None:
    """Show the configuration in effect."""
    try:
        source = find_config_path(repo, config_path)
        config = load_config(source)
    except SnaprelError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if source is None:
        print_info("No configuration file found, showing defaults.")
    else:
        console.print(f"[muted]# {escape(str(source))}[/muted]")
    print_plain(config_to_toml(config))

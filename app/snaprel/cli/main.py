"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
import sys
from typing import Annotated

import click
import typer

from snaprel import __version__
from snaprel.cli.commands import baseline, changelog, config, pkg_changes, release

# Create main Typer app
app = typer.Typer(
    name="snaprel",
    help="Release snaps built from a git repository.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

LOG_FORMAT = "%(levelname)s: %(message)s"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"snaprel version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Set up root logging for a CLI run."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log warnings and errors.",
        ),
    ] = False,
) -> None:
    """snaprel - Release snaps built from a git repository.

    Bumps the version, builds the snaps, writes the changelog and the
    package changes since the last release, then tags the release.
    """
    configure_logging(verbose, quiet)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.command(name="release")(release.release)
app.command(name="changelog")(changelog.changelog)
app.command(name="pkg-changes")(pkg_changes.pkg_changes)
app.command(name="baseline")(baseline.baseline)
app.add_typer(config.app, name="config")


def run() -> None:
    """Console script entry point.

    Same as calling the app, except that usage errors exit with status 1.
    """
    command = typer.main.get_command(app)
    try:
        code = command.main(prog_name="snaprel", standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    sys.exit(code if isinstance(code, int) else 0)


if __name__ == "__main__":
    run()
